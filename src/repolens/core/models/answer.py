"""Answer domain models."""
from dataclasses import dataclass, field
from typing import AsyncIterator

from .document import SearchResult


@dataclass
class AnswerResult:
    """Streamed answer with the fragments it was grounded on."""
    stream: AsyncIterator[str]
    cited_fragments: list[SearchResult] = field(default_factory=list)
    context: str = ""

    @property
    def sources(self) -> list[str]:
        """Unique cited file names, in citation order."""
        seen = set()
        sources = []
        for r in self.cited_fragments:
            if r.file_name not in seen:
                seen.add(r.file_name)
                sources.append(r.file_name)
        return sources
