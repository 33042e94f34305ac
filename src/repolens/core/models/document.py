"""Document domain models."""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


class ChunkType(Enum):
    """How a fragment was cut from its file."""
    WHOLE = "whole"        # file fits in one fragment
    FUNCTION = "function"  # cut while a declaration region was open
    SECTION = "section"


@dataclass
class RawFile:
    """Repository file as returned by a fetcher."""
    path: str
    content: str


@dataclass
class Fragment:
    """Bounded slice of a source file for indexing."""
    content: str
    source_file: str
    chunk_index: int
    total_chunks: int
    start_line: int
    end_line: int  # inclusive
    chunk_type: ChunkType

    @property
    def line_count(self) -> int:
        return self.end_line - self.start_line + 1


@dataclass
class IndexedChunk:
    """Persisted fragment with its summary and embedding."""
    project_id: str
    file_name: str
    source_code: str
    summary: str
    embedding: Optional[list[float]] = None
    id: Optional[str] = None
    created_at: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc)
    )


@dataclass
class SearchResult:
    """Similarity candidate from the store."""
    file_name: str
    source_code: str
    summary: str
    vector_score: float
    boost: float = 0.0

    @property
    def similarity(self) -> float:
        """Boosted similarity, capped at 1.0."""
        return min(1.0, self.vector_score + self.boost)

    @property
    def directory(self) -> str:
        """Parent directory of the file, or "root"."""
        return "/".join(self.file_name.split("/")[:-1]) or "root"
