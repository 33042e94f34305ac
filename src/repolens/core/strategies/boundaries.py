"""Chunk boundary detectors, one per language family."""
import re
from pathlib import PurePosixPath
from typing import Protocol, runtime_checkable


@runtime_checkable
class BoundaryDetector(Protocol):
    """Heuristics the chunker uses to find declaration regions."""

    def is_declaration_start(self, line: str) -> bool:
        """True if the line opens a function/class/type declaration."""
        ...

    def brace_delta(self, line: str) -> int:
        """Net change in nesting depth caused by the line."""
        ...

    def can_close(self, line: str) -> bool:
        """True if a balanced declaration region may end on this line."""
        ...


class BraceBoundaryDetector:
    """C-family languages: regions are delimited by curly braces."""

    DECLARATION_RE = re.compile(
        r"^(export\s+)?(default\s+)?(declare\s+)?(abstract\s+)?(async\s+)?"
        r"(function\*?|class|interface|type|enum|struct|trait|impl|fn|func)\s+\w+"
        r"|^(export\s+)?(const|let|var)\s+\w+\s*(:[^=]+)?=\s*(async\s+)?(\(|function)"
        r"|^(pub(\(\w+\))?\s+)?(async\s+)?(fn|struct|enum|trait|impl|mod)\b"
        r"|^func\s+(\([^)]*\)\s*)?\w+"
        r"|^((public|private|protected|internal|static|final|abstract|sealed|override)\s+)+"
        r"[\w<>\[\],\s]*\w+\s*\("
    )

    def is_declaration_start(self, line: str) -> bool:
        return bool(self.DECLARATION_RE.match(line.strip()))

    def brace_delta(self, line: str) -> int:
        return line.count("{") - line.count("}")

    def can_close(self, line: str) -> bool:
        return True


class PythonBoundaryDetector:
    """Python: regions end at a blank line once brackets are balanced."""

    DECLARATION_RE = re.compile(r"^(async\s+)?(def|class)\s+\w+")

    def is_declaration_start(self, line: str) -> bool:
        return bool(self.DECLARATION_RE.match(line.strip()))

    def brace_delta(self, line: str) -> int:
        opened = line.count("(") + line.count("[") + line.count("{")
        closed = line.count(")") + line.count("]") + line.count("}")
        return opened - closed

    def can_close(self, line: str) -> bool:
        return not line.strip()


DEFAULT_DETECTOR = BraceBoundaryDetector()

DEFAULT_DETECTORS: dict[str, BoundaryDetector] = {
    ".py": PythonBoundaryDetector(),
    ".pyi": PythonBoundaryDetector(),
}


def detector_for(
    path: str,
    detectors: dict[str, BoundaryDetector] | None = None,
    default: BoundaryDetector = DEFAULT_DETECTOR,
) -> BoundaryDetector:
    """Pick a detector by file extension."""
    registry = DEFAULT_DETECTORS if detectors is None else detectors
    return registry.get(PurePosixPath(path).suffix.lower(), default)
