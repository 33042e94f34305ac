"""Domain models."""
from .document import ChunkType, RawFile, Fragment, IndexedChunk, SearchResult
from .indexing import IndexReport, IndexJob, JobStatus
from .answer import AnswerResult
from .commit import Commit

__all__ = [
    "ChunkType",
    "RawFile",
    "Fragment",
    "IndexedChunk",
    "SearchResult",
    "IndexReport",
    "IndexJob",
    "JobStatus",
    "AnswerResult",
    "Commit",
]
