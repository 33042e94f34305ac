"""Protocol interfaces for dependency injection."""
from .embedder import EmbedderProtocol
from .vector_store import VectorStoreProtocol
from .llm import LLMProtocol
from .repo_fetcher import RepoFetcherProtocol
from .commit_source import CommitSourceProtocol

__all__ = [
    "EmbedderProtocol",
    "VectorStoreProtocol",
    "LLMProtocol",
    "RepoFetcherProtocol",
    "CommitSourceProtocol",
]
