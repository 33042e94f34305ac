"""Vector store protocol for dependency injection."""
from typing import Optional, Protocol, runtime_checkable

from ..models.document import IndexedChunk, SearchResult


@runtime_checkable
class VectorStoreProtocol(Protocol):
    """Protocol for project-scoped chunk storage with similarity search."""

    def insert(self, chunk: IndexedChunk) -> str:
        """Insert a chunk row.

        Args:
            chunk: Chunk to store. Its embedding may be set later.

        Returns:
            Assigned chunk ID.
        """
        ...

    def set_vector(self, chunk_id: str, vector: list[float]) -> None:
        """Attach an embedding to an inserted chunk.

        Args:
            chunk_id: ID returned by insert.
            vector: Embedding vector.
        """
        ...

    def similarity_search(
        self,
        project_id: str,
        vector: list[float],
        threshold: float = 0.3,
        limit: int = 30,
    ) -> list[SearchResult]:
        """Search a project's chunks by cosine similarity.

        Args:
            project_id: Project scope.
            vector: Query vector.
            threshold: Exclusive lower bound on similarity.
            limit: Maximum number of results.

        Returns:
            Results ordered by similarity, descending.
        """
        ...

    def delete_project(self, project_id: str) -> int:
        """Delete all chunks of a project. Returns number deleted."""
        ...

    def count(self, project_id: Optional[str] = None) -> int:
        """Get chunk count, optionally for one project."""
        ...
