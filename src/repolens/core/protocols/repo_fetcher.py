"""Repository fetcher protocol for dependency injection."""
from typing import Optional, Protocol, runtime_checkable

from ..models.document import RawFile


@runtime_checkable
class RepoFetcherProtocol(Protocol):
    """Protocol for repository file sources."""

    def fetch_files(
        self, ref: str, credentials: Optional[str] = None
    ) -> list[RawFile]:
        """Fetch every indexable file of a repository.

        Args:
            ref: Repository reference (URL, slug or path).
            credentials: Access token (optional).

        Returns:
            Files ordered by path.

        Raises:
            RepositoryFetchError: On auth, network or rate-limit failure.
        """
        ...
