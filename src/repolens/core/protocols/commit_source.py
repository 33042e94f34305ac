"""Commit source protocol for dependency injection."""
from typing import Optional, Protocol, runtime_checkable

from ..models.commit import Commit


@runtime_checkable
class CommitSourceProtocol(Protocol):
    """Protocol for repository commit history."""

    def list_commits(
        self, ref: str, credentials: Optional[str] = None, limit: int = 10
    ) -> list[Commit]:
        """List the most recent commits, newest first.

        Raises:
            RepositoryFetchError: On auth, network or rate-limit failure.
        """
        ...

    def get_diff(
        self, ref: str, commit_hash: str, credentials: Optional[str] = None
    ) -> str:
        """Get a commit's unified diff.

        Raises:
            RepositoryFetchError: On auth, network or rate-limit failure.
        """
        ...
