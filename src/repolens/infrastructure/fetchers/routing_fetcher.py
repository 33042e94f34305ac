from pathlib import Path
from typing import Optional

from ...core.models.document import RawFile
from ...core.protocols.repo_fetcher import RepoFetcherProtocol


class RoutingRepoFetcher:
    """Sends existing local directories to one fetcher, everything else to another."""

    def __init__(self, github: RepoFetcherProtocol, local: RepoFetcherProtocol):
        self._github = github
        self._local = local

    def fetch_files(
        self, ref: str, credentials: Optional[str] = None
    ) -> list[RawFile]:
        if Path(ref).expanduser().is_dir():
            return self._local.fetch_files(ref, credentials)
        return self._github.fetch_files(ref, credentials)
