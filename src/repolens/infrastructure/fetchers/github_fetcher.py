"""Fetcher for GitHub repositories via the REST API."""

import logging
import re
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Optional
from urllib.parse import quote

import requests

from ...core.models.commit import Commit
from ...core.models.document import RawFile
from ...exceptions import AuthenticationError, RateLimitError, RepositoryFetchError
from .filters import decode_text, should_skip

logger = logging.getLogger(__name__)

JSON_ACCEPT = "application/vnd.github+json"
RAW_ACCEPT = "application/vnd.github.raw"
DIFF_ACCEPT = "application/vnd.github.diff"

REPO_RE = re.compile(
    r"^(?:https?://github\.com/|git@github\.com:)?"
    r"(?P<owner>[\w.-]+)/(?P<repo>[\w.-]+?)(?:\.git)?"
    r"(?:/tree/(?P<branch>.+?))?/?$"
)


def parse_repo_ref(ref: str) -> tuple[str, str, Optional[str]]:
    """Split a GitHub URL or ``owner/repo`` slug into (owner, repo, branch)."""
    match = REPO_RE.match(ref.strip())
    if not match:
        raise RepositoryFetchError(f"Not a GitHub repository reference: {ref}")
    return match["owner"], match["repo"], match["branch"]


class GitHubRepoFetcher:
    """Downloads a repository's text files and commit history from GitHub."""

    def __init__(
        self,
        token: Optional[str] = None,
        branch: Optional[str] = None,
        api_url: str = "https://api.github.com",
        max_concurrency: int = 5,
        max_file_bytes: int = 1_000_000,
        timeout: float = 30.0,
    ):
        """Initialize fetcher.

        Args:
            token: Default access token, used when no credentials are given.
            branch: Branch to read (repository default branch if None).
            api_url: GitHub API base URL.
            max_concurrency: Parallel file downloads.
            max_file_bytes: Skip files larger than this.
            timeout: HTTP timeout in seconds.
        """
        self._token = token
        self._branch = branch
        self._api_url = api_url.rstrip("/")
        self._max_concurrency = max_concurrency
        self._max_file_bytes = max_file_bytes
        self._timeout = timeout

    def _headers(self, token: Optional[str], accept: str = JSON_ACCEPT) -> dict[str, str]:
        headers = {
            "Accept": accept,
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def _get(
        self, url: str, token: Optional[str], accept: str = JSON_ACCEPT
    ) -> requests.Response:
        try:
            resp = requests.get(url, headers=self._headers(token, accept), timeout=self._timeout)
        except requests.RequestException as e:
            raise RepositoryFetchError(f"GitHub request failed: {e}") from e

        if resp.status_code == 401:
            raise AuthenticationError("GitHub rejected the access token")
        if resp.status_code == 429 or (
            resp.status_code == 403 and resp.headers.get("X-RateLimit-Remaining") == "0"
        ):
            reset = resp.headers.get("X-RateLimit-Reset")
            raise RateLimitError(
                "GitHub API rate limit exceeded",
                reset_at=int(reset) if reset and reset.isdigit() else None,
            )
        if resp.status_code == 404:
            raise RepositoryFetchError(f"Not found (or private without access): {url}")
        if resp.status_code != 200:
            raise RepositoryFetchError(f"GitHub returned {resp.status_code} for {url}")
        return resp

    def _default_branch(self, owner: str, repo: str, token: Optional[str]) -> str:
        data = self._get(f"{self._api_url}/repos/{owner}/{repo}", token).json()
        return data.get("default_branch", "main")

    def _list_blobs(
        self, owner: str, repo: str, branch: str, token: Optional[str]
    ) -> list[str]:
        url = f"{self._api_url}/repos/{owner}/{repo}/git/trees/{quote(branch, safe='')}?recursive=1"
        data = self._get(url, token).json()
        if data.get("truncated"):
            logger.warning(f"Tree listing for {owner}/{repo} truncated by GitHub")

        paths = []
        for entry in data.get("tree", []):
            if entry.get("type") != "blob":
                continue
            path = entry["path"]
            if should_skip(path):
                continue
            if entry.get("size", 0) > self._max_file_bytes:
                logger.debug(f"Skip large file: {path}")
                continue
            paths.append(path)
        return paths

    def _download(
        self, owner: str, repo: str, branch: str, path: str, token: Optional[str]
    ) -> Optional[RawFile]:
        url = (
            f"{self._api_url}/repos/{owner}/{repo}/contents/"
            f"{quote(path)}?ref={quote(branch, safe='')}"
        )
        content = decode_text(self._get(url, token, accept=RAW_ACCEPT).content)
        if content is None:
            return None
        return RawFile(path=path, content=content)

    def fetch_files(
        self, ref: str, credentials: Optional[str] = None
    ) -> list[RawFile]:
        """Fetch a repository's text files.

        Args:
            ref: GitHub URL or ``owner/repo`` slug.
            credentials: Access token (falls back to the configured token).

        Returns:
            Files ordered by path.

        Raises:
            AuthenticationError: Token rejected.
            RateLimitError: API rate limit exhausted.
            RepositoryFetchError: Any other failure.
        """
        owner, repo, branch = parse_repo_ref(ref)
        token = credentials or self._token
        branch = branch or self._branch or self._default_branch(owner, repo, token)

        paths = self._list_blobs(owner, repo, branch, token)
        logger.info(f"Fetching {len(paths)} files from {owner}/{repo}@{branch}")

        with ThreadPoolExecutor(max_workers=self._max_concurrency) as pool:
            downloaded = list(
                pool.map(lambda p: self._download(owner, repo, branch, p, token), paths)
            )

        files = sorted((f for f in downloaded if f is not None), key=lambda f: f.path)
        logger.info(f"Loaded {len(files)} files from {owner}/{repo}")
        return files

    def list_commits(
        self, ref: str, credentials: Optional[str] = None, limit: int = 10
    ) -> list[Commit]:
        """List the most recent commits of a repository.

        Args:
            ref: GitHub URL or ``owner/repo`` slug.
            credentials: Access token (falls back to the configured token).
            limit: Maximum number of commits.

        Returns:
            Commits newest first, without summaries.
        """
        owner, repo, branch = parse_repo_ref(ref)
        token = credentials or self._token
        branch = branch or self._branch

        url = f"{self._api_url}/repos/{owner}/{repo}/commits?per_page={limit}"
        if branch:
            url += f"&sha={quote(branch, safe='')}"

        commits = []
        for item in self._get(url, token).json():
            author = item["commit"].get("author") or {}
            commits.append(
                Commit(
                    hash=item["sha"],
                    message=item["commit"].get("message", ""),
                    author_name=author.get("name", ""),
                    author_avatar=(item.get("author") or {}).get("avatar_url", ""),
                    date=_parse_date(author.get("date")),
                )
            )

        commits.sort(key=lambda c: c.date, reverse=True)
        logger.info(f"Listed {len(commits)} commits of {owner}/{repo}")
        return commits[:limit]

    def get_diff(
        self, ref: str, commit_hash: str, credentials: Optional[str] = None
    ) -> str:
        """Get a commit's unified diff."""
        owner, repo, _ = parse_repo_ref(ref)
        token = credentials or self._token
        url = f"{self._api_url}/repos/{owner}/{repo}/commits/{commit_hash}"
        return self._get(url, token, accept=DIFF_ACCEPT).text


def _parse_date(value: Optional[str]) -> datetime:
    # GitHub timestamps end in "Z", which fromisoformat accepts only from 3.11
    if not value:
        return datetime.fromtimestamp(0, tz=timezone.utc)
    return datetime.fromisoformat(value.replace("Z", "+00:00"))
