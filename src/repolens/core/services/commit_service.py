"""Commit service - summaries of recent repository commits."""

import asyncio
import logging
from typing import Optional

from ...exceptions import RepositoryFetchError
from ..models.commit import Commit
from ..protocols.commit_source import CommitSourceProtocol
from ..protocols.llm import LLMProtocol

logger = logging.getLogger(__name__)

COMMIT_PROMPT = """You are an expert programmer, and you are trying to summarize a git diff.
Reminders about the git diff format:
For every file, there are a few metadata lines, like (for example):
```
diff --git a/lib/index.js b/lib/index.js
index aadf691..bfef603 100644
--- a/lib/index.js
+++ b/lib/index.js
```
This means that `lib/index.js` was modified in this commit. Note that this is only an example.
Then there is a specifier of the lines that were modified.
A line starting with `+` means it was added.
A line that starting with `-` means that line was deleted.
A line that starts with neither `+` nor `-` is code given for context and better understanding.
It is not part of the diff.

EXAMPLE SUMMARY COMMENTS:
```
* Raised the amount of returned recordings from `10` to `100` [packages/server/recordings_api.ts], [packages/server/constants.ts]
* Fixed a typo in the github action name [.github/workflows/gpt-commit-summarizer.yml]
* Moved the `octokit` initialization to a separate file [src/octokit.ts], [src/index.ts]
* Added an OpenAI API for completions [packages/utils/apis/openai.ts]
* Lowered numeric tolerance for test files
```
Most commits will have less comments than this examples list.
The last comment does not include the file names,
because there were more than two relevant files in the hypothetical commit.
Do not include parts of the example in your summary.
It is given only as an example of appropriate comments.

Please summarise the following diff file:

{diff}"""


class CommitSummarizer:
    """Summarizes commit diffs as bullet comments via the LLM."""

    def __init__(
        self,
        llm: LLMProtocol,
        max_diff_chars: int = 20000,
        max_tokens: int | None = 512,
    ):
        """Initialize commit summarizer.

        Args:
            llm: Generative text client.
            max_diff_chars: Cap on diff characters sent to the LLM.
            max_tokens: Output budget per summary.
        """
        self._llm = llm
        self._max_diff_chars = max_diff_chars
        self._max_tokens = max_tokens

    def build_prompt(self, diff: str) -> str:
        return COMMIT_PROMPT.format(diff=diff[: self._max_diff_chars])

    async def summarize(self, diff: str) -> str:
        """Summarize a diff. Returns "" on LLM failure."""
        if not diff.strip():
            return ""
        try:
            summary = await self._llm.generate(
                self.build_prompt(diff), max_tokens=self._max_tokens
            )
        except Exception as e:
            logger.warning(f"Commit summary failed: {e}")
            return ""
        return (summary or "").strip()


class CommitService:
    """Polls a repository's recent commits and summarizes the new ones."""

    def __init__(
        self,
        source: CommitSourceProtocol,
        summarizer: CommitSummarizer,
        limit: int = 10,
        concurrency: int = 5,
    ):
        """Initialize commit service.

        Args:
            source: Commit history source.
            summarizer: Diff summarizer.
            limit: Recent commits considered per poll.
            concurrency: Diffs fetched and summarized at once.
        """
        self._source = source
        self._summarizer = summarizer
        self._limit = limit
        self._concurrency = concurrency
        self._commits: dict[str, dict[str, Commit]] = {}
        self._project_locks: dict[str, asyncio.Lock] = {}

    def _lock_for(self, project_id: str) -> asyncio.Lock:
        if project_id not in self._project_locks:
            self._project_locks[project_id] = asyncio.Lock()
        return self._project_locks[project_id]

    async def _summarize(
        self,
        repo_ref: str,
        commit: Commit,
        credentials: Optional[str],
        semaphore: asyncio.Semaphore,
    ) -> str:
        async with semaphore:
            try:
                diff = await asyncio.to_thread(
                    self._source.get_diff, repo_ref, commit.hash, credentials
                )
            except Exception as e:
                logger.warning(f"Cannot fetch diff of {commit.hash[:7]}: {e}")
                return ""
            return await self._summarizer.summarize(diff)

    async def poll(
        self, project_id: str, repo_ref: str, credentials: Optional[str] = None
    ) -> list[Commit]:
        """Summarize recent commits not seen before for this project.

        A commit whose diff or summary fails is still recorded, with an
        empty summary, and is not retried.

        Args:
            project_id: Owning project.
            repo_ref: Repository reference for the commit source.
            credentials: Repository access token.

        Returns:
            Newly recorded commits, newest first.

        Raises:
            RepositoryFetchError: If the commit list cannot be fetched.
        """
        async with self._lock_for(project_id):
            try:
                recent = await asyncio.to_thread(
                    self._source.list_commits, repo_ref, credentials, self._limit
                )
            except RepositoryFetchError:
                raise
            except Exception as e:
                raise RepositoryFetchError(f"Failed to list commits of {repo_ref}: {e}") from e

            known = self._commits.setdefault(project_id, {})
            fresh = [c for c in recent if c.hash not in known]
            logger.info(f"Found {len(fresh)} new commits for project {project_id}")

            semaphore = asyncio.Semaphore(self._concurrency)
            summaries = await asyncio.gather(
                *(self._summarize(repo_ref, c, credentials, semaphore) for c in fresh)
            )
            for commit, summary in zip(fresh, summaries):
                commit.summary = summary
                known[commit.hash] = commit

        return sorted(fresh, key=lambda c: c.date, reverse=True)

    def commits(self, project_id: str) -> list[Commit]:
        """Recorded commits of a project, newest first."""
        known = self._commits.get(project_id, {})
        return sorted(known.values(), key=lambda c: c.date, reverse=True)
