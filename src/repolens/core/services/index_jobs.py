"""Index job runner - background indexing with observable status."""

import asyncio
import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from ...exceptions import JobNotFoundError
from ..models.indexing import IndexJob, IndexReport, JobStatus
from .index_service import IndexService

logger = logging.getLogger(__name__)


class IndexJobRunner:
    """Runs index jobs as asyncio tasks; one run at a time per project."""

    def __init__(self, index_service: IndexService, max_history: int = 100):
        """Initialize runner.

        Args:
            index_service: Service that performs the runs.
            max_history: Finished jobs kept for polling; oldest are dropped first.
        """
        self._index = index_service
        self._max_history = max_history
        self._jobs: dict[str, IndexJob] = {}
        self._tasks: dict[str, asyncio.Task] = {}
        self._project_locks: dict[str, asyncio.Lock] = {}

    def _lock_for(self, project_id: str) -> asyncio.Lock:
        if project_id not in self._project_locks:
            self._project_locks[project_id] = asyncio.Lock()
        return self._project_locks[project_id]

    def submit(
        self,
        project_id: str,
        repo_ref: str,
        credentials: Optional[str] = None,
        replace: bool = False,
    ) -> IndexJob:
        """Schedule an index run. Must be called with a running event loop.

        Returns:
            The pending job.
        """
        self._prune()
        job = IndexJob(id=uuid.uuid4().hex, project_id=project_id, repo_ref=repo_ref)
        self._jobs[job.id] = job
        self._tasks[job.id] = asyncio.create_task(
            self._run(job, credentials, replace), name=f"index-{job.id}"
        )
        self._tasks[job.id].add_done_callback(_consume_result)
        logger.info(f"Submitted index job {job.id} for project {project_id}")
        return job

    async def _run(
        self, job: IndexJob, credentials: Optional[str], replace: bool
    ) -> IndexReport:
        async with self._lock_for(job.project_id):
            job.status = JobStatus.RUNNING
            try:
                report = await self._index.index(
                    job.project_id, job.repo_ref, credentials, replace=replace
                )
            except asyncio.CancelledError:
                job.status = JobStatus.FAILED
                job.error = "cancelled"
                raise
            except Exception as e:
                job.status = JobStatus.FAILED
                job.error = str(e)
                logger.error(f"Index job {job.id} failed: {e}")
                raise
            finally:
                job.finished_at = datetime.now(timezone.utc)

        job.report = report
        job.status = JobStatus.SUCCEEDED
        logger.info(f"Index job {job.id} finished")
        return report

    def get(self, job_id: str) -> IndexJob:
        """Poll a job's status."""
        try:
            return self._jobs[job_id]
        except KeyError:
            raise JobNotFoundError(job_id) from None

    def jobs(self, project_id: Optional[str] = None) -> list[IndexJob]:
        """List jobs, optionally for one project, oldest first."""
        return [
            j for j in self._jobs.values()
            if project_id is None or j.project_id == project_id
        ]

    async def wait(self, job_id: str, timeout: Optional[float] = None) -> IndexReport:
        """Await a job's completion.

        Raises:
            JobNotFoundError: Unknown job id.
            Exception: Whatever the run raised, if it failed.
            asyncio.TimeoutError: If the timeout elapses first.
        """
        self.get(job_id)
        task = self._tasks[job_id]
        return await asyncio.wait_for(asyncio.shield(task), timeout)

    def _prune(self) -> None:
        finished = [j for j in self._jobs.values() if j.done]
        for job in finished[: max(0, len(finished) - self._max_history)]:
            del self._jobs[job.id]
            self._tasks.pop(job.id, None)

    async def shutdown(self) -> None:
        """Cancel outstanding jobs."""
        pending = [t for t in self._tasks.values() if not t.done()]
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)


def _consume_result(task: asyncio.Task) -> None:
    # Failures are recorded on the job; mark them retrieved for unawaited tasks
    if not task.cancelled():
        task.exception()
