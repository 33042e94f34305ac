"""Indexing run models."""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


@dataclass
class IndexReport:
    """Tally of one indexing run."""
    success_count: int = 0
    error_count: int = 0
    fragment_count: int = 0
    file_count: int = 0


class JobStatus(Enum):
    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class IndexJob:
    """Background indexing run."""
    id: str
    project_id: str
    repo_ref: str
    status: JobStatus = JobStatus.PENDING
    report: Optional[IndexReport] = None
    error: Optional[str] = None
    created_at: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    finished_at: Optional[datetime] = None

    @property
    def done(self) -> bool:
        return self.status in (JobStatus.SUCCEEDED, JobStatus.FAILED)
