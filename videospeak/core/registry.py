"""
In-memory job registry.

The registry owns every ProcessingJob. It hands out copies only and is the
single place where the job invariants are enforced:
- status moves Pending -> Processing -> Completed|Failed, never backward
- progress never decreases while a job is Processing
- a job carries a result or an error, never both
"""

from __future__ import annotations

import uuid
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional

from .exceptions import JobNotFoundError
from .models import (
    STATUS_TRANSITIONS,
    JobInput,
    JobStatus,
    ProcessingJob,
    ProcessingResults,
    ProcessingStage,
    TranslationMethod,
)
from videospeak.utils.logger import get_logger

logger = get_logger(__name__)


class JobRegistry:
    """Process-memory job store keyed by opaque job ids."""

    def __init__(self, clock: Callable[[], datetime] = datetime.now):
        self._jobs: Dict[str, ProcessingJob] = {}
        self._clock = clock

    def __len__(self) -> int:
        return len(self._jobs)

    def __contains__(self, job_id: str) -> bool:
        return job_id in self._jobs

    def create(
        self,
        job_input: JobInput,
        target_language: str,
        source_language: Optional[str] = None,
        method: Optional[TranslationMethod] = None,
        job_id: Optional[str] = None
    ) -> ProcessingJob:
        job_id = job_id or str(uuid.uuid4())
        if job_id in self._jobs:
            raise ValueError(f"Duplicate job id: {job_id}")

        now = self._clock()
        job = ProcessingJob(
            job_id=job_id,
            input=job_input,
            target_language=target_language,
            source_language=source_language,
            method=method,
            created_at=now,
            updated_at=now,
        )
        self._jobs[job_id] = job
        logger.info(f"Created job {job_id} for {job_input.describe()}")
        return replace(job)

    def get(self, job_id: str) -> Optional[ProcessingJob]:
        job = self._jobs.get(job_id)
        return replace(job) if job is not None else None

    def require(self, job_id: str) -> ProcessingJob:
        job = self.get(job_id)
        if job is None:
            raise JobNotFoundError(job_id)
        return job

    def all(self) -> List[ProcessingJob]:
        return [replace(job) for job in self._jobs.values()]

    def _touch(self, job: ProcessingJob) -> None:
        job.updated_at = self._clock()

    def _move(self, job: ProcessingJob, status: JobStatus) -> bool:
        if status not in STATUS_TRANSITIONS[job.status]:
            logger.debug(f"Ignoring {job.status.value} -> {status.value} for job {job.job_id}")
            return False
        job.status = status
        self._touch(job)
        return True

    def start(self, job_id: str) -> bool:
        """Pending -> Processing."""
        job = self._jobs.get(job_id)
        if job is None or not self._move(job, JobStatus.PROCESSING):
            return False
        job.stage = ProcessingStage.VALIDATING_INPUT
        return True

    def advance(self, job_id: str, stage: ProcessingStage, progress: int) -> bool:
        """Record stage progress; progress is clamped so it never goes down."""
        job = self._jobs.get(job_id)
        if job is None or job.status is not JobStatus.PROCESSING:
            return False
        job.stage = stage
        job.progress = max(job.progress, min(int(progress), 100))
        self._touch(job)
        logger.debug(f"Job {job_id}: {stage.value} ({job.progress}%)")
        return True

    def complete(self, job_id: str, result: ProcessingResults) -> bool:
        job = self._jobs.get(job_id)
        if job is None or not self._move(job, JobStatus.COMPLETED):
            return False
        job.stage = ProcessingStage.COMPLETED
        job.progress = 100
        job.result = result
        logger.info(f"Job {job_id} completed")
        return True

    def fail(
        self,
        job_id: str,
        error: str,
        error_code: Optional[str] = None,
        retryable: bool = False
    ) -> bool:
        """Mark a non-terminal job Failed. Terminal jobs are left untouched."""
        job = self._jobs.get(job_id)
        if job is None or not self._move(job, JobStatus.FAILED):
            return False
        job.error = error
        job.error_code = error_code
        job.retryable = retryable
        logger.info(f"Job {job_id} failed: {error}")
        return True

    def remove(self, job_id: str) -> bool:
        return self._jobs.pop(job_id, None) is not None

    def clear(self) -> int:
        count = len(self._jobs)
        self._jobs.clear()
        return count

    def evict_terminal(self, older_than: timedelta) -> int:
        """Remove Completed/Failed jobs not updated within ``older_than``."""
        cutoff = self._clock() - older_than
        expired = [
            job_id for job_id, job in self._jobs.items()
            if job.status.is_terminal and job.updated_at < cutoff
        ]
        for job_id in expired:
            del self._jobs[job_id]
        if expired:
            logger.info(f"Cleaned up {len(expired)} old jobs")
        return len(expired)

    def active_ids(self) -> List[str]:
        return [job_id for job_id, job in self._jobs.items() if not job.status.is_terminal]

    def counts(self) -> Dict[str, int]:
        counts = {"total": len(self._jobs)}
        for status in JobStatus:
            counts[status.value] = sum(1 for job in self._jobs.values() if job.status is status)
        return counts
