"""
Job orchestrator.

A fixed pool of asyncio workers pulls job ids from a FIFO queue and runs each
job through the pipeline. The pool size is the concurrency gate: at most
``max_concurrent_jobs`` jobs are ever Processing at once, the rest wait
Pending in submission order.
"""

from __future__ import annotations

import asyncio
from collections import deque
from datetime import timedelta
from typing import Any, Deque, Dict, List, Optional, Union

from videospeak.utils.logger import get_logger
from .cancellation import CancellationToken
from .exceptions import CancellationError, JobNotFoundError, VideoSpeakError
from .models import JobInput, ProcessingJob, TranslationMethod
from .pipeline import JobPipeline
from .registry import JobRegistry

logger = get_logger(__name__)

CANCELLED_MESSAGE = "Job cancelled by user"
SHUTDOWN_MESSAGE = "Server shutdown"


class JobOrchestrator:
    """Owns the job registry, the queue and the worker pool."""

    def __init__(
        self,
        pipeline: JobPipeline,
        max_concurrent_jobs: int = 5,
        poll_interval: float = 5.0,
        retention_seconds: float = 3600.0,
        sweep_interval: float = 3600.0,
        registry: Optional[JobRegistry] = None
    ):
        if max_concurrent_jobs < 1:
            raise ValueError("max_concurrent_jobs must be at least 1")

        self.pipeline = pipeline
        self.max_concurrent_jobs = max_concurrent_jobs
        self.poll_interval = poll_interval
        self.retention = timedelta(seconds=retention_seconds)
        self.sweep_interval = sweep_interval
        self.registry = registry if registry is not None else JobRegistry()

        self._queue: Deque[str] = deque()
        self._tokens: Dict[str, CancellationToken] = {}
        self._wakeup: Optional[asyncio.Event] = None
        self._workers: List[asyncio.Task] = []
        self._sweeper: Optional[asyncio.Task] = None
        self._active = 0
        self._closing = False

    @classmethod
    def from_config(cls, pipeline: JobPipeline, config: Dict[str, Any]) -> "JobOrchestrator":
        jobs = config.get("jobs", {})
        return cls(
            pipeline,
            max_concurrent_jobs=jobs.get("max_concurrent_jobs", 5),
            poll_interval=jobs.get("poll_interval", 5.0),
            retention_seconds=jobs.get("retention_seconds", 3600),
            sweep_interval=jobs.get("sweep_interval", 3600),
        )

    @property
    def running(self) -> bool:
        return bool(self._workers) and not self._closing

    def start(self) -> None:
        """Spawn the worker pool and the sweeper. Needs a running event loop."""
        if self._closing:
            raise RuntimeError("Orchestrator has been shut down")
        if self._workers:
            return

        self._wakeup = asyncio.Event()
        self._workers = [
            asyncio.create_task(self._worker(i), name=f"videospeak-worker-{i}")
            for i in range(self.max_concurrent_jobs)
        ]
        self._sweeper = asyncio.create_task(self._sweep_loop(), name="videospeak-sweeper")
        logger.info(f"Job orchestrator started with {self.max_concurrent_jobs} workers")

    async def submit(
        self,
        job_input: JobInput,
        target_language: str,
        method: Union[TranslationMethod, str, None] = None,
        source_language: Optional[str] = None
    ) -> str:
        """Create a Pending job, queue it and return its id without waiting."""
        if self._closing:
            raise RuntimeError("Orchestrator has been shut down")
        self.start()

        job = self.registry.create(
            job_input,
            target_language,
            source_language=source_language,
            method=TranslationMethod.parse(method),
        )
        self._tokens[job.job_id] = CancellationToken(job.job_id)
        self._queue.append(job.job_id)
        self._wakeup.set()
        return job.job_id

    def get_status(self, job_id: str) -> Optional[ProcessingJob]:
        return self.registry.get(job_id)

    def require_status(self, job_id: str) -> ProcessingJob:
        job = self.registry.get(job_id)
        if job is None:
            raise JobNotFoundError(job_id)
        return job

    def list_all(self) -> List[ProcessingJob]:
        return self.registry.all()

    def cancel(self, job_id: str) -> bool:
        """
        Cancel a Pending or Processing job.

        The job is marked Failed immediately. A provider call already in
        flight is not interrupted; the worker stops at the next stage or chunk
        boundary.
        """
        if not self.registry.fail(job_id, CANCELLED_MESSAGE, CancellationError.code, retryable=False):
            return False

        try:
            self._queue.remove(job_id)
        except ValueError:
            pass
        else:
            # Never reaches a worker, so nothing else releases its token
            self._tokens.pop(job_id, None)
        token = self._tokens.get(job_id)
        if token is not None:
            token.cancel(CANCELLED_MESSAGE)

        logger.info(f"Cancelled job {job_id}")
        return True

    def stats(self) -> Dict[str, int]:
        counts = self.registry.counts()
        return {
            "total": counts["total"],
            "pending": counts["pending"],
            "processing": counts["processing"],
            "completed": counts["completed"],
            "failed": counts["failed"],
            "queue_depth": len(self._queue),
            "active_workers": self._active,
        }

    def sweep(self) -> int:
        """Evict terminal jobs older than the retention window."""
        return self.registry.evict_terminal(self.retention)

    async def wait_for(self, job_id: str, timeout: Optional[float] = None, interval: float = 0.05) -> ProcessingJob:
        """Poll until the job is terminal."""
        async def poll() -> ProcessingJob:
            while True:
                job = self.require_status(job_id)
                if job.is_terminal:
                    return job
                await asyncio.sleep(interval)

        return await asyncio.wait_for(poll(), timeout)

    async def shutdown(self, purge: bool = False) -> None:
        """
        Stop the workers and fail every unfinished job.

        Args:
            purge: Also evict every job from the registry
        """
        if self._closing:
            return
        self._closing = True

        failed = 0
        for job_id in self.registry.active_ids():
            if self.registry.fail(job_id, SHUTDOWN_MESSAGE, "SHUTDOWN", retryable=True):
                failed += 1
        for token in self._tokens.values():
            token.cancel(SHUTDOWN_MESSAGE)
        self._queue.clear()

        tasks = list(self._workers)
        if self._sweeper is not None:
            tasks.append(self._sweeper)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._workers = []
        self._sweeper = None
        self._tokens.clear()

        if purge:
            self.registry.clear()
        logger.info(f"Job orchestrator shutdown complete ({failed} unfinished jobs failed)")

    def _next_job(self) -> Optional[str]:
        while self._queue:
            job_id = self._queue.popleft()
            if self.registry.start(job_id):
                return job_id
        return None

    async def _worker(self, worker_id: int) -> None:
        while not self._closing:
            job_id = self._next_job()
            if job_id is None:
                self._wakeup.clear()
                try:
                    await asyncio.wait_for(self._wakeup.wait(), timeout=self.poll_interval)
                except asyncio.TimeoutError:
                    pass
                continue

            logger.debug(f"Worker {worker_id} picked up job {job_id}")
            self._active += 1
            try:
                await self._process(job_id)
            finally:
                self._active -= 1
                self._tokens.pop(job_id, None)

    async def _process(self, job_id: str) -> None:
        job = self.registry.get(job_id)
        token = self._tokens.get(job_id) or CancellationToken(job_id)
        if job is None:
            return

        def report(stage, progress):
            self.registry.advance(job_id, stage, progress)

        try:
            results = await self.pipeline.run(job, token, report)
        except CancellationError as e:
            self.registry.fail(job_id, e.message, e.code, retryable=False)
        except VideoSpeakError as e:
            logger.error(f"Job {job_id} failed: {e.message}")
            self.registry.fail(job_id, e.message, e.code, retryable=e.retryable)
        except Exception as e:
            logger.exception(f"Unexpected error processing job {job_id}")
            self.registry.fail(job_id, str(e) or "Unknown error in job processing", "INTERNAL_ERROR", retryable=True)
        else:
            if not self.registry.complete(job_id, results):
                logger.debug(f"Discarding result for job {job_id}; it was already finished")

    async def _sweep_loop(self) -> None:
        while not self._closing:
            await asyncio.sleep(self.sweep_interval)
            try:
                self.sweep()
            except Exception:
                logger.exception("Job sweep failed")
