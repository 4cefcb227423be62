"""Cooperative cancellation for background jobs."""

from typing import Optional

from .exceptions import CancellationError


class CancellationToken:
    """
    Per-job cancellation flag.

    Cancelling never interrupts an in-flight provider call; workers call
    ``raise_if_cancelled`` between stages and between chunks.
    """

    def __init__(self, job_id: Optional[str] = None):
        self.job_id = job_id
        self._cancelled = False
        self.reason: Optional[str] = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self, reason: str = "Job cancelled by user") -> None:
        if not self._cancelled:
            self._cancelled = True
            self.reason = reason

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise CancellationError(self.reason or "Job cancelled by user", job_id=self.job_id)
