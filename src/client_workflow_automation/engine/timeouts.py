"""Caller-supplied time bounds for engine operations."""

from __future__ import annotations

import time
from dataclasses import dataclass

from client_workflow_automation.engine.errors import OperationTimeout


@dataclass(frozen=True, slots=True)
class Deadline:
    """An absolute point on the monotonic clock. ``expires_at=None`` never expires."""

    expires_at: float | None
    operation: str = "operation"

    @staticmethod
    def after(seconds: float | None, *, operation: str = "operation") -> Deadline:
        if seconds is None:
            return Deadline(expires_at=None, operation=operation)
        if seconds <= 0:
            raise ValueError("timeout must be positive")
        return Deadline(expires_at=time.monotonic() + seconds, operation=operation)

    def remaining(self) -> float | None:
        if self.expires_at is None:
            return None
        return max(0.0, self.expires_at - time.monotonic())

    def expired(self) -> bool:
        remaining = self.remaining()
        return remaining is not None and remaining <= 0.0

    def check(self, step: str) -> None:
        """Raise :class:`OperationTimeout` if the deadline has passed."""

        if self.expired():
            raise OperationTimeout(f"{self.operation} timed out before {step}")

