"""Error taxonomy for the workflow engine.

Only :class:`NotFound` and :class:`PersistenceFailure` escape the engine's
public operations. Everything else is either an outcome (already processed)
or a condition that is logged and skipped.
"""

from __future__ import annotations

from dataclasses import dataclass


class WorkflowError(Exception):
    """Base class for all engine errors."""


class NotFound(WorkflowError):
    """A referenced client or task does not exist."""


@dataclass(eq=False)
class ClientNotFound(NotFound):
    client_id: str

    def __str__(self) -> str:
        return f"Client not found: {self.client_id!r}"


@dataclass(eq=False)
class TaskNotFound(NotFound):
    task_id: str

    def __str__(self) -> str:
        return f"Task not found: {self.task_id!r}"


class PersistenceFailure(WorkflowError):
    """The gateway could not complete a read or write.

    Callers may retry; the idempotency guards make retries safe.
    """

    retryable = True


class OperationTimeout(PersistenceFailure):
    """The caller-supplied deadline expired before the operation finished."""


@dataclass(eq=False)
class DuplicateProvenance(WorkflowError):
    """Raised by a gateway when a task batch with this provenance already exists."""

    client_id: str
    provenance: str

    def __str__(self) -> str:
        return f"Tasks already exist for client {self.client_id!r} with {self.provenance!r}"


@dataclass(eq=False)
class TaskAlreadyCompleted(WorkflowError):
    """Raised by a gateway when the pending -> completed compare-and-set loses."""

    task_id: str

    def __str__(self) -> str:
        return f"Task already completed: {self.task_id!r}"


@dataclass(eq=False)
class UnknownTemplate(WorkflowError):
    """No template is registered for a stage or trigger tag.

    This is a configuration gap, not a failure. The engine logs it and moves on.
    """

    key: str

    def __str__(self) -> str:
        return f"No template registered for {self.key!r}"


class NotificationFailure(WorkflowError):
    """The notification side channel failed. Always swallowed after logging."""


class CatalogError(ValueError):
    """The template catalog is malformed or fails startup validation."""
