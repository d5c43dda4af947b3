"""Persistence gateway contract.

The engine never talks to storage directly. Every read and write goes through
an object implementing :class:`PersistenceGateway`. Implementations own all
write discipline: the combined stage write must be atomic and unique per
``(client_id, provenance)``, and task completion must be a compare-and-set.

Reads return ``None`` for missing records. Storage problems raise
:class:`~client_workflow_automation.engine.errors.PersistenceFailure`.
"""

from __future__ import annotations

from typing import Protocol

from client_workflow_automation.engine.models import ClientRecord, Provenance, TaskRecord
from client_workflow_automation.engine.timeouts import Deadline


class PersistenceGateway(Protocol):
    def get_client(
        self, client_id: str, *, deadline: Deadline | None = None
    ) -> ClientRecord | None: ...

    def update_client(self, client: ClientRecord, *, deadline: Deadline | None = None) -> None:
        """Replace an existing client record. Raises ``ClientNotFound`` if absent."""
        ...

    def get_task(self, task_id: str, *, deadline: Deadline | None = None) -> TaskRecord | None: ...

    def update_task(self, task: TaskRecord, *, deadline: Deadline | None = None) -> None:
        """Replace an existing task record. Raises ``TaskNotFound`` if absent."""
        ...

    def insert_tasks(self, tasks: list[TaskRecord], *, deadline: Deadline | None = None) -> None:
        """Insert a batch of new tasks; all or nothing."""
        ...

    def list_tasks_for_client(
        self, client_id: str, *, deadline: Deadline | None = None
    ) -> list[TaskRecord]: ...

    def has_tasks_with_provenance(
        self, client_id: str, provenance: Provenance, *, deadline: Deadline | None = None
    ) -> bool: ...

    def advance_stage(
        self,
        client: ClientRecord,
        tasks: list[TaskRecord],
        provenance: Provenance,
        *,
        deadline: Deadline | None = None,
    ) -> None:
        """Write the client's stage change and the task batch as one atomic unit.

        Only ``stage`` and ``last_activity`` are taken from ``client``; other
        fields of the stored record, ``progress_percent`` in particular, are
        left as they are.

        Raises ``DuplicateProvenance`` without writing anything if a task with
        ``provenance`` already exists for the client.
        """
        ...

    def complete_task(
        self,
        task: TaskRecord,
        follow_ups: list[TaskRecord],
        *,
        deadline: Deadline | None = None,
    ) -> None:
        """Store ``task`` (already marked completed) and insert ``follow_ups`` atomically.

        The stored task must still be pending; otherwise raises
        ``TaskAlreadyCompleted`` without writing anything.
        """
        ...

    def recompute_client_progress(
        self, client_id: str, at: str, *, deadline: Deadline | None = None
    ) -> ClientRecord:
        """Recompute ``progress_percent`` from the client's tasks and store it with ``at``.

        Reading the tasks and writing the percentage is one atomic step, so a
        concurrent task write can never be overwritten by a stale percentage.
        Use :func:`~client_workflow_automation.engine.models.compute_progress`.
        Raises ``ClientNotFound``.
        """
        ...
