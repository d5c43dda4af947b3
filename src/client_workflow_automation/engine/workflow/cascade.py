"""Task completion and follow-up cascades.

Completing a task instantiates one follow-up per resolvable completion
trigger. A follow-up's own triggers are only processed when that follow-up is
completed in a later, separate call; nothing here recurses.

Idempotency:
  - a task that is already completed is a no-op (no follow-ups, no notification)
  - the pending -> completed change and the follow-up insert are one
    compare-and-set write, so two racing completions cannot both cascade
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from client_workflow_automation.engine.errors import (
    TaskAlreadyCompleted,
    TaskNotFound,
    UnknownTemplate,
)
from client_workflow_automation.engine.models import (
    ClientRecord,
    Outcome,
    Provenance,
    TaskCompletionResult,
    TaskRecord,
    utc_iso_now,
)
from client_workflow_automation.engine.notifications import TASK_COMPLETED, Notifier
from client_workflow_automation.engine.persistence.gateway import PersistenceGateway
from client_workflow_automation.engine.timeouts import Deadline

from .instantiator import TaskInstantiator
from .progress import ProgressAggregator, recompute_after_write
from .templates import TaskTemplate, TemplateRegistry

logger = logging.getLogger(__name__)


class CompletionCascadeProcessor:
    def __init__(
        self,
        *,
        gateway: PersistenceGateway,
        registry: TemplateRegistry,
        instantiator: TaskInstantiator,
        progress: ProgressAggregator,
        notifier: Notifier,
        clock: Callable[[], str] = utc_iso_now,
    ) -> None:
        self._gateway = gateway
        self._registry = registry
        self._instantiator = instantiator
        self._progress = progress
        self._notifier = notifier
        self._clock = clock

    def complete_task(
        self, task_id: str, *, deadline: Deadline | None = None
    ) -> TaskCompletionResult:
        """Mark a task completed and create its follow-ups.

        Raises:
            TaskNotFound: the task does not exist.
            PersistenceFailure: a read or the completion write failed; safe to retry.
        """

        if deadline is not None:
            deadline.check("loading the task")
        task = self._gateway.get_task(task_id, deadline=deadline)
        if task is None:
            raise TaskNotFound(task_id)

        if task.is_completed:
            logger.info(
                "Task already completed; nothing to do",
                extra={"task_id": task_id, "client_id": task.client_id},
            )
            return self._already_processed(task)

        now = self._clock()
        completed = task.completed(at=now)

        templates, skipped = self._resolve_follow_ups(task)
        follow_ups: list[TaskRecord] = []
        if templates:
            owner = self._owner_for(task, deadline=deadline)
            follow_ups = self._instantiator.instantiate_all(
                owner, templates, Provenance.completion_of(task.task_id)
            )

        if deadline is not None:
            deadline.check("writing the task completion")
        try:
            self._gateway.complete_task(completed, follow_ups, deadline=deadline)
        except TaskAlreadyCompleted:
            # A concurrent completion won the compare-and-set and ran the cascade.
            logger.info(
                "Task completed concurrently; nothing to do",
                extra={"task_id": task_id, "client_id": task.client_id},
            )
            return self._already_processed(task)

        logger.info(
            "Task completed",
            extra={
                "task_id": task_id,
                "client_id": task.client_id,
                "follow_ups": len(follow_ups),
                "skipped_triggers": skipped,
            },
        )

        percent = recompute_after_write(self._progress, task.client_id, deadline=deadline)
        self._notify(completed, follow_ups, percent)

        return TaskCompletionResult(
            task_id=task_id,
            client_id=task.client_id,
            outcome=Outcome.COMPLETED,
            follow_up_tasks=follow_ups,
            skipped_triggers=skipped,
            progress_percent=percent,
        )

    def _resolve_follow_ups(self, task: TaskRecord) -> tuple[list[TaskTemplate], list[str]]:
        templates: list[TaskTemplate] = []
        skipped: list[str] = []
        for tag in task.completion_triggers:
            template = self._registry.follow_up_template_for(tag)
            if template is None:
                logger.warning(
                    "Skipping completion trigger with no follow-up template",
                    extra={
                        "task_id": task.task_id,
                        "tag": tag,
                        "reason": str(UnknownTemplate(tag)),
                    },
                )
                skipped.append(tag)
                continue
            templates.append(template)
        return templates, skipped

    def _owner_for(self, task: TaskRecord, *, deadline: Deadline | None) -> ClientRecord:
        client = self._gateway.get_client(task.client_id, deadline=deadline)
        if client is not None:
            return client
        # Follow-ups still belong to the task's client id; only the name is unknown.
        logger.warning(
            "Client missing while creating follow-ups",
            extra={"task_id": task.task_id, "client_id": task.client_id},
        )
        return ClientRecord(client_id=task.client_id, owner_id=task.owner_id)

    def _notify(self, task: TaskRecord, follow_ups: list[TaskRecord], percent: int | None) -> None:
        payload: dict[str, object] = {
            "task_id": task.task_id,
            "title": task.title,
            "completed_at": task.completed_at,
            "follow_up_task_ids": [t.task_id for t in follow_ups],
            "progress_percent": percent,
        }
        try:
            self._notifier.notify(task.client_id, TASK_COMPLETED, payload)
        except Exception:
            # Best-effort.
            logger.warning(
                "Notification failed",
                exc_info=True,
                extra={"task_id": task.task_id, "client_id": task.client_id},
            )

    @staticmethod
    def _already_processed(task: TaskRecord) -> TaskCompletionResult:
        return TaskCompletionResult(
            task_id=task.task_id, client_id=task.client_id, outcome=Outcome.ALREADY_PROCESSED
        )
