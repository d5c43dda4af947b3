"""Bind task templates to a concrete client."""

from __future__ import annotations

import uuid
from collections.abc import Callable, Iterable

from client_workflow_automation.engine.models import (
    ClientRecord,
    Provenance,
    TaskRecord,
    TaskStatus,
    utc_iso_now,
)

from .templates import CLIENT_NAME_PLACEHOLDER, TaskTemplate

# Used when the client record carries no usable display name.
NEUTRAL_CLIENT_NAME = "Client"


def _new_task_id() -> str:
    return uuid.uuid4().hex


def render_pattern(pattern: str, client_name: str) -> str:
    return pattern.replace(CLIENT_NAME_PLACEHOLDER, client_name)


class TaskInstantiator:
    """Turns templates into pending task records. Never persists anything."""

    def __init__(
        self,
        *,
        id_factory: Callable[[], str] = _new_task_id,
        clock: Callable[[], str] = utc_iso_now,
    ) -> None:
        self._id_factory = id_factory
        self._clock = clock

    def instantiate(
        self,
        client: ClientRecord,
        template: TaskTemplate,
        provenance: Provenance,
        *,
        at: str | None = None,
    ) -> TaskRecord:
        now = at or self._clock()
        name = client.display_name or NEUTRAL_CLIENT_NAME
        return TaskRecord(
            task_id=self._id_factory(),
            client_id=client.client_id,
            owner_id=client.owner_id,
            title=render_pattern(template.title, name),
            description=render_pattern(template.description, name),
            category=template.category,
            priority=template.priority,
            status=TaskStatus.PENDING,
            estimated_duration_minutes=template.estimated_duration_minutes,
            completion_triggers=list(template.completion_triggers),
            dependencies=list(template.dependencies),
            provenance=str(provenance),
            auto_generated=True,
            progress=0,
            created_at=now,
            updated_at=now,
        )

    def instantiate_all(
        self,
        client: ClientRecord,
        templates: Iterable[TaskTemplate],
        provenance: Provenance,
    ) -> list[TaskRecord]:
        # One timestamp for the whole batch.
        now = self._clock()
        return [self.instantiate(client, t, provenance, at=now) for t in templates]
