"""Stage transitions: move a client to a stage and generate that stage's tasks.

Generation happens at most once per ``(client, stage)``. The guard keys on
task provenance (``stage:<name>``), so a retried or concurrent advancement
becomes a no-op rather than a duplicate task batch.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from client_workflow_automation.engine.errors import (
    ClientNotFound,
    DuplicateProvenance,
    UnknownTemplate,
)
from client_workflow_automation.engine.models import (
    INITIAL_STAGE,
    Outcome,
    Provenance,
    Stage,
    StageAdvanceResult,
    utc_iso_now,
)
from client_workflow_automation.engine.persistence.gateway import PersistenceGateway
from client_workflow_automation.engine.timeouts import Deadline

from .instantiator import TaskInstantiator
from .progress import ProgressAggregator, recompute_after_write
from .templates import TemplateRegistry

logger = logging.getLogger(__name__)


class StageTransitionController:
    def __init__(
        self,
        *,
        gateway: PersistenceGateway,
        registry: TemplateRegistry,
        instantiator: TaskInstantiator,
        progress: ProgressAggregator,
        clock: Callable[[], str] = utc_iso_now,
    ) -> None:
        self._gateway = gateway
        self._registry = registry
        self._instantiator = instantiator
        self._progress = progress
        self._clock = clock

    def advance_stage(
        self, client_id: str, new_stage: Stage | str, *, deadline: Deadline | None = None
    ) -> StageAdvanceResult:
        """Record ``new_stage`` on the client and create its tasks.

        Raises:
            ClientNotFound: the client does not exist.
            PersistenceFailure: a read or the combined write failed; safe to retry.
        """

        stage = new_stage.value if isinstance(new_stage, Stage) else str(new_stage).strip()
        if not stage:
            raise ValueError("stage is required")
        provenance = Provenance.stage(stage)
        log_ctx = {"client_id": client_id, "stage": stage}

        if deadline is not None:
            deadline.check("loading the client")
        client = self._gateway.get_client(client_id, deadline=deadline)
        if client is None:
            raise ClientNotFound(client_id)

        if self._gateway.has_tasks_with_provenance(client_id, provenance, deadline=deadline):
            logger.info("Stage already advanced; nothing to do", extra=log_ctx)
            return StageAdvanceResult(
                client_id=client_id, stage=stage, outcome=Outcome.ALREADY_PROCESSED
            )

        now = self._clock()
        updated = client.model_copy(update={"stage": stage, "last_activity": now})

        templates = self._registry.templates_for(client.category, stage)
        if not templates:
            logger.debug(
                "No task templates registered for stage",
                extra={
                    **log_ctx,
                    "reason": str(UnknownTemplate(f"{client.category}/{stage}")),
                },
            )
        tasks = self._instantiator.instantiate_all(updated, templates, provenance)

        if deadline is not None:
            deadline.check("writing the stage transition")
        try:
            self._gateway.advance_stage(updated, tasks, provenance, deadline=deadline)
        except DuplicateProvenance:
            # Lost a race with a concurrent advancement of the same stage.
            logger.info("Stage advanced concurrently; nothing to do", extra=log_ctx)
            return StageAdvanceResult(
                client_id=client_id, stage=stage, outcome=Outcome.ALREADY_PROCESSED
            )

        logger.info("Client stage advanced", extra={**log_ctx, "task_count": len(tasks)})

        # New pending tasks change the denominator.
        percent = recompute_after_write(self._progress, client_id, deadline=deadline)
        return StageAdvanceResult(
            client_id=client_id,
            stage=stage,
            outcome=Outcome.ADVANCED,
            created_tasks=tasks,
            progress_percent=percent,
        )

    def initialize_client_workflow(
        self, client_id: str, *, deadline: Deadline | None = None
    ) -> StageAdvanceResult:
        """Enter the first automated stage once intake is done."""

        return self.advance_stage(client_id, INITIAL_STAGE, deadline=deadline)
