"""Engine facade.

Wires the registry, instantiator, controllers and collaborators together and
applies the caller's time bound to each public call. Request handlers and
queue consumers should talk to :class:`WorkflowEngine` only.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from client_workflow_automation.engine.config import EngineSettings
from client_workflow_automation.engine.models import (
    Stage,
    StageAdvanceResult,
    TaskCompletionResult,
    utc_iso_now,
)
from client_workflow_automation.engine.notifications import (
    LoggingNotifier,
    Notifier,
    WebhookNotifier,
)
from client_workflow_automation.engine.persistence.gateway import PersistenceGateway
from client_workflow_automation.engine.persistence.json_store import JsonFileGateway
from client_workflow_automation.engine.timeouts import Deadline

from .cascade import CompletionCascadeProcessor
from .instantiator import TaskInstantiator
from .progress import ProgressAggregator
from .stages import StageTransitionController
from .templates import TemplateRegistry

logger = logging.getLogger(__name__)


def load_registry(settings: EngineSettings) -> TemplateRegistry:
    """Build and validate the template registry described by ``settings``."""

    if settings.catalog_path is not None:
        registry = TemplateRegistry.from_json_file(settings.catalog_path)
        source = str(settings.catalog_path)
    else:
        registry = TemplateRegistry.builtin()
        source = "builtin"

    if settings.default_category != registry.default_category:
        # Re-key the fallback without touching the templates themselves.
        registry = registry.with_default_category(settings.default_category)

    registry.validate(strict_triggers=settings.strict_triggers)
    logger.info(
        "Template catalog loaded",
        extra={
            "source": source,
            "categories": list(registry.categories),
            "follow_up_tags": list(registry.follow_up_tags()),
        },
    )
    return registry


def build_notifier(settings: EngineSettings) -> Notifier:
    if settings.notify_webhook_url.strip():
        return WebhookNotifier(
            settings.notify_webhook_url, timeout_seconds=settings.notify_timeout_seconds
        )
    return LoggingNotifier()


class WorkflowEngine:
    """Client workflow automation: stage transitions, completion cascades, progress."""

    def __init__(
        self,
        *,
        gateway: PersistenceGateway,
        registry: TemplateRegistry,
        notifier: Notifier | None = None,
        instantiator: TaskInstantiator | None = None,
        default_timeout_seconds: float | None = None,
        clock: Callable[[], str] = utc_iso_now,
    ) -> None:
        self.gateway = gateway
        self.registry = registry
        self._default_timeout = default_timeout_seconds
        instantiator = instantiator or TaskInstantiator(clock=clock)

        self.progress = ProgressAggregator(gateway=gateway, clock=clock)
        self.stages = StageTransitionController(
            gateway=gateway,
            registry=registry,
            instantiator=instantiator,
            progress=self.progress,
            clock=clock,
        )
        self.cascade = CompletionCascadeProcessor(
            gateway=gateway,
            registry=registry,
            instantiator=instantiator,
            progress=self.progress,
            notifier=notifier or LoggingNotifier(),
            clock=clock,
        )

    @classmethod
    def from_settings(
        cls, settings: EngineSettings, *, gateway: PersistenceGateway | None = None
    ) -> WorkflowEngine:
        return cls(
            gateway=gateway or JsonFileGateway(settings.state_path),
            registry=load_registry(settings),
            notifier=build_notifier(settings),
            default_timeout_seconds=settings.operation_timeout_seconds,
        )

    def _deadline(self, timeout: float | None, operation: str) -> Deadline:
        # None falls back to the engine default, which may itself be unbounded.
        seconds = timeout if timeout is not None else self._default_timeout
        return Deadline.after(seconds, operation=operation)

    def advance_stage(
        self, client_id: str, stage: Stage | str, *, timeout: float | None = None
    ) -> StageAdvanceResult:
        """Move a client to ``stage`` and generate that stage's tasks once."""

        deadline = self._deadline(timeout, "advance_stage")
        return self.stages.advance_stage(client_id, stage, deadline=deadline)

    def initialize_client_workflow(
        self, client_id: str, *, timeout: float | None = None
    ) -> StageAdvanceResult:
        deadline = self._deadline(timeout, "initialize_client_workflow")
        return self.stages.initialize_client_workflow(client_id, deadline=deadline)

    def complete_task(self, task_id: str, *, timeout: float | None = None) -> TaskCompletionResult:
        """Complete a task, create its follow-ups and refresh the client's progress."""

        deadline = self._deadline(timeout, "complete_task")
        return self.cascade.complete_task(task_id, deadline=deadline)

    def recompute_progress(self, client_id: str, *, timeout: float | None = None) -> int:
        deadline = self._deadline(timeout, "recompute_progress")
        return self.progress.recompute(client_id, deadline=deadline)
