"""Persisted records and value types shared across the engine."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, Field


class ClientCategory(str, Enum):
    INDIVIDUAL = "individual"
    BUSINESS = "business"


class Stage(str, Enum):
    """Preconfigured client lifecycle stages, in order."""

    PENDING = "pending"
    INTAKE_COMPLETE = "intake_complete"
    DOCUMENTS_PENDING = "documents_pending"
    DOCUMENTS_RECEIVED = "documents_received"
    AI_PROCESSING = "ai_processing"
    FORMS_GENERATED = "forms_generated"
    REVIEW_NEEDED = "review_needed"
    CLIENT_APPROVAL = "client_approval"
    READY_TO_FILE = "ready_to_file"
    FILED = "filed"


INITIAL_STAGE = Stage.INTAKE_COMPLETE


class TaskCategory(str, Enum):
    CLIENT_COMMUNICATION = "client_communication"
    DOCUMENT_COLLECTION = "document_collection"
    REVIEW = "review"
    FORM_PREPARATION = "form_preparation"
    FILING = "filing"
    COMPLIANCE = "compliance"


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class TaskStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"


def utc_iso_now() -> str:
    return datetime.now(tz=UTC).isoformat()


def _stage_value(stage: Stage | str) -> str:
    return stage.value if isinstance(stage, Stage) else str(stage)


class ProvenanceKind(str, Enum):
    STAGE = "stage"
    COMPLETION_OF = "completionOf"


@dataclass(frozen=True, slots=True)
class Provenance:
    """Why a task was created: a stage entry or another task's completion."""

    kind: ProvenanceKind
    ref: str

    @staticmethod
    def stage(stage: Stage | str) -> Provenance:
        return Provenance(kind=ProvenanceKind.STAGE, ref=_stage_value(stage))

    @staticmethod
    def completion_of(task_id: str) -> Provenance:
        return Provenance(kind=ProvenanceKind.COMPLETION_OF, ref=task_id)

    @staticmethod
    def parse(text: str) -> Provenance:
        kind_raw, sep, ref = text.partition(":")
        if not sep or not ref:
            raise ValueError(f"Malformed provenance: {text!r}")
        try:
            kind = ProvenanceKind(kind_raw)
        except ValueError:
            raise ValueError(f"Unknown provenance kind in {text!r}") from None
        return Provenance(kind=kind, ref=ref)

    def __str__(self) -> str:
        return f"{self.kind.value}:{self.ref}"


class ClientRecord(BaseModel):
    """A client as seen by the engine.

    Clients are created by intake. Once intake completes, ``stage`` and
    ``progress_percent`` are owned by the engine.
    """

    client_id: str
    name: str = Field(default="")
    category: str = Field(default=ClientCategory.INDIVIDUAL.value)
    stage: str = Field(default=Stage.PENDING.value)
    progress_percent: int = Field(default=0, ge=0, le=100)
    owner_id: str | None = Field(default=None)
    created_at: str = Field(default_factory=utc_iso_now)
    last_activity: str = Field(default_factory=utc_iso_now)

    @property
    def display_name(self) -> str:
        return self.name.strip()


class TaskRecord(BaseModel):
    """A concrete work item bound to one client."""

    task_id: str
    client_id: str
    owner_id: str | None = Field(default=None)
    title: str
    description: str = Field(default="")
    category: TaskCategory
    priority: TaskPriority
    status: TaskStatus = Field(default=TaskStatus.PENDING)
    estimated_duration_minutes: int = Field(default=0, ge=0)
    completion_triggers: list[str] = Field(default_factory=list)
    dependencies: list[str] = Field(default_factory=list)
    provenance: str
    auto_generated: bool = Field(default=True)
    progress: int = Field(default=0, description="Binary: 0 while pending, 100 once completed")
    created_at: str = Field(default_factory=utc_iso_now)
    updated_at: str = Field(default_factory=utc_iso_now)
    completed_at: str | None = Field(default=None)
    due_date: str | None = Field(default=None)

    @property
    def is_completed(self) -> bool:
        return self.status == TaskStatus.COMPLETED

    def completed(self, *, at: str) -> TaskRecord:
        """Return a copy marked as completed. Triggers are left untouched."""

        return self.model_copy(
            update={
                "status": TaskStatus.COMPLETED,
                "progress": 100,
                "completed_at": at,
                "updated_at": at,
            }
        )


class Outcome(str, Enum):
    ADVANCED = "advanced"
    COMPLETED = "completed"
    ALREADY_PROCESSED = "already_processed"


@dataclass(frozen=True, slots=True)
class StageAdvanceResult:
    client_id: str
    stage: str
    outcome: Outcome
    created_tasks: list[TaskRecord] = field(default_factory=list)
    progress_percent: int | None = None

    @property
    def already_processed(self) -> bool:
        return self.outcome == Outcome.ALREADY_PROCESSED


@dataclass(frozen=True, slots=True)
class TaskCompletionResult:
    task_id: str
    client_id: str
    outcome: Outcome
    follow_up_tasks: list[TaskRecord] = field(default_factory=list)
    skipped_triggers: list[str] = field(default_factory=list)
    progress_percent: int | None = None

    @property
    def already_processed(self) -> bool:
        return self.outcome == Outcome.ALREADY_PROCESSED


def compute_progress(tasks: Iterable[TaskRecord]) -> int:
    """Percentage of completed tasks, rounded half up. Zero when there are no tasks."""

    total = 0
    completed = 0
    for task in tasks:
        total += 1
        if task.is_completed:
            completed += 1
    if total == 0:
        return 0
    # Integer form of floor(100 * completed / total + 0.5); avoids round-half-to-even.
    return (200 * completed + total) // (2 * total)
