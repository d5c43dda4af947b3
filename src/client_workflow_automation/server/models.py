"""Pydantic models for the REST server."""

from __future__ import annotations

from pydantic import BaseModel, Field

from client_workflow_automation.engine.models import (
    ClientRecord,
    StageAdvanceResult,
    TaskCompletionResult,
    TaskRecord,
)


class CreateClientRequest(BaseModel):
    name: str = Field(min_length=1)
    category: str = Field(default="individual")
    owner_id: str | None = None
    initialize_workflow: bool = Field(
        default=True,
        description="Advance the new client to the first automated stage immediately.",
    )


class AdvanceStageRequest(BaseModel):
    stage: str = Field(min_length=1)
    timeout_seconds: float | None = Field(default=None, gt=0)


class CompleteTaskRequest(BaseModel):
    timeout_seconds: float | None = Field(default=None, gt=0)


class ApiClient(BaseModel):
    client_id: str
    name: str
    category: str
    stage: str
    progress_percent: int
    owner_id: str | None = None
    last_activity: str

    @classmethod
    def from_record(cls, record: ClientRecord) -> ApiClient:
        return cls.model_validate(record.model_dump(mode="json"))


class StageAdvanceResponse(BaseModel):
    client_id: str
    stage: str
    outcome: str
    created_tasks: list[TaskRecord] = Field(default_factory=list)
    progress_percent: int | None = None

    @classmethod
    def from_result(cls, result: StageAdvanceResult) -> StageAdvanceResponse:
        return cls(
            client_id=result.client_id,
            stage=result.stage,
            outcome=result.outcome.value,
            created_tasks=result.created_tasks,
            progress_percent=result.progress_percent,
        )


class TaskCompletionResponse(BaseModel):
    task_id: str
    client_id: str
    outcome: str
    follow_up_tasks: list[TaskRecord] = Field(default_factory=list)
    skipped_triggers: list[str] = Field(default_factory=list)
    progress_percent: int | None = None

    @classmethod
    def from_result(cls, result: TaskCompletionResult) -> TaskCompletionResponse:
        return cls(
            task_id=result.task_id,
            client_id=result.client_id,
            outcome=result.outcome.value,
            follow_up_tasks=result.follow_up_tasks,
            skipped_triggers=result.skipped_triggers,
            progress_percent=result.progress_percent,
        )


class CreateClientResponse(BaseModel):
    client: ApiClient
    workflow: StageAdvanceResponse | None = None


class ProgressResponse(BaseModel):
    client_id: str
    progress_percent: int


class CatalogStage(BaseModel):
    stage: str
    tasks: list[dict[str, object]]


class CatalogResponse(BaseModel):
    category: str
    stages: list[CatalogStage]
