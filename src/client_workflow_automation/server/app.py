"""FastAPI app factory.

Endpoints are thin wrappers over :class:`WorkflowEngine`. They play the roles
of the client lifecycle handler (stage changes) and the task-completion
handler; everything else is read-only views.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from client_workflow_automation import __version__
from client_workflow_automation.engine.config import EngineSettings
from client_workflow_automation.engine.errors import NotFound, PersistenceFailure
from client_workflow_automation.engine.logging import configure_logging
from client_workflow_automation.engine.models import TaskRecord
from client_workflow_automation.engine.persistence.json_store import JsonFileGateway
from client_workflow_automation.engine.workflow.service import WorkflowEngine
from client_workflow_automation.server.models import (
    AdvanceStageRequest,
    ApiClient,
    CatalogResponse,
    CatalogStage,
    CompleteTaskRequest,
    CreateClientRequest,
    CreateClientResponse,
    ProgressResponse,
    StageAdvanceResponse,
    TaskCompletionResponse,
)

logger = logging.getLogger(__name__)

RETRY_AFTER_SECONDS = 5


def create_app(
    settings: EngineSettings | None = None, engine: WorkflowEngine | None = None
) -> FastAPI:
    settings = settings or EngineSettings()
    configure_logging(settings.log_level)
    engine = engine or WorkflowEngine.from_settings(settings)

    app = FastAPI(
        title="Client Workflow Automation",
        version=__version__,
        description="REST API over the client workflow automation engine.",
        openapi_url="/api/openapi.json",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    app.state.settings = settings
    app.state.engine = engine

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.parsed_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(NotFound)
    def _not_found(_request: Request, exc: NotFound) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(PersistenceFailure)
    def _persistence_failure(_request: Request, exc: PersistenceFailure) -> JSONResponse:
        logger.warning("Request failed on persistence", extra={"error": str(exc)})
        return JSONResponse(
            status_code=503,
            content={"detail": str(exc), "retryable": True},
            headers={"Retry-After": str(RETRY_AFTER_SECONDS)},
        )

    @app.get("/api/health")
    def health() -> dict[str, object]:
        return {
            "status": "ok",
            "version": __version__,
            "categories": list(engine.registry.categories),
        }

    @app.post("/api/clients", response_model=CreateClientResponse, status_code=201)
    def create_client(req: CreateClientRequest) -> CreateClientResponse:
        gateway = engine.gateway
        if not isinstance(gateway, JsonFileGateway):
            raise HTTPException(
                status_code=501,
                detail="Client registration is only available with the built-in store",
            )
        record = gateway.create_client(
            name=req.name, category=req.category.strip().lower(), owner_id=req.owner_id
        )
        workflow = None
        if req.initialize_workflow:
            result = engine.initialize_client_workflow(record.client_id)
            workflow = StageAdvanceResponse.from_result(result)
            record = gateway.get_client(record.client_id) or record
        return CreateClientResponse(client=ApiClient.from_record(record), workflow=workflow)

    @app.get("/api/clients/{client_id}", response_model=ApiClient)
    def get_client(client_id: str) -> ApiClient:
        record = engine.gateway.get_client(client_id)
        if record is None:
            raise HTTPException(status_code=404, detail="Client not found")
        return ApiClient.from_record(record)

    @app.get("/api/clients/{client_id}/tasks", response_model=list[TaskRecord])
    def list_tasks(client_id: str) -> list[TaskRecord]:
        if engine.gateway.get_client(client_id) is None:
            raise HTTPException(status_code=404, detail="Client not found")
        return engine.gateway.list_tasks_for_client(client_id)

    @app.post("/api/clients/{client_id}/stage", response_model=StageAdvanceResponse)
    def advance_stage(client_id: str, req: AdvanceStageRequest) -> StageAdvanceResponse:
        result = engine.advance_stage(client_id, req.stage, timeout=req.timeout_seconds)
        return StageAdvanceResponse.from_result(result)

    @app.post("/api/clients/{client_id}/progress", response_model=ProgressResponse)
    def recompute_progress(client_id: str) -> ProgressResponse:
        percent = engine.recompute_progress(client_id)
        return ProgressResponse(client_id=client_id, progress_percent=percent)

    @app.post("/api/tasks/{task_id}/complete", response_model=TaskCompletionResponse)
    def complete_task(
        task_id: str, req: CompleteTaskRequest | None = None
    ) -> TaskCompletionResponse:
        timeout = req.timeout_seconds if req is not None else None
        result = engine.complete_task(task_id, timeout=timeout)
        return TaskCompletionResponse.from_result(result)

    @app.get("/api/catalog/{category}", response_model=CatalogResponse)
    def catalog(category: str) -> CatalogResponse:
        registry = engine.registry
        resolved = registry.resolve_category(category)
        stages = [
            CatalogStage(
                stage=stage,
                tasks=[t.model_dump(mode="json") for t in registry.templates_for(resolved, stage)],
            )
            for stage in registry.stages_for(resolved)
        ]
        return CatalogResponse(category=resolved, stages=stages)

    return app
