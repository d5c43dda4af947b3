"""Tests for the workflow HTTP API."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient

from client_workflow_automation.engine.config import EngineSettings
from client_workflow_automation.engine.errors import PersistenceFailure
from client_workflow_automation.engine.logging import JsonFormatter
from client_workflow_automation.engine.persistence.json_store import JsonFileGateway
from client_workflow_automation.engine.workflow.service import WorkflowEngine
from client_workflow_automation.engine.workflow.templates import TemplateRegistry
from client_workflow_automation.server.app import create_app


@pytest.fixture(autouse=True)
def restore_root_logging() -> Iterator[None]:
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    yield
    for handler in list(root.handlers):
        root.removeHandler(handler)
    for handler in saved_handlers:
        root.addHandler(handler)
    root.setLevel(saved_level)


def _client(settings: EngineSettings) -> TestClient:
    return TestClient(create_app(settings=settings))


def test_health(settings: EngineSettings) -> None:
    resp = _client(settings).get("/api/health")

    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "ok"
    assert data["categories"] == ["individual", "business"]


def test_create_client_initializes_workflow(settings: EngineSettings) -> None:
    client = _client(settings)

    resp = client.post("/api/clients", json={"name": "Jane Doe", "owner_id": "U1"})

    assert resp.status_code == 201
    data = resp.json()
    assert data["client"]["stage"] == "intake_complete"
    assert data["client"]["progress_percent"] == 0
    assert data["workflow"]["outcome"] == "advanced"
    assert len(data["workflow"]["created_tasks"]) == 2

    client_id = data["client"]["client_id"]
    tasks = client.get(f"/api/clients/{client_id}/tasks").json()
    assert {t["owner_id"] for t in tasks} == {"U1"}


def test_create_client_without_workflow(settings: EngineSettings) -> None:
    resp = _client(settings).post(
        "/api/clients",
        json={"name": "Acme LLC", "category": "Business", "initialize_workflow": False},
    )

    assert resp.status_code == 201
    data = resp.json()
    assert data["client"]["category"] == "business"
    assert data["client"]["stage"] == "pending"
    assert data["workflow"] is None


def test_stage_and_completion_flow(settings: EngineSettings) -> None:
    client = _client(settings)
    created = client.post(
        "/api/clients", json={"name": "Jane Doe", "initialize_workflow": False}
    ).json()
    client_id = created["client"]["client_id"]

    advanced = client.post(f"/api/clients/{client_id}/stage", json={"stage": "intake_complete"})
    assert advanced.status_code == 200
    assert advanced.json()["outcome"] == "advanced"

    repeat = client.post(f"/api/clients/{client_id}/stage", json={"stage": "intake_complete"})
    assert repeat.json()["outcome"] == "already_processed"

    task_id = advanced.json()["created_tasks"][0]["task_id"]
    completed = client.post(f"/api/tasks/{task_id}/complete")
    assert completed.status_code == 200
    body = completed.json()
    assert body["outcome"] == "completed"
    assert body["progress_percent"] == 33
    assert [t["title"] for t in body["follow_up_tasks"]] == ["Monitor document uploads"]

    again = client.post(f"/api/tasks/{task_id}/complete", json={"timeout_seconds": 2})
    assert again.json()["outcome"] == "already_processed"

    progress = client.post(f"/api/clients/{client_id}/progress")
    assert progress.json() == {"client_id": client_id, "progress_percent": 33}

    fetched = client.get(f"/api/clients/{client_id}").json()
    assert fetched["progress_percent"] == 33


def test_not_found_maps_to_404(settings: EngineSettings) -> None:
    client = _client(settings)

    assert client.get("/api/clients/nope").status_code == 404
    assert client.get("/api/clients/nope/tasks").status_code == 404
    assert client.post("/api/clients/nope/stage", json={"stage": "filed"}).status_code == 404
    assert client.post("/api/tasks/nope/complete").status_code == 404
    assert client.post("/api/clients/nope/progress").status_code == 404


def test_invalid_request_is_rejected(settings: EngineSettings) -> None:
    client = _client(settings)

    assert client.post("/api/clients", json={"name": ""}).status_code == 422
    assert client.post("/api/clients/x/stage", json={"stage": ""}).status_code == 422
    resp = client.post("/api/clients/x/stage", json={"stage": "filed", "timeout_seconds": 0})
    assert resp.status_code == 422


def test_persistence_failure_maps_to_503(settings: EngineSettings) -> None:
    gateway = Mock(spec=JsonFileGateway)
    gateway.get_client.side_effect = PersistenceFailure("store offline")
    engine = WorkflowEngine(gateway=gateway, registry=TemplateRegistry.builtin())

    resp = TestClient(create_app(settings=settings, engine=engine)).post(
        "/api/clients/C1/stage", json={"stage": "intake_complete"}
    )

    assert resp.status_code == 503
    assert resp.json() == {"detail": "store offline", "retryable": True}
    assert resp.headers["Retry-After"] == "5"


def test_create_client_needs_builtin_store(settings: EngineSettings) -> None:
    engine = WorkflowEngine(gateway=Mock(), registry=TemplateRegistry.builtin())

    resp = TestClient(create_app(settings=settings, engine=engine)).post(
        "/api/clients", json={"name": "Jane Doe"}
    )

    assert resp.status_code == 501


def test_catalog_view(settings: EngineSettings) -> None:
    client = _client(settings)

    business = client.get("/api/catalog/business").json()
    assert business["category"] == "business"
    assert [s["stage"] for s in business["stages"]] == ["intake_complete", "documents_received"]

    fallback = client.get("/api/catalog/trust").json()
    assert fallback["category"] == "individual"
    assert fallback["stages"][0]["tasks"][0]["completion_triggers"] == [
        "document_collection_setup"
    ]


def test_create_app_applies_log_level(settings: EngineSettings) -> None:
    create_app(settings=settings.model_copy(update={"log_level": "DEBUG"}))

    root = logging.getLogger()
    assert root.level == logging.DEBUG
    assert len(root.handlers) == 1
    assert isinstance(root.handlers[0].formatter, JsonFormatter)
