"""Unit tests for engine wiring from settings."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from client_workflow_automation.engine.config import EngineSettings
from client_workflow_automation.engine.errors import CatalogError
from client_workflow_automation.engine.notifications import LoggingNotifier, WebhookNotifier
from client_workflow_automation.engine.persistence.json_store import JsonFileGateway
from client_workflow_automation.engine.workflow.service import (
    WorkflowEngine,
    build_notifier,
    load_registry,
)


def test_load_builtin_registry(settings: EngineSettings) -> None:
    registry = load_registry(settings)

    assert set(registry.categories) == {"individual", "business"}
    assert registry.default_category == "individual"


def test_settings_default_category_overrides_catalog(store_path: Path) -> None:
    settings = EngineSettings(_env_file=None, state_path=store_path, default_category="business")

    registry = load_registry(settings)

    assert registry.default_category == "business"
    assert registry.templates_for("trust", "documents_received")[0].title == (
        "Review business financial statements"
    )


def test_unknown_default_category_fails_at_startup(store_path: Path) -> None:
    settings = EngineSettings(_env_file=None, state_path=store_path, default_category="trust")

    with pytest.raises(CatalogError):
        load_registry(settings)


def test_strict_triggers_reject_builtin_catalog(store_path: Path) -> None:
    settings = EngineSettings(_env_file=None, state_path=store_path, strict_triggers=True)

    with pytest.raises(CatalogError, match="Unresolved"):
        load_registry(settings)


def test_cyclic_catalog_file_fails_at_startup(tmp_path: Path, store_path: Path) -> None:
    catalog = tmp_path / "catalog.json"
    catalog.write_text(
        json.dumps(
            {
                "workflows": {"individual": []},
                "follow_ups": {
                    "ping": {
                        "title": "Ping",
                        "category": "review",
                        "priority": "low",
                        "completion_triggers": ["pong"],
                    },
                    "pong": {
                        "title": "Pong",
                        "category": "review",
                        "priority": "low",
                        "completion_triggers": ["ping"],
                    },
                },
            }
        ),
        encoding="utf-8",
    )
    settings = EngineSettings(_env_file=None, state_path=store_path, catalog_path=catalog)

    with pytest.raises(CatalogError, match="ping -> pong -> ping"):
        WorkflowEngine.from_settings(settings)


def test_build_notifier(settings: EngineSettings) -> None:
    assert isinstance(build_notifier(settings), LoggingNotifier)

    with_hook = settings.model_copy(update={"notify_webhook_url": "https://hooks.example.test"})
    notifier = build_notifier(with_hook)
    assert isinstance(notifier, WebhookNotifier)
    notifier.close()


def test_from_settings_uses_state_path(settings: EngineSettings, store_path: Path) -> None:
    engine = WorkflowEngine.from_settings(settings)

    assert isinstance(engine.gateway, JsonFileGateway)
    assert engine.gateway.path == store_path


def test_engine_default_timeout_applies(settings: EngineSettings) -> None:
    engine = WorkflowEngine.from_settings(settings)

    deadline = engine._deadline(None, "advance_stage")
    remaining = deadline.remaining()
    assert remaining is not None
    assert 0 < remaining <= settings.operation_timeout_seconds

    unbounded = WorkflowEngine(gateway=engine.gateway, registry=engine.registry)
    assert unbounded._deadline(None, "advance_stage").remaining() is None
