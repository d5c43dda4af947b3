"""Test configuration and fixtures."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import Mock

import pytest

from client_workflow_automation.engine.config import EngineSettings
from client_workflow_automation.engine.models import ClientRecord
from client_workflow_automation.engine.notifications import LoggingNotifier
from client_workflow_automation.engine.persistence.json_store import JsonFileGateway
from client_workflow_automation.engine.workflow.service import WorkflowEngine
from client_workflow_automation.engine.workflow.templates import TemplateRegistry


@pytest.fixture
def store_path(tmp_path: Path) -> Path:
    """Provide a path for a fresh JSON store."""
    return tmp_path / "workflow_state" / "store.json"


@pytest.fixture
def gateway(store_path: Path) -> JsonFileGateway:
    return JsonFileGateway(store_path)


@pytest.fixture
def registry() -> TemplateRegistry:
    return TemplateRegistry.builtin()


@pytest.fixture
def notifier() -> Mock:
    """Notifier double; inspect `notify.call_args_list`."""
    return Mock(spec=LoggingNotifier)


@pytest.fixture
def engine(
    gateway: JsonFileGateway, registry: TemplateRegistry, notifier: Mock
) -> WorkflowEngine:
    return WorkflowEngine(
        gateway=gateway,
        registry=registry,
        notifier=notifier,
        default_timeout_seconds=5.0,
    )


@pytest.fixture
def client(gateway: JsonFileGateway) -> ClientRecord:
    """An individual client straight out of intake, with no tasks."""
    return gateway.create_client(name="Jane Doe", category="individual", client_id="C1")


@pytest.fixture
def settings(store_path: Path) -> EngineSettings:
    """Settings isolated from any local `.env` file."""
    return EngineSettings(_env_file=None, state_path=store_path)
