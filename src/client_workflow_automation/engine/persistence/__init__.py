"""Persistence gateway contract and the JSON-file reference store."""

from client_workflow_automation.engine.persistence.gateway import PersistenceGateway
from client_workflow_automation.engine.persistence.json_store import JsonFileGateway

__all__ = ["JsonFileGateway", "PersistenceGateway"]
