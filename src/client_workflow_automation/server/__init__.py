"""FastAPI server adapter for the client workflow engine.

Design intent:
- Keep workflow logic in `client_workflow_automation.engine.*`
- Keep transport concerns (routing, CORS, HTTP error mapping) here
"""

from __future__ import annotations

__all__ = ["create_app"]

from client_workflow_automation.server.app import create_app
