#!/usr/bin/env python3
"""Programmatic engine example.

This demonstrates using the engine components directly:

* load settings from `.env`
* register a client in the JSON store (as intake would)
* advance the client to its first automated stage
* complete one generated task and watch the follow-up cascade and progress

The state file is passed as an argument so the example never touches a real store.
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Sequence

from client_workflow_automation.engine.config import EngineSettings
from client_workflow_automation.engine.logging import configure_logging
from client_workflow_automation.engine.persistence.json_store import JsonFileGateway
from client_workflow_automation.engine.workflow.service import WorkflowEngine

logger = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Walk one client through the workflow engine.")
    parser.add_argument("--state", required=True, help="Path of the JSON store to use")
    parser.add_argument("--name", default="Jane Doe", help="Client display name")
    parser.add_argument(
        "--category",
        default="individual",
        help='Client category, e.g. "individual" or "business"',
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)

    settings = EngineSettings(state_path=Path(args.state))
    configure_logging(settings.log_level)

    gateway = JsonFileGateway(settings.state_path)
    engine = WorkflowEngine.from_settings(settings, gateway=gateway)

    client = gateway.create_client(name=args.name, category=args.category)
    advanced = engine.initialize_client_workflow(client.client_id)
    logger.info(
        "Workflow initialized",
        extra={"client_id": client.client_id, "tasks": [t.title for t in advanced.created_tasks]},
    )

    if not advanced.created_tasks:
        return 0

    first = advanced.created_tasks[0]
    completed = engine.complete_task(first.task_id)
    logger.info(
        "First task completed",
        extra={
            "task_id": first.task_id,
            "follow_ups": [t.title for t in completed.follow_up_tasks],
            "progress_percent": completed.progress_percent,
        },
    )

    # Retried events are no-ops.
    again = engine.initialize_client_workflow(client.client_id)
    logger.info("Re-initialization outcome", extra={"outcome": again.outcome.value})
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
