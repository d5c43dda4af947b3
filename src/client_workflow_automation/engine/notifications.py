"""Notification collaborators.

Notifications are best-effort. The cascade calls ``notify`` after the
authoritative state change and swallows any failure after logging it.
"""

from __future__ import annotations

import logging
from typing import Protocol

import requests

from client_workflow_automation.engine.errors import NotificationFailure

logger = logging.getLogger(__name__)

TASK_COMPLETED = "task_completed"


class Notifier(Protocol):
    def notify(self, client_id: str, event_kind: str, payload: dict[str, object]) -> None: ...


class LoggingNotifier:
    """Emit notifications as structured log lines."""

    def notify(self, client_id: str, event_kind: str, payload: dict[str, object]) -> None:
        logger.info(
            "Notification",
            extra={"client_id": client_id, "event_kind": event_kind, "payload": payload},
        )


class WebhookNotifier:
    """POST notifications as JSON to a configured endpoint."""

    def __init__(
        self,
        url: str,
        *,
        timeout_seconds: float = 5.0,
        session: requests.Session | None = None,
    ) -> None:
        if not url.strip():
            raise ValueError("Webhook URL is required")
        self._url = url
        self._timeout = timeout_seconds
        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "Content-Type": "application/json",
                "User-Agent": "client-workflow-automation",
            }
        )

    def notify(self, client_id: str, event_kind: str, payload: dict[str, object]) -> None:
        body = {"client_id": client_id, "event_kind": event_kind, "payload": payload}
        try:
            resp = self._session.post(self._url, json=body, timeout=self._timeout)
            resp.raise_for_status()
        except requests.RequestException as e:
            raise NotificationFailure(f"Webhook delivery to {self._url} failed: {e}") from e

    def close(self) -> None:
        self._session.close()
