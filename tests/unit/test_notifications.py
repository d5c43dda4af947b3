from __future__ import annotations

import logging
from unittest.mock import Mock

import pytest
import requests

from client_workflow_automation.engine.errors import NotificationFailure
from client_workflow_automation.engine.notifications import (
    TASK_COMPLETED,
    LoggingNotifier,
    WebhookNotifier,
)


def _session(response: Mock | None = None) -> Mock:
    session = Mock(spec=requests.Session)
    session.headers = {}
    session.post.return_value = response or Mock(spec=requests.Response)
    return session


def test_webhook_posts_json_body() -> None:
    session = _session()
    notifier = WebhookNotifier("https://hooks.example.test/x", timeout_seconds=3, session=session)

    notifier.notify("C1", TASK_COMPLETED, {"task_id": "T1"})

    session.post.assert_called_once_with(
        "https://hooks.example.test/x",
        json={"client_id": "C1", "event_kind": "task_completed", "payload": {"task_id": "T1"}},
        timeout=3,
    )
    assert session.headers["Content-Type"] == "application/json"


def test_webhook_http_error_becomes_notification_failure() -> None:
    response = Mock(spec=requests.Response)
    response.raise_for_status.side_effect = requests.HTTPError("502 Bad Gateway")
    notifier = WebhookNotifier("https://hooks.example.test/x", session=_session(response))

    with pytest.raises(NotificationFailure, match="502"):
        notifier.notify("C1", TASK_COMPLETED, {})


def test_webhook_connection_error_becomes_notification_failure() -> None:
    session = _session()
    session.post.side_effect = requests.ConnectionError("refused")
    notifier = WebhookNotifier("https://hooks.example.test/x", session=session)

    with pytest.raises(NotificationFailure):
        notifier.notify("C1", TASK_COMPLETED, {})


def test_webhook_requires_url() -> None:
    with pytest.raises(ValueError):
        WebhookNotifier("  ", session=_session())


def test_logging_notifier(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.INFO):
        LoggingNotifier().notify("C1", TASK_COMPLETED, {"task_id": "T1"})

    record = next(r for r in caplog.records if r.getMessage() == "Notification")
    assert record.client_id == "C1"  # type: ignore[attr-defined]
    assert record.payload == {"task_id": "T1"}  # type: ignore[attr-defined]
