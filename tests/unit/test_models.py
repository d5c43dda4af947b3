from __future__ import annotations

import pytest

from client_workflow_automation.engine.models import (
    Provenance,
    ProvenanceKind,
    Stage,
    TaskCategory,
    TaskPriority,
    TaskRecord,
    TaskStatus,
)


def test_provenance_string_forms() -> None:
    assert str(Provenance.stage(Stage.INTAKE_COMPLETE)) == "stage:intake_complete"
    assert str(Provenance.stage("custom")) == "stage:custom"
    assert str(Provenance.completion_of("abc")) == "completionOf:abc"


def test_provenance_parse() -> None:
    parsed = Provenance.parse("completionOf:abc")
    assert parsed.kind == ProvenanceKind.COMPLETION_OF
    assert parsed.ref == "abc"
    assert Provenance.parse("stage:filed") == Provenance.stage(Stage.FILED)


@pytest.mark.parametrize("text", ["", "stage", "stage:", "manual:abc"])
def test_provenance_parse_rejects_malformed(text: str) -> None:
    with pytest.raises(ValueError):
        Provenance.parse(text)


def test_completed_copy_leaves_original_untouched() -> None:
    task = TaskRecord(
        task_id="T1",
        client_id="C1",
        title="Review",
        category=TaskCategory.REVIEW,
        priority=TaskPriority.LOW,
        completion_triggers=["document_review"],
        provenance="stage:documents_pending",
    )

    done = task.completed(at="2026-02-02T00:00:00+00:00")

    assert done.is_completed
    assert done.progress == 100
    assert done.completed_at == done.updated_at == "2026-02-02T00:00:00+00:00"
    assert done.completion_triggers == ["document_review"]
    assert task.status == TaskStatus.PENDING
    assert not task.is_completed
