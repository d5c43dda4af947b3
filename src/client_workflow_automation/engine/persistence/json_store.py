"""JSON-file backed persistence gateway.

A single JSON document holds every client and task. Each call takes a process
lock, re-reads the file, applies its change and atomically replaces the file,
so combined writes are all-or-nothing. Guarded checks (provenance uniqueness,
pending -> completed) and progress recomputation read and write under the same
lock acquisition, so they cannot interleave within one process.

This is the reference store used by the HTTP adapter and the tests. A
multi-process deployment should put the same contract in front of a database
with a unique index on ``(client_id, provenance)`` for stage batches.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from client_workflow_automation.engine.errors import (
    ClientNotFound,
    DuplicateProvenance,
    OperationTimeout,
    PersistenceFailure,
    TaskAlreadyCompleted,
    TaskNotFound,
)
from client_workflow_automation.engine.models import (
    ClientCategory,
    ClientRecord,
    Provenance,
    ProvenanceKind,
    Stage,
    TaskRecord,
    TaskStatus,
    compute_progress,
    utc_iso_now,
)
from client_workflow_automation.engine.timeouts import Deadline

logger = logging.getLogger(__name__)


class StoreDocument(BaseModel):
    clients: list[ClientRecord] = Field(default_factory=list)
    tasks: list[TaskRecord] = Field(default_factory=list)

    def client_index(self, client_id: str) -> int | None:
        for idx, client in enumerate(self.clients):
            if client.client_id == client_id:
                return idx
        return None

    def task_index(self, task_id: str) -> int | None:
        for idx, task in enumerate(self.tasks):
            if task.task_id == task_id:
                return idx
        return None

    def has_provenance(self, client_id: str, provenance: str) -> bool:
        return any(t.client_id == client_id and t.provenance == provenance for t in self.tasks)


@dataclass
class JsonFileGateway:
    path: Path

    def __post_init__(self) -> None:
        self._lock = threading.Lock()

    @contextmanager
    def _locked(self, deadline: Deadline | None) -> Iterator[None]:
        timeout = deadline.remaining() if deadline is not None else None
        acquired = self._lock.acquire(timeout=-1 if timeout is None else timeout)
        if not acquired:
            raise OperationTimeout(f"Timed out waiting for the workflow store at {self.path}")
        try:
            yield
        finally:
            self._lock.release()

    def _load_unlocked(self) -> StoreDocument:
        if not self.path.exists():
            return StoreDocument()
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except OSError as e:
            raise PersistenceFailure(f"Cannot read workflow store {self.path}: {e}") from e
        except json.JSONDecodeError as e:
            # Refuse to treat a corrupt store as empty; the next write would drop every record.
            raise PersistenceFailure(f"Workflow store {self.path} is not valid JSON: {e}") from e
        if raw is None:
            return StoreDocument()
        try:
            return StoreDocument.model_validate(raw)
        except ValidationError as e:
            raise PersistenceFailure(f"Workflow store {self.path} has unexpected shape: {e}") from e

    def _save_unlocked(self, document: StoreDocument) -> None:
        payload = json.dumps(document.model_dump(mode="json"), indent=2, ensure_ascii=False) + "\n"
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    fh.write(payload)
                os.replace(tmp_name, self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise PersistenceFailure(f"Cannot write workflow store {self.path}: {e}") from e

    # -- intake -----------------------------------------------------------

    def create_client(
        self,
        *,
        name: str,
        category: ClientCategory | str = ClientCategory.INDIVIDUAL,
        owner_id: str | None = None,
        client_id: str | None = None,
        deadline: Deadline | None = None,
    ) -> ClientRecord:
        """Register a client as intake would. Stage starts at ``pending``, progress at 0."""

        record = ClientRecord(
            client_id=client_id or uuid.uuid4().hex,
            name=name,
            category=category.value if isinstance(category, ClientCategory) else category,
            stage=Stage.PENDING.value,
            progress_percent=0,
            owner_id=owner_id,
        )
        with self._locked(deadline):
            document = self._load_unlocked()
            if document.client_index(record.client_id) is not None:
                raise PersistenceFailure(f"Client {record.client_id!r} already exists")
            document.clients.append(record)
            self._save_unlocked(document)
        logger.info("Client registered", extra={"client_id": record.client_id})
        return record

    def list_clients(self, *, deadline: Deadline | None = None) -> list[ClientRecord]:
        with self._locked(deadline):
            return self._load_unlocked().clients

    # -- gateway contract -------------------------------------------------

    def get_client(
        self, client_id: str, *, deadline: Deadline | None = None
    ) -> ClientRecord | None:
        with self._locked(deadline):
            document = self._load_unlocked()
            idx = document.client_index(client_id)
            return None if idx is None else document.clients[idx]

    def update_client(self, client: ClientRecord, *, deadline: Deadline | None = None) -> None:
        with self._locked(deadline):
            document = self._load_unlocked()
            idx = document.client_index(client.client_id)
            if idx is None:
                raise ClientNotFound(client.client_id)
            document.clients[idx] = client
            self._save_unlocked(document)

    def get_task(self, task_id: str, *, deadline: Deadline | None = None) -> TaskRecord | None:
        with self._locked(deadline):
            document = self._load_unlocked()
            idx = document.task_index(task_id)
            return None if idx is None else document.tasks[idx]

    def update_task(self, task: TaskRecord, *, deadline: Deadline | None = None) -> None:
        with self._locked(deadline):
            document = self._load_unlocked()
            idx = document.task_index(task.task_id)
            if idx is None:
                raise TaskNotFound(task.task_id)
            document.tasks[idx] = task
            self._save_unlocked(document)

    def insert_tasks(self, tasks: list[TaskRecord], *, deadline: Deadline | None = None) -> None:
        if not tasks:
            return
        with self._locked(deadline):
            document = self._load_unlocked()
            self._append_tasks(document, tasks)
            self._save_unlocked(document)

    def list_tasks_for_client(
        self, client_id: str, *, deadline: Deadline | None = None
    ) -> list[TaskRecord]:
        with self._locked(deadline):
            return [t for t in self._load_unlocked().tasks if t.client_id == client_id]

    def has_tasks_with_provenance(
        self, client_id: str, provenance: Provenance, *, deadline: Deadline | None = None
    ) -> bool:
        with self._locked(deadline):
            return self._load_unlocked().has_provenance(client_id, str(provenance))

    def advance_stage(
        self,
        client: ClientRecord,
        tasks: list[TaskRecord],
        provenance: Provenance,
        *,
        deadline: Deadline | None = None,
    ) -> None:
        with self._locked(deadline):
            document = self._load_unlocked()
            idx = document.client_index(client.client_id)
            if idx is None:
                raise ClientNotFound(client.client_id)
            if provenance.kind == ProvenanceKind.STAGE and document.has_provenance(
                client.client_id, str(provenance)
            ):
                raise DuplicateProvenance(client.client_id, str(provenance))
            document.clients[idx] = document.clients[idx].model_copy(
                update={"stage": client.stage, "last_activity": client.last_activity}
            )
            self._append_tasks(document, tasks)
            self._save_unlocked(document)

    def complete_task(
        self,
        task: TaskRecord,
        follow_ups: list[TaskRecord],
        *,
        deadline: Deadline | None = None,
    ) -> None:
        with self._locked(deadline):
            document = self._load_unlocked()
            idx = document.task_index(task.task_id)
            if idx is None:
                raise TaskNotFound(task.task_id)
            if document.tasks[idx].status != TaskStatus.PENDING:
                raise TaskAlreadyCompleted(task.task_id)
            document.tasks[idx] = task
            self._append_tasks(document, follow_ups)
            self._save_unlocked(document)

    def recompute_client_progress(
        self, client_id: str, at: str, *, deadline: Deadline | None = None
    ) -> ClientRecord:
        with self._locked(deadline):
            document = self._load_unlocked()
            idx = document.client_index(client_id)
            if idx is None:
                raise ClientNotFound(client_id)
            percent = compute_progress(t for t in document.tasks if t.client_id == client_id)
            updated = document.clients[idx].model_copy(
                update={"progress_percent": percent, "last_activity": at or utc_iso_now()}
            )
            document.clients[idx] = updated
            self._save_unlocked(document)
            return updated

    @staticmethod
    def _append_tasks(document: StoreDocument, tasks: list[TaskRecord]) -> None:
        existing = {t.task_id for t in document.tasks}
        for task in tasks:
            if task.task_id in existing:
                raise PersistenceFailure(f"Task id collision: {task.task_id!r}")
            existing.add(task.task_id)
        document.tasks.extend(tasks)
