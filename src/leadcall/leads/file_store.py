"""
Local JSON-file lead store.

The whole collection is read, modified and rewritten under one process-wide
lock, which makes each operation atomic for a single process. Running several
processes against the same file can lose updates.
"""

from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Any, Callable, TypeVar

import anyio

from leadcall.leads.models import Lead, LeadEvent, LeadUpdate
from leadcall.leads.repository import sort_newest_first
from leadcall.shared.exceptions import DuplicateLeadError, LeadNotFoundError, StorageError
from leadcall.shared.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class JsonFileLeadStore:
    """LeadStore backed by a JSON array on disk."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    async def initialize(self) -> None:
        def _init() -> None:
            with self._lock:
                self._ensure_file()

        await anyio.to_thread.run_sync(_init)

    async def create(self, lead: Lead) -> Lead:
        record = lead.to_record()

        def _create(records: list[dict[str, Any]]) -> Lead:
            if any(r.get("leadId") == lead.lead_id for r in records):
                raise DuplicateLeadError(f"Lead {lead.lead_id} already exists")
            records.append(record)
            self._write(records)
            return lead

        return await self._run(_create)

    async def update(self, lead_id: str, changes: LeadUpdate) -> Lead:
        fields = changes.stamped().fields()

        def _update(records: list[dict[str, Any]]) -> Lead:
            index = self._index_of(records, lead_id)
            records[index] = {**records[index], **fields}
            self._write(records)
            return Lead.model_validate(records[index])

        return await self._run(_update)

    async def append_event(self, lead_id: str, event: LeadEvent) -> LeadEvent:
        record = event.to_record()

        def _append(records: list[dict[str, Any]]) -> LeadEvent:
            index = self._index_of(records, lead_id)
            records[index]["events"] = [*(records[index].get("events") or []), record]
            records[index]["updatedAt"] = record["receivedAt"]
            self._write(records)
            return event

        return await self._run(_append)

    async def list_leads(self) -> list[Lead]:
        records = await self._run(lambda records: records)
        return sort_newest_first([Lead.model_validate(r) for r in records])

    async def get_by_id(self, lead_id: str) -> Lead | None:
        def _get(records: list[dict[str, Any]]) -> dict[str, Any] | None:
            return next((r for r in records if r.get("leadId") == lead_id), None)

        record = await self._run(_get)
        return Lead.model_validate(record) if record is not None else None

    async def _run(self, fn: Callable[[list[dict[str, Any]]], T]) -> T:
        def _locked() -> T:
            with self._lock:
                return fn(self._read())

        return await anyio.to_thread.run_sync(_locked)

    @staticmethod
    def _index_of(records: list[dict[str, Any]], lead_id: str) -> int:
        for index, record in enumerate(records):
            if record.get("leadId") == lead_id:
                return index
        raise LeadNotFoundError(f"Lead {lead_id} not found")

    def _ensure_file(self) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            if not self._path.exists():
                self._path.write_text("[]", encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Cannot initialize lead file: {e}") from e

    def _read(self) -> list[dict[str, Any]]:
        if not self._path.exists():
            self._ensure_file()
        try:
            data = json.loads(self._path.read_text(encoding="utf-8") or "[]")
        except (OSError, ValueError) as e:
            logger.error("Failed to read lead file", extra={"path": str(self._path), "error": str(e)})
            raise StorageError(f"Cannot read lead file: {e}") from e
        if not isinstance(data, list):
            raise StorageError("Lead file does not contain a JSON array")
        return data

    def _write(self, records: list[dict[str, Any]]) -> None:
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        try:
            tmp.write_text(json.dumps(records, indent=2), encoding="utf-8")
            tmp.replace(self._path)
        except OSError as e:
            logger.error("Failed to write lead file", extra={"path": str(self._path), "error": str(e)})
            raise StorageError(f"Cannot write lead file: {e}") from e
