"""
Append-only call-event log (JSON lines).

Audit trail of every provider request, callback and call-flow hit. Writes run
in a worker thread; a failed write is reported through the application logger
and never interrupts the request being served.
"""

from __future__ import annotations

import json
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import anyio

from leadcall.shared.logging import get_logger

logger = get_logger(__name__)


class CallEventLog:
    """Writes one JSON object per line to a local file."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    async def record(self, event_type: str, **fields: Any) -> None:
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "type": event_type,
            **{k: v for k, v in fields.items() if v is not None},
        }
        try:
            line = json.dumps(entry, default=str)
        except (TypeError, ValueError):
            logger.exception("Failed to serialize call log entry", extra={"event_type": event_type})
            return

        await anyio.to_thread.run_sync(self._append, line)

    def read(self) -> list[dict[str, Any]]:
        """Return every entry in write order.

        Part of the audit-log API for operators inspecting a running
        deployment; it reads the whole file synchronously.
        """
        if not self._path.exists():
            return []
        with self._path.open(encoding="utf-8") as fh:
            return [json.loads(line) for line in fh if line.strip()]

    def _append(self, line: str) -> None:
        try:
            with self._lock:
                self._path.parent.mkdir(parents=True, exist_ok=True)
                with self._path.open("a", encoding="utf-8") as fh:
                    fh.write(line + "\n")
        except OSError:
            logger.exception("Failed to write call log", extra={"path": str(self._path)})
