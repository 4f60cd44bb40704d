"""Diagnostics journal for state store and file transfer failures.

Each line of ``diagnostics.jsonl`` is one event with a ``kind`` that the
Diagnostics panel filters on:

- ``store_failure``: a store operation (read/save/delete/clear) failed.
- ``records_rejected``: stored records were dropped on read.
- ``transfer_failure``: an import or export of a file failed.
- ``journal_corrupt``: a journal line could not be parsed.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any


STORE_FAILURE = "store_failure"
RECORDS_REJECTED = "records_rejected"
TRANSFER_FAILURE = "transfer_failure"
JOURNAL_CORRUPT = "journal_corrupt"
EVENT_KINDS = (STORE_FAILURE, RECORDS_REJECTED, TRANSFER_FAILURE, JOURNAL_CORRUPT)

JOURNAL_FILE = Path(".local_store") / "diagnostics.jsonl"


@dataclass(frozen=True)
class DiagnosticEvent:
    kind: str
    level: str
    details: dict[str, Any] = field(default_factory=dict)
    at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "DiagnosticEvent":
        return cls(
            kind=str(payload["kind"]),
            level=str(payload.get("level", "ERROR")),
            details=dict(payload.get("details") or {}),
            at=str(payload.get("at", "")),
        )


def configure_journal(root: str | Path) -> Path:
    """Keep the journal beside the state store, at ``<root>/diagnostics.jsonl``."""
    global JOURNAL_FILE
    JOURNAL_FILE = Path(root) / "diagnostics.jsonl"
    return JOURNAL_FILE


def journal_path() -> str:
    return str(JOURNAL_FILE.resolve())


def _error_details(error: BaseException) -> dict[str, str]:
    return {"error_type": type(error).__name__, "error": str(error)}


def _record(event: DiagnosticEvent) -> DiagnosticEvent:
    # A failing journal write must not mask the failure being reported.
    try:
        JOURNAL_FILE.parent.mkdir(parents=True, exist_ok=True)
        with JOURNAL_FILE.open("a", encoding="utf-8") as f:
            f.write(json.dumps(asdict(event), default=str, ensure_ascii=False) + "\n")
    except OSError:
        pass
    return event


def report_store_error(operation: str, error: BaseException, key: str | None = None) -> DiagnosticEvent:
    return _record(
        DiagnosticEvent(STORE_FAILURE, "ERROR", {"operation": operation, "key": key, **_error_details(error)})
    )


def report_rejected_records(key: str, rejected: list[dict[str, Any]]) -> DiagnosticEvent:
    return _record(DiagnosticEvent(RECORDS_REJECTED, "WARNING", {"key": key, "count": len(rejected), "records": rejected}))


def report_transfer_error(direction: str, error: BaseException, filename: str | None = None) -> DiagnosticEvent:
    return _record(
        DiagnosticEvent(TRANSFER_FAILURE, "WARNING", {"direction": direction, "filename": filename, **_error_details(error)})
    )


def read_events(kind: str | None = None, limit: int = 200) -> list[DiagnosticEvent]:
    """Newest ``limit`` events, optionally restricted to one kind."""
    if limit <= 0 or not JOURNAL_FILE.exists():
        return []
    try:
        lines = JOURNAL_FILE.read_text(encoding="utf-8").splitlines()
    except (OSError, UnicodeDecodeError):
        return []
    events: list[DiagnosticEvent] = []
    for line in lines:
        if not line.strip():
            continue
        try:
            event = DiagnosticEvent.from_dict(json.loads(line))
        except (json.JSONDecodeError, KeyError, TypeError, AttributeError):
            event = DiagnosticEvent(JOURNAL_CORRUPT, "ERROR", {"line": line})
        if kind is None or event.kind == kind:
            events.append(event)
    return events[-int(limit) :]

