"""Export and import calculator data as versioned JSON envelopes."""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable

from scenario_planner.errors import FormatError, TypeMismatchError


ENVELOPE_VERSION = "1.0"
JSON_MIME = "application/json"


@dataclass(frozen=True)
class ImportableData:
    version: str
    timestamp: str
    type: str
    data: Any

    def to_dict(self) -> dict[str, Any]:
        return {"version": self.version, "timestamp": self.timestamp, "type": self.type, "data": self.data}


@dataclass(frozen=True)
class ExportedFile:
    filename: str
    content: bytes
    mime: str = JSON_MIME


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def normalize_filename(filename: str) -> str:
    return filename if filename.endswith(".json") else f"{filename}.json"


def _jsonable(data: Any) -> Any:
    if hasattr(data, "to_dict"):
        return data.to_dict()
    return data


def export_data(
    data: Any,
    data_type: str,
    filename: str,
    writer: Callable[[ExportedFile], Any] | None = None,
) -> ExportedFile:
    """Wrap data in a version 1.0 envelope and serialize it to JSON bytes.

    ``writer`` is the file-save collaborator (browser download, directory
    writer); it receives the finished file when given.
    """
    envelope = ImportableData(
        version=ENVELOPE_VERSION,
        timestamp=_now_iso(),
        type=data_type,
        data=_jsonable(data),
    )
    content = json.dumps(envelope.to_dict(), indent=2).encode("utf-8")
    exported = ExportedFile(filename=normalize_filename(filename), content=content)
    if writer is not None:
        writer(exported)
    return exported


def directory_writer(directory: str | Path) -> Callable[[ExportedFile], Path]:
    root = Path(directory)

    def _write(exported: ExportedFile) -> Path:
        root.mkdir(parents=True, exist_ok=True)
        target = root / exported.filename
        target.write_bytes(exported.content)
        return target

    return _write


def _read_source(source: Any) -> str:
    if hasattr(source, "getvalue"):
        source = source.getvalue()
    elif hasattr(source, "read"):
        source = source.read()
    if isinstance(source, (bytes, bytearray)):
        try:
            return bytes(source).decode("utf-8")
        except UnicodeDecodeError as exc:
            raise FormatError("Import file is not valid UTF-8 JSON.") from exc
    if isinstance(source, str):
        return source
    raise FormatError(f"Unsupported import source: {type(source).__name__}")


def _validate_envelope(payload: Any) -> ImportableData:
    if not isinstance(payload, dict):
        raise FormatError("Invalid file format: envelope is not an object.")
    for key in ("version", "timestamp", "type"):
        if not isinstance(payload.get(key), str):
            raise FormatError(f"Invalid file format: {key} must be a string.")
    if "data" not in payload:
        raise FormatError("Invalid file format: missing data.")
    return ImportableData(
        version=payload["version"],
        timestamp=payload["timestamp"],
        type=payload["type"],
        data=payload["data"],
    )


def parse_envelope(source: Any) -> ImportableData:
    text = _read_source(source)
    try:
        payload = json.loads(text)
    except (json.JSONDecodeError, RecursionError) as exc:
        raise FormatError(f"Could not parse import JSON: {exc}") from exc
    return _validate_envelope(payload)


def import_data(source: Any, expected_type: str) -> Any:
    """Return the payload of an exported file produced for ``expected_type``.

    The payload itself is returned as-is; validating its shape is left to the
    caller's schema.
    """
    envelope = parse_envelope(source)
    if envelope.type != expected_type:
        raise TypeMismatchError(expected_type, envelope.type)
    return envelope.data


async def import_file(path: str | Path, expected_type: str) -> Any:
    """Read an exported file off the event loop, then decode it."""
    content = await asyncio.to_thread(Path(path).read_bytes)
    return import_data(content, expected_type)
