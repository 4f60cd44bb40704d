"""Local persistence for named calculator states."""

from __future__ import annotations

import json
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable

from scenario_planner.diagnostics import configure_journal, report_rejected_records, report_store_error
from scenario_planner.errors import InvalidInputError, StoreReadError, StoreWriteError
from scenario_planner.scenario_models import CalculatorState
from scenario_planner.schema import validate_state_collection, validate_state_record


STORAGE_KEY = "scenario_planner_calculator_states"

STORE_DIR = Path(".local_store")

_DEFAULT_STORE_DIR = Path(".local_store")
_STORAGE_ENV_VAR = "SCENARIO_PLANNER_STORAGE_ROOT"
_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


def _expand_storage_root(path_value: str | Path | None) -> Path:
    if path_value is None:
        return _DEFAULT_STORE_DIR
    text = str(path_value).strip()
    if not text:
        return _DEFAULT_STORE_DIR
    expanded = os.path.expandvars(os.path.expanduser(text))
    return Path(expanded)


def configure_storage_root(path_value: str | Path | None) -> Path:
    """Configure the directory holding the default state store and its diagnostics journal."""
    global STORE_DIR
    STORE_DIR = _expand_storage_root(path_value)
    configure_journal(STORE_DIR)
    return STORE_DIR


def storage_root_path() -> str:
    return str(STORE_DIR.resolve())


def storage_root_from_env() -> Path:
    return _expand_storage_root(os.getenv(_STORAGE_ENV_VAR, ""))


class JsonDirectoryBackend:
    """Durable key-value text store: one ``<key>.json`` file per key."""

    def __init__(self, root: str | Path):
        self.root = Path(root)

    def _path_for(self, key: str) -> Path:
        return self.root / f"{_UNSAFE_KEY_CHARS.sub('_', key)}.json"

    def get(self, key: str) -> str | None:
        p = self._path_for(key)
        if not p.exists():
            return None
        try:
            return p.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise StoreReadError(f"Could not read {p}: {exc}") from exc

    def set(self, key: str, text: str) -> None:
        p = self._path_for(key)
        tmp = p.with_suffix(f"{p.suffix}.tmp")
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            tmp.write_text(text, encoding="utf-8")
            tmp.replace(p)
        except OSError as exc:
            raise StoreWriteError(f"Could not write {p}: {exc}") from exc

    def remove(self, key: str) -> None:
        p = self._path_for(key)
        try:
            p.unlink(missing_ok=True)
        except OSError as exc:
            raise StoreWriteError(f"Could not remove {p}: {exc}") from exc


class MemoryBackend:
    """In-process key-value text store."""

    def __init__(self, initial: dict[str, str] | None = None):
        self.items: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self.items.get(key)

    def set(self, key: str, text: str) -> None:
        self.items[key] = text

    def remove(self, key: str) -> None:
        self.items.pop(key, None)


@dataclass
class LoadResult:
    states: list[CalculatorState] = field(default_factory=list)
    rejected: list[dict[str, Any]] = field(default_factory=list)


class StateStore:
    """Named calculator states kept as one JSON list under a single key.

    Every mutation is a full read-modify-write of the collection with no
    locking: concurrent writers against the same key can lose updates.
    """

    def __init__(
        self,
        backend,
        key: str = STORAGE_KEY,
        reporter: Callable[..., Any] = report_store_error,
    ):
        self.backend = backend
        self.key = key
        self._report = reporter

    def _read_collection(self) -> Any:
        text = self.backend.get(self.key)
        if text is None or not text.strip():
            return []
        try:
            return json.loads(text)
        except (json.JSONDecodeError, RecursionError) as exc:
            raise StoreReadError(f"Stored collection under {self.key} is not valid JSON: {exc}") from exc

    def _write_collection(self, states: list[CalculatorState], operation: str) -> None:
        try:
            text = json.dumps([s.to_dict() for s in states], indent=2)
            self.backend.set(self.key, text)
        except (TypeError, ValueError, RecursionError) as exc:
            err = StoreWriteError(f"State data is not JSON-serializable: {exc}")
            self._report(operation, err, self.key)
            raise err from exc
        except StoreWriteError as exc:
            self._report(operation, exc, self.key)
            raise

    def _states_for_write(self, operation: str) -> list[CalculatorState]:
        try:
            payload = self._read_collection()
            if not isinstance(payload, list):
                raise StoreReadError(f"Stored collection under {self.key} is not a list.")
        except StoreReadError as exc:
            self._report(operation, exc, self.key)
            raise
        states, _ = validate_state_collection(payload)
        return states

    def load_states(self) -> LoadResult:
        """Read the collection, isolating invalid records instead of failing."""
        try:
            payload = self._read_collection()
        except StoreReadError as exc:
            self._report("read", exc, self.key)
            return LoadResult()
        states, rejected = validate_state_collection(payload)
        if rejected:
            report_rejected_records(self.key, rejected)
        return LoadResult(states=states, rejected=rejected)

    def get_all_states(self) -> list[CalculatorState]:
        return self.load_states().states

    def get_states_by_type(self, calculator_type: str) -> list[CalculatorState]:
        matching = [s for s in self.get_all_states() if s.calculator_type == calculator_type]
        return sorted(matching, key=lambda s: s.timestamp, reverse=True)

    def get_state(self, state_id: str) -> CalculatorState | None:
        for state in self.get_all_states():
            if state.id == state_id:
                return state
        return None

    def save_state(self, state: CalculatorState) -> None:
        _, reason = validate_state_record(state.to_dict())
        if reason is not None:
            raise InvalidInputError(f"Cannot save state {state.id!r}: {reason}")
        states = [s for s in self._states_for_write("save") if s.id != state.id]
        states.append(state)
        self._write_collection(states, "save")

    def delete_state(self, state_id: str) -> None:
        states = self._states_for_write("delete")
        remaining = [s for s in states if s.id != state_id]
        if len(remaining) == len(states):
            return
        self._write_collection(remaining, "delete")

    def clear_all_states(self) -> None:
        try:
            self.backend.remove(self.key)
        except StoreWriteError as exc:
            self._report("clear", exc, self.key)
            raise


def default_store() -> StateStore:
    return StateStore(JsonDirectoryBackend(STORE_DIR))


configure_storage_root(storage_root_from_env())
