"""Stored record validation and calculator payload decoding."""

from __future__ import annotations

from typing import Any, Callable

from scenario_planner.errors import InvalidInputError
from scenario_planner.scenario_models import SCENARIO_PLANNER_TYPE, CalculatorState, ScenarioData


REQUIRED_STRING_FIELDS = ("id", "name", "calculatorType")

PAYLOAD_DECODERS: dict[str, Callable[[Any], Any]] = {
    SCENARIO_PLANNER_TYPE: ScenarioData.from_dict,
}


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_state_record(raw: Any) -> tuple[CalculatorState | None, str | None]:
    """Validate one stored record.

    Returns (state, None) for a well-formed record and (None, reason)
    otherwise. The payload under ``data`` is not inspected.
    """
    if not isinstance(raw, dict):
        return None, "record is not an object"
    for key in REQUIRED_STRING_FIELDS:
        if key not in raw:
            return None, f"missing {key}"
        if not isinstance(raw[key], str):
            return None, f"{key} must be a string"
    if "timestamp" not in raw:
        return None, "missing timestamp"
    if not _is_number(raw["timestamp"]):
        return None, "timestamp must be a number"
    state = CalculatorState(
        id=raw["id"],
        name=raw["name"],
        timestamp=raw["timestamp"],
        calculator_type=raw["calculatorType"],
        data=raw.get("data"),
    )
    return state, None


def validate_state_collection(payload: Any) -> tuple[list[CalculatorState], list[dict[str, Any]]]:
    """Split a stored collection into valid states and rejected records."""
    if not isinstance(payload, list):
        return [], [{"index": None, "reason": "stored collection is not a list"}]
    states: list[CalculatorState] = []
    rejected: list[dict[str, Any]] = []
    for idx, raw in enumerate(payload):
        state, reason = validate_state_record(raw)
        if state is None:
            rejected.append({"index": idx, "reason": reason, "id": raw.get("id") if isinstance(raw, dict) else None})
            continue
        states.append(state)
    return states, rejected


def register_payload_decoder(calculator_type: str, decoder: Callable[[Any], Any]) -> None:
    PAYLOAD_DECODERS[calculator_type] = decoder


def decode_payload(state: CalculatorState) -> Any:
    """Decode a state's data with the decoder registered for its calculator type.

    Types without a registered decoder return the raw payload.
    """
    decoder = PAYLOAD_DECODERS.get(state.calculator_type)
    if decoder is None:
        return state.data
    try:
        return decoder(state.data)
    except InvalidInputError as exc:
        raise InvalidInputError(f"State {state.id} ({state.calculator_type}) has an invalid payload: {exc}") from exc
