from __future__ import annotations

import asyncio
import io
import json

import pytest

from scenario_planner.errors import FormatError, TypeMismatchError
from scenario_planner.scenario_models import SCENARIO_PLANNER_TYPE, ScenarioData
from scenario_planner.transfer import (
    ENVELOPE_VERSION,
    directory_writer,
    export_data,
    import_data,
    import_file,
    parse_envelope,
)


def _envelope(**overrides):
    payload = {"version": "1.0", "timestamp": "2026-01-01T00:00:00+00:00", "type": "T", "data": {"x": 1}}
    payload.update(overrides)
    return json.dumps(payload)


@pytest.mark.parametrize("value", [{"a": [1, 2.5, None, "s"]}, [1, 2, 3], "text", 42, None, True])
def test_export_then_import_returns_original_payload(value):
    exported = export_data(value, "T", "f")
    assert import_data(exported.content, "T") == value


def test_export_envelope_shape_and_filename():
    exported = export_data({"x": 1}, "T", "plan")
    assert exported.filename == "plan.json"
    assert exported.mime == "application/json"
    envelope = json.loads(exported.content.decode("utf-8"))
    assert envelope["version"] == ENVELOPE_VERSION == "1.0"
    assert envelope["type"] == "T"
    assert envelope["data"] == {"x": 1}
    assert "T" in envelope["timestamp"]
    assert export_data({}, "T", "already.json").filename == "already.json"


def test_export_converts_dataclass_payloads(scenario_data):
    exported = export_data(scenario_data, SCENARIO_PLANNER_TYPE, "scenarios")
    payload = import_data(exported.content, SCENARIO_PLANNER_TYPE)
    assert payload["scenarios"]["base"]["metrics"]["marketShare"] == 12.0
    assert ScenarioData.from_dict(payload) == scenario_data


def test_export_hands_file_to_writer(tmp_path):
    written = []
    exported = export_data({"x": 1}, "T", "plan", writer=written.append)
    assert written == [exported]

    path = directory_writer(tmp_path / "exports")(exported)
    assert path.read_bytes() == exported.content


def test_type_mismatch_carries_expected_and_actual():
    with pytest.raises(TypeMismatchError) as info:
        import_data(_envelope(type="B"), "A")
    assert info.value.expected == "A"
    assert info.value.actual == "B"
    assert "Expected A, got B" in str(info.value)


@pytest.mark.parametrize(
    "raw",
    [
        "not json",
        "[1, 2]",
        _envelope(version=1),
        _envelope(timestamp=None),
        _envelope(type=["T"]),
        json.dumps({"version": "1.0", "timestamp": "x", "type": "T"}),
    ],
)
def test_invalid_envelopes_raise_format_error(raw):
    with pytest.raises(FormatError):
        import_data(raw, "T")


def test_deeply_nested_json_raises_format_error():
    nested = "[" * 100_000 + "]" * 100_000
    with pytest.raises(FormatError):
        import_data(nested, "T")
    with pytest.raises(FormatError):
        import_data(_envelope(data=None).replace("null", nested), "T")


def test_import_accepts_file_like_sources():
    assert import_data(io.BytesIO(_envelope().encode("utf-8")), "T") == {"x": 1}
    assert import_data(io.StringIO(_envelope()), "T") == {"x": 1}


def test_import_rejects_non_utf8_bytes():
    with pytest.raises(FormatError):
        import_data(b"\xff\xfe\x00", "T")


def test_payload_is_returned_without_deep_validation():
    envelope = parse_envelope(_envelope(data={"anything": "goes"}))
    assert envelope.data == {"anything": "goes"}
    assert import_data(_envelope(data=None), "T") is None


def test_import_file_reads_exported_file(tmp_path):
    path = directory_writer(tmp_path)(export_data({"x": [1, 2]}, "T", "plan"))
    assert asyncio.run(import_file(path, "T")) == {"x": [1, 2]}


def test_import_file_propagates_read_errors(tmp_path):
    with pytest.raises(FileNotFoundError):
        asyncio.run(import_file(tmp_path / "missing.json", "T"))
