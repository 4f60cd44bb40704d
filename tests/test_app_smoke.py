from __future__ import annotations

from pathlib import Path

import pytest
from streamlit.testing.v1 import AppTest

import scenario_planner.persistence as persistence
from scenario_planner.scenario_models import SCENARIO_PLANNER_TYPE


APP_PATH = str(Path(__file__).resolve().parents[1] / "app.py")


@pytest.fixture(autouse=True)
def isolated_store(tmp_path, monkeypatch):
    monkeypatch.setattr(persistence, "STORE_DIR", Path(tmp_path) / "store")


def _widget_by_label(widgets, label: str):
    matches = [w for w in widgets if getattr(w, "label", "") == label]
    assert matches, f"Widget not found for label: {label}"
    return matches[0]


def test_app_initial_run_has_no_exceptions():
    at = AppTest.from_file(APP_PATH)
    at.run(timeout=60)
    assert len(at.exception) == 0
    assert len(at.error) == 0


def test_save_state_flow_persists_scenario():
    at = AppTest.from_file(APP_PATH)
    at.run(timeout=60)
    at.number_input(key="base_revenue").set_value(50_000.0)
    at.run(timeout=60)
    _widget_by_label(at.text_input, "Save Name").set_value("smoke plan")
    at.run(timeout=60)
    _widget_by_label(at.button, "Save State").click()
    at.run(timeout=60)
    assert len(at.exception) == 0

    states = persistence.default_store().get_states_by_type(SCENARIO_PLANNER_TYPE)
    assert [s.name for s in states] == ["smoke plan"]
    assert states[0].data["scenarios"]["optimistic"]["metrics"]["revenue"] == pytest.approx(55_000.0)


def test_editing_one_probability_rebalances_the_others():
    at = AppTest.from_file(APP_PATH)
    at.run(timeout=60)
    at.number_input(key="prob_base").set_value(0.5)
    at.run(timeout=60)
    assert len(at.exception) == 0
    assert at.number_input(key="prob_optimistic").value == pytest.approx(0.25)
    assert at.number_input(key="prob_pessimistic").value == pytest.approx(0.25)

    at.number_input(key="prob_optimistic").set_value(0.45)
    at.run(timeout=60)
    assert at.number_input(key="prob_base").value == pytest.approx(0.5 - 0.2 * (0.5 / 0.75))
    assert at.number_input(key="prob_pessimistic").value == pytest.approx(0.25 - 0.2 * (0.25 / 0.75))
    total = sum(at.number_input(key=f"prob_{role}").value for role in ("base", "optimistic", "pessimistic"))
    assert total == pytest.approx(1.0)
