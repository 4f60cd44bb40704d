from __future__ import annotations

from pathlib import Path

import pytest

import scenario_planner.diagnostics as diagnostics
from scenario_planner.defaults import default_scenario_data
from scenario_planner.persistence import MemoryBackend, StateStore
from scenario_planner.scenario_engine import derive_scenario_data
from scenario_planner.scenario_models import MetricAdjustment, ScenarioMetrics


@pytest.fixture(autouse=True)
def isolated_journal(tmp_path, monkeypatch):
    monkeypatch.setattr(diagnostics, "JOURNAL_FILE", Path(tmp_path) / "diagnostics.jsonl")


@pytest.fixture
def base_metrics() -> ScenarioMetrics:
    return ScenarioMetrics(
        revenue=100_000.0,
        costs=40_000.0,
        market_share=12.0,
        customer_growth=8.0,
        baseline_clients=250.0,
        operating_expenses=20_000.0,
        profit_margin=25.0,
    )


@pytest.fixture
def adjustments() -> dict[str, MetricAdjustment]:
    return {
        "revenue": MetricAdjustment(1.2, 0.8),
        "costs": MetricAdjustment(0.9, 1.15),
        "market_share": MetricAdjustment(1.25, 0.75),
        "customer_growth": MetricAdjustment(1.5, 0.5),
        "baseline_clients": MetricAdjustment(1.1, 0.9),
        "operating_expenses": MetricAdjustment(0.95, 1.1),
        "profit_margin": MetricAdjustment(1.1, 0.85),
    }


@pytest.fixture
def scenario_data(base_metrics):
    return derive_scenario_data(default_scenario_data(base_metrics))


@pytest.fixture
def memory_store() -> StateStore:
    return StateStore(MemoryBackend())
