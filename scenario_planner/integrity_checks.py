"""Consistency checks between stored scenarios and a fresh derivation."""

from __future__ import annotations

from typing import Any

import numpy as np

from scenario_planner.scenario_engine import derive_scenario_data
from scenario_planner.scenario_models import JSON_KEY_BY_FIELD, SCENARIO_ROLES, ScenarioData


def _finding(check: str, role: str, field: str, stored: float, expected: float) -> dict[str, Any]:
    return {
        "Check": check,
        "Scenario": role,
        "Field": field,
        "Stored": float(stored),
        "Expected": float(expected),
        "Abs Delta": float(abs(stored - expected)),
    }


def run_integrity_checks(scenario_data: ScenarioData, tol: float = 1e-6) -> list[dict[str, Any]]:
    """Return findings where stored values drift from the re-derived ones.

    An empty list means every scenario (and the aggregate metrics) can be
    reproduced from the base case and the adjustment multipliers.
    """
    expected = derive_scenario_data(scenario_data)
    findings: list[dict[str, Any]] = []

    for role in SCENARIO_ROLES:
        stored_metrics = scenario_data.scenario(role).metrics
        expected_metrics = expected.scenario(role).metrics
        names = list(JSON_KEY_BY_FIELD)
        stored_values = np.array([getattr(stored_metrics, n) for n in names], dtype=float)
        expected_values = np.array([getattr(expected_metrics, n) for n in names], dtype=float)
        delta = np.abs(stored_values - expected_values)
        for idx in np.flatnonzero(delta > tol):
            name = names[int(idx)]
            check = "Derived metric drift" if role == "base" else "Adjusted metric drift"
            findings.append(_finding(check, role, JSON_KEY_BY_FIELD[name], stored_values[idx], expected_values[idx]))

    stored_agg = scenario_data.metrics
    expected_agg = expected.metrics
    pairs = {
        "expectedRevenue": (stored_agg.expected_revenue, expected_agg.expected_revenue),
        "expectedProfit": (stored_agg.expected_profit, expected_agg.expected_profit),
        "marketShareRange.min": (stored_agg.market_share_range.min, expected_agg.market_share_range.min),
        "marketShareRange.max": (stored_agg.market_share_range.max, expected_agg.market_share_range.max),
        "customerGrowthRange.min": (stored_agg.customer_growth_range.min, expected_agg.customer_growth_range.min),
        "customerGrowthRange.max": (stored_agg.customer_growth_range.max, expected_agg.customer_growth_range.max),
    }
    for field, (stored, exp) in pairs.items():
        if abs(float(stored) - float(exp)) > tol:
            findings.append(_finding("Aggregate drift", "all", field, stored, exp))
    return findings
