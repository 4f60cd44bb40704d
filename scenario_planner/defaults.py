"""Default scenario planner payload."""

from __future__ import annotations

from scenario_planner.scenario_models import (
    MetricAdjustment,
    Scenario,
    ScenarioData,
    ScenarioMetrics,
    TRACKED_METRICS,
)


DEFAULT_PROBABILITIES = {"base": 0.6, "optimistic": 0.2, "pessimistic": 0.2}
DEFAULT_OPTIMISTIC_MULTIPLIER = 1.1
DEFAULT_PESSIMISTIC_MULTIPLIER = 0.9

SCENARIO_LABELS = {
    "base": ("Base Case", "Expected scenario based on current trends"),
    "optimistic": ("Optimistic Case", "Best-case scenario with favorable conditions"),
    "pessimistic": ("Pessimistic Case", "Worst-case scenario with challenging conditions"),
}


def default_adjustments() -> dict[str, MetricAdjustment]:
    return {
        metric: MetricAdjustment(DEFAULT_OPTIMISTIC_MULTIPLIER, DEFAULT_PESSIMISTIC_MULTIPLIER)
        for metric in TRACKED_METRICS
    }


def default_scenario_data(base_metrics: ScenarioMetrics | None = None) -> ScenarioData:
    """Return an underived planner payload; run it through derive_scenario_data before use."""
    scenarios = {}
    for role, (name, description) in SCENARIO_LABELS.items():
        scenarios[role] = Scenario(
            id=role,
            name=name,
            description=description,
            metrics=base_metrics if (role == "base" and base_metrics is not None) else ScenarioMetrics(),
            probability=DEFAULT_PROBABILITIES[role],
        )
    return ScenarioData(scenarios=scenarios, adjustments=default_adjustments(), active_tab="base")
