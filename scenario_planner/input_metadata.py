"""Input guidance and advisory checks for scenario planner inputs."""

from __future__ import annotations

from typing import Any

from scenario_planner.scenario_models import JSON_KEY_BY_FIELD, SCENARIO_ROLES, ScenarioData


INPUT_GUIDANCE: dict[str, dict[str, Any]] = {
    "revenue": {"min": 0.0, "note": "Annual revenue for the scenario."},
    "costs": {"min": 0.0, "note": "Direct costs of goods or services sold."},
    "market_share": {"min": 0.0, "max": 100.0, "note": "Share of the addressable market, in percent."},
    "customer_growth": {"note": "Expected customer growth rate, in percent."},
    "baseline_clients": {"min": 0.0, "note": "Number of clients at the start of the period."},
    "operating_expenses": {"min": 0.0, "note": "Overhead not included in direct costs."},
    "profit_margin": {"min": 0.0, "max": 100.0, "note": "Target profit margin, in percent."},
}

PERCENT_METRICS = ("market_share", "profit_margin")
PROBABILITY_TOLERANCE = 1e-6


def help_with_guidance(metric: str, base_help: str = "") -> str:
    guidance = INPUT_GUIDANCE.get(metric)
    if not guidance:
        return base_help
    parts = [base_help] if base_help else []
    parts.append(guidance["note"])
    if "min" in guidance and "max" in guidance:
        parts.append(f"Typical range: {guidance['min']:g} to {guidance['max']:g}.")
    return " ".join(parts)


def advisory_warnings(scenario_data: ScenarioData) -> list[str]:
    """Return non-blocking warnings; the data itself is never changed."""
    warnings: list[str] = []

    total = sum(scenario_data.scenario(role).probability for role in SCENARIO_ROLES)
    if abs(total - 1.0) > PROBABILITY_TOLERANCE:
        warnings.append(f"Scenario probabilities sum to {total:.2f}; expected values are not renormalized.")

    for role in SCENARIO_ROLES:
        metrics = scenario_data.scenario(role).metrics
        for name in PERCENT_METRICS:
            value = getattr(metrics, name)
            if value < 0.0 or value > 100.0:
                warnings.append(f"{role} {JSON_KEY_BY_FIELD[name]} is {value:g}, outside 0-100%.")

    for name, adjustment in scenario_data.adjustments.items():
        if adjustment.optimistic_multiplier <= 0 or adjustment.pessimistic_multiplier <= 0:
            warnings.append(f"{JSON_KEY_BY_FIELD[name]} has a non-positive multiplier; derived values may flip sign.")
    return warnings
