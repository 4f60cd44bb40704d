"""Derive optimistic and pessimistic scenarios from a base case."""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Mapping

from scenario_planner.errors import InvalidInputError
from scenario_planner.scenario_models import (
    AggregateMetrics,
    MetricAdjustment,
    Range,
    SCENARIO_ROLES,
    ScenarioData,
    ScenarioMetrics,
    TRACKED_METRICS,
    VARIANTS,
    coerce_number,
    metric_field_name,
)


def _base_values(base: ScenarioMetrics | Mapping[str, Any]) -> dict[str, float]:
    if isinstance(base, ScenarioMetrics):
        raw = {name: getattr(base, name) for name in TRACKED_METRICS}
    elif isinstance(base, Mapping):
        raw = {}
        for key, value in base.items():
            try:
                raw[metric_field_name(key)] = value
            except InvalidInputError:
                continue
    else:
        raise InvalidInputError(f"Base metrics must be ScenarioMetrics or a mapping, got {type(base).__name__}.")

    values: dict[str, float] = {}
    for name in TRACKED_METRICS:
        if name not in raw:
            raise InvalidInputError(f"Base metric {name} is missing.")
        values[name] = coerce_number(raw[name], f"base.{name}")
    return values


def _normalize_adjustments(adjustment_set: Mapping[str, Any]) -> dict[str, MetricAdjustment]:
    if not isinstance(adjustment_set, Mapping):
        raise InvalidInputError("Adjustment set must be a mapping of metric name to multipliers.")
    out: dict[str, MetricAdjustment] = {}
    for key, raw in adjustment_set.items():
        name = metric_field_name(key)
        if name not in TRACKED_METRICS:
            # Derived metrics are recomputed, never scaled.
            continue
        adjustment = MetricAdjustment.from_dict(raw, f"adjustments.{key}")
        coerce_number(adjustment.optimistic_multiplier, f"adjustments.{key}.optimisticMultiplier")
        coerce_number(adjustment.pessimistic_multiplier, f"adjustments.{key}.pessimisticMultiplier")
        out[name] = adjustment
    return out


def _with_derived(values: Mapping[str, float]) -> ScenarioMetrics:
    revenue = values["revenue"]
    return ScenarioMetrics(
        **{name: values[name] for name in TRACKED_METRICS},
        expected_revenue=revenue,
        expected_profit=revenue - values["costs"] - values["operating_expenses"],
    )


def refresh_derived_metrics(metrics: ScenarioMetrics | Mapping[str, Any]) -> ScenarioMetrics:
    """Recompute expected revenue/profit from a scenario's own primary metrics."""
    return _with_derived(_base_values(metrics))


def derive_scenario(
    base: ScenarioMetrics | Mapping[str, Any],
    adjustment_set: Mapping[str, Any],
    variant: str,
) -> ScenarioMetrics:
    """Scale every adjusted base metric by the multiplier selected by variant.

    Tracked metrics without an adjustment are carried over unchanged. The
    expected revenue/profit fields are recomputed from the scaled values so
    they stay consistent with their components.
    """
    if variant not in VARIANTS:
        raise InvalidInputError(f"Unsupported scenario variant: {variant}")
    values = _base_values(base)
    adjustments = _normalize_adjustments(adjustment_set)
    scaled = {
        name: value * adjustments[name].multiplier_for(variant) if name in adjustments else value
        for name, value in values.items()
    }
    return _with_derived(scaled)


def compute_aggregate_ranges(scenario_data: ScenarioData) -> AggregateMetrics:
    """Probability-weighted expectations plus sorted market share / growth ranges."""
    scenarios = [scenario_data.scenario(role) for role in SCENARIO_ROLES]
    expected_revenue = sum(s.probability * s.metrics.expected_revenue for s in scenarios)
    expected_profit = sum(s.probability * s.metrics.expected_profit for s in scenarios)

    optimistic = scenario_data.scenario("optimistic").metrics
    pessimistic = scenario_data.scenario("pessimistic").metrics
    return AggregateMetrics(
        expected_revenue=float(expected_revenue),
        expected_profit=float(expected_profit),
        market_share_range=Range.spanning(optimistic.market_share, pessimistic.market_share),
        customer_growth_range=Range.spanning(optimistic.customer_growth, pessimistic.customer_growth),
    )


def derive_scenario_data(scenario_data: ScenarioData) -> ScenarioData:
    """Return a new ScenarioData with both variants re-derived from the base case."""
    base = scenario_data.scenario("base")
    base = base.with_metrics(refresh_derived_metrics(base.metrics))
    scenarios = {"base": base}
    for variant in VARIANTS:
        derived = derive_scenario(base.metrics, scenario_data.adjustments, variant)
        scenarios[variant] = scenario_data.scenario(variant).with_metrics(derived)

    out = replace(scenario_data, scenarios=scenarios, adjustments=dict(scenario_data.adjustments))
    return replace(out, metrics=compute_aggregate_ranges(out))


def rebalance_probabilities(scenario_data: ScenarioData, role: str, probability: float) -> ScenarioData:
    """Set one scenario's probability and spread the difference over the others.

    The other scenarios absorb the change in proportion to their current
    weights (equally when they are all zero) and are floored at zero.
    """
    if role not in SCENARIO_ROLES:
        raise InvalidInputError(f"Unknown scenario role: {role}")
    probability = coerce_number(probability, f"{role}.probability")
    difference = probability - scenario_data.scenario(role).probability
    others = [r for r in SCENARIO_ROLES if r != role]
    total_other = sum(scenario_data.scenario(r).probability for r in others)

    scenarios = {role: replace(scenario_data.scenario(role), probability=probability)}
    for other in others:
        current = scenario_data.scenario(other)
        share = current.probability / total_other if total_other else 1.0 / len(others)
        scenarios[other] = replace(current, probability=max(0.0, current.probability - difference * share))

    out = replace(scenario_data, scenarios=scenarios)
    return replace(out, metrics=compute_aggregate_ranges(out))
