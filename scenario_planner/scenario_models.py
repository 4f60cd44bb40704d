"""Scenario planner data model and JSON codecs."""

from __future__ import annotations

import time
from dataclasses import dataclass, field, fields, replace
from typing import Any, Mapping
from uuid import uuid4

import numpy as np

from scenario_planner.errors import InvalidInputError


SCENARIO_PLANNER_TYPE = "scenario-planner"

SCENARIO_ROLES = ("base", "optimistic", "pessimistic")
VARIANTS = ("optimistic", "pessimistic")

TRACKED_METRICS = (
    "revenue",
    "costs",
    "market_share",
    "customer_growth",
    "baseline_clients",
    "operating_expenses",
    "profit_margin",
)
DERIVED_METRICS = ("expected_revenue", "expected_profit")

JSON_KEY_BY_FIELD = {
    "revenue": "revenue",
    "costs": "costs",
    "market_share": "marketShare",
    "customer_growth": "customerGrowth",
    "baseline_clients": "baselineClients",
    "operating_expenses": "operatingExpenses",
    "profit_margin": "profitMargin",
    "expected_revenue": "expectedRevenue",
    "expected_profit": "expectedProfit",
}
FIELD_BY_JSON_KEY = {json_key: name for name, json_key in JSON_KEY_BY_FIELD.items()}


def metric_field_name(name: str) -> str:
    """Accept either the attribute name or the JSON key of a metric."""
    if name in JSON_KEY_BY_FIELD:
        return name
    if name in FIELD_BY_JSON_KEY:
        return FIELD_BY_JSON_KEY[name]
    raise InvalidInputError(f"Unknown metric: {name}")


def coerce_number(value: Any, label: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float, np.integer, np.floating)):
        raise InvalidInputError(f"{label} must be numeric, got {type(value).__name__}.")
    number = float(value)
    if not np.isfinite(number):
        raise InvalidInputError(f"{label} must be finite, got {number}.")
    return number


def _require_str(payload: Mapping[str, Any], key: str, label: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str):
        raise InvalidInputError(f"{label}.{key} must be a string.")
    return value


def _require_mapping(value: Any, label: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise InvalidInputError(f"{label} must be an object.")
    return value


def now_epoch_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class ScenarioMetrics:
    revenue: float = 0.0
    costs: float = 0.0
    market_share: float = 0.0
    customer_growth: float = 0.0
    baseline_clients: float = 0.0
    operating_expenses: float = 0.0
    profit_margin: float = 0.0
    expected_revenue: float = 0.0
    expected_profit: float = 0.0

    def to_dict(self) -> dict[str, float]:
        return {JSON_KEY_BY_FIELD[f.name]: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_dict(cls, payload: Any, label: str = "metrics") -> "ScenarioMetrics":
        """Build metrics from camelCase or snake_case keys.

        Tracked metrics are required; the two derived metrics default to 0.0
        because the engine recomputes them anyway.
        """
        payload = _require_mapping(payload, label)
        values: dict[str, float] = {}
        for key, raw in payload.items():
            if key in JSON_KEY_BY_FIELD or key in FIELD_BY_JSON_KEY:
                name = metric_field_name(key)
                values[name] = coerce_number(raw, f"{label}.{key}")
        missing = [JSON_KEY_BY_FIELD[name] for name in TRACKED_METRICS if name not in values]
        if missing:
            raise InvalidInputError(f"{label} is missing required metrics: {', '.join(missing)}.")
        return cls(**values)


@dataclass(frozen=True)
class MetricAdjustment:
    optimistic_multiplier: float = 1.0
    pessimistic_multiplier: float = 1.0

    def multiplier_for(self, variant: str) -> float:
        if variant == "optimistic":
            return self.optimistic_multiplier
        if variant == "pessimistic":
            return self.pessimistic_multiplier
        raise InvalidInputError(f"Unsupported scenario variant: {variant}")

    def to_dict(self) -> dict[str, float]:
        return {
            "optimisticMultiplier": self.optimistic_multiplier,
            "pessimisticMultiplier": self.pessimistic_multiplier,
        }

    @classmethod
    def from_dict(cls, payload: Any, label: str = "adjustment") -> "MetricAdjustment":
        if isinstance(payload, MetricAdjustment):
            return payload
        payload = _require_mapping(payload, label)
        optimistic = payload.get("optimisticMultiplier", payload.get("optimistic_multiplier"))
        pessimistic = payload.get("pessimisticMultiplier", payload.get("pessimistic_multiplier"))
        return cls(
            optimistic_multiplier=coerce_number(optimistic, f"{label}.optimisticMultiplier"),
            pessimistic_multiplier=coerce_number(pessimistic, f"{label}.pessimisticMultiplier"),
        )


@dataclass(frozen=True)
class Scenario:
    id: str
    name: str
    description: str = ""
    metrics: ScenarioMetrics = field(default_factory=ScenarioMetrics)
    probability: float = 0.0

    def with_metrics(self, metrics: ScenarioMetrics) -> "Scenario":
        return replace(self, metrics=metrics)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "metrics": self.metrics.to_dict(),
            "probability": self.probability,
        }

    @classmethod
    def from_dict(cls, payload: Any, label: str = "scenario") -> "Scenario":
        payload = _require_mapping(payload, label)
        return cls(
            id=_require_str(payload, "id", label),
            name=_require_str(payload, "name", label),
            description=str(payload.get("description", "")),
            metrics=ScenarioMetrics.from_dict(payload.get("metrics"), f"{label}.metrics"),
            probability=coerce_number(payload.get("probability"), f"{label}.probability"),
        )


@dataclass(frozen=True)
class Range:
    min: float = 0.0
    max: float = 0.0

    @classmethod
    def spanning(cls, a: float, b: float) -> "Range":
        return cls(min=min(a, b), max=max(a, b))

    def to_dict(self) -> dict[str, float]:
        return {"min": self.min, "max": self.max}


@dataclass(frozen=True)
class AggregateMetrics:
    expected_revenue: float = 0.0
    expected_profit: float = 0.0
    market_share_range: Range = field(default_factory=Range)
    customer_growth_range: Range = field(default_factory=Range)

    def to_dict(self) -> dict[str, Any]:
        return {
            "expectedRevenue": self.expected_revenue,
            "expectedProfit": self.expected_profit,
            "marketShareRange": self.market_share_range.to_dict(),
            "customerGrowthRange": self.customer_growth_range.to_dict(),
        }

    @classmethod
    def from_dict(cls, payload: Any, label: str = "metrics") -> "AggregateMetrics":
        if payload is None:
            return cls()
        payload = _require_mapping(payload, label)

        def _range(key: str) -> Range:
            raw = payload.get(key) or {}
            raw = _require_mapping(raw, f"{label}.{key}")
            return Range(
                min=coerce_number(raw.get("min", 0.0), f"{label}.{key}.min"),
                max=coerce_number(raw.get("max", 0.0), f"{label}.{key}.max"),
            )

        return cls(
            expected_revenue=coerce_number(payload.get("expectedRevenue", 0.0), f"{label}.expectedRevenue"),
            expected_profit=coerce_number(payload.get("expectedProfit", 0.0), f"{label}.expectedProfit"),
            market_share_range=_range("marketShareRange"),
            customer_growth_range=_range("customerGrowthRange"),
        )


@dataclass(frozen=True)
class ScenarioData:
    scenarios: dict[str, Scenario]
    adjustments: dict[str, MetricAdjustment]
    metrics: AggregateMetrics = field(default_factory=AggregateMetrics)
    active_tab: str = "base"

    def __post_init__(self) -> None:
        roles = set(self.scenarios)
        if roles != set(SCENARIO_ROLES):
            raise InvalidInputError(f"Scenario data needs exactly the roles {', '.join(SCENARIO_ROLES)}; got {sorted(roles)}.")

    def scenario(self, role: str) -> Scenario:
        return self.scenarios[role]

    def to_dict(self) -> dict[str, Any]:
        return {
            "scenarios": {role: self.scenarios[role].to_dict() for role in SCENARIO_ROLES},
            "adjustments": {
                JSON_KEY_BY_FIELD[name]: adjustment.to_dict() for name, adjustment in self.adjustments.items()
            },
            "activeTab": self.active_tab,
            "metrics": self.metrics.to_dict(),
        }

    @classmethod
    def from_dict(cls, payload: Any) -> "ScenarioData":
        payload = _require_mapping(payload, "scenarioData")
        raw_scenarios = _require_mapping(payload.get("scenarios"), "scenarios")
        scenarios = {
            role: Scenario.from_dict(raw_scenarios.get(role), f"scenarios.{role}") for role in SCENARIO_ROLES
        }
        raw_adjustments = _require_mapping(payload.get("adjustments", {}), "adjustments")
        adjustments = {
            metric_field_name(key): MetricAdjustment.from_dict(raw, f"adjustments.{key}")
            for key, raw in raw_adjustments.items()
        }
        active_tab = payload.get("activeTab", "base")
        return cls(
            scenarios=scenarios,
            adjustments=adjustments,
            metrics=AggregateMetrics.from_dict(payload.get("metrics")),
            active_tab=str(active_tab),
        )


@dataclass(frozen=True)
class CalculatorState:
    id: str
    name: str
    timestamp: float
    calculator_type: str
    data: Any = None

    @classmethod
    def create(cls, name: str, calculator_type: str, data: Any) -> "CalculatorState":
        if hasattr(data, "to_dict"):
            data = data.to_dict()
        return cls(
            id=uuid4().hex,
            name=name,
            timestamp=now_epoch_ms(),
            calculator_type=calculator_type,
            data=data,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "timestamp": self.timestamp,
            "calculatorType": self.calculator_type,
            "data": self.data,
        }
