"""Side-by-side scenario comparison tables and tabular exports."""

from __future__ import annotations

from io import BytesIO

import pandas as pd

from scenario_planner.scenario_models import JSON_KEY_BY_FIELD, SCENARIO_ROLES, ScenarioData


METRIC_LABELS = {
    "revenue": "Revenue",
    "costs": "Costs",
    "market_share": "Market Share (%)",
    "customer_growth": "Customer Growth (%)",
    "baseline_clients": "Baseline Clients",
    "operating_expenses": "Operating Expenses",
    "profit_margin": "Profit Margin (%)",
    "expected_revenue": "Expected Revenue",
    "expected_profit": "Expected Profit",
}


def scenario_comparison_frame(scenario_data: ScenarioData) -> pd.DataFrame:
    """One row per metric with each scenario's value and its delta from base."""
    rows = []
    base = scenario_data.scenario("base").metrics
    for name in JSON_KEY_BY_FIELD:
        row = {"Metric": METRIC_LABELS[name]}
        for role in SCENARIO_ROLES:
            row[role.title()] = float(getattr(scenario_data.scenario(role).metrics, name))
        for role in ("optimistic", "pessimistic"):
            row[f"Delta {role.title()}"] = row[role.title()] - float(getattr(base, name))
        adjustment = scenario_data.adjustments.get(name)
        row["Optimistic Multiplier"] = adjustment.optimistic_multiplier if adjustment else None
        row["Pessimistic Multiplier"] = adjustment.pessimistic_multiplier if adjustment else None
        rows.append(row)
    return pd.DataFrame(rows)


def probability_frame(scenario_data: ScenarioData) -> pd.DataFrame:
    rows = []
    for role in SCENARIO_ROLES:
        scenario = scenario_data.scenario(role)
        rows.append(
            {
                "Scenario": scenario.name,
                "Probability": scenario.probability,
                "Weighted Revenue": scenario.probability * scenario.metrics.expected_revenue,
                "Weighted Profit": scenario.probability * scenario.metrics.expected_profit,
            }
        )
    return pd.DataFrame(rows)


def comparison_csv_bytes(scenario_data: ScenarioData) -> bytes:
    return scenario_comparison_frame(scenario_data).to_csv(index=False).encode("utf-8")


def comparison_excel_bytes(scenario_data: ScenarioData) -> bytes:
    output = BytesIO()
    with pd.ExcelWriter(output, engine="openpyxl") as writer:
        scenario_comparison_frame(scenario_data).to_excel(writer, sheet_name="comparison", index=False)
        probability_frame(scenario_data).to_excel(writer, sheet_name="probabilities", index=False)
    return output.getvalue()
