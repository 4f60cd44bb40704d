from __future__ import annotations

from io import BytesIO

import pandas as pd
import pytest

from scenario_planner.comparison import (
    comparison_csv_bytes,
    comparison_excel_bytes,
    probability_frame,
    scenario_comparison_frame,
)


def test_comparison_frame_has_one_row_per_metric(scenario_data):
    df = scenario_comparison_frame(scenario_data)
    assert len(df) == 9
    revenue = df.loc[df["Metric"] == "Revenue"].iloc[0]
    assert revenue["Base"] == 100_000.0
    assert revenue["Delta Optimistic"] == pytest.approx(10_000.0)
    assert revenue["Delta Pessimistic"] == pytest.approx(-10_000.0)
    assert revenue["Optimistic Multiplier"] == 1.1
    expected_profit = df.loc[df["Metric"] == "Expected Profit"].iloc[0]
    assert pd.isna(expected_profit["Optimistic Multiplier"])


def test_probability_frame_weights_each_scenario(scenario_data):
    df = probability_frame(scenario_data)
    assert df["Probability"].sum() == pytest.approx(1.0)
    assert df["Weighted Revenue"].sum() == pytest.approx(scenario_data.metrics.expected_revenue)


def test_tabular_exports(scenario_data):
    csv_text = comparison_csv_bytes(scenario_data).decode("utf-8")
    assert csv_text.splitlines()[0].startswith("Metric,Base,Optimistic,Pessimistic")

    sheets = pd.read_excel(BytesIO(comparison_excel_bytes(scenario_data)), sheet_name=None, engine="openpyxl")
    assert set(sheets) == {"comparison", "probabilities"}
    assert len(sheets["comparison"]) == 9
