from __future__ import annotations

from dataclasses import replace

from scenario_planner.integrity_checks import run_integrity_checks
from scenario_planner.scenario_models import AggregateMetrics


def test_integrity_checks_pass_for_derived_data(scenario_data):
    assert run_integrity_checks(scenario_data) == []


def test_integrity_checks_detect_hand_edited_variant(scenario_data):
    optimistic = scenario_data.scenario("optimistic")
    edited = replace(optimistic, metrics=replace(optimistic.metrics, revenue=optimistic.metrics.revenue + 1.0))
    broken = replace(scenario_data, scenarios={**scenario_data.scenarios, "optimistic": edited})

    findings = run_integrity_checks(broken)
    fields = {(f["Scenario"], f["Field"]) for f in findings}
    assert ("optimistic", "revenue") in fields
    assert all(f["Check"] != "Derived metric drift" for f in findings)


def test_integrity_checks_detect_stale_aggregates(scenario_data):
    stale = replace(scenario_data, metrics=AggregateMetrics())
    checks = {f["Field"] for f in run_integrity_checks(stale) if f["Check"] == "Aggregate drift"}
    assert "expectedRevenue" in checks
    assert "marketShareRange.max" in checks
