from __future__ import annotations

from dataclasses import asdict, replace

import streamlit as st

from scenario_planner.comparison import METRIC_LABELS, comparison_csv_bytes, comparison_excel_bytes, scenario_comparison_frame
from scenario_planner.defaults import default_scenario_data
from scenario_planner.diagnostics import EVENT_KINDS, journal_path, read_events, report_transfer_error
from scenario_planner.errors import FormatError, InvalidInputError, StoreError, TypeMismatchError
from scenario_planner.formatting import format_currency, format_percentage
from scenario_planner.input_metadata import advisory_warnings, help_with_guidance
from scenario_planner.integrity_checks import run_integrity_checks
from scenario_planner.persistence import default_store, storage_root_path
from scenario_planner.scenario_engine import derive_scenario_data, rebalance_probabilities
from scenario_planner.scenario_models import (
    SCENARIO_PLANNER_TYPE,
    SCENARIO_ROLES,
    TRACKED_METRICS,
    CalculatorState,
    MetricAdjustment,
    ScenarioData,
    ScenarioMetrics,
)
from scenario_planner.schema import decode_payload
from scenario_planner.transfer import export_data, import_data


STORE = default_store()


def _widget_values_from(data: ScenarioData) -> dict:
    values = {"active_tab": data.active_tab if data.active_tab in SCENARIO_ROLES else "base"}
    base = data.scenario("base").metrics
    for metric in TRACKED_METRICS:
        values[f"base_{metric}"] = float(getattr(base, metric))
        adjustment = data.adjustments.get(metric, MetricAdjustment())
        values[f"opt_{metric}"] = float(adjustment.optimistic_multiplier)
        values[f"pes_{metric}"] = float(adjustment.pessimistic_multiplier)
    for role in SCENARIO_ROLES:
        values[f"prob_{role}"] = float(data.scenario(role).probability)
    return values


def _remember_probabilities() -> None:
    st.session_state["applied_probabilities"] = {r: st.session_state[f"prob_{r}"] for r in SCENARIO_ROLES}


def _on_probability_change(role: str) -> None:
    template = default_scenario_data()
    previous = st.session_state["applied_probabilities"]
    scenarios = {r: replace(template.scenario(r), probability=previous[r]) for r in SCENARIO_ROLES}
    rebalanced = rebalance_probabilities(replace(template, scenarios=scenarios), role, st.session_state[f"prob_{role}"])
    for r in SCENARIO_ROLES:
        st.session_state[f"prob_{r}"] = rebalanced.scenario(r).probability
    _remember_probabilities()


def _init_state() -> None:
    if "planner_initialized" not in st.session_state:
        st.session_state.update(_widget_values_from(default_scenario_data()))
        st.session_state["planner_initialized"] = True
    pending = st.session_state.pop("pending_widget_values", None)
    if pending:
        st.session_state.update(pending)
    if pending or "applied_probabilities" not in st.session_state:
        _remember_probabilities()


def _queue_load(data: ScenarioData) -> None:
    # Widget keys can only be changed before the widgets render.
    st.session_state["pending_widget_values"] = _widget_values_from(data)
    st.rerun()


def _scenario_data_from_state() -> ScenarioData:
    template = default_scenario_data()
    base_metrics = ScenarioMetrics(**{m: st.session_state[f"base_{m}"] for m in TRACKED_METRICS})
    scenarios = {
        role: replace(
            template.scenario(role),
            metrics=base_metrics if role == "base" else template.scenario(role).metrics,
            probability=st.session_state[f"prob_{role}"],
        )
        for role in SCENARIO_ROLES
    }
    adjustments = {
        m: MetricAdjustment(st.session_state[f"opt_{m}"], st.session_state[f"pes_{m}"]) for m in TRACKED_METRICS
    }
    data = ScenarioData(scenarios=scenarios, adjustments=adjustments, active_tab=st.session_state["active_tab"])
    return derive_scenario_data(data)


_init_state()

st.title("Scenario Planner")
st.caption("Derive optimistic and pessimistic cases from a base case with per-metric multipliers.")

with st.sidebar:
    st.subheader("Base Case")
    for metric in TRACKED_METRICS:
        st.number_input(METRIC_LABELS[metric], key=f"base_{metric}", help=help_with_guidance(metric))
    st.subheader("Probabilities")
    for role in SCENARIO_ROLES:
        st.number_input(
            f"{role.title()} probability",
            step=0.05,
            key=f"prob_{role}",
            on_change=_on_probability_change,
            args=(role,),
        )

st.subheader("Adjustments")
adj_cols = st.columns(2)
for metric in TRACKED_METRICS:
    adj_cols[0].number_input(f"{METRIC_LABELS[metric]} optimistic x", step=0.05, key=f"opt_{metric}")
    adj_cols[1].number_input(f"{METRIC_LABELS[metric]} pessimistic x", step=0.05, key=f"pes_{metric}")

st.radio("Active scenario", options=list(SCENARIO_ROLES), key="active_tab", horizontal=True)

try:
    scenario_data = _scenario_data_from_state()
except InvalidInputError as exc:
    st.error(f"Invalid input: {exc}")
    st.stop()

for warning in advisory_warnings(scenario_data):
    st.warning(warning)

agg = scenario_data.metrics
c1, c2, c3, c4 = st.columns(4)
c1.metric("Expected Revenue", format_currency(agg.expected_revenue))
c2.metric("Expected Profit", format_currency(agg.expected_profit))
c3.metric(
    "Market Share Range",
    f"{format_percentage(agg.market_share_range.min)} - {format_percentage(agg.market_share_range.max)}",
)
c4.metric(
    "Customer Growth Range",
    f"{format_percentage(agg.customer_growth_range.min)} - {format_percentage(agg.customer_growth_range.max)}",
)

st.dataframe(scenario_comparison_frame(scenario_data), hide_index=True)
findings = run_integrity_checks(scenario_data)
if findings:
    st.error(f"{len(findings)} integrity finding(s) detected.")

st.download_button(
    "Download Comparison (CSV)",
    comparison_csv_bytes(scenario_data),
    file_name="scenario_comparison.csv",
    mime="text/csv",
)
try:
    excel_bytes = comparison_excel_bytes(scenario_data)
except Exception as exc:
    report_transfer_error("export", exc, "scenario_comparison.xlsx")
    st.warning("Excel export is unavailable in this environment. CSV export still works.")
else:
    st.download_button(
        "Download Comparison (Excel)",
        excel_bytes,
        file_name="scenario_comparison.xlsx",
        mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    )

st.subheader("Saved States")
save_name = st.text_input("Save Name")
if st.button("Save State", disabled=not save_name.strip()):
    try:
        STORE.save_state(CalculatorState.create(save_name.strip(), SCENARIO_PLANNER_TYPE, scenario_data))
    except StoreError as exc:
        st.error(f"Save failed: {exc}")
    else:
        st.success(f"Saved: {save_name.strip()}")

saved_states = STORE.get_states_by_type(SCENARIO_PLANNER_TYPE)
states_by_id = {s.id: s for s in saved_states}
selected_id = st.selectbox(
    "Saved Scenarios",
    options=list(states_by_id),
    format_func=lambda state_id: states_by_id[state_id].name,
)
load_col, delete_col, clear_col = st.columns(3)
if load_col.button("Load State", disabled=selected_id is None):
    try:
        loaded = decode_payload(states_by_id[selected_id])
    except InvalidInputError as exc:
        st.error(f"Saved state could not be loaded: {exc}")
    else:
        _queue_load(loaded)
if delete_col.button("Delete State", disabled=selected_id is None):
    try:
        STORE.delete_state(selected_id)
    except StoreError as exc:
        st.error(f"Delete failed: {exc}")
    else:
        st.rerun()
if clear_col.button("Clear All States"):
    try:
        STORE.clear_all_states()
    except StoreError as exc:
        st.error(f"Clear failed: {exc}")
    else:
        st.rerun()

st.subheader("Import/Export")
exported = export_data(scenario_data, SCENARIO_PLANNER_TYPE, "scenario-planner")
st.download_button("Export Scenario JSON", exported.content, file_name=exported.filename, mime=exported.mime)
import_file = st.file_uploader("Import Scenario JSON", type=["json"])
if st.button("Apply Imported JSON", disabled=import_file is None):
    try:
        imported = ScenarioData.from_dict(import_data(import_file, SCENARIO_PLANNER_TYPE))
    except (FormatError, TypeMismatchError, InvalidInputError) as exc:
        report_transfer_error("import", exc, getattr(import_file, "name", None))
        st.error(f"Import failed: {exc}")
    else:
        _queue_load(imported)

with st.expander("Diagnostics", expanded=False):
    st.caption(f"Storage root: {storage_root_path()}")
    st.caption(f"Diagnostics journal: {journal_path()}")
    kind = st.selectbox("Event kind", options=["all", *EVENT_KINDS], key="diagnostics_kind")
    events = read_events(kind=None if kind == "all" else kind, limit=50)
    if events:
        st.json([asdict(event) for event in reversed(events)])
    else:
        st.caption("No events recorded.")
