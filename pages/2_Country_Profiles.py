"""
Country Profiles page — review and edit the scenario the simulator runs on.

Layout:
  - Sidebar: country selector, reset buttons, scenario export/import
  - Main area:
    1. Customs parameters (clearance fee, insurance, allocation, defaults)
    2. Group and product rate tables
    3. Regulations and trade terms
    4. Tariff spreadsheet import (.xlsx) into the selected country
    5. Lane cost overrides and per-mode defaults

Edits go to the ScenarioData held in st.session_state; the Route Simulator
page reads the same object.
"""

import streamlit as st
import pandas as pd

from simulator.config import EDGE_FALLBACKS, configure_logging
from simulator.data_loader import ScenarioData, ScenarioError
from simulator.edge_cost import compute_edge_metrics, resolve_parameters
from simulator.models import EdgeOverrides, GlobalParams
from simulator.xlsx_importer import import_rates_xlsx

configure_logging()

st.set_page_config(page_title="Country Profiles — Freight & Customs Simulator", layout="wide")

if "scenario" not in st.session_state:
    st.session_state.scenario = ScenarioData.from_file()
scenario = st.session_state.scenario


def _pct(value):
    return f"{value * 100:.2f}%" if value is not None else "—"


# ── Sidebar ───────────────────────────────────────────────────────────────
with st.sidebar:
    st.header("Country")
    country_options = scenario.country_list()
    country_idx = st.selectbox(
        "Profile", range(len(country_options)),
        format_func=lambda i: f"{country_options[i][0]} — {country_options[i][1]}",
    )
    country_id = country_options[country_idx][0]

    if st.button("Reset this country", use_container_width=True):
        scenario.reset_country(country_id)
        st.toast(f"{country_id} restored", icon="↩️")
    if st.button("Reset everything", use_container_width=True):
        scenario.reset_all()
        st.toast("Scenario restored", icon="↩️")

    st.divider()
    st.subheader("Scenario file")
    st.download_button(
        "Export scenario (JSON)", scenario.to_json(),
        file_name="scenario.json", mime="application/json", use_container_width=True,
    )
    uploaded_scenario = st.file_uploader("Import scenario", type=["json"])
    if uploaded_scenario is not None and st.button("Load scenario", use_container_width=True):
        try:
            st.session_state.scenario = ScenarioData.from_json(uploaded_scenario.getvalue())
        except ScenarioError as exc:
            st.error(str(exc))
        else:
            st.rerun()

country = scenario.get_country(country_id)
customs = country.customs

st.title(f"{country.name} ({country.currency})")

# ── Customs Parameters ────────────────────────────────────────────────────
c1, c2, c3, c4, c5 = st.columns(5)
c1.metric("Clearance fee", f"{customs.clearance_fee:,.2f}")
c2.metric("Insurance rate", _pct(customs.insurance_rate))
c3.metric("Allocation", customs.allocation_method.value.replace("_", " "))
c4.metric("Default duty", _pct(customs.default_duty_rate_pct))
c5.metric("Default VAT", _pct(customs.default_vat_rate_pct))

st.divider()

# ── Rates ─────────────────────────────────────────────────────────────────
col_g, col_p = st.columns(2)

with col_g:
    st.subheader("Group Rates")
    group_rows = []
    for group_id, rate in customs.group_rates.items():
        group = scenario.get_customs_group(group_id)
        group_rows.append({
            "Group": group.label if group else group_id,
            "Duty": _pct(rate.duty_rate_pct),
            "VAT": _pct(rate.vat_rate_pct),
            "Other taxes": _pct(rate.other_taxes_pct),
        })
    if group_rows:
        st.dataframe(pd.DataFrame(group_rows), use_container_width=True, hide_index=True)
    else:
        st.info("No group rates.")

with col_p:
    st.subheader("Product Rates")
    product_rows = []
    for product_id, rate in customs.product_rates.items():
        product = scenario.get_product(product_id)
        product_rows.append({
            "Product": product.label if product else product_id,
            "Duty": _pct(rate.duty_rate_pct),
            "VAT": _pct(rate.vat_rate_pct),
            "Extra fee": rate.extra_fees_fixed,
            "Note": rate.note or "",
        })
    if product_rows:
        st.dataframe(pd.DataFrame(product_rows), use_container_width=True, hide_index=True)
    else:
        st.info("No product-specific rates.")

st.divider()

# ── Regulations & Trade ───────────────────────────────────────────────────
col_r, col_t = st.columns([3, 2])

with col_r:
    st.subheader("Regulations")
    reg_rows = [{
        "Severity": reg.severity.value,
        "Title": reg.title,
        "Applies to": (
            "All shipments" if reg.is_unconditional
            else ", ".join(list(reg.applies_to_products or ()) + list(reg.applies_to_groups or ()))
        ),
        "Message": reg.message,
    } for reg in country.regulations]
    if reg_rows:
        st.dataframe(pd.DataFrame(reg_rows), use_container_width=True, hide_index=True)
    else:
        st.info("No regulations.")

with col_t:
    st.subheader("Trade Terms")
    trade = country.trade
    st.markdown("**Incoterms:** " + (", ".join(trade.incoterms_allowed) or "—"))
    st.markdown("**Required documents:**")
    for doc in trade.required_documents:
        st.markdown(f"- {doc}")
    if trade.import_restrictions:
        st.markdown("**Import restrictions:** " + "; ".join(trade.import_restrictions))
    if trade.export_restrictions:
        st.markdown("**Export restrictions:** " + "; ".join(trade.export_restrictions))

st.divider()

# ── Spreadsheet Import ────────────────────────────────────────────────────
st.subheader("Import Tariff Spreadsheet")
st.caption(
    "First sheet of an .xlsx file with a 'Description' header row. Recognised "
    "columns: HS code, value/price, duty (% de droits), VAT (TVA), extra fees. "
    "Rate intervals like 5-10% import at their lower bound with a note."
)
uploaded_sheet = st.file_uploader("Tariff workbook", type=["xlsx"])
if uploaded_sheet is not None:
    result = import_rates_xlsx(uploaded_sheet, country)
    if not result.products:
        st.warning("No product rows found in this workbook.")
    else:
        preview = pd.DataFrame([{
            "Product ID": p.id,
            "Description": p.label,
            "HS code": p.hs_code,
            "Value": p.default_declared_value,
            "Duty": _pct(result.product_rates[p.id].duty_rate_pct),
            "VAT": _pct(result.product_rates[p.id].vat_rate_pct),
            "Note": result.product_rates[p.id].note or "",
        } for p in result.products])
        st.dataframe(preview, use_container_width=True, hide_index=True)
        if st.button(f"Import {len(result.products)} product(s) into {country.name}", type="primary"):
            scenario.import_products_and_rates(country_id, result.products, result.product_rates)
            st.toast("Import complete", icon="✅")
            st.rerun()

st.divider()

# ── Lane Overrides ────────────────────────────────────────────────────────
st.subheader("Lane Costs")

lane_rows = []
for edge in scenario.edges:
    params = resolve_parameters(edge, scenario.global_params)
    metrics = compute_edge_metrics(edge, scenario.global_params)
    lane_rows.append({
        "Lane": edge.id,
        "From": scenario.node_label(edge.from_id),
        "To": scenario.node_label(edge.to_id),
        "Mode": edge.mode.value,
        "Distance (km)": edge.distance_km,
        "Cost/km": params["cost_per_km"],
        "Speed (km/h)": params["avg_speed_kmph"],
        "Fixed fee": params["fixed_fee"],
        "Dwell (h)": params["dwell_hours"],
        "Overridden": "yes" if edge.overrides and not edge.overrides.is_empty() else "",
        "Cost": round(metrics.cost, 2),
        "Time (days)": round(metrics.time_days, 2),
    })
st.dataframe(pd.DataFrame(lane_rows), use_container_width=True, hide_index=True)

with st.expander("Override a lane"):
    edge_ids = [e.id for e in scenario.edges]
    edge_id = st.selectbox("Lane", edge_ids)
    edge = scenario.get_edge(edge_id)
    current = edge.overrides.to_dict() if edge.overrides else {}
    st.caption("Untick a field to fall back to the mode default.")

    new_values = {}
    cols = st.columns(len(EDGE_FALLBACKS))
    for col, field_name in zip(cols, EDGE_FALLBACKS):
        with col:
            enabled = st.checkbox(field_name, value=field_name in current, key=f"use_{edge_id}_{field_name}")
            value = st.number_input(
                f"{field_name} value", value=float(current.get(field_name, 0.0)),
                min_value=0.0, key=f"val_{edge_id}_{field_name}", label_visibility="collapsed",
            )
            new_values[field_name] = value if enabled else None

    if st.button("Apply override"):
        scenario.update_edge_overrides(edge_id, **new_values)
        st.toast(f"Updated {edge_id}", icon="✅")
        st.rerun()

with st.expander("Mode defaults"):
    with st.form("mode_defaults"):
        new_defaults = {}
        for mode_name in ("road", "sea"):
            st.markdown(f"**{mode_name.capitalize()}**")
            current_mode = getattr(scenario.global_params, mode_name)
            cols = st.columns(len(EDGE_FALLBACKS))
            values = {}
            for col, (field_name, fallback) in zip(cols, EDGE_FALLBACKS.items()):
                current_value = getattr(current_mode, field_name)
                values[field_name] = col.number_input(
                    field_name,
                    value=float(current_value if current_value is not None else fallback),
                    min_value=0.0, key=f"default_{mode_name}_{field_name}",
                )
            new_defaults[mode_name] = EdgeOverrides(**values)
        if st.form_submit_button("Save mode defaults"):
            scenario.set_global_params(GlobalParams(**new_defaults))
            st.toast("Mode defaults updated", icon="✅")
            st.rerun()
