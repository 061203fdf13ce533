"""
Route Simulator page — configure a shipment and compute its landed cost.

The user picks origin, destination, objective and destination country in
the sidebar, edits the product lines in the main area and clicks Simulate.
The engine returns the best route, the customs breakdown per line and the
regulations that apply.

Layout:
  - Sidebar: simulate button, objective + weight, origin/destination,
    destination country profile
  - Main area: product lines editor, then (after simulate)
    1. Summary metrics row (transport, transit, customs, grand total)
    2. Route legs table
    3. Customs breakdown per product line
    4. Regulation alerts, grouped by severity
    5. Route map
    6. Weight sweep (what-if across cost/time weighting)

Data flow: ScenarioData.snapshot() → run_simulation() → UI display
"""

import math

import streamlit as st
import pandas as pd
import plotly.graph_objects as go

from simulator.config import DEFAULT_WEIGHT, configure_logging
from simulator.data_loader import ScenarioData
from simulator.models import Objective, ProductLine, Severity
from simulator.simulation import EMPTY_RESULT, run_simulation, sweep_weights

configure_logging()

st.set_page_config(page_title="Route Simulator — Freight & Customs Simulator", layout="wide")

if "scenario" not in st.session_state:
    st.session_state.scenario = ScenarioData.from_file()
scenario = st.session_state.scenario

if "sim_result" not in st.session_state:
    st.session_state.sim_result = EMPTY_RESULT

node_ids = [n.id for n in scenario.nodes]
product_ids = [p.id for p in scenario.product_catalog]


def _optional(value):
    """Editor cells come back as NaN/None when empty."""
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return None
    return value


# ── Sidebar: Inputs ──────────────────────────────────────────────────────
with st.sidebar:
    st.header("Configuration")

    simulate_btn = st.button("Simulate", type="primary", use_container_width=True)

    with st.expander("Route Objective", expanded=True):
        objective = st.radio(
            "Optimize for", [o.value for o in Objective],
            format_func=str.capitalize, horizontal=True,
        )
        weight = DEFAULT_WEIGHT
        if objective == Objective.WEIGHTED.value:
            weight = st.slider(
                "Cost share", 0.0, 1.0, DEFAULT_WEIGHT, 0.05,
                help="1.0 = pure cost, 0.0 = pure transit time",
            )

    st.divider()

    start_id = st.selectbox(
        "Origin", node_ids, index=0, format_func=scenario.node_label,
    )
    end_id = st.selectbox(
        "Destination", node_ids, index=min(3, len(node_ids) - 1),
        format_func=scenario.node_label,
    )

    country_options = scenario.country_list()
    country_idx = st.selectbox(
        "Destination country profile", range(len(country_options)),
        format_func=lambda i: f"{country_options[i][0]} — {country_options[i][1]}",
    )
    country_id = country_options[country_idx][0] if country_options else None


# ── Main area ─────────────────────────────────────────────────────────────
st.title("Route Simulator")
st.caption("Best route plus landed customs cost for one shipment")

st.subheader("Product Lines")
default_lines = pd.DataFrame([{
    "product_id": product_ids[0] if product_ids else "",
    "qty": 1,
    "declared_value": None,
    "weight_kg": None,
    "volume_m3": None,
}])
edited = st.data_editor(
    default_lines,
    num_rows="dynamic",
    use_container_width=True,
    hide_index=True,
    column_config={
        "product_id": st.column_config.SelectboxColumn("Product", options=product_ids, required=True),
        "qty": st.column_config.NumberColumn("Quantity", min_value=0, step=1, default=1),
        "declared_value": st.column_config.NumberColumn("Declared value (override)", min_value=0.0),
        "weight_kg": st.column_config.NumberColumn("Weight kg (override)", min_value=0.0),
        "volume_m3": st.column_config.NumberColumn("Volume m³ (override)", min_value=0.0,
                                                   format="%.4f"),
    },
    key="product_lines_editor",
)

product_lines = [
    ProductLine(
        product_id=row["product_id"],
        qty=_optional(row["qty"]) or 0,
        declared_value_override=_optional(row["declared_value"]),
        weight_kg=_optional(row["weight_kg"]),
        volume_m3=_optional(row["volume_m3"]),
    )
    for _, row in edited.iterrows()
    if _optional(row["product_id"])
]

snapshot = scenario.snapshot(country_id, product_lines, start_id, end_id,
                             Objective(objective), weight)

if simulate_btn:
    st.session_state.sim_result = run_simulation(snapshot, previous=st.session_state.sim_result)

result = st.session_state.sim_result

if result.customs is None:
    st.info(
        "Set the origin, destination and country in the sidebar, add product "
        "lines above, then click **Simulate**."
    )
    st.stop()

country = scenario.get_country(country_id)
currency = country.currency if country else ""
route = result.route

st.divider()

# ── Summary ───────────────────────────────────────────────────────────────
col1, col2, col3, col4 = st.columns(4)
col1.metric("Transport", f"{route.total_cost:,.2f} {currency}" if route else "—")
col2.metric("Transit", f"{route.total_time_days:.1f} days" if route else "—")
col3.metric("Customs", f"{result.customs.total_customs:,.2f} {currency}")
col4.metric("Grand Total", f"{result.grand_total:,.2f} {currency}")

# ── Route ─────────────────────────────────────────────────────────────────
st.subheader("Route")
if route is None:
    st.warning("No route found between the selected origin and destination.")
elif not route.legs:
    st.info("Origin and destination are the same location; no transport legs.")
else:
    st.markdown(" → ".join(n.label for n in route.nodes))
    legs = route.legs_frame()
    legs["from"] = legs["from"].map(scenario.node_label)
    legs["to"] = legs["to"].map(scenario.node_label)
    st.dataframe(
        legs.rename(columns={
            "edge_id": "Lane", "from": "From", "to": "To", "mode": "Mode",
            "distance_km": "Distance (km)", "cost": "Cost", "time_days": "Time (days)",
        }).round(2),
        use_container_width=True, hide_index=True,
    )

st.divider()

# ── Customs ───────────────────────────────────────────────────────────────
st.subheader("Customs Breakdown")
st.caption(
    f"Clearance fee {result.customs.clearance_fee:,.2f} {currency} is charged once "
    "per shipment. VAT is levied on CIF plus duty."
)
customs_df = result.customs.to_frame()
if customs_df.empty:
    st.info("No product lines.")
else:
    customs_df["product_id"] = customs_df["product_id"].map(
        lambda pid: scenario.get_product(pid).label if scenario.get_product(pid) else pid
    )
    st.dataframe(
        customs_df.rename(columns={
            "product_id": "Product", "qty": "Qty", "declared_value": "Unit value",
            "insurance": "Insurance", "transport_alloc": "Transport share", "cif": "CIF",
            "duty": "Duty", "vat": "VAT", "extra": "Extra fees",
            "total_customs_product": "Customs total", "rate_source": "Rate tier",
        }).round(2),
        use_container_width=True, hide_index=True,
    )

st.divider()

# ── Regulations ───────────────────────────────────────────────────────────
st.subheader("Regulations")
if not result.regulations:
    st.success("No regulations triggered for these products.")
for alert in result.regulations:
    text = f"**{alert.title}** — {alert.message}"
    if alert.severity == Severity.BLOCK:
        st.error(text, icon="⛔")
    elif alert.severity == Severity.WARNING:
        st.warning(text, icon="⚠️")
    else:
        st.info(text, icon="ℹ️")

# ── Route Map ─────────────────────────────────────────────────────────────
if route is not None and route.legs:
    st.divider()
    st.subheader("Route Map")
    map_fig = go.Figure()

    # All lanes in light gray for context
    for edge in scenario.edges:
        a, b = scenario.get_node(edge.from_id), scenario.get_node(edge.to_id)
        if a is None or b is None:
            continue
        map_fig.add_trace(go.Scattergeo(
            lat=[a.lat, b.lat], lon=[a.lng, b.lng], mode="lines",
            line=dict(width=1, color="lightgray"), hoverinfo="skip", showlegend=False,
        ))

    for leg in route.legs:
        a, b = scenario.get_node(leg.from_id), scenario.get_node(leg.to_id)
        map_fig.add_trace(go.Scattergeo(
            lat=[a.lat, b.lat], lon=[a.lng, b.lng], mode="lines",
            line=dict(width=3, color="green", dash="solid" if leg.mode.value == "road" else "dash"),
            hoverinfo="skip", showlegend=False,
        ))

    map_fig.add_trace(go.Scattergeo(
        lat=[n.lat for n in route.nodes], lon=[n.lng for n in route.nodes],
        mode="markers", marker=dict(size=10, color="green"),
        text=[n.label for n in route.nodes], hoverinfo="text", showlegend=False,
    ))
    dest = route.nodes[-1]
    map_fig.add_trace(go.Scattergeo(
        lat=[dest.lat], lon=[dest.lng], mode="markers",
        marker=dict(size=14, color="gold", symbol="star", line=dict(width=1, color="black")),
        text=f"<b>{dest.label}</b><br>Destination", hoverinfo="text", showlegend=False,
    ))

    map_fig.update_layout(
        geo=dict(
            projection_type="natural earth",
            showland=True, landcolor="rgb(243, 243, 243)",
            countrycolor="rgb(204, 204, 204)",
            showocean=True, oceancolor="rgb(230, 240, 250)",
            showcountries=True,
        ),
        height=450,
        margin=dict(l=0, r=0, t=30, b=0),
    )
    st.plotly_chart(map_fig, use_container_width=True)

# ── Weight Sweep ──────────────────────────────────────────────────────────
with st.expander("What-if: sweep the cost/time weighting"):
    sweep = sweep_weights(snapshot, [i / 10 for i in range(11)])
    if sweep.empty or sweep["path"].isna().all():
        st.info("No route to sweep.")
    else:
        sweep_fig = go.Figure()
        sweep_fig.add_trace(go.Scatter(x=sweep["weight"], y=sweep["grand_total"],
                                       mode="lines+markers", name="Grand total"))
        sweep_fig.add_trace(go.Scatter(x=sweep["weight"], y=sweep["time_days"],
                                       mode="lines+markers", name="Transit days", yaxis="y2"))
        sweep_fig.update_layout(
            height=350,
            xaxis=dict(title="Cost share (weight)"),
            yaxis=dict(title=f"Grand total ({currency})"),
            yaxis2=dict(title="Transit days", overlaying="y", side="right"),
            margin=dict(l=20, r=20, t=30, b=20),
            legend=dict(orientation="h", yanchor="bottom", y=1.02, x=0),
        )
        st.plotly_chart(sweep_fig, use_container_width=True)
        st.dataframe(sweep.round(2), use_container_width=True, hide_index=True)
