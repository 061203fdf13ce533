"""
Freight & Customs Simulator — Home Page (Streamlit entry point).

This is the landing page users see first. It provides:
  1. Three navigation cards linking to the main pages
  2. A key-stats row computed from the loaded scenario
  3. A Plotly world map of the transport network (lanes coloured by mode)

Run: streamlit run app.py

Multipage app (sidebar order determined by numeric filename prefix):
  - pages/1_Route_Simulator.py  → Route + customs simulation with landed cost
  - pages/2_Country_Profiles.py → Customs rates, regulations, imports, edge overrides
  - pages/3_About.py            → How the engine computes routes and duties
"""

import streamlit as st
import plotly.graph_objects as go

from simulator.config import configure_logging
from simulator.data_loader import ScenarioData
from simulator.network import TransportNetwork

configure_logging()

st.set_page_config(
    page_title="Freight & Customs Simulator",
    layout="wide",
)

if "scenario" not in st.session_state:
    st.session_state.scenario = ScenarioData.from_file()
scenario = st.session_state.scenario

st.title("Freight & Customs Simulator")
st.markdown(
    "Simulate multi-leg freight routes by road and sea, then compute the landed "
    "cost of the goods at the destination: transport, insurance, duty, VAT and "
    "clearance fees, plus the import regulations that apply."
)

st.divider()

# ── Navigation Cards ─────────────────────────────────────────────────────────
col1, col2, col3 = st.columns(3)

with col1:
    st.subheader("Route Simulator")
    st.markdown(
        "Pick an origin, a destination and the goods to ship. Find the best "
        "route by cost, time or a weighted blend and see the landed cost."
    )
    st.page_link("pages/1_Route_Simulator.py", label="Open Simulator", icon="🚚")

with col2:
    st.subheader("Country Profiles")
    st.markdown(
        "Review duty and VAT rates, import a tariff spreadsheet, tune lane "
        "costs, and export the whole scenario."
    )
    st.page_link("pages/2_Country_Profiles.py", label="Edit Profiles", icon="🗂️")

with col3:
    st.subheader("About")
    st.markdown(
        "How routes are scored, how transport cost is allocated across "
        "products, and how rates are resolved."
    )
    st.page_link("pages/3_About.py", label="Read About", icon="ℹ️")

st.divider()

# ── Key Stats ────────────────────────────────────────────────────────────────
network = TransportNetwork(scenario.nodes, scenario.edges, scenario.global_params)
lanes = network.lane_count_by_mode()

c1, c2, c3, c4 = st.columns(4)
c1.metric("Locations", str(len(scenario.nodes)))
c2.metric("Lanes (road / sea)", f"{lanes.get('road', 0)} / {lanes.get('sea', 0)}")
c3.metric("Products", str(len(scenario.product_catalog)))
c4.metric("Country Profiles", str(len(scenario.country_profiles)))

# ── Network Map ──────────────────────────────────────────────────────────────
st.markdown("#### Transport Network")

MODE_COLORS = {"road": "darkorange", "sea": "steelblue"}
NODE_STYLES = {
    "factory": ("crimson", "triangle-up"),
    "port": ("royalblue", "square"),
    "hub": ("purple", "diamond"),
    "country": ("seagreen", "circle"),
}

fig = go.Figure()

for edge in scenario.edges:
    a, b = scenario.get_node(edge.from_id), scenario.get_node(edge.to_id)
    if a is None or b is None:
        continue
    fig.add_trace(go.Scattergeo(
        lat=[a.lat, b.lat], lon=[a.lng, b.lng],
        mode="lines", line=dict(width=1.5, color=MODE_COLORS[edge.mode.value]),
        hoverinfo="skip", showlegend=False,
    ))

for node_type, (color, symbol) in NODE_STYLES.items():
    group = [n for n in scenario.nodes if n.type.value == node_type]
    if not group:
        continue
    fig.add_trace(go.Scattergeo(
        lat=[n.lat for n in group], lon=[n.lng for n in group],
        mode="markers",
        marker=dict(size=9, color=color, symbol=symbol),
        text=[n.label for n in group],
        hoverinfo="text",
        name=node_type.capitalize(),
    ))

fig.update_layout(
    geo=dict(
        projection_type="natural earth",
        showland=True, landcolor="rgb(243, 243, 243)",
        countrycolor="rgb(204, 204, 204)",
        showocean=True, oceancolor="rgb(230, 240, 250)",
        showcountries=True,
    ),
    height=420,
    margin=dict(l=0, r=0, t=10, b=0),
    legend=dict(
        yanchor="top", y=0.99,
        xanchor="left", x=0.01,
        bgcolor="rgba(255,255,255,0.8)",
    ),
)

st.plotly_chart(fig, use_container_width=True)
