"""
About page — explains what the Freight & Customs Simulator does and how it computes.

Sections:
  1. Hero: One-line description of the engine
  2. How It Works: 3-column layout (Configure → Route → Clear customs)
  3. Routing: Lane cost/time model and the three objectives
  4. Customs: Allocation, CIF, duty, VAT, rate tiers
  5. Regulations: How alerts are triggered
  6. The Data: Key metrics from the loaded scenario
  7. Technical Details: Full formulas (expandable)
"""

import streamlit as st

from simulator.data_loader import ScenarioData

st.set_page_config(page_title="About — Freight & Customs Simulator", layout="wide")

if "scenario" not in st.session_state:
    st.session_state.scenario = ScenarioData.from_file()
scenario = st.session_state.scenario

# ── Hero ──────────────────────────────────────────────────────────────────────
st.title("About Freight & Customs Simulator")
st.markdown(
    """
    A **landed-cost simulator** for cross-border shipments. Given an origin, a
    destination, the goods being shipped and the destination country's customs
    profile, it finds the best multi-leg route over road and sea lanes and
    computes what the goods cost once cleared: transport, insurance, duty, VAT,
    extra fees and the clearance fee, plus the import regulations that apply.
    """
)

st.divider()

# ── How It Works ──────────────────────────────────────────────────────────────
st.header("How It Works")

col1, col2, col3 = st.columns(3)

with col1:
    st.subheader("1. Configure")
    st.markdown(
        """
        Pick an **origin** and a **destination**, the **destination country
        profile**, and the **product lines** (product, quantity and optional
        per-line value, weight or volume). Choose whether the route should
        minimize cost, time or a weighted blend.
        """
    )

with col2:
    st.subheader("2. Route")
    st.markdown(
        """
        Every lane gets a cost and a transit time from its distance and its
        mode parameters. A shortest-path search over the network then finds
        the route with the lowest total objective.
        """
    )

with col3:
    st.subheader("3. Clear Customs")
    st.markdown(
        """
        The route's transport cost is spread across the product lines. Each
        line gets a CIF value, then duty and VAT at the most specific rate
        available. Regulations matching the products are raised as alerts.
        """
    )

st.divider()

# ── Routing ───────────────────────────────────────────────────────────────────
st.header("Routing")

r_col1, r_col2 = st.columns(2)

with r_col1:
    st.subheader("Lane Cost & Time")
    st.markdown(
        """
        Each lane has a mode (**road** or **sea**) and a distance. Its
        parameters (cost per km, average speed, fixed fee, dwell hours) come
        from the lane's own overrides when set, otherwise from the mode
        defaults on the Country Profiles page.

        - **Cost** = distance × cost per km + fixed fee
        - **Time** = (distance ÷ speed + dwell hours) ÷ 24 days
        """
    )

with r_col2:
    st.subheader("Objectives")
    st.markdown(
        """
        - **Cost** — cheapest route, ignoring time.
        - **Time** — fastest route, ignoring cost.
        - **Weighted** — each lane scores
          `w × cost / max cost + (1 − w) × time / max time`, where the maxima
          are taken over all lanes so both terms sit on a 0-1 scale.

        When two lanes connect the same pair of places, the route uses the
        one with the lower objective.
        """
    )

st.divider()

# ── Customs ───────────────────────────────────────────────────────────────────
st.header("Customs")

st.subheader("Transport Allocation")
st.markdown(
    """
    The route's total transport cost is shared across product lines in
    proportion to each line's **value**, **weight** or **volume** (value × qty,
    weight × qty, volume × qty). The method is set per country. Weight and
    volume fall back to value when their total is zero. If every
    line has zero basis (no value, weight or volume), no transport cost is
    allocated to customs.
    """
)

st.subheader("Rate Tiers")
st.markdown(
    """
    Duty and VAT are each resolved from the most specific tier that has them:

    1. **Product rate** — a rate set for this exact product in the country profile
    2. **Group rate** — the rate of the product's customs group
    3. **Country default** — the country's default duty and VAT

    The tier used for each line is shown in the customs breakdown.
    """
)

st.subheader("Line Charges")
st.markdown(
    """
    - **Insurance** = unit value × insurance rate
    - **CIF** = value × qty + insurance + transport share
    - **Duty** = CIF × duty rate
    - **VAT** = (CIF + duty) × VAT rate
    - **Extra fees** = product's fixed extra fee × qty

    The **clearance fee** is charged once per shipment, not per line. The
    **grand total** is transport cost plus total customs.
    """
)

st.divider()

# ── Regulations ───────────────────────────────────────────────────────────────
st.header("Regulations")
st.markdown(
    """
    Each country profile carries regulations at one of three severities:
    **info**, **warning** or **block**. A regulation with no product or group
    filter applies to every shipment. A filtered regulation fires when any
    product line matches one of its products or its customs group. Block
    alerts are advisory; the simulation still completes.
    """
)

st.divider()

# ── The Data ──────────────────────────────────────────────────────────────────
st.header("The Data")

c1, c2, c3, c4 = st.columns(4)
c1.metric("Locations", str(len(scenario.nodes)), help="Factories, ports, hubs and country entry points")
c2.metric("Lanes", str(len(scenario.edges)), help="Directed road and sea lanes")
c3.metric("Products", str(len(scenario.product_catalog)), help="Catalog products with default value, weight and volume")
c4.metric("Country Profiles", str(len(scenario.country_profiles)), help="Customs, trade terms and regulations per destination")

st.divider()

# ── Technical Details ─────────────────────────────────────────────────────────
with st.expander("Technical Details"):
    st.markdown(
        """
        ### Route Search

        The network is a NetworkX multi-digraph keyed by lane id. The search is
        Dijkstra with a lane weight of cost, time or the weighted score. A place
        is settled once and never reopened, so negative lane scores still route. Lanes
        pointing at unknown locations are ignored. A route whose origin equals
        its destination has no legs and zero totals.

        ### Missing Values

        | Field | Fallback |
        |---|---|
        | cost per km | 0 |
        | average speed | 1 km/h |
        | fixed fee | 0 |
        | dwell hours | 0 |
        | unit value | product default, else 0 |
        | weight / volume | product default, else 0 |

        ### Spreadsheet Import

        Tariff workbooks are read from their first sheet. The header row is the
        first row containing "Description". Rates may be fractions (0.05),
        percents (5) or intervals (5-10%); intervals import at their lower bound
        with a note on the product rate.
        """
    )

st.divider()

# ── Footer ────────────────────────────────────────────────────────────────────
st.markdown(
    """
    ---
    Built with [Streamlit](https://streamlit.io), [NetworkX](https://networkx.org),
    [Plotly](https://plotly.com/python/), [pandas](https://pandas.pydata.org/)
    and [openpyxl](https://openpyxl.readthedocs.io/).
    """,
    unsafe_allow_html=False,
)
