"""
Simulation orchestrator: one request/response cycle over a state snapshot.

    route (path solver) -> customs (allocation engine) -> regulations
    grand_total = route total cost (0 without a route) + total customs

Every call is pure given its snapshot: no cache, no state between runs.
"""

import logging
from dataclasses import dataclass, replace
from typing import Optional

import pandas as pd

from simulator.config import DEFAULT_WEIGHT
from simulator.customs import compute_customs
from simulator.models import CountryProfile, GlobalParams, Objective, SimulationResult
from simulator.network import TransportNetwork
from simulator.pathfinder import find_best_path_in
from simulator.regulations import screen

logger = logging.getLogger(__name__)

EMPTY_RESULT = SimulationResult()


@dataclass(frozen=True)
class SimulationInput:
    """Everything one simulation reads, captured from the scenario state."""
    nodes: tuple
    edges: tuple
    global_params: GlobalParams
    country: Optional[CountryProfile]
    product_catalog: tuple
    product_lines: tuple
    start_id: str
    end_id: str
    objective: Objective = Objective.COST
    weight: float = DEFAULT_WEIGHT


def run_simulation(snapshot: SimulationInput, previous=None):
    """
    Run route -> customs -> regulations for one snapshot.

    Returns a new SimulationResult, or `previous` unchanged when the
    snapshot has no resolvable country.
    """
    if snapshot.country is None:
        logger.info("No country selected; keeping previous result")
        return previous

    network = TransportNetwork(snapshot.nodes, snapshot.edges, snapshot.global_params)
    route = find_best_path_in(network, snapshot.start_id, snapshot.end_id,
                              snapshot.objective, snapshot.weight)
    transport_total = route.total_cost if route is not None else 0.0

    catalog = {p.id: p for p in snapshot.product_catalog}
    customs = compute_customs(snapshot.country, snapshot.product_lines, catalog,
                              transport_total)
    alerts = screen(snapshot.country, snapshot.product_lines, catalog)

    grand_total = transport_total + customs.total_customs
    logger.debug("Simulation %s -> %s (%s): transport=%.2f customs=%.2f",
                 snapshot.start_id, snapshot.end_id, snapshot.objective,
                 transport_total, customs.total_customs)
    return SimulationResult(route=route, customs=customs,
                            regulations=tuple(alerts), grand_total=grand_total)


def sweep_weights(snapshot: SimulationInput, weights) -> pd.DataFrame:
    """What-if sweep of the weighted objective across weighting factors.

    Each weight is clamped to [0, 1] and runs as an independent weighted
    simulation. Returns one row per weight, in input order.
    """
    rows = []
    for w in weights:
        clamped = min(max(float(w), 0.0), 1.0)
        result = run_simulation(replace(snapshot, objective=Objective.WEIGHTED, weight=clamped))
        if result is None:
            continue
        route = result.route
        rows.append({
            "weight": clamped,
            "path": " → ".join(route.node_ids) if route is not None else None,
            "transport_cost": route.total_cost if route is not None else 0.0,
            "time_days": route.total_time_days if route is not None else None,
            "total_customs": result.customs.total_customs,
            "grand_total": result.grand_total,
        })
    return pd.DataFrame(rows, columns=["weight", "path", "transport_cost", "time_days",
                                       "total_customs", "grand_total"])
