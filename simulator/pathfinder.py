"""
Path solver: best single route between two nodes.

Runs a Dijkstra-style label-setting search over the transport network
graph with one scalar weight per edge, chosen by the objective:
  - cost:     the edge's monetary cost
  - time:     the edge's transit days
  - weighted: weight * cost / max_cost + (1 - weight) * time / max_time,
              where the maxima are taken over every supplied edge and
              floored at 1. Weights outside [0, 1] are accepted as-is;
              callers should clamp.

The search stops as soon as the destination is popped. A settled node is
never relaxed again, so negative edge values (a weight outside [0, 1] or a
negative override) still yield a route instead of an error. Among parallel
lanes between the same pair of nodes, the cheapest under the objective is
the one the route uses (first in insertion order on ties). Frontier ties
between equal distances go to the node supplied first, so equal inputs
always produce the same route.

An unknown start/end id or an unreachable destination returns None. That is
a valid answer ("no route found"), not an error. start == end returns a
one-node route with no legs and zero totals.
"""

import heapq
import logging
import math

from simulator.config import DEFAULT_WEIGHT
from simulator.models import GlobalParams, Leg, Objective, Route, Totals, parse_enum
from simulator.network import TransportNetwork

logger = logging.getLogger(__name__)


def objective_value(cost: float, time_days: float, objective: Objective,
                    weight: float, max_cost: float, max_time_days: float) -> float:
    """Scalar edge weight minimized under the given objective."""
    if objective == Objective.COST:
        return cost
    if objective == Objective.TIME:
        return time_days
    return weight * (cost / max_cost) + (1 - weight) * (time_days / max_time_days)


def find_best_path(
    nodes,
    edges,
    start_id: str,
    end_id: str,
    objective,
    global_params: GlobalParams,
    weight: float = DEFAULT_WEIGHT,
):
    """
    Find the best route from start_id to end_id.

    Args:
        nodes: Iterable of Node.
        edges: Iterable of Edge (directed).
        start_id: Origin node id.
        end_id: Destination node id.
        objective: Objective or its string value ("cost", "time", "weighted").
        global_params: Per-mode default cost/time parameters.
        weight: Cost share of the weighted objective, in [0, 1].

    Returns:
        Route, or None if either endpoint is unknown or no path exists.
    """
    network = TransportNetwork(list(nodes), list(edges), global_params)
    return find_best_path_in(network, start_id, end_id, objective, weight)


def find_best_path_in(network: TransportNetwork, start_id: str, end_id: str,
                      objective, weight: float = DEFAULT_WEIGHT):
    """Same as find_best_path, on an already built TransportNetwork."""
    objective = parse_enum(Objective, objective, Objective.WEIGHTED)

    if start_id not in network or end_id not in network:
        logger.info("No route: unknown endpoint %r -> %r", start_id, end_id)
        return None

    def edge_value(attrs):
        return objective_value(attrs["cost"], attrs["time_days"], objective, weight,
                               network.max_cost, network.max_time_days)

    def best_lane(u, v):
        # Parallel lanes u -> v: cheapest under the objective, first inserted on ties
        lanes = network.graph[u][v]
        return min(lanes, key=lambda key: edge_value(lanes[key]))

    node_path = _settle_until(network, start_id, end_id, edge_value, best_lane)
    if node_path is None:
        logger.info("No route: %s is unreachable from %s", end_id, start_id)
        return None

    legs = []
    for u, v in zip(node_path, node_path[1:]):
        edge_id = best_lane(u, v)
        attrs = network.graph[u][v][edge_id]
        legs.append(Leg(
            edge_id=edge_id,
            from_id=u,
            to_id=v,
            mode=network.edges[edge_id].mode,
            distance_km=attrs["distance_km"],
            cost=attrs["cost"],
            time_days=attrs["time_days"],
        ))

    totals = Totals(
        total_cost=sum(leg.cost for leg in legs),
        total_time_days=sum(leg.time_days for leg in legs),
    )
    return Route(
        nodes=tuple(network.nodes[node_id] for node_id in node_path),
        legs=tuple(legs),
        totals=totals,
    )


def _settle_until(network: TransportNetwork, start_id: str, end_id: str,
                  edge_value, best_lane):
    """Label-setting search from start_id; returns the node path or None.

    Each node is settled at most once and settled nodes are never relaxed
    again, so negative lane values cannot reopen them. Frontier entries are
    ordered by (distance, position of the node in the supplied node list).
    """
    graph = network.graph
    order = {node_id: idx for idx, node_id in enumerate(network.nodes)}
    distances = {start_id: 0.0}
    previous = {}
    settled = set()
    frontier = [(0.0, order[start_id], start_id)]

    while frontier:
        dist, _, current = heapq.heappop(frontier)
        if current in settled:
            continue
        if current == end_id:
            path = [end_id]
            while path[-1] != start_id:
                path.append(previous[path[-1]])
            return path[::-1]
        settled.add(current)

        for succ in graph.successors(current):
            if succ in settled:
                continue
            lane_id = best_lane(current, succ)
            alt = dist + edge_value(graph[current][succ][lane_id])
            if alt < distances.get(succ, math.inf):
                distances[succ] = alt
                previous[succ] = current
                heapq.heappush(frontier, (alt, order[succ], succ))

    return None
