"""
Transport Network — NetworkX MultiDiGraph of nodes and directed lanes.

Nodes are keyed by their id and carry label, type and coordinates. Each
lane becomes one graph edge keyed by its edge id, so a road lane and a sea
lane between the same two nodes coexist as parallel edges. Every edge
carries its precomputed cost and transit time from the edge cost model.

Lanes that reference a missing node are skipped, not rejected: the scenario
may be mid-edit in the UI when a simulation runs.
"""

import logging

import networkx as nx

from simulator.config import NORMALIZATION_FLOOR
from simulator.edge_cost import EdgeMetrics, compute_edge_metrics
from simulator.models import GlobalParams, NodeType

logger = logging.getLogger(__name__)


class TransportNetwork:
    """Directed multigraph of the transport network with per-edge metrics."""

    def __init__(self, nodes, edges, global_params: GlobalParams):
        self.graph = nx.MultiDiGraph()
        self.nodes = {node.id: node for node in nodes}
        self.edges = {edge.id: edge for edge in edges}
        self._metrics: dict[str, EdgeMetrics] = {}
        self._build(nodes, edges, global_params)

    def _build(self, nodes, edges, global_params):
        g = self.graph

        for node in nodes:
            g.add_node(node.id, label=node.label, node_type=node.type.value,
                       lat=node.lat, lng=node.lng)

        # Metrics are computed for every supplied edge, dangling ones
        # included, so the normalization maxima see the whole edge set.
        for edge in edges:
            self._metrics[edge.id] = compute_edge_metrics(edge, global_params)

        costs = [m.cost for m in self._metrics.values()]
        times = [m.time_days for m in self._metrics.values()]
        self.max_cost = max(costs + [NORMALIZATION_FLOOR])
        self.max_time_days = max(times + [NORMALIZATION_FLOOR])

        for edge in edges:
            if edge.from_id not in self.nodes or edge.to_id not in self.nodes:
                logger.debug("Skipping edge %s: endpoint %s -> %s not in network",
                             edge.id, edge.from_id, edge.to_id)
                continue
            metrics = self._metrics[edge.id]
            g.add_edge(
                edge.from_id, edge.to_id, key=edge.id,
                mode=edge.mode.value,
                distance_km=edge.distance_km,
                cost=metrics.cost,
                time_days=metrics.time_days,
            )

    # ═══════════════════════════════════════════════════════════════════════
    # QUERY METHODS
    # ═══════════════════════════════════════════════════════════════════════

    def __contains__(self, node_id) -> bool:
        return node_id in self.graph

    def metrics(self, edge_id: str):
        """Return EdgeMetrics for an edge id, or None if unknown."""
        return self._metrics.get(edge_id)

    def get_nodes_by_type(self, node_type) -> list[str]:
        """Return node ids of the given type (country, factory, port, hub)."""
        value = node_type.value if isinstance(node_type, NodeType) else node_type
        return [n for n, d in self.graph.nodes(data=True)
                if d.get("node_type") == value]

    def reachable_from(self, node_id: str) -> set[str]:
        """Node ids reachable from node_id along directed lanes (excluding itself)."""
        if node_id not in self.graph:
            return set()
        return nx.descendants(self.graph, node_id)

    def edges_between(self, from_id: str, to_id: str) -> list[str]:
        """Edge ids of all directed lanes from_id -> to_id, in insertion order."""
        if not self.graph.has_edge(from_id, to_id):
            return []
        return list(self.graph[from_id][to_id].keys())

    def lane_count_by_mode(self) -> dict[str, int]:
        """Count of connected lanes per transport mode."""
        counts: dict[str, int] = {}
        for _, _, mode in self.graph.edges(data="mode"):
            counts[mode] = counts.get(mode, 0) + 1
        return counts
