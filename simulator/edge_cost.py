"""
Edge cost model: money and transit time for one transport edge.

Each parameter resolves as edge override, else the mode's global default,
else a hard fallback (see config.EDGE_FALLBACKS). Non-finite values are
treated as unset at every level.

    cost      = fixed_fee + distance_km * cost_per_km
    time_days = dwell_hours / 24 + (distance_km / avg_speed_kmph) / 24
"""

from dataclasses import dataclass

from simulator.config import EDGE_FALLBACKS, HOURS_PER_DAY
from simulator.models import Edge, EdgeOverrides, GlobalParams
from simulator.utils import finite_or, first_finite


@dataclass(frozen=True)
class EdgeMetrics:
    cost: float
    time_days: float


def resolve_parameters(edge: Edge, global_params: GlobalParams) -> dict:
    """Return the effective {cost_per_km, avg_speed_kmph, fixed_fee, dwell_hours}."""
    overrides = edge.overrides or EdgeOverrides()
    defaults = global_params.for_mode(edge.mode)
    return {
        name: first_finite(getattr(overrides, name), getattr(defaults, name),
                           fallback=fallback)
        for name, fallback in EDGE_FALLBACKS.items()
    }


def compute_edge_metrics(edge: Edge, global_params: GlobalParams) -> EdgeMetrics:
    params = resolve_parameters(edge, global_params)
    distance = finite_or(edge.distance_km, 0.0)
    speed = params["avg_speed_kmph"]
    if speed == 0:
        # An explicit zero speed would divide by zero; use the hard fallback
        speed = EDGE_FALLBACKS["avg_speed_kmph"]

    cost = params["fixed_fee"] + distance * params["cost_per_km"]
    time_days = params["dwell_hours"] / HOURS_PER_DAY + (distance / speed) / HOURS_PER_DAY
    return EdgeMetrics(cost=cost, time_days=time_days)
