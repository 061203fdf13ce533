"""
Domain entities for the route and customs simulator.

Frozen dataclasses for the configuration records the engine reads (nodes,
edges, products, country profiles) and for the results it produces
(routes, customs summaries, regulation alerts). The engine never mutates
any of them; the scenario container replaces records wholesale instead.

Every configuration entity round-trips through the scenario document via
from_dict()/to_dict(). Document keys follow the document's own casing
(camelCase for some fields, snake_case for the numeric ones).
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

import pandas as pd


# ═══════════════════════════════════════════════════════════════════════════════
# ENUMS
# ═══════════════════════════════════════════════════════════════════════════════

class Mode(Enum):
    ROAD = "road"
    SEA = "sea"


class NodeType(Enum):
    COUNTRY = "country"
    FACTORY = "factory"
    PORT = "port"
    HUB = "hub"


class AllocationMethod(Enum):
    BY_VALUE = "by_value"
    BY_WEIGHT = "by_weight"
    BY_VOLUME = "by_volume"


class Severity(Enum):
    INFO = "info"
    WARNING = "warning"
    BLOCK = "block"


class Objective(Enum):
    COST = "cost"
    TIME = "time"
    WEIGHTED = "weighted"


def parse_enum(enum_cls, value, default):
    """Return enum_cls(value), or default for unknown values."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        return default


def _drop_none(d: dict) -> dict:
    return {k: v for k, v in d.items() if v is not None}


def _tuple_or_none(values):
    return None if values is None else tuple(values)


# ═══════════════════════════════════════════════════════════════════════════════
# TRANSPORT NETWORK
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Node:
    """A location on the map. Coordinates are for display only."""
    id: str
    label: str
    type: NodeType
    lat: float = 0.0
    lng: float = 0.0

    @classmethod
    def from_dict(cls, d: dict) -> "Node":
        return cls(
            id=d["id"],
            label=d.get("label", d["id"]),
            type=parse_enum(NodeType, d.get("type"), NodeType.HUB),
            lat=d.get("lat", 0.0),
            lng=d.get("lng", 0.0),
        )

    def to_dict(self) -> dict:
        return {"id": self.id, "label": self.label, "type": self.type.value,
                "lat": self.lat, "lng": self.lng}


@dataclass(frozen=True)
class EdgeOverrides:
    """Per-field cost/time parameters.

    Used both as an edge's overrides and as the per-mode defaults in
    GlobalParams. A None field means "not set here".
    """
    cost_per_km: Optional[float] = None
    avg_speed_kmph: Optional[float] = None
    fixed_fee: Optional[float] = None
    dwell_hours: Optional[float] = None

    @classmethod
    def from_dict(cls, d: Optional[dict]) -> "EdgeOverrides":
        d = d or {}
        return cls(
            cost_per_km=d.get("cost_per_km"),
            avg_speed_kmph=d.get("avg_speed_kmph"),
            fixed_fee=d.get("fixed_fee"),
            dwell_hours=d.get("dwell_hours"),
        )

    def to_dict(self) -> dict:
        return _drop_none({
            "cost_per_km": self.cost_per_km,
            "avg_speed_kmph": self.avg_speed_kmph,
            "fixed_fee": self.fixed_fee,
            "dwell_hours": self.dwell_hours,
        })

    def is_empty(self) -> bool:
        return not self.to_dict()


@dataclass(frozen=True)
class Edge:
    """A directed transport lane. Two-way lanes are two edges."""
    id: str
    from_id: str
    to_id: str
    mode: Mode
    distance_km: float
    overrides: Optional[EdgeOverrides] = None

    @classmethod
    def from_dict(cls, d: dict) -> "Edge":
        overrides = d.get("overrides")
        return cls(
            id=d["id"],
            from_id=d["from"],
            to_id=d["to"],
            mode=parse_enum(Mode, d.get("mode"), Mode.ROAD),
            distance_km=d.get("distance_km", 0.0),
            overrides=EdgeOverrides.from_dict(overrides) if overrides is not None else None,
        )

    def to_dict(self) -> dict:
        d = {"id": self.id, "from": self.from_id, "to": self.to_id,
             "mode": self.mode.value, "distance_km": self.distance_km}
        if self.overrides is not None and not self.overrides.is_empty():
            d["overrides"] = self.overrides.to_dict()
        return d


@dataclass(frozen=True)
class GlobalParams:
    """Default cost/time parameters per transport mode."""
    road: EdgeOverrides = field(default_factory=EdgeOverrides)
    sea: EdgeOverrides = field(default_factory=EdgeOverrides)

    def for_mode(self, mode: Mode) -> EdgeOverrides:
        return self.road if mode == Mode.ROAD else self.sea

    @classmethod
    def from_dict(cls, d: Optional[dict]) -> "GlobalParams":
        d = d or {}
        return cls(road=EdgeOverrides.from_dict(d.get("road")),
                   sea=EdgeOverrides.from_dict(d.get("sea")))

    def to_dict(self) -> dict:
        return {"road": self.road.to_dict(), "sea": self.sea.to_dict()}


# ═══════════════════════════════════════════════════════════════════════════════
# PRODUCTS
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class CustomsGroup:
    """Products sharing a tariff treatment."""
    id: str
    label: str
    hs_codes: tuple = ()
    notes: Optional[str] = None

    @classmethod
    def from_dict(cls, d: dict) -> "CustomsGroup":
        return cls(id=d["id"], label=d.get("label", d["id"]),
                   hs_codes=tuple(d.get("hsCodes") or ()), notes=d.get("notes"))

    def to_dict(self) -> dict:
        return _drop_none({"id": self.id, "label": self.label,
                           "hsCodes": list(self.hs_codes) or None, "notes": self.notes})


@dataclass(frozen=True)
class Product:
    """A catalog product. Value, weight and volume are per-unit defaults."""
    id: str
    label: str
    hs_code: Optional[str] = None
    default_declared_value: Optional[float] = None
    default_customs_group_id: Optional[str] = None
    weight_kg: Optional[float] = None
    volume_m3: Optional[float] = None

    @classmethod
    def from_dict(cls, d: dict) -> "Product":
        return cls(
            id=d["id"],
            label=d.get("label", d["id"]),
            hs_code=d.get("hsCode"),
            default_declared_value=d.get("defaultDeclaredValue"),
            default_customs_group_id=d.get("defaultCustomsGroupId"),
            weight_kg=d.get("weight_kg"),
            volume_m3=d.get("volume_m3"),
        )

    def to_dict(self) -> dict:
        return _drop_none({
            "id": self.id,
            "label": self.label,
            "hsCode": self.hs_code,
            "defaultDeclaredValue": self.default_declared_value,
            "defaultCustomsGroupId": self.default_customs_group_id,
            "weight_kg": self.weight_kg,
            "volume_m3": self.volume_m3,
        })


@dataclass(frozen=True)
class ProductLine:
    """Requested quantity of one product, with optional per-line overrides."""
    product_id: str
    qty: float = 1
    declared_value_override: Optional[float] = None
    weight_kg: Optional[float] = None
    volume_m3: Optional[float] = None

    @classmethod
    def from_dict(cls, d: dict) -> "ProductLine":
        return cls(
            product_id=d.get("productId", ""),
            qty=d.get("qty", 1),
            declared_value_override=d.get("declaredValueOverride"),
            weight_kg=d.get("weight_kg"),
            volume_m3=d.get("volume_m3"),
        )

    def to_dict(self) -> dict:
        return _drop_none({
            "productId": self.product_id,
            "qty": self.qty,
            "declaredValueOverride": self.declared_value_override,
            "weight_kg": self.weight_kg,
            "volume_m3": self.volume_m3,
        })


# ═══════════════════════════════════════════════════════════════════════════════
# COUNTRY PROFILES
# ═══════════════════════════════════════════════════════════════════════════════
# All *_pct fields are fractions (0.05 = 5%), not whole-number percents.

@dataclass(frozen=True)
class GroupRate:
    duty_rate_pct: float
    vat_rate_pct: float
    other_taxes_pct: Optional[float] = None

    @classmethod
    def from_dict(cls, d: dict) -> "GroupRate":
        return cls(duty_rate_pct=d.get("duty_rate_pct", 0.0),
                   vat_rate_pct=d.get("vat_rate_pct", 0.0),
                   other_taxes_pct=d.get("other_taxes_pct"))

    def to_dict(self) -> dict:
        return _drop_none({"duty_rate_pct": self.duty_rate_pct,
                           "vat_rate_pct": self.vat_rate_pct,
                           "other_taxes_pct": self.other_taxes_pct})


@dataclass(frozen=True)
class ProductRate:
    duty_rate_pct: float
    vat_rate_pct: float
    extra_fees_fixed: Optional[float] = None
    note: Optional[str] = None

    @classmethod
    def from_dict(cls, d: dict) -> "ProductRate":
        return cls(duty_rate_pct=d.get("duty_rate_pct", 0.0),
                   vat_rate_pct=d.get("vat_rate_pct", 0.0),
                   extra_fees_fixed=d.get("extra_fees_fixed"),
                   note=d.get("note"))

    def to_dict(self) -> dict:
        return _drop_none({"duty_rate_pct": self.duty_rate_pct,
                           "vat_rate_pct": self.vat_rate_pct,
                           "extra_fees_fixed": self.extra_fees_fixed,
                           "note": self.note})


@dataclass(frozen=True)
class CountryCustoms:
    clearance_fee: float = 0.0
    insurance_rate: float = 0.0
    allocation_method: AllocationMethod = AllocationMethod.BY_VALUE
    default_duty_rate_pct: float = 0.0
    default_vat_rate_pct: float = 0.0
    group_rates: dict = field(default_factory=dict)     # customs_group_id -> GroupRate
    product_rates: dict = field(default_factory=dict)   # product_id -> ProductRate

    @classmethod
    def from_dict(cls, d: dict) -> "CountryCustoms":
        return cls(
            clearance_fee=d.get("clearance_fee", 0.0),
            insurance_rate=d.get("insurance_rate", 0.0),
            allocation_method=parse_enum(AllocationMethod, d.get("allocation_method"),
                                         AllocationMethod.BY_VALUE),
            default_duty_rate_pct=d.get("default_duty_rate_pct", 0.0),
            default_vat_rate_pct=d.get("default_vat_rate_pct", 0.0),
            group_rates={k: GroupRate.from_dict(v)
                         for k, v in (d.get("groupRates") or {}).items()},
            product_rates={k: ProductRate.from_dict(v)
                           for k, v in (d.get("productRates") or {}).items()},
        )

    def to_dict(self) -> dict:
        return {
            "clearance_fee": self.clearance_fee,
            "insurance_rate": self.insurance_rate,
            "allocation_method": self.allocation_method.value,
            "default_duty_rate_pct": self.default_duty_rate_pct,
            "default_vat_rate_pct": self.default_vat_rate_pct,
            "groupRates": {k: v.to_dict() for k, v in self.group_rates.items()},
            "productRates": {k: v.to_dict() for k, v in self.product_rates.items()},
        }


@dataclass(frozen=True)
class CountryTrade:
    """Informational trade terms. Displayed, never computed over."""
    incoterms_allowed: tuple = ()
    required_documents: tuple = ()
    import_restrictions: tuple = ()
    export_restrictions: tuple = ()

    @classmethod
    def from_dict(cls, d: Optional[dict]) -> "CountryTrade":
        d = d or {}
        return cls(
            incoterms_allowed=tuple(d.get("incoterms_allowed") or ()),
            required_documents=tuple(d.get("required_documents") or ()),
            import_restrictions=tuple(d.get("import_restrictions") or ()),
            export_restrictions=tuple(d.get("export_restrictions") or ()),
        )

    def to_dict(self) -> dict:
        return {
            "incoterms_allowed": list(self.incoterms_allowed),
            "required_documents": list(self.required_documents),
            "import_restrictions": list(self.import_restrictions),
            "export_restrictions": list(self.export_restrictions),
        }


@dataclass(frozen=True)
class Regulation:
    """An import rule. With neither filter set it applies to every shipment.

    A filter that is present but empty matches nothing; only an absent
    filter (None) counts as "no filter".
    """
    id: str
    title: str
    severity: Severity
    message: str
    applies_to_products: Optional[tuple] = None
    applies_to_groups: Optional[tuple] = None

    @property
    def is_unconditional(self) -> bool:
        return self.applies_to_products is None and self.applies_to_groups is None

    @classmethod
    def from_dict(cls, d: dict) -> "Regulation":
        return cls(
            id=d["id"],
            title=d.get("title", d["id"]),
            severity=parse_enum(Severity, d.get("severity"), Severity.INFO),
            message=d.get("message", ""),
            applies_to_products=_tuple_or_none(d.get("appliesToProducts")),
            applies_to_groups=_tuple_or_none(d.get("appliesToGroups")),
        )

    def to_dict(self) -> dict:
        return _drop_none({
            "id": self.id,
            "title": self.title,
            "severity": self.severity.value,
            "appliesToProducts": None if self.applies_to_products is None
            else list(self.applies_to_products),
            "appliesToGroups": None if self.applies_to_groups is None
            else list(self.applies_to_groups),
            "message": self.message,
        })


@dataclass(frozen=True)
class CountryProfile:
    """Destination country: customs parameters, trade terms, regulations."""
    id: str
    name: str
    currency: str
    customs: CountryCustoms = field(default_factory=CountryCustoms)
    trade: CountryTrade = field(default_factory=CountryTrade)
    regulations: tuple = ()

    @classmethod
    def from_dict(cls, d: dict) -> "CountryProfile":
        return cls(
            id=d["id"],
            name=d.get("name", d["id"]),
            currency=d.get("currency", ""),
            customs=CountryCustoms.from_dict(d.get("customs") or {}),
            trade=CountryTrade.from_dict(d.get("trade")),
            regulations=tuple(Regulation.from_dict(r) for r in d.get("regulations") or ()),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "currency": self.currency,
            "customs": self.customs.to_dict(),
            "trade": self.trade.to_dict(),
            "regulations": [r.to_dict() for r in self.regulations],
        }


# ═══════════════════════════════════════════════════════════════════════════════
# RESULTS
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Leg:
    """One traversed edge with its resolved cost and time."""
    edge_id: str
    from_id: str
    to_id: str
    mode: Mode
    distance_km: float
    cost: float
    time_days: float


@dataclass(frozen=True)
class Totals:
    total_cost: float = 0.0
    total_time_days: float = 0.0


@dataclass(frozen=True)
class Route:
    nodes: tuple
    legs: tuple
    totals: Totals

    @property
    def node_ids(self) -> list:
        return [n.id for n in self.nodes]

    @property
    def total_cost(self) -> float:
        return self.totals.total_cost

    @property
    def total_time_days(self) -> float:
        return self.totals.total_time_days

    def legs_frame(self) -> pd.DataFrame:
        """One row per leg, for display."""
        return pd.DataFrame(
            [{
                "edge_id": leg.edge_id,
                "from": leg.from_id,
                "to": leg.to_id,
                "mode": leg.mode.value,
                "distance_km": leg.distance_km,
                "cost": leg.cost,
                "time_days": leg.time_days,
            } for leg in self.legs],
            columns=["edge_id", "from", "to", "mode", "distance_km", "cost", "time_days"],
        )


@dataclass(frozen=True)
class CustomsLineDetail:
    product_id: str
    qty: float
    declared_value: float
    insurance: float
    transport_alloc: float
    cif: float
    duty: float
    vat: float
    extra: float
    total_customs_product: float
    rate_source: str


LINE_COLUMNS = [
    "product_id", "qty", "declared_value", "insurance", "transport_alloc",
    "cif", "duty", "vat", "extra", "total_customs_product", "rate_source",
]


@dataclass(frozen=True)
class CustomsSummary:
    clearance_fee: float
    total_customs: float
    lines: tuple = ()

    def to_frame(self) -> pd.DataFrame:
        """One row per product line, for display."""
        return pd.DataFrame(
            [{col: getattr(line, col) for col in LINE_COLUMNS} for line in self.lines],
            columns=LINE_COLUMNS,
        )


@dataclass(frozen=True)
class RegulationAlert:
    id: str
    title: str
    severity: Severity
    message: str


@dataclass(frozen=True)
class SimulationResult:
    """Route (None when unreachable), customs, alerts, and the grand total."""
    route: Optional[Route] = None
    customs: Optional[CustomsSummary] = None
    regulations: tuple = ()
    grand_total: float = 0.0
