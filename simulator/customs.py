"""
Customs allocation engine: landed customs cost per product line.

Given a destination country, the requested product lines and the route's
total transport cost, this module:
  1. Resolves each line's declared value, weight and volume
     (line override, else catalog default, else 0).
  2. Allocates the transport cost across lines in proportion to value,
     weight or volume, per the country's allocation method.
  3. Computes insurance, CIF, duty, VAT and fixed extra fees per line.
  4. Adds the flat clearance fee once for the whole shipment.

Unknown product ids never raise: they get zero value/weight/volume and the
country's default rates.
"""

import logging

import numpy as np
import pandas as pd

from simulator.config import (
    RATE_SOURCE_DEFAULT,
    RATE_SOURCE_GROUP,
    RATE_SOURCE_PRODUCT,
)
from simulator.models import (
    AllocationMethod,
    CountryProfile,
    CustomsLineDetail,
    CustomsSummary,
)
from simulator.utils import finite_or, first_finite

logger = logging.getLogger(__name__)


def resolve_rates(country: CountryProfile, product_id: str, product) -> tuple[float, float, str]:
    """Return (duty_rate, vat_rate, rate_source) for one product.

    Precedence for each of duty and VAT: product-specific rate, then the
    rate of the product's default customs group, then the country default.
    The source tag names the highest tier that has an entry.
    """
    customs = country.customs
    product_rate = customs.product_rates.get(product_id)
    group_id = product.default_customs_group_id if product is not None else None
    group_rate = customs.group_rates.get(group_id) if group_id else None

    duty_rate = first_finite(
        getattr(product_rate, "duty_rate_pct", None),
        getattr(group_rate, "duty_rate_pct", None),
        customs.default_duty_rate_pct,
    )
    vat_rate = first_finite(
        getattr(product_rate, "vat_rate_pct", None),
        getattr(group_rate, "vat_rate_pct", None),
        customs.default_vat_rate_pct,
    )
    if product_rate is not None:
        source = RATE_SOURCE_PRODUCT
    elif group_rate is not None:
        source = RATE_SOURCE_GROUP
    else:
        source = RATE_SOURCE_DEFAULT
    return duty_rate, vat_rate, source


def _line_frame(product_lines, catalog: dict) -> pd.DataFrame:
    """Resolve per-unit value/weight/volume for every line into a DataFrame."""
    rows = []
    for line in product_lines:
        product = catalog.get(line.product_id)
        if product is None:
            logger.debug("Unknown product %r: using zero value/weight/volume",
                         line.product_id)
        rows.append({
            "product_id": line.product_id,
            "qty": finite_or(line.qty, 0.0),
            "declared_value": first_finite(
                line.declared_value_override,
                product.default_declared_value if product else None,
            ),
            "weight": first_finite(line.weight_kg, product.weight_kg if product else None),
            "volume": first_finite(line.volume_m3, product.volume_m3 if product else None),
        })
    return pd.DataFrame(rows, columns=["product_id", "qty", "declared_value", "weight", "volume"])


def allocation_shares(lines: pd.DataFrame, method: AllocationMethod) -> pd.Series:
    """Fraction of the transport cost carried by each line.

    by_weight / by_volume fall back to by_value when their total is 0. If
    the basis is still 0, it becomes 1 with the line's declared total as
    numerator, which yields a finite (normally zero) allocation.
    """
    declared_total = lines["declared_value"] * lines["qty"]
    weight_total = lines["weight"] * lines["qty"]
    volume_total = lines["volume"] * lines["qty"]

    basis = declared_total.sum()
    numerator = declared_total
    if method == AllocationMethod.BY_WEIGHT and weight_total.sum() > 0:
        basis, numerator = weight_total.sum(), weight_total
    elif method == AllocationMethod.BY_VOLUME and volume_total.sum() > 0:
        basis, numerator = volume_total.sum(), volume_total

    if basis == 0:
        basis, numerator = 1.0, declared_total
    return numerator / basis


def compute_customs(country: CountryProfile, product_lines, product_catalog,
                    transport_total: float) -> CustomsSummary:
    """
    Compute customs costs for a shipment.

    Args:
        country: Destination country profile.
        product_lines: Iterable of ProductLine.
        product_catalog: Iterable of Product (or a dict of id -> Product).
        transport_total: Total transport cost of the route (0 if none).

    Returns:
        CustomsSummary with per-line details and the shipment total.
    """
    customs = country.customs
    catalog = (product_catalog if isinstance(product_catalog, dict)
               else {p.id: p for p in product_catalog})
    clearance_fee = finite_or(customs.clearance_fee, 0.0)
    transport_total = finite_or(transport_total, 0.0)

    lines = _line_frame(list(product_lines), catalog)
    if lines.empty:
        return CustomsSummary(clearance_fee=clearance_fee, total_customs=clearance_fee)

    # ── Valuation ──
    # Insurance uses the unit declared value, not the line's declared total
    lines["declared_total"] = lines["declared_value"] * lines["qty"]
    lines["transport_alloc"] = transport_total * allocation_shares(lines, customs.allocation_method)
    lines["insurance"] = finite_or(customs.insurance_rate, 0.0) * lines["declared_value"]
    lines["cif"] = lines["declared_total"] + lines["transport_alloc"] + lines["insurance"]

    # ── Rates ──
    rates = lines["product_id"].apply(
        lambda pid: resolve_rates(country, pid, catalog.get(pid))
    )
    lines["duty_rate"] = [r[0] for r in rates]
    lines["vat_rate"] = [r[1] for r in rates]
    lines["rate_source"] = [r[2] for r in rates]

    # ── Taxes ──
    # VAT is levied on duty-inclusive CIF
    lines["duty"] = lines["cif"] * lines["duty_rate"]
    lines["vat"] = (lines["cif"] + lines["duty"]) * lines["vat_rate"]
    extra_fixed = lines["product_id"].map(
        lambda pid: finite_or(getattr(customs.product_rates.get(pid), "extra_fees_fixed", None), 0.0)
    )
    lines["extra"] = np.asarray(extra_fixed, dtype=float) * lines["qty"]
    lines["total_customs_product"] = lines["duty"] + lines["vat"] + lines["extra"]

    details = tuple(
        CustomsLineDetail(
            product_id=row.product_id,
            qty=row.qty,
            declared_value=row.declared_value,
            insurance=row.insurance,
            transport_alloc=row.transport_alloc,
            cif=row.cif,
            duty=row.duty,
            vat=row.vat,
            extra=row.extra,
            total_customs_product=row.total_customs_product,
            rate_source=row.rate_source,
        )
        for row in lines.itertuples(index=False)
    )
    total_customs = clearance_fee + sum(d.total_customs_product for d in details)
    return CustomsSummary(clearance_fee=clearance_fee, total_customs=total_customs,
                          lines=details)
