"""
Regulation screener: which of a country's rules apply to a shipment.

A regulation applies when it has no filters at all, when its product
filter names a requested product, or when its group filter names the
default customs group of a requested product. Output keeps the country's
regulation order; severity is passed through for the caller to render.
"""

from simulator.models import CountryProfile, RegulationAlert


def screen(country: CountryProfile, product_lines, product_catalog) -> list[RegulationAlert]:
    catalog = (product_catalog if isinstance(product_catalog, dict)
               else {p.id: p for p in product_catalog})

    product_ids = {line.product_id for line in product_lines}
    group_ids = set()
    for pid in product_ids:
        product = catalog.get(pid)
        if product is not None and product.default_customs_group_id:
            group_ids.add(product.default_customs_group_id)

    alerts = []
    for reg in country.regulations:
        applies = (
            reg.is_unconditional
            or bool(product_ids.intersection(reg.applies_to_products or ()))
            or bool(group_ids.intersection(reg.applies_to_groups or ()))
        )
        if applies:
            alerts.append(RegulationAlert(id=reg.id, title=reg.title,
                                          severity=reg.severity, message=reg.message))
    return alerts
