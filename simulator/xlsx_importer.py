"""
Spreadsheet importer: products and product-specific rates from a tariff sheet.

Reads the first sheet of an .xlsx file with pandas, finds the header row
(the first row with a text cell containing "description"), maps columns by
header aliases (English and French broker sheets), and turns every row
with a description into a Product plus a ProductRate for the target
country.

Percent cells may be fractions (0.05), whole percents ("5%", 5, "5,5") or
intervals ("5-10%"). Intervals resolve to their lower bound and leave a
note on the rate so the user can review them.
"""

import logging
import re
import unicodedata
from dataclasses import dataclass, field

import pandas as pd

from simulator.models import CountryProfile, Product, ProductRate
from simulator.utils import finite_or_none

logger = logging.getLogger(__name__)

HEADER_ALIASES = {
    "description": ["description", "designation", "desc"],
    "hs_code": ["hs code", "hs"],
    "declared_value": ["valeur article", "valeur", "prix", "price", "value"],
    "duty_pct": ["% de droits", "droits", "droit", "customs duty", "duty"],
    "vat_pct": ["tva", "vat"],
    "extra_fees": ["extra fees", "fees", "frais", "charges"],
}

_INTERVAL = re.compile(r"([0-9]+[.,]?[0-9]*)\s*%?\s*[-–]\s*([0-9]+[.,]?[0-9]*)")


@dataclass
class ImportResult:
    products: list = field(default_factory=list)
    product_rates: dict = field(default_factory=dict)   # product_id -> ProductRate


def slugify(value: str) -> str:
    """Lower-case ASCII slug: accents stripped, runs of other chars -> '-'."""
    normalized = unicodedata.normalize("NFD", value.lower())
    ascii_only = "".join(ch for ch in normalized if not unicodedata.combining(ch))
    return re.sub(r"[^a-z0-9]+", "-", ascii_only).strip("-")


def _is_blank(value) -> bool:
    return value is None or (isinstance(value, float) and pd.isna(value))


def _cell_text(value) -> str:
    if _is_blank(value):
        return ""
    # Excel hands back whole numbers as floats (HS codes like 8517.0)
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def parse_percent(value):
    """Parse a percent cell into (fraction | None, note | None)."""
    raw = _cell_text(value)
    if not raw:
        return None, None

    interval = _INTERVAL.search(raw)
    if interval:
        lower = float(interval.group(1).replace(",", "."))
        return lower / 100, f"Interval detected: {raw}"

    number = finite_or_none(raw.replace("%", "").replace(",", ".").strip())
    if number is None:
        return None, None
    return (number / 100 if number > 1 else number), None


def _parse_number(value):
    raw = _cell_text(value)
    if not raw:
        return None
    return finite_or_none(raw.replace(",", "."))


def normalize_header(value) -> str:
    return re.sub(r"\s+", " ", _cell_text(value).lower())


def find_header_row(rows: pd.DataFrame) -> int:
    """Index of the first row with a text cell mentioning 'description', or -1."""
    for idx, row in enumerate(rows.itertuples(index=False)):
        if any(isinstance(cell, str) and "description" in cell.lower() for cell in row):
            return idx
    return -1


def find_column(headers: list, key: str) -> int:
    """Index of the first header containing any alias for key, or -1."""
    aliases = HEADER_ALIASES[key]
    for idx, header in enumerate(headers):
        if any(alias in header for alias in aliases):
            return idx
    return -1


def import_rates_xlsx(source, country: CountryProfile) -> ImportResult:
    """
    Import products and product rates from the first sheet of a workbook.

    Args:
        source: Path or file-like object of an .xlsx workbook.
        country: Target country; its default duty/VAT fill missing rates.

    Returns:
        ImportResult. Empty when no header row is found.
    """
    rows = pd.read_excel(source, sheet_name=0, header=None, dtype=object)
    rows = rows.dropna(how="all").reset_index(drop=True)
    return parse_rows(rows, country)


def parse_rows(rows: pd.DataFrame, country: CountryProfile) -> ImportResult:
    """Parse a raw (headerless) sheet already loaded into a DataFrame."""
    header_idx = find_header_row(rows)
    if header_idx == -1:
        logger.warning("No header row with 'description' found; nothing imported")
        return ImportResult()

    headers = [normalize_header(h) for h in rows.iloc[header_idx].tolist()]
    columns = {key: find_column(headers, key) for key in HEADER_ALIASES}

    def cell(row, key):
        idx = columns[key]
        return row[idx] if 0 <= idx < len(row) else None

    result = ImportResult()
    for row in rows.iloc[header_idx + 1:].itertuples(index=False):
        description = _cell_text(cell(row, "description"))
        if not description:
            continue
        hs_code = _cell_text(cell(row, "hs_code")) or None
        declared_value = _parse_number(cell(row, "declared_value"))
        duty_pct, duty_note = parse_percent(cell(row, "duty_pct"))
        vat_pct, _ = parse_percent(cell(row, "vat_pct"))
        extra_fees = _parse_number(cell(row, "extra_fees"))

        product_id = slugify(description) + (f"-{hs_code}" if hs_code else "")
        result.products.append(Product(
            id=product_id,
            label=description,
            hs_code=hs_code,
            default_declared_value=declared_value,
        ))
        result.product_rates[product_id] = ProductRate(
            duty_rate_pct=duty_pct if duty_pct is not None else country.customs.default_duty_rate_pct,
            vat_rate_pct=vat_pct if vat_pct is not None else country.customs.default_vat_rate_pct,
            extra_fees_fixed=extra_fees,
            note=duty_note,
        )

    logger.info("Parsed %d product row(s) for %s", len(result.products), country.id)
    return result
