"""
Test suite for scenario loading, editing and spreadsheet import.

Tests cover:
  1. Scenario document loading (seed counts, lookups, bad documents)
  2. Edits and resets (edge overrides, imports, country reset)
  3. Export round trip
  4. Spreadsheet import (percent parsing, header aliases, .xlsx files)

Run: python -m pytest tests/test_scenario.py -v
"""

import json
from dataclasses import replace

import pandas as pd
import pytest

from simulator.data_loader import ScenarioData, ScenarioError
from simulator.edge_cost import compute_edge_metrics
from simulator.models import (
    AllocationMethod,
    GlobalParams,
    Mode,
    NodeType,
    Product,
    ProductRate,
    Severity,
)
from simulator.xlsx_importer import (
    import_rates_xlsx,
    parse_percent,
    parse_rows,
    slugify,
)


@pytest.fixture
def scenario():
    """Function-scoped: these tests mutate the scenario."""
    return ScenarioData.from_file()


# ═══════════════════════════════════════════════════════════════════════════════
# 1. LOADING
# ═══════════════════════════════════════════════════════════════════════════════

class TestScenarioLoading:
    def test_seed_sections_loaded(self, scenario):
        assert len(scenario.nodes) == 11
        assert len(scenario.edges) == 17
        assert len(scenario.customs_groups) == 4
        assert len(scenario.product_catalog) == 5
        assert len(scenario.country_profiles) == 2

    def test_country_list(self, scenario):
        assert scenario.country_list() == [("AE", "United Arab Emirates"), ("FR", "France")]

    def test_typed_entities(self, scenario):
        assert scenario.get_node("cn-port-yantian").type == NodeType.PORT
        assert scenario.get_edge("e-yantian-jebelali").mode == Mode.SEA
        fr = scenario.get_country("FR")
        assert fr.customs.allocation_method == AllocationMethod.BY_WEIGHT
        assert fr.customs.product_rates["laptop"].extra_fees_fixed == 1.0
        assert fr.regulations[-1].severity == Severity.BLOCK
        assert scenario.get_customs_group("batteries").hs_codes == ("8507",)

    def test_edge_overrides_parsed(self, scenario):
        edge = scenario.get_edge("e-colombo-jebelali")
        assert edge.overrides.fixed_fee == 150
        assert edge.overrides.cost_per_km is None
        assert scenario.get_edge("e-shenzhen-yantian").overrides is None

    def test_unknown_lookups_return_none(self, scenario):
        assert scenario.get_node("nope") is None
        assert scenario.get_country("nope") is None
        assert scenario.get_product("nope") is None
        assert scenario.node_label("nope") == "nope"

    def test_missing_section_raises(self):
        with pytest.raises(ScenarioError, match="globalParams"):
            ScenarioData({"nodes": [], "edges": [], "customsGroups": [],
                          "productCatalog": [], "countryProfiles": []})

    def test_invalid_json_raises(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ScenarioError):
            ScenarioData.from_file(path)
        with pytest.raises(ScenarioError):
            ScenarioData.from_json("[1, 2, 3]")

    def test_missing_file_propagates(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            ScenarioData.from_file(tmp_path / "absent.json")

    def test_unknown_enum_values_degrade(self):
        doc = {
            "nodes": [{"id": "a", "label": "A", "type": "warehouse", "lat": 0, "lng": 0}],
            "edges": [{"id": "e", "from": "a", "to": "a", "mode": "air", "distance_km": 1}],
            "customsGroups": [], "productCatalog": [],
            "countryProfiles": [{"id": "C", "name": "C", "currency": "C",
                                 "customs": {"allocation_method": "by_magic"}}],
            "globalParams": {},
        }
        data = ScenarioData.from_document(doc)
        assert data.nodes[0].type == NodeType.HUB
        assert data.edges[0].mode == Mode.ROAD
        assert data.country_profiles[0].customs.allocation_method == AllocationMethod.BY_VALUE


# ═══════════════════════════════════════════════════════════════════════════════
# 2. EDITS AND RESETS
# ═══════════════════════════════════════════════════════════════════════════════

class TestScenarioEdits:
    def test_update_edge_overrides(self, scenario):
        scenario.update_edge_overrides("e-shenzhen-yantian", fixed_fee=0, cost_per_km=2.0)
        edge = scenario.get_edge("e-shenzhen-yantian")
        assert compute_edge_metrics(edge, scenario.global_params).cost == pytest.approx(60.0)

    def test_clearing_an_override(self, scenario):
        scenario.update_edge_overrides("e-colombo-jebelali", fixed_fee=None, dwell_hours=None)
        assert scenario.get_edge("e-colombo-jebelali").overrides.is_empty()
        assert "overrides" not in scenario.get_edge("e-colombo-jebelali").to_dict()

    def test_unknown_override_field_rejected(self, scenario):
        with pytest.raises(TypeError):
            scenario.update_edge_overrides("e-shenzhen-yantian", toll=5)

    def test_set_global_params_changes_snapshot(self, scenario):
        scenario.set_global_params(GlobalParams())
        snap = scenario.snapshot("AE", [], "cn-factory-shenzhen", "ae-hub-dubai")
        assert snap.global_params == GlobalParams()

    def test_import_upserts_products_and_merges_rates(self, scenario):
        products = [
            Product(id="smartphone", label="Smartphone (updated)", default_declared_value=350),
            Product(id="usb-cable", label="USB cable", default_declared_value=3),
        ]
        rates = {"usb-cable": ProductRate(0.05, 0.05)}
        scenario.import_products_and_rates("AE", products, rates)

        ids = [p.id for p in scenario.product_catalog]
        assert ids.index("smartphone") == 0
        assert ids[-1] == "usb-cable"
        assert scenario.get_product("smartphone").default_declared_value == 350
        ae = scenario.get_country("AE")
        assert set(ae.customs.product_rates) == {"battery-pack", "usb-cable"}
        assert "usb-cable" not in scenario.get_country("FR").customs.product_rates

    def test_import_into_unknown_country_keeps_catalog(self, scenario):
        scenario.import_products_and_rates("ZZ", [Product(id="n", label="N")], {})
        assert scenario.get_product("n") is not None

    def test_reset_country(self, scenario):
        ae = scenario.get_country("AE")
        scenario.update_country(replace(ae, customs=replace(ae.customs, clearance_fee=0)))
        assert scenario.get_country("AE").customs.clearance_fee == 0
        scenario.reset_country("AE")
        assert scenario.get_country("AE").customs.clearance_fee == 250

    def test_reset_unknown_country_is_noop(self, scenario):
        before = scenario.to_document()
        scenario.reset_country("ZZ")
        assert scenario.to_document() == before

    def test_reset_all(self, scenario):
        original = scenario.to_document()
        scenario.update_edge_overrides("e-lyon-fr", cost_per_km=9)
        scenario.import_products_and_rates("FR", [Product(id="n", label="N")], {})
        scenario.reset_all()
        assert scenario.to_document() == original


# ═══════════════════════════════════════════════════════════════════════════════
# 3. EXPORT
# ═══════════════════════════════════════════════════════════════════════════════

class TestScenarioExport:
    def test_document_round_trip(self, scenario):
        doc = scenario.to_document()
        assert ScenarioData.from_document(doc).to_document() == doc

    def test_save_and_reload(self, scenario, tmp_path):
        scenario.update_edge_overrides("e-lyon-fr", avg_speed_kmph=80)
        path = tmp_path / "scenario.json"
        scenario.save(path)
        reloaded = ScenarioData.from_file(path)
        assert reloaded.get_edge("e-lyon-fr").overrides.avg_speed_kmph == 80
        assert json.loads(path.read_text(encoding="utf-8"))["countryProfiles"][1]["id"] == "FR"

    def test_regulation_filters_survive_export(self, scenario):
        regs = {r["id"]: r for r in scenario.to_document()["countryProfiles"][0]["regulations"]}
        assert "appliesToProducts" not in regs["ae-coo"]
        assert regs["ae-dg"]["appliesToProducts"] == ["battery-pack"]


# ═══════════════════════════════════════════════════════════════════════════════
# 4. SPREADSHEET IMPORT
# ═══════════════════════════════════════════════════════════════════════════════

SHEET = [
    ["Tarif douanier 2024", None, None, None, None, None],
    ["Description", "HS Code", "Valeur article", "% de droits", "TVA", "Frais"],
    ["Crème hydratante", "330499", 12, "5%", "5%", 1.5],
    ["Câble USB", None, "3,5", "5-10%", 0.05, None],
    [None, "999", 1, 1, 1, 1],
    ["Sac à dos", "420292", 20, None, "n/a", None],
]


class TestSpreadsheetImport:
    @pytest.mark.parametrize("raw, expected", [
        ("5%", 0.05),
        ("5,5 %", 0.055),
        (12, 0.12),
        (0.2, 0.2),
        ("0,2", 0.2),
        (1, 1.0),
    ])
    def test_parse_percent(self, raw, expected):
        pct, note = parse_percent(raw)
        assert pct == pytest.approx(expected)
        assert note is None

    def test_parse_percent_interval_uses_lower_bound(self):
        pct, note = parse_percent("5-10%")
        assert pct == pytest.approx(0.05)
        assert note == "Interval detected: 5-10%"

    @pytest.mark.parametrize("raw", [None, "", "   ", "exempt", float("nan")])
    def test_parse_percent_blank_or_text(self, raw):
        assert parse_percent(raw) == (None, None)

    def test_slugify(self):
        assert slugify("Crème Hydratante 50ml") == "creme-hydratante-50ml"
        assert slugify("  --Sac à dos!! ") == "sac-a-dos"

    def test_parse_rows(self, scenario):
        ae = scenario.get_country("AE")
        result = parse_rows(pd.DataFrame(SHEET, dtype=object), ae)

        assert [p.id for p in result.products] == [
            "creme-hydratante-330499", "cable-usb", "sac-a-dos-420292",
        ]
        cream = result.products[0]
        assert cream.label == "Crème hydratante"
        assert cream.hs_code == "330499"
        assert cream.default_declared_value == 12

        assert result.products[1].default_declared_value == pytest.approx(3.5)
        assert result.products[1].hs_code is None

        cream_rate = result.product_rates["creme-hydratante-330499"]
        assert cream_rate.duty_rate_pct == pytest.approx(0.05)
        assert cream_rate.vat_rate_pct == pytest.approx(0.05)
        assert cream_rate.extra_fees_fixed == pytest.approx(1.5)

        cable_rate = result.product_rates["cable-usb"]
        assert cable_rate.note == "Interval detected: 5-10%"
        assert cable_rate.extra_fees_fixed is None

    def test_missing_rates_use_country_defaults(self, scenario):
        fr = scenario.get_country("FR")
        rate = parse_rows(pd.DataFrame(SHEET, dtype=object), fr).product_rates["sac-a-dos-420292"]
        assert rate.duty_rate_pct == 0.04
        assert rate.vat_rate_pct == 0.2

    def test_no_header_row_imports_nothing(self, scenario):
        rows = pd.DataFrame([["Item", "Price"], ["Pen", 1]], dtype=object)
        result = parse_rows(rows, scenario.get_country("AE"))
        assert result.products == []
        assert result.product_rates == {}

    def test_english_aliases(self, scenario):
        rows = pd.DataFrame([
            ["Designation / Description", "HS", "Unit price", "Customs duty", "VAT", "Extra fees"],
            ["Phone case", "392690", 4, "6.5%", "20%", 0.3],
        ], dtype=object)
        result = parse_rows(rows, scenario.get_country("AE"))
        rate = result.product_rates["phone-case-392690"]
        assert rate.duty_rate_pct == pytest.approx(0.065)
        assert rate.vat_rate_pct == pytest.approx(0.2)
        assert result.products[0].default_declared_value == 4

    def test_xlsx_file_feeds_scenario(self, scenario, tmp_path):
        path = tmp_path / "tariffs.xlsx"
        pd.DataFrame(SHEET).to_excel(path, header=False, index=False)

        result = import_rates_xlsx(path, scenario.get_country("AE"))
        scenario.import_products_and_rates("AE", result.products, result.product_rates)

        assert scenario.get_product("creme-hydratante-330499") is not None
        assert "cable-usb" in scenario.get_country("AE").customs.product_rates
