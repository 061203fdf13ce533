"""
Load a scenario document and hold the configuration the UI edits.

A scenario document is one JSON object with six sections: nodes, edges,
customsGroups, productCatalog, countryProfiles and globalParams. It is the
same shape for the bundled seed (data/seed.json) and for user import/export.

ScenarioData parses the document into typed entities, offers id lookups,
and applies the edits the UI makes (edge overrides, global parameters,
spreadsheet imports, resets). Entities are frozen, so
every edit replaces the affected record instead of mutating it.
"""

import copy
import json
import logging
import os
from dataclasses import replace

from simulator.config import DATA_DIR, DEFAULT_WEIGHT, SEED_FILE
from simulator.models import (
    CountryProfile,
    CustomsGroup,
    Edge,
    EdgeOverrides,
    GlobalParams,
    Node,
    Objective,
    Product,
)
from simulator.simulation import SimulationInput

logger = logging.getLogger(__name__)

REQUIRED_SECTIONS = (
    "nodes", "edges", "customsGroups", "productCatalog", "countryProfiles", "globalParams",
)


class ScenarioError(ValueError):
    """Raised when a scenario document is not valid JSON or lacks a section."""


class ScenarioData:
    """Typed scenario state built from a scenario document."""

    def __init__(self, document: dict):
        missing = [s for s in REQUIRED_SECTIONS if s not in document]
        if missing:
            raise ScenarioError(f"Scenario document is missing section(s): {', '.join(missing)}")
        # Kept for reset_country() / reset_all()
        self._original = copy.deepcopy(document)
        self._load(document)

    @classmethod
    def from_document(cls, document: dict) -> "ScenarioData":
        return cls(document)

    @classmethod
    def from_file(cls, path=None) -> "ScenarioData":
        """Load from a JSON file; defaults to the bundled seed scenario."""
        if path is None:
            path = os.path.join(DATA_DIR, SEED_FILE)
        with open(path, encoding="utf-8") as fh:
            try:
                document = json.load(fh)
            except json.JSONDecodeError as exc:
                raise ScenarioError(f"{path} is not a valid scenario document: {exc}") from exc
        logger.info("Loaded scenario from %s", path)
        return cls(document)

    @classmethod
    def from_json(cls, text) -> "ScenarioData":
        """Load from a JSON string or bytes (e.g. an uploaded file)."""
        try:
            document = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ScenarioError(f"Not a valid scenario document: {exc}") from exc
        if not isinstance(document, dict):
            raise ScenarioError("Scenario document must be a JSON object")
        return cls(document)

    def _load(self, document: dict):
        self.nodes = [Node.from_dict(d) for d in document["nodes"]]
        self.edges = [Edge.from_dict(d) for d in document["edges"]]
        self.customs_groups = [CustomsGroup.from_dict(d) for d in document["customsGroups"]]
        self.product_catalog = [Product.from_dict(d) for d in document["productCatalog"]]
        self.country_profiles = [CountryProfile.from_dict(d) for d in document["countryProfiles"]]
        self.global_params = GlobalParams.from_dict(document["globalParams"])

    # ── Lookups ──────────────────────────────────────────────────────────────

    def get_node(self, node_id):
        return next((n for n in self.nodes if n.id == node_id), None)

    def get_edge(self, edge_id):
        return next((e for e in self.edges if e.id == edge_id), None)

    def get_country(self, country_id):
        return next((c for c in self.country_profiles if c.id == country_id), None)

    def get_product(self, product_id):
        return next((p for p in self.product_catalog if p.id == product_id), None)

    def get_customs_group(self, group_id):
        return next((g for g in self.customs_groups if g.id == group_id), None)

    def country_list(self):
        """Return list of (country_id, name) tuples."""
        return [(c.id, c.name) for c in self.country_profiles]

    def node_label(self, node_id):
        node = self.get_node(node_id)
        return node.label if node is not None else node_id

    # ── Edits ────────────────────────────────────────────────────────────────

    def update_edge_overrides(self, edge_id, **fields):
        """Set override fields on one edge. A None value clears that field."""
        unknown = set(fields) - set(EdgeOverrides.__dataclass_fields__)
        if unknown:
            raise TypeError(f"Unknown override field(s): {', '.join(sorted(unknown))}")
        self.edges = [
            replace(e, overrides=replace(e.overrides or EdgeOverrides(), **fields))
            if e.id == edge_id else e
            for e in self.edges
        ]

    def set_global_params(self, params: GlobalParams):
        self.global_params = params

    def update_country(self, country: CountryProfile):
        """Replace the profile with the same id."""
        self.country_profiles = [country if c.id == country.id else c
                                 for c in self.country_profiles]

    def import_products_and_rates(self, country_id, products, product_rates):
        """Upsert products into the catalog and merge rates into one country.

        Existing products keep their catalog position; new ones are appended.
        """
        catalog = {p.id: p for p in self.product_catalog}
        for product in products:
            catalog[product.id] = product
        self.product_catalog = list(catalog.values())

        country = self.get_country(country_id)
        if country is None:
            logger.warning("Import target country %r not found; rates not merged", country_id)
            return
        merged = {**country.customs.product_rates, **product_rates}
        self.update_country(replace(country, customs=replace(country.customs,
                                                             product_rates=merged)))
        logger.info("Imported %d product(s) and %d rate(s) into %s",
                    len(products), len(product_rates), country_id)

    def reset_country(self, country_id):
        """Restore one country profile from the document originally loaded."""
        original = next((d for d in self._original["countryProfiles"]
                         if d.get("id") == country_id), None)
        if original is None:
            return
        self.update_country(CountryProfile.from_dict(original))

    def reset_all(self):
        self._load(copy.deepcopy(self._original))

    # ── Export ───────────────────────────────────────────────────────────────

    def to_document(self) -> dict:
        return {
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
            "customsGroups": [g.to_dict() for g in self.customs_groups],
            "productCatalog": [p.to_dict() for p in self.product_catalog],
            "countryProfiles": [c.to_dict() for c in self.country_profiles],
            "globalParams": self.global_params.to_dict(),
        }

    def to_json(self) -> str:
        return json.dumps(self.to_document(), indent=2, ensure_ascii=False)

    def save(self, path):
        with open(path, "w", encoding="utf-8") as fh:
            fh.write(self.to_json())

    # ── Simulation snapshot ──────────────────────────────────────────────────

    def snapshot(self, country_id, product_lines, start_id, end_id,
                 objective=Objective.COST, weight=DEFAULT_WEIGHT) -> SimulationInput:
        """Capture the current state as an immutable simulation input."""
        return SimulationInput(
            nodes=tuple(self.nodes),
            edges=tuple(self.edges),
            global_params=self.global_params,
            country=self.get_country(country_id),
            product_catalog=tuple(self.product_catalog),
            product_lines=tuple(product_lines),
            start_id=start_id,
            end_id=end_id,
            objective=objective,
            weight=weight,
        )
