"""
NetworkModel — read-only container for the static supply network.

Holds regions, suppliers, assembly sites, distribution centers, the product
catalog, the three transport modes and the inter-region distance table, with
dictionary lookups for O(1) access by id. Also owns the two checks every
engine entry point runs before computing anything:

  - validate_configuration(): does each assignment reference real nodes?
  - effective_products(): merge sparse overrides into fully-resolved products.

The model is never mutated; the with_*() helpers return modified copies
(used by the Monte Carlo reliability shocks).
"""

import logging
from dataclasses import asdict
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from planner import config
from planner.entities import (
    AssemblySite,
    DistributionCenter,
    Product,
    ProductOverride,
    Region,
    Supplier,
    TransportMode,
)

logger = logging.getLogger(__name__)


class InvalidConfigurationReference(ValueError):
    """A configuration or override names a node/product/mode the network lacks."""


class NetworkModel:
    """Static network plus lookup and validation methods."""

    def __init__(
        self,
        regions: Iterable[Region],
        suppliers: Iterable[Supplier],
        assembly_sites: Iterable[AssemblySite],
        distribution_centers: Iterable[DistributionCenter],
        products: Iterable[Product],
        transport_modes: Iterable[TransportMode],
        distances: Mapping[Tuple[str, str], float],
    ):
        # Tuples keep the fixed node order the optimizer enumerates in.
        self.regions: Tuple[Region, ...] = tuple(regions)
        self.suppliers: Tuple[Supplier, ...] = tuple(suppliers)
        self.assembly_sites: Tuple[AssemblySite, ...] = tuple(assembly_sites)
        self.distribution_centers: Tuple[DistributionCenter, ...] = tuple(distribution_centers)
        self.products: Tuple[Product, ...] = tuple(products)
        self.transport_modes: Tuple[TransportMode, ...] = tuple(transport_modes)
        self.distances: Dict[Tuple[str, str], float] = dict(distances)
        self._build_lookups()

    def _build_lookups(self):
        self._regions = {r.region_id: r for r in self.regions}
        self._suppliers = {s.supplier_id: s for s in self.suppliers}
        self._sites = {a.assembly_id: a for a in self.assembly_sites}
        self._dcs = {d.dc_id: d for d in self.distribution_centers}
        self._products = {p.product_id: p for p in self.products}
        self._modes = {m.mode: m for m in self.transport_modes}

    # ── Lookups ──────────────────────────────────────────────────────────────

    def region(self, region_id: str) -> Optional[Region]:
        return self._regions.get(region_id)

    def supplier(self, supplier_id: str) -> Optional[Supplier]:
        return self._suppliers.get(supplier_id)

    def assembly_site(self, assembly_id: str) -> Optional[AssemblySite]:
        return self._sites.get(assembly_id)

    def distribution_center(self, dc_id: str) -> Optional[DistributionCenter]:
        return self._dcs.get(dc_id)

    def product(self, product_id: str) -> Optional[Product]:
        return self._products.get(product_id)

    def mode(self, mode: str) -> Optional[TransportMode]:
        return self._modes.get(mode)

    @property
    def mode_names(self) -> List[str]:
        return [m.mode for m in self.transport_modes]

    def distance(self, origin_region: str, dest_region: str) -> float:
        """Thousand-mile distance between two regions.

        A pair missing from the table is not an error: it falls back to
        DISTANCE_FALLBACK (2.0) and is logged at debug level.
        """
        d = self.distances.get((origin_region, dest_region))
        if d is None:
            logger.debug(
                "No distance for %s-%s, using fallback %.1f",
                origin_region, dest_region, config.DISTANCE_FALLBACK,
            )
            return config.DISTANCE_FALLBACK
        return d

    # ── Validation ───────────────────────────────────────────────────────────

    def validate_configuration(
        self, configuration: Mapping, require_complete: bool = True
    ) -> Tuple[bool, str]:
        """Check every assignment against the network.

        Returns (is_valid, reason). With require_complete, every product in
        the catalog must have an assignment.
        """
        if require_complete:
            missing = [p.product_id for p in self.products if p.product_id not in configuration]
            if missing:
                return (False, f"No assignment for product(s) {', '.join(missing)}")

        for product_id, a in configuration.items():
            if product_id not in self._products:
                return (False, f"Unknown product {product_id}")
            if a.supplier_id not in self._suppliers:
                return (False, f"{product_id}: unknown supplier {a.supplier_id}")
            if a.assembly_id not in self._sites:
                return (False, f"{product_id}: unknown assembly site {a.assembly_id}")
            if a.dc_id not in self._dcs:
                return (False, f"{product_id}: unknown distribution center {a.dc_id}")
            for leg_mode in (a.supplier_mode, a.dc_mode):
                if leg_mode not in self._modes:
                    return (False, f"{product_id}: unknown transport mode {leg_mode}")

        return (True, "Configuration is valid")

    def require_valid(self, configuration: Mapping, require_complete: bool = True):
        """Raise InvalidConfigurationReference unless the configuration is valid."""
        valid, reason = self.validate_configuration(configuration, require_complete)
        if not valid:
            raise InvalidConfigurationReference(reason)

    # ── Product overrides ────────────────────────────────────────────────────

    def effective_products(
        self, overrides: Optional[Mapping[str, ProductOverride]] = None
    ) -> List[Product]:
        """Catalog with sparse overrides merged in, in catalog order."""
        overrides = overrides or {}
        unknown = [pid for pid in overrides if pid not in self._products]
        if unknown:
            raise InvalidConfigurationReference(
                f"Override for unknown product(s) {', '.join(sorted(unknown))}"
            )
        return [
            overrides[p.product_id].apply(p) if p.product_id in overrides else p
            for p in self.products
        ]

    # ── Derived copies ───────────────────────────────────────────────────────

    def with_suppliers(self, suppliers: Iterable[Supplier]) -> "NetworkModel":
        return NetworkModel(
            self.regions, suppliers, self.assembly_sites, self.distribution_centers,
            self.products, self.transport_modes, self.distances,
        )

    def with_supplier_reliability(self, reliability: Mapping[str, float]) -> "NetworkModel":
        """Copy with selected suppliers' reliability replaced."""
        return self.with_suppliers(
            s.with_reliability(reliability[s.supplier_id]) if s.supplier_id in reliability else s
            for s in self.suppliers
        )

    # ── Wire format ──────────────────────────────────────────────────────────

    def to_dict(self) -> dict:
        """Plain-dict view for the remote solver payload."""
        return {
            "regions": [asdict(r) for r in self.regions],
            "suppliers": [asdict(s) for s in self.suppliers],
            "assemblySites": [asdict(a) for a in self.assembly_sites],
            "dcs": [asdict(d) for d in self.distribution_centers],
            "lrus": [asdict(p) for p in self.products],
            "transport": {
                m.mode: {
                    "costPerTonMi": m.cost_per_ton_mi,
                    "leadPenaltyDays": m.lead_penalty_days,
                    "carbonPerTonMi": m.carbon_per_ton_mi,
                }
                for m in self.transport_modes
            },
            "distances": {f"{o}-{d}": v for (o, d), v in self.distances.items()},
        }

    def __repr__(self):
        return (
            f"NetworkModel(suppliers={len(self.suppliers)}, "
            f"assembly_sites={len(self.assembly_sites)}, "
            f"dcs={len(self.distribution_centers)}, products={len(self.products)})"
        )
