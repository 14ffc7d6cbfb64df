"""
Capacity load calculator — per-site load and utilization without cost math.

Used for fast dashboard refresh and bottleneck listing. Load at a site is the
sum of rounded per-product demand routed there, exactly the figure the
evaluator's capacity policy compares against capacity.
"""

from dataclasses import dataclass, field
from typing import List, Mapping, Optional

import pandas as pd

from planner import config
from planner.entities import ProductOverride
from planner.evaluator import product_demand
from planner.network import NetworkModel
from planner.scenario import Configuration


@dataclass(frozen=True)
class SiteLoad:
    site_id: str
    name: str
    kind: str      # "supplier" or "assembly"
    load: int
    capacity: int

    @property
    def utilization(self) -> float:
        return self.load / self.capacity

    @property
    def overloaded(self) -> bool:
        return self.load > self.capacity


@dataclass
class CapacityReport:
    suppliers: List[SiteLoad] = field(default_factory=list)
    assembly_sites: List[SiteLoad] = field(default_factory=list)

    @property
    def sites(self) -> List[SiteLoad]:
        return self.suppliers + self.assembly_sites

    def bottlenecks(self, threshold: float = config.BOTTLENECK_UTILIZATION) -> List[SiteLoad]:
        """Sites at or above the utilization threshold, most utilized first."""
        flagged = [s for s in self.sites if s.utilization >= threshold]
        return sorted(flagged, key=lambda s: s.utilization, reverse=True)

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame([
            {
                "site_id": s.site_id,
                "name": s.name,
                "kind": s.kind,
                "load": s.load,
                "capacity": s.capacity,
                "utilization": s.utilization,
                "bottleneck": s.utilization >= config.BOTTLENECK_UTILIZATION,
            }
            for s in self.sites
        ])


def compute_loads(
    network: NetworkModel,
    configuration: Configuration,
    demand_multiplier: float,
    overrides: Optional[Mapping[str, ProductOverride]] = None,
) -> CapacityReport:
    """Aggregate routed demand per supplier and assembly site.

    A partially built configuration is accepted (unassigned products carry
    no load), but any reference to an unknown node still raises
    InvalidConfigurationReference.
    """
    network.require_valid(configuration, require_complete=False)

    supplier_load = {s.supplier_id: 0 for s in network.suppliers}
    assembly_load = {a.assembly_id: 0 for a in network.assembly_sites}

    for product in network.effective_products(overrides):
        pick = configuration.get(product.product_id)
        if pick is None:
            continue
        demand = product_demand(product.base_demand, demand_multiplier)
        supplier_load[pick.supplier_id] += demand
        assembly_load[pick.assembly_id] += demand

    return CapacityReport(
        suppliers=[
            SiteLoad(s.supplier_id, s.name, "supplier", supplier_load[s.supplier_id], s.capacity)
            for s in network.suppliers
        ],
        assembly_sites=[
            SiteLoad(a.assembly_id, a.name, "assembly", assembly_load[a.assembly_id], a.capacity)
            for a in network.assembly_sites
        ],
    )
