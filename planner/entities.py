"""
Entity layer — typed, immutable records for the supply network.

Frozen dataclasses for each node type (Region, Supplier, AssemblySite,
DistributionCenter), the product catalog (Product + sparse ProductOverride),
and the fixed set of transport modes. Entities reference their region by id;
NetworkModel resolves those references.
"""

from dataclasses import dataclass, fields, replace
from typing import Optional


# ═══════════════════════════════════════════════════════════════════════════════
# NODES
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Region:
    """A sourcing/delivery region with geopolitical risk and grid carbon factor."""
    region_id: str
    name: str
    risk: float      # 0..1
    carbon: float


@dataclass(frozen=True)
class Supplier:
    """A component supplier with cost, lead time, reliability and capacity."""
    supplier_id: str
    name: str
    region_id: str
    unit_cost: float
    lead_time_days: int
    reliability: float    # (0, 1]
    capacity: int         # units / period
    tariff_rate: float

    def with_reliability(self, reliability: float) -> "Supplier":
        """Copy of this supplier with a different reliability (used for shocks)."""
        return replace(self, reliability=reliability)


@dataclass(frozen=True)
class AssemblySite:
    """A final-assembly plant. Overhead is charged pro rata to capacity share."""
    assembly_id: str
    name: str
    region_id: str
    labor_cost_multiplier: float
    fixed_overhead: float
    capacity: int


@dataclass(frozen=True)
class DistributionCenter:
    dc_id: str
    name: str
    region_id: str


@dataclass(frozen=True)
class TransportMode:
    """One of the three freight modes: air, ground, ocean."""
    mode: str
    cost_per_ton_mi: float
    lead_penalty_days: int    # signed; added to supplier lead time
    carbon_per_ton_mi: float


TRANSPORT_MODES = ("air", "ground", "ocean")


# ═══════════════════════════════════════════════════════════════════════════════
# PRODUCT CATALOG
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Product:
    """A line-replaceable unit (LRU) whose demand drives every calculation."""
    product_id: str
    name: str
    base_demand: float
    bom_labor_hours: float
    bom_scrap_rate: float    # [0, 1)


@dataclass(frozen=True)
class ProductOverride:
    """Sparse per-scenario edit of a product. Unset fields keep the base value."""
    base_demand: Optional[float] = None
    bom_labor_hours: Optional[float] = None
    bom_scrap_rate: Optional[float] = None

    def apply(self, product: Product) -> Product:
        """Merge field-by-field onto a base product."""
        changes = {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not None
        }
        return replace(product, **changes) if changes else product

    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is None for f in fields(self))

    @classmethod
    def field_names(cls) -> tuple:
        return tuple(f.name for f in fields(cls))
