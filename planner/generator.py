"""
Reference Network Generator
===========================
Builds the aerospace LRU supply network used by the planner: 4 regions,
4 suppliers, 2 assembly sites, 2 distribution centers, 3 products and the
three freight modes.

Supplier cost, lead time and reliability are drawn from a Lehmer (Park–Miller
"minimal standard") generator so that a seed reproduces the exact same network
in every run and in every implementation sharing the same contract:

    state_0 = seed mod 2_147_483_647
    state   = state * 48_271 mod 2_147_483_647
    draw    = state / 2_147_483_647

Python integers keep the product exact. Draw order is fixed: for each supplier
S1..S4 in turn, unit cost, then lead time, then reliability.
"""

import math

from planner import config
from planner.entities import (
    AssemblySite,
    DistributionCenter,
    Product,
    Region,
    Supplier,
    TransportMode,
)
from planner.network import NetworkModel


class LehmerRandom:
    """Seeded Lehmer generator. random() returns a float in (0, 1)."""

    def __init__(self, seed: int):
        state = seed % config.LEHMER_MODULUS
        if state == 0:
            raise ValueError(
                f"Seed {seed} is a multiple of {config.LEHMER_MODULUS}; "
                "the generator would only ever return 0"
            )
        self._state = state

    def random(self) -> float:
        self._state = (self._state * config.LEHMER_MULTIPLIER) % config.LEHMER_MODULUS
        return self._state / config.LEHMER_MODULUS


# ═══════════════════════════════════════════════════════════════════════════════
# 1. REFERENCE DATA
# ═══════════════════════════════════════════════════════════════════════════════

REGIONS = [
    {"region_id": "NA", "name": "North America", "risk": 0.10, "carbon": 0.6},
    {"region_id": "EU", "name": "Europe",        "risk": 0.08, "carbon": 0.5},
    {"region_id": "AP", "name": "Asia Pacific",  "risk": 0.14, "carbon": 0.8},
    {"region_id": "MX", "name": "Mexico",        "risk": 0.11, "carbon": 0.65},
]

# Randomized fields are (base, spread): unit_cost = base + spread * draw,
# lead_time = base + floor(spread * draw), reliability = base - spread * draw.
SUPPLIERS = [
    {"supplier_id": "S1", "name": "Supplier A", "region_id": "NA",
     "unit_cost": (120, 20), "lead_time": (18, 6), "reliability": (0.96, 0.03),
     "capacity": 12000, "tariff_rate": 0.02},
    {"supplier_id": "S2", "name": "Supplier B", "region_id": "AP",
     "unit_cost": (95, 15), "lead_time": (28, 8), "reliability": (0.93, 0.03),
     "capacity": 18000, "tariff_rate": 0.05},
    {"supplier_id": "S3", "name": "Supplier C", "region_id": "EU",
     "unit_cost": (110, 20), "lead_time": (20, 8), "reliability": (0.95, 0.02),
     "capacity": 15000, "tariff_rate": 0.03},
    {"supplier_id": "S4", "name": "Supplier D", "region_id": "MX",
     "unit_cost": (100, 20), "lead_time": (22, 5), "reliability": (0.94, 0.02),
     "capacity": 13000, "tariff_rate": 0.04},
]

ASSEMBLY_SITES = [
    {"assembly_id": "A1", "name": "Assembly East", "region_id": "NA",
     "labor_cost_multiplier": 1.0, "fixed_overhead": 1_000_000, "capacity": 15000},
    {"assembly_id": "A2", "name": "Assembly West", "region_id": "NA",
     "labor_cost_multiplier": 0.95, "fixed_overhead": 900_000, "capacity": 14000},
]

DISTRIBUTION_CENTERS = [
    {"dc_id": "D1", "name": "DC East", "region_id": "NA"},
    {"dc_id": "D2", "name": "DC West", "region_id": "NA"},
]

PRODUCTS = [
    {"product_id": "L1", "name": "LRU-Avionics",
     "base_demand": 8000, "bom_labor_hours": 2.4, "bom_scrap_rate": 0.02},
    {"product_id": "L2", "name": "LRU-Power Unit",
     "base_demand": 6500, "bom_labor_hours": 3.1, "bom_scrap_rate": 0.03},
    {"product_id": "L3", "name": "LRU-Cooling Module",
     "base_demand": 5000, "bom_labor_hours": 2.0, "bom_scrap_rate": 0.025},
]

# $/ton-mile, lead-time penalty (days), kg CO2/ton-mile
TRANSPORT = [
    {"mode": "air",    "cost_per_ton_mi": 0.95, "lead_penalty_days": -5, "carbon_per_ton_mi": 1.8},
    {"mode": "ground", "cost_per_ton_mi": 0.35, "lead_penalty_days": 0,  "carbon_per_ton_mi": 0.6},
    {"mode": "ocean",  "cost_per_ton_mi": 0.12, "lead_penalty_days": 14, "carbon_per_ton_mi": 0.25},
]

# Thousand miles. Only lanes into North America are tabulated; anything
# else uses the evaluator's fallback distance.
DISTANCES = {
    ("NA", "NA"): 0.8,
    ("AP", "NA"): 6.2,
    ("EU", "NA"): 3.8,
    ("MX", "NA"): 1.1,
}


# ═══════════════════════════════════════════════════════════════════════════════
# 2. BUILD
# ═══════════════════════════════════════════════════════════════════════════════

def _draw_supplier(row: dict, rnd: LehmerRandom) -> Supplier:
    cost_base, cost_spread = row["unit_cost"]
    lead_base, lead_spread = row["lead_time"]
    rel_base, rel_spread = row["reliability"]
    # Order matters: cost, lead time, reliability.
    unit_cost = cost_base + cost_spread * rnd.random()
    lead_time = lead_base + math.floor(lead_spread * rnd.random())
    reliability = rel_base - rel_spread * rnd.random()
    return Supplier(
        supplier_id=row["supplier_id"],
        name=row["name"],
        region_id=row["region_id"],
        unit_cost=unit_cost,
        lead_time_days=lead_time,
        reliability=reliability,
        capacity=row["capacity"],
        tariff_rate=row["tariff_rate"],
    )


def generate_network(seed: int = config.GENERATOR_SEED) -> NetworkModel:
    """Deterministically build the reference network for a seed."""
    rnd = LehmerRandom(seed)
    return NetworkModel(
        regions=[Region(**r) for r in REGIONS],
        suppliers=[_draw_supplier(s, rnd) for s in SUPPLIERS],
        assembly_sites=[AssemblySite(**a) for a in ASSEMBLY_SITES],
        distribution_centers=[DistributionCenter(**d) for d in DISTRIBUTION_CENTERS],
        products=[Product(**p) for p in PRODUCTS],
        transport_modes=[TransportMode(**t) for t in TRANSPORT],
        distances=DISTANCES,
    )
