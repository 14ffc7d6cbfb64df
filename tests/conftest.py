"""
Shared builders for hand-made test networks.

`single_lane_network` reproduces the documented worked example: one product,
one supplier/assembly/DC in a single region, 1.0 thousand miles per leg.
"""

import pytest

from planner.entities import (
    AssemblySite,
    DistributionCenter,
    Product,
    Region,
    Supplier,
    TransportMode,
)
from planner.generator import TRANSPORT, generate_network
from planner.network import NetworkModel
from planner.scenario import Assignment, Parameters


def make_modes():
    return [TransportMode(**t) for t in TRANSPORT]


def single_lane_network(
    supplier_capacity=1000,
    site_capacity=1000,
    suppliers=None,
    products=None,
    distances=None,
):
    region = Region("R1", "Test Region", risk=0.10, carbon=0.5)
    if suppliers is None:
        suppliers = [Supplier("S1", "Supplier One", "R1", unit_cost=100, lead_time_days=20,
                              reliability=0.95, capacity=supplier_capacity, tariff_rate=0.05)]
    if products is None:
        products = [Product("P1", "Widget", base_demand=1000, bom_labor_hours=2,
                            bom_scrap_rate=0.0)]
    return NetworkModel(
        regions=[region],
        suppliers=suppliers,
        assembly_sites=[AssemblySite("A1", "Plant", "R1", labor_cost_multiplier=1.0,
                                     fixed_overhead=100_000, capacity=site_capacity)],
        distribution_centers=[DistributionCenter("D1", "DC", "R1")],
        products=products,
        transport_modes=make_modes(),
        distances={("R1", "R1"): 1.0} if distances is None else distances,
    )


def worked_parameters(**changes):
    base = Parameters(
        service_target=0.9, labor_rate=75, tariff_multiplier=1.0, carbon_price=0.02,
        inventory_carry_pct=0.10, risk_weight=0.4, demand_multiplier=1.0,
        allow_overflow=True,
    )
    return base.with_changes(**changes)


def ground_config(product_ids=("P1",), supplier_id="S1"):
    return {pid: Assignment(supplier_id, "A1", "D1", "ground", "ground") for pid in product_ids}


@pytest.fixture(scope="module")
def network():
    """Reference network used by the planner UI."""
    return generate_network(137)


@pytest.fixture
def lane_network():
    return single_lane_network()
