"""
Solution evaluator — annualized cost, service, carbon and risk of one configuration.

Pure function of (network, configuration, parameters, overrides). Every other
engine component (capacity dashboard, optimizer, Monte Carlo, sensitivity)
calls evaluate(); it is the single place the cost/service/risk math lives.

Per product:
    demand     = round_half_up(base_demand × demand_multiplier)
    material   = demand × (1 + scrap) × unit_cost
    tariff     = material × tariff_rate × tariff_multiplier
    transport  = Σ legs  tonMiles × costPerTonMi,  tonMiles = demand × 0.02 × dist × 1000
    carbon     = Σ legs  tonMiles × carbonPerTonMi
    assembly   = demand × labor_hours × labor_rate × site labor multiplier
    overhead   = fixed_overhead × demand / site capacity   (share of capacity)
    inventory  = (material + tariff + assembly + overhead + transport) × carry
    service    = reliability × lead factor;  network service = min over products
    risk      += (region risk + min(1 − rel, 0.2) + mean leg mode risk) × demand / 10 000

Then the sourcing-concentration term (HHI of supplier demand shares × 0.5) is
added to risk, and the capacity policy is applied: a hard stop (infinite cost)
when overflow is disallowed, otherwise per-site cost penalties and a service
degradation driven by the worst overloaded site.

Overhead is prorated by each product's own share of site
capacity, so the overhead charged at an overloaded site sums past its fixed
overhead. Load exactly equal to capacity is not an overflow.
"""

import math
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional

from planner import config
from planner.entities import ProductOverride
from planner.network import NetworkModel
from planner.scenario import Configuration, Parameters


def clamp(n: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, n))


def round_half_up(x: float) -> int:
    """Round to nearest integer, halves up (2.5 → 3), unlike round()'s banker's rule."""
    return int(math.floor(x + 0.5))


def product_demand(base_demand: float, demand_multiplier: float) -> int:
    return round_half_up(base_demand * demand_multiplier)


def herfindahl(volumes) -> float:
    """Sum of squared shares. 0 when there is no volume at all."""
    volumes = list(volumes)
    total = sum(volumes) or 1
    return sum((v / total) ** 2 for v in volumes)


# ═══════════════════════════════════════════════════════════════════════════════
# RESULT CONTAINERS
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass
class Totals:
    """Network-wide accumulators."""
    units: int = 0
    material: float = 0.0
    tariffs: float = 0.0
    transport_cost: float = 0.0
    assembly: float = 0.0
    overhead: float = 0.0
    inventory: float = 0.0
    carbon_kg: float = 0.0
    risk_index: float = 0.0
    service_level: float = 1.0

    def to_dict(self) -> dict:
        return {
            "units": self.units,
            "material": self.material,
            "tariffs": self.tariffs,
            "transportCost": self.transport_cost,
            "assembly": self.assembly,
            "overhead": self.overhead,
            "inventory": self.inventory,
            "carbonKg": self.carbon_kg,
            "riskIndex": self.risk_index,
            "serviceLevel": self.service_level,
        }


@dataclass
class CapacityState:
    """Per-site load and cost-at-risk, for penalties and bottleneck reporting."""
    supplier_load: Dict[str, int] = field(default_factory=dict)
    assembly_load: Dict[str, int] = field(default_factory=dict)
    material_by_supplier: Dict[str, float] = field(default_factory=dict)
    assembly_cost_by_site: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "supLoad": dict(self.supplier_load),
            "asmLoad": dict(self.assembly_load),
            "matBySup": dict(self.material_by_supplier),
            "asmCostBySite": dict(self.assembly_cost_by_site),
        }


@dataclass
class EvaluationResult:
    """Full report for one configuration. Check `feasible` before trusting cost."""
    totals: Totals
    cost: float
    objective: float
    feasible: bool
    capacity: CapacityState
    overflow_penalty: float = 0.0
    service_degrade: float = 0.0
    carbon_cost: float = 0.0
    risk_cost: float = 0.0
    overloaded_sites: tuple = ()

    @property
    def service_level(self) -> float:
        return self.totals.service_level

    @property
    def risk_index(self) -> float:
        return self.totals.risk_index

    def objective_breakdown(self) -> Dict[str, float]:
        """Cost components plus the risk term; sums to `objective` when finite."""
        t = self.totals
        return {
            "Material": t.material,
            "Tariffs": t.tariffs,
            "Transport": t.transport_cost,
            "Assembly": t.assembly,
            "Overhead": t.overhead,
            "Inventory": t.inventory,
            "Carbon": self.carbon_cost,
            "Overflow Penalty": self.overflow_penalty,
            "Risk": self.risk_cost,
        }

    def to_dict(self) -> dict:
        return {
            "totals": self.totals.to_dict(),
            "cost": self.cost,
            "objective": self.objective,
            "feasible": self.feasible,
            "capacity": self.capacity.to_dict(),
            "overflowPenalty": self.overflow_penalty,
        }


# ═══════════════════════════════════════════════════════════════════════════════
# EVALUATE
# ═══════════════════════════════════════════════════════════════════════════════

def _leg(network: NetworkModel, demand: int, origin: str, dest: str, mode_name: str):
    """(cost, carbon_kg) of moving `demand` units between two regions."""
    mode = network.mode(mode_name)
    ton_miles = (
        demand * config.TONS_PER_UNIT * network.distance(origin, dest) * config.MILES_PER_UNIT
    )
    return ton_miles * mode.cost_per_ton_mi, ton_miles * mode.carbon_per_ton_mi


def evaluate(
    network: NetworkModel,
    configuration: Configuration,
    parameters: Parameters,
    overrides: Optional[Mapping[str, ProductOverride]] = None,
) -> EvaluationResult:
    """Evaluate a complete configuration.

    Raises InvalidConfigurationReference if any assignment names a node,
    product or mode the network does not have, or a product is unassigned.
    Infeasibility is reported in the result, never raised.
    """
    network.require_valid(configuration)
    products = network.effective_products(overrides)
    p = parameters

    totals = Totals()
    cap = CapacityState(
        supplier_load={s.supplier_id: 0 for s in network.suppliers},
        assembly_load={a.assembly_id: 0 for a in network.assembly_sites},
        material_by_supplier={s.supplier_id: 0.0 for s in network.suppliers},
        assembly_cost_by_site={a.assembly_id: 0.0 for a in network.assembly_sites},
    )
    supplier_units: Dict[str, int] = {}

    # ── 1. Per-product accumulation ──────────────────────────────────────
    for product in products:
        pick = configuration[product.product_id]
        sup = network.supplier(pick.supplier_id)
        asm = network.assembly_site(pick.assembly_id)
        dc = network.distribution_center(pick.dc_id)
        demand = product_demand(product.base_demand, p.demand_multiplier)

        material = demand * (1 + product.bom_scrap_rate) * sup.unit_cost
        tariff = material * sup.tariff_rate * p.tariff_multiplier

        sup_cost, sup_carbon = _leg(network, demand, sup.region_id, asm.region_id, pick.supplier_mode)
        dc_cost, dc_carbon = _leg(network, demand, asm.region_id, dc.region_id, pick.dc_mode)
        transport = sup_cost + dc_cost
        carbon = sup_carbon + dc_carbon

        assembly = demand * product.bom_labor_hours * p.labor_rate * asm.labor_cost_multiplier
        overhead = asm.fixed_overhead * (demand / asm.capacity)
        inventory = (material + tariff + assembly + overhead + transport) * p.inventory_carry_pct

        totals.units += demand
        totals.material += material
        totals.tariffs += tariff
        totals.transport_cost += transport
        totals.assembly += assembly
        totals.overhead += overhead
        totals.inventory += inventory
        totals.carbon_kg += carbon

        cap.material_by_supplier[sup.supplier_id] += material
        cap.assembly_cost_by_site[asm.assembly_id] += assembly
        cap.supplier_load[sup.supplier_id] += demand
        cap.assembly_load[asm.assembly_id] += demand
        supplier_units[sup.supplier_id] = supplier_units.get(sup.supplier_id, 0) + demand

        # Service: reliability discounted by lead time on the supplier leg
        lead = sup.lead_time_days + network.mode(pick.supplier_mode).lead_penalty_days
        lead_factor = clamp(
            1 - max(0, lead - config.LEAD_KNEE_DAYS) / config.LEAD_SPAN_DAYS,
            config.LEAD_FLOOR, 1,
        )
        product_service = clamp(sup.reliability * lead_factor, 0, 1)
        totals.service_level = min(totals.service_level, product_service)

        # Risk
        region_risk = network.region(sup.region_id).risk
        reliability_risk = clamp(1 - sup.reliability, 0, config.RELIABILITY_RISK_CAP)
        mode_risk = (config.MODE_RISK[pick.supplier_mode] + config.MODE_RISK[pick.dc_mode]) / 2
        totals.risk_index += (
            (region_risk + reliability_risk + mode_risk) * (demand / config.RISK_DEMAND_SCALE)
        )

    # ── 2. Sourcing concentration ────────────────────────────────────────
    totals.risk_index += herfindahl(supplier_units.values()) * config.HHI_WEIGHT

    # ── 3. Capacity policy ───────────────────────────────────────────────
    overflow_penalty = 0.0
    service_degrade = 0.0
    overloaded = []

    checks = [
        (s.supplier_id, cap.supplier_load[s.supplier_id], s.capacity,
         cap.material_by_supplier[s.supplier_id],
         config.SUPPLIER_OVERFLOW_COST, config.SUPPLIER_OVERFLOW_SERVICE)
        for s in network.suppliers
    ] + [
        (a.assembly_id, cap.assembly_load[a.assembly_id], a.capacity,
         cap.assembly_cost_by_site[a.assembly_id],
         config.ASSEMBLY_OVERFLOW_COST, config.ASSEMBLY_OVERFLOW_SERVICE)
        for a in network.assembly_sites
    ]
    for site_id, load, capacity, cost_at_risk, cost_factor, service_factor in checks:
        if load <= capacity:
            continue
        overloaded.append(site_id)
        if not p.allow_overflow:
            # Hard constraint: nothing after this point applies.
            return EvaluationResult(
                totals=totals, cost=math.inf, objective=math.inf, feasible=False,
                capacity=cap, overloaded_sites=tuple(overloaded),
            )
        ratio = (load - capacity) / load
        overflow_penalty += cost_at_risk * ratio * cost_factor
        service_degrade = max(
            service_degrade, service_factor * ratio * config.OVERFLOW_SERVICE_AMPLIFIER
        )

    if service_degrade > 0:
        totals.service_level = clamp(totals.service_level * (1 - service_degrade), 0, 1)

    # ── 4. Cost & objective ──────────────────────────────────────────────
    carbon_cost = totals.carbon_kg * p.carbon_price
    cost = (
        totals.material + totals.tariffs + totals.transport_cost + totals.assembly
        + totals.overhead + totals.inventory + carbon_cost + overflow_penalty
    )
    risk_cost = p.risk_weight * totals.risk_index * config.RISK_SCALE
    objective = cost + risk_cost
    feasible = totals.service_level >= p.service_target and math.isfinite(cost)

    return EvaluationResult(
        totals=totals,
        cost=cost,
        objective=objective,
        feasible=feasible,
        capacity=cap,
        overflow_penalty=overflow_penalty,
        service_degrade=service_degrade,
        carbon_cost=carbon_cost,
        risk_cost=risk_cost,
        overloaded_sites=tuple(overloaded),
    )
