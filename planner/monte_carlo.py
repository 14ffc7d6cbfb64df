"""
Monte Carlo robustness assessment of a fixed configuration.

Each sample perturbs the demand multiplier and every supplier's reliability
with independent standard-normal shocks, then re-evaluates the SAME
configuration. Nothing is re-optimized.

    demand_multiplier' = demand_multiplier × (1 + z × demand_volatility)
    reliability'       = clamp(reliability + z_s × reliability_volatility, 0.80, 0.995)

Normal draws use Box–Muller on two uniforms from numpy's Generator; a uniform
of exactly 0 is redrawn so log(0) can never produce a non-finite shock.

Outputs: share of samples whose service level meets the target, mean cost,
and the p10/p90 cost by nearest rank on the sorted costs
(index = floor(p × (N − 1))).
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Mapping, Optional

import numpy as np
import pandas as pd

from planner import config
from planner.entities import ProductOverride
from planner.evaluator import clamp, evaluate
from planner.network import NetworkModel
from planner.scenario import Configuration, Parameters

logger = logging.getLogger(__name__)


def normal_draw(rng) -> float:
    """One standard-normal sample via Box–Muller. `rng` needs a random() → [0, 1)."""
    u = 0.0
    while u == 0.0:
        u = rng.random()
    v = 0.0
    while v == 0.0:
        v = rng.random()
    return math.sqrt(-2.0 * math.log(u)) * math.cos(2.0 * math.pi * v)


def nearest_rank(sorted_values: np.ndarray, p: float) -> float:
    idx = int(math.floor(clamp(p, 0.0, 1.0) * (len(sorted_values) - 1)))
    return float(sorted_values[idx])


@dataclass
class MonteCarloResult:
    probability_meets_target: float
    mean_cost: float
    p10_cost: float
    p90_cost: float
    samples: int
    costs: np.ndarray = field(default_factory=lambda: np.array([]), repr=False)

    def to_frame(self) -> pd.DataFrame:
        """Sorted sample costs, one row per sample, with the p10/p90 band flagged."""
        return pd.DataFrame({
            "sample": np.arange(len(self.costs)),
            "cost": self.costs,
            "in_p10_p90": (self.costs >= self.p10_cost) & (self.costs <= self.p90_cost),
        })


def simulate(
    network: NetworkModel,
    configuration: Configuration,
    parameters: Parameters,
    demand_volatility: float = config.MC_DEMAND_VOLATILITY,
    reliability_volatility: float = config.MC_RELIABILITY_VOLATILITY,
    samples: int = config.MC_SAMPLES,
    overrides: Optional[Mapping[str, ProductOverride]] = None,
    seed: Optional[int] = None,
    rng=None,
) -> MonteCarloResult:
    """Run `samples` perturbed evaluations of `configuration`.

    Pass `seed` for a reproducible run, or `rng` to supply any object with a
    random() method (takes precedence over seed).
    """
    if samples < 1:
        raise ValueError(f"samples must be >= 1, got {samples}")
    network.require_valid(configuration)
    rng = rng if rng is not None else np.random.default_rng(seed)
    lo, hi = config.MC_RELIABILITY_BOUNDS

    hits = 0
    costs = np.empty(samples)
    for i in range(samples):
        demand_shock = normal_draw(rng)
        # A large negative shock would otherwise imply negative demand.
        dm = max(0.0, parameters.demand_multiplier * (1 + demand_shock * demand_volatility))
        shocked = network.with_supplier_reliability({
            s.supplier_id: clamp(s.reliability + normal_draw(rng) * reliability_volatility, lo, hi)
            for s in network.suppliers
        })
        res = evaluate(shocked, configuration, parameters.with_changes(demand_multiplier=dm), overrides)
        if res.totals.service_level >= parameters.service_target:
            hits += 1
        costs[i] = res.cost

    costs.sort()
    p_lo, p_hi = config.MC_PERCENTILES
    result = MonteCarloResult(
        probability_meets_target=hits / samples,
        mean_cost=float(costs.mean()),
        p10_cost=nearest_rank(costs, p_lo),
        p90_cost=nearest_rank(costs, p_hi),
        samples=samples,
        costs=costs,
    )
    logger.info(
        "Monte Carlo: %d samples, P(service >= %.2f) = %.3f, mean cost %.0f",
        samples, parameters.service_target, result.probability_meets_target, result.mean_cost,
    )
    return result
