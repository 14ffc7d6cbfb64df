"""
Exhaustive configuration optimizer.

Depth-first enumeration over products in catalog order. For each product it
branches over every (supplier × assembly site × DC × supplier-leg mode ×
DC-leg mode) combination (9 leg-mode pairs per site triple) and evaluates
each complete configuration with the shared evaluator.

A configuration replaces the running best only if it is feasible AND its
objective is strictly lower, so ties keep the first one found in enumeration
order over the network's fixed node lists.

There is no pruning or bound: the search visits
    (|suppliers| · |assembly| · |dc| · 9) ^ |products|
configurations. It is the correctness baseline for small catalogs, and the
fallback whenever a delegated solver fails (see planner/remote.py).
"""

import itertools
import logging
from dataclasses import dataclass
from typing import Mapping, Optional

from planner.entities import ProductOverride
from planner.evaluator import EvaluationResult, evaluate
from planner.network import NetworkModel
from planner.scenario import Assignment, Configuration, Parameters

logger = logging.getLogger(__name__)

STATUS_OPTIMAL = "Optimal"
STATUS_INFEASIBLE = "Infeasible: no feasible configuration"
STATUS_REMOTE = "Remote"


@dataclass
class OptimizeResult:
    """Container for optimizer output. `configuration` is None when nothing is feasible."""
    status: str
    configuration: Optional[Configuration] = None
    evaluation: Optional[EvaluationResult] = None
    evaluated: int = 0            # complete configurations evaluated
    source: str = "local"         # "local" or "remote"

    @property
    def found(self) -> bool:
        return self.configuration is not None


def search_space_size(network: NetworkModel) -> int:
    """Number of complete configurations the exhaustive search will visit."""
    per_product = (
        len(network.suppliers) * len(network.assembly_sites)
        * len(network.distribution_centers) * len(network.transport_modes) ** 2
    )
    return per_product ** len(network.products)


def _choices(network: NetworkModel):
    """Every Assignment for one product, in enumeration order."""
    modes = network.mode_names
    return [
        Assignment(s.supplier_id, a.assembly_id, d.dc_id, m1, m2)
        for s, a, d, m1, m2 in itertools.product(
            network.suppliers, network.assembly_sites, network.distribution_centers,
            modes, modes,
        )
    ]


def optimize(
    network: NetworkModel,
    parameters: Parameters,
    overrides: Optional[Mapping[str, ProductOverride]] = None,
) -> OptimizeResult:
    """Return the feasible configuration with the lowest objective, if any."""
    # Fail fast on bad overrides rather than once per leaf.
    network.effective_products(overrides)

    product_ids = [p.product_id for p in network.products]
    choices = _choices(network)
    current: dict = {}
    best = {"configuration": None, "evaluation": None}
    evaluated = 0

    def dfs(idx: int):
        nonlocal evaluated
        if idx == len(product_ids):
            res = evaluate(network, current, parameters, overrides)
            evaluated += 1
            incumbent = best["evaluation"]
            if res.feasible and (incumbent is None or res.objective < incumbent.objective):
                best["configuration"] = dict(current)
                best["evaluation"] = res
            return
        pid = product_ids[idx]
        for choice in choices:
            current[pid] = choice
            dfs(idx + 1)
        del current[pid]

    dfs(0)

    if best["configuration"] is None:
        logger.info("Exhaustive search: %d configurations, none feasible", evaluated)
        return OptimizeResult(status=STATUS_INFEASIBLE, evaluated=evaluated)

    logger.info(
        "Exhaustive search: %d configurations, best objective %.2f",
        evaluated, best["evaluation"].objective,
    )
    return OptimizeResult(
        status=STATUS_OPTIMAL,
        configuration=best["configuration"],
        evaluation=best["evaluation"],
        evaluated=evaluated,
    )


# ═══════════════════════════════════════════════════════════════════════════════
# STRATEGIES
# ═══════════════════════════════════════════════════════════════════════════════

class OptimizerStrategy:
    """Common interface: (network, configuration, parameters, overrides) → OptimizeResult.

    `configuration` is the caller's current configuration; the local search
    ignores it, a delegated solver may use it as a warm start.
    """

    name = "base"

    def solve(
        self,
        network: NetworkModel,
        configuration: Configuration,
        parameters: Parameters,
        overrides: Optional[Mapping[str, ProductOverride]] = None,
    ) -> OptimizeResult:
        raise NotImplementedError


class LocalExhaustiveSolver(OptimizerStrategy):
    name = "local"

    def solve(self, network, configuration, parameters, overrides=None):
        return optimize(network, parameters, overrides)
