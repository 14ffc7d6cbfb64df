"""
PlannerSession — caller-owned state for an interactive planning session.

The engine modules are pure functions of their inputs. Everything a UI keeps
between interactions (current configuration, parameters, product overrides,
scenario/variant/profile selection, volatility settings, saved snapshots)
lives on this object instead, and each operation passes its full input to
the engine explicitly.

Edits never leave the session half-updated: a new configuration or
parameter set is built and validated first, then swapped in. Optimize
follows apply-or-keep-previous: the configuration changes only when the
strategy returns one.

One session should run one optimize / Monte Carlo / sensitivity job at a
time; callers that dispatch these in the background must serialize them.
"""

import logging
from dataclasses import replace
from datetime import datetime, timezone
from typing import List, Optional

from planner import config
from planner.capacity import CapacityReport, compute_loads
from planner.compare import compare_scenarios
from planner.entities import ProductOverride
from planner.evaluator import EvaluationResult, evaluate
from planner.generator import generate_network
from planner.knowledge_graph import SupplyChainGraph
from planner.monte_carlo import MonteCarloResult, simulate
from planner.network import InvalidConfigurationReference, NetworkModel
from planner.optimizer import LocalExhaustiveSolver, OptimizeResult, OptimizerStrategy
from planner.scenario import (
    Parameters,
    Scenario,
    apply_profile,
    default_configuration,
    demand_multiplier_for,
    next_mode,
)
from planner.sensitivity import SensitivityRow, run_sensitivity

logger = logging.getLogger(__name__)


class PlannerSession:
    def __init__(self, network: Optional[NetworkModel] = None, seed: int = config.DEFAULT_SEED):
        self.network = network or generate_network(seed)
        self.master = config.DEFAULT_MASTER
        self.variant = config.DEFAULT_VARIANT
        self.profile_id = config.DEFAULT_PROFILE
        self.parameters = Parameters(
            demand_multiplier=demand_multiplier_for(self.master, self.variant)
        )
        self.configuration = default_configuration(self.network)
        self.overrides: dict = {}
        self.demand_volatility = config.MC_DEMAND_VOLATILITY
        self.reliability_volatility = config.MC_RELIABILITY_VOLATILITY
        self.saved: List[Scenario] = []

    # ── Parameter edits ──────────────────────────────────────────────────────

    def select_scenario(self, master: Optional[str] = None, variant: Optional[str] = None):
        """Switch master scenario and/or variant; recomputes the demand multiplier."""
        master = master or self.master
        variant = variant or self.variant
        if master not in config.MASTER_SCENARIOS:
            raise ValueError(f"Unknown scenario {master}")
        if variant not in config.VARIANTS:
            raise ValueError(f"Unknown variant {variant}")
        self.master, self.variant = master, variant
        self.parameters = self.parameters.with_changes(
            demand_multiplier=demand_multiplier_for(master, variant)
        )

    def apply_profile(self, profile_id: str):
        if profile_id not in config.OEM_PROFILES:
            raise ValueError(f"Unknown OEM profile {profile_id}")
        self.profile_id = profile_id
        self.parameters = apply_profile(self.parameters, profile_id)

    def set_parameters(self, **changes):
        self.parameters = self.parameters.with_changes(**changes)

    # ── Configuration edits ──────────────────────────────────────────────────

    def _swap_configuration(self, candidate: dict):
        self.network.require_valid(candidate)
        self.configuration = candidate

    def assign(self, product_id: str, **fields):
        """Change any of supplier_id / assembly_id / dc_id / supplier_mode / dc_mode."""
        if product_id not in self.configuration:
            raise InvalidConfigurationReference(f"Unknown product {product_id}")
        candidate = dict(self.configuration)
        candidate[product_id] = replace(candidate[product_id], **fields)
        self._swap_configuration(candidate)

    def cycle_mode(self, product_id: str, leg: str) -> str:
        """Advance one leg's mode (air → ground → ocean → air). Returns the new mode."""
        if leg not in ("supplier", "dc"):
            raise ValueError(f"leg must be 'supplier' or 'dc', got {leg!r}")
        field_name = f"{leg}_mode"
        mode = next_mode(getattr(self.configuration[product_id], field_name))
        self.assign(product_id, **{field_name: mode})
        return mode

    # ── Product overrides ────────────────────────────────────────────────────

    def set_override(self, product_id: str, **fields):
        """Merge field edits into the product's override (None clears a field)."""
        if self.network.product(product_id) is None:
            raise InvalidConfigurationReference(f"Unknown product {product_id}")
        unknown = set(fields) - set(ProductOverride.field_names())
        if unknown:
            raise ValueError(f"Unknown override field(s) {', '.join(sorted(unknown))}")
        merged = replace(self.overrides.get(product_id, ProductOverride()), **fields)
        overrides = dict(self.overrides)
        if merged.is_empty():
            overrides.pop(product_id, None)
        else:
            overrides[product_id] = merged
        self.overrides = overrides

    def clear_override(self, product_id: str):
        overrides = dict(self.overrides)
        overrides.pop(product_id, None)
        self.overrides = overrides

    # ── Engine calls ─────────────────────────────────────────────────────────

    def evaluate(self) -> EvaluationResult:
        return evaluate(self.network, self.configuration, self.parameters, self.overrides)

    def loads(self) -> CapacityReport:
        return compute_loads(
            self.network, self.configuration, self.parameters.demand_multiplier, self.overrides
        )

    def graph(self) -> SupplyChainGraph:
        return SupplyChainGraph(self.network, self.configuration)

    def optimize(self, strategy: Optional[OptimizerStrategy] = None) -> OptimizeResult:
        """Run a strategy; adopt its configuration only if it found one."""
        strategy = strategy or LocalExhaustiveSolver()
        # Snapshot inputs so edits made while the strategy runs cannot leak in.
        configuration, parameters, overrides = (
            dict(self.configuration), self.parameters, dict(self.overrides)
        )
        result = strategy.solve(self.network, configuration, parameters, overrides)
        if result.found:
            self._swap_configuration(dict(result.configuration))
        else:
            logger.info("Optimizer (%s): %s; keeping current configuration",
                        strategy.name, result.status)
        return result

    def monte_carlo(
        self, samples: int = config.MC_SAMPLES, seed: Optional[int] = None
    ) -> MonteCarloResult:
        return simulate(
            self.network, self.configuration, self.parameters,
            demand_volatility=self.demand_volatility,
            reliability_volatility=self.reliability_volatility,
            samples=samples, overrides=self.overrides, seed=seed,
        )

    def sensitivity(self) -> List[SensitivityRow]:
        return run_sensitivity(self.network, self.configuration, self.parameters, self.overrides)

    # ── Saved scenarios ──────────────────────────────────────────────────────

    def snapshot(self, now: Optional[datetime] = None) -> Scenario:
        now = now or datetime.now(timezone.utc)
        return Scenario(
            scenario_id=Scenario.make_id(self.master, self.variant, now),
            master=self.master,
            variant=self.variant,
            profile_id=self.profile_id,
            configuration=dict(self.configuration),
            parameters=self.parameters,
            overrides=dict(self.overrides),
            metrics=self.evaluate().to_dict(),
            timestamp=now.isoformat(),
        )

    def save_scenario(self, now: Optional[datetime] = None) -> Scenario:
        """Save the current state (newest first, capped). Infeasible states are refused."""
        snap = self.snapshot(now)
        if not snap.metrics["feasible"]:
            raise ValueError("Cannot save an infeasible scenario")
        self.saved = [snap] + self.saved[: config.MAX_SAVED_SCENARIOS - 1]
        return snap

    def load_scenario(self, scenario_id: str):
        """Restore a saved snapshot's inputs into the session."""
        snap = next((s for s in self.saved if s.scenario_id == scenario_id), None)
        if snap is None:
            raise KeyError(scenario_id)
        self.restore(snap)

    def restore(self, scenario: Scenario):
        self.network.require_valid(scenario.configuration)
        self.network.effective_products(scenario.overrides)
        self.configuration = dict(scenario.configuration)
        self.overrides = dict(scenario.overrides)
        self.parameters = scenario.parameters
        self.master, self.variant = scenario.master, scenario.variant
        self.profile_id = scenario.profile_id

    def clear_saved(self):
        self.saved = []

    def compare(self, baseline_id: Optional[str] = None):
        return compare_scenarios(self.saved, baseline_id)
