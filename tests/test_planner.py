"""
Test suite for the supply chain strategy engine.

Uses the seeded reference network plus small hand-built networks whose
figures can be checked by hand (see conftest.py).

Tests cover:
  1. Network generation (Lehmer generator contract, determinism, ranges)
  2. Network model (lookups, validation, override merge, distance fallback)
  3. Evaluator worked example
  4. Evaluator properties (purity, monotonicity, rounding, concentration)
  5. Capacity policy (hard stop, overflow penalty, service degradation)
  6. Capacity load calculator (conservation, bottlenecks)
  7. Optimizer (known optimum, tie-break, none-feasible)
  8. Monte Carlo (zero volatility, reproducibility, Box–Muller)
  9. Sensitivity (tornado ranking)
  10. Scenario inputs (templates, profiles, envelope)
  11. Knowledge graph

Run: python -m pytest tests -v
"""

import itertools
import logging
import math

import numpy as np
import pytest

from conftest import ground_config, single_lane_network, worked_parameters
from planner import config
from planner.capacity import compute_loads
from planner.entities import Product, ProductOverride, Supplier
from planner.evaluator import evaluate, herfindahl, round_half_up
from planner.generator import LehmerRandom, generate_network
from planner.knowledge_graph import SupplyChainGraph
from planner.monte_carlo import nearest_rank, normal_draw, simulate
from planner.network import InvalidConfigurationReference
from planner.optimizer import STATUS_INFEASIBLE, STATUS_OPTIMAL, optimize, search_space_size
from planner.scenario import (
    Assignment,
    Parameters,
    Scenario,
    apply_profile,
    default_configuration,
    demand_multiplier_for,
    next_mode,
)
from planner.sensitivity import run_sensitivity, to_frame


# ═══════════════════════════════════════════════════════════════════════════════
# 1. NETWORK GENERATION
# ═══════════════════════════════════════════════════════════════════════════════

class TestGenerator:
    def test_first_draws_follow_lehmer_recurrence(self):
        rnd = LehmerRandom(42)
        m = config.LEHMER_MODULUS
        s1 = (42 * 48271) % m
        s2 = (s1 * 48271) % m
        assert rnd.random() == s1 / m
        assert rnd.random() == s2 / m

    def test_minimal_standard_check_value(self):
        """The 10 000th state from seed 1 is the published minstd_rand value."""
        rnd = LehmerRandom(1)
        for _ in range(10_000):
            draw = rnd.random()
        assert round(draw * config.LEHMER_MODULUS) == 399268537

    def test_seed_is_reduced_modulo(self):
        a = LehmerRandom(5)
        b = LehmerRandom(5 + config.LEHMER_MODULUS)
        assert [a.random() for _ in range(3)] == [b.random() for _ in range(3)]

    def test_zero_state_seed_rejected(self):
        with pytest.raises(ValueError):
            LehmerRandom(config.LEHMER_MODULUS)

    def test_same_seed_identical_network(self):
        a = generate_network(137)
        b = generate_network(137)
        assert a.suppliers == b.suppliers
        assert a.to_dict() == b.to_dict()

    def test_different_seed_different_suppliers(self):
        assert generate_network(137).suppliers != generate_network(138).suppliers

    def test_supplier_fields_within_ranges(self, network):
        s1, s2, s3, s4 = network.suppliers
        assert 120 <= s1.unit_cost < 140
        assert 18 <= s1.lead_time_days <= 23
        assert 0.93 < s1.reliability <= 0.96
        assert 95 <= s2.unit_cost < 110
        assert 28 <= s2.lead_time_days <= 35
        assert 110 <= s3.unit_cost < 130
        assert 100 <= s4.unit_cost < 120
        for s in network.suppliers:
            assert isinstance(s.lead_time_days, int)

    def test_first_supplier_uses_first_three_draws(self):
        rnd = LehmerRandom(42)
        cost, lead, rel = rnd.random(), rnd.random(), rnd.random()
        s1 = generate_network(42).suppliers[0]
        assert s1.unit_cost == 120 + 20 * cost
        assert s1.lead_time_days == 18 + math.floor(6 * lead)
        assert s1.reliability == 0.96 - 0.03 * rel

    def test_network_dimensions(self, network):
        assert len(network.regions) == 4
        assert len(network.suppliers) == 4
        assert len(network.assembly_sites) == 2
        assert len(network.distribution_centers) == 2
        assert len(network.products) == 3
        assert network.mode_names == ["air", "ground", "ocean"]


# ═══════════════════════════════════════════════════════════════════════════════
# 2. NETWORK MODEL
# ═══════════════════════════════════════════════════════════════════════════════

class TestNetworkModel:
    def test_lookups(self, network):
        assert network.supplier("S2").region_id == "AP"
        assert network.assembly_site("A2").fixed_overhead == 900_000
        assert network.supplier("S99") is None

    def test_distance_table_and_fallback(self, network):
        assert network.distance("AP", "NA") == 6.2
        assert network.distance("NA", "AP") == config.DISTANCE_FALLBACK

    def test_distance_fallback_is_logged(self, network, caplog):
        with caplog.at_level(logging.DEBUG, logger="planner.network"):
            network.distance("EU", "MX")
        assert "fallback" in caplog.text

    def test_default_configuration_is_valid(self, network):
        valid, reason = network.validate_configuration(default_configuration(network))
        assert valid, reason

    def test_unknown_supplier_rejected(self, network):
        cfg = default_configuration(network)
        cfg["L1"] = Assignment("S9", "A1", "D1")
        valid, reason = network.validate_configuration(cfg)
        assert valid is False
        assert "S9" in reason
        with pytest.raises(InvalidConfigurationReference):
            evaluate(network, cfg, Parameters())

    def test_unknown_mode_rejected(self, network):
        cfg = default_configuration(network)
        cfg["L2"] = Assignment("S1", "A1", "D1", "rail", "ground")
        with pytest.raises(InvalidConfigurationReference):
            evaluate(network, cfg, Parameters())

    def test_incomplete_configuration_rejected(self, network):
        cfg = default_configuration(network)
        del cfg["L3"]
        with pytest.raises(InvalidConfigurationReference, match="L3"):
            evaluate(network, cfg, Parameters())

    def test_override_merges_field_by_field(self, network):
        products = network.effective_products({"L2": ProductOverride(base_demand=9000)})
        l2 = products[1]
        assert l2.base_demand == 9000
        assert l2.bom_labor_hours == network.product("L2").bom_labor_hours
        assert l2.bom_scrap_rate == network.product("L2").bom_scrap_rate
        assert products[0] == network.product("L1")

    def test_override_for_unknown_product_rejected(self, network):
        with pytest.raises(InvalidConfigurationReference):
            network.effective_products({"L9": ProductOverride(base_demand=1)})

    def test_with_supplier_reliability_leaves_original(self, network):
        shocked = network.with_supplier_reliability({"S1": 0.81})
        assert shocked.supplier("S1").reliability == 0.81
        assert network.supplier("S1").reliability != 0.81
        assert shocked.supplier("S2") == network.supplier("S2")

    def test_with_suppliers_keeps_rest_of_network(self, network):
        trimmed = network.with_suppliers(network.suppliers[:2])
        assert [s.supplier_id for s in trimmed.suppliers] == ["S1", "S2"]
        assert trimmed.supplier("S3") is None
        assert trimmed.assembly_sites == network.assembly_sites
        assert trimmed.distances == network.distances


# ═══════════════════════════════════════════════════════════════════════════════
# 3. WORKED EXAMPLE
# ═══════════════════════════════════════════════════════════════════════════════

class TestWorkedExample:
    @pytest.fixture
    def result(self, lane_network):
        return evaluate(lane_network, ground_config(), worked_parameters())

    def test_cost_components(self, result):
        t = result.totals
        assert t.units == 1000
        assert t.material == pytest.approx(100_000)
        assert t.tariffs == pytest.approx(5_000)
        assert t.transport_cost == pytest.approx(14_000)
        assert t.carbon_kg == pytest.approx(24_000)
        assert t.assembly == pytest.approx(150_000)
        assert t.overhead == pytest.approx(100_000)
        assert t.inventory == pytest.approx(36_900)

    def test_cost_objective_and_feasibility(self, result):
        assert result.cost == pytest.approx(406_380)
        assert result.totals.service_level == pytest.approx(0.95)
        assert result.totals.risk_index == pytest.approx(0.519)
        assert result.objective == pytest.approx(613_980)
        assert result.feasible is True

    def test_load_equal_to_capacity_is_not_overflow(self, result):
        assert result.overflow_penalty == 0.0
        assert result.overloaded_sites == ()
        assert result.capacity.supplier_load["S1"] == 1000

    def test_objective_breakdown_sums_to_objective(self, result):
        assert sum(result.objective_breakdown().values()) == pytest.approx(result.objective)

    def test_to_dict_uses_wire_names(self, result):
        d = result.to_dict()
        assert d["totals"]["serviceLevel"] == pytest.approx(0.95)
        assert d["capacity"]["supLoad"] == {"S1": 1000}


# ═══════════════════════════════════════════════════════════════════════════════
# 4. EVALUATOR PROPERTIES
# ═══════════════════════════════════════════════════════════════════════════════

class TestEvaluatorProperties:
    def test_evaluate_is_pure(self, network):
        cfg = default_configuration(network)
        a = evaluate(network, cfg, Parameters())
        b = evaluate(network, cfg, Parameters())
        assert a.cost == b.cost
        assert a.objective == b.objective
        assert a.totals == b.totals

    def test_configuration_key_order_irrelevant(self, network):
        cfg = default_configuration(network)
        reversed_cfg = dict(reversed(list(cfg.items())))
        a = evaluate(network, cfg, Parameters())
        b = evaluate(network, reversed_cfg, Parameters())
        assert a.totals == b.totals

    def test_tariff_multiplier_monotone(self, network):
        cfg = default_configuration(network)
        lo = evaluate(network, cfg, Parameters(tariff_multiplier=1.0))
        hi = evaluate(network, cfg, Parameters(tariff_multiplier=1.3))
        assert hi.totals.tariffs >= lo.totals.tariffs
        assert hi.cost >= lo.cost

    def test_carbon_price_monotone(self, network):
        cfg = default_configuration(network)
        lo = evaluate(network, cfg, Parameters(carbon_price=0.0))
        hi = evaluate(network, cfg, Parameters(carbon_price=0.08))
        assert hi.cost >= lo.cost

    def test_demand_rounds_half_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(3.5) == 4
        assert round_half_up(2.4999) == 2
        net = single_lane_network(products=[
            Product("P1", "Widget", base_demand=5, bom_labor_hours=2, bom_scrap_rate=0.0)
        ])
        res = evaluate(net, ground_config(), worked_parameters(demand_multiplier=0.5))
        assert res.totals.units == 3

    def test_override_changes_demand(self, lane_network):
        res = evaluate(lane_network, ground_config(), worked_parameters(),
                       {"P1": ProductOverride(base_demand=500)})
        assert res.totals.units == 500
        assert res.totals.material == pytest.approx(50_000)

    def test_service_is_bottleneck_not_average(self):
        suppliers = [
            Supplier("S1", "Good", "R1", 100, 20, 0.99, 5000, 0.0),
            Supplier("S2", "Weak", "R1", 100, 20, 0.85, 5000, 0.0),
        ]
        products = [
            Product("P1", "A", 100, 1, 0.0),
            Product("P2", "B", 100, 1, 0.0),
        ]
        net = single_lane_network(suppliers=suppliers, products=products)
        cfg = {
            "P1": Assignment("S1", "A1", "D1"),
            "P2": Assignment("S2", "A1", "D1"),
        }
        res = evaluate(net, cfg, worked_parameters())
        assert res.totals.service_level == pytest.approx(0.85)

    def test_lead_time_factor_floors_at_point_seven(self, lane_network):
        # ocean adds 14 days: 20 + 14 - 20 = 14 → factor 1 - 14/60
        cfg = {"P1": Assignment("S1", "A1", "D1", "ocean", "ground")}
        res = evaluate(lane_network, cfg, worked_parameters())
        assert res.totals.service_level == pytest.approx(0.95 * (1 - 14 / 60))

        slow = single_lane_network(suppliers=[
            Supplier("S1", "Slow", "R1", 100, 80, 0.95, 1000, 0.05)
        ])
        res = evaluate(slow, cfg, worked_parameters())
        assert res.totals.service_level == pytest.approx(0.95 * 0.7)

    def test_missing_distance_uses_fallback(self):
        net = single_lane_network(distances={})
        res = evaluate(net, ground_config(), worked_parameters())
        # 2.0 thousand miles per leg instead of 1.0
        assert res.totals.transport_cost == pytest.approx(28_000)

    @pytest.mark.parametrize("volumes", [[1], [1, 1], [5, 3, 2], [1, 1, 1, 1], [0, 7]])
    def test_concentration_term_bounded(self, volumes):
        term = herfindahl(volumes) * config.HHI_WEIGHT
        assert 0.0 <= term <= 0.5

    def test_single_sourcing_maximizes_concentration(self):
        assert herfindahl([1000]) * config.HHI_WEIGHT == 0.5
        assert herfindahl([250, 250, 250, 250]) == pytest.approx(0.25)
        assert herfindahl([]) == 0.0


# ═══════════════════════════════════════════════════════════════════════════════
# 5. CAPACITY POLICY
# ═══════════════════════════════════════════════════════════════════════════════

class TestCapacityPolicy:
    def test_hard_constraint_returns_infinite_cost(self):
        net = single_lane_network(supplier_capacity=999)
        res = evaluate(net, ground_config(), worked_parameters(allow_overflow=False))
        assert res.cost == math.inf
        assert res.objective == math.inf
        assert res.feasible is False
        assert res.overloaded_sites == ("S1",)

    def test_hard_constraint_on_assembly_site(self):
        net = single_lane_network(site_capacity=10)
        res = evaluate(net, ground_config(), worked_parameters(allow_overflow=False))
        assert math.isinf(res.cost)
        assert res.feasible is False

    def test_supplier_overflow_penalty(self):
        net = single_lane_network(supplier_capacity=800)
        res = evaluate(net, ground_config(), worked_parameters())
        # ratio = 200 / 1000; penalty = 100 000 × 0.2 × 0.20
        assert res.overflow_penalty == pytest.approx(4_000)
        assert res.cost == pytest.approx(406_380 + 4_000)
        assert res.totals.service_level == pytest.approx(0.95 * (1 - 0.03))
        assert res.feasible is True

    def test_assembly_overflow_penalty_and_overhead_above_fixed(self):
        net = single_lane_network(site_capacity=500)
        res = evaluate(net, ground_config(), worked_parameters())
        # overhead is prorated by demand / capacity and exceeds the fixed amount
        assert res.totals.overhead == pytest.approx(200_000)
        assert res.overflow_penalty == pytest.approx(150_000 * 0.5 * 0.30)
        assert res.totals.service_level == pytest.approx(0.95 * 0.9)
        assert math.isfinite(res.cost)
        assert res.feasible is False     # 0.855 < 0.9

    def test_service_degrade_takes_worst_site_not_sum(self):
        net = single_lane_network(supplier_capacity=800, site_capacity=500)
        res = evaluate(net, ground_config(), worked_parameters())
        assert res.service_degrade == pytest.approx(0.1)
        assert res.totals.service_level == pytest.approx(0.95 * 0.9)
        assert res.overflow_penalty == pytest.approx(4_000 + 22_500)


# ═══════════════════════════════════════════════════════════════════════════════
# 6. CAPACITY LOAD CALCULATOR
# ═══════════════════════════════════════════════════════════════════════════════

class TestCapacityLoads:
    def test_load_equals_sum_of_routed_demand(self, network):
        cfg = default_configuration(network)
        report = compute_loads(network, cfg, 1.15)
        demands = {p.product_id: round_half_up(p.base_demand * 1.15) for p in network.products}
        for site in report.suppliers:
            expected = sum(d for pid, d in demands.items() if cfg[pid].supplier_id == site.site_id)
            assert site.load == expected
        for site in report.assembly_sites:
            expected = sum(d for pid, d in demands.items() if cfg[pid].assembly_id == site.site_id)
            assert site.load == expected

    def test_matches_evaluator_loads(self, network):
        cfg = default_configuration(network)
        report = compute_loads(network, cfg, 1.0)
        res = evaluate(network, cfg, Parameters())
        assert {s.site_id: s.load for s in report.suppliers} == res.capacity.supplier_load
        assert {s.site_id: s.load for s in report.assembly_sites} == res.capacity.assembly_load

    def test_utilization_and_bottlenecks(self, lane_network):
        report = compute_loads(lane_network, ground_config(), 0.9)
        assert report.suppliers[0].utilization == pytest.approx(0.9)
        flagged = report.bottlenecks()
        assert [s.site_id for s in flagged] == ["S1", "A1"]

    def test_no_bottlenecks_below_threshold(self, lane_network):
        report = compute_loads(lane_network, ground_config(), 0.5)
        assert report.bottlenecks() == []

    def test_partial_configuration_carries_no_load(self, network):
        report = compute_loads(network, {}, 1.0)
        assert all(s.load == 0 for s in report.sites)

    def test_unknown_reference_still_rejected(self, network):
        with pytest.raises(InvalidConfigurationReference):
            compute_loads(network, {"L1": Assignment("S1", "A7", "D1")}, 1.0)

    def test_to_frame(self, network):
        frame = compute_loads(network, default_configuration(network), 1.0).to_frame()
        assert len(frame) == 6
        assert {"site_id", "load", "capacity", "utilization", "bottleneck"} <= set(frame.columns)


# ═══════════════════════════════════════════════════════════════════════════════
# 7. OPTIMIZER
# ═══════════════════════════════════════════════════════════════════════════════

class TestOptimizer:
    def test_known_optimum_single_lane(self, lane_network):
        """Ocean on the supplier leg breaks service; ocean on the DC leg is cheapest."""
        result = optimize(lane_network, worked_parameters())
        assert result.status == STATUS_OPTIMAL
        assert result.evaluated == 9
        best = result.configuration["P1"]
        assert (best.supplier_mode, best.dc_mode) == ("ground", "ocean")
        assert result.evaluation.objective == pytest.approx(609_180)

    def test_best_is_no_worse_than_any_alternative(self):
        suppliers = [
            Supplier("S1", "One", "R1", 100, 20, 0.95, 5000, 0.05),
            Supplier("S2", "Two", "R1", 90, 25, 0.93, 5000, 0.02),
        ]
        products = [Product("P1", "A", 1000, 2, 0.0), Product("P2", "B", 600, 1, 0.01)]
        net = single_lane_network(site_capacity=5000, suppliers=suppliers, products=products)
        params = worked_parameters()
        result = optimize(net, params)
        assert result.found
        assert result.evaluated == search_space_size(net) == 18 ** 2

        modes = ("air", "ground", "ocean")
        lane = [Assignment(s, "A1", "D1", m1, m2)
                for s, m1, m2 in itertools.product(("S1", "S2"), modes, modes)]
        for a1, a2 in itertools.product(lane, lane):
            res = evaluate(net, {"P1": a1, "P2": a2}, params)
            if res.feasible:
                assert result.evaluation.objective <= res.objective

    def test_ties_keep_first_found(self):
        twin = dict(unit_cost=100, lead_time_days=20, reliability=0.95,
                    capacity=1000, tariff_rate=0.05)
        net = single_lane_network(suppliers=[
            Supplier("S1", "Twin A", "R1", **twin),
            Supplier("S2", "Twin B", "R1", **twin),
        ])
        result = optimize(net, worked_parameters())
        assert result.configuration["P1"].supplier_id == "S1"

    def test_none_feasible_when_capacity_forced_to_one(self):
        net = single_lane_network(supplier_capacity=1, site_capacity=1)
        result = optimize(net, worked_parameters(allow_overflow=False))
        assert result.status == STATUS_INFEASIBLE
        assert result.found is False
        assert result.configuration is None
        assert result.evaluated == 9

    def test_search_space_size_reference_network(self, network):
        assert search_space_size(network) == (4 * 2 * 2 * 9) ** 3


# ═══════════════════════════════════════════════════════════════════════════════
# 8. MONTE CARLO
# ═══════════════════════════════════════════════════════════════════════════════

class FakeUniform:
    def __init__(self, values):
        self._values = list(values)

    def random(self):
        return self._values.pop(0)


class TestMonteCarlo:
    def test_zero_volatility_matches_deterministic(self, network):
        cfg = default_configuration(network)
        params = Parameters()
        det = evaluate(network, cfg, params)
        mc = simulate(network, cfg, params, demand_volatility=0.0,
                      reliability_volatility=0.0, samples=20, seed=1)
        expected = 1.0 if det.totals.service_level >= params.service_target else 0.0
        assert mc.probability_meets_target == expected
        assert mc.mean_cost == pytest.approx(det.cost)
        assert mc.p10_cost == pytest.approx(det.cost)
        assert mc.p90_cost == pytest.approx(det.cost)

    def test_zero_volatility_feasible_network_always_hits(self, lane_network):
        mc = simulate(lane_network, ground_config(), worked_parameters(),
                      demand_volatility=0.0, reliability_volatility=0.0, samples=10, seed=3)
        assert mc.probability_meets_target == 1.0

    def test_seeded_runs_reproduce(self, network):
        cfg = default_configuration(network)
        a = simulate(network, cfg, Parameters(), samples=30, seed=11)
        b = simulate(network, cfg, Parameters(), samples=30, seed=11)
        assert a.mean_cost == b.mean_cost
        assert np.array_equal(a.costs, b.costs)

    def test_percentiles_ordered(self, network):
        mc = simulate(network, default_configuration(network), Parameters(), samples=50, seed=5)
        assert mc.p10_cost <= mc.p90_cost
        assert mc.costs[0] <= mc.p10_cost
        assert 0.0 <= mc.probability_meets_target <= 1.0
        assert mc.samples == 50

    def test_nearest_rank_index(self):
        values = np.arange(11.0)
        assert nearest_rank(values, 0.1) == 1.0
        assert nearest_rank(values, 0.9) == 9.0
        assert nearest_rank(np.arange(200.0), 0.1) == 19.0

    def test_zero_uniform_is_resampled(self):
        z = normal_draw(FakeUniform([0.0, 0.5, 0.0, 0.5]))
        assert math.isfinite(z)
        assert z == pytest.approx(-math.sqrt(-2 * math.log(0.5)))

    def test_sample_costs_as_frame(self, network):
        mc = simulate(network, default_configuration(network), Parameters(), samples=21, seed=4)
        frame = mc.to_frame()
        assert list(frame.columns) == ["sample", "cost", "in_p10_p90"]
        assert len(frame) == 21
        assert frame["cost"].is_monotonic_increasing
        assert frame["cost"].mean() == pytest.approx(mc.mean_cost)
        # nearest rank: index 2 and 18 of 21 sorted samples bound the band
        assert frame["in_p10_p90"].sum() >= 17

    def test_rejects_empty_run(self, network):
        with pytest.raises(ValueError):
            simulate(network, default_configuration(network), Parameters(), samples=0)

    def test_fixed_configuration_not_reoptimized(self, network):
        cfg = default_configuration(network)
        before = dict(cfg)
        simulate(network, cfg, Parameters(), samples=5, seed=2)
        assert cfg == before


# ═══════════════════════════════════════════════════════════════════════════════
# 9. SENSITIVITY
# ═══════════════════════════════════════════════════════════════════════════════

class TestSensitivity:
    def test_tornado_order_worked_example(self, lane_network):
        rows = run_sensitivity(lane_network, ground_config(), worked_parameters())
        assert [r.key for r in rows] == [
            "risk_weight", "labor_rate", "inventory_carry_pct",
            "tariff_multiplier", "carbon_price", "service_target",
        ]
        assert rows[0].delta == pytest.approx(2 * 0.1 * 0.519 * 1_000_000)
        assert rows[1].delta == pytest.approx(2 * 10 * 2 * 1000 * 1.1)
        assert rows[-1].delta == pytest.approx(0.0)

    def test_rows_sorted_descending(self, network):
        rows = run_sensitivity(network, default_configuration(network), Parameters())
        deltas = [r.delta for r in rows]
        assert deltas == sorted(deltas, reverse=True)
        for r in rows:
            assert r.min <= r.max

    def test_perturbation_clamped_to_range(self, lane_network):
        # carbon price 0 → low side clamps to 0, identical to the current point
        params = worked_parameters(carbon_price=0.0)
        rows = {r.key: r for r in run_sensitivity(lane_network, ground_config(), params)}
        base = evaluate(lane_network, ground_config(), params).objective
        assert rows["carbon_price"].low == pytest.approx(base)

    def test_non_finite_results_excluded(self):
        net = single_lane_network(supplier_capacity=10)
        rows = run_sensitivity(net, ground_config(), worked_parameters(allow_overflow=False))
        assert rows == []

    def test_to_frame(self, lane_network):
        frame = to_frame(run_sensitivity(lane_network, ground_config(), worked_parameters()))
        assert list(frame["parameter"])[0] == "Risk Weight"
        assert {"low", "high", "min", "max", "delta"} <= set(frame.columns)


# ═══════════════════════════════════════════════════════════════════════════════
# 10. SCENARIO INPUTS
# ═══════════════════════════════════════════════════════════════════════════════

class TestScenarioInputs:
    def test_demand_multiplier_templates(self):
        assert demand_multiplier_for("baseline", "base") == 1.0
        assert demand_multiplier_for("service", "high") == pytest.approx(1.15 * 1.05)
        assert demand_multiplier_for("resiliency", "crisis") == pytest.approx(0.7 * 0.98)
        assert demand_multiplier_for("lowcost", "surge") == pytest.approx(1.35)

    def test_apply_profile(self):
        p = apply_profile(Parameters(labor_rate=90), "airbus")
        assert p.service_target == 0.97
        assert p.tariff_multiplier == 1.10
        assert p.labor_rate == 90
        assert apply_profile(p, "nobody") == p

    def test_parameters_from_partial_dict(self):
        p = Parameters.from_dict({"laborRate": 90, "allowOverflow": False})
        assert p.labor_rate == 90
        assert p.allow_overflow is False
        assert p.service_target == config.DEFAULT_PARAMETERS["service_target"]

    def test_default_configuration_round_robin(self, network):
        cfg = default_configuration(network)
        assert cfg["L1"] == Assignment("S1", "A1", "D1", "ground", "ground")
        assert cfg["L2"] == Assignment("S2", "A2", "D2", "ground", "ground")
        assert cfg["L3"] == Assignment("S3", "A1", "D1", "ground", "ground")

    def test_mode_cycle(self):
        assert next_mode("air") == "ground"
        assert next_mode("ground") == "ocean"
        assert next_mode("ocean") == "air"

    def test_scenario_envelope_wire_shape(self, network):
        cfg = default_configuration(network)
        snap = Scenario(
            scenario_id="baseline-base-1", master="baseline", variant="base",
            profile_id="pnc", configuration=cfg, parameters=Parameters(),
            overrides={"L1": ProductOverride(bom_scrap_rate=0.05)},
            metrics=evaluate(network, cfg, Parameters()).to_dict(), timestamp="t",
        )
        d = snap.to_dict()
        assert d["assignment"]["L1"] == {"supplierId": "S1", "assemblyId": "A1",
                                         "dcId": "D1", "supMode": "ground", "dcMode": "ground"}
        assert d["lruEdits"] == {"L1": {"bomScrapRate": 0.05}}
        restored = Scenario.from_dict(d)
        assert restored.configuration == cfg
        assert restored.overrides == snap.overrides
        assert restored.parameters == snap.parameters


# ═══════════════════════════════════════════════════════════════════════════════
# 11. KNOWLEDGE GRAPH
# ═══════════════════════════════════════════════════════════════════════════════

@pytest.fixture(scope="module")
def kg(network):
    return SupplyChainGraph(network, default_configuration(network))


class TestKnowledgeGraph:
    def test_node_counts(self, kg):
        assert len(kg.get_nodes_by_type("supplier")) == 4
        assert len(kg.get_nodes_by_type("assembly")) == 2
        assert len(kg.get_nodes_by_type("dc")) == 2
        assert len(kg.get_nodes_by_type("region")) == 4

    def test_lanes_for_product(self, kg):
        lanes = kg.lanes("L2")
        assert {(l["from"], l["to"], l["leg"]) for l in lanes} == {
            ("S2", "A2", "supplier"), ("A2", "D2", "dc"),
        }
        supplier_leg = next(l for l in lanes if l["leg"] == "supplier")
        assert supplier_leg["distance"] == 6.2   # AP → NA
        assert len(kg.lanes()) == 6

    def test_shared_site_pair_keeps_both_lanes(self, kg):
        a1_d1 = [l for l in kg.lanes() if (l["from"], l["to"]) == ("A1", "D1")]
        assert sorted(l["product_id"] for l in a1_d1) == ["L1", "L3"]

    def test_impact_analysis(self, kg):
        assert kg.impact_analysis("assembly", "A1") == ["L1", "L3"]
        assert kg.impact_analysis("supplier", "S4") == []
        assert kg.impact_analysis("supplier", "S_FAKE") == []

    def test_site_exposure(self, kg):
        exposure = kg.site_exposure("assembly", "A1")
        assert exposure["upstream"] == ["S1", "S3"]
        assert exposure["downstream"] == ["D1"]

    def test_supply_diversity(self, kg):
        assert kg.supply_diversity() == {"NA": 1, "AP": 1, "EU": 1}

    def test_graph_without_configuration_has_no_lanes(self, network):
        assert SupplyChainGraph(network).lanes() == []
