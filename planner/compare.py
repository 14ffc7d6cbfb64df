"""
Compare saved scenarios against a chosen baseline.

Each row recomputes the objective from the snapshot's own metrics and
parameters (cost + risk_weight × riskIndex × 1e6), so a comparison stays
consistent even if scenarios were saved under different risk weights.
Deltas are objective minus baseline objective; pct is relative to baseline.
"""

from typing import List, Optional

import pandas as pd

from planner import config
from planner.scenario import Scenario


def snapshot_objective(scenario: Scenario) -> float:
    m = scenario.metrics or {}
    cost = m.get("cost", float("nan"))
    risk = m.get("totals", {}).get("riskIndex", 0.0)
    return cost + scenario.parameters.risk_weight * risk * config.RISK_SCALE


def compare_scenarios(
    scenarios: List[Scenario], baseline_id: Optional[str] = None
) -> pd.DataFrame:
    """Comparison table; baseline defaults to the first scenario.

    Columns: scenario_id, label, objective, cost, service_level, risk_index,
    delta, delta_pct, is_baseline.
    """
    columns = ["scenario_id", "label", "objective", "cost", "service_level",
               "risk_index", "delta", "delta_pct", "is_baseline"]
    if not scenarios:
        return pd.DataFrame(columns=columns)

    baseline = next((s for s in scenarios if s.scenario_id == baseline_id), scenarios[0])
    base_obj = snapshot_objective(baseline)

    rows = []
    for s in scenarios:
        obj = snapshot_objective(s)
        totals = (s.metrics or {}).get("totals", {})
        delta = obj - base_obj
        rows.append({
            "scenario_id": s.scenario_id,
            "label": s.label,
            "objective": obj,
            "cost": (s.metrics or {}).get("cost"),
            "service_level": totals.get("serviceLevel"),
            "risk_index": totals.get("riskIndex"),
            "delta": delta,
            "delta_pct": delta / base_obj * 100 if base_obj else 0.0,
            "is_baseline": s.scenario_id == baseline.scenario_id,
        })
    return pd.DataFrame(rows, columns=columns)
