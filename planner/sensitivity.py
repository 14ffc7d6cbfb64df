"""
Sensitivity (tornado) analysis around the current operating point.

Each lever is nudged one step down and one step up (clamped to its valid
range) with the configuration held fixed, and the objective is evaluated at
both points. Levers whose perturbed objective is non-finite on either side
(hard capacity stop) are left out. Rows are ranked by |high − low|.
"""

import logging
import math
from dataclasses import dataclass
from typing import List, Mapping, Optional

import pandas as pd

from planner import config
from planner.entities import ProductOverride
from planner.evaluator import clamp, evaluate
from planner.network import NetworkModel
from planner.scenario import Configuration, Parameters

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SensitivityRow:
    key: str
    label: str
    low: float       # objective at value − step
    high: float      # objective at value + step

    @property
    def min(self) -> float:
        return min(self.low, self.high)

    @property
    def max(self) -> float:
        return max(self.low, self.high)

    @property
    def delta(self) -> float:
        return abs(self.high - self.low)


def run_sensitivity(
    network: NetworkModel,
    configuration: Configuration,
    parameters: Parameters,
    overrides: Optional[Mapping[str, ProductOverride]] = None,
    levers: Optional[dict] = None,
) -> List[SensitivityRow]:
    """Tornado ranking, largest objective swing first."""
    network.require_valid(configuration)
    levers = levers or config.SENSITIVITY_LEVERS

    rows = []
    for key, (label, step, (lo, hi)) in levers.items():
        value = getattr(parameters, key)
        low = evaluate(
            network, configuration,
            parameters.with_changes(**{key: clamp(value - step, lo, hi)}), overrides,
        ).objective
        high = evaluate(
            network, configuration,
            parameters.with_changes(**{key: clamp(value + step, lo, hi)}), overrides,
        ).objective
        if not (math.isfinite(low) and math.isfinite(high)):
            logger.debug("Skipping %s: non-finite objective", label)
            continue
        rows.append(SensitivityRow(key=key, label=label, low=low, high=high))

    rows.sort(key=lambda r: r.delta, reverse=True)
    if rows:
        logger.info("Sensitivity: top lever %s (swing %.0f)", rows[0].label, rows[0].delta)
    return rows


def to_frame(rows: List[SensitivityRow]) -> pd.DataFrame:
    return pd.DataFrame([
        {"parameter": r.label, "key": r.key, "low": r.low, "high": r.high,
         "min": r.min, "max": r.max, "delta": r.delta}
        for r in rows
    ])
