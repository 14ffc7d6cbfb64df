"""
Decision inputs and the scenario envelope.

A Configuration maps every product id to one Assignment (supplier, assembly
site, DC and the two leg modes). Parameters carry the scalar levers. Both are
value objects: editing produces a new object, never mutates a shared one.

This module also holds the scenario templates (master scenario x variant →
demand multiplier), the OEM parameter profiles, and the Scenario envelope
exchanged with persistence/sharing collaborators. Wire dictionaries use the
camelCase field names of the existing scenario files and remote endpoint.
"""

from dataclasses import asdict, dataclass, field, replace
from datetime import datetime, timezone
from typing import Dict, Optional

from planner import config
from planner.entities import TRANSPORT_MODES, ProductOverride


# ═══════════════════════════════════════════════════════════════════════════════
# ASSIGNMENT / CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Assignment:
    """Routing choice for one product."""
    supplier_id: str
    assembly_id: str
    dc_id: str
    supplier_mode: str = "ground"    # supplier → assembly leg
    dc_mode: str = "ground"          # assembly → DC leg

    def to_dict(self) -> dict:
        return {
            "supplierId": self.supplier_id,
            "assemblyId": self.assembly_id,
            "dcId": self.dc_id,
            "supMode": self.supplier_mode,
            "dcMode": self.dc_mode,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "Assignment":
        """Parse a wire entry. Raises KeyError/TypeError on a malformed entry."""
        return cls(
            supplier_id=d["supplierId"],
            assembly_id=d["assemblyId"],
            dc_id=d["dcId"],
            supplier_mode=d.get("supMode", "ground"),
            dc_mode=d.get("dcMode", "ground"),
        )


# product_id -> Assignment
Configuration = Dict[str, Assignment]


def configuration_to_dict(configuration: Configuration) -> dict:
    return {pid: a.to_dict() for pid, a in configuration.items()}


def configuration_from_dict(d: dict) -> Configuration:
    return {pid: Assignment.from_dict(entry) for pid, entry in d.items()}


def next_mode(mode: str) -> str:
    """Cycle order used when toggling a leg: air → ground → ocean → air."""
    modes = TRANSPORT_MODES
    return modes[(modes.index(mode) + 1) % len(modes)] if mode in modes else modes[0]


def default_configuration(network) -> Configuration:
    """Round-robin starting point: product i → supplier/site/DC i mod n, ground legs."""
    suppliers = network.suppliers
    sites = network.assembly_sites
    dcs = network.distribution_centers
    return {
        p.product_id: Assignment(
            supplier_id=suppliers[i % len(suppliers)].supplier_id,
            assembly_id=sites[i % len(sites)].assembly_id,
            dc_id=dcs[i % len(dcs)].dc_id,
        )
        for i, p in enumerate(network.products)
    }


# ═══════════════════════════════════════════════════════════════════════════════
# PARAMETERS
# ═══════════════════════════════════════════════════════════════════════════════

_PARAM_WIRE_NAMES = {
    "service_target": "serviceTarget",
    "labor_rate": "laborRate",
    "tariff_multiplier": "tariffMultiplier",
    "carbon_price": "carbonPrice",
    "inventory_carry_pct": "inventoryCarryPct",
    "risk_weight": "riskWeight",
    "demand_multiplier": "demandMultiplier",
    "allow_overflow": "allowOverflow",
}


@dataclass(frozen=True)
class Parameters:
    """Scalar levers of one evaluation."""
    service_target: float = config.DEFAULT_PARAMETERS["service_target"]
    labor_rate: float = config.DEFAULT_PARAMETERS["labor_rate"]
    tariff_multiplier: float = config.DEFAULT_PARAMETERS["tariff_multiplier"]
    carbon_price: float = config.DEFAULT_PARAMETERS["carbon_price"]
    inventory_carry_pct: float = config.DEFAULT_PARAMETERS["inventory_carry_pct"]
    risk_weight: float = config.DEFAULT_PARAMETERS["risk_weight"]
    demand_multiplier: float = config.DEFAULT_PARAMETERS["demand_multiplier"]
    allow_overflow: bool = config.DEFAULT_PARAMETERS["allow_overflow"]

    def with_changes(self, **changes) -> "Parameters":
        return replace(self, **changes)

    def to_dict(self) -> dict:
        return {_PARAM_WIRE_NAMES[k]: v for k, v in asdict(self).items()}

    @classmethod
    def from_dict(cls, d: dict) -> "Parameters":
        """Missing keys fall back to the defaults; unknown keys are ignored."""
        values = {
            name: d[wire] for name, wire in _PARAM_WIRE_NAMES.items() if wire in d
        }
        return cls(**values)


# ── Scenario templates & OEM profiles ────────────────────────────────────────

def demand_multiplier_for(master: str, variant: str) -> float:
    """Variant multiplier, adjusted by the master scenario's demand factor."""
    _, base = config.VARIANTS.get(variant, ("", 1.0))
    return base * config.MASTER_DEMAND_FACTOR.get(master, 1.0)


def apply_profile(parameters: Parameters, profile_id: str) -> Parameters:
    """Overlay an OEM profile's defaults. Unknown profiles leave parameters as-is."""
    profile = config.OEM_PROFILES.get(profile_id)
    if profile is None:
        return parameters
    return replace(parameters, **profile["defaults"])


# ═══════════════════════════════════════════════════════════════════════════════
# OVERRIDES (wire format)
# ═══════════════════════════════════════════════════════════════════════════════

_OVERRIDE_WIRE_NAMES = {
    "base_demand": "baseDemand",
    "bom_labor_hours": "bomLaborHours",
    "bom_scrap_rate": "bomScrapRate",
}


def overrides_to_dict(overrides: Dict[str, ProductOverride]) -> dict:
    out = {}
    for pid, o in overrides.items():
        entry = {
            _OVERRIDE_WIRE_NAMES[k]: v for k, v in asdict(o).items() if v is not None
        }
        if entry:
            out[pid] = entry
    return out


def overrides_from_dict(d: dict) -> Dict[str, ProductOverride]:
    return {
        pid: ProductOverride(**{
            name: entry[wire]
            for name, wire in _OVERRIDE_WIRE_NAMES.items() if wire in entry
        })
        for pid, entry in d.items()
    }


# ═══════════════════════════════════════════════════════════════════════════════
# SCENARIO ENVELOPE
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass
class Scenario:
    """Saved snapshot of a session: inputs plus the evaluation it produced.

    `metrics` holds EvaluationResult.to_dict() so a snapshot stays a plain
    data record after it leaves the engine.
    """
    scenario_id: str
    master: str
    variant: str
    profile_id: str
    configuration: Configuration
    parameters: Parameters
    overrides: Dict[str, ProductOverride] = field(default_factory=dict)
    metrics: Optional[dict] = None
    timestamp: str = ""

    @staticmethod
    def make_id(master: str, variant: str, now: Optional[datetime] = None) -> str:
        now = now or datetime.now(timezone.utc)
        return f"{master}-{variant}-{int(now.timestamp() * 1000)}"

    @property
    def label(self) -> str:
        return f"{self.master}/{self.variant}"

    def to_dict(self) -> dict:
        return {
            "id": self.scenario_id,
            "master": self.master,
            "variant": self.variant,
            "profileId": self.profile_id,
            "assignment": configuration_to_dict(self.configuration),
            "params": self.parameters.to_dict(),
            "lruEdits": overrides_to_dict(self.overrides),
            "metrics": self.metrics,
            "ts": self.timestamp,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "Scenario":
        master = d.get("master", config.DEFAULT_MASTER)
        variant = d.get("variant", config.DEFAULT_VARIANT)
        return cls(
            scenario_id=d.get("id") or cls.make_id(master, variant),
            master=master,
            variant=variant,
            profile_id=d.get("profileId", config.DEFAULT_PROFILE),
            configuration=configuration_from_dict(d.get("assignment", {})),
            parameters=Parameters.from_dict(d.get("params", {})),
            overrides=overrides_from_dict(d.get("lruEdits", {})),
            metrics=d.get("metrics"),
            timestamp=d.get("ts", ""),
        )
