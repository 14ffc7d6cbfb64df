# P&C Supply Chain Strategy Planner: engine settings
# Money in USD, distances in thousand-mile units, demand in units per period.

import os

# ── Network generation ───────────────────────────────────────────────────────
DEFAULT_SEED   = 137          # network used by a fresh PlannerSession
GENERATOR_SEED = 42           # generate_network() default

LEHMER_MODULUS    = 2_147_483_647   # 2^31 - 1
LEHMER_MULTIPLIER = 48_271

# ── Default decision parameters ──────────────────────────────────────────────
DEFAULT_PARAMETERS = {
    "service_target":      0.95,
    "labor_rate":          75.0,     # $/labor-hour
    "tariff_multiplier":   1.0,
    "carbon_price":        0.02,     # $/kg CO2
    "inventory_carry_pct": 0.12,
    "risk_weight":         0.4,
    "demand_multiplier":   1.0,
    "allow_overflow":      True,
}

# ── Evaluator constants ──────────────────────────────────────────────────────
DISTANCE_FALLBACK = 2.0       # thousand miles, used when a region pair is missing
TONS_PER_UNIT     = 0.02
MILES_PER_UNIT    = 1000      # distance table is in thousand-mile units

RISK_SCALE        = 1_000_000  # lifts riskIndex to the order of magnitude of cost
RISK_DEMAND_SCALE = 10_000
HHI_WEIGHT        = 0.5
RELIABILITY_RISK_CAP = 0.2

MODE_RISK = {
    "air":    0.02,
    "ground": 0.04,
    "ocean":  0.06,
}

# Lead-time service factor: 1 - max(0, lead - KNEE) / SPAN, clamped to [FLOOR, 1]
LEAD_KNEE_DAYS = 20
LEAD_SPAN_DAYS = 60
LEAD_FLOOR     = 0.7

# Overflow policy (only when allow_overflow is set)
SUPPLIER_OVERFLOW_COST     = 0.20   # share of the supplier's material cost
ASSEMBLY_OVERFLOW_COST     = 0.30   # share of the site's assembly cost
SUPPLIER_OVERFLOW_SERVICE  = 0.03
ASSEMBLY_OVERFLOW_SERVICE  = 0.04
OVERFLOW_SERVICE_AMPLIFIER = 5

# ── Capacity dashboard ───────────────────────────────────────────────────────
BOTTLENECK_UTILIZATION = 0.85

# ── Monte Carlo ──────────────────────────────────────────────────────────────
MC_SAMPLES               = 200
MC_DEMAND_VOLATILITY     = 0.10    # coefficient of variation on demand multiplier
MC_RELIABILITY_VOLATILITY = 0.02   # absolute shock on supplier reliability
MC_RELIABILITY_BOUNDS    = (0.80, 0.995)
MC_PERCENTILES           = (0.10, 0.90)

# ── Sensitivity (tornado) levers ─────────────────────────────────────────────
# key: (label, step, (low bound, high bound))
SENSITIVITY_LEVERS = {
    "service_target":      ("Service Target",    0.02, (0.80, 0.99)),
    "labor_rate":          ("Labor Rate",        10.0, (40.0, 120.0)),
    "tariff_multiplier":   ("Tariff Multiplier", 0.10, (0.50, 1.50)),
    "carbon_price":        ("Carbon Price",      0.01, (0.00, 0.10)),
    "inventory_carry_pct": ("Inventory Carry",   0.02, (0.05, 0.25)),
    "risk_weight":         ("Risk Weight",       0.10, (0.00, 1.00)),
}

# ── Remote solver ────────────────────────────────────────────────────────────
REMOTE_URL     = os.environ.get("PLANNER_REMOTE_URL", "")
REMOTE_TIMEOUT = float(os.environ.get("PLANNER_REMOTE_TIMEOUT", "10"))

# ── Scenario templates ───────────────────────────────────────────────────────
MASTER_SCENARIOS = {
    "baseline":   "Baseline",
    "lowcost":    "Low-Cost Focus",
    "service":    "Service Focus",
    "resiliency": "Resiliency Focus",
    "sustain":    "Sustainability Focus",
}

# Extra demand factor applied on top of the variant multiplier
MASTER_DEMAND_FACTOR = {
    "service":    1.05,
    "resiliency": 0.98,
}

VARIANTS = {
    "low":    ("Low Volume", 0.85),
    "base":   ("Base",       1.00),
    "high":   ("High",       1.15),
    "surge":  ("Surge",      1.35),
    "crisis": ("Crisis",     0.70),
}

OEM_PROFILES = {
    "airbus": {
        "name": "Airbus",
        "defaults": {"service_target": 0.97, "risk_weight": 0.50,
                     "carbon_price": 0.03, "tariff_multiplier": 1.10},
    },
    "boeing": {
        "name": "Boeing",
        "defaults": {"service_target": 0.96, "risk_weight": 0.40,
                     "carbon_price": 0.02, "tariff_multiplier": 1.00},
    },
    "pnc": {
        "name": "P&C Internal",
        "defaults": {"service_target": 0.95, "risk_weight": 0.40,
                     "carbon_price": 0.02, "tariff_multiplier": 1.00},
    },
}
DEFAULT_PROFILE  = "pnc"
DEFAULT_MASTER   = "baseline"
DEFAULT_VARIANT  = "base"

MAX_SAVED_SCENARIOS = 12
