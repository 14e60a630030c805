"""
CPQ costing configuration — single source of truth for parameter defaults,
catalog type groupings, and environment overrides.

Import from here in all services rather than hardcoding values.
"""
from __future__ import annotations

import os
from typing import Any, Dict, Optional


# ── Catalog type groupings ─────────────────────────────────────────────────────
# Each simple cost category is the generic aggregator run over one of these sets.
OPERATIONAL_TYPES: frozenset[str] = frozenset({"phone", "radio", "flashlight"})
TRANSPORT_TYPES: frozenset[str] = frozenset({"transport"})
VEHICLE_TYPES: frozenset[str] = frozenset({"vehicle_rent", "vehicle_fuel", "vehicle_tag"})
INFRA_TYPES: frozenset[str] = frozenset({"infrastructure", "fuel"})
SYSTEM_TYPES: frozenset[str] = frozenset({"system"})
FINANCIAL_TYPES: frozenset[str] = frozenset({"financial", "policy"})

# Catalog types whose default entries are seeded as generic cost items
COST_ITEM_DEFAULT_TYPES: frozenset[str] = (
    OPERATIONAL_TYPES
    | TRANSPORT_TYPES
    | VEHICLE_TYPES
    | INFRA_TYPES
    | SYSTEM_TYPES
    | FINANCIAL_TYPES
)

CATALOG_TYPES: frozenset[str] = COST_ITEM_DEFAULT_TYPES | {"uniform", "exam", "meal"}

CALC_MODE_PER_MONTH: str = "per_month"
CALC_MODE_PER_GUARD: str = "per_guard"
CALC_MODES: frozenset[str] = frozenset({CALC_MODE_PER_MONTH, CALC_MODE_PER_GUARD})

DEFAULT_VISIBILITY: str = "visible"


# ── Quote parameter defaults ───────────────────────────────────────────────────
# Applied whenever a quote has no value of its own for the parameter.
DEFAULT_PARAMETERS: Dict[str, Any] = {
    "monthly_hours_standard": 180,
    "avg_stay_months": 4,
    "uniform_changes_per_year": 3,
    "holiday_annual_count": 12,
    "holiday_commercial_buffer_pct": 10.0,
    "financial_enabled": True,
    "financial_rate_pct": 2.5,
    "sale_price_base": None,
    "sale_price_monthly": 0.0,
    "policy_enabled": False,
    "policy_rate_pct": 0.0,
    "policy_admin_rate_pct": 0.0,
    "policy_contract_months": 12,
    "policy_contract_pct": 20.0,
    "contract_months": 12,
    "contract_amount": 0.0,
    "margin_pct": 13.0,
}

# Holiday adjustment: half a day of extra pay per holiday, spread over 30 days
HOLIDAY_DAYS_PER_MONTH: float = 30.0
HOLIDAY_PAY_FACTOR: float = 0.5

# Default sale-price base suggestions are rounded up to this boundary
SALE_PRICE_ROUND_STEP: float = 100_000.0


# ── Environment overrides ──────────────────────────────────────────────────────
_ENV_OVERRIDES: Dict[str, tuple[str, type]] = {
    "CPQ_DEFAULT_MARGIN_PCT": ("margin_pct", float),
    "CPQ_DEFAULT_FINANCIAL_RATE_PCT": ("financial_rate_pct", float),
    "CPQ_HOLIDAY_ANNUAL_COUNT": ("holiday_annual_count", float),
    "CPQ_HOLIDAY_COMMERCIAL_BUFFER_PCT": ("holiday_commercial_buffer_pct", float),
    "CPQ_MONTHLY_HOURS_STANDARD": ("monthly_hours_standard", float),
}


def env_parameter_defaults(environ: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
    """
    Return DEFAULT_PARAMETERS with any CPQ_* environment overrides applied.

    Unparseable values are ignored so a bad deploy variable never breaks quoting.
    """
    env = os.environ if environ is None else environ
    defaults = dict(DEFAULT_PARAMETERS)
    for var, (key, cast) in _ENV_OVERRIDES.items():
        raw = env.get(var)
        if raw is None or raw == "":
            continue
        try:
            defaults[key] = cast(raw)
        except ValueError:
            continue
    return defaults


def resolve_parameters(
    overrides: Optional[Dict[str, Any]] = None,
    defaults: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Merge per-quote parameters over the global defaults.

    A key that is missing or explicitly None falls back to the default.
    """
    base = dict(defaults if defaults is not None else env_parameter_defaults())
    for key, value in (overrides or {}).items():
        if value is not None:
            base[key] = value
    return base
