"""
CpqCostingEngine — Monthly cost summary, sale price and position allocation
for guard-service quotes.

Covers:
  - Position payroll totals and holiday adjustment
  - Uniform and exam sets (per guard, frequency based)
  - Meals matched to the catalog by name
  - Dedicated vehicles and infrastructure with fuel sub-models
  - Generic catalog cost items (operational, transport, vehicle and
    infrastructure add-ons, systems)
  - Margin, financing and guarantee-policy surcharges
  - Sale price allocation back to positions with hourly rates

The engine is a pure function of its input snapshot: nothing is cached
between calls and the caller's records are never mutated.
"""

import logging
from typing import Any, Dict, List, Optional

from cpq.config import (
    DEFAULT_PARAMETERS,
    FINANCIAL_TYPES,
    INFRA_TYPES,
    OPERATIONAL_TYPES,
    SALE_PRICE_ROUND_STEP,
    SYSTEM_TYPES,
    TRANSPORT_TYPES,
    VEHICLE_TYPES,
    env_parameter_defaults,
    resolve_parameters,
)
from cpq.services.category_calculators import (
    calculate_holiday_adjustment,
    exams_breakdown,
    infrastructure_breakdown,
    meals_breakdown,
    uniforms_breakdown,
    vehicles_breakdown,
)
from cpq.services.cost_aggregator import build_catalog_index, cost_item_lines, resolve_unit_price
from cpq.services.position_allocator import build_position_allocations
from cpq.services.sale_price import compute_sale_price
from cpq.services.unit_normalizer import safe_number

logger = logging.getLogger("cpq-costing")


# Generic cost-item categories: summary key → catalog types
COST_ITEM_CATEGORIES: Dict[str, frozenset] = {
    "monthly_operational": OPERATIONAL_TYPES,
    "monthly_transport": TRANSPORT_TYPES,
    "monthly_vehicle_items": VEHICLE_TYPES,
    "monthly_infrastructure_items": INFRA_TYPES,
    "monthly_system": SYSTEM_TYPES,
}

# Parameter key → catalog type that can carry the rate when the quote has none
_RATE_ITEM_TYPES: Dict[str, str] = {
    "financial_rate_pct": "financial",
    "policy_rate_pct": "policy",
}


class CpqCostingEngine:
    """
    Quote costing pipeline.

    All monetary values are monthly amounts in the quote's base currency.
    """

    # ------------------------------------------------------------------
    # Initialisation
    # ------------------------------------------------------------------

    def __init__(self, settings: Optional[Dict[str, Any]] = None) -> None:
        cfg = settings or {}

        # Global parameter defaults: env overrides, then explicit settings
        param_overrides = {k: v for k, v in cfg.items() if k in DEFAULT_PARAMETERS}
        self.default_parameters: Dict[str, Any] = resolve_parameters(
            param_overrides, env_parameter_defaults()
        )
        self.round_step: float = float(cfg.get("sale_price_round_step", SALE_PRICE_ROUND_STEP))

    # ------------------------------------------------------------------
    # Parameters
    # ------------------------------------------------------------------

    def resolve_parameters(
        self,
        quote_parameters: Optional[Dict[str, Any]],
        cost_items: Optional[List[Dict[str, Any]]] = None,
        catalog_by_id: Optional[Dict[str, Dict[str, Any]]] = None,
    ) -> Dict[str, Any]:
        """
        Merge a quote's parameters over the engine defaults.

        Financial and policy rates the quote leaves unset are taken from an
        enabled catalog cost item of type 'financial' / 'policy' (its price
        is the rate in percent) before falling back to the global default.
        """
        quote_parameters = quote_parameters or {}
        params = resolve_parameters(quote_parameters, self.default_parameters)

        for key, item_type in _RATE_ITEM_TYPES.items():
            if quote_parameters.get(key) is not None:
                continue
            rate = _rate_from_cost_items(cost_items or [], catalog_by_id or {}, item_type)
            if rate is not None:
                params[key] = rate

        return params

    # ------------------------------------------------------------------
    # Full pipeline
    # ------------------------------------------------------------------

    def compute(self, quote_input: Dict[str, Any]) -> Dict[str, Any]:
        """
        Compute the cost summary, position allocations and line breakdown.

        quote_input keys (all optional):
            parameters, catalog, cost_items, uniforms, exams, meals,
            vehicles, infrastructure, positions

        Returns:
            Dict with summary, allocations, breakdown, parameters.
        """
        catalog: List[Dict[str, Any]] = list(quote_input.get("catalog") or [])
        catalog_by_id = build_catalog_index(catalog)
        cost_items: List[Dict[str, Any]] = list(quote_input.get("cost_items") or [])
        positions: List[Dict[str, Any]] = list(quote_input.get("positions") or [])

        params = self.resolve_parameters(quote_input.get("parameters"), cost_items, catalog_by_id)

        # --- Positions ---
        total_guards = int(sum(safe_number(p.get("num_guards")) for p in positions))
        monthly_positions = sum(max(0.0, safe_number(p.get("monthly_position_cost"))) for p in positions)
        monthly_holiday = calculate_holiday_adjustment(
            monthly_positions,
            params["holiday_annual_count"],
            params["holiday_commercial_buffer_pct"],
        )

        # --- Dedicated categories ---
        uniforms = uniforms_breakdown(
            quote_input.get("uniforms"), catalog_by_id,
            params["uniform_changes_per_year"], total_guards,
        )
        exams = exams_breakdown(
            quote_input.get("exams"), catalog_by_id,
            params["avg_stay_months"], params["uniform_changes_per_year"], total_guards,
        )
        meals = meals_breakdown(quote_input.get("meals"), catalog)
        vehicles = vehicles_breakdown(quote_input.get("vehicles"))
        infrastructure = infrastructure_breakdown(quote_input.get("infrastructure"))

        # --- Generic catalog cost items ---
        item_lines: Dict[str, List[Dict[str, Any]]] = {}
        item_totals: Dict[str, float] = {}
        for key, types in COST_ITEM_CATEGORIES.items():
            lines = cost_item_lines(cost_items, types, catalog_by_id, total_guards)
            item_lines[key] = lines
            item_totals[key] = sum(line["monthly"] for line in lines)
        monthly_cost_items = sum(item_totals.values())

        summary: Dict[str, Any] = {
            "total_guards": total_guards,
            "monthly_positions": monthly_positions,
            "monthly_holiday_adjustment": monthly_holiday,
            "monthly_uniforms": uniforms["monthly_total"],
            "monthly_exams": exams["monthly_total"],
            "monthly_meals": meals["monthly_total"],
            **item_totals,
            # Dedicated records only; catalog add-ons are in the *_items keys
            "monthly_vehicles": vehicles["monthly_total"],
            "monthly_infrastructure": infrastructure["monthly_total"],
            "monthly_cost_items": monthly_cost_items,
        }

        # --- Sale price ---
        sale = compute_sale_price(summary, params["margin_pct"], params, self.round_step)

        monthly_financial = sale["monthly_financial"]
        monthly_policy = sale["monthly_policy"]
        monthly_extras = (
            sale["costs_base"] - monthly_positions + monthly_financial + monthly_policy
        )

        summary.update({
            "monthly_financial": monthly_financial,
            "monthly_policy": monthly_policy,
            "monthly_extras": monthly_extras,
            "monthly_total": monthly_positions + monthly_extras,
            "costs_base": sale["costs_base"],
            "margin_pct": sale["margin_pct"],
            "margin_amount": sale["margin_amount"],
            "base_with_margin": sale["base_with_margin"],
            "suggested_sale_price_base": sale["suggested_sale_price_base"],
            "sale_price_base": sale["sale_price_base"],
            "sale_price_base_is_default": sale["sale_price_base_is_default"],
            "sale_price_monthly": sale["sale_price_monthly"],
            "financial_rate_pct": safe_number(params["financial_rate_pct"]),
            "policy_rate_pct": safe_number(params["policy_rate_pct"]),
        })

        # --- Allocation ---
        allocations = build_position_allocations(
            positions, sale["sale_price_monthly"], params["monthly_hours_standard"]
        )

        breakdown = {
            "uniforms": uniforms,
            "exams": exams,
            "meals": meals,
            "vehicles": vehicles,
            "infrastructure": infrastructure,
            "financial_items": cost_item_lines(cost_items, FINANCIAL_TYPES, catalog_by_id, total_guards),
            **{key.replace("monthly_", ""): lines for key, lines in item_lines.items()},
        }

        for key in ("monthly_uniforms", "monthly_exams", "monthly_meals",
                    "monthly_vehicles", "monthly_infrastructure", "monthly_cost_items"):
            logger.debug("%s = %.2f", key, summary[key])
        logger.info(
            "Quote costed: guards=%d costs_base=%.2f sale_price=%.2f positions=%d",
            total_guards, sale["costs_base"], sale["sale_price_monthly"], len(positions),
            extra={"quote_id": quote_input.get("quote_id")} if quote_input.get("quote_id") else None,
        )

        return {
            "summary": summary,
            "allocations": allocations,
            "breakdown": breakdown,
            "parameters": params,
        }

    def compute_summary(self, quote_input: Dict[str, Any]) -> Dict[str, Any]:
        """Cost summary only."""
        return self.compute(quote_input)["summary"]

    # ------------------------------------------------------------------
    # Defaults export
    # ------------------------------------------------------------------

    def get_defaults(self) -> Dict[str, Any]:
        return {
            "parameters": dict(self.default_parameters),
            "sale_price_round_step": self.round_step,
        }


# ---------------------------------------------------------------------------
# Internal helpers (module-private)
# ---------------------------------------------------------------------------

def _rate_from_cost_items(
    cost_items: List[Dict[str, Any]],
    catalog_by_id: Dict[str, Dict[str, Any]],
    item_type: str,
) -> Optional[float]:
    """Rate (percent) carried by the first enabled cost item of ``item_type``."""
    for item in cost_items:
        if not item.get("is_enabled"):
            continue
        catalog_item = catalog_by_id.get(str(item.get("catalog_item_id")))
        if catalog_item is None or catalog_item.get("type") != item_type:
            continue
        return resolve_unit_price(item.get("unit_price_override"), catalog_item)
    return None


def compute_cost_summary(quote_input: Dict[str, Any]) -> Dict[str, Any]:
    """Module-level convenience: run the pipeline with default settings."""
    return CpqCostingEngine().compute(quote_input)
