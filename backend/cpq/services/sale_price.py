"""
sale_price.py — Monthly client sale price from category costs and margin.

Pipeline:
    costs_base        = positions + holidays + uniforms + exams + meals
                        + vehicles + infrastructure + generic cost items
    base_with_margin  = costs_base / (1 - margin)        (margin < 100 %)
    financial         = sale_price_base × financial_rate
    policy            = sale_price_base × contract_months × contract_pct × policy_rate / 12
    sale_price        = base_with_margin + financial + policy

Margin is applied on price (gross margin), not as a markup on cost. At or
above 100 % it cannot be applied that way and the unmarked cost is used.
"""

import math
from typing import Any, Dict, Optional

from cpq.config import SALE_PRICE_ROUND_STEP
from cpq.services.unit_normalizer import safe_number


# Summary keys that make up the cost base, in display order
COST_BASE_KEYS = (
    "monthly_positions",
    "monthly_holiday_adjustment",
    "monthly_uniforms",
    "monthly_exams",
    "monthly_meals",
    "monthly_vehicles",
    "monthly_infrastructure",
    "monthly_cost_items",
)


def round_up_to_nice(value: float, step: float = SALE_PRICE_ROUND_STEP) -> float:
    """Round a positive amount up to the next multiple of ``step``; ≤ 0 → 0."""
    if value <= 0:
        return 0.0
    return math.ceil(value / step) * step


def compute_costs_base(summary: Dict[str, Any]) -> float:
    return sum(safe_number(summary.get(key)) for key in COST_BASE_KEYS)


def apply_margin(costs_base: float, margin_pct: float) -> float:
    margin = safe_number(margin_pct) / 100.0
    if margin < 1:
        return costs_base / (1.0 - margin)
    return costs_base


def compute_financial_cost(sale_price_base: float, params: Dict[str, Any]) -> float:
    if not params.get("financial_enabled"):
        return 0.0
    return sale_price_base * safe_number(params.get("financial_rate_pct")) / 100.0


def compute_policy_cost(sale_price_base: float, params: Dict[str, Any]) -> float:
    """
    Guarantee policy premium, monthlized.

    The insured amount is ``contract_pct`` of the contract value over
    ``policy_contract_months``; the premium is ``policy_rate_pct`` of it per year.
    """
    if not params.get("policy_enabled"):
        return 0.0
    contract_value = sale_price_base * safe_number(params.get("policy_contract_months"))
    insured = contract_value * safe_number(params.get("policy_contract_pct")) / 100.0
    return insured * safe_number(params.get("policy_rate_pct")) / 100.0 / 12.0


def compute_sale_price(
    summary: Dict[str, Any],
    margin_pct: float,
    financial_params: Optional[Dict[str, Any]] = None,
    round_step: float = SALE_PRICE_ROUND_STEP,
) -> Dict[str, Any]:
    """
    Derive the monthly sale price for a quote.

    Args:
        summary:          Category totals (keys in COST_BASE_KEYS; missing → 0).
        margin_pct:       Gross margin in percent (13 → 13 %).
        financial_params: financial_enabled, financial_rate_pct, sale_price_base,
                          policy_enabled, policy_rate_pct, policy_contract_months,
                          policy_contract_pct.
        round_step:       Boundary for the suggested sale-price base.

    The financial and policy surcharges are computed on ``sale_price_base``.
    When the quote has no base of its own (None or ≤ 0) the suggested base,
    base_with_margin rounded up to ``round_step``, is used instead; the
    caller's own value is never replaced.

    Returns:
        Dict with costs_base, margin_pct, margin_amount, base_with_margin,
        suggested_sale_price_base, sale_price_base, sale_price_base_is_default,
        monthly_financial, monthly_policy, sale_price_monthly.
    """
    params = financial_params or {}

    costs_base = compute_costs_base(summary)
    base_with_margin = apply_margin(costs_base, margin_pct)
    suggested_base = round_up_to_nice(base_with_margin, round_step)

    explicit_base = safe_number(params.get("sale_price_base"))
    is_default = explicit_base <= 0
    sale_price_base = suggested_base if is_default else explicit_base

    monthly_financial = compute_financial_cost(sale_price_base, params)
    monthly_policy = compute_policy_cost(sale_price_base, params)

    return {
        "costs_base": costs_base,
        "margin_pct": safe_number(margin_pct),
        "margin_amount": base_with_margin - costs_base,
        "base_with_margin": base_with_margin,
        "suggested_sale_price_base": suggested_base,
        "sale_price_base": sale_price_base,
        "sale_price_base_is_default": is_default,
        "monthly_financial": monthly_financial,
        "monthly_policy": monthly_policy,
        "sale_price_monthly": base_with_margin + monthly_financial + monthly_policy,
    }
