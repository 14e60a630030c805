"""
position_allocator.py — Split the quote sale price across staffing positions.

The quote is priced as a whole; each position's share is proportional to
its raw monthly payroll cost. The last position absorbs whatever remains
after the proportional shares, so the allocation always sums back to the
quoted total with no visible rounding drift.
"""

import logging
from typing import Any, Dict, List, Optional

from cpq.services.unit_normalizer import safe_number

logger = logging.getLogger("cpq-costing")

DEFAULT_MONTHLY_HOURS: float = 180.0


def _weights(positions: List[Dict[str, Any]]) -> List[float]:
    return [max(0.0, safe_number(p.get("monthly_position_cost"))) for p in positions]


def _position_key(position: Dict[str, Any], idx: int) -> str:
    # Positions without an id are keyed by their index
    position_id = position.get("id")
    return str(idx if position_id is None else position_id)


def allocate_sale_price(
    positions: List[Dict[str, Any]],
    total_sale_price: float,
) -> Dict[str, float]:
    """
    Allocate ``total_sale_price`` across ``positions`` by payroll weight.

    Returns an insertion-ordered {position_id: allocated} dict; empty when
    there are no positions or the total is not positive. Positions whose
    weights are all zero share the total equally.
    """
    total = safe_number(total_sale_price)
    if not positions or total <= 0:
        return {}

    weights = _weights(positions)
    weights_total = sum(weights)
    fallback_weight = 1.0 / len(positions)

    allocation: Dict[str, float] = {}
    remaining = total
    last_index = len(positions) - 1

    for idx, position in enumerate(positions):
        position_id = _position_key(position, idx)
        if idx == last_index:
            allocation[position_id] = max(0.0, remaining)
            break
        proportion = weights[idx] / weights_total if weights_total > 0 else fallback_weight
        allocated = total * proportion
        allocation[position_id] = allocated
        remaining -= allocated

    return allocation


def position_hourly_rate(
    allocated: float,
    num_guards: Optional[float],
    monthly_hours_standard: Optional[float],
) -> float:
    """Client hourly rate per guard; both denominators floored at 1."""
    guards = max(1.0, safe_number(num_guards))
    hours = max(1.0, safe_number(monthly_hours_standard))
    return safe_number(allocated) / (guards * hours)


def compute_hourly_cost(monthly_cost: float, monthly_hours: float = DEFAULT_MONTHLY_HOURS) -> float:
    """Internal hourly cost of a monthly amount; 0 when hours is 0."""
    if not monthly_hours:
        return 0.0
    return safe_number(monthly_cost) / monthly_hours


def build_position_allocations(
    positions: List[Dict[str, Any]],
    total_sale_price: float,
    monthly_hours_standard: float = DEFAULT_MONTHLY_HOURS,
) -> List[Dict[str, Any]]:
    """
    Per-position view of the allocation: weight share, allocated monthly
    sale price and client hourly rate. Empty when nothing is allocated.
    """
    allocation = allocate_sale_price(positions, total_sale_price)
    if not allocation:
        return []

    weights = _weights(positions)
    weights_total = sum(weights)
    fallback_weight = 1.0 / len(positions)

    rows: List[Dict[str, Any]] = []
    for idx, position in enumerate(positions):
        position_id = _position_key(position, idx)
        allocated = allocation[position_id]
        rows.append({
            "position_id": position_id,
            "weight": weights[idx] / weights_total if weights_total > 0 else fallback_weight,
            "allocated_sale_price": allocated,
            "hourly_rate": position_hourly_rate(
                allocated, position.get("num_guards"), monthly_hours_standard
            ),
        })

    logger.debug("Allocated %.2f across %d positions", safe_number(total_sale_price), len(rows))
    return rows
