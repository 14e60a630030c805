"""
cost_aggregator.py — Generic catalog-backed cost item aggregation.

A quote cost item wraps one catalog entry with an enable flag, a quantity,
an optional price override and a calculation mode:

    per_month   flat monthly amount       unit_price × quantity
    per_guard   scales with headcount     unit_price × quantity × total_guards

The same aggregator serves every simple category (operational equipment,
transport, vehicle add-ons, infrastructure add-ons, systems, financial and
policy lines); callers only vary the catalog ``types`` filter.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional

from cpq.config import CALC_MODE_PER_GUARD, CALC_MODE_PER_MONTH
from cpq.services.unit_normalizer import normalize_unit_price, safe_number

logger = logging.getLogger("cpq-costing")


def build_catalog_index(catalog: Iterable[Dict[str, Any]]) -> Dict[str, Dict[str, Any]]:
    """
    Build the id → catalog record lookup used by every calculator.
    Inactive entries are left out, so quote lines pointing at them are skipped.
    """
    index: Dict[str, Dict[str, Any]] = {}
    for entry in catalog or []:
        entry_id = entry.get("id")
        if entry_id is None or not entry.get("active", True):
            continue
        index[str(entry_id)] = entry
    return index


def resolve_unit_price(
    override: Optional[Any],
    catalog_item: Optional[Dict[str, Any]],
) -> float:
    """
    Monthly unit price for a line: the override when set, else the catalog
    base price, normalised by the catalog unit either way.
    """
    catalog_item = catalog_item or {}
    if override is not None:
        price = safe_number(override)
    else:
        price = safe_number(catalog_item.get("base_price"))
    return normalize_unit_price(price, catalog_item.get("unit"))


def _lookup(item: Dict[str, Any], catalog_by_id: Dict[str, Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    catalog_item_id = item.get("catalog_item_id")
    if catalog_item_id is None:
        return None
    return catalog_by_id.get(str(catalog_item_id))


def cost_item_contribution(
    item: Dict[str, Any],
    catalog_item: Dict[str, Any],
    total_guards: int,
) -> float:
    """Monthly contribution of one enabled cost item."""
    unit_price = resolve_unit_price(item.get("unit_price_override"), catalog_item)
    quantity = safe_number(item.get("quantity"), default=1.0)
    calc_mode = item.get("calc_mode") or CALC_MODE_PER_MONTH
    if calc_mode == CALC_MODE_PER_GUARD:
        return unit_price * quantity * total_guards
    return unit_price * quantity


def cost_item_lines(
    items: Iterable[Dict[str, Any]],
    types: Iterable[str],
    catalog_by_id: Dict[str, Dict[str, Any]],
    total_guards: int,
) -> List[Dict[str, Any]]:
    """
    Line-level breakdown of the enabled cost items whose catalog type is in
    ``types``. Items pointing at unknown catalog ids are skipped.
    """
    wanted = set(types)
    lines: List[Dict[str, Any]] = []

    for item in items or []:
        if not item.get("is_enabled"):
            continue
        catalog_item = _lookup(item, catalog_by_id)
        if catalog_item is None:
            logger.debug("Cost item references unknown catalog id %r; skipped", item.get("catalog_item_id"))
            continue
        if catalog_item.get("type") not in wanted:
            continue

        unit_price = resolve_unit_price(item.get("unit_price_override"), catalog_item)
        quantity = safe_number(item.get("quantity"), default=1.0)
        monthly = cost_item_contribution(item, catalog_item, total_guards)

        lines.append({
            "line": len(lines) + 1,
            "catalog_item_id": str(catalog_item.get("id")),
            "name": catalog_item.get("name", ""),
            "type": catalog_item.get("type"),
            "calc_mode": item.get("calc_mode") or CALC_MODE_PER_MONTH,
            "unit_price": unit_price,
            "quantity": quantity,
            "monthly": monthly,
        })

    return lines


def sum_cost_items_by_types(
    items: Iterable[Dict[str, Any]],
    types: Iterable[str],
    catalog_by_id: Dict[str, Dict[str, Any]],
    total_guards: int,
) -> float:
    """Sum the monthly contribution of enabled cost items of the given types."""
    return sum(line["monthly"] for line in cost_item_lines(items, types, catalog_by_id, total_guards))
