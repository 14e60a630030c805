"""
catalog_defaults.py — Seed and merge per-quote cost collections.

Both operations are pure: they return new lists and never mutate the
records passed in.

apply_catalog_defaults
    Called once when a quote is created (or when the caller explicitly
    re-applies defaults). Every active catalog entry flagged ``is_default``
    gets an enabled line in the matching quote collection; lines that
    already exist for that entry are re-enabled and keep their overrides.

merge_quote_items
    Upsert of a submitted collection into the stored one, keyed by catalog
    id (meals: by meal type, case-insensitive). Submitted rows win.
"""

from typing import Any, Callable, Dict, Iterable, List, Optional

from cpq.config import CALC_MODE_PER_MONTH, COST_ITEM_DEFAULT_TYPES, DEFAULT_VISIBILITY


def _active_defaults(catalog: Iterable[Dict[str, Any]], types: Iterable[str]) -> List[Dict[str, Any]]:
    wanted = set(types)
    return [
        entry for entry in catalog or []
        if entry.get("is_default")
        and entry.get("active", True)
        and entry.get("type") in wanted
    ]


def _seed_by_catalog_id(
    existing: Iterable[Dict[str, Any]],
    defaults: List[Dict[str, Any]],
    flag: str,
    make_new: Callable[[Dict[str, Any]], Dict[str, Any]],
) -> List[Dict[str, Any]]:
    seeded: Dict[str, Dict[str, Any]] = {
        str(item.get("catalog_item_id")): dict(item) for item in existing or []
    }
    for entry in defaults:
        key = str(entry.get("id"))
        if key in seeded:
            seeded[key][flag] = True
        else:
            seeded[key] = make_new(entry)
    return list(seeded.values())


def _new_set_item(entry: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "catalog_item_id": str(entry.get("id")),
        "unit_price_override": None,
        "active": True,
    }


def _new_cost_item(entry: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "catalog_item_id": str(entry.get("id")),
        "calc_mode": CALC_MODE_PER_MONTH,
        "quantity": 1.0,
        "unit_price_override": None,
        "is_enabled": True,
        "visibility": entry.get("default_visibility") or DEFAULT_VISIBILITY,
        "notes": "",
    }


def _seed_meals(
    existing: Iterable[Dict[str, Any]],
    catalog: Iterable[Dict[str, Any]],
) -> List[Dict[str, Any]]:
    """
    One meal line per active catalog meal. Existing lines keep their counts
    and are switched on when the catalog meal is a default; new lines start
    with zero counts and are enabled only for default meals. Existing lines
    with no catalog counterpart are kept at the end.
    """
    by_type = {str(m.get("meal_type", "")).lower(): dict(m) for m in existing or []}
    seeded: List[Dict[str, Any]] = []
    used = set()

    for entry in catalog or []:
        if entry.get("type") != "meal" or not entry.get("active", True):
            continue
        name = str(entry.get("name", ""))
        key = name.lower()
        found = by_type.get(key)
        if found is not None:
            if entry.get("is_default"):
                found["is_enabled"] = True
            seeded.append(found)
        else:
            seeded.append({
                "meal_type": name,
                "meals_per_day": 0,
                "days_of_service": 0,
                "price_override": None,
                "is_enabled": bool(entry.get("is_default")),
                "visibility": DEFAULT_VISIBILITY,
            })
        used.add(key)

    seeded.extend(meal for key, meal in by_type.items() if key not in used)
    return seeded


def apply_catalog_defaults(
    catalog: Iterable[Dict[str, Any]],
    cost_items: Optional[Iterable[Dict[str, Any]]] = None,
    uniforms: Optional[Iterable[Dict[str, Any]]] = None,
    exams: Optional[Iterable[Dict[str, Any]]] = None,
    meals: Optional[Iterable[Dict[str, Any]]] = None,
) -> Dict[str, List[Dict[str, Any]]]:
    """
    Seed a quote's collections from the catalog defaults.

    Returns:
        Dict with cost_items, uniforms, exams, meals (new lists).
    """
    catalog = list(catalog or [])
    return {
        "cost_items": _seed_by_catalog_id(
            cost_items, _active_defaults(catalog, COST_ITEM_DEFAULT_TYPES), "is_enabled", _new_cost_item
        ),
        "uniforms": _seed_by_catalog_id(
            uniforms, _active_defaults(catalog, {"uniform"}), "active", _new_set_item
        ),
        "exams": _seed_by_catalog_id(
            exams, _active_defaults(catalog, {"exam"}), "active", _new_set_item
        ),
        "meals": _seed_meals(meals, catalog),
    }


def _catalog_key(item: Dict[str, Any]) -> str:
    return str(item.get("catalog_item_id"))


def _meal_key(item: Dict[str, Any]) -> str:
    return str(item.get("meal_type", "")).lower()


def merge_quote_items(
    existing: Iterable[Dict[str, Any]],
    submitted: Iterable[Dict[str, Any]],
    key: Callable[[Dict[str, Any]], str] = _catalog_key,
) -> List[Dict[str, Any]]:
    """
    Upsert ``submitted`` into ``existing``. Stored order is kept; new keys
    are appended in submission order. Rows are never dropped, only replaced,
    so disabling an item means submitting it with its flag off.
    """
    merged: Dict[str, Dict[str, Any]] = {key(item): dict(item) for item in existing or []}
    for item in submitted or []:
        merged[key(item)] = dict(item)
    return list(merged.values())


def merge_quote_collections(
    existing: Dict[str, Iterable[Dict[str, Any]]],
    submitted: Dict[str, Iterable[Dict[str, Any]]],
) -> Dict[str, List[Dict[str, Any]]]:
    """Merge cost_items, uniforms, exams and meals collection by collection."""
    result: Dict[str, List[Dict[str, Any]]] = {}
    for name in ("cost_items", "uniforms", "exams"):
        result[name] = merge_quote_items(existing.get(name), submitted.get(name))
    result["meals"] = merge_quote_items(existing.get("meals"), submitted.get("meals"), key=_meal_key)
    return result
