"""
category_calculators.py — Category-specific monthly cost formulas.

Covers:
  - Uniforms: set cost × changes per year / 12 × guards
  - Exams: set cost × max(turnover entries, uniform changes) / 12 × guards
  - Meals: catalog-matched price × meals per day × days of service
  - Dedicated vehicles: rent + maintenance + fuel from km/day and km/l
  - Dedicated infrastructure: rent + generator fuel from l/h, h/day, days/month
  - Holiday adjustment on top of position payroll

Every ``*_breakdown`` function returns the per-line detail plus a
``monthly_total``; the matching ``calculate_*`` function returns only the total.
Dedicated vehicle/infrastructure totals are added to, never substituted for,
the catalog vehicle/infrastructure cost items summed by cost_aggregator.
"""

from typing import Any, Dict, Iterable, List

from cpq.config import HOLIDAY_DAYS_PER_MONTH, HOLIDAY_PAY_FACTOR
from cpq.services.cost_aggregator import resolve_unit_price
from cpq.services.unit_normalizer import safe_number


# ---------------------------------------------------------------------------
# Uniforms & exams (catalog set items)
# ---------------------------------------------------------------------------

def _set_lines(
    items: Iterable[Dict[str, Any]],
    catalog_by_id: Dict[str, Dict[str, Any]],
) -> List[Dict[str, Any]]:
    lines: List[Dict[str, Any]] = []
    for item in items or []:
        if not item.get("active"):
            continue
        catalog_item = catalog_by_id.get(str(item.get("catalog_item_id")))
        if catalog_item is None:
            continue
        lines.append({
            "line": len(lines) + 1,
            "catalog_item_id": str(catalog_item.get("id")),
            "name": catalog_item.get("name", ""),
            "unit_price": resolve_unit_price(item.get("unit_price_override"), catalog_item),
        })
    return lines


def uniforms_breakdown(
    items: Iterable[Dict[str, Any]],
    catalog_by_id: Dict[str, Dict[str, Any]],
    uniform_changes_per_year: float,
    total_guards: int,
) -> Dict[str, Any]:
    """
    A uniform set is bought ``uniform_changes_per_year`` times per guard per
    year; /12 monthlizes it and × guards scales it.
    """
    lines = _set_lines(items, catalog_by_id)
    set_cost = sum(line["unit_price"] for line in lines)
    changes = safe_number(uniform_changes_per_year)
    monthly = (set_cost * changes / 12.0) * total_guards if total_guards > 0 else 0.0
    return {
        "line_items": lines,
        "set_cost": set_cost,
        "changes_per_year": changes,
        "monthly_total": monthly,
    }


def calculate_uniforms(items, catalog_by_id, uniform_changes_per_year, total_guards) -> float:
    return uniforms_breakdown(items, catalog_by_id, uniform_changes_per_year, total_guards)["monthly_total"]


def exam_frequency(avg_stay_months: float, uniform_changes_per_year: float) -> float:
    """
    Exams per guard per year: whichever is more frequent, new-hire entries
    (12 / average stay) or uniform changes.
    """
    avg_stay = safe_number(avg_stay_months)
    entries_per_year = 12.0 / avg_stay if avg_stay > 0 else 0.0
    return max(entries_per_year, safe_number(uniform_changes_per_year))


def exams_breakdown(
    items: Iterable[Dict[str, Any]],
    catalog_by_id: Dict[str, Dict[str, Any]],
    avg_stay_months: float,
    uniform_changes_per_year: float,
    total_guards: int,
) -> Dict[str, Any]:
    lines = _set_lines(items, catalog_by_id)
    set_cost = sum(line["unit_price"] for line in lines)
    frequency = exam_frequency(avg_stay_months, uniform_changes_per_year)
    monthly = (set_cost * frequency / 12.0) * total_guards if total_guards > 0 else 0.0
    return {
        "line_items": lines,
        "set_cost": set_cost,
        "frequency_per_year": frequency,
        "monthly_total": monthly,
    }


def calculate_exams(items, catalog_by_id, avg_stay_months, uniform_changes_per_year, total_guards) -> float:
    return exams_breakdown(
        items, catalog_by_id, avg_stay_months, uniform_changes_per_year, total_guards
    )["monthly_total"]


# ---------------------------------------------------------------------------
# Meals
# ---------------------------------------------------------------------------

def meal_catalog_index(catalog: Iterable[Dict[str, Any]]) -> Dict[str, Dict[str, Any]]:
    """Lower-cased name → catalog record, for active catalog items of type 'meal'."""
    return {
        str(entry.get("name", "")).lower(): entry
        for entry in catalog or []
        if entry.get("type") == "meal" and entry.get("active", True)
    }


def meals_breakdown(
    meals: Iterable[Dict[str, Any]],
    catalog: Iterable[Dict[str, Any]],
) -> Dict[str, Any]:
    """
    Meal counts are absolute (meals per day across the whole service), so
    there is no guard multiplier.
    """
    by_name = meal_catalog_index(catalog)
    lines: List[Dict[str, Any]] = []
    total = 0.0

    for meal in meals or []:
        if not meal.get("is_enabled"):
            continue
        meal_type = str(meal.get("meal_type", ""))
        catalog_item = by_name.get(meal_type.lower())
        price = resolve_unit_price(meal.get("price_override"), catalog_item)
        meals_per_day = safe_number(meal.get("meals_per_day"))
        days = safe_number(meal.get("days_of_service"))
        monthly = price * meals_per_day * days

        lines.append({
            "line": len(lines) + 1,
            "meal_type": meal_type,
            "unit_price": price,
            "meals_per_day": meals_per_day,
            "days_of_service": days,
            "monthly": monthly,
        })
        total += monthly

    return {"line_items": lines, "monthly_total": total}


def calculate_meals(meals, catalog) -> float:
    return meals_breakdown(meals, catalog)["monthly_total"]


# ---------------------------------------------------------------------------
# Dedicated vehicles
# ---------------------------------------------------------------------------

def vehicles_breakdown(vehicles: Iterable[Dict[str, Any]]) -> Dict[str, Any]:
    lines: List[Dict[str, Any]] = []
    total = 0.0

    for vehicle in vehicles or []:
        if not vehicle.get("is_enabled"):
            continue
        km_per_liter = safe_number(vehicle.get("km_per_liter"))
        km_per_month = safe_number(vehicle.get("km_per_day")) * safe_number(vehicle.get("days_per_month"))
        liters = km_per_month / km_per_liter if km_per_liter > 0 else 0.0
        fuel_cost = liters * safe_number(vehicle.get("fuel_price"))
        per_vehicle = (
            safe_number(vehicle.get("rent_monthly"))
            + safe_number(vehicle.get("maintenance_monthly"))
            + fuel_cost
        )
        count = safe_number(vehicle.get("vehicles_count"))
        monthly = per_vehicle * count

        lines.append({
            "line": len(lines) + 1,
            "vehicles_count": count,
            "liters_per_month": liters,
            "fuel_cost": fuel_cost,
            "monthly_per_vehicle": per_vehicle,
            "monthly": monthly,
        })
        total += monthly

    return {"line_items": lines, "monthly_total": total}


def calculate_vehicles(vehicles) -> float:
    return vehicles_breakdown(vehicles)["monthly_total"]


# ---------------------------------------------------------------------------
# Dedicated infrastructure
# ---------------------------------------------------------------------------

def infrastructure_breakdown(entries: Iterable[Dict[str, Any]]) -> Dict[str, Any]:
    lines: List[Dict[str, Any]] = []
    total = 0.0

    for entry in entries or []:
        if not entry.get("is_enabled"):
            continue
        fuel_cost = 0.0
        if entry.get("has_fuel"):
            liters = (
                safe_number(entry.get("fuel_liters_per_hour"))
                * safe_number(entry.get("fuel_hours_per_day"))
                * safe_number(entry.get("fuel_days_per_month"))
            )
            fuel_cost = liters * safe_number(entry.get("fuel_price"))
        quantity = safe_number(entry.get("quantity"))
        monthly = (safe_number(entry.get("rent_monthly")) + fuel_cost) * quantity

        lines.append({
            "line": len(lines) + 1,
            "item_type": entry.get("item_type", ""),
            "quantity": quantity,
            "fuel_cost": fuel_cost,
            "monthly": monthly,
        })
        total += monthly

    return {"line_items": lines, "monthly_total": total}


def calculate_infrastructure(entries) -> float:
    return infrastructure_breakdown(entries)["monthly_total"]


# ---------------------------------------------------------------------------
# Holiday adjustment
# ---------------------------------------------------------------------------

def calculate_holiday_adjustment(
    monthly_positions: float,
    holiday_annual_count: float,
    holiday_commercial_buffer_pct: float,
) -> float:
    """
    Extra payroll for public holidays worked.

    Formula:
        (monthly_positions / 30) × 0.5 × (holidays / 12) × (1 + buffer_pct / 100)
    """
    daily_payroll = safe_number(monthly_positions) / HOLIDAY_DAYS_PER_MONTH
    holidays_per_month = safe_number(holiday_annual_count) / 12.0
    commercial_factor = 1.0 + safe_number(holiday_commercial_buffer_pct) / 100.0
    return max(0.0, daily_payroll * HOLIDAY_PAY_FACTOR * holidays_per_month * commercial_factor)
