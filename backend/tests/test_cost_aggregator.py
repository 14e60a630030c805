"""
test_cost_aggregator.py — Unit tests for the generic cost item aggregator.

Tests cover:
  - per_month vs per_guard calculation modes
  - Override precedence over catalog base price (including a zero override)
  - Unit normalisation of annual / semester catalog prices
  - Disabled items, unknown catalog ids and type filtering
  - Default quantity of 1 when the quantity is missing
"""

import pytest

from cpq.config import INFRA_TYPES, OPERATIONAL_TYPES, VEHICLE_TYPES
from cpq.services.cost_aggregator import (
    build_catalog_index,
    cost_item_lines,
    resolve_unit_price,
    sum_cost_items_by_types,
)


def _item(catalog_item_id, **kwargs):
    item = {
        "catalog_item_id": catalog_item_id,
        "calc_mode": "per_month",
        "quantity": 1,
        "unit_price_override": None,
        "is_enabled": True,
    }
    item.update(kwargs)
    return item


# ===========================================================================
# Class 1: Calculation modes
# ===========================================================================

class TestCalcModes:

    def test_per_guard_scenario(self):
        """basePrice 5 000, per_guard, quantity 1, 8 guards → 40 000."""
        catalog = build_catalog_index([
            {"id": "x", "type": "radio", "name": "Radio", "unit": "mes", "base_price": 5_000.0},
        ])
        total = sum_cost_items_by_types(
            [_item("x", calc_mode="per_guard")], {"radio"}, catalog, total_guards=8
        )
        assert total == pytest.approx(40_000.0)

    def test_per_month_ignores_guard_count(self, catalog_by_id):
        """Radio 8 000/mes × quantity 3 = 24 000 regardless of guards."""
        total = sum_cost_items_by_types(
            [_item("c-radio", quantity=3)], OPERATIONAL_TYPES, catalog_by_id, total_guards=50
        )
        assert total == pytest.approx(24_000.0)

    def test_missing_calc_mode_defaults_to_per_month(self, catalog_by_id):
        item = _item("c-radio")
        item["calc_mode"] = None
        total = sum_cost_items_by_types([item], OPERATIONAL_TYPES, catalog_by_id, total_guards=10)
        assert total == pytest.approx(8_000.0)

    def test_per_guard_with_zero_guards_is_zero(self, catalog_by_id):
        total = sum_cost_items_by_types(
            [_item("c-radio", calc_mode="per_guard")], OPERATIONAL_TYPES, catalog_by_id, total_guards=0
        )
        assert total == 0.0


# ===========================================================================
# Class 2: Prices and quantities
# ===========================================================================

class TestPricing:

    def test_override_wins_over_base_price(self, catalog_by_id):
        total = sum_cost_items_by_types(
            [_item("c-radio", unit_price_override=10_000.0)], OPERATIONAL_TYPES, catalog_by_id, 1
        )
        assert total == pytest.approx(10_000.0)

    def test_zero_override_is_still_an_override(self, catalog_by_id):
        total = sum_cost_items_by_types(
            [_item("c-radio", unit_price_override=0.0)], OPERATIONAL_TYPES, catalog_by_id, 1
        )
        assert total == 0.0

    def test_annual_catalog_price_is_monthlized(self, catalog_by_id):
        """TAG 120 000/año → 10 000/month."""
        total = sum_cost_items_by_types([_item("c-tag")], VEHICLE_TYPES, catalog_by_id, 1)
        assert total == pytest.approx(10_000.0)

    def test_override_is_also_normalised_by_catalog_unit(self, catalog_by_id):
        """Container is billed per semestre; override 120 000 → 20 000/month."""
        total = sum_cost_items_by_types(
            [_item("c-container", unit_price_override=120_000.0)], INFRA_TYPES, catalog_by_id, 1
        )
        assert total == pytest.approx(20_000.0)

    def test_missing_quantity_defaults_to_one(self, catalog_by_id):
        item = _item("c-radio")
        del item["quantity"]
        total = sum_cost_items_by_types([item], OPERATIONAL_TYPES, catalog_by_id, 1)
        assert total == pytest.approx(8_000.0)

    def test_resolve_unit_price_without_catalog(self):
        assert resolve_unit_price(None, None) == 0.0
        assert resolve_unit_price(250.0, None) == 250.0


# ===========================================================================
# Class 3: Filtering
# ===========================================================================

class TestFiltering:

    def test_disabled_item_excluded(self, catalog_by_id):
        items = [_item("c-radio"), _item("c-phone", is_enabled=False)]
        total = sum_cost_items_by_types(items, OPERATIONAL_TYPES, catalog_by_id, 1)
        assert total == pytest.approx(8_000.0)

    def test_toggling_one_item_leaves_other_categories_unchanged(self, catalog_by_id):
        items = [_item("c-radio"), _item("c-bus")]
        transport_before = sum_cost_items_by_types(items, {"transport"}, catalog_by_id, 1)
        items[0]["is_enabled"] = False
        assert sum_cost_items_by_types(items, OPERATIONAL_TYPES, catalog_by_id, 1) == 0.0
        assert sum_cost_items_by_types(items, {"transport"}, catalog_by_id, 1) == transport_before

    def test_unknown_catalog_id_skipped(self, catalog_by_id):
        items = [_item("does-not-exist"), _item("c-radio")]
        total = sum_cost_items_by_types(items, OPERATIONAL_TYPES, catalog_by_id, 1)
        assert total == pytest.approx(8_000.0)

    def test_type_filter_excludes_other_categories(self, catalog_by_id):
        items = [_item("c-radio"), _item("c-bus"), _item("c-system")]
        assert sum_cost_items_by_types(items, {"transport"}, catalog_by_id, 1) == pytest.approx(50_000.0)

    def test_empty_items(self, catalog_by_id):
        assert sum_cost_items_by_types([], OPERATIONAL_TYPES, catalog_by_id, 5) == 0
        assert sum_cost_items_by_types(None, OPERATIONAL_TYPES, catalog_by_id, 5) == 0

    def test_lines_are_numbered_and_carry_names(self, catalog_by_id):
        items = [_item("c-radio"), _item("c-phone", quantity=2)]
        lines = cost_item_lines(items, OPERATIONAL_TYPES, catalog_by_id, 1)
        assert [line["line"] for line in lines] == [1, 2]
        assert lines[1]["name"] == "Telefono"
        assert lines[1]["monthly"] == pytest.approx(24_000.0)


class TestCatalogIndex:

    def test_entries_without_id_are_ignored(self):
        index = build_catalog_index([{"type": "radio"}, {"id": 7, "type": "radio"}])
        assert list(index) == ["7"]

    def test_inactive_entries_are_ignored(self, catalog):
        for entry in catalog:
            if entry["id"] == "c-radio":
                entry["active"] = False
        index = build_catalog_index(catalog)
        assert "c-radio" not in index
        assert "c-phone" in index

    def test_items_on_inactive_entries_contribute_nothing(self):
        index = build_catalog_index([
            {"id": "r", "type": "radio", "name": "Radio", "unit": "mes", "base_price": 8_000.0, "active": False},
        ])
        items = [{"catalog_item_id": "r", "quantity": 1, "is_enabled": True}]
        assert sum_cost_items_by_types(items, OPERATIONAL_TYPES, index, 1) == 0
