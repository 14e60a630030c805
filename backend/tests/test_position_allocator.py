"""
test_position_allocator.py — Unit tests for sale price allocation.

Tests cover:
  - Proportional split by payroll weight
  - Exact re-summation (last position absorbs the remainder)
  - Empty / non-positive totals and all-zero weights
  - Client hourly rate and internal hourly cost
"""

import pytest

from cpq.services.position_allocator import (
    allocate_sale_price,
    build_position_allocations,
    compute_hourly_cost,
    position_hourly_rate,
)


# ===========================================================================
# Class 1: Allocation
# ===========================================================================

class TestAllocateSalePrice:

    def test_proportional_split(self, positions):
        """Weights 300k/200k/100k of a 720 000 total → 360k / 240k / 120k."""
        allocation = allocate_sale_price(positions, 720_000.0)
        assert list(allocation) == ["p1", "p2", "p3"]
        assert allocation["p1"] == pytest.approx(360_000.0)
        assert allocation["p2"] == pytest.approx(240_000.0)
        assert allocation["p3"] == pytest.approx(120_000.0)

    def test_last_position_absorbs_remainder(self, positions):
        total = 1_000_000.0 / 3.0
        allocation = allocate_sale_price(positions, total)
        assert allocation["p3"] == total - allocation["p1"] - allocation["p2"]
        assert sum(allocation.values()) == pytest.approx(total, rel=1e-12)

    def test_empty_positions(self):
        assert allocate_sale_price([], 720_000.0) == {}

    @pytest.mark.parametrize("total", [0.0, -10.0, None])
    def test_non_positive_total(self, positions, total):
        assert allocate_sale_price(positions, total) == {}

    def test_all_zero_weights_split_equally(self):
        positions = [
            {"id": "a", "monthly_position_cost": 0.0},
            {"id": "b", "monthly_position_cost": 0.0},
            {"id": "c", "monthly_position_cost": 0.0},
            {"id": "d", "monthly_position_cost": 0.0},
        ]
        allocation = allocate_sale_price(positions, 400_000.0)
        for value in allocation.values():
            assert value == pytest.approx(100_000.0)

    def test_negative_weight_treated_as_zero(self):
        positions = [
            {"id": "a", "monthly_position_cost": -50_000.0},
            {"id": "b", "monthly_position_cost": 100_000.0},
        ]
        allocation = allocate_sale_price(positions, 300_000.0)
        assert allocation["a"] == 0.0
        assert allocation["b"] == pytest.approx(300_000.0)

    def test_single_position_gets_everything(self):
        allocation = allocate_sale_price([{"id": 7, "monthly_position_cost": 10.0}], 123_456.78)
        assert allocation == {"7": 123_456.78}

    def test_missing_ids_keyed_by_index(self):
        """Two id-less positions keep separate shares: 300k / 100k of 400k."""
        positions = [
            {"id": None, "monthly_position_cost": 300_000.0},
            {"monthly_position_cost": 100_000.0},
        ]
        allocation = allocate_sale_price(positions, 400_000.0)
        assert list(allocation) == ["0", "1"]
        assert allocation["0"] == pytest.approx(300_000.0)
        assert sum(allocation.values()) == pytest.approx(400_000.0, rel=1e-12)

    def test_rows_for_none_ids(self):
        positions = [
            {"id": None, "num_guards": 1, "monthly_position_cost": 1.0},
            {"id": None, "num_guards": 1, "monthly_position_cost": 1.0},
        ]
        rows = build_position_allocations(positions, 200.0, 1)
        assert [row["position_id"] for row in rows] == ["0", "1"]
        assert [row["allocated_sale_price"] for row in rows] == [pytest.approx(100.0), pytest.approx(100.0)]


# ===========================================================================
# Class 2: Hourly rates
# ===========================================================================

class TestHourlyRates:

    def test_position_hourly_rate(self):
        """360 000 / (4 guards × 180 h) = 500 per guard-hour."""
        assert position_hourly_rate(360_000.0, 4, 180) == pytest.approx(500.0)

    def test_zero_guards_floored_to_one(self):
        assert position_hourly_rate(18_000.0, 0, 180) == pytest.approx(100.0)

    def test_zero_hours_floored_to_one(self):
        assert position_hourly_rate(18_000.0, 2, 0) == pytest.approx(9_000.0)

    def test_internal_hourly_cost(self):
        assert compute_hourly_cost(900_000.0) == pytest.approx(5_000.0)
        assert compute_hourly_cost(900_000.0, 200) == pytest.approx(4_500.0)

    def test_internal_hourly_cost_zero_hours(self):
        assert compute_hourly_cost(900_000.0, 0) == 0.0


# ===========================================================================
# Class 3: Allocation rows
# ===========================================================================

class TestBuildPositionAllocations:

    def test_rows(self, positions):
        rows = build_position_allocations(positions, 720_000.0, 180)
        assert [row["position_id"] for row in rows] == ["p1", "p2", "p3"]
        assert rows[0]["weight"] == pytest.approx(0.5)
        assert rows[0]["hourly_rate"] == pytest.approx(500.0)
        assert rows[2]["hourly_rate"] == pytest.approx(120_000.0 / 180)
        assert sum(row["weight"] for row in rows) == pytest.approx(1.0)

    def test_nothing_to_allocate(self, positions):
        assert build_position_allocations(positions, 0.0) == []
