"""
conftest.py — Shared pytest fixtures for the CPQ costing test suite.

No database or external service fixtures are defined here.  All tests in this
suite are pure unit tests that exercise the costing functions in isolation,
plus route tests that go through FastAPI's in-process TestClient.

Import-path bootstrapping:
    The ``backend/`` directory is inserted into sys.path so that all
    ``cpq.*`` imports resolve correctly regardless of where pytest is invoked.
"""

import sys
import os
import pytest

# ---------------------------------------------------------------------------
# Ensure ``backend/`` is on the import path before any cpq imports occur.
# ---------------------------------------------------------------------------
_BACKEND_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _BACKEND_DIR not in sys.path:
    sys.path.insert(0, _BACKEND_DIR)

# Keep the engine defaults independent of the developer's environment
for _var in (
    "CPQ_DEFAULT_MARGIN_PCT",
    "CPQ_DEFAULT_FINANCIAL_RATE_PCT",
    "CPQ_HOLIDAY_ANNUAL_COUNT",
    "CPQ_HOLIDAY_COMMERCIAL_BUFFER_PCT",
    "CPQ_MONTHLY_HOURS_STANDARD",
):
    os.environ.pop(_var, None)


# ---------------------------------------------------------------------------
# Engine fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(scope="session")
def costing_engine():
    """
    CpqCostingEngine with all defaults.

    Defaults:
      hours = 180, avg stay = 4 months, uniform changes = 3/yr, margin = 13%,
      financial = 2.5% (enabled), policy disabled, holidays = 12/yr + 10% buffer.
    """
    from cpq.services.costing_engine import CpqCostingEngine
    return CpqCostingEngine()


@pytest.fixture(scope="session")
def plain_costing_engine():
    """
    Engine with surcharges switched off so totals can be checked by hand:
    no holidays, no financing, no policy, zero margin.
    """
    from cpq.services.costing_engine import CpqCostingEngine
    return CpqCostingEngine(settings={
        "holiday_annual_count": 0,
        "financial_enabled": False,
        "policy_enabled": False,
        "margin_pct": 0.0,
    })


# ---------------------------------------------------------------------------
# Shared sample data
# ---------------------------------------------------------------------------

@pytest.fixture
def catalog():
    """A small catalog with one or more entries of every category."""
    return [
        {"id": "u-shirt", "type": "uniform", "name": "Camisa", "unit": "unidad", "base_price": 20_000.0, "is_default": True},
        {"id": "u-pants", "type": "uniform", "name": "Pantalon", "unit": "unidad", "base_price": 15_000.0, "is_default": True},
        {"id": "u-helmet", "type": "uniform", "name": "Casco", "unit": "unidad", "base_price": 12_000.0, "is_default": False},
        {"id": "e-pre", "type": "exam", "name": "Preocupacional", "unit": "examen", "base_price": 25_000.0, "is_default": True},
        {"id": "e-drug", "type": "exam", "name": "Drogas", "unit": "examen", "base_price": 20_000.0, "is_default": False},
        {"id": "c-radio", "type": "radio", "name": "Radio", "unit": "mes", "base_price": 8_000.0, "is_default": True},
        {"id": "c-phone", "type": "phone", "name": "Telefono", "unit": "mes", "base_price": 12_000.0, "is_default": False},
        {"id": "c-bus", "type": "transport", "name": "Transporte", "unit": "mes", "base_price": 50_000.0, "is_default": False},
        {"id": "c-tag", "type": "vehicle_tag", "name": "TAG", "unit": "año", "base_price": 120_000.0, "is_default": False},
        {"id": "c-container", "type": "infrastructure", "name": "Container", "unit": "semestre", "base_price": 60_000.0, "is_default": False},
        {"id": "c-system", "type": "system", "name": "Sistema", "unit": "mes", "base_price": 3_500.0, "is_default": True},
        {"id": "f-fin", "type": "financial", "name": "Costo financiero", "unit": "%", "base_price": 3.0, "is_default": False},
        {"id": "f-pol", "type": "policy", "name": "Poliza", "unit": "%", "base_price": 1.5, "is_default": False},
        {"id": "m-lunch", "type": "meal", "name": "Almuerzo", "unit": "comida", "base_price": 6_500.0, "is_default": True},
        {"id": "m-breakfast", "type": "meal", "name": "Desayuno", "unit": "comida", "base_price": 3_500.0, "is_default": False},
    ]


@pytest.fixture
def catalog_by_id(catalog):
    from cpq.services.cost_aggregator import build_catalog_index
    return build_catalog_index(catalog)


@pytest.fixture
def positions():
    """Three positions with raw monthly payroll 300k / 200k / 100k."""
    return [
        {"id": "p1", "num_guards": 4, "num_puestos": 1, "monthly_position_cost": 300_000.0},
        {"id": "p2", "num_guards": 3, "num_puestos": 1, "monthly_position_cost": 200_000.0},
        {"id": "p3", "num_guards": 1, "num_puestos": 1, "monthly_position_cost": 100_000.0},
    ]
