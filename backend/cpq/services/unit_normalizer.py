"""
unit_normalizer.py — Monthly-equivalent pricing for catalog units.

Catalog prices are entered in whatever unit the supplier bills ("mes",
"año", "semestre", "unidad", ...). Every cost category works in monthly
money, so annual and semester prices are divided down before use.

Units that match no pattern are treated as already monthly.
"""

import logging
from typing import Any, List, Optional, Tuple

logger = logging.getLogger("cpq-costing")


# ---------------------------------------------------------------------------
# Unit pattern table: first match wins (substring, case-insensitive)
# ---------------------------------------------------------------------------
UNIT_DIVISORS: List[Tuple[Tuple[str, ...], float]] = [
    (("año", "year"), 12.0),
    (("semestre", "semester"), 6.0),
]

# Units known to be monthly or per-occurrence; never logged as unrecognised
_PASS_THROUGH_UNITS: Tuple[str, ...] = (
    "mes", "month", "unidad", "unit", "examen", "comida", "día", "dia", "day",
)


def safe_number(value: Any, default: float = 0.0) -> float:
    """Coerce a possibly-missing numeric field to float; None/garbage → default."""
    if value is None or value == "":
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def unit_divisor(unit: Optional[str]) -> float:
    """Return the divisor that turns a price in ``unit`` into a monthly price."""
    if not unit:
        return 1.0
    normalized = unit.lower()
    for patterns, divisor in UNIT_DIVISORS:
        if any(p in normalized for p in patterns):
            return divisor
    if not any(p in normalized for p in _PASS_THROUGH_UNITS):
        logger.debug("Unrecognised unit %r treated as monthly", unit)
    return 1.0


def normalize_unit_price(value: float, unit: Optional[str]) -> float:
    """
    Convert a catalog unit price into its monthly equivalent.

    Examples:
        normalize_unit_price(1200, "año")      -> 100.0
        normalize_unit_price(600, "Semestre")  -> 100.0
        normalize_unit_price(100, "mes")       -> 100
        normalize_unit_price(100, None)        -> 100
    """
    divisor = unit_divisor(unit)
    if divisor == 1.0:
        return value
    return value / divisor
