"""
Monetary helpers.

All payroll amounts are handled as Decimal and rounded half away from zero
to two places, matching how the ledger rounds currency.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Any

PENNY = Decimal("0.01")
UNIT = Decimal("1")
ZERO = Decimal("0")


def to_decimal(value: Any) -> Decimal:
    """Convert int/float/str to Decimal without binary float artefacts."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_money(value: Any) -> Decimal:
    """Round to 2 decimal places, half away from zero."""
    return to_decimal(value).quantize(PENNY, rounding=ROUND_HALF_UP)


def round_units(value: Any) -> Decimal:
    """Round to a whole number, half away from zero."""
    return to_decimal(value).quantize(UNIT, rounding=ROUND_HALF_UP)
