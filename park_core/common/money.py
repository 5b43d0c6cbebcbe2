# park_core/common/money.py
from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from rest_framework.exceptions import ValidationError

ZERO = Decimal("0.00")
CENT = Decimal("0.01")


def to_decimal(value, *, field: str = "amount") -> Decimal:
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError({field: "Invalid decimal value."})


def money(value) -> Decimal:
    """Quantize to two decimals, half-up (what a cashier would round)."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)
