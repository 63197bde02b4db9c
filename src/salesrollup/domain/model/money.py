"""Fixed-point helpers for sales amounts.

Amounts carry at most 16 significant digits with 2 of them after the decimal
point. All arithmetic stays in ``Decimal``; floats are rejected outright.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Final

AMOUNT_PRECISION: Final[int] = 16
AMOUNT_SCALE: Final[int] = 2
ZERO: Final[Decimal] = Decimal("0.00")

_QUANTUM: Final[Decimal] = Decimal(1).scaleb(-AMOUNT_SCALE)
_LIMIT: Final[Decimal] = Decimal(10) ** (AMOUNT_PRECISION - AMOUNT_SCALE)


def quantize_amount(value: Decimal | int | str) -> Decimal:
    """Return ``value`` as a ``Decimal`` rounded half-up to two places."""

    if isinstance(value, float):
        raise TypeError("Amounts must not be floats; pass Decimal, int or str")
    return Decimal(value).quantize(_QUANTUM, rounding=ROUND_HALF_UP)


def fits_precision(value: Decimal) -> bool:
    return abs(value) < _LIMIT


def checked_amount(value: Decimal | int | str) -> Decimal:
    """Quantise ``value`` and raise ``ValueError`` unless it is a storable amount."""

    try:
        amount = quantize_amount(value)
    except InvalidOperation as exc:
        raise ValueError(f"Invalid amount: {value}") from exc
    if not amount.is_finite():
        raise ValueError(f"Invalid amount: {value}")
    if not fits_precision(amount):
        raise ValueError(f"Amount {amount} exceeds {AMOUNT_PRECISION} digits of precision")
    return amount
