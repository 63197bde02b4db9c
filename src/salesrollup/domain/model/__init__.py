"""Public domain model surface."""

from __future__ import annotations

from salesrollup.domain.model.base import Entity, new_id
from salesrollup.domain.model.enums import DmlOperation, TriggerPhase
from salesrollup.domain.model.money import (
    AMOUNT_PRECISION,
    AMOUNT_SCALE,
    ZERO,
    checked_amount,
    fits_precision,
    quantize_amount,
)
from salesrollup.domain.model.sales import Account, SalesOrder, SalesOrderSnapshot

__all__ = [
    "AMOUNT_PRECISION",
    "AMOUNT_SCALE",
    "ZERO",
    "Account",
    "DmlOperation",
    "Entity",
    "SalesOrder",
    "SalesOrderSnapshot",
    "TriggerPhase",
    "checked_amount",
    "fits_precision",
    "new_id",
    "quantize_amount",
]
