"""Accounts and the sales orders that roll up into them."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from salesrollup.domain.model.base import Entity
from salesrollup.domain.model.money import ZERO, checked_amount, quantize_amount

if TYPE_CHECKING:
    from decimal import Decimal
    from uuid import UUID


@dataclass(eq=False, kw_only=True)
class Account(Entity):
    """Parent record holding the rolled-up ``total_sales_amount``."""

    name: str
    total_sales_amount: Decimal = ZERO
    credit_limit: Decimal | None = None
    is_active: bool = True

    def __post_init__(self) -> None:
        self.total_sales_amount = quantize_amount(self.total_sales_amount)
        if self.credit_limit is not None:
            self.credit_limit = checked_amount(self.credit_limit)


@dataclass(eq=False, kw_only=True)
class SalesOrder(Entity):
    """Child record contributing ``sales_amount`` to its account's total."""

    account_id: UUID | None = None
    sales_amount: Decimal = ZERO
    description: str | None = None

    def __post_init__(self) -> None:
        self.sales_amount = checked_amount(self.sales_amount)


@dataclass(frozen=True, slots=True)
class SalesOrderSnapshot:
    """Pre-change state of a sales order, as seen by the update phase."""

    id: UUID
    account_id: UUID | None
    sales_amount: Decimal

    @classmethod
    def of(cls, order: SalesOrder) -> SalesOrderSnapshot:
        return cls(
            id=order.id,
            account_id=order.account_id,
            sales_amount=order.sales_amount,
        )
