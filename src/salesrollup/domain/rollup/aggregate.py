"""Grouped summation of sales amounts per account."""

from __future__ import annotations

from typing import TYPE_CHECKING

from salesrollup.domain.model import ZERO, quantize_amount

if TYPE_CHECKING:
    from collections.abc import Collection, Mapping
    from decimal import Decimal
    from uuid import UUID

    from salesrollup.domain.ports.persistence import SalesOrderTotals

    from .contracts import AccountTotals


def aggregate_totals(
    account_ids: Collection[UUID],
    *,
    sales_orders: SalesOrderTotals,
) -> AccountTotals:
    """Sum every persisted order per account, with zero for accounts left without any."""

    if not account_ids:
        raise ValueError("aggregate_totals requires at least one account id")
    requested = frozenset(account_ids)
    sums = sales_orders.sum_amounts_by_account(requested)
    return fill_missing_totals(requested, sums)


def fill_missing_totals(
    account_ids: Collection[UUID],
    sums: Mapping[UUID, Decimal],
) -> AccountTotals:
    """Return one quantised total per requested id; ids absent from ``sums`` get zero."""

    return {
        account_id: quantize_amount(sums.get(account_id, ZERO))
        for account_id in sorted(account_ids)
    }
