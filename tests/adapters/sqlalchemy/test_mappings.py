from __future__ import annotations

from decimal import Decimal

import pytest
from sqlalchemy import select
from sqlalchemy.orm import Session  # noqa: TC002

from salesrollup.adapters.sqlalchemy.mappings import MoneyType, sales_order_table
from salesrollup.domain.model import Account, SalesOrder
from tests.helpers.sales_orders import make_order


@pytest.mark.parametrize(
    ("amount", "stored"),
    [
        (Decimal("150.50"), 15050),
        (Decimal("0.01"), 1),
        (Decimal("-2.5"), -250),
        (Decimal("99999999999999.99"), 9999999999999999),
    ],
)
def test_money_type_stores_minor_units(amount: Decimal, stored: int) -> None:
    money = MoneyType()

    assert money.process_bind_param(amount, dialect=None) == stored  # pyright: ignore[reportArgumentType]
    assert money.process_result_value(stored, dialect=None) == amount  # pyright: ignore[reportArgumentType]


def test_money_type_passes_none_through() -> None:
    money = MoneyType()

    assert money.process_bind_param(None, dialect=None) is None  # pyright: ignore[reportArgumentType]
    assert money.process_result_value(None, dialect=None) is None  # pyright: ignore[reportArgumentType]


def test_sales_order_roundtrips_through_the_mapping(sqlite_session: Session) -> None:
    acme = Account(name="Acme")
    order = make_order(acme, "12.30", description="first order")
    sqlite_session.add_all([acme, order])
    sqlite_session.commit()
    sqlite_session.expunge_all()

    loaded = sqlite_session.get(SalesOrder, order.id)
    raw = sqlite_session.execute(
        select(sales_order_table.c.sales_amount).where(sales_order_table.c.id == order.id)
    ).scalar_one()

    assert loaded is not None
    assert loaded.account_id == acme.id
    assert loaded.sales_amount == Decimal("12.30")
    assert loaded.description == "first order"
    assert raw == Decimal("12.30")
