from __future__ import annotations

import logging
from decimal import Decimal
from typing import TYPE_CHECKING

import pytest

from salesrollup import app
from salesrollup.domain.order_management import NewSalesOrder, SalesOrderChange

if TYPE_CHECKING:
    from collections.abc import Callable

    from salesrollup.adapters.sqlalchemy.unit_of_work import SqlAlchemyRollupUnitOfWork


def test_add_sales_orders_logs_rejections(
    sqlite_unit_of_work: Callable[[], SqlAlchemyRollupUnitOfWork],
    caplog: pytest.LogCaptureFixture,
) -> None:
    account = app.create_account(
        name="Capped",
        credit_limit=Decimal("1.00"),
        unit_of_work_factory=sqlite_unit_of_work,
    )
    order = NewSalesOrder(account_id=account.id, sales_amount=Decimal("2.00"))

    with caplog.at_level(logging.INFO, logger="salesrollup.app"):
        result = app.add_sales_orders(
            [order], all_or_none=False, unit_of_work_factory=sqlite_unit_of_work
        )

    assert list(result.rejected) == [order.id]
    assert "succeeded=0, rejected=1" in caplog.text
    assert f"Sales order {order.id} rejected" in caplog.text


def test_recalculate_totals_uses_started_adapter(
    sqlite_unit_of_work: Callable[[], SqlAlchemyRollupUnitOfWork],
) -> None:
    account = app.create_account(name="Acme")
    app.add_sales_orders([NewSalesOrder(account_id=account.id, sales_amount=Decimal("3.50"))])

    result = app.recalculate_totals(account_ids=[account.id])

    assert result.totals == {account.id: Decimal("3.50")}
    assert result.applied


def test_account_left_behind_by_a_move_is_reported(
    sqlite_unit_of_work: Callable[[], SqlAlchemyRollupUnitOfWork],
    caplog: pytest.LogCaptureFixture,
) -> None:
    source = app.create_account(name="Source", unit_of_work_factory=sqlite_unit_of_work)
    target = app.create_account(name="Target", unit_of_work_factory=sqlite_unit_of_work)
    order = NewSalesOrder(account_id=source.id, sales_amount=Decimal("8.00"))
    app.add_sales_orders([order], unit_of_work_factory=sqlite_unit_of_work)
    with sqlite_unit_of_work() as uow:
        account = uow.repositories.accounts.get(source.id)
        assert account is not None
        account.is_active = False
        uow.commit()

    with caplog.at_level(logging.WARNING, logger="salesrollup.app"):
        result = app.change_sales_orders(
            [SalesOrderChange(order_id=order.id, account_id=target.id)],
            unit_of_work_factory=sqlite_unit_of_work,
        )

    assert result.succeeded == [order.id]
    assert result.rollup is not None
    assert result.rollup.failed_account_ids == {source.id}
    assert f"Account {source.id} kept its previous total" in caplog.text
