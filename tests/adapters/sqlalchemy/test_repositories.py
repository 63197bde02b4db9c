"""Tests for SQLAlchemy repositories."""

from __future__ import annotations

from decimal import Decimal

import pytest
from sqlalchemy import select
from sqlalchemy.orm import Session  # noqa: TC002

from salesrollup.adapters.sqlalchemy.mappings import account_table
from salesrollup.adapters.sqlalchemy.repositories import (
    SqlAlchemyAccountRepository,
    SqlAlchemySalesOrderRepository,
)
from salesrollup.domain.model import Account, new_id
from salesrollup.domain.ports.persistence import BulkWriteError, TotalUpdate
from tests.helpers.sales_orders import make_order


def _stored_total(session: Session, account: Account) -> Decimal:
    stmt = select(account_table.c.total_sales_amount).where(account_table.c.id == account.id)
    return session.execute(stmt).scalar_one()


def test_sum_amounts_groups_by_account(sqlite_session: Session) -> None:
    acme = Account(name="Acme")
    globex = Account(name="Globex")
    initech = Account(name="Initech")
    sqlite_session.add_all([acme, globex, initech])
    orders = SqlAlchemySalesOrderRepository(sqlite_session)
    for order in (
        make_order(acme, "100.00"),
        make_order(acme, "50.50"),
        make_order(globex, "0.10"),
        make_order(globex, "0.20"),
        make_order(initech, "7.00"),
        make_order(None, "3.00"),
    ):
        orders.add(order)
    sqlite_session.commit()

    sums = orders.sum_amounts_by_account([acme.id, globex.id])

    assert sums == {acme.id: Decimal("150.50"), globex.id: Decimal("0.30")}


def test_sum_amounts_omits_accounts_without_orders(sqlite_session: Session) -> None:
    acme = Account(name="Acme")
    sqlite_session.add(acme)
    sqlite_session.commit()

    repository = SqlAlchemySalesOrderRepository(sqlite_session)

    assert repository.sum_amounts_by_account([acme.id]) == {}
    assert repository.sum_amounts_by_account([]) == {}


def test_sum_amounts_sees_pending_changes(sqlite_session: Session) -> None:
    acme = Account(name="Acme")
    sqlite_session.add(acme)
    repository = SqlAlchemySalesOrderRepository(sqlite_session)
    order = make_order(acme, "9.99")
    repository.add(order)
    sqlite_session.flush()

    assert repository.sum_amounts_by_account([acme.id]) == {acme.id: Decimal("9.99")}

    repository.delete(order)
    sqlite_session.flush()

    assert repository.sum_amounts_by_account([acme.id]) == {}


def test_save_totals_applies_successes_despite_failures(sqlite_session: Session) -> None:
    capped = Account(name="Capped", credit_limit=Decimal("10.00"))
    open_account = Account(name="Open")
    sqlite_session.add_all([capped, open_account])
    sqlite_session.commit()
    missing_id = new_id()
    repository = SqlAlchemyAccountRepository(sqlite_session)

    results = repository.save_totals(
        [
            TotalUpdate(account_id=capped.id, total=Decimal("10.01")),
            TotalUpdate(account_id=open_account.id, total=Decimal("42.00")),
            TotalUpdate(account_id=missing_id, total=Decimal("1.00")),
        ]
    )
    sqlite_session.commit()

    assert [result.success for result in results] == [False, True, False]
    assert results[0].errors == (
        "Total sales amount 10.01 exceeds the credit limit of 10.00 for account 'Capped'.",
    )
    assert results[2].errors == (f"Account {missing_id} does not exist.",)
    assert _stored_total(sqlite_session, open_account) == Decimal("42.00")
    assert _stored_total(sqlite_session, capped) == Decimal("0.00")


def test_save_totals_reports_every_violation(sqlite_session: Session) -> None:
    dormant = Account(name="Dormant", credit_limit=Decimal("1.00"), is_active=False)
    sqlite_session.add(dormant)
    sqlite_session.commit()

    (result,) = SqlAlchemyAccountRepository(sqlite_session).save_totals(
        [TotalUpdate(account_id=dormant.id, total=Decimal("5.00"))]
    )

    assert result.errors == (
        "Cannot update sales totals on inactive account 'Dormant'.",
        "Total sales amount 5.00 exceeds the credit limit of 1.00 for account 'Dormant'.",
    )


def test_save_totals_all_or_none_rolls_everything_back(sqlite_session: Session) -> None:
    capped = Account(name="Capped", credit_limit=Decimal("1.00"))
    open_account = Account(name="Open")
    sqlite_session.add_all([capped, open_account])
    sqlite_session.commit()
    repository = SqlAlchemyAccountRepository(sqlite_session)

    with pytest.raises(BulkWriteError) as excinfo:
        repository.save_totals(
            [
                TotalUpdate(account_id=open_account.id, total=Decimal("3.00")),
                TotalUpdate(account_id=capped.id, total=Decimal("2.00")),
            ],
            all_or_none=True,
        )
    sqlite_session.commit()

    assert [result.success for result in excinfo.value.results] == [True, False]
    assert _stored_total(sqlite_session, open_account) == Decimal("0.00")


def test_save_totals_with_custom_rules(sqlite_session: Session) -> None:
    account = Account(name="Anything goes", credit_limit=Decimal("1.00"), is_active=False)
    sqlite_session.add(account)
    sqlite_session.commit()

    repository = SqlAlchemyAccountRepository(sqlite_session, rules=())
    (result,) = repository.save_totals([TotalUpdate(account_id=account.id, total=Decimal(5))])
    sqlite_session.commit()

    assert result.success
    assert _stored_total(sqlite_session, account) == Decimal("5.00")


def test_account_repository_lists_ids(sqlite_session: Session) -> None:
    accounts = [Account(name=f"Account {index}") for index in range(3)]
    sqlite_session.add_all(accounts)
    sqlite_session.commit()

    repository = SqlAlchemyAccountRepository(sqlite_session)

    assert repository.list_ids() == sorted(account.id for account in accounts)
    assert repository.get(accounts[0].id) is accounts[0]
