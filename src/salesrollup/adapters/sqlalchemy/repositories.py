"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, cast

from sqlalchemy import func, select, type_coerce
from sqlalchemy.exc import SQLAlchemyError

from salesrollup.adapters.sqlalchemy.mappings import (
    MoneyType,
    account_table,
    sales_order_table,
)
from salesrollup.domain.model import Account, SalesOrder, quantize_amount
from salesrollup.domain.ports.persistence import BulkWriteError, SaveResult
from salesrollup.domain.rollup.validation import DEFAULT_ACCOUNT_RULES, validate_total

if TYPE_CHECKING:
    import uuid
    from collections.abc import Collection, Sequence
    from decimal import Decimal

    from sqlalchemy.orm import Session, SessionTransaction

    from salesrollup.domain.ports.persistence import TotalUpdate
    from salesrollup.domain.rollup.validation import AccountRule

log = logging.getLogger(__name__)


class SqlAlchemySalesOrderRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: SalesOrder) -> None:
        self.session.add(entity)

    def get(self, order_id: uuid.UUID) -> SalesOrder | None:
        return self.session.get(SalesOrder, order_id)

    def delete(self, order: SalesOrder) -> None:
        self.session.delete(order)

    def sum_amounts_by_account(self, account_ids: Collection[uuid.UUID]) -> dict[uuid.UUID, Decimal]:
        if not account_ids:
            return {}
        account_column = sales_order_table.c.account_id
        total_column = type_coerce(func.sum(sales_order_table.c.sales_amount), MoneyType())
        stmt = (
            select(account_column, total_column)
            .where(account_column.in_(list(account_ids)))
            .group_by(account_column)
        )
        rows = self.session.execute(stmt).all()
        return {account_id: total for account_id, total in rows}


class SqlAlchemyAccountRepository:
    """Account store whose bulk total writes succeed or fail per item."""

    def __init__(
        self,
        session: Session,
        rules: Sequence[AccountRule] = DEFAULT_ACCOUNT_RULES,
    ) -> None:
        self.session = session
        self.rules = tuple(rules)

    def add(self, entity: Account) -> None:
        self.session.add(entity)

    def get(self, account_id: uuid.UUID) -> Account | None:
        return self.session.get(Account, account_id)

    def list_ids(self) -> list[uuid.UUID]:
        stmt = select(account_table.c.id).order_by(account_table.c.id)
        return list(self.session.execute(stmt).scalars())

    def save_totals(
        self,
        updates: Sequence[TotalUpdate],
        *,
        all_or_none: bool = False,
    ) -> list[SaveResult]:
        outer = self.session.begin_nested() if all_or_none else None
        results = [self._save_one(update) for update in updates]
        if outer is None:
            return results
        if all(result.success for result in results):
            outer.commit()
            return results
        outer.rollback()
        raise BulkWriteError(results)

    def _save_one(self, update: TotalUpdate) -> SaveResult:
        savepoint = self.session.begin_nested()
        account = self.session.get(Account, update.account_id)
        if account is None:
            savepoint.rollback()
            return SaveResult.failed(
                update.account_id, [f"Account {update.account_id} does not exist."]
            )

        total = quantize_amount(update.total)
        messages = validate_total(account, total, self.rules)
        if messages:
            savepoint.rollback()
            return SaveResult.failed(update.account_id, messages)

        account.total_sales_amount = total
        try:
            self.session.flush()
        except SQLAlchemyError as exc:
            return _rejected_by_database(savepoint, update.account_id, exc)
        savepoint.commit()
        log.debug("Saved total %s for account %s", total, update.account_id)
        return SaveResult.ok(update.account_id)


def _rejected_by_database(
    savepoint: SessionTransaction,
    account_id: uuid.UUID,
    exc: SQLAlchemyError,
) -> SaveResult:
    savepoint.rollback()
    cause = cast("BaseException | None", getattr(exc, "orig", None)) or exc
    log.warning("Database rejected total for account %s: %s", account_id, cause)
    return SaveResult.failed(account_id, [str(cause)])


if TYPE_CHECKING:
    from salesrollup.domain.ports.persistence import AccountRepository, SalesOrderRepository

    _session_stub = cast("Session", object())
    _order_repo_check: SalesOrderRepository = SqlAlchemySalesOrderRepository(_session_stub)
    _account_repo_check: AccountRepository = SqlAlchemyAccountRepository(_session_stub)
