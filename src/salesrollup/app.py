"""Application orchestration entry points."""

from __future__ import annotations

from collections.abc import Callable
from logging import getLogger
from typing import TYPE_CHECKING

from salesrollup.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyRollupUnitOfWork,
    is_started,
    startup,
)
from salesrollup.domain import order_management
from salesrollup.domain.ports.unit_of_work import RollupUnitOfWork

if TYPE_CHECKING:
    from collections.abc import Sequence
    from decimal import Decimal
    from uuid import UUID

    from salesrollup.domain.model import Account
    from salesrollup.domain.order_management import (
        NewSalesOrder,
        SalesOrderChange,
        SalesOrderDmlResult,
    )
    from salesrollup.domain.rollup import RollupResult

UnitOfWorkFactory = Callable[[], RollupUnitOfWork]


log = getLogger(__name__)


def _resolve_unit_of_work(factory: UnitOfWorkFactory | None) -> UnitOfWorkFactory:
    if factory is not None:
        return factory
    if not is_started():
        startup()
    return SqlAlchemyRollupUnitOfWork


def create_account(
    *,
    name: str,
    credit_limit: Decimal | None = None,
    is_active: bool = True,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> Account:
    """Create an account with an empty sales total."""

    account = order_management.create_account(
        unit_of_work_factory=_resolve_unit_of_work(unit_of_work_factory),
        name=name,
        credit_limit=credit_limit,
        is_active=is_active,
    )
    log.info("Created account %s (%s)", account.id, account.name)
    return account


def add_sales_orders(
    orders: Sequence[NewSalesOrder],
    *,
    all_or_none: bool = True,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> SalesOrderDmlResult:
    """Insert sales orders and roll them up into their accounts."""

    return _log_dml_result(
        order_management.insert_sales_orders(
            orders,
            unit_of_work_factory=_resolve_unit_of_work(unit_of_work_factory),
            all_or_none=all_or_none,
        )
    )


def change_sales_orders(
    changes: Sequence[SalesOrderChange],
    *,
    all_or_none: bool = True,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> SalesOrderDmlResult:
    """Update sales orders and recompute every account they touch."""

    return _log_dml_result(
        order_management.update_sales_orders(
            changes,
            unit_of_work_factory=_resolve_unit_of_work(unit_of_work_factory),
            all_or_none=all_or_none,
        )
    )


def remove_sales_orders(
    order_ids: Sequence[UUID],
    *,
    all_or_none: bool = True,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> SalesOrderDmlResult:
    """Delete sales orders and recompute the accounts they belonged to."""

    return _log_dml_result(
        order_management.delete_sales_orders(
            order_ids,
            unit_of_work_factory=_resolve_unit_of_work(unit_of_work_factory),
            all_or_none=all_or_none,
        )
    )


def recalculate_totals(
    *,
    account_ids: Sequence[UUID] | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> RollupResult:
    """Recompute account totals from scratch."""

    result = order_management.recalculate_account_totals(
        unit_of_work_factory=_resolve_unit_of_work(unit_of_work_factory),
        account_ids=account_ids,
    )
    log.info(
        "Recalculated %s account(s), %s rejected",
        len(result.totals),
        len(result.failed_account_ids),
    )
    _log_failed_accounts(result)
    return result


def _log_dml_result(result: SalesOrderDmlResult) -> SalesOrderDmlResult:
    log.info(
        "Sales order %s: succeeded=%s, rejected=%s",
        result.operation,
        len(result.succeeded),
        len(result.rejected),
    )
    for order_id, message in result.rejected.items():
        log.warning("Sales order %s rejected: %s", order_id, message.replace("\n", " / "))
    if result.rollup is not None:
        _log_failed_accounts(result.rollup)
    return result


def _log_failed_accounts(rollup: RollupResult) -> None:
    for outcome in rollup.outcomes:
        if not outcome.success:
            log.warning(
                "Account %s kept its previous total: %s",
                outcome.account_id,
                " / ".join(outcome.errors),
            )
