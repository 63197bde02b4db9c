"""Application services that change sales orders and keep account totals in step.

These services play the part of the host platform: they stage the change,
fire the before-phase, write and flush the orders, then fire the after-phase
through the rollup engine. Orders that come back with an error are rejected:

- ``all_or_none=True`` rolls the whole unit of work back and raises
  ``SalesOrderRejectedError``.
- ``all_or_none=False`` undoes the attempt, drops the rejected orders and
  retries with the rest until an attempt goes through or nothing is left.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import partial
from typing import TYPE_CHECKING

from salesrollup.domain.model import (
    Account,
    DmlOperation,
    SalesOrder,
    SalesOrderSnapshot,
    TriggerPhase,
    checked_amount,
    new_id,
)
from salesrollup.domain.rollup import RollupEngine, RollupResult

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping, Sequence
    from decimal import Decimal
    from uuid import UUID

    from salesrollup.domain.ports.unit_of_work import RollupRepositories, RollupUnitOfWork
    from salesrollup.domain.rollup import ChildErrors, SalesOrderLike

type UnitOfWorkFactory = Callable[[], RollupUnitOfWork]

log = logging.getLogger(__name__)


class SalesOrderRejectedError(RuntimeError):
    """Raised when an all-or-none change is rejected by the rollup."""

    def __init__(self, errors: Mapping[UUID, str]) -> None:
        self.errors: dict[UUID, str] = dict(errors)
        details = "; ".join(
            f"{order_id}: {message.replace(chr(10), ' / ')}"
            for order_id, message in self.errors.items()
        )
        super().__init__(f"{len(self.errors)} sales order(s) rejected: {details}")


class SalesOrderNotFoundError(LookupError):
    """Raised when a change refers to a sales order that does not exist."""

    def __init__(self, order_id: UUID) -> None:
        self.order_id = order_id
        super().__init__(f"Sales order {order_id} does not exist")


@dataclass(frozen=True, slots=True, kw_only=True)
class NewSalesOrder:
    """Values for a sales order to be inserted."""

    account_id: UUID | None
    sales_amount: Decimal
    description: str | None = None
    id: UUID = field(default_factory=new_id)

    def __post_init__(self) -> None:
        object.__setattr__(self, "sales_amount", checked_amount(self.sales_amount))

    def build(self) -> SalesOrder:
        return SalesOrder(
            id=self.id,
            account_id=self.account_id,
            sales_amount=self.sales_amount,
            description=self.description,
        )


@dataclass(frozen=True, slots=True, kw_only=True)
class SalesOrderChange:
    """Field changes for an existing sales order; ``None`` leaves a field as is."""

    order_id: UUID
    account_id: UUID | None = None
    sales_amount: Decimal | None = None
    description: str | None = None
    clear_account: bool = False

    def __post_init__(self) -> None:
        if self.clear_account and self.account_id is not None:
            raise ValueError("Cannot both set and clear the account of a sales order")
        if self.sales_amount is not None:
            object.__setattr__(self, "sales_amount", checked_amount(self.sales_amount))

    def apply(self, order: SalesOrder) -> None:
        if self.clear_account:
            order.account_id = None
        elif self.account_id is not None:
            order.account_id = self.account_id
        if self.sales_amount is not None:
            order.sales_amount = self.sales_amount
        if self.description is not None:
            order.description = self.description


@dataclass(slots=True)
class SalesOrderDmlResult:
    """Outcome of one insert/update/delete request."""

    operation: DmlOperation
    succeeded: list[UUID] = field(default_factory=list)
    rejected: dict[UUID, str] = field(default_factory=dict)
    rollup: RollupResult | None = None


@dataclass(slots=True)
class _StagedChange:
    batch: list[SalesOrderLike]
    prior_by_id: dict[UUID, SalesOrderLike] = field(default_factory=dict)
    writes: list[Callable[[], None]] = field(default_factory=list)


type _Stager = Callable[[RollupRepositories, Sequence[UUID]], _StagedChange]


def create_account(
    *,
    unit_of_work_factory: UnitOfWorkFactory,
    name: str,
    credit_limit: Decimal | None = None,
    is_active: bool = True,
) -> Account:
    """Persist a new account with a zero total."""

    account = Account(name=name, credit_limit=credit_limit, is_active=is_active)
    with unit_of_work_factory() as uow:
        uow.repositories.accounts.add(account)
        uow.commit()
    return account


def insert_sales_orders(
    orders: Sequence[NewSalesOrder],
    *,
    unit_of_work_factory: UnitOfWorkFactory,
    all_or_none: bool = True,
) -> SalesOrderDmlResult:
    """Insert ``orders`` and roll their amounts up into the referenced accounts."""

    by_id = {order.id: order for order in orders}

    def stage(repositories: RollupRepositories, remaining: Sequence[UUID]) -> _StagedChange:
        new_orders = [by_id[order_id].build() for order_id in remaining]
        writes = [partial(repositories.sales_orders.add, order) for order in new_orders]
        return _StagedChange(batch=list(new_orders), writes=writes)

    return _run_dml(
        DmlOperation.INSERT,
        list(by_id),
        stage,
        unit_of_work_factory=unit_of_work_factory,
        all_or_none=all_or_none,
    )


def update_sales_orders(
    changes: Sequence[SalesOrderChange],
    *,
    unit_of_work_factory: UnitOfWorkFactory,
    all_or_none: bool = True,
) -> SalesOrderDmlResult:
    """Apply ``changes`` and recompute every account an order moved from or to."""

    by_id = {change.order_id: change for change in changes}

    def stage(repositories: RollupRepositories, remaining: Sequence[UUID]) -> _StagedChange:
        staged = _StagedChange(batch=[])
        for order_id in remaining:
            order = _load_order(repositories, order_id)
            staged.prior_by_id[order_id] = SalesOrderSnapshot.of(order)
            by_id[order_id].apply(order)
            staged.batch.append(order)
        return staged

    return _run_dml(
        DmlOperation.UPDATE,
        list(by_id),
        stage,
        unit_of_work_factory=unit_of_work_factory,
        all_or_none=all_or_none,
    )


def delete_sales_orders(
    order_ids: Sequence[UUID],
    *,
    unit_of_work_factory: UnitOfWorkFactory,
    all_or_none: bool = True,
) -> SalesOrderDmlResult:
    """Delete ``order_ids`` and recompute the accounts they belonged to."""

    def stage(repositories: RollupRepositories, remaining: Sequence[UUID]) -> _StagedChange:
        staged = _StagedChange(batch=[])
        for order_id in remaining:
            order = _load_order(repositories, order_id)
            staged.batch.append(SalesOrderSnapshot.of(order))
            staged.writes.append(partial(repositories.sales_orders.delete, order))
        return staged

    return _run_dml(
        DmlOperation.DELETE,
        list(dict.fromkeys(order_ids)),
        stage,
        unit_of_work_factory=unit_of_work_factory,
        all_or_none=all_or_none,
    )


def recalculate_account_totals(
    *,
    unit_of_work_factory: UnitOfWorkFactory,
    account_ids: Sequence[UUID] | None = None,
) -> RollupResult:
    """Recompute totals for ``account_ids`` (every account when omitted)."""

    with unit_of_work_factory() as uow:
        repositories = uow.repositories
        targets = list(account_ids) if account_ids is not None else repositories.accounts.list_ids()
        result = RollupEngine.from_repositories(repositories).recalculate(targets)
        uow.commit()
    return result


def _run_dml(
    operation: DmlOperation,
    order_ids: list[UUID],
    stage: _Stager,
    *,
    unit_of_work_factory: UnitOfWorkFactory,
    all_or_none: bool,
) -> SalesOrderDmlResult:
    result = SalesOrderDmlResult(operation=operation)
    if not order_ids:
        return result

    before, after = TriggerPhase.before(operation), TriggerPhase.after(operation)
    remaining = order_ids
    with unit_of_work_factory() as uow:
        engine = RollupEngine.from_repositories(uow.repositories)
        while remaining:
            savepoint = uow.begin_savepoint()
            staged = stage(uow.repositories, remaining)
            engine.calculate_rollup(before, staged.batch, staged.prior_by_id)
            for write in staged.writes:
                write()
            uow.flush()
            rollup = engine.calculate_rollup(after, staged.batch, staged.prior_by_id)
            if not rollup.child_errors:
                savepoint.commit()
                result.succeeded = list(remaining)
                result.rollup = rollup
                break

            savepoint.rollback()
            if all_or_none:
                raise SalesOrderRejectedError(rollup.child_errors)
            result.rejected.update(rollup.child_errors)
            remaining = _without_rejected(remaining, rollup.child_errors)
            log.info(
                "Retrying %s of %s sales orders after %s rejection(s)",
                len(remaining),
                len(order_ids),
                len(result.rejected),
            )
        uow.commit()
    return result


def _without_rejected(remaining: Sequence[UUID], errors: ChildErrors) -> list[UUID]:
    kept = [order_id for order_id in remaining if order_id not in errors]
    if len(kept) == len(remaining):
        raise RuntimeError("Rollup reported errors for orders outside the current batch")
    return kept


def _load_order(repositories: RollupRepositories, order_id: UUID) -> SalesOrder:
    order = repositories.sales_orders.get(order_id)
    if order is None:
        raise SalesOrderNotFoundError(order_id)
    return order

