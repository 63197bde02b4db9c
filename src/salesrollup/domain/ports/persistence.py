"""Ports for reading and writing sales rollup data.

Atomicity contract for adapters:

- ``SalesOrderTotals.sum_amounts_by_account`` is a single grouped read.
- ``AccountTotalsWriter.save_totals`` is atomic per item, never as a whole,
  unless ``all_or_none=True`` is passed. Each item yields exactly one
  ``SaveResult``, in request order.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from salesrollup.domain.model import Account, SalesOrder

if TYPE_CHECKING:
    from collections.abc import Collection, Sequence
    from decimal import Decimal
    from uuid import UUID


@dataclass(frozen=True, slots=True)
class TotalUpdate:
    """Write request for one account's recomputed total."""

    account_id: UUID
    total: Decimal


@dataclass(frozen=True, slots=True)
class SaveResult:
    """Outcome of one ``TotalUpdate`` within a bulk write."""

    account_id: UUID
    errors: tuple[str, ...] = ()

    @property
    def success(self) -> bool:
        return not self.errors

    @classmethod
    def ok(cls, account_id: UUID) -> SaveResult:
        return cls(account_id=account_id)

    @classmethod
    def failed(cls, account_id: UUID, errors: Sequence[str]) -> SaveResult:
        if not errors:
            raise ValueError("A failed save result needs at least one error message")
        return cls(account_id=account_id, errors=tuple(errors))


class BulkWriteError(RuntimeError):
    """Raised by an all-or-none bulk write when any item is rejected."""

    def __init__(self, results: Sequence[SaveResult]) -> None:
        self.results = tuple(results)
        failed = [result for result in self.results if not result.success]
        super().__init__(f"{len(failed)} of {len(self.results)} account updates rejected")


@runtime_checkable
class Repository[TEntity](Protocol):
    """Minimal repository contract for a persistent aggregate store."""

    def add(self, entity: TEntity) -> None: ...


@runtime_checkable
class SalesOrderTotals(Protocol):
    """Grouped sum of sales amounts per account."""

    def sum_amounts_by_account(self, account_ids: Collection[UUID]) -> dict[UUID, Decimal]:
        """Return the summed amount per account that has at least one order."""
        ...


@runtime_checkable
class AccountTotalsWriter(Protocol):
    """Partial-success bulk write of account totals."""

    def save_totals(
        self,
        updates: Sequence[TotalUpdate],
        *,
        all_or_none: bool = False,
    ) -> list[SaveResult]: ...


@runtime_checkable
class SalesOrderRepository(Repository[SalesOrder], SalesOrderTotals, Protocol):
    """Persistence contract for sales orders."""

    def get(self, order_id: UUID) -> SalesOrder | None: ...

    def delete(self, order: SalesOrder) -> None: ...


@runtime_checkable
class AccountRepository(Repository[Account], AccountTotalsWriter, Protocol):
    """Persistence contract for accounts."""

    def get(self, account_id: UUID) -> Account | None: ...

    def list_ids(self) -> list[UUID]: ...
