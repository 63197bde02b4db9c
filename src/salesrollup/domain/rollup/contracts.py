"""Shared rollup contract types.

Only aliases, record protocols and error types live here so that every stage
module can depend on it without importing its siblings.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol
from uuid import UUID

if TYPE_CHECKING:
    from decimal import Decimal

    from salesrollup.domain.ports.persistence import SaveResult


type AffectedAccountIds = frozenset[UUID]
type AccountTotals = dict[UUID, Decimal]
type ChildErrors = dict[UUID, str]


class SalesOrderLike(Protocol):
    """Read-only view of a sales order shared by live records and snapshots."""

    @property
    def id(self) -> UUID: ...

    @property
    def account_id(self) -> UUID | None: ...

    @property
    def sales_amount(self) -> Decimal: ...


@dataclass(slots=True, kw_only=True)
class ReconciliationReport:
    """Per-account outcomes plus the errors to surface on the triggering orders."""

    outcomes: tuple[SaveResult, ...] = ()
    child_errors: ChildErrors

    @property
    def failed_account_ids(self) -> frozenset[UUID]:
        return frozenset(result.account_id for result in self.outcomes if not result.success)


class MissingPriorSnapshotError(ValueError):
    """Raised when an update batch lacks the prior state of one of its records."""

    def __init__(self, order_id: UUID) -> None:
        self.order_id = order_id
        super().__init__(f"No prior snapshot supplied for sales order {order_id}")


class BulkWriteContractError(RuntimeError):
    """Raised when a bulk write returns outcomes that do not match its requests."""
