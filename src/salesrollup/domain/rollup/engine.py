"""Entry point invoked by the host for every batch of changed sales orders.

The engine composes the three stages in a single pass:
classify -> aggregate -> reconcile. Nothing is carried between invocations.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .aggregate import aggregate_totals
from .classify import classify
from .reconcile import reconcile

if TYPE_CHECKING:
    from collections.abc import Collection, Mapping, Sequence
    from uuid import UUID

    from salesrollup.domain.model import TriggerPhase
    from salesrollup.domain.ports.persistence import (
        AccountTotalsWriter,
        SalesOrderTotals,
        SaveResult,
    )
    from salesrollup.domain.ports.unit_of_work import RollupRepositories

    from .contracts import AccountTotals, AffectedAccountIds, ChildErrors, SalesOrderLike

log = logging.getLogger(__name__)


@dataclass(slots=True, kw_only=True)
class RollupResult:
    """Outcome of one rollup invocation."""

    phase: TriggerPhase | None
    affected_account_ids: AffectedAccountIds = frozenset()
    totals: AccountTotals = field(default_factory=dict)
    outcomes: tuple[SaveResult, ...] = ()
    child_errors: ChildErrors = field(default_factory=dict)

    @property
    def applied(self) -> bool:
        return all(result.success for result in self.outcomes)

    @property
    def failed_account_ids(self) -> frozenset[UUID]:
        return frozenset(result.account_id for result in self.outcomes if not result.success)


@dataclass(slots=True)
class RollupEngine:
    """Recompute account totals for a batch and report rejected accounts."""

    sales_orders: SalesOrderTotals
    accounts: AccountTotalsWriter

    @classmethod
    def from_repositories(cls, repositories: RollupRepositories) -> RollupEngine:
        return cls(sales_orders=repositories.sales_orders, accounts=repositories.accounts)

    def calculate_rollup(
        self,
        phase: TriggerPhase,
        batch: Sequence[SalesOrderLike],
        prior_by_id: Mapping[UUID, SalesOrderLike] | None = None,
    ) -> RollupResult:
        """Run the rollup for ``batch`` as dispatched in ``phase``."""

        affected = classify(phase, batch, prior_by_id)
        if not affected:
            log.debug("Rollup %s: no accounts affected by %s orders", phase, len(batch))
            return RollupResult(phase=phase)
        return self._recompute(phase, affected, batch)

    def recalculate(self, account_ids: Collection[UUID]) -> RollupResult:
        """Recompute ``account_ids`` regardless of any batch (maintenance runs)."""

        affected = frozenset(account_ids)
        if not affected:
            return RollupResult(phase=None)
        return self._recompute(None, affected, ())

    def _recompute(
        self,
        phase: TriggerPhase | None,
        affected: AffectedAccountIds,
        batch: Sequence[SalesOrderLike],
    ) -> RollupResult:
        totals = aggregate_totals(affected, sales_orders=self.sales_orders)
        report = reconcile(totals, batch, accounts=self.accounts)
        log.info(
            "Rollup %s: accounts=%s, rejected=%s, order_errors=%s",
            phase or "recalculate",
            len(totals),
            len(report.failed_account_ids),
            len(report.child_errors),
        )
        return RollupResult(
            phase=phase,
            affected_account_ids=affected,
            totals=totals,
            outcomes=report.outcomes,
            child_errors=report.child_errors,
        )


def calculate_rollup(
    phase: TriggerPhase,
    batch: Sequence[SalesOrderLike],
    prior_by_id: Mapping[UUID, SalesOrderLike] | None = None,
    *,
    repositories: RollupRepositories,
) -> RollupResult:
    """Run the rollup against a repository collection."""

    return RollupEngine.from_repositories(repositories).calculate_rollup(
        phase, batch, prior_by_id
    )
