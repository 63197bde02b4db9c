"""Work out which accounts need their totals recomputed for a batch."""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from typing import Final
from uuid import UUID

from salesrollup.domain.model import TriggerPhase

from .contracts import AffectedAccountIds, MissingPriorSnapshotError, SalesOrderLike

type Classifier = Callable[
    [Sequence[SalesOrderLike], Mapping[UUID, SalesOrderLike]],
    AffectedAccountIds,
]


def _nothing_affected(
    batch: Sequence[SalesOrderLike],
    prior_by_id: Mapping[UUID, SalesOrderLike],
) -> AffectedAccountIds:
    _ = batch, prior_by_id
    return frozenset()


def _referenced_accounts(
    batch: Sequence[SalesOrderLike],
    prior_by_id: Mapping[UUID, SalesOrderLike],
) -> AffectedAccountIds:
    _ = prior_by_id
    return frozenset(order.account_id for order in batch if order.account_id is not None)


def _changed_accounts(
    batch: Sequence[SalesOrderLike],
    prior_by_id: Mapping[UUID, SalesOrderLike],
) -> AffectedAccountIds:
    affected: set[UUID] = set()
    for order in batch:
        prior = prior_by_id.get(order.id)
        if prior is None:
            raise MissingPriorSnapshotError(order.id)
        if order.account_id == prior.account_id and order.sales_amount == prior.sales_amount:
            continue
        # old and new reference are independent: either side may be None
        for account_id in (order.account_id, prior.account_id):
            if account_id is not None:
                affected.add(account_id)
    return frozenset(affected)


# Before-phases run ahead of the write, so the grouped sum would not see the change yet.
CLASSIFIERS: Final[Mapping[TriggerPhase, Classifier]] = {
    TriggerPhase.BEFORE_INSERT: _nothing_affected,
    TriggerPhase.AFTER_INSERT: _referenced_accounts,
    TriggerPhase.BEFORE_UPDATE: _nothing_affected,
    TriggerPhase.AFTER_UPDATE: _changed_accounts,
    TriggerPhase.BEFORE_DELETE: _nothing_affected,
    TriggerPhase.AFTER_DELETE: _referenced_accounts,
    TriggerPhase.AFTER_UNDELETE: _nothing_affected,
}


def classify(
    phase: TriggerPhase,
    batch: Sequence[SalesOrderLike],
    prior_by_id: Mapping[UUID, SalesOrderLike] | None = None,
) -> AffectedAccountIds:
    """Return the distinct account ids whose total may have changed in ``phase``."""

    return CLASSIFIERS[phase](batch, prior_by_id or {})
