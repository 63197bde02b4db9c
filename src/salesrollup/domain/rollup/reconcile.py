"""Write recomputed totals back and map rejected accounts onto their orders.

The bulk write runs in partial-success mode: one rejected account never
blocks the others. Each rejection is turned into a single message (one line
per constraint, in the order the writer reported them) and attached to every
order of the current batch that references the rejected account. Failed
writes are reported once and never retried here.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from salesrollup.domain.ports.persistence import TotalUpdate

from .contracts import BulkWriteContractError, ChildErrors, ReconciliationReport

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence
    from uuid import UUID

    from salesrollup.domain.ports.persistence import AccountTotalsWriter, SaveResult

    from .contracts import AccountTotals, SalesOrderLike

log = logging.getLogger(__name__)

ERROR_SEPARATOR = "\n"


def build_updates(totals: AccountTotals) -> list[TotalUpdate]:
    return [TotalUpdate(account_id=account_id, total=total) for account_id, total in totals.items()]


def join_errors(errors: Sequence[str]) -> str:
    return ERROR_SEPARATOR.join(errors)


def reconcile(
    totals: AccountTotals,
    batch: Sequence[SalesOrderLike],
    *,
    accounts: AccountTotalsWriter,
) -> ReconciliationReport:
    """Submit one write per total and collect child errors for rejected accounts."""

    updates = build_updates(totals)
    if not updates:
        return ReconciliationReport(child_errors={})

    results = accounts.save_totals(updates, all_or_none=False)
    _check_outcomes(updates, results)

    messages_by_account: dict[UUID, str] = {}
    for result in results:
        if result.success:
            log.debug("Account %s total saved", result.account_id)
            continue
        message = join_errors(result.errors)
        log.warning(
            "Account %s rejected its recomputed total: %s",
            result.account_id,
            "; ".join(result.errors),
        )
        messages_by_account[result.account_id] = message

    return ReconciliationReport(
        outcomes=tuple(results),
        child_errors=attach_child_errors(messages_by_account, batch),
    )


def attach_child_errors(
    messages_by_account: Mapping[UUID, str],
    batch: Sequence[SalesOrderLike],
) -> ChildErrors:
    """Map every order referencing a rejected account to that account's message."""

    child_errors: ChildErrors = {}
    if not messages_by_account:
        return child_errors
    for order in batch:
        if order.account_id is None:
            continue
        message = messages_by_account.get(order.account_id)
        if message is not None:
            child_errors[order.id] = message
    return child_errors


def _check_outcomes(updates: Sequence[TotalUpdate], results: Sequence[SaveResult]) -> None:
    requested = [update.account_id for update in updates]
    reported = [result.account_id for result in results]
    if requested != reported:
        raise BulkWriteContractError(
            f"Bulk write returned {len(reported)} outcomes for {len(requested)} requests "
            "or reordered them"
        )
