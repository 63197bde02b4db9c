"""Account sales-total rollup core.

Layered flow for one batch of changed sales orders:
1) classify the batch into the set of affected accounts
2) aggregate current sales amounts per affected account
3) reconcile: bulk-write totals and map rejected accounts onto their orders
"""

from __future__ import annotations

from .aggregate import aggregate_totals, fill_missing_totals
from .classify import classify
from .contracts import (
    AccountTotals,
    AffectedAccountIds,
    BulkWriteContractError,
    ChildErrors,
    MissingPriorSnapshotError,
    ReconciliationReport,
    SalesOrderLike,
)
from .engine import RollupEngine, RollupResult, calculate_rollup
from .reconcile import reconcile
from .validation import DEFAULT_ACCOUNT_RULES, AccountRule, validate_total

__all__ = [
    "DEFAULT_ACCOUNT_RULES",
    "AccountRule",
    "AccountTotals",
    "AffectedAccountIds",
    "BulkWriteContractError",
    "ChildErrors",
    "MissingPriorSnapshotError",
    "ReconciliationReport",
    "RollupEngine",
    "RollupResult",
    "SalesOrderLike",
    "aggregate_totals",
    "calculate_rollup",
    "classify",
    "fill_missing_totals",
    "reconcile",
    "validate_total",
]
