"""Domain port definitions for adapters."""

from __future__ import annotations

from .persistence import (
    AccountRepository,
    AccountTotalsWriter,
    BulkWriteError,
    Repository,
    SalesOrderRepository,
    SalesOrderTotals,
    SaveResult,
    TotalUpdate,
)
from .unit_of_work import (
    RepositoryCollection,
    RollupRepositories,
    RollupUnitOfWork,
    Savepoint,
    UnitOfWork,
)

__all__ = [
    "AccountRepository",
    "AccountTotalsWriter",
    "BulkWriteError",
    "Repository",
    "RepositoryCollection",
    "RollupRepositories",
    "RollupUnitOfWork",
    "SalesOrderRepository",
    "SalesOrderTotals",
    "SaveResult",
    "Savepoint",
    "TotalUpdate",
    "UnitOfWork",
]
