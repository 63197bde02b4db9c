"""Unit-of-work abstractions for coordinating repositories."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from types import TracebackType

    from salesrollup.domain.ports.persistence import AccountRepository, SalesOrderRepository


@runtime_checkable
class RepositoryCollection(Protocol):
    """Marker protocol for groups of repositories managed together."""


@runtime_checkable
class Savepoint(Protocol):
    """Nested transaction that can be released or undone on its own."""

    def commit(self) -> None: ...

    def rollback(self) -> None: ...


@runtime_checkable
class UnitOfWork[TRepositories: RepositoryCollection](Protocol):
    """Generic unit-of-work boundary around a repository collection."""

    @property
    def repositories(self) -> TRepositories: ...

    def __enter__(self) -> UnitOfWork[TRepositories]: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...

    def flush(self) -> None:
        """Push pending changes so that subsequent reads observe them."""
        ...

    def begin_savepoint(self) -> Savepoint: ...


@dataclass(slots=True)
class RollupRepositories(RepositoryCollection):
    """Repositories required to maintain account sales totals."""

    accounts: AccountRepository
    sales_orders: SalesOrderRepository


type RollupUnitOfWork = UnitOfWork[RollupRepositories]
