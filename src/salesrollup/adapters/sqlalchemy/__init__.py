"""SQLAlchemy adapter package for the sales rollup."""

from __future__ import annotations

from .mappings import MoneyType, mapper_registry, start_mappers
from .repositories import SqlAlchemyAccountRepository, SqlAlchemySalesOrderRepository

__all__ = [
    "MoneyType",
    "SqlAlchemyAccountRepository",
    "SqlAlchemySalesOrderRepository",
    "mapper_registry",
    "start_mappers",
]
