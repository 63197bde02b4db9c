"""SQLAlchemy mapping metadata for the sales rollup domain model."""

from __future__ import annotations

import logging
import uuid
from decimal import Decimal
from functools import cache

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    Dialect,
    ForeignKey,
    Index,
    String,
    Table,
    TypeDecorator,
    Uuid,
    orm,
)
from sqlalchemy.orm import configure_mappers

from salesrollup.domain.model import AMOUNT_SCALE, Account, SalesOrder, quantize_amount

log = logging.getLogger(__name__)

UUIDColumnType = Uuid[uuid.UUID]


class MoneyType(TypeDecorator[Decimal]):
    """Store two-place decimals as integer minor units so ``SUM`` stays exact."""

    impl = BigInteger
    cache_ok = True

    def process_bind_param(self, value: Decimal | None, dialect: Dialect) -> int | None:
        _ = dialect
        if value is None:
            return None
        return int(quantize_amount(value).scaleb(AMOUNT_SCALE))

    def process_result_value(self, value: int | None, dialect: Dialect) -> Decimal | None:
        _ = dialect
        if value is None:
            return None
        return quantize_amount(Decimal(int(value)).scaleb(-AMOUNT_SCALE))


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

account_table = Table(
    "account",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("name", String, nullable=False),
    Column("total_sales_amount", MoneyType(), nullable=False),
    Column("credit_limit", MoneyType(), nullable=True),
    Column("is_active", Boolean, nullable=False, default=True),
)

sales_order_table = Table(
    "sales_order",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column(
        "account_id",
        UUIDColumnType,
        ForeignKey("account.id", ondelete="SET NULL"),
        nullable=True,
    ),
    Column("sales_amount", MoneyType(), nullable=False),
    Column("description", String, nullable=True),
    Index("ix_sales_order_account_id", "account_id"),
)


@cache
def start_mappers() -> orm.registry:
    """Configure SQLAlchemy mappers for the domain model."""

    log.info("Starting SQLAlchemy mappers")

    mapper_registry.map_imperatively(Account, account_table)
    mapper_registry.map_imperatively(SalesOrder, sales_order_table)

    configure_mappers()
    return mapper_registry
