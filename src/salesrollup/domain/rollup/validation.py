"""Constraints an account must satisfy before a new total is accepted."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from decimal import Decimal
from typing import Final

from salesrollup.domain.model import AMOUNT_PRECISION, Account, fits_precision

type AccountRule = Callable[[Account, Decimal], str | None]


def account_must_be_active(account: Account, total: Decimal) -> str | None:
    _ = total
    if account.is_active:
        return None
    return f"Cannot update sales totals on inactive account '{account.name}'."


def total_within_precision(account: Account, total: Decimal) -> str | None:
    _ = account
    if fits_precision(total):
        return None
    return f"Total sales amount {total} exceeds {AMOUNT_PRECISION} digits of precision."


def total_within_credit_limit(account: Account, total: Decimal) -> str | None:
    if account.credit_limit is None or total <= account.credit_limit:
        return None
    return (
        f"Total sales amount {total} exceeds the credit limit of "
        f"{account.credit_limit} for account '{account.name}'."
    )


DEFAULT_ACCOUNT_RULES: Final[tuple[AccountRule, ...]] = (
    account_must_be_active,
    total_within_precision,
    total_within_credit_limit,
)


def validate_total(
    account: Account,
    total: Decimal,
    rules: Sequence[AccountRule] = DEFAULT_ACCOUNT_RULES,
) -> list[str]:
    """Return every violated rule's message, in rule order."""

    messages: list[str] = []
    for rule in rules:
        message = rule(account, total)
        if message is not None:
            messages.append(message)
    return messages
