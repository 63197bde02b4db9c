from __future__ import annotations

import argparse
import logging
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING
from uuid import UUID

from dotenv import load_dotenv

from salesrollup.app import (
    add_sales_orders,
    change_sales_orders,
    create_account,
    recalculate_totals,
    remove_sales_orders,
)
from salesrollup.config import configure_logging
from salesrollup.domain.model import checked_amount
from salesrollup.domain.order_management import NewSalesOrder, SalesOrderChange

if TYPE_CHECKING:
    from collections.abc import Sequence
    from decimal import Decimal
    from types import FrameType

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Maintain account sales totals")
    subparsers = parser.add_subparsers(dest="command", required=True)

    account = subparsers.add_parser("account", help="Account management commands")
    account_sub = account.add_subparsers(dest="account_command", required=True)
    account_create = account_sub.add_parser("create", help="Create an account")
    account_create.add_argument("--name", type=str, required=True, help="Account name")
    account_create.add_argument(
        "--credit-limit",
        type=str,
        help="Optional upper bound for the account's total sales amount",
    )
    account_create.add_argument(
        "--inactive",
        action="store_true",
        help="Create the account as inactive (its total can no longer change)",
    )

    order = subparsers.add_parser("order", help="Sales order commands")
    order_sub = order.add_subparsers(dest="order_command", required=True)

    order_add = order_sub.add_parser("add", help="Insert sales orders for one account")
    order_add.add_argument("--account-id", type=str, help="Account the orders belong to")
    order_add.add_argument(
        "--amount",
        type=str,
        action="append",
        required=True,
        help="Sales amount; repeat to insert several orders in one batch",
    )
    order_add.add_argument("--description", type=str, help="Optional order description")

    order_update = order_sub.add_parser("update", help="Change one sales order")
    order_update.add_argument("--order-id", type=str, required=True, help="Order to change")
    target = order_update.add_mutually_exclusive_group()
    target.add_argument("--account-id", type=str, help="Move the order to this account")
    target.add_argument(
        "--clear-account",
        action="store_true",
        help="Detach the order from its account",
    )
    order_update.add_argument("--amount", type=str, help="New sales amount")
    order_update.add_argument("--description", type=str, help="New description")

    order_delete = order_sub.add_parser("delete", help="Delete sales orders")
    order_delete.add_argument(
        "--order-id",
        type=str,
        action="append",
        required=True,
        help="Order to delete; repeat to delete several in one batch",
    )

    for command in (order_add, order_update, order_delete):
        command.add_argument(
            "--partial",
            action="store_true",
            help="Keep the orders that succeed instead of rejecting the whole batch",
        )

    recalculate = subparsers.add_parser("recalculate", help="Recompute account totals")
    recalculate.add_argument(
        "--account-id",
        type=str,
        action="append",
        help="Account to recompute; repeat for several (default: all accounts)",
    )

    return parser.parse_args(list(argv))


def _parse_uuid(value: str) -> UUID:
    try:
        return UUID(value)
    except ValueError as exc:
        raise ValueError(f"Invalid UUID: {value}") from exc


def _parse_amount(value: str) -> Decimal:
    return checked_amount(value.strip())


def _run(args: argparse.Namespace) -> None:
    if args.command == "account" and args.account_command == "create":
        credit_limit = _parse_amount(args.credit_limit) if args.credit_limit else None
        create_account(name=args.name, credit_limit=credit_limit, is_active=not args.inactive)
    elif args.command == "order" and args.order_command == "add":
        account_id = _parse_uuid(args.account_id) if args.account_id else None
        orders = [
            NewSalesOrder(
                account_id=account_id,
                sales_amount=_parse_amount(amount),
                description=args.description,
            )
            for amount in args.amount
        ]
        result = add_sales_orders(orders, all_or_none=not args.partial)
        for order_id in result.succeeded:
            log.info("Inserted sales order %s", order_id)
    elif args.command == "order" and args.order_command == "update":
        change = SalesOrderChange(
            order_id=_parse_uuid(args.order_id),
            account_id=_parse_uuid(args.account_id) if args.account_id else None,
            sales_amount=_parse_amount(args.amount) if args.amount else None,
            description=args.description,
            clear_account=args.clear_account,
        )
        change_sales_orders([change], all_or_none=not args.partial)
    elif args.command == "order" and args.order_command == "delete":
        order_ids = [_parse_uuid(value) for value in args.order_id]
        remove_sales_orders(order_ids, all_or_none=not args.partial)
    elif args.command == "recalculate":
        account_ids = (
            [_parse_uuid(value) for value in args.account_id] if args.account_id else None
        )
        recalculate_totals(account_ids=account_ids)
    else:
        raise ValueError(f"Unsupported command: {args.command}")


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    configure_logging()
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)

    try:
        _run(parsed_args)
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)
    except Exception:
        log.exception("Fatal error while updating sales totals")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    """Console script entry point."""
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
