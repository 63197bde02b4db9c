from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

import pytest

from salesrollup.domain.model import Account
from salesrollup.domain.ports.persistence import SaveResult
from salesrollup.domain.rollup import BulkWriteContractError, reconcile
from salesrollup.domain.rollup.reconcile import attach_child_errors, join_errors
from tests.helpers.sales_orders import FakeAccountTotalsWriter, make_order

if TYPE_CHECKING:
    from collections.abc import Sequence

    from salesrollup.domain.ports.persistence import TotalUpdate


def _reject(message: str, *, account: Account):
    def rule(candidate: Account, total: Decimal) -> str | None:
        _ = total
        return message if candidate is account else None

    return rule


def test_successful_write_attaches_no_errors() -> None:
    acme = Account(name="Acme")
    writer = FakeAccountTotalsWriter([acme])
    batch = [make_order(acme, "100.00"), make_order(acme, "50.50")]

    report = reconcile({acme.id: Decimal("150.50")}, batch, accounts=writer)

    assert report.child_errors == {}
    assert report.failed_account_ids == frozenset()
    assert acme.total_sales_amount == Decimal("150.50")
    assert len(writer.calls) == 1
    assert writer.calls[0][1] is False


def test_rejected_account_only_flags_its_own_orders() -> None:
    acme = Account(name="Acme")
    globex = Account(name="Globex")
    writer = FakeAccountTotalsWriter(
        [acme, globex],
        rules=[_reject("Acme is on hold", account=acme)],
    )
    acme_order = make_order(acme, "10.00")
    globex_order = make_order(globex, "20.00")
    orphan = make_order(None, "5.00")

    report = reconcile(
        {acme.id: Decimal("10.00"), globex.id: Decimal("20.00")},
        [acme_order, globex_order, orphan],
        accounts=writer,
    )

    assert report.child_errors == {acme_order.id: "Acme is on hold"}
    assert report.failed_account_ids == frozenset({acme.id})
    assert globex.total_sales_amount == Decimal("20.00")
    assert acme.total_sales_amount == Decimal("0.00")


def test_every_constraint_message_lands_on_its_own_line_in_order() -> None:
    acme = Account(name="Acme")
    writer = FakeAccountTotalsWriter(
        [acme],
        rules=[
            _reject("First violation", account=acme),
            _reject("Second violation", account=acme),
        ],
    )
    first, second = make_order(acme, "1.00"), make_order(acme, "2.00")

    report = reconcile({acme.id: Decimal("3.00")}, [first, second], accounts=writer)

    assert report.child_errors == {
        first.id: "First violation\nSecond violation",
        second.id: "First violation\nSecond violation",
    }


def test_one_write_request_per_total_including_zero() -> None:
    acme = Account(name="Acme")
    emptied = Account(name="Emptied", total_sales_amount=Decimal("40.00"))
    writer = FakeAccountTotalsWriter([acme, emptied])

    reconcile(
        {acme.id: Decimal("5.00"), emptied.id: Decimal("0.00")},
        [],
        accounts=writer,
    )

    assert sorted((update.account_id, update.total) for update in writer.requests) == sorted(
        [(acme.id, Decimal("5.00")), (emptied.id, Decimal("0.00"))]
    )
    assert emptied.total_sales_amount == Decimal("0.00")


def test_no_totals_means_no_write() -> None:
    writer = FakeAccountTotalsWriter()

    report = reconcile({}, [make_order(None, "1.00")], accounts=writer)

    assert writer.calls == []
    assert report.outcomes == ()


def test_mismatched_outcomes_are_a_contract_violation() -> None:
    acme = Account(name="Acme")

    class _ShortWriter:
        def save_totals(
            self, updates: Sequence[TotalUpdate], *, all_or_none: bool = False
        ) -> list[SaveResult]:
            _ = updates, all_or_none
            return []

    with pytest.raises(BulkWriteContractError):
        reconcile({acme.id: Decimal("1.00")}, [], accounts=_ShortWriter())


def test_attach_child_errors_skips_orders_without_account() -> None:
    acme = Account(name="Acme")
    orphan = make_order(None, "1.00")
    acme_order = make_order(acme, "1.00")

    errors = attach_child_errors({acme.id: "nope"}, [orphan, acme_order])

    assert errors == {acme_order.id: "nope"}


def test_join_errors_uses_newlines() -> None:
    assert join_errors(["a", "b", "c"]) == "a\nb\nc"
    assert join_errors(["only"]) == "only"
