from __future__ import annotations

from datetime import timedelta

import pytest

from school_ledger.core.enums import Level
from school_ledger.core.exceptions import (
    InsufficientStockError,
    NotEmptyError,
    NotFoundError,
    ValidationError,
)

JB = Level.JUNIOR_BASIC


@pytest.fixture
def inventory(container):
    return container.inventory_service


@pytest.fixture
def sweater(inventory, fixed_now):
    return inventory.create_item(
        name="Sweater",
        category="Uniform",
        size="M",
        stock_by_level={"JuniorBasic": 10, "Nursery": 4},
        price_by_level={"JuniorBasic": 500, "Nursery": 400},
        now=fixed_now,
    )


def test_checkout_pay_return_round_trip(inventory, repos, term, add_student, sweater, fixed_now):
    s = add_student("Ada", "Basic 2 A")

    tx = inventory.check_out(term, item_id=sweater, level=JB, quantity=3, student_id=s.person_id, now=fixed_now)
    assert repos.items.get_by_id(sweater).stock_at(JB) == 7
    [holding] = inventory.holdings_for_student(s.person_id)
    assert (holding.quantity, holding.paid) == (3, False)
    assert (tx.item_name, tx.item_price, tx.student_name, tx.class_name) == ("Sweater", 500, "Ada", "Basic 2 A")

    paid_at = fixed_now + timedelta(hours=1)
    paid = inventory.mark_paid(tx.transaction_id, now=paid_at)
    assert paid.paid and paid.payment_date == paid_at
    assert inventory.holdings_for_student(s.person_id)[0].paid

    refund = inventory.return_item(tx.transaction_id, now=fixed_now + timedelta(days=1))
    assert repos.items.get_by_id(sweater).stock_at(JB) == 10
    assert inventory.holdings_for_student(s.person_id)[0].returned
    assert refund.amount == 1500
    assert refund.payment_date == paid_at
    assert refund.reason == "return"
    assert [r.amount for r in inventory.refunds_for_term(term)] == [1500]

    returned = repos.transactions.get_by_id(tx.transaction_id)
    assert returned.returned and returned.refunded and returned.refund_amount == 1500


def test_second_return_is_a_no_op(inventory, repos, term, add_student, sweater, fixed_now):
    s = add_student("Ada")
    tx = inventory.check_out(term, item_id=sweater, level=JB, quantity=2, student_id=s.person_id, now=fixed_now)
    assert inventory.return_item(tx.transaction_id, now=fixed_now) is None
    assert inventory.return_item(tx.transaction_id, now=fixed_now) is None
    assert repos.items.get_by_id(sweater).stock_at(JB) == 10


def test_unpaid_return_logs_no_refund(inventory, term, add_student, sweater, fixed_now):
    s = add_student("Ada")
    tx = inventory.check_out(term, item_id=sweater, level=JB, quantity=1, student_id=s.person_id, now=fixed_now)
    assert inventory.return_item(tx.transaction_id, now=fixed_now) is None
    assert inventory.refunds_for_term(term) == []


def test_checkout_tops_up_open_holding(inventory, repos, term, add_student, sweater, fixed_now):
    s = add_student("Ada")
    first = inventory.check_out(term, item_id=sweater, level=JB, quantity=2, student_id=s.person_id, now=fixed_now)
    inventory.check_out(term, item_id=sweater, level=JB, quantity=3, student_id=s.person_id, now=fixed_now)

    [holding] = inventory.holdings_for_student(s.person_id)
    assert holding.quantity == 5
    assert repos.items.get_by_id(sweater).stock_at(JB) == 5

    inventory.return_item(first.transaction_id, now=fixed_now)
    [holding] = inventory.holdings_for_student(s.person_id)
    assert (holding.quantity, holding.returned) == (3, False)


def test_checkout_more_than_stock(inventory, repos, term, add_student, sweater, fixed_now):
    s = add_student("Ada")
    with pytest.raises(InsufficientStockError) as excinfo:
        inventory.check_out(term, item_id=sweater, level=Level.NURSERY, quantity=5, student_id=s.person_id, now=fixed_now)

    assert excinfo.value.available == 4
    assert repos.transactions.transactions == {}
    assert repos.items.get_by_id(sweater).stock_at(Level.NURSERY) == 4


def test_checkout_rejects_bad_input(inventory, term, add_student, sweater, fixed_now):
    s = add_student("Ada")
    with pytest.raises(ValidationError):
        inventory.check_out(term, item_id=sweater, level=JB, quantity=0, student_id=s.person_id, now=fixed_now)
    with pytest.raises(ValidationError):
        inventory.check_out(term, item_id=sweater, level="Kindergarten", quantity=1, student_id=s.person_id, now=fixed_now)
    with pytest.raises(NotFoundError):
        inventory.check_out(term, item_id=sweater, level=JB, quantity=1, student_id=404, now=fixed_now)


def test_free_item_is_paid_on_checkout(inventory, term, add_student, fixed_now):
    s = add_student("Ada")
    badge = inventory.create_item(name="Badge", stock_by_level={"Nursery": 3}, now=fixed_now)
    tx = inventory.check_out(term, item_id=badge, level=Level.NURSERY, quantity=1, student_id=s.person_id, now=fixed_now)

    assert tx.paid and tx.payment_date == fixed_now
    assert inventory.holdings_for_student(s.person_id)[0].paid


def test_folder_guard(inventory, repos, fixed_now):
    folder = inventory.create_folder("Uniforms", now=fixed_now)
    item = inventory.create_item(name="Tie", parent_id=folder, now=fixed_now)

    with pytest.raises(NotEmptyError):
        inventory.delete_folder(folder)

    inventory.delete_item(item)
    inventory.delete_folder(folder)
    assert repos.items.items == {}


def test_items_only_live_under_folders(inventory, sweater, fixed_now):
    with pytest.raises(NotFoundError):
        inventory.create_item(name="Sock", parent_id=sweater, now=fixed_now)
    with pytest.raises(NotFoundError):
        inventory.delete_folder(sweater)


def test_negative_stock_is_rejected(inventory, fixed_now):
    with pytest.raises(ValidationError):
        inventory.create_item(name="Cap", stock_by_level={"Nursery": -1}, now=fixed_now)


def test_update_item_replaces_levels(inventory, sweater):
    updated = inventory.update_item(
        sweater,
        name="Sweater (new)",
        size="L",
        stock_by_level={"SeniorSecondary": 2},
        price_by_level={"SeniorSecondary": 900},
    )
    assert updated.name == "Sweater (new)"
    assert updated.stock_at(JB) == 0
    assert updated.stock_value() == 1800


def test_delete_open_paid_holding_restores_and_refunds(inventory, repos, term, add_student, sweater, fixed_now):
    s = add_student("Ada")
    tx = inventory.check_out(term, item_id=sweater, level=JB, quantity=2, student_id=s.person_id, now=fixed_now)
    inventory.mark_paid(tx.transaction_id, now=fixed_now)
    [holding] = inventory.holdings_for_student(s.person_id)

    refund = inventory.delete_holding(holding.holding_id, term, now=fixed_now + timedelta(days=2))

    assert refund.amount == 1000
    assert refund.reason == "holding_delete"
    assert refund.payment_date == fixed_now
    assert repos.items.get_by_id(sweater).stock_at(JB) == 10
    assert repos.transactions.get_by_id(tx.transaction_id) is None
    assert inventory.holdings_for_student(s.person_id) == []


def test_delete_returned_unpaid_holding_changes_no_stock(inventory, repos, term, add_student, sweater, fixed_now):
    s = add_student("Ada")
    tx = inventory.check_out(term, item_id=sweater, level=JB, quantity=2, student_id=s.person_id, now=fixed_now)
    inventory.return_item(tx.transaction_id, now=fixed_now)
    [holding] = inventory.holdings_for_student(s.person_id)

    assert inventory.delete_holding(holding.holding_id, term, now=fixed_now) is None
    assert repos.items.get_by_id(sweater).stock_at(JB) == 10
    assert repos.transactions.refunds == {}


def test_delete_holding_for_removed_item(inventory, repos, term, add_student, sweater, fixed_now):
    s = add_student("Ada")
    inventory.check_out(term, item_id=sweater, level=JB, quantity=1, student_id=s.person_id, now=fixed_now)
    inventory.delete_item(sweater)
    [holding] = inventory.holdings_for_student(s.person_id)

    inventory.delete_holding(holding.holding_id, term, now=fixed_now)
    assert repos.holdings.holdings == {}

    with pytest.raises(NotFoundError):
        inventory.delete_holding(holding.holding_id, term, now=fixed_now)


def test_inventory_stats(inventory, term, add_student, sweater, fixed_now):
    inventory.create_folder("Books", now=fixed_now)
    s = add_student("Ada")
    inventory.check_out(term, item_id=sweater, level=JB, quantity=1, student_id=s.person_id, now=fixed_now)

    stats = inventory.inventory_stats()
    assert stats.total_items == 1
    assert stats.total_stock == 13
    assert stats.checked_out == 1
    assert stats.total_value == 9 * 500 + 4 * 400


def test_delete_topped_up_holding_retracts_every_open_checkout(inventory, repos, term, add_student, sweater, fixed_now):
    s = add_student("Ada")
    inventory.check_out(term, item_id=sweater, level=JB, quantity=3, student_id=s.person_id, now=fixed_now)
    top_up = inventory.check_out(term, item_id=sweater, level=JB, quantity=2, student_id=s.person_id, now=fixed_now)
    [holding] = inventory.holdings_for_student(s.person_id)

    inventory.delete_holding(holding.holding_id, term, now=fixed_now)

    assert repos.items.get_by_id(sweater).stock_at(JB) == 10
    assert repos.transactions.transactions == {}
    with pytest.raises(NotFoundError):
        inventory.return_item(top_up.transaction_id, now=fixed_now)
    assert repos.items.get_by_id(sweater).stock_at(JB) == 10


def test_delete_holding_keeps_returned_history(inventory, repos, term, add_student, sweater, fixed_now):
    s = add_student("Ada")
    first = inventory.check_out(term, item_id=sweater, level=JB, quantity=1, student_id=s.person_id, now=fixed_now)
    inventory.return_item(first.transaction_id, now=fixed_now)
    second = inventory.check_out(term, item_id=sweater, level=JB, quantity=2, student_id=s.person_id, now=fixed_now)
    open_holding = [h for h in inventory.holdings_for_student(s.person_id) if not h.returned][0]

    inventory.delete_holding(open_holding.holding_id, term, now=fixed_now)

    assert repos.transactions.get_by_id(first.transaction_id).returned
    assert repos.transactions.get_by_id(second.transaction_id) is None
    assert repos.items.get_by_id(sweater).stock_at(JB) == 10
