from __future__ import annotations

from datetime import timedelta

import pytest

from school_ledger.core.enums import AttendanceStatus, Level, Population
from school_ledger.core.exceptions import NotFoundError


def test_snapshot_sums_every_ledger(container, term, add_student, add_teacher, fixed_now):
    ada = add_student("Ada", "JS1 A")
    ben = add_student("Ben", "Basic 1 A")
    teacher = add_teacher("Mrs Ade")

    container.fee_service.add_payment(term, ada.person_id, 30000, now=fixed_now)
    container.fee_service.add_payment(term, ben.person_id, 5000, now=fixed_now)

    inv = container.inventory_service
    item = inv.create_item(name="Tie", stock_by_level={"JuniorBasic": 5}, price_by_level={"JuniorBasic": 700}, now=fixed_now)
    tx = inv.check_out(term, item_id=item, level=Level.JUNIOR_BASIC, quantity=2, student_id=ben.person_id, now=fixed_now)
    inv.mark_paid(tx.transaction_id, now=fixed_now)
    inv.check_out(term, item_id=item, level=Level.JUNIOR_BASIC, quantity=1, student_id=ada.person_id, now=fixed_now)
    second = inv.check_out(term, item_id=item, level=Level.JUNIOR_BASIC, quantity=1, student_id=ada.person_id, now=fixed_now)
    inv.mark_paid(second.transaction_id, now=fixed_now)
    inv.return_item(second.transaction_id, now=fixed_now)

    container.expense_service.add_expense(term, name="Diesel", total=12000, now=fixed_now)

    att = container.attendance_service
    for offset in range(2):
        day = fixed_now.date() - timedelta(days=offset)
        att.mark_status(Population.STUDENTS, ada.person_id, AttendanceStatus.PRESENT, target_date=day, term=term, now=fixed_now)
    att.mark_status(Population.STUDENTS, ben.person_id, AttendanceStatus.ABSENT, target_date=fixed_now.date(), term=term, now=fixed_now)
    att.mark_status(Population.TEACHERS, teacher.person_id, AttendanceStatus.PRESENT, target_date=fixed_now.date(), term=term, now=fixed_now)

    snap = container.term_service.snapshot(term.term_id)

    assert snap.fees_income == 35000
    assert snap.inv_income == 1400 + 700
    assert snap.inv_refunds == 700
    assert snap.total_income == 35000 + 2100 - 700
    assert snap.total_expenses == 12000
    assert snap.net == snap.total_income - 12000
    assert snap.student_present_days == 2
    assert snap.teacher_present_days == 1
    assert snap.students_count == 2


def test_snapshot_of_unknown_term(container):
    with pytest.raises(NotFoundError):
        container.report_service.snapshot(99)


def test_income_is_floored_at_zero(container, repos, term, fixed_now):
    from school_ledger.inventory.model import Refund

    repos.transactions.create_refund(
        term_id=term.term_id,
        transaction_id=None,
        item_id=1,
        item_name="Old",
        level=Level.NURSERY,
        student_id=1,
        student_name="Gone",
        quantity=1,
        item_price=900,
        amount=900,
        refund_date=fixed_now,
        reason="holding_delete",
    )
    assert isinstance(next(iter(repos.transactions.refunds.values())), Refund)

    snap = container.report_service.snapshot(term.term_id)
    assert snap.total_income == 0
    assert snap.net == 0


def test_zero_expense_override_counts_as_zero(container, term, fixed_now):
    container.expense_service.add_expense(term, name="Donated desks", quantity=10, unit_price=5000, total=0, now=fixed_now)
    container.expense_service.add_expense(term, name="Fuel", total=2500, now=fixed_now)

    snap = container.report_service.snapshot(term.term_id)
    assert snap.total_expenses == 2500
    assert snap.net == -2500
