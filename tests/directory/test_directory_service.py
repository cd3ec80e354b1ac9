from __future__ import annotations

from dataclasses import replace

import pytest

from school_ledger.core.enums import AttendanceStatus, Population
from school_ledger.core.exceptions import NotFoundError, ValidationError
from school_ledger.directory.service import next_student_number


def test_next_student_number_fills_gaps():
    assert next_student_number([]) == "CGA000001"
    assert next_student_number(["CGA000001", "CGA000003", "X12", ""]) == "CGA000002"
    assert next_student_number(["CGA000001", "CGA000002"]) == "CGA000003"


def test_students_get_numbers_teachers_do_not(add_student, add_teacher):
    a = add_student("Ada")
    b = add_student("Ben", parent_phone=" 0803 ")
    t = add_teacher("Mrs Ade")

    assert (a.student_number, b.student_number) == ("CGA000001", "CGA000002")
    assert b.parent_phone == "0803"
    assert t.student_number is None
    assert t.kind == Population.TEACHERS


def test_add_person_requires_name_and_class(container):
    with pytest.raises(ValidationError):
        container.directory_service.add_person(Population.STUDENTS, name=" ", class_name="JS1 A")
    with pytest.raises(ValidationError):
        container.directory_service.add_person(Population.STUDENTS, name="Ada", class_name="")


def test_update_keeps_counters(container, repos, term, add_student, fixed_now):
    s = add_student("Ada", "JS1 A")
    container.attendance_service.mark_status(
        Population.STUDENTS, s.person_id, AttendanceStatus.PRESENT, target_date=fixed_now.date(), term=term, now=fixed_now
    )

    updated = container.directory_service.update_person(s.person_id, name="Ada Obi", class_name="JS2 A")
    assert (updated.name, updated.class_name, updated.times_present) == ("Ada Obi", "JS2 A", 1)
    assert updated.student_number == s.student_number


def test_list_by_class_groups(container, add_student):
    add_student("A", "JS1 A")
    add_student("B", "JS1 A")
    add_student("C", "SS1 B")

    grouped = container.directory_service.list_by_class(Population.STUDENTS)
    assert {k: len(v) for k, v in grouped.items()} == {"JS1 A": 2, "SS1 B": 1}


def test_remove_student_cascades(container, repos, term, add_student, fixed_now):
    from datetime import timedelta

    gone = add_student("Gone", "JS1 A")
    stays = add_student("Stays", "JS1 A")
    svc = container.attendance_service
    today = fixed_now.date()
    yesterday = today - timedelta(days=1)
    svc.mark_status(Population.STUDENTS, gone.person_id, AttendanceStatus.PRESENT, target_date=today, term=term, now=fixed_now)
    svc.mark_status(Population.STUDENTS, stays.person_id, AttendanceStatus.PRESENT, target_date=today, term=term, now=fixed_now)
    svc.mark_status(Population.STUDENTS, gone.person_id, AttendanceStatus.PRESENT, target_date=yesterday, term=term, now=fixed_now)
    container.fee_service.add_payment(term, gone.person_id, 1000, now=fixed_now)
    container.fee_service.add_payment(term, stays.person_id, 1000, now=fixed_now)

    container.directory_service.remove_person(Population.STUDENTS, gone.person_id)

    assert repos.people.get_by_id(gone.person_id) is None
    today_record = repos.attendance.get_day(Population.STUDENTS, "2026-2-10")
    assert set(today_record.records) == {stays.person_id}
    assert today_record.present_count == 1
    assert repos.attendance.get_day(Population.STUDENTS, "2026-2-9") is None
    assert [p.student_id for p in repos.payments.payments.values()] == [stays.person_id]


def test_remove_checks_population(container, add_teacher):
    t = add_teacher("Mr Obi")
    with pytest.raises(NotFoundError):
        container.directory_service.remove_person(Population.STUDENTS, t.person_id)
    container.directory_service.remove_person(Population.TEACHERS, t.person_id)


def test_term_stats_percentage(container, repos, term, add_student):
    s = add_student("Ada")
    repos.people.people[s.person_id] = replace(
        repos.people.get_by_id(s.person_id),
        term_times_present=2,
        term_times_absent=1,
        last_attendance_term_id=term.term_id,
    )
    stats = container.directory_service.term_stats(s.person_id, term)
    assert (stats.times_present, stats.times_absent, stats.attendance_percentage) == (2, 1, 67)

    fresh = add_student("Ben")
    assert container.directory_service.term_stats(fresh.person_id, term).attendance_percentage == 0


def test_percentage_rounds_half_up(container, repos, term, add_student):
    s = add_student("Ada")
    repos.people.people[s.person_id] = replace(
        repos.people.get_by_id(s.person_id),
        term_times_present=1,
        term_times_absent=7,
        last_attendance_term_id=term.term_id,
    )
    # 12.5% rounds to 13
    assert container.directory_service.term_stats(s.person_id, term).attendance_percentage == 13
