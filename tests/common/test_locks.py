from __future__ import annotations

from school_ledger.attendance.service import AttendanceService
from school_ledger.common.locks import PersonLocks
from school_ledger.core.enums import AttendanceStatus, Population
from school_ledger.directory.service import DirectoryService


def test_hold_many_takes_locks_in_id_order(monkeypatch):
    locks = PersonLocks()
    taken = []
    real_lock_for = locks._lock_for

    def recording_lock_for(population, person_id):
        taken.append(person_id)
        return real_lock_for(population, person_id)

    monkeypatch.setattr(locks, "_lock_for", recording_lock_for)

    with locks.hold_many(Population.STUDENTS, [7, 3, 7, 5]):
        pass

    assert taken == [3, 5, 7]


def test_population_enum_and_value_share_a_lock():
    locks = PersonLocks()
    with locks.hold(Population.STUDENTS, 1):
        pass
    with locks.hold("students", "1"):
        pass

    assert len(locks) == 1


def test_removed_person_lock_is_dropped(repos, term, add_student, fixed_now):
    locks = PersonLocks()
    directory = DirectoryService(repos.people, repos.attendance, repos.payments, locks=locks)
    attendance = AttendanceService(repos.attendance, repos.people, locks=locks)
    kept = add_student("Kept")
    gone = add_student("Gone")

    for s in (kept, gone):
        attendance.mark_status(
            Population.STUDENTS, s.person_id, AttendanceStatus.PRESENT, target_date=fixed_now.date(), term=term, now=fixed_now
        )
    assert len(locks) == 2

    directory.remove_person(Population.STUDENTS, gone.person_id)

    assert len(locks) == 1
