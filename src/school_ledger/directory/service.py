from __future__ import annotations

import logging
import math
from typing import Optional, Sequence

from ..attendance.repository import AttendanceRepository
from ..common.live import notify_changed
from ..common.locks import PersonLocks
from ..common.validators import require_non_empty, strip_or_empty
from ..core.constants import STUDENT_NUMBER_DIGITS, STUDENT_NUMBER_PREFIX
from ..core.enums import Population
from ..core.exceptions import NotFoundError
from ..fees.repository import PaymentRepository
from ..terms.model import TermContext
from .model import AttendanceStats, Person
from .repository import PersonRepository

logger = logging.getLogger(__name__)


def roster_collection(kind: Population) -> str:
    return f"people:{Population(kind).value}"


def next_student_number(taken: Sequence[str]) -> str:
    """Lowest free ``CGA``-prefixed number, zero padded."""
    used: set[int] = set()
    for value in taken:
        if not value or not value.startswith(STUDENT_NUMBER_PREFIX):
            continue
        digits = value[len(STUDENT_NUMBER_PREFIX):]
        if digits.isdigit():
            used.add(int(digits))

    n = 1
    while n in used:
        n += 1
    return f"{STUDENT_NUMBER_PREFIX}{n:0{STUDENT_NUMBER_DIGITS}d}"


class DirectoryService:
    def __init__(
        self,
        people: PersonRepository,
        attendance: AttendanceRepository,
        payments: PaymentRepository,
        *,
        locks: PersonLocks | None = None,
    ):
        self._people = people
        self._attendance = attendance
        self._payments = payments
        self._locks = locks or PersonLocks()

    def get(self, person_id: int) -> Person:
        person = self._people.get_by_id(person_id)
        if not person:
            raise NotFoundError(f"No person with id {person_id}")
        return person

    def list_by_class(self, kind: Population) -> dict[str, list[Person]]:
        grouped: dict[str, list[Person]] = {}
        for p in self._people.list_by_kind(kind):
            grouped.setdefault(p.class_name, []).append(p)
        return grouped

    def add_person(
        self,
        kind: Population,
        *,
        name: str,
        class_name: str,
        parent_phone: Optional[str] = None,
    ) -> Person:
        kind = Population(kind)
        name = require_non_empty(name, "Name")
        class_name = require_non_empty(class_name, "Class")

        student_number = None
        if kind == Population.STUDENTS:
            student_number = next_student_number(self._people.list_student_numbers())

        person_id = self._people.create(
            kind=kind,
            name=name,
            class_name=class_name,
            student_number=student_number,
            parent_phone=strip_or_empty(parent_phone) or None,
        )
        notify_changed(roster_collection(kind), person_id=person_id)
        return self.get(person_id)

    def update_person(
        self,
        person_id: int,
        *,
        name: str,
        class_name: str,
        parent_phone: Optional[str] = None,
    ) -> Person:
        person = self.get(person_id)
        self._people.update_identity(
            person_id=person.person_id,
            name=require_non_empty(name, "Name"),
            class_name=require_non_empty(class_name, "Class"),
            parent_phone=strip_or_empty(parent_phone) or None,
        )
        notify_changed(roster_collection(person.kind), person_id=person.person_id)
        return self.get(person_id)

    def remove_person(self, kind: Population, person_id: int) -> None:
        """Delete a person and every trace of them in day records and fee payments.

        Runs under the person's lock so a concurrent mark cannot re-add an entry
        mid-scan. Steps are not transactional; a failure is logged with what
        was already done and re-raised.
        """
        kind = Population(kind)
        with self._locks.hold(kind, person_id):
            person = self._people.get_by_id(person_id)
            if not person or person.kind != kind:
                raise NotFoundError(f"No {kind.value[:-1]} with id {person_id}")

            stripped: list[str] = []
            try:
                self._people.delete_by_id(person.person_id)
                logger.info("removed %s %s (%s)", kind.value, person.person_id, person.name)

                if kind == Population.STUDENTS:
                    removed = self._payments.delete_for_student(person.person_id)
                    logger.info("removed %d payments of student %s", removed, person.person_id)

                for day in self._attendance.list_days_with_person(kind, person.person_id):
                    remaining = day.without(person.person_id)
                    if remaining.records:
                        self._attendance.save_records(
                            kind,
                            day_key=day.day_key,
                            records=remaining.records,
                            present_count=remaining.present_count,
                        )
                    else:
                        self._attendance.delete_day(kind, day.day_key)
                    stripped.append(day.day_key)
            except Exception:
                logger.exception(
                    "removing %s %s failed after stripping days %s",
                    kind.value,
                    person.person_id,
                    stripped,
                )
                raise

        self._locks.discard(kind, person.person_id)
        logger.info("stripped %s %s from %d day records", kind.value, person.person_id, len(stripped))
        notify_changed(roster_collection(kind), person_id=person.person_id)

    def term_stats(self, person_id: int, term: TermContext) -> AttendanceStats:
        person = self.get(person_id)
        present, absent = person.effective_term_counters(term.term_id)
        marks = present + absent
        return AttendanceStats(
            person_id=person.person_id,
            times_present=present,
            times_absent=absent,
            attendance_percentage=math.floor(100 * present / marks + 0.5) if marks else 0,
        )
