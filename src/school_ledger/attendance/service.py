from __future__ import annotations

import logging
from collections import Counter
from datetime import date, datetime
from typing import Optional, Sequence

from ..common.datetime_utils import day_bounds, day_key, normalized_day, now_local
from ..common.live import notify_changed
from ..common.locks import PersonLocks
from ..core.enums import AttendanceStatus, Population
from ..core.exceptions import NotFoundError, ValidationError
from ..directory.class_structure import CLASS_STRUCTURE, find_section
from ..directory.model import Person
from ..directory.repository import PersonRepository
from ..terms.model import TermContext
from .factory import TransitionStrategyFactory
from .model import (
    AttendanceEntry,
    BulkMarkResult,
    ClassSummary,
    DayRecord,
    MarkResult,
    RangeReport,
    RangeRow,
    SectionSummary,
)
from .repository import AttendanceRepository
from .strategies.base import CounterSnapshot

logger = logging.getLogger(__name__)


def day_collection(population: Population) -> str:
    return f"attendance:{Population(population).value}"


class AttendanceService:
    def __init__(
        self,
        attendance: AttendanceRepository,
        people: PersonRepository,
        *,
        locks: PersonLocks | None = None,
        strategy_factory: TransitionStrategyFactory | None = None,
    ):
        self._attendance = attendance
        self._people = people
        self._locks = locks or PersonLocks()
        self._factory = strategy_factory or TransitionStrategyFactory()

    # --- day records ---

    def open_day(self, population: Population, target_date: date, term: TermContext) -> DayRecord:
        """Return the day record, creating an empty one tagged with ``term`` if absent."""
        key = day_key(target_date)
        existing = self._attendance.get_day(population, key)
        if existing:
            return existing
        return self._attendance.create_day_if_absent(
            population,
            day_key=key,
            day_date=normalized_day(target_date),
            term_id=term.term_id,
        )

    def get_day(self, population: Population, target_date: date) -> Optional[DayRecord]:
        return self._attendance.get_day(population, day_key(target_date))

    # --- marking ---

    def mark_status(
        self,
        population: Population,
        person_id: int,
        status: AttendanceStatus,
        *,
        target_date: date,
        term: TermContext,
        class_name: str | None = None,
        now: datetime | None = None,
    ) -> MarkResult:
        now = now or now_local()
        status = AttendanceStatus(status)
        self._reject_future(target_date, now)

        with self._locks.hold(population, person_id):
            person = self._get_member(population, person_id)
            day = self.open_day(population, target_date, term)
            previous = day.status_of(person.person_id)

            entry = AttendanceEntry(
                status=status,
                timestamp=now,
                class_name=class_name or person.class_name,
                person_name=person.name,
            )
            updated = day.with_entries({person.person_id: entry})
            self._attendance.save_records(
                population,
                day_key=updated.day_key,
                records=updated.records,
                present_count=updated.present_count,
            )
            self._apply_transition(person, previous=previous, status=status, term=term)

        notify_changed(day_collection(population), day_key=updated.day_key, person_id=person.person_id)
        return MarkResult(
            day_key=updated.day_key,
            previous=previous,
            status=status,
            present_count=updated.present_count,
        )

    def mark_all_in_population(
        self,
        population: Population,
        status: AttendanceStatus,
        *,
        target_date: date,
        term: TermContext,
        section: str | None = None,
        now: datetime | None = None,
    ) -> BulkMarkResult:
        """Mark everyone in ``section`` (or the whole population) with one day write.

        People already at ``status`` are skipped, so repeating the call changes
        nothing. Counter updates run per person after the day write; if one
        fails, the day map and the counters already applied stay as they are.
        The locks of everyone on the roster are held for the whole call; anyone
        deleted before the locks were taken is left out.
        """
        now = now or now_local()
        status = AttendanceStatus(status)
        self._reject_future(target_date, now)

        candidates = [p.person_id for p in self._roster(population, section)]
        with self._locks.hold_many(population, candidates):
            return self._mark_all_locked(
                population,
                status,
                candidates,
                target_date=target_date,
                term=term,
                section=section,
                now=now,
            )

    def _mark_all_locked(
        self,
        population: Population,
        status: AttendanceStatus,
        candidates: Sequence[int],
        *,
        target_date: date,
        term: TermContext,
        section: str | None,
        now: datetime,
    ) -> BulkMarkResult:
        current = {p.person_id: p for p in self._roster(population, section)}
        roster = [current[pid] for pid in candidates if pid in current]
        day = self.open_day(population, target_date, term)

        to_change: list[tuple[Person, Optional[AttendanceStatus]]] = []
        entries: dict[int, AttendanceEntry] = {}
        for person in roster:
            previous = day.status_of(person.person_id)
            if previous == status:
                continue
            to_change.append((person, previous))
            entries[person.person_id] = AttendanceEntry(
                status=status,
                timestamp=now,
                class_name=person.class_name,
                person_name=person.name,
            )

        if not to_change:
            return BulkMarkResult(
                day_key=day.day_key,
                changed=(),
                skipped=len(roster),
                present_count=day.present_count,
            )

        updated = day.with_entries(entries)
        self._attendance.save_records(
            population,
            day_key=updated.day_key,
            records=updated.records,
            present_count=updated.present_count,
        )
        logger.info(
            "bulk mark %s %s on %s: day written with %d changes",
            population.value,
            status.value,
            updated.day_key,
            len(to_change),
        )

        done: list[int] = []
        try:
            for person, previous in to_change:
                self._apply_transition(person, previous=previous, status=status, term=term)
                done.append(person.person_id)
        except Exception:
            pending = [p.person_id for p, _ in to_change if p.person_id not in done]
            logger.exception(
                "bulk mark %s on %s stopped: counters applied for %s, pending %s",
                population.value,
                updated.day_key,
                done,
                pending,
            )
            raise
        finally:
            notify_changed(day_collection(population), day_key=updated.day_key)

        return BulkMarkResult(
            day_key=updated.day_key,
            changed=tuple(done),
            skipped=len(roster) - len(to_change),
            present_count=updated.present_count,
        )

    # --- queries ---

    def query_present_days(
        self,
        population: Population,
        person_id: int,
        *,
        start: date | None = None,
        end: date | None = None,
    ) -> int:
        """Count present days from the raw day records, never from counters."""
        start_at, end_at = self._window(start, end)
        return sum(
            1
            for day in self._attendance.list_days(population, start=start_at, end=end_at)
            if day.status_of(person_id) == AttendanceStatus.PRESENT
        )

    def range_report(
        self,
        population: Population,
        start: date,
        end: date | None = None,
        *,
        holidays: int = 0,
    ) -> RangeReport:
        end = end or start
        if end < start:
            raise ValidationError("End date cannot be before start date")

        start_at, end_at = day_bounds(start, end)
        days = self._attendance.list_days(population, start=start_at, end=end_at)
        days_with_records = sum(1 for d in days if d.records)
        holidays = max(int(holidays or 0), 0)

        presents: Counter[int] = Counter()
        for day in days:
            for pid, entry in day.records.items():
                if entry.status == AttendanceStatus.PRESENT:
                    presents[pid] += 1

        rows = [
            RangeRow(
                person_id=p.person_id,
                name=p.name,
                class_name=p.class_name,
                student_number=p.student_number or "",
                present=presents.get(p.person_id, 0),
            )
            for p in self._people.list_by_kind(population)
        ]
        rows.sort(key=lambda r: (r.class_name, r.name))

        return RangeReport(
            start=start,
            end=end,
            days_with_records=days_with_records,
            holidays=holidays,
            total_school_days=max(days_with_records - holidays, 0),
            rows=tuple(rows),
        )

    def class_summary(self, population: Population, target_date: date, class_name: str) -> ClassSummary:
        day = self.get_day(population, target_date)
        members = [p for p in self._people.list_by_kind(population) if p.class_name == class_name]
        return self._summarize(class_name, members, day)

    def section_summary(self, population: Population, target_date: date) -> Sequence[SectionSummary]:
        day = self.get_day(population, target_date)
        by_class: dict[str, list[Person]] = {}
        for p in self._people.list_by_kind(population):
            by_class.setdefault(p.class_name, []).append(p)

        out: list[SectionSummary] = []
        for section in CLASS_STRUCTURE:
            classes = tuple(self._summarize(c, by_class.get(c, []), day) for c in section.classes)
            out.append(
                SectionSummary(
                    section=section.section,
                    total=sum(c.total for c in classes),
                    present=sum(c.present for c in classes),
                    absent=sum(c.absent for c in classes),
                    classes=classes,
                )
            )
        return out

    # --- helpers ---

    def _apply_transition(
        self,
        person: Person,
        *,
        previous: Optional[AttendanceStatus],
        status: AttendanceStatus,
        term: TermContext,
    ) -> None:
        term_present, term_absent = person.effective_term_counters(term.term_id)
        if not person.counted_in(term.term_id):
            self._people.reset_term_counters(person_id=person.person_id, term_id=term.term_id)

        strategy = self._factory.for_transition(previous=previous, status=status)
        delta = strategy.delta(
            status=status,
            current=CounterSnapshot(
                times_present=person.times_present,
                times_absent=person.times_absent,
                term_times_present=term_present,
                term_times_absent=term_absent,
            ),
        )
        self._people.apply_counter_delta(person_id=person.person_id, delta=delta)

    def _get_member(self, population: Population, person_id: int) -> Person:
        person = self._people.get_by_id(person_id)
        if not person or person.kind != population:
            raise NotFoundError(f"No {population.value[:-1]} with id {person_id}")
        return person

    def _roster(self, population: Population, section: str | None) -> list[Person]:
        people = list(self._people.list_by_kind(population))
        if section is None:
            return people
        sec = find_section(section)
        if not sec:
            raise ValidationError(f"Unknown section: {section}")
        return [p for p in people if p.class_name in sec.classes]

    @staticmethod
    def _reject_future(target_date: date, now: datetime) -> None:
        if target_date > now.date():
            raise ValidationError("Cannot mark attendance for a future date")

    @staticmethod
    def _window(start: date | None, end: date | None) -> tuple[datetime | None, datetime | None]:
        if start is None and end is None:
            return None, None
        start_at, end_at = day_bounds(start or date.min, end or date.max)
        return (start_at if start else None), (end_at if end else None)

    @staticmethod
    def _summarize(class_name: str, members: Sequence[Person], day: Optional[DayRecord]) -> ClassSummary:
        present = absent = 0
        if day:
            for p in members:
                s = day.status_of(p.person_id)
                if s == AttendanceStatus.PRESENT:
                    present += 1
                elif s == AttendanceStatus.ABSENT:
                    absent += 1
        return ClassSummary(class_name=class_name, total=len(members), present=present, absent=absent)
