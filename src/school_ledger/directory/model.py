from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import Population


@dataclass(frozen=True)
class CounterDelta:
    """Increments applied to a person's four attendance counters."""

    times_present: int = 0
    times_absent: int = 0
    term_times_present: int = 0
    term_times_absent: int = 0

    def is_empty(self) -> bool:
        return not (self.times_present or self.times_absent or self.term_times_present or self.term_times_absent)


@dataclass(frozen=True)
class Person:
    """Domain entity: a student or teacher on the roster.

    Counter fields are written by the attendance ledger only.
    """

    person_id: int
    kind: Population
    name: str
    class_name: str
    student_number: Optional[str] = None
    parent_phone: Optional[str] = None
    times_present: int = 0
    times_absent: int = 0
    term_times_present: int = 0
    term_times_absent: int = 0
    last_attendance_term_id: Optional[int] = None

    def counted_in(self, term_id: int) -> bool:
        return self.last_attendance_term_id == term_id

    def effective_term_counters(self, term_id: int) -> tuple[int, int]:
        """Term (present, absent); stale counters from another term read as zero."""
        if not self.counted_in(term_id):
            return 0, 0
        return max(self.term_times_present, 0), max(self.term_times_absent, 0)


@dataclass(frozen=True)
class AttendanceStats:
    person_id: int
    times_present: int
    times_absent: int
    attendance_percentage: int
