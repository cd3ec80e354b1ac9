from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Dict, Mapping, Optional, Tuple

from ..core.enums import AttendanceStatus, Population


@dataclass(frozen=True)
class AttendanceEntry:
    status: AttendanceStatus
    timestamp: datetime
    class_name: str = ""
    person_name: str = ""

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            "timestamp": self.timestamp.isoformat(),
            "className": self.class_name,
            "name": self.person_name,
        }

    @classmethod
    def from_dict(cls, raw: Mapping) -> "AttendanceEntry":
        ts = raw.get("timestamp")
        if isinstance(ts, str):
            ts = datetime.fromisoformat(ts)
        return cls(
            status=AttendanceStatus(raw["status"]),
            timestamp=ts or datetime.min,
            class_name=raw.get("className") or "",
            person_name=raw.get("name") or "",
        )


def count_present(records: Mapping[int, AttendanceEntry]) -> int:
    return sum(1 for e in records.values() if e.status == AttendanceStatus.PRESENT)


@dataclass(frozen=True)
class DayRecord:
    """One calendar day of marks for a population.

    ``present_count`` always equals the number of present entries in ``records``.
    """

    population: Population
    day_key: str
    day_date: datetime
    term_id: Optional[int]
    records: Dict[int, AttendanceEntry] = field(default_factory=dict)
    present_count: int = 0

    def status_of(self, person_id: int) -> Optional[AttendanceStatus]:
        entry = self.records.get(int(person_id))
        return entry.status if entry else None

    def with_entries(self, entries: Mapping[int, AttendanceEntry]) -> "DayRecord":
        records = dict(self.records)
        records.update({int(k): v for k, v in entries.items()})
        return replace(self, records=records, present_count=count_present(records))

    def without(self, person_id: int) -> "DayRecord":
        records = {k: v for k, v in self.records.items() if k != int(person_id)}
        return replace(self, records=records, present_count=count_present(records))


@dataclass(frozen=True)
class MarkResult:
    day_key: str
    previous: Optional[AttendanceStatus]
    status: AttendanceStatus
    present_count: int


@dataclass(frozen=True)
class BulkMarkResult:
    day_key: str
    changed: Tuple[int, ...]
    skipped: int
    present_count: int


@dataclass(frozen=True)
class RangeRow:
    person_id: int
    name: str
    class_name: str
    student_number: str
    present: int


@dataclass(frozen=True)
class RangeReport:
    start: date
    end: date
    days_with_records: int
    holidays: int
    total_school_days: int
    rows: Tuple[RangeRow, ...]


@dataclass(frozen=True)
class ClassSummary:
    class_name: str
    total: int
    present: int
    absent: int


@dataclass(frozen=True)
class SectionSummary:
    section: str
    total: int
    present: int
    absent: int
    classes: Tuple[ClassSummary, ...]
