from __future__ import annotations

from datetime import datetime
from typing import Mapping, Optional, Protocol, Sequence

from ..core.enums import Population
from .model import AttendanceEntry, DayRecord


class AttendanceRepository(Protocol):
    """Day records per population, one record per calendar day."""

    def get_day(self, population: Population, day_key: str) -> Optional[DayRecord]:
        raise NotImplementedError

    def create_day_if_absent(
        self,
        population: Population,
        *,
        day_key: str,
        day_date: datetime,
        term_id: Optional[int],
    ) -> DayRecord:
        """Insert an empty record unless one exists; return the stored record."""

        raise NotImplementedError

    def save_records(
        self,
        population: Population,
        *,
        day_key: str,
        records: Mapping[int, AttendanceEntry],
        present_count: int,
    ) -> None:
        """Replace the whole status map of a day (last writer wins)."""

        raise NotImplementedError

    def delete_day(self, population: Population, day_key: str) -> bool:
        raise NotImplementedError

    def list_days(
        self,
        population: Population,
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> Sequence[DayRecord]:
        raise NotImplementedError

    def list_days_with_person(self, population: Population, person_id: int) -> Sequence[DayRecord]:
        raise NotImplementedError

    def sum_present_for_term(self, population: Population, term_id: int) -> int:
        raise NotImplementedError
