from __future__ import annotations

from datetime import datetime
from typing import Mapping, Optional, Sequence

from ..core.enums import Population
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_json, fetchall, fetchone, load_json
from .model import AttendanceEntry, DayRecord
from .repository import AttendanceRepository

_TABLES = {
    Population.STUDENTS: "daily_attendance",
    Population.TEACHERS: "teacher_daily_attendance",
}


def _table(population: Population) -> str:
    return _TABLES[Population(population)]


def _to_day(population: Population, row: dict) -> DayRecord:
    raw = load_json(row.get("records"), {})
    records = {int(pid): AttendanceEntry.from_dict(entry) for pid, entry in raw.items() if entry}
    term_id = row.get("term_id")
    return DayRecord(
        population=population,
        day_key=row["day_key"],
        day_date=row["day_date"],
        term_id=int(term_id) if term_id is not None else None,
        records=records,
        present_count=int(row.get("present_count") or 0),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_day(self, population: Population, day_key: str) -> Optional[DayRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT day_key, day_date, term_id, records, present_count FROM {_table(population)} WHERE day_key=%s",
                (day_key,),
            )
            row = fetchone(cur)
            return _to_day(population, row) if row else None

    def create_day_if_absent(
        self,
        population: Population,
        *,
        day_key: str,
        day_date: datetime,
        term_id: Optional[int],
    ) -> DayRecord:
        table = _table(population)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                INSERT IGNORE INTO {table}(day_key, day_date, term_id, records, present_count)
                VALUES(%s,%s,%s,%s,0)
                """,
                (day_key, day_date, term_id, dump_json({})),
            )
            cur.execute(
                f"SELECT day_key, day_date, term_id, records, present_count FROM {table} WHERE day_key=%s",
                (day_key,),
            )
            return _to_day(population, fetchone(cur))

    def save_records(
        self,
        population: Population,
        *,
        day_key: str,
        records: Mapping[int, AttendanceEntry],
        present_count: int,
    ) -> None:
        payload = {str(pid): entry.to_dict() for pid, entry in records.items()}
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE {_table(population)} SET records=%s, present_count=%s WHERE day_key=%s",
                (dump_json(payload), int(present_count), day_key),
            )

    def delete_day(self, population: Population, day_key: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"DELETE FROM {_table(population)} WHERE day_key=%s", (day_key,))
            return cur.rowcount > 0

    def list_days(
        self,
        population: Population,
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> Sequence[DayRecord]:
        sql = f"SELECT day_key, day_date, term_id, records, present_count FROM {_table(population)}"
        clauses = []
        params: list = []
        if start is not None:
            clauses.append("day_date >= %s")
            params.append(start)
        if end is not None:
            clauses.append("day_date <= %s")
            params.append(end)
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        sql += " ORDER BY day_date"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_to_day(population, r) for r in fetchall(cur)]

    def list_days_with_person(self, population: Population, person_id: int) -> Sequence[DayRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT day_key, day_date, term_id, records, present_count
                FROM {_table(population)}
                WHERE JSON_CONTAINS_PATH(records, 'one', CONCAT('$."', %s, '"'))
                ORDER BY day_date
                """,
                (str(int(person_id)),),
            )
            return [_to_day(population, r) for r in fetchall(cur)]

    def sum_present_for_term(self, population: Population, term_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT COALESCE(SUM(present_count), 0) AS total FROM {_table(population)} WHERE term_id=%s",
                (int(term_id),),
            )
            row = fetchone(cur)
            return int(row["total"]) if row else 0
