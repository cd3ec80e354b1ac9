from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import Population
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import CounterDelta, Person
from .repository import PersonRepository

_COLUMNS = """
    person_id, kind, name, class_name, student_number, parent_phone,
    times_present, times_absent, term_times_present, term_times_absent,
    last_attendance_term_id
"""


def _to_person(row: dict) -> Person:
    last_term = row.get("last_attendance_term_id")
    return Person(
        person_id=int(row["person_id"]),
        kind=Population(row["kind"]),
        name=row["name"],
        class_name=row["class_name"],
        student_number=row.get("student_number"),
        parent_phone=row.get("parent_phone"),
        times_present=int(row.get("times_present") or 0),
        times_absent=int(row.get("times_absent") or 0),
        term_times_present=int(row.get("term_times_present") or 0),
        term_times_absent=int(row.get("term_times_absent") or 0),
        last_attendance_term_id=int(last_term) if last_term is not None else None,
    )


class MySQLPersonRepository(PersonRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, person_id: int) -> Optional[Person]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM people WHERE person_id=%s", (int(person_id),))
            row = fetchone(cur)
            return _to_person(row) if row else None

    def list_by_kind(self, kind: Population) -> Sequence[Person]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM people WHERE kind=%s ORDER BY class_name, name",
                (kind.value,),
            )
            return [_to_person(r) for r in fetchall(cur)]

    def count(self, kind: Population) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(*) AS c FROM people WHERE kind=%s", (kind.value,))
            row = fetchone(cur)
            return int(row["c"]) if row else 0

    def list_student_numbers(self) -> Sequence[str]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT student_number FROM people WHERE student_number IS NOT NULL")
            return [r["student_number"] for r in fetchall(cur)]

    def create(
        self,
        *,
        kind: Population,
        name: str,
        class_name: str,
        student_number: Optional[str] = None,
        parent_phone: Optional[str] = None,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO people(kind, name, class_name, student_number, parent_phone)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (kind.value, name, class_name, student_number, parent_phone),
            )
            return int(cur.lastrowid)

    def update_identity(
        self,
        *,
        person_id: int,
        name: str,
        class_name: str,
        parent_phone: Optional[str] = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE people SET name=%s, class_name=%s, parent_phone=%s WHERE person_id=%s",
                (name, class_name, parent_phone, int(person_id)),
            )
            return cur.rowcount > 0

    def delete_by_id(self, person_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM people WHERE person_id=%s", (int(person_id),))
            return cur.rowcount > 0

    def reset_term_counters(self, *, person_id: int, term_id: int) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE people
                SET term_times_present=0, term_times_absent=0, last_attendance_term_id=%s
                WHERE person_id=%s
                """,
                (int(term_id), int(person_id)),
            )

    def apply_counter_delta(self, *, person_id: int, delta: CounterDelta) -> None:
        if delta.is_empty():
            return
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE people
                SET times_present = times_present + %s,
                    times_absent = times_absent + %s,
                    term_times_present = term_times_present + %s,
                    term_times_absent = term_times_absent + %s
                WHERE person_id=%s
                """,
                (
                    delta.times_present,
                    delta.times_absent,
                    delta.term_times_present,
                    delta.term_times_absent,
                    int(person_id),
                ),
            )
