from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Term
from .repository import TermRepository


def _to_term(r: dict) -> Term:
    return Term(
        term_id=int(r["term_id"]),
        term_name=r["term_name"],
        start_at=r["start_at"],
        closed=bool(r.get("closed")),
        end_at=r.get("end_at"),
    )


class MySQLTermRepository(TermRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, term_id: int) -> Optional[Term]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT term_id, term_name, start_at, closed, end_at FROM terms WHERE term_id=%s",
                (int(term_id),),
            )
            r = fetchone(cur)
            return _to_term(r) if r else None

    def list_all(self) -> Sequence[Term]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT term_id, term_name, start_at, closed, end_at FROM terms ORDER BY start_at DESC")
            return [_to_term(r) for r in fetchall(cur)]

    def create(self, *, term_name: str, start_at: datetime) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO terms(term_name, start_at, closed) VALUES(%s,%s,0)",
                (term_name, start_at),
            )
            return int(cur.lastrowid)

    def close(self, *, term_id: int, end_at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE terms SET closed=1, end_at=%s WHERE term_id=%s",
                (end_at, int(term_id)),
            )
            return cur.rowcount > 0

    def get_active_term_id(self) -> Optional[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT active_term_id FROM app_settings WHERE settings_id='app'")
            r = fetchone(cur)
            if not r or r.get("active_term_id") is None:
                return None
            return int(r["active_term_id"])

    def set_active_term_id(self, term_id: int) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO app_settings(settings_id, active_term_id) VALUES('app', %s)
                ON DUPLICATE KEY UPDATE active_term_id=VALUES(active_term_id)
                """,
                (int(term_id),),
            )
