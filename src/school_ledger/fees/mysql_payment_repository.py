from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import FeeStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Payment
from .repository import PaymentRepository

_COLUMNS = """
    payment_id, term_id, student_id, student_name, class_name, amount,
    paid_at, total_after, remaining_after, status_after
"""


def _to_payment(r: dict) -> Payment:
    return Payment(
        payment_id=int(r["payment_id"]),
        term_id=int(r["term_id"]),
        student_id=int(r["student_id"]),
        student_name=r.get("student_name") or "",
        class_name=r["class_name"],
        amount=int(r["amount"]),
        paid_at=r["paid_at"],
        total_after=int(r["total_after"]),
        remaining_after=int(r["remaining_after"]),
        status_after=FeeStatus(r["status_after"]),
    )


class MySQLPaymentRepository(PaymentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, payment_id: int) -> Optional[Payment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM payments WHERE payment_id=%s", (int(payment_id),))
            r = fetchone(cur)
            return _to_payment(r) if r else None

    def create(
        self,
        *,
        term_id: int,
        student_id: int,
        student_name: str,
        class_name: str,
        amount: int,
        paid_at: datetime,
        total_after: int,
        remaining_after: int,
        status_after: FeeStatus,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO payments(term_id, student_id, student_name, class_name, amount,
                                     paid_at, total_after, remaining_after, status_after)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(term_id),
                    int(student_id),
                    student_name,
                    class_name,
                    int(amount),
                    paid_at,
                    int(total_after),
                    int(remaining_after),
                    status_after.value,
                ),
            )
            return int(cur.lastrowid)

    def delete_by_id(self, payment_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM payments WHERE payment_id=%s", (int(payment_id),))
            return cur.rowcount > 0

    def delete_for_student(self, student_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM payments WHERE student_id=%s", (int(student_id),))
            return int(cur.rowcount or 0)

    def sum_for_student(self, *, term_id: int, student_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT COALESCE(SUM(amount), 0) AS total FROM payments WHERE term_id=%s AND student_id=%s",
                (int(term_id), int(student_id)),
            )
            r = fetchone(cur)
            return int(r["total"]) if r else 0

    def list_for_student(self, *, term_id: int, student_id: int) -> Sequence[Payment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM payments
                WHERE term_id=%s AND student_id=%s
                ORDER BY paid_at, payment_id
                """,
                (int(term_id), int(student_id)),
            )
            return [_to_payment(r) for r in fetchall(cur)]

    def list_for_term(self, term_id: int) -> Sequence[Payment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM payments WHERE term_id=%s ORDER BY paid_at, payment_id",
                (int(term_id),),
            )
            return [_to_payment(r) for r in fetchall(cur)]
