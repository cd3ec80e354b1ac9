from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import Level
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Holding
from .repository import HoldingRepository

_COLUMNS = """
    holding_id, student_id, student_name, student_number, class_name, item_id, item_name,
    size, level, item_price, quantity, date_checked_out, returned, return_date,
    paid, payment_date, refunded, transaction_id
"""


def _to_holding(r: dict) -> Holding:
    tx_id = r.get("transaction_id")
    return Holding(
        holding_id=int(r["holding_id"]),
        student_id=int(r["student_id"]),
        student_name=r.get("student_name") or "",
        student_number=r.get("student_number") or "",
        class_name=r.get("class_name") or "",
        item_id=int(r["item_id"]),
        item_name=r.get("item_name") or "",
        size=r.get("size") or "",
        level=Level(r["level"]),
        item_price=int(r.get("item_price") or 0),
        quantity=int(r.get("quantity") or 0),
        date_checked_out=r["date_checked_out"],
        returned=bool(r.get("returned")),
        return_date=r.get("return_date"),
        paid=bool(r.get("paid")),
        payment_date=r.get("payment_date"),
        refunded=bool(r.get("refunded")),
        transaction_id=int(tx_id) if tx_id is not None else None,
    )


class MySQLHoldingRepository(HoldingRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, holding_id: int) -> Optional[Holding]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM student_inventory WHERE holding_id=%s", (int(holding_id),))
            r = fetchone(cur)
            return _to_holding(r) if r else None

    def find_open(self, *, student_id: int, item_id: int, level: Level) -> Optional[Holding]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM student_inventory
                WHERE student_id=%s AND item_id=%s AND level=%s AND returned=0
                ORDER BY holding_id
                LIMIT 1
                """,
                (int(student_id), int(item_id), Level(level).value),
            )
            r = fetchone(cur)
            return _to_holding(r) if r else None

    def create(
        self,
        *,
        student_id: int,
        student_name: str,
        student_number: str,
        class_name: str,
        item_id: int,
        item_name: str,
        size: str,
        level: Level,
        item_price: int,
        quantity: int,
        date_checked_out: datetime,
        paid: bool,
        transaction_id: int,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO student_inventory(
                    student_id, student_name, student_number, class_name, item_id, item_name, size,
                    level, item_price, quantity, date_checked_out, returned, paid, refunded, transaction_id
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,0,%s,0,%s)
                """,
                (
                    int(student_id),
                    student_name,
                    student_number,
                    class_name,
                    int(item_id),
                    item_name,
                    size,
                    Level(level).value,
                    int(item_price),
                    int(quantity),
                    date_checked_out,
                    1 if paid else 0,
                    int(transaction_id),
                ),
            )
            return int(cur.lastrowid)

    def add_quantity(self, *, holding_id: int, quantity: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE student_inventory SET quantity = quantity + %s WHERE holding_id=%s",
                (int(quantity), int(holding_id)),
            )
            return cur.rowcount > 0

    def set_quantity(self, *, holding_id: int, quantity: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE student_inventory SET quantity=%s WHERE holding_id=%s",
                (int(quantity), int(holding_id)),
            )
            return cur.rowcount > 0

    def mark_returned(self, *, holding_id: int, return_date: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE student_inventory SET returned=1, return_date=%s WHERE holding_id=%s",
                (return_date, int(holding_id)),
            )
            return cur.rowcount > 0

    def mark_paid(self, *, holding_id: int, payment_date: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE student_inventory SET paid=1, payment_date=%s WHERE holding_id=%s",
                (payment_date, int(holding_id)),
            )
            return cur.rowcount > 0

    def mark_refunded(self, *, holding_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE student_inventory SET refunded=1, paid=0 WHERE holding_id=%s",
                (int(holding_id),),
            )
            return cur.rowcount > 0

    def delete_by_id(self, holding_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM student_inventory WHERE holding_id=%s", (int(holding_id),))
            return cur.rowcount > 0

    def list_for_student(self, student_id: int) -> Sequence[Holding]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM student_inventory WHERE student_id=%s ORDER BY date_checked_out DESC",
                (int(student_id),),
            )
            return [_to_holding(r) for r in fetchall(cur)]

    def list_all(self) -> Sequence[Holding]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM student_inventory ORDER BY date_checked_out DESC")
            return [_to_holding(r) for r in fetchall(cur)]
