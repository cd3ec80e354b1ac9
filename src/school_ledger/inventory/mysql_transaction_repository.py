from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import Level
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import InventoryTransaction, Refund
from .repository import TransactionRepository

_TX_COLUMNS = """
    transaction_id, term_id, item_id, item_name, size, level, quantity, item_price,
    student_id, student_name, student_number, class_name, action, tx_date,
    returned, return_date, paid, payment_date, refunded, refund_date, refund_amount
"""

_REFUND_COLUMNS = """
    refund_id, term_id, transaction_id, item_id, item_name, level, student_id,
    student_name, quantity, item_price, amount, refund_date, payment_date, reason
"""


def _to_tx(r: dict) -> InventoryTransaction:
    refund_amount = r.get("refund_amount")
    return InventoryTransaction(
        transaction_id=int(r["transaction_id"]),
        term_id=int(r["term_id"]),
        item_id=int(r["item_id"]),
        item_name=r.get("item_name") or "",
        size=r.get("size") or "",
        level=Level(r["level"]),
        quantity=int(r["quantity"]),
        item_price=int(r.get("item_price") or 0),
        student_id=int(r["student_id"]),
        student_name=r.get("student_name") or "",
        student_number=r.get("student_number") or "",
        class_name=r.get("class_name") or "",
        tx_date=r["tx_date"],
        action=r.get("action") or "checked_out",
        returned=bool(r.get("returned")),
        return_date=r.get("return_date"),
        paid=bool(r.get("paid")),
        payment_date=r.get("payment_date"),
        refunded=bool(r.get("refunded")),
        refund_date=r.get("refund_date"),
        refund_amount=int(refund_amount) if refund_amount is not None else None,
    )


def _to_refund(r: dict) -> Refund:
    tx_id = r.get("transaction_id")
    return Refund(
        refund_id=int(r["refund_id"]),
        term_id=int(r["term_id"]),
        transaction_id=int(tx_id) if tx_id is not None else None,
        item_id=int(r["item_id"]),
        item_name=r.get("item_name") or "",
        level=Level(r["level"]),
        student_id=int(r["student_id"]),
        student_name=r.get("student_name") or "",
        quantity=int(r["quantity"]),
        item_price=int(r.get("item_price") or 0),
        amount=int(r["amount"]),
        refund_date=r["refund_date"],
        payment_date=r.get("payment_date"),
        reason=r["reason"],
    )


class MySQLTransactionRepository(TransactionRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, transaction_id: int) -> Optional[InventoryTransaction]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_TX_COLUMNS} FROM inventory_transactions WHERE transaction_id=%s",
                (int(transaction_id),),
            )
            r = fetchone(cur)
            return _to_tx(r) if r else None

    def create(
        self,
        *,
        term_id: int,
        item_id: int,
        item_name: str,
        size: str,
        level: Level,
        quantity: int,
        item_price: int,
        student_id: int,
        student_name: str,
        student_number: str,
        class_name: str,
        tx_date: datetime,
        paid: bool,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO inventory_transactions(
                    term_id, item_id, item_name, size, level, quantity, item_price,
                    student_id, student_name, student_number, class_name, action, tx_date,
                    returned, paid, payment_date, refunded
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,'checked_out',%s,0,%s,%s,0)
                """,
                (
                    int(term_id),
                    int(item_id),
                    item_name,
                    size,
                    Level(level).value,
                    int(quantity),
                    int(item_price),
                    int(student_id),
                    student_name,
                    student_number,
                    class_name,
                    tx_date,
                    1 if paid else 0,
                    tx_date if paid else None,
                ),
            )
            return int(cur.lastrowid)

    def list_for_term(self, term_id: int) -> Sequence[InventoryTransaction]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_TX_COLUMNS} FROM inventory_transactions WHERE term_id=%s ORDER BY tx_date DESC",
                (int(term_id),),
            )
            return [_to_tx(r) for r in fetchall(cur)]

    def list_open(self, *, student_id: int, item_id: int, level: Level) -> Sequence[InventoryTransaction]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_TX_COLUMNS} FROM inventory_transactions
                WHERE student_id=%s AND item_id=%s AND level=%s AND returned=0
                ORDER BY tx_date
                """,
                (int(student_id), int(item_id), Level(level).value),
            )
            return [_to_tx(r) for r in fetchall(cur)]

    def mark_paid(self, *, transaction_id: int, payment_date: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE inventory_transactions SET paid=1, payment_date=%s WHERE transaction_id=%s",
                (payment_date, int(transaction_id)),
            )
            return cur.rowcount > 0

    def mark_returned(self, *, transaction_id: int, return_date: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE inventory_transactions SET returned=1, return_date=%s WHERE transaction_id=%s AND returned=0",
                (return_date, int(transaction_id)),
            )
            return cur.rowcount > 0

    def mark_refunded(self, *, transaction_id: int, refund_date: datetime, refund_amount: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE inventory_transactions
                SET refunded=1, refund_date=%s, refund_amount=%s
                WHERE transaction_id=%s
                """,
                (refund_date, int(refund_amount), int(transaction_id)),
            )
            return cur.rowcount > 0

    def delete_by_id(self, transaction_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM inventory_transactions WHERE transaction_id=%s", (int(transaction_id),))
            return cur.rowcount > 0

    def create_refund(
        self,
        *,
        term_id: int,
        transaction_id: Optional[int],
        item_id: int,
        item_name: str,
        level: Level,
        student_id: int,
        student_name: str,
        quantity: int,
        item_price: int,
        amount: int,
        refund_date: datetime,
        payment_date: Optional[datetime],
        reason: str,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO inventory_refunds(
                    term_id, transaction_id, item_id, item_name, level, student_id, student_name,
                    quantity, item_price, amount, refund_date, payment_date, reason
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(term_id),
                    transaction_id,
                    int(item_id),
                    item_name,
                    Level(level).value,
                    int(student_id),
                    student_name,
                    int(quantity),
                    int(item_price),
                    int(amount),
                    refund_date,
                    payment_date,
                    reason,
                ),
            )
            return int(cur.lastrowid)

    def list_refunds_for_term(self, term_id: int) -> Sequence[Refund]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_REFUND_COLUMNS} FROM inventory_refunds WHERE term_id=%s ORDER BY refund_date DESC",
                (int(term_id),),
            )
            return [_to_refund(r) for r in fetchall(cur)]
