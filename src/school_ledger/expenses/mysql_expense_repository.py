from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Expense
from .repository import ExpenseRepository

_COLUMNS = "expense_id, term_id, name, category, description, quantity, unit_price, total, expense_date"


def _to_expense(r: dict) -> Expense:
    return Expense(
        expense_id=int(r["expense_id"]),
        term_id=int(r["term_id"]),
        name=r["name"],
        category=r.get("category") or "",
        description=r.get("description") or "",
        quantity=float(r.get("quantity") or 0),
        unit_price=float(r.get("unit_price") or 0),
        total=float(r.get("total") or 0),
        expense_date=r["expense_date"],
    )


class MySQLExpenseRepository(ExpenseRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, expense_id: int) -> Optional[Expense]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM expenses WHERE expense_id=%s", (int(expense_id),))
            r = fetchone(cur)
            return _to_expense(r) if r else None

    def create(
        self,
        *,
        term_id: int,
        name: str,
        category: str,
        description: str,
        quantity: float,
        unit_price: float,
        total: float,
        expense_date: datetime,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO expenses(term_id, name, category, description, quantity, unit_price, total, expense_date)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (int(term_id), name, category, description, quantity, unit_price, total, expense_date),
            )
            return int(cur.lastrowid)

    def update(
        self,
        *,
        expense_id: int,
        name: str,
        category: str,
        description: str,
        quantity: float,
        unit_price: float,
        total: float,
        expense_date: datetime,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE expenses
                SET name=%s, category=%s, description=%s, quantity=%s, unit_price=%s, total=%s, expense_date=%s
                WHERE expense_id=%s
                """,
                (name, category, description, quantity, unit_price, total, expense_date, int(expense_id)),
            )
            return cur.rowcount > 0

    def delete_by_id(self, expense_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM expenses WHERE expense_id=%s", (int(expense_id),))
            return cur.rowcount > 0

    def list_for_term(
        self,
        term_id: int,
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> Sequence[Expense]:
        sql = f"SELECT {_COLUMNS} FROM expenses WHERE term_id=%s"
        params: list = [int(term_id)]
        if start is not None:
            sql += " AND expense_date >= %s"
            params.append(start)
        if end is not None:
            sql += " AND expense_date <= %s"
            params.append(end)
        sql += " ORDER BY expense_date DESC"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_to_expense(r) for r in fetchall(cur)]
