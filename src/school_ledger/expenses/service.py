from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from ..common.datetime_utils import day_bounds, now_local
from ..common.live import notify_changed
from ..common.validators import clamp_non_negative, require_non_empty, strip_or_empty
from ..core.exceptions import NotFoundError, ValidationError
from ..terms.model import TermContext
from .model import Expense
from .repository import ExpenseRepository

EXPENSES = "expenses"


def expense_total(quantity: float, unit_price: float, override: Optional[float] = None) -> float:
    """``quantity * unit_price`` unless an explicit total is given; never negative."""
    if override is not None:
        return clamp_non_negative(override)
    return max(clamp_non_negative(quantity) * clamp_non_negative(unit_price), 0.0)


def effective_total(expense: Expense) -> float:
    """The stored total; it already holds any override, including 0."""
    return max(expense.total, 0.0)


class ExpenseService:
    def __init__(self, expenses: ExpenseRepository):
        self._expenses = expenses

    def add_expense(
        self,
        term: TermContext,
        *,
        name: str,
        category: str = "",
        description: str = "",
        quantity: float = 1,
        unit_price: float = 0,
        total: Optional[float] = None,
        expense_date: datetime | None = None,
        now: datetime | None = None,
    ) -> Expense:
        name = require_non_empty(name, "Name")
        quantity = clamp_non_negative(quantity)
        unit_price = clamp_non_negative(unit_price)

        expense_id = self._expenses.create(
            term_id=term.term_id,
            name=name,
            category=strip_or_empty(category),
            description=strip_or_empty(description),
            quantity=quantity,
            unit_price=unit_price,
            total=expense_total(quantity, unit_price, total),
            expense_date=expense_date or now or now_local(),
        )
        notify_changed(EXPENSES, term_id=term.term_id)
        return self.get(expense_id)

    def update_expense(
        self,
        expense_id: int,
        *,
        name: str,
        category: str = "",
        description: str = "",
        quantity: float = 1,
        unit_price: float = 0,
        total: Optional[float] = None,
        expense_date: datetime | None = None,
    ) -> Expense:
        current = self.get(expense_id)
        quantity = clamp_non_negative(quantity)
        unit_price = clamp_non_negative(unit_price)
        self._expenses.update(
            expense_id=current.expense_id,
            name=require_non_empty(name, "Name"),
            category=strip_or_empty(category),
            description=strip_or_empty(description),
            quantity=quantity,
            unit_price=unit_price,
            total=expense_total(quantity, unit_price, total),
            expense_date=expense_date or current.expense_date,
        )
        notify_changed(EXPENSES, term_id=current.term_id)
        return self.get(expense_id)

    def delete_expense(self, expense_id: int) -> None:
        current = self.get(expense_id)
        self._expenses.delete_by_id(current.expense_id)
        notify_changed(EXPENSES, term_id=current.term_id)

    def get(self, expense_id: int) -> Expense:
        expense = self._expenses.get_by_id(expense_id)
        if not expense:
            raise NotFoundError(f"No expense with id {expense_id}")
        return expense

    def list_for_term(self, term: TermContext) -> Sequence[Expense]:
        return self._expenses.list_for_term(term.term_id)

    def total_between(self, term: TermContext, start: date, end: date) -> float:
        if end < start:
            raise ValidationError("End date cannot be before start date")
        start_at, end_at = day_bounds(start, end)
        return sum(effective_total(e) for e in self._expenses.list_for_term(term.term_id, start=start_at, end=end_at))

    def total_for_term(self, term: TermContext) -> float:
        return sum(effective_total(e) for e in self._expenses.list_for_term(term.term_id))
