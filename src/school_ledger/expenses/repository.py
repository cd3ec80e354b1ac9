from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from .model import Expense


class ExpenseRepository(Protocol):
    def get_by_id(self, expense_id: int) -> Optional[Expense]:
        raise NotImplementedError

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
        raise NotImplementedError

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
        raise NotImplementedError

    def delete_by_id(self, expense_id: int) -> bool:
        raise NotImplementedError

    def list_for_term(
        self,
        term_id: int,
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> Sequence[Expense]:
        """Newest first, optionally bounded by ``expense_date``."""

        raise NotImplementedError
