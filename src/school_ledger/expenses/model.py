from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class Expense:
    expense_id: int
    term_id: int
    name: str
    category: str
    description: str
    quantity: float
    unit_price: float
    total: float
    expense_date: datetime
