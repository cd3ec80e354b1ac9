from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class Term:
    """Domain entity: an academic term. Terms are closed, never deleted."""

    term_id: int
    term_name: str
    start_at: datetime
    closed: bool = False
    end_at: Optional[datetime] = None


@dataclass(frozen=True)
class TermContext:
    """The active term every ledger read/write is scoped to.

    Passed explicitly into ledger calls instead of being read from the
    settings pointer inside each operation.
    """

    term_id: int
    term_name: str = ""

    @classmethod
    def of(cls, term: Term) -> "TermContext":
        return cls(term_id=term.term_id, term_name=term.term_name)


@dataclass(frozen=True)
class TermSnapshot:
    """Aggregate totals of one term, as printed on the term report."""

    term_id: int
    term_name: str
    start_at: Optional[datetime]
    fees_income: int
    inv_income: int
    inv_refunds: int
    total_income: int
    total_expenses: float
    net: float
    student_present_days: int
    teacher_present_days: int
    students_count: int
