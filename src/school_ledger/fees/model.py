from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import FeeStatus


@dataclass(frozen=True)
class Payment:
    """Immutable fee payment event with the totals as they stood when it was recorded."""

    payment_id: int
    term_id: int
    student_id: int
    student_name: str
    class_name: str
    amount: int
    paid_at: datetime
    total_after: int
    remaining_after: int
    status_after: FeeStatus


@dataclass(frozen=True)
class HistoryRow:
    payment: Payment
    running_total: int
    remaining: int
    status: FeeStatus


@dataclass(frozen=True)
class BroadsheetRow:
    student_id: int
    name: str
    student_number: str
    class_name: str
    fee: int
    total_paid: int
    remaining: int
    status: FeeStatus
    last_paid_at: Optional[datetime] = None


@dataclass(frozen=True)
class FeeOverview:
    collected: int
    outstanding: int
    fully_paid: int
    debtors: int
