from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import FeeStatus
from .model import Payment


class PaymentRepository(Protocol):
    def get_by_id(self, payment_id: int) -> Optional[Payment]:
        raise NotImplementedError

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
        raise NotImplementedError

    def delete_by_id(self, payment_id: int) -> bool:
        raise NotImplementedError

    def delete_for_student(self, student_id: int) -> int:
        raise NotImplementedError

    def sum_for_student(self, *, term_id: int, student_id: int) -> int:
        raise NotImplementedError

    def list_for_student(self, *, term_id: int, student_id: int) -> Sequence[Payment]:
        """Events ordered by ``paid_at``."""

        raise NotImplementedError

    def list_for_term(self, term_id: int) -> Sequence[Payment]:
        raise NotImplementedError
