from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..common.datetime_utils import now_local
from ..common.live import notify_changed
from ..core.enums import Population
from ..core.exceptions import NotFoundError, OverpaymentError, ValidationError
from ..directory.model import Person
from ..directory.repository import PersonRepository
from ..terms.model import TermContext
from .fee_table import class_fee, remaining_for, status_from_totals
from .model import BroadsheetRow, FeeOverview, HistoryRow, Payment
from .repository import PaymentRepository

PAYMENTS = "payments"


class FeeService:
    def __init__(self, payments: PaymentRepository, people: PersonRepository):
        self._payments = payments
        self._people = people

    def add_payment(
        self,
        term: TermContext,
        student_id: int,
        amount: int,
        *,
        now: datetime | None = None,
    ) -> Payment:
        now = now or now_local()
        try:
            amount = int(amount)
        except (TypeError, ValueError):
            raise ValidationError("Amount must be a whole number")
        if amount < 0:
            raise ValidationError("Amount cannot be negative")

        student = self._people.get_by_id(student_id)
        if not student or student.kind != Population.STUDENTS:
            raise NotFoundError(f"No student with id {student_id}")

        fee = class_fee(student.class_name)
        prior = self._payments.sum_for_student(term_id=term.term_id, student_id=student.person_id)
        if prior + amount > fee:
            remaining = remaining_for(prior, fee)
            raise OverpaymentError(
                f"Overpayment blocked. Remaining for {student.name} is {remaining}",
                remaining=remaining,
            )

        total = prior + amount
        payment_id = self._payments.create(
            term_id=term.term_id,
            student_id=student.person_id,
            student_name=student.name,
            class_name=student.class_name,
            amount=amount,
            paid_at=now,
            total_after=total,
            remaining_after=remaining_for(total, fee),
            status_after=status_from_totals(total, fee),
        )
        notify_changed(PAYMENTS, term_id=term.term_id, student_id=student.person_id)
        created = self._payments.get_by_id(payment_id)
        if not created:
            raise NotFoundError(f"Payment {payment_id} disappeared after insert")
        return created

    def delete_payment(self, payment_id: int) -> None:
        """Remove one event. Later events keep the totals stored with them."""
        payment = self._payments.get_by_id(payment_id)
        if not payment:
            raise NotFoundError(f"No payment with id {payment_id}")
        self._payments.delete_by_id(payment_id)
        notify_changed(PAYMENTS, term_id=payment.term_id, student_id=payment.student_id)

    def student_history(self, term: TermContext, student_id: int) -> Sequence[HistoryRow]:
        """Payments in date order, replayed so each row shows the status at that point."""
        student = self._people.get_by_id(student_id)
        if not student:
            raise NotFoundError(f"No student with id {student_id}")
        fee = class_fee(student.class_name)

        rows: list[HistoryRow] = []
        running = 0
        for p in self._payments.list_for_student(term_id=term.term_id, student_id=student.person_id):
            running += p.amount
            rows.append(
                HistoryRow(
                    payment=p,
                    running_total=running,
                    remaining=remaining_for(running, fee),
                    status=status_from_totals(running, fee),
                )
            )
        return rows

    def class_broadsheet(self, term: TermContext, class_name: str | None = None) -> Sequence[BroadsheetRow]:
        students = [
            s
            for s in self._people.list_by_kind(Population.STUDENTS)
            if class_name is None or s.class_name == class_name
        ]
        totals: dict[int, int] = {}
        last_paid: dict[int, datetime] = {}
        for p in self._payments.list_for_term(term.term_id):
            totals[p.student_id] = totals.get(p.student_id, 0) + p.amount
            if p.student_id not in last_paid or p.paid_at > last_paid[p.student_id]:
                last_paid[p.student_id] = p.paid_at

        rows = [self._row(s, totals.get(s.person_id, 0), last_paid.get(s.person_id)) for s in students]
        rows.sort(key=lambda r: (r.class_name, r.name))
        return rows

    def debtors(self, term: TermContext, class_name: str | None = None) -> Sequence[BroadsheetRow]:
        return [r for r in self.class_broadsheet(term, class_name) if r.remaining > 0]

    def unpaid_students(self, term: TermContext, class_name: str | None = None) -> Sequence[BroadsheetRow]:
        return [r for r in self.class_broadsheet(term, class_name) if r.total_paid <= 0 and r.fee > 0]

    def fee_overview(self, term: TermContext) -> FeeOverview:
        rows = self.class_broadsheet(term)
        collected = sum(max(0, p.amount) for p in self._payments.list_for_term(term.term_id))
        return FeeOverview(
            collected=collected,
            outstanding=sum(r.remaining for r in rows),
            fully_paid=sum(1 for r in rows if r.fee > 0 and r.remaining == 0),
            debtors=sum(1 for r in rows if r.remaining > 0),
        )

    @staticmethod
    def _row(student: Person, total: int, last_paid_at: Optional[datetime]) -> BroadsheetRow:
        fee = class_fee(student.class_name)
        return BroadsheetRow(
            student_id=student.person_id,
            name=student.name,
            student_number=student.student_number or "",
            class_name=student.class_name,
            fee=fee,
            total_paid=total,
            remaining=remaining_for(total, fee),
            status=status_from_totals(total, fee),
            last_paid_at=last_paid_at,
        )
