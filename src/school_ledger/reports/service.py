from __future__ import annotations

from ..attendance.repository import AttendanceRepository
from ..core.enums import Population
from ..core.exceptions import NotFoundError
from ..directory.repository import PersonRepository
from ..expenses.repository import ExpenseRepository
from ..expenses.service import effective_total
from ..fees.repository import PaymentRepository
from ..inventory.repository import TransactionRepository
from ..terms.model import TermSnapshot
from ..terms.repository import TermRepository


class TermReportService:
    """Sums every ledger for one term into a :class:`TermSnapshot`."""

    def __init__(
        self,
        terms: TermRepository,
        payments: PaymentRepository,
        transactions: TransactionRepository,
        expenses: ExpenseRepository,
        attendance: AttendanceRepository,
        people: PersonRepository,
    ):
        self._terms = terms
        self._payments = payments
        self._transactions = transactions
        self._expenses = expenses
        self._attendance = attendance
        self._people = people

    def snapshot(self, term_id: int) -> TermSnapshot:
        term = self._terms.get_by_id(term_id)
        if not term:
            raise NotFoundError(f"No term with id {term_id}")

        fees_income = sum(max(0, p.amount) for p in self._payments.list_for_term(term.term_id))
        inv_income = sum(
            max(0, t.item_price) * max(0, t.quantity)
            for t in self._transactions.list_for_term(term.term_id)
            if t.paid
        )
        inv_refunds = sum(max(0, r.amount) for r in self._transactions.list_refunds_for_term(term.term_id))
        total_expenses = sum(effective_total(e) for e in self._expenses.list_for_term(term.term_id))
        total_income = max(0, fees_income + inv_income - inv_refunds)

        return TermSnapshot(
            term_id=term.term_id,
            term_name=term.term_name,
            start_at=term.start_at,
            fees_income=fees_income,
            inv_income=inv_income,
            inv_refunds=inv_refunds,
            total_income=total_income,
            total_expenses=total_expenses,
            net=total_income - total_expenses,
            student_present_days=self._attendance.sum_present_for_term(Population.STUDENTS, term.term_id),
            teacher_present_days=self._attendance.sum_present_for_term(Population.TEACHERS, term.term_id),
            students_count=self._people.count(Population.STUDENTS),
        )
