from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .attendance.factory import TransitionStrategyFactory
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .common.locks import PersonLocks
from .database.connection import DBConfig, DatabaseConnection
from .directory.mysql_person_repository import MySQLPersonRepository
from .directory.repository import PersonRepository
from .directory.service import DirectoryService
from .expenses.mysql_expense_repository import MySQLExpenseRepository
from .expenses.repository import ExpenseRepository
from .expenses.service import ExpenseService
from .fees.mysql_payment_repository import MySQLPaymentRepository
from .fees.repository import PaymentRepository
from .fees.service import FeeService
from .inventory.mysql_holding_repository import MySQLHoldingRepository
from .inventory.mysql_item_repository import MySQLItemRepository
from .inventory.mysql_transaction_repository import MySQLTransactionRepository
from .inventory.repository import HoldingRepository, ItemRepository, TransactionRepository
from .inventory.service import InventoryService
from .reports.renderer import HtmlTermReportRenderer
from .reports.service import TermReportService
from .terms.mysql_term_repository import MySQLTermRepository
from .terms.repository import TermRepository
from .terms.service import TermService


@dataclass(frozen=True)
class Repositories:
    terms: TermRepository
    people: PersonRepository
    attendance: AttendanceRepository
    payments: PaymentRepository
    items: ItemRepository
    transactions: TransactionRepository
    holdings: HoldingRepository
    expenses: ExpenseRepository


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]
    repos: Repositories

    term_service: TermService
    report_service: TermReportService
    report_renderer: HtmlTermReportRenderer
    directory_service: DirectoryService
    attendance_service: AttendanceService
    fee_service: FeeService
    inventory_service: InventoryService
    expense_service: ExpenseService


def mysql_repositories(conn: DatabaseConnection) -> Repositories:
    return Repositories(
        terms=MySQLTermRepository(conn),
        people=MySQLPersonRepository(conn),
        attendance=MySQLAttendanceRepository(conn),
        payments=MySQLPaymentRepository(conn),
        items=MySQLItemRepository(conn),
        transactions=MySQLTransactionRepository(conn),
        holdings=MySQLHoldingRepository(conn),
        expenses=MySQLExpenseRepository(conn),
    )


def assemble(
    repos: Repositories,
    *,
    conn: Optional[DatabaseConnection] = None,
    renderer: Optional[HtmlTermReportRenderer] = None,
) -> Container:
    locks = PersonLocks()

    report_service = TermReportService(
        repos.terms,
        repos.payments,
        repos.transactions,
        repos.expenses,
        repos.attendance,
        repos.people,
    )
    return Container(
        conn=conn,
        repos=repos,
        term_service=TermService(repos.terms, report_service),
        report_service=report_service,
        report_renderer=renderer or HtmlTermReportRenderer(),
        directory_service=DirectoryService(repos.people, repos.attendance, repos.payments, locks=locks),
        attendance_service=AttendanceService(
            repos.attendance,
            repos.people,
            locks=locks,
            strategy_factory=TransitionStrategyFactory(),
        ),
        fee_service=FeeService(repos.payments, repos.people),
        inventory_service=InventoryService(repos.items, repos.transactions, repos.holdings, repos.people),
        expense_service=ExpenseService(repos.expenses),
    )


def build_container(*, db_config: dict, renderer: Optional[HtmlTermReportRenderer] = None) -> Container:
    config = DBConfig.from_dict(db_config)
    conn = DatabaseConnection.get_instance(config)
    return assemble(mysql_repositories(conn), conn=conn, renderer=renderer)
