from __future__ import annotations

from dataclasses import replace
from datetime import datetime

import pytest

from school_ledger.container import Repositories, assemble
from school_ledger.core.enums import Level, Population
from school_ledger.directory.model import Person
from school_ledger.expenses.model import Expense
from school_ledger.fees.model import Payment
from school_ledger.inventory.model import Holding, InventoryItem, InventoryTransaction, Refund
from school_ledger.attendance.model import DayRecord
from school_ledger.terms.model import Term, TermContext


class _Ids:
    def __init__(self):
        self._next = 1

    def take(self) -> int:
        value = self._next
        self._next += 1
        return value


class InMemoryTerms:
    def __init__(self):
        self._ids = _Ids()
        self.terms: dict[int, Term] = {}
        self.active_id = None

    def get_by_id(self, term_id):
        return self.terms.get(int(term_id))

    def list_all(self):
        return sorted(self.terms.values(), key=lambda t: t.start_at, reverse=True)

    def create(self, *, term_name, start_at):
        tid = self._ids.take()
        self.terms[tid] = Term(term_id=tid, term_name=term_name, start_at=start_at)
        return tid

    def close(self, *, term_id, end_at):
        term = self.terms.get(int(term_id))
        if not term:
            return False
        self.terms[term.term_id] = replace(term, closed=True, end_at=end_at)
        return True

    def get_active_term_id(self):
        return self.active_id

    def set_active_term_id(self, term_id):
        self.active_id = int(term_id)


class InMemoryPeople:
    def __init__(self):
        self._ids = _Ids()
        self.people: dict[int, Person] = {}

    def get_by_id(self, person_id):
        return self.people.get(int(person_id))

    def list_by_kind(self, kind):
        return sorted((p for p in self.people.values() if p.kind == kind), key=lambda p: (p.class_name, p.name))

    def count(self, kind):
        return len(self.list_by_kind(kind))

    def list_student_numbers(self):
        return [p.student_number for p in self.people.values() if p.student_number]

    def create(self, *, kind, name, class_name, student_number=None, parent_phone=None):
        pid = self._ids.take()
        self.people[pid] = Person(
            person_id=pid,
            kind=Population(kind),
            name=name,
            class_name=class_name,
            student_number=student_number,
            parent_phone=parent_phone,
        )
        return pid

    def update_identity(self, *, person_id, name, class_name, parent_phone=None):
        person = self.people.get(int(person_id))
        if not person:
            return False
        self.people[person.person_id] = replace(person, name=name, class_name=class_name, parent_phone=parent_phone)
        return True

    def delete_by_id(self, person_id):
        return self.people.pop(int(person_id), None) is not None

    def reset_term_counters(self, *, person_id, term_id):
        person = self.people[int(person_id)]
        self.people[person.person_id] = replace(
            person,
            term_times_present=0,
            term_times_absent=0,
            last_attendance_term_id=int(term_id),
        )

    def apply_counter_delta(self, *, person_id, delta):
        person = self.people[int(person_id)]
        self.people[person.person_id] = replace(
            person,
            times_present=person.times_present + delta.times_present,
            times_absent=person.times_absent + delta.times_absent,
            term_times_present=person.term_times_present + delta.term_times_present,
            term_times_absent=person.term_times_absent + delta.term_times_absent,
        )


class InMemoryAttendance:
    def __init__(self):
        self.days: dict[tuple[Population, str], DayRecord] = {}
        self.saves = 0

    def get_day(self, population, day_key):
        return self.days.get((Population(population), day_key))

    def create_day_if_absent(self, population, *, day_key, day_date, term_id):
        key = (Population(population), day_key)
        if key not in self.days:
            self.days[key] = DayRecord(
                population=Population(population),
                day_key=day_key,
                day_date=day_date,
                term_id=term_id,
            )
        return self.days[key]

    def save_records(self, population, *, day_key, records, present_count):
        key = (Population(population), day_key)
        self.days[key] = replace(self.days[key], records=dict(records), present_count=present_count)
        self.saves += 1

    def delete_day(self, population, day_key):
        return self.days.pop((Population(population), day_key), None) is not None

    def list_days(self, population, *, start=None, end=None):
        out = [
            d
            for (pop, _), d in self.days.items()
            if pop == population
            and (start is None or d.day_date >= start)
            and (end is None or d.day_date <= end)
        ]
        return sorted(out, key=lambda d: d.day_date)

    def list_days_with_person(self, population, person_id):
        return [d for d in self.list_days(population) if int(person_id) in d.records]

    def sum_present_for_term(self, population, term_id):
        return sum(d.present_count for d in self.list_days(population) if d.term_id == term_id)


class InMemoryPayments:
    def __init__(self):
        self._ids = _Ids()
        self.payments: dict[int, Payment] = {}

    def get_by_id(self, payment_id):
        return self.payments.get(int(payment_id))

    def create(self, **fields):
        pid = self._ids.take()
        self.payments[pid] = Payment(payment_id=pid, **fields)
        return pid

    def delete_by_id(self, payment_id):
        return self.payments.pop(int(payment_id), None) is not None

    def delete_for_student(self, student_id):
        doomed = [pid for pid, p in self.payments.items() if p.student_id == int(student_id)]
        for pid in doomed:
            del self.payments[pid]
        return len(doomed)

    def sum_for_student(self, *, term_id, student_id):
        return sum(p.amount for p in self.list_for_student(term_id=term_id, student_id=student_id))

    def list_for_student(self, *, term_id, student_id):
        return [p for p in self.list_for_term(term_id) if p.student_id == int(student_id)]

    def list_for_term(self, term_id):
        return sorted(
            (p for p in self.payments.values() if p.term_id == int(term_id)),
            key=lambda p: (p.paid_at, p.payment_id),
        )


class InMemoryItems:
    def __init__(self):
        self._ids = _Ids()
        self.items: dict[int, InventoryItem] = {}

    def get_by_id(self, item_id):
        return self.items.get(int(item_id))

    def list_all(self):
        return list(self.items.values())

    def has_children(self, folder_id):
        return any(i.parent_id == int(folder_id) for i in self.items.values())

    def create(self, *, name, is_folder, parent_id, category, description, size, stock_by_level, price_by_level, date_added):
        iid = self._ids.take()
        self.items[iid] = InventoryItem(
            item_id=iid,
            name=name,
            is_folder=is_folder,
            parent_id=parent_id,
            category=category,
            description=description,
            size=size,
            stock_by_level=dict(stock_by_level),
            price_by_level=dict(price_by_level),
            date_added=date_added,
        )
        return iid

    def update(self, *, item_id, name, parent_id, category, description, size, stock_by_level, price_by_level):
        item = self.items.get(int(item_id))
        if not item:
            return False
        self.items[item.item_id] = replace(
            item,
            name=name,
            parent_id=parent_id,
            category=category,
            description=description,
            size=size,
            stock_by_level=dict(stock_by_level),
            price_by_level=dict(price_by_level),
        )
        return True

    def delete_by_id(self, item_id):
        return self.items.pop(int(item_id), None) is not None

    def adjust_stock(self, *, item_id, level, delta):
        item = self.items.get(int(item_id))
        if not item or item.is_folder:
            return False
        new_value = item.stock_at(level) + int(delta)
        if new_value < 0:
            return False
        stock = dict(item.stock_by_level)
        stock[Level(level)] = new_value
        self.items[item.item_id] = replace(item, stock_by_level=stock)
        return True


class InMemoryTransactions:
    def __init__(self):
        self._ids = _Ids()
        self._refund_ids = _Ids()
        self.transactions: dict[int, InventoryTransaction] = {}
        self.refunds: dict[int, Refund] = {}

    def get_by_id(self, transaction_id):
        return self.transactions.get(int(transaction_id))

    def create(self, *, paid, tx_date, **fields):
        tid = self._ids.take()
        self.transactions[tid] = InventoryTransaction(
            transaction_id=tid,
            tx_date=tx_date,
            paid=paid,
            payment_date=tx_date if paid else None,
            **fields,
        )
        return tid

    def list_for_term(self, term_id):
        return [t for t in self.transactions.values() if t.term_id == int(term_id)]

    def list_open(self, *, student_id, item_id, level):
        return [
            t
            for t in self.transactions.values()
            if t.student_id == int(student_id) and t.item_id == int(item_id) and t.level == level and not t.returned
        ]

    def _update(self, transaction_id, **changes):
        tx = self.transactions.get(int(transaction_id))
        if not tx:
            return False
        self.transactions[tx.transaction_id] = replace(tx, **changes)
        return True

    def mark_paid(self, *, transaction_id, payment_date):
        return self._update(transaction_id, paid=True, payment_date=payment_date)

    def mark_returned(self, *, transaction_id, return_date):
        tx = self.transactions.get(int(transaction_id))
        if not tx or tx.returned:
            return False
        return self._update(transaction_id, returned=True, return_date=return_date)

    def mark_refunded(self, *, transaction_id, refund_date, refund_amount):
        return self._update(transaction_id, refunded=True, refund_date=refund_date, refund_amount=refund_amount)

    def delete_by_id(self, transaction_id):
        return self.transactions.pop(int(transaction_id), None) is not None

    def create_refund(self, **fields):
        rid = self._refund_ids.take()
        self.refunds[rid] = Refund(refund_id=rid, **fields)
        return rid

    def list_refunds_for_term(self, term_id):
        return [r for r in self.refunds.values() if r.term_id == int(term_id)]


class InMemoryHoldings:
    def __init__(self):
        self._ids = _Ids()
        self.holdings: dict[int, Holding] = {}

    def get_by_id(self, holding_id):
        return self.holdings.get(int(holding_id))

    def find_open(self, *, student_id, item_id, level):
        for h in self.holdings.values():
            if h.student_id == student_id and h.item_id == item_id and h.level == level and not h.returned:
                return h
        return None

    def create(self, **fields):
        hid = self._ids.take()
        self.holdings[hid] = Holding(holding_id=hid, **fields)
        return hid

    def _update(self, holding_id, **changes):
        h = self.holdings.get(int(holding_id))
        if not h:
            return False
        self.holdings[h.holding_id] = replace(h, **changes)
        return True

    def add_quantity(self, *, holding_id, quantity):
        h = self.holdings[int(holding_id)]
        return self._update(holding_id, quantity=h.quantity + int(quantity))

    def set_quantity(self, *, holding_id, quantity):
        return self._update(holding_id, quantity=int(quantity))

    def mark_returned(self, *, holding_id, return_date):
        return self._update(holding_id, returned=True, return_date=return_date)

    def mark_paid(self, *, holding_id, payment_date):
        return self._update(holding_id, paid=True, payment_date=payment_date)

    def mark_refunded(self, *, holding_id):
        return self._update(holding_id, refunded=True, paid=False)

    def delete_by_id(self, holding_id):
        return self.holdings.pop(int(holding_id), None) is not None

    def list_for_student(self, student_id):
        return [h for h in self.holdings.values() if h.student_id == int(student_id)]

    def list_all(self):
        return list(self.holdings.values())


class InMemoryExpenses:
    def __init__(self):
        self._ids = _Ids()
        self.expenses: dict[int, Expense] = {}

    def get_by_id(self, expense_id):
        return self.expenses.get(int(expense_id))

    def create(self, **fields):
        eid = self._ids.take()
        self.expenses[eid] = Expense(expense_id=eid, **fields)
        return eid

    def update(self, *, expense_id, **changes):
        e = self.expenses.get(int(expense_id))
        if not e:
            return False
        self.expenses[e.expense_id] = replace(e, **changes)
        return True

    def delete_by_id(self, expense_id):
        return self.expenses.pop(int(expense_id), None) is not None

    def list_for_term(self, term_id, *, start=None, end=None):
        out = [
            e
            for e in self.expenses.values()
            if e.term_id == int(term_id)
            and (start is None or e.expense_date >= start)
            and (end is None or e.expense_date <= end)
        ]
        return sorted(out, key=lambda e: e.expense_date, reverse=True)


@pytest.fixture
def fixed_now():
    return datetime(2026, 2, 10, 9, 30, 0)


@pytest.fixture
def repos():
    return Repositories(
        terms=InMemoryTerms(),
        people=InMemoryPeople(),
        attendance=InMemoryAttendance(),
        payments=InMemoryPayments(),
        items=InMemoryItems(),
        transactions=InMemoryTransactions(),
        holdings=InMemoryHoldings(),
        expenses=InMemoryExpenses(),
    )


@pytest.fixture
def container(repos):
    return assemble(repos)


@pytest.fixture
def term(container, fixed_now) -> TermContext:
    return container.term_service.ensure_active_term(now=fixed_now)


@pytest.fixture
def add_student(container):
    def _add(name: str, class_name: str = "JS1 A", **kwargs):
        return container.directory_service.add_person(Population.STUDENTS, name=name, class_name=class_name, **kwargs)

    return _add


@pytest.fixture
def add_teacher(container):
    def _add(name: str, class_name: str = "Basic 1 A"):
        return container.directory_service.add_person(Population.TEACHERS, name=name, class_name=class_name)

    return _add


@pytest.fixture
def app(container):
    from school_ledger.main import create_app

    app = create_app(container, settings_module="school_ledger.config.testing")
    return app


def _client_with(app, permissions: dict):
    client = app.test_client()
    with client.session_transaction() as sess:
        sess.update(permissions)
    return client


@pytest.fixture
def admin_client(app):
    return _client_with(app, {"user_id": "admin-1", "role": "admin", "sections": []})


@pytest.fixture
def staff_client_factory(app):
    def _make(sections):
        return _client_with(app, {"user_id": "staff-1", "role": "staff", "sections": sections})

    return _make
