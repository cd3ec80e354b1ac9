from __future__ import annotations

import logging
from datetime import datetime
from typing import Mapping, Optional, Sequence

from ..common.datetime_utils import now_local
from ..common.live import notify_changed
from ..common.validators import require_non_empty, require_non_negative, require_positive, strip_or_empty
from ..core.constants import REFUND_REASON_HOLDING_DELETE, REFUND_REASON_RETURN
from ..core.enums import Level, Population
from ..core.exceptions import InsufficientStockError, NotEmptyError, NotFoundError, ValidationError
from ..directory.repository import PersonRepository
from ..terms.model import TermContext
from .model import Holding, InventoryItem, InventoryStats, InventoryTransaction, Refund
from .repository import HoldingRepository, ItemRepository, TransactionRepository

logger = logging.getLogger(__name__)

ITEMS = "inventory"
TRANSACTIONS = "inventory_transactions"
HOLDINGS = "student_inventory"
REFUNDS = "inventory_refunds"


def parse_level(value) -> Level:
    try:
        return Level(value)
    except ValueError:
        raise ValidationError(f"Unknown level: {value}")


def parse_levels(raw: Optional[Mapping], field_name: str) -> dict[Level, int]:
    """Per-level numbers from a ``{level: n}`` mapping; negatives are rejected."""
    out: dict[Level, int] = {}
    for key, value in (raw or {}).items():
        out[parse_level(key)] = require_non_negative(value or 0, f"{field_name} ({key})")
    return out


class InventoryService:
    def __init__(
        self,
        items: ItemRepository,
        transactions: TransactionRepository,
        holdings: HoldingRepository,
        people: PersonRepository,
    ):
        self._items = items
        self._transactions = transactions
        self._holdings = holdings
        self._people = people

    # --- tree ---

    def list_tree(self) -> Sequence[InventoryItem]:
        return self._items.list_all()

    def children_of(self, folder_id: Optional[int]) -> Sequence[InventoryItem]:
        return [i for i in self._items.list_all() if i.parent_id == folder_id]

    def create_folder(self, name: str, *, parent_id: Optional[int] = None, now: datetime | None = None) -> int:
        name = require_non_empty(name, "Folder name")
        self._require_folder(parent_id)
        folder_id = self._items.create(
            name=name,
            is_folder=True,
            parent_id=parent_id,
            category="",
            description="",
            size="",
            stock_by_level={},
            price_by_level={},
            date_added=now or now_local(),
        )
        notify_changed(ITEMS, item_id=folder_id)
        return folder_id

    def delete_folder(self, folder_id: int) -> None:
        folder = self._items.get_by_id(folder_id)
        if not folder or not folder.is_folder:
            raise NotFoundError(f"No folder with id {folder_id}")
        if self._items.has_children(folder.item_id):
            raise NotEmptyError(f"Folder '{folder.name}' is not empty")
        self._items.delete_by_id(folder.item_id)
        notify_changed(ITEMS, item_id=folder.item_id)

    def create_item(
        self,
        *,
        name: str,
        parent_id: Optional[int] = None,
        category: str = "",
        description: str = "",
        size: str = "",
        stock_by_level: Optional[Mapping] = None,
        price_by_level: Optional[Mapping] = None,
        now: datetime | None = None,
    ) -> int:
        name = require_non_empty(name, "Item name")
        self._require_folder(parent_id)
        item_id = self._items.create(
            name=name,
            is_folder=False,
            parent_id=parent_id,
            category=strip_or_empty(category),
            description=strip_or_empty(description),
            size=strip_or_empty(size),
            stock_by_level=parse_levels(stock_by_level, "Stock"),
            price_by_level=parse_levels(price_by_level, "Price"),
            date_added=now or now_local(),
        )
        notify_changed(ITEMS, item_id=item_id)
        return item_id

    def update_item(
        self,
        item_id: int,
        *,
        name: str,
        parent_id: Optional[int] = None,
        category: str = "",
        description: str = "",
        size: str = "",
        stock_by_level: Optional[Mapping] = None,
        price_by_level: Optional[Mapping] = None,
    ) -> InventoryItem:
        item = self._get_item(item_id)
        self._require_folder(parent_id)
        self._items.update(
            item_id=item.item_id,
            name=require_non_empty(name, "Item name"),
            parent_id=parent_id,
            category=strip_or_empty(category),
            description=strip_or_empty(description),
            size=strip_or_empty(size),
            stock_by_level=parse_levels(stock_by_level, "Stock"),
            price_by_level=parse_levels(price_by_level, "Price"),
        )
        notify_changed(ITEMS, item_id=item.item_id)
        return self._get_item(item_id)

    def delete_item(self, item_id: int) -> None:
        """Historical transactions keep their copied name and price."""
        item = self._get_item(item_id)
        self._items.delete_by_id(item.item_id)
        notify_changed(ITEMS, item_id=item.item_id)

    # --- ledger ---

    def check_out(
        self,
        term: TermContext,
        *,
        item_id: int,
        level: Level,
        quantity: int,
        student_id: int,
        now: datetime | None = None,
    ) -> InventoryTransaction:
        now = now or now_local()
        level = parse_level(level)
        quantity = require_positive(quantity, "Quantity")

        item = self._get_item(item_id)
        student = self._people.get_by_id(student_id)
        if not student or student.kind != Population.STUDENTS:
            raise NotFoundError(f"No student with id {student_id}")

        available = item.stock_at(level)
        if quantity > available or not self._items.adjust_stock(item_id=item.item_id, level=level, delta=-quantity):
            raise InsufficientStockError(f"Only {available} available for {level.value}", available=available)

        unit_price = item.price_at(level)
        tx_id = self._transactions.create(
            term_id=term.term_id,
            item_id=item.item_id,
            item_name=item.name,
            size=item.size,
            level=level,
            quantity=quantity,
            item_price=unit_price,
            student_id=student.person_id,
            student_name=student.name,
            student_number=student.student_number or "",
            class_name=student.class_name,
            tx_date=now,
            paid=unit_price == 0,
        )

        holding = self._holdings.find_open(student_id=student.person_id, item_id=item.item_id, level=level)
        if holding:
            self._holdings.add_quantity(holding_id=holding.holding_id, quantity=quantity)
        else:
            self._holdings.create(
                student_id=student.person_id,
                student_name=student.name,
                student_number=student.student_number or "",
                class_name=student.class_name,
                item_id=item.item_id,
                item_name=item.name,
                size=item.size,
                level=level,
                item_price=unit_price,
                quantity=quantity,
                date_checked_out=now,
                paid=unit_price == 0,
                transaction_id=tx_id,
            )

        logger.info("checked out %d x %s (%s) to student %s", quantity, item.name, level.value, student.person_id)
        self._announce(item_id=item.item_id, student_id=student.person_id)
        return self._get_transaction(tx_id)

    def mark_paid(self, transaction_id: int, *, now: datetime | None = None) -> InventoryTransaction:
        now = now or now_local()
        tx = self._get_transaction(transaction_id)
        self._transactions.mark_paid(transaction_id=tx.transaction_id, payment_date=now)

        holding = self._holdings.find_open(student_id=tx.student_id, item_id=tx.item_id, level=tx.level)
        if holding:
            self._holdings.mark_paid(holding_id=holding.holding_id, payment_date=now)

        self._announce(item_id=tx.item_id, student_id=tx.student_id)
        return self._get_transaction(tx.transaction_id)

    def return_item(self, transaction_id: int, *, now: datetime | None = None) -> Optional[Refund]:
        """Return a checkout. Already returned transactions are left untouched.

        Returns the refund written when the transaction had been paid.
        """
        now = now or now_local()
        tx = self._get_transaction(transaction_id)
        if tx.returned:
            return None
        if not self._transactions.mark_returned(transaction_id=tx.transaction_id, return_date=now):
            return None

        if not self._items.adjust_stock(item_id=tx.item_id, level=tx.level, delta=tx.quantity):
            logger.warning("item %s no longer exists; stock not restored for tx %s", tx.item_id, tx.transaction_id)

        holding = self._holdings.find_open(student_id=tx.student_id, item_id=tx.item_id, level=tx.level)
        if holding:
            left = holding.quantity - tx.quantity
            if left <= 0:
                self._holdings.mark_returned(holding_id=holding.holding_id, return_date=now)
            else:
                self._holdings.set_quantity(holding_id=holding.holding_id, quantity=left)

        refund = None
        if tx.paid:
            amount = tx.item_price * tx.quantity
            self._transactions.mark_refunded(transaction_id=tx.transaction_id, refund_date=now, refund_amount=amount)
            refund = self._log_refund(
                term_id=tx.term_id,
                transaction_id=tx.transaction_id,
                item_id=tx.item_id,
                item_name=tx.item_name,
                level=tx.level,
                student_id=tx.student_id,
                student_name=tx.student_name,
                quantity=tx.quantity,
                item_price=tx.item_price,
                amount=amount,
                refund_date=now,
                payment_date=tx.payment_date,
                reason=REFUND_REASON_RETURN,
            )
            if holding:
                self._holdings.mark_refunded(holding_id=holding.holding_id)

        self._announce(item_id=tx.item_id, student_id=tx.student_id)
        return refund

    def delete_holding(self, holding_id: int, term: TermContext, *, now: datetime | None = None) -> Optional[Refund]:
        """Retract a checkout outside the return flow.

        Restores stock for an open holding, refunds a paid one, then deletes the
        originating transaction, any other open checkout folded into the
        holding, and the holding itself. Each step is logged; a failure
        leaves the earlier steps applied.
        """
        now = now or now_local()
        holding = self._holdings.get_by_id(holding_id)
        if not holding:
            raise NotFoundError(f"No holding with id {holding_id}")

        steps: list[str] = []
        refund = None
        try:
            if not holding.returned:
                if self._items.adjust_stock(item_id=holding.item_id, level=holding.level, delta=holding.quantity):
                    steps.append("stock restored")
                else:
                    steps.append("stock skipped (item gone)")

            if holding.paid and holding.item_price > 0:
                payment_date = holding.payment_date
                if holding.transaction_id is not None:
                    tx = self._transactions.get_by_id(holding.transaction_id)
                    if tx:
                        payment_date = tx.payment_date
                refund = self._log_refund(
                    term_id=term.term_id,
                    transaction_id=holding.transaction_id,
                    item_id=holding.item_id,
                    item_name=holding.item_name,
                    level=holding.level,
                    student_id=holding.student_id,
                    student_name=holding.student_name,
                    quantity=holding.quantity,
                    item_price=holding.item_price,
                    amount=holding.item_price * holding.quantity,
                    refund_date=now,
                    payment_date=payment_date,
                    reason=REFUND_REASON_HOLDING_DELETE,
                )
                steps.append("refund logged")

            if holding.transaction_id is not None:
                self._transactions.delete_by_id(holding.transaction_id)
                steps.append("transaction deleted")

            # top-up checkouts are covered by the quantity restored above
            if not holding.returned:
                for tx in self._transactions.list_open(
                    student_id=holding.student_id, item_id=holding.item_id, level=holding.level
                ):
                    self._transactions.delete_by_id(tx.transaction_id)
                    steps.append(f"top-up transaction {tx.transaction_id} deleted")

            self._holdings.delete_by_id(holding.holding_id)
            steps.append("holding deleted")
        except Exception:
            logger.exception("deleting holding %s failed after: %s", holding.holding_id, steps)
            raise

        logger.info("deleted holding %s: %s", holding.holding_id, ", ".join(steps))
        self._announce(item_id=holding.item_id, student_id=holding.student_id)
        return refund

    # --- listings ---

    def transactions_for_term(self, term: TermContext) -> Sequence[InventoryTransaction]:
        return self._transactions.list_for_term(term.term_id)

    def refunds_for_term(self, term: TermContext) -> Sequence[Refund]:
        return self._transactions.list_refunds_for_term(term.term_id)

    def holdings_for_student(self, student_id: int) -> Sequence[Holding]:
        return self._holdings.list_for_student(student_id)

    def inventory_stats(self) -> InventoryStats:
        items = [i for i in self._items.list_all() if not i.is_folder]
        return InventoryStats(
            total_items=len(items),
            total_stock=sum(i.total_stock() for i in items),
            checked_out=sum(1 for h in self._holdings.list_all() if not h.returned),
            total_value=sum(i.stock_value() for i in items),
        )

    # --- helpers ---

    def _log_refund(self, **fields) -> Refund:
        refund_id = self._transactions.create_refund(**fields)
        notify_changed(REFUNDS, term_id=fields["term_id"])
        return Refund(refund_id=refund_id, **fields)

    def _get_item(self, item_id: int) -> InventoryItem:
        item = self._items.get_by_id(item_id)
        if not item or item.is_folder:
            raise NotFoundError(f"No item with id {item_id}")
        return item

    def _get_transaction(self, transaction_id: int) -> InventoryTransaction:
        tx = self._transactions.get_by_id(transaction_id)
        if not tx:
            raise NotFoundError(f"No transaction with id {transaction_id}")
        return tx

    def _require_folder(self, folder_id: Optional[int]) -> None:
        if folder_id is None:
            return
        folder = self._items.get_by_id(folder_id)
        if not folder or not folder.is_folder:
            raise NotFoundError(f"No folder with id {folder_id}")

    @staticmethod
    def _announce(*, item_id: int, student_id: int) -> None:
        for collection in (ITEMS, TRANSACTIONS, HOLDINGS):
            notify_changed(collection, item_id=item_id, student_id=student_id)
