from __future__ import annotations

from datetime import datetime
from typing import Mapping, Optional, Protocol, Sequence

from ..core.enums import Level
from .model import Holding, InventoryItem, InventoryTransaction, Refund


class ItemRepository(Protocol):
    def get_by_id(self, item_id: int) -> Optional[InventoryItem]:
        raise NotImplementedError

    def list_all(self) -> Sequence[InventoryItem]:
        raise NotImplementedError

    def has_children(self, folder_id: int) -> bool:
        raise NotImplementedError

    def create(
        self,
        *,
        name: str,
        is_folder: bool,
        parent_id: Optional[int],
        category: str,
        description: str,
        size: str,
        stock_by_level: Mapping[Level, int],
        price_by_level: Mapping[Level, int],
        date_added: datetime,
    ) -> int:
        raise NotImplementedError

    def update(
        self,
        *,
        item_id: int,
        name: str,
        parent_id: Optional[int],
        category: str,
        description: str,
        size: str,
        stock_by_level: Mapping[Level, int],
        price_by_level: Mapping[Level, int],
    ) -> bool:
        raise NotImplementedError

    def delete_by_id(self, item_id: int) -> bool:
        raise NotImplementedError

    def adjust_stock(self, *, item_id: int, level: Level, delta: int) -> bool:
        """Add ``delta`` to one level in place; False if the item is gone or stock would go negative."""

        raise NotImplementedError


class TransactionRepository(Protocol):
    def get_by_id(self, transaction_id: int) -> Optional[InventoryTransaction]:
        raise NotImplementedError

    def create(
        self,
        *,
        term_id: int,
        item_id: int,
        item_name: str,
        size: str,
        level: Level,
        quantity: int,
        item_price: int,
        student_id: int,
        student_name: str,
        student_number: str,
        class_name: str,
        tx_date: datetime,
        paid: bool,
    ) -> int:
        raise NotImplementedError

    def list_for_term(self, term_id: int) -> Sequence[InventoryTransaction]:
        raise NotImplementedError

    def list_open(self, *, student_id: int, item_id: int, level: Level) -> Sequence[InventoryTransaction]:
        """Checkouts of one item at one level that the student has not returned."""
        raise NotImplementedError

    def mark_paid(self, *, transaction_id: int, payment_date: datetime) -> bool:
        raise NotImplementedError

    def mark_returned(self, *, transaction_id: int, return_date: datetime) -> bool:
        raise NotImplementedError

    def mark_refunded(self, *, transaction_id: int, refund_date: datetime, refund_amount: int) -> bool:
        raise NotImplementedError

    def delete_by_id(self, transaction_id: int) -> bool:
        raise NotImplementedError

    def create_refund(
        self,
        *,
        term_id: int,
        transaction_id: Optional[int],
        item_id: int,
        item_name: str,
        level: Level,
        student_id: int,
        student_name: str,
        quantity: int,
        item_price: int,
        amount: int,
        refund_date: datetime,
        payment_date: Optional[datetime],
        reason: str,
    ) -> int:
        raise NotImplementedError

    def list_refunds_for_term(self, term_id: int) -> Sequence[Refund]:
        raise NotImplementedError


class HoldingRepository(Protocol):
    def get_by_id(self, holding_id: int) -> Optional[Holding]:
        raise NotImplementedError

    def find_open(self, *, student_id: int, item_id: int, level: Level) -> Optional[Holding]:
        raise NotImplementedError

    def create(
        self,
        *,
        student_id: int,
        student_name: str,
        student_number: str,
        class_name: str,
        item_id: int,
        item_name: str,
        size: str,
        level: Level,
        item_price: int,
        quantity: int,
        date_checked_out: datetime,
        paid: bool,
        transaction_id: int,
    ) -> int:
        raise NotImplementedError

    def add_quantity(self, *, holding_id: int, quantity: int) -> bool:
        raise NotImplementedError

    def set_quantity(self, *, holding_id: int, quantity: int) -> bool:
        raise NotImplementedError

    def mark_returned(self, *, holding_id: int, return_date: datetime) -> bool:
        raise NotImplementedError

    def mark_paid(self, *, holding_id: int, payment_date: datetime) -> bool:
        raise NotImplementedError

    def mark_refunded(self, *, holding_id: int) -> bool:
        """refunded=True, paid=False."""

        raise NotImplementedError

    def delete_by_id(self, holding_id: int) -> bool:
        raise NotImplementedError

    def list_for_student(self, student_id: int) -> Sequence[Holding]:
        raise NotImplementedError

    def list_all(self) -> Sequence[Holding]:
        raise NotImplementedError
