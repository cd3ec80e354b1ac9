from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Optional

from ..core.enums import Level


@dataclass(frozen=True)
class InventoryItem:
    """A stock item or a folder in the inventory tree. Folders carry no stock."""

    item_id: int
    name: str
    is_folder: bool = False
    parent_id: Optional[int] = None
    category: str = ""
    description: str = ""
    size: str = ""
    stock_by_level: Dict[Level, int] = field(default_factory=dict)
    price_by_level: Dict[Level, int] = field(default_factory=dict)
    date_added: Optional[datetime] = None

    def stock_at(self, level: Level) -> int:
        return int(self.stock_by_level.get(Level(level), 0) or 0)

    def price_at(self, level: Level) -> int:
        return int(self.price_by_level.get(Level(level), 0) or 0)

    def total_stock(self) -> int:
        return sum(self.stock_at(level) for level in Level)

    def stock_value(self) -> int:
        return sum(self.stock_at(level) * self.price_at(level) for level in Level)


@dataclass(frozen=True)
class InventoryTransaction:
    transaction_id: int
    term_id: int
    item_id: int
    item_name: str
    size: str
    level: Level
    quantity: int
    item_price: int
    student_id: int
    student_name: str
    student_number: str
    class_name: str
    tx_date: datetime
    action: str = "checked_out"
    returned: bool = False
    return_date: Optional[datetime] = None
    paid: bool = False
    payment_date: Optional[datetime] = None
    refunded: bool = False
    refund_date: Optional[datetime] = None
    refund_amount: Optional[int] = None

    @property
    def amount(self) -> int:
        return max(0, self.item_price) * max(0, self.quantity)


@dataclass(frozen=True)
class Holding:
    """What a student currently holds of one item at one level."""

    holding_id: int
    student_id: int
    student_name: str
    student_number: str
    class_name: str
    item_id: int
    item_name: str
    size: str
    level: Level
    item_price: int
    quantity: int
    date_checked_out: datetime
    returned: bool = False
    return_date: Optional[datetime] = None
    paid: bool = False
    payment_date: Optional[datetime] = None
    refunded: bool = False
    transaction_id: Optional[int] = None


@dataclass(frozen=True)
class Refund:
    refund_id: int
    term_id: int
    transaction_id: Optional[int]
    item_id: int
    item_name: str
    level: Level
    student_id: int
    student_name: str
    quantity: int
    item_price: int
    amount: int
    refund_date: datetime
    reason: str
    payment_date: Optional[datetime] = None


@dataclass(frozen=True)
class InventoryStats:
    total_items: int
    total_stock: int
    checked_out: int
    total_value: int
