from __future__ import annotations

from datetime import datetime
from typing import Mapping, Optional, Sequence

from ..core.enums import Level
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_json, fetchall, fetchone, load_json
from .model import InventoryItem
from .repository import ItemRepository

_COLUMNS = """
    item_id, is_folder, parent_id, name, category, description, size,
    stock_by_level, price_by_level, date_added
"""


def _levels(raw) -> dict[Level, int]:
    out: dict[Level, int] = {}
    for key, value in (load_json(raw, {}) or {}).items():
        try:
            out[Level(key)] = int(value or 0)
        except ValueError:
            continue
    return out


def _dump_levels(values: Mapping[Level, int]) -> str:
    return dump_json({Level(k).value: int(v) for k, v in values.items()})


def _to_item(r: dict) -> InventoryItem:
    parent = r.get("parent_id")
    return InventoryItem(
        item_id=int(r["item_id"]),
        name=r["name"],
        is_folder=bool(r.get("is_folder")),
        parent_id=int(parent) if parent is not None else None,
        category=r.get("category") or "",
        description=r.get("description") or "",
        size=r.get("size") or "",
        stock_by_level=_levels(r.get("stock_by_level")),
        price_by_level=_levels(r.get("price_by_level")),
        date_added=r.get("date_added"),
    )


class MySQLItemRepository(ItemRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, item_id: int) -> Optional[InventoryItem]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM inventory_items WHERE item_id=%s", (int(item_id),))
            r = fetchone(cur)
            return _to_item(r) if r else None

    def list_all(self) -> Sequence[InventoryItem]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM inventory_items ORDER BY is_folder DESC, name")
            return [_to_item(r) for r in fetchall(cur)]

    def has_children(self, folder_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT 1 AS x FROM inventory_items WHERE parent_id=%s LIMIT 1", (int(folder_id),))
            return fetchone(cur) is not None

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO inventory_items(is_folder, parent_id, name, category, description, size,
                                            stock_by_level, price_by_level, date_added)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    1 if is_folder else 0,
                    parent_id,
                    name,
                    category,
                    description,
                    size,
                    _dump_levels(stock_by_level),
                    _dump_levels(price_by_level),
                    date_added,
                ),
            )
            return int(cur.lastrowid)

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE inventory_items
                SET name=%s, parent_id=%s, category=%s, description=%s, size=%s,
                    stock_by_level=%s, price_by_level=%s
                WHERE item_id=%s
                """,
                (
                    name,
                    parent_id,
                    category,
                    description,
                    size,
                    _dump_levels(stock_by_level),
                    _dump_levels(price_by_level),
                    int(item_id),
                ),
            )
            return cur.rowcount > 0

    def delete_by_id(self, item_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM inventory_items WHERE item_id=%s", (int(item_id),))
            return cur.rowcount > 0

    def adjust_stock(self, *, item_id: int, level: Level, delta: int) -> bool:
        path = f"$.{Level(level).value}"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE inventory_items
                SET stock_by_level = JSON_SET(
                    COALESCE(stock_by_level, JSON_OBJECT()),
                    %s,
                    COALESCE(JSON_EXTRACT(stock_by_level, %s), 0) + %s
                )
                WHERE item_id=%s AND is_folder=0
                  AND COALESCE(JSON_EXTRACT(stock_by_level, %s), 0) + %s >= 0
                """,
                (path, path, int(delta), int(item_id), path, int(delta)),
            )
            return cur.rowcount > 0
