from __future__ import annotations

import json
from contextlib import contextmanager
from typing import Any, Dict, List, Optional

from .connection import DatabaseConnection


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    conn = conn_factory.connect()
    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def load_json(value: Any, default: Any) -> Any:
    """Normalize MySQL JSON column values across connector implementations.

    mysql-connector can return JSON as:
    - str (pure-python connector)
    - bytes/bytearray (C extension)
    - an already decoded dict/list
    """

    if value is None:
        return default

    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8")

    if isinstance(value, str):
        value = value.strip()
        if not value:
            return default
        return json.loads(value)

    if isinstance(value, (dict, list)):
        return value

    raise TypeError(f"Unsupported MySQL JSON value type: {type(value)!r}")


def dump_json(value: Any) -> str:
    return json.dumps(value, default=str, ensure_ascii=False)
