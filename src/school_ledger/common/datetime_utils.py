from __future__ import annotations

from datetime import date, datetime, time
from typing import Optional


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def day_key(day: date) -> str:
    """Key of a day record: ``{year}-{month}-{day}`` without zero padding."""
    return f"{day.year}-{day.month}-{day.day}"


def parse_day_key(key: str) -> Optional[date]:
    parts = (key or "").split("-")
    if len(parts) != 3:
        return None
    try:
        return date(int(parts[0]), int(parts[1]), int(parts[2]))
    except ValueError:
        return None


def normalized_day(day: date) -> datetime:
    """Noon of the given day; range queries stay clear of timezone edges."""
    return datetime.combine(day, time(12, 0))


def day_bounds(start: date, end: date) -> tuple[datetime, datetime]:
    """Inclusive [start 00:00, end 23:59:59.999999] window."""
    return datetime.combine(start, time.min), datetime.combine(end, time.max)


def stamp(moment: datetime) -> str:
    return moment.strftime("%d/%m/%Y, %H:%M:%S")
