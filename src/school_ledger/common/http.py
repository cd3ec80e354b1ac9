"""Flask helpers shared by the feature controllers."""

from __future__ import annotations

import csv
import dataclasses
import io
from datetime import date, datetime
from enum import Enum
from functools import wraps
from typing import Any, Iterable, Optional, Sequence

from flask import Flask, request, session

from ..core.exceptions import ValidationError
from ..permissions.capability import Capability
from .datetime_utils import parse_iso_date


def current_capability() -> Capability:
    return Capability.from_permissions({"role": session.get("role"), "sections": session.get("sections")})


def section_required(section):
    """Evaluate the session capability once and reject before the view runs."""

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            current_capability().require(section)
            return view(*args, **kwargs)

        return wrapper

    return decorator


def serialize(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: serialize(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(serialize(k)): serialize(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [serialize(v) for v in value]
    return value


def json_payload() -> dict:
    return request.get_json(silent=True) or {}


def date_arg(raw: Optional[str], field_name: str, *, default: Optional[date] = None) -> Optional[date]:
    if not raw:
        return default
    try:
        return parse_iso_date(raw)
    except ValueError:
        raise ValidationError(f"{field_name} must be YYYY-MM-DD")


def int_arg(raw: Any, field_name: str) -> int:
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number")


def csv_response(app: Flask, *, rows: Iterable[dict], fieldnames: Sequence[str], filename: str):
    out = io.StringIO()
    writer = csv.DictWriter(out, fieldnames=list(fieldnames))
    writer.writeheader()
    for row in rows:
        writer.writerow(row)

    csv_bytes = out.getvalue().encode("utf-8-sig")
    return app.response_class(
        csv_bytes,
        mimetype="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )
