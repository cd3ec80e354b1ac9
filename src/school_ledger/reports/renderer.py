from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Protocol

from jinja2 import Environment, FileSystemLoader, select_autoescape

from ..core.constants import DEFAULT_APPROVED_BY, DEFAULT_PREPARED_BY, DEFAULT_SCHOOL_NAME
from ..terms.model import TermSnapshot

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"


class SnapshotRenderer(Protocol):
    def render(self, snapshot: TermSnapshot, *, now: datetime) -> str:
        raise NotImplementedError


def money(value) -> str:
    return f"₦{max(0, round(float(value or 0))):,}"


def number(value) -> str:
    return f"{max(0, int(value or 0)):,}"


def short_date(value) -> str:
    if not value:
        return "—"
    return value.strftime("%d/%m/%Y")


class HtmlTermReportRenderer:
    """Printable HTML term snapshot."""

    def __init__(
        self,
        *,
        school_name: str = DEFAULT_SCHOOL_NAME,
        prepared_by: str = DEFAULT_PREPARED_BY,
        approved_by: str = DEFAULT_APPROVED_BY,
        templates_dir: Path = TEMPLATES_DIR,
    ):
        self._school_name = school_name
        self._prepared_by = prepared_by
        self._approved_by = approved_by
        self._env = Environment(
            loader=FileSystemLoader(str(templates_dir)),
            autoescape=select_autoescape(["html"]),
        )
        self._env.filters["money"] = money
        self._env.filters["number"] = number
        self._env.filters["short_date"] = short_date

    def render(self, snapshot: TermSnapshot, *, now: datetime) -> str:
        surplus = snapshot.net >= 0
        return self._env.get_template("term_report.html").render(
            s=snapshot,
            school_name=self._school_name,
            prepared_by=self._prepared_by,
            approved_by=self._approved_by,
            generated_at=now.strftime("%d/%m/%Y, %H:%M:%S"),
            net_label="Net surplus" if surplus else "Net deficit",
            verdict="surplus" if surplus else "deficit",
            tone="positive" if surplus else "negative",
        )
