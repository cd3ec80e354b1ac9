from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Sequence

from ..common.datetime_utils import now_local, stamp
from ..common.live import notify_changed
from ..core.exceptions import NotFoundError
from ..reports.renderer import SnapshotRenderer
from ..reports.service import TermReportService
from .model import Term, TermContext, TermSnapshot
from .repository import TermRepository

logger = logging.getLogger(__name__)

TERMS = "terms"


@dataclass(frozen=True)
class RolloverResult:
    snapshot: TermSnapshot
    report_html: str
    closed_term_id: int
    new_term: TermContext


def next_term_name(previous: Optional[str], now: datetime) -> str:
    if previous:
        return f"{previous} → New ({stamp(now)})"
    return f"New Term ({stamp(now)})"


class TermService:
    def __init__(self, terms: TermRepository, reports: TermReportService):
        self._terms = terms
        self._reports = reports

    def list_terms(self) -> Sequence[Term]:
        return self._terms.list_all()

    def active_term(self) -> Term:
        term_id = self._terms.get_active_term_id()
        if term_id is None:
            raise NotFoundError("No active term")
        term = self._terms.get_by_id(term_id)
        if not term:
            raise NotFoundError(f"Active term {term_id} does not exist")
        return term

    def active_context(self) -> TermContext:
        return TermContext.of(self.active_term())

    def ensure_active_term(self, *, now: datetime | None = None) -> TermContext:
        """Point at a fresh first term when no usable pointer exists."""
        term_id = self._terms.get_active_term_id()
        if term_id is not None:
            term = self._terms.get_by_id(term_id)
            if term:
                return TermContext.of(term)

        now = now or now_local()
        name = next_term_name(None, now)
        new_id = self._terms.create(term_name=name, start_at=now)
        self._terms.set_active_term_id(new_id)
        logger.info("created first term %s (%s)", new_id, name)
        notify_changed(TERMS, term_id=new_id)
        return TermContext(term_id=new_id, term_name=name)

    def snapshot(self, term_id: int) -> TermSnapshot:
        return self._reports.snapshot(term_id)

    def close_and_start_new(self, renderer: SnapshotRenderer, *, now: datetime | None = None) -> RolloverResult:
        """Snapshot and render the active term, close it, open the next and repoint.

        The steps run one after another without a transaction. If the active
        term is already closed (an earlier run stopped after closing), the
        close step is skipped and the run continues with create and repoint.
        """
        now = now or now_local()
        current = self.active_term()
        done: list[str] = []
        try:
            snap = self._reports.snapshot(current.term_id)
            done.append("snapshot")
            html = renderer.render(snap, now=now)
            done.append("render")

            if current.closed:
                logger.warning("term %s already closed; resuming rollover after close", current.term_id)
            else:
                self._terms.close(term_id=current.term_id, end_at=now)
                done.append("close")

            name = next_term_name(current.term_name, now)
            new_id = self._terms.create(term_name=name, start_at=now)
            done.append(f"create {new_id}")

            self._terms.set_active_term_id(new_id)
            done.append("repoint")
        except Exception:
            logger.exception("rollover of term %s stopped after steps %s", current.term_id, done)
            raise

        logger.info("rolled term %s over to %s: %s", current.term_id, new_id, done)
        notify_changed(TERMS, term_id=new_id)
        return RolloverResult(
            snapshot=snap,
            report_html=html,
            closed_term_id=current.term_id,
            new_term=TermContext(term_id=new_id, term_name=name),
        )
