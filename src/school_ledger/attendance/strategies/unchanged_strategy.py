from __future__ import annotations

from ...core.enums import AttendanceStatus
from ...directory.model import CounterDelta
from .base import CounterSnapshot, TransitionStrategy


class UnchangedStrategy(TransitionStrategy):
    """Same status again: the entry is refreshed, counters stay."""

    def delta(self, *, status: AttendanceStatus, current: CounterSnapshot) -> CounterDelta:
        return CounterDelta()
