from __future__ import annotations

from ...core.enums import AttendanceStatus
from ...directory.model import CounterDelta
from .base import CounterSnapshot, TransitionStrategy


class FirstMarkStrategy(TransitionStrategy):
    """No entry yet for the day."""

    def delta(self, *, status: AttendanceStatus, current: CounterSnapshot) -> CounterDelta:
        if status == AttendanceStatus.PRESENT:
            return CounterDelta(times_present=1, term_times_present=1)
        return CounterDelta(times_absent=1, term_times_absent=1)
