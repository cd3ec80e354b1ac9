from __future__ import annotations

from ...core.enums import AttendanceStatus
from ...directory.model import CounterDelta
from .base import CounterSnapshot, TransitionStrategy, decrement


class SwitchStrategy(TransitionStrategy):
    """present -> absent or absent -> present."""

    def delta(self, *, status: AttendanceStatus, current: CounterSnapshot) -> CounterDelta:
        if status == AttendanceStatus.PRESENT:
            return CounterDelta(
                times_present=1,
                times_absent=decrement(current.times_absent),
                term_times_present=1,
                term_times_absent=decrement(current.term_times_absent),
            )
        return CounterDelta(
            times_present=decrement(current.times_present),
            times_absent=1,
            term_times_present=decrement(current.term_times_present),
            term_times_absent=1,
        )
