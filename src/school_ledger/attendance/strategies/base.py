from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from ...core.enums import AttendanceStatus
from ...directory.model import CounterDelta


@dataclass(frozen=True)
class CounterSnapshot:
    """Counters as they stand before a mark; term values already reset for the term."""

    times_present: int = 0
    times_absent: int = 0
    term_times_present: int = 0
    term_times_absent: int = 0


def decrement(value: int) -> int:
    # floor at zero: only take one off what is actually there
    return -1 if value > 0 else 0


class TransitionStrategy(ABC):
    """Strategy Pattern: encapsulate how a status change moves the counters."""

    @abstractmethod
    def delta(self, *, status: AttendanceStatus, current: CounterSnapshot) -> CounterDelta:
        raise NotImplementedError
