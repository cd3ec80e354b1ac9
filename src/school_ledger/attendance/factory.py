from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import AttendanceStatus
from .strategies.base import TransitionStrategy
from .strategies.first_mark_strategy import FirstMarkStrategy
from .strategies.switch_strategy import SwitchStrategy
from .strategies.unchanged_strategy import UnchangedStrategy


@dataclass
class TransitionStrategyFactory:
    """Factory Pattern: choose the counter transition for (previous, new)."""

    def for_transition(self, *, previous: Optional[AttendanceStatus], status: AttendanceStatus) -> TransitionStrategy:
        if previous is None:
            return FirstMarkStrategy()
        if previous == status:
            return UnchangedStrategy()
        return SwitchStrategy()
