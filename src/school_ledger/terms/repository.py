from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from .model import Term


class TermRepository(Protocol):
    def get_by_id(self, term_id: int) -> Optional[Term]:
        raise NotImplementedError

    def list_all(self) -> Sequence[Term]:
        raise NotImplementedError

    def create(self, *, term_name: str, start_at: datetime) -> int:
        raise NotImplementedError

    def close(self, *, term_id: int, end_at: datetime) -> bool:
        raise NotImplementedError

    def get_active_term_id(self) -> Optional[int]:
        """Read the single settings pointer row."""

        raise NotImplementedError

    def set_active_term_id(self, term_id: int) -> None:
        raise NotImplementedError
