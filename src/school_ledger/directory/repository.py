from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import Population
from .model import CounterDelta, Person


class PersonRepository(Protocol):
    """Repository interface for the student/teacher roster.

    Note (DIP): services depend on this interface, not on a concrete database.
    """

    def get_by_id(self, person_id: int) -> Optional[Person]:
        raise NotImplementedError

    def list_by_kind(self, kind: Population) -> Sequence[Person]:
        raise NotImplementedError

    def count(self, kind: Population) -> int:
        raise NotImplementedError

    def list_student_numbers(self) -> Sequence[str]:
        raise NotImplementedError

    def create(
        self,
        *,
        kind: Population,
        name: str,
        class_name: str,
        student_number: Optional[str] = None,
        parent_phone: Optional[str] = None,
    ) -> int:
        raise NotImplementedError

    def update_identity(
        self,
        *,
        person_id: int,
        name: str,
        class_name: str,
        parent_phone: Optional[str] = None,
    ) -> bool:
        raise NotImplementedError

    def delete_by_id(self, person_id: int) -> bool:
        raise NotImplementedError

    def reset_term_counters(self, *, person_id: int, term_id: int) -> None:
        """Zero both term counters and stamp the term they now count."""

        raise NotImplementedError

    def apply_counter_delta(self, *, person_id: int, delta: CounterDelta) -> None:
        """Atomic in-place increment of the four counters."""

        raise NotImplementedError
