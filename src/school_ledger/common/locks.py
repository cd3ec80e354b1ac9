from __future__ import annotations

import threading
from contextlib import ExitStack, contextmanager
from typing import Iterable, Iterator


class PersonLocks:
    """Per-person mutexes shared by attendance marking and roster deletion.

    Roster deletion scans every historical day record; holding the person's
    lock for the whole scan keeps a concurrent mark from recreating an entry
    for someone who is being deleted.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: dict[tuple[str, int], threading.RLock] = {}

    def __len__(self) -> int:
        return len(self._locks)

    @staticmethod
    def _key(population: str, person_id: int) -> tuple[str, int]:
        return str(getattr(population, "value", population)), int(person_id)

    def _lock_for(self, population: str, person_id: int) -> threading.RLock:
        key = self._key(population, person_id)
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.RLock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(self, population: str, person_id: int) -> Iterator[None]:
        lock = self._lock_for(population, person_id)
        with lock:
            yield

    @contextmanager
    def hold_many(self, population: str, person_ids: Iterable[int]) -> Iterator[None]:
        """Hold several people's locks, always taken in ascending id order."""
        with ExitStack() as stack:
            for person_id in sorted({int(pid) for pid in person_ids}):
                stack.enter_context(self.hold(population, person_id))
            yield

    def discard(self, population: str, person_id: int) -> None:
        """Forget the lock of someone who no longer exists."""
        with self._guard:
            self._locks.pop(self._key(population, person_id), None)
