"""In-process mutual exclusion keyed by flight id."""
from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Dict, Hashable, Iterator, Optional

from .errors import Contention


@dataclass
class _LockEntry:
    lock: threading.Lock = field(default_factory=threading.Lock)
    users: int = 0


class FlightLocks:
    """Registry of one lock per flight.

    Entries exist only while some thread holds or waits on them, so the
    registry does not grow with the number of flights ever booked.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._entries: Dict[Hashable, _LockEntry] = {}

    def __len__(self) -> int:
        with self._guard:
            return len(self._entries)

    @contextmanager
    def hold(self, flight_id: Hashable, timeout: Optional[float] = None) -> Iterator[None]:
        """Hold the lock for ``flight_id``; raise ``Contention`` on timeout."""

        with self._guard:
            entry = self._entries.setdefault(flight_id, _LockEntry())
            entry.users += 1
        try:
            if not entry.lock.acquire(timeout=-1 if timeout is None else timeout):
                raise Contention(flight_id, attempts=1)
            try:
                yield
            finally:
                entry.lock.release()
        finally:
            with self._guard:
                entry.users -= 1
                if entry.users == 0:
                    self._entries.pop(flight_id, None)
