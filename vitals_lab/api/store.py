"""
Bounded in-memory telemetry history.

Holds the most recent entry plus the last ``capacity`` entries in arrival
order. Oldest entries fall off the front once capacity is reached. The
store never validates; whatever is appended has already been accepted.
"""

import threading
from collections import deque
from contextlib import contextmanager
from itertools import islice
from typing import Deque, Iterator, List, Optional, Tuple

from .models import Entry

DEFAULT_CAPACITY = 10000


class TelemetryStore:
    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity <= 0:
            raise ValueError(f"capacity must be > 0, got {capacity}")
        self._capacity = capacity
        self._history: Deque[Entry] = deque(maxlen=capacity)
        self._latest: Optional[Entry] = None
        self._lock = threading.RLock()

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        with self._lock:
            return len(self._history)

    @property
    def is_empty(self) -> bool:
        with self._lock:
            return self._latest is None

    @contextmanager
    def locked(self) -> Iterator["TelemetryStore"]:
        """Hold the store lock across several operations."""
        with self._lock:
            yield self

    def append(self, entry: Entry) -> None:
        with self._lock:
            self._latest = entry
            # deque(maxlen=...) evicts from the left on overflow
            self._history.append(entry)

    def read_latest(self) -> Optional[Entry]:
        with self._lock:
            return self._latest

    def read_recent(self, window: int) -> List[Entry]:
        """Return up to ``window`` most recent entries, oldest first."""
        with self._lock:
            if window <= 0:
                return []
            if window >= len(self._history):
                return list(self._history)
            newest_first = list(islice(reversed(self._history), window))
            newest_first.reverse()
            return newest_first

    def snapshot(self, window: int) -> Tuple[Optional[Entry], List[Entry]]:
        """Latest entry and recent window, read under one lock."""
        with self._lock:
            return self._latest, self.read_recent(window)
