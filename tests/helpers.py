"""Test helpers shared across focustimer test modules."""

from __future__ import annotations

import threading
from datetime import datetime

# Monday 2024-03-04 09:00 local time.
START = datetime(2024, 3, 4, 9, 0).timestamp()


class FakeClock:
    """Clock whose ``sleep`` advances time instantly."""

    def __init__(self, start: float = START) -> None:
        self._now = start
        self._lock = threading.Lock()
        self.sleeps = 0

    def now(self) -> float:
        with self._lock:
            return self._now

    def sleep(self, seconds: float) -> None:
        with self._lock:
            self._now += seconds
            self.sleeps += 1

    def advance(self, seconds: float) -> None:
        with self._lock:
            self._now += seconds
