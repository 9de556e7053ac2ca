from __future__ import annotations

import threading
import time
from typing import Callable


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


class ObjectKeyFactory:
    """Builds ``<timestamp-ms>_<filename>`` object keys.

    Timestamps handed out by one factory are strictly increasing: when the
    clock has not advanced (or went backwards) since the previous key, the
    previous timestamp plus one is used instead.
    """

    def __init__(self, clock: Callable[[], int] = _now_ms) -> None:
        self._clock = clock
        self._last = 0
        self._lock = threading.Lock()

    def next_timestamp(self) -> int:
        with self._lock:
            stamp = max(int(self._clock()), self._last + 1)
            self._last = stamp
            return stamp

    def build(self, filename: str) -> str:
        return f"{self.next_timestamp()}_{filename}"
