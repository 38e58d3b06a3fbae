"""Per-key write locks shared by the in-memory backends."""

from __future__ import annotations

import threading
from collections import defaultdict


class KeyedLocks:
    """Hands out one ``threading.Lock`` per key, created on first use."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: defaultdict[str, threading.Lock] = defaultdict(threading.Lock)

    def for_key(self, key: str) -> threading.Lock:
        with self._guard:
            return self._locks[key]

    def discard(self, key: str) -> None:
        with self._guard:
            self._locks.pop(key, None)
