"""Per-key mutual exclusion for claim and session updates."""

import threading
from contextlib import contextmanager
from typing import Dict, Iterator


class KeyedLock:
    """
    Hands out one lock per key.

    Operations on the same key serialize; different keys never wait on
    each other beyond the brief registry lookup.
    """

    def __init__(self):
        self._registry_lock = threading.Lock()
        self._locks: Dict[str, threading.Lock] = {}

    def _lock_for(self, key: str) -> threading.Lock:
        with self._registry_lock:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        """Hold the lock for ``key`` for the duration of the block."""
        lock = self._lock_for(key)
        with lock:
            yield

    def discard(self, key: str) -> None:
        """Forget the lock for a key that will not be used again."""
        with self._registry_lock:
            self._locks.pop(key, None)

    def __len__(self) -> int:
        with self._registry_lock:
            return len(self._locks)
