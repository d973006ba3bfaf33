import threading
from contextlib import contextmanager
from typing import Hashable, Iterator


class KeyedLocks:
    """
    One re-entrant lock per key, created on first use.

    Operations on the same user id serialize; different ids never contend
    beyond the short registry lookup. Re-entrancy lets a caller holding a
    user's lock call store primitives that take the same lock.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: dict[Hashable, threading.RLock] = {}

    def _lock_for(self, key: Hashable) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.RLock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        lock = self._lock_for(key)
        with lock:
            yield

    def __len__(self) -> int:
        return len(self._locks)
