"""ABOUTME: Per-key lock striping for the in-memory rate limit tables
ABOUTME: Maps each key onto one of a fixed pool of locks so unrelated keys rarely contend"""

import threading

DEFAULT_STRIPES = 64


class StripedLock:
    """A fixed pool of locks, one chosen per key by hash.

    The same key always maps to the same lock, so read-modify-write on one key
    is serialised while different keys mostly proceed in parallel.
    """

    def __init__(self, stripes: int = DEFAULT_STRIPES) -> None:
        if stripes < 1:
            raise ValueError(f"stripes must be at least 1, got {stripes}")
        self._locks = tuple(threading.Lock() for _ in range(stripes))

    def __len__(self) -> int:
        return len(self._locks)

    def for_key(self, key: str) -> threading.Lock:
        return self._locks[hash(key) % len(self._locks)]
