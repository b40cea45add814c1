"""Thread-safe compute-once stores."""

from __future__ import annotations

import threading
from collections.abc import Callable, Hashable
from typing import Generic, Literal, TypeVar

V = TypeVar("V")

CacheOutcome = Literal["hit", "miss"]
CacheListener = Callable[[str, CacheOutcome, str], None]


class MemoCache(Generic[V]):
    """Key -> value store populated on first use.

    The lock guards dictionary access only; ``compute`` runs outside of it. Two
    threads missing the same key may both compute, but only the first stored
    value is kept and both callers receive it.
    """

    def __init__(self, name: str, listener: CacheListener | None = None) -> None:
        self.name = name
        self._listener = listener
        self._values: dict[Hashable, V] = {}
        self._lock = threading.Lock()

    def get_or_compute(self, key: Hashable, compute: Callable[[], V]) -> V:
        with self._lock:
            if key in self._values:
                value = self._values[key]
                hit = True
            else:
                hit = False
        if hit:
            self._report("hit", key)
            return value

        self._report("miss", key)
        computed = compute()
        with self._lock:
            return self._values.setdefault(key, computed)

    def get(self, key: Hashable) -> V | None:
        with self._lock:
            return self._values.get(key)

    def put(self, key: Hashable, value: V) -> None:
        with self._lock:
            self._values[key] = value

    def remove(self, key: Hashable) -> bool:
        with self._lock:
            if key not in self._values:
                return False
            del self._values[key]
            return True

    def values(self) -> list[V]:
        with self._lock:
            return list(self._values.values())

    def clear(self) -> None:
        with self._lock:
            self._values.clear()

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._values

    def __len__(self) -> int:
        with self._lock:
            return len(self._values)

    def _report(self, outcome: CacheOutcome, key: Hashable) -> None:
        if self._listener is not None:
            self._listener(self.name, outcome, str(key))


class ScopedMemoCache(Generic[V]):
    """Compute-once store keyed by (key, scope), e.g. resource key and locale."""

    def __init__(self, name: str, listener: CacheListener | None = None) -> None:
        self._inner: MemoCache[V] = MemoCache(name, listener)

    @property
    def name(self) -> str:
        return self._inner.name

    def get_or_compute(self, key: Hashable, scope: Hashable, compute: Callable[[], V]) -> V:
        return self._inner.get_or_compute((key, scope), compute)

    def get(self, key: Hashable, scope: Hashable) -> V | None:
        return self._inner.get((key, scope))

    def clear(self) -> None:
        self._inner.clear()

    def __len__(self) -> int:
        return len(self._inner)
