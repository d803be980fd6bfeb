"""Per-key mutual exclusion for read-validate-write ledger sequences."""

from __future__ import annotations

from contextlib import contextmanager
from threading import Lock, RLock
from typing import Hashable, Iterator


class _Entry:
    __slots__ = ("lock", "holders")

    def __init__(self) -> None:
        self.lock = RLock()
        self.holders = 0


class KeyedLock:
    """Hands out one re-entrant lock per key.

    An entry lives only while some thread holds or waits on it, so the
    registry stays proportional to concurrent work rather than to every
    (property, category, date) ever touched.
    """

    def __init__(self) -> None:
        self._guard = Lock()
        self._entries: dict[Hashable, _Entry] = {}

    def _acquire_entry(self, key: Hashable) -> _Entry:
        with self._guard:
            entry = self._entries.get(key)
            if entry is None:
                entry = _Entry()
                self._entries[key] = entry
            entry.holders += 1
            return entry

    def _release_entry(self, key: Hashable, entry: _Entry) -> None:
        with self._guard:
            entry.holders -= 1
            if entry.holders == 0:
                del self._entries[key]

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        entry = self._acquire_entry(key)
        try:
            with entry.lock:
                yield
        finally:
            self._release_entry(key, entry)

    def __len__(self) -> int:
        with self._guard:
            return len(self._entries)
