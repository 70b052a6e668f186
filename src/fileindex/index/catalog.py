"""In-memory catalog of indexed entries."""

from __future__ import annotations

import threading
from typing import Iterable, List

from fileindex.models import EntryRecord


class CatalogStore:
    """Ordered, lock-protected list of entry records in discovery order.

    Callers read through :meth:`snapshot`, which copies under the lock, so
    filtering and serialization never hold it.
    """

    def __init__(self) -> None:
        self._entries: List[EntryRecord] = []
        self._lock = threading.Lock()

    def add(self, record: EntryRecord) -> int:
        """Append one record and return the new count."""
        with self._lock:
            self._entries.append(record)
            return len(self._entries)

    def extend(self, records: Iterable[EntryRecord]) -> int:
        batch = list(records)
        with self._lock:
            self._entries.extend(batch)
            return len(self._entries)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def count(self) -> int:
        with self._lock:
            return len(self._entries)

    def snapshot(self) -> List[EntryRecord]:
        with self._lock:
            return list(self._entries)

    def __len__(self) -> int:
        return self.count()
