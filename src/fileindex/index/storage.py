"""JSON snapshot persistence for the catalog."""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import IO, Iterator, List, Sequence

from fileindex.index.events import IndexLog, LoggingIndexLog
from fileindex.models import EntryRecord

LOGGER = logging.getLogger(__name__)


class SnapshotStore:
    """Best-effort persistence of the catalog as one JSON array.

    Writes go to a temp file in the target directory which then replaces the
    target, so a reader sees either the old snapshot or the new one. Nothing
    here raises to the caller; failures are logged and the in-memory catalog
    stays authoritative.
    """

    def __init__(self, index_path: Path, *, log: IndexLog | None = None) -> None:
        self.index_path = Path(index_path)
        self.log = log or LoggingIndexLog(LOGGER)
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self.index_path

    def exists(self) -> bool:
        return self.index_path.is_file()

    @contextmanager
    def _atomic_write(self) -> Iterator[IO[str]]:
        self.index_path.parent.mkdir(parents=True, exist_ok=True)
        fd, temp_name = tempfile.mkstemp(
            prefix=self.index_path.name + ".",
            suffix=".tmp",
            dir=self.index_path.parent,
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                yield handle
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(temp_name, self.index_path)
        finally:
            if os.path.exists(temp_name):
                os.remove(temp_name)

    def save(self, entries: Sequence[EntryRecord]) -> bool:
        """Persist ``entries``; returns False when the write failed."""
        with self._lock:
            try:
                with self._atomic_write() as handle:
                    json.dump([entry.to_dict() for entry in entries], handle, ensure_ascii=False)
            except (OSError, TypeError, ValueError) as exc:
                self.log.log_error(exc)
                return False
        self.log.log(f"Saved index to disk: {len(entries)} entries")
        return True

    def load(self) -> List[EntryRecord]:
        """Read the snapshot; a missing or unreadable file yields an empty list."""
        if not self.exists():
            return []
        try:
            with self.index_path.open("r", encoding="utf-8") as handle:
                raw = json.load(handle)
            if not isinstance(raw, list):
                raise ValueError(f"Snapshot is not a JSON array: {self.index_path}")
            entries = [EntryRecord.from_dict(item) for item in raw]
        except (OSError, ValueError) as exc:
            self.log.log_error(exc)
            return []
        return entries

    def iter_batches(self, batch_size: int = 1000) -> Iterator[List[EntryRecord]]:
        entries = self.load()
        for start in range(0, len(entries), batch_size):
            yield entries[start : start + batch_size]
