"""Recursive file-system walk feeding the catalog."""

from __future__ import annotations

import logging
import os
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Sequence

from fileindex.index.catalog import CatalogStore
from fileindex.index.events import IndexLog
from fileindex.models import EntryRecord
from fileindex.utils.files import (
    PROTECTED_DIRECTORY_NAMES,
    PSEUDO_FILESYSTEM_PATHS,
    should_skip_directory,
)

LOGGER = logging.getLogger(__name__)

BatchCallback = Callable[[List[EntryRecord]], None]
ProgressCallback = Callable[[int], None]
ErrorCallback = Callable[[BaseException], None]


@dataclass(slots=True)
class WalkStats:
    files: int = 0
    directories: int = 0
    skipped: int = 0
    failed: int = 0
    cancelled: bool = False
    duration_seconds: float = 0.0

    def __str__(self) -> str:
        return (
            f"Indexed {self.files} files in {self.directories} directories "
            f"({self.skipped} skipped, {self.failed} errors) "
            f"in {self.duration_seconds:.1f}s"
        )


class Walker:
    """Single-threaded pre-order walk over one or more roots.

    Every file found is appended to the catalog. Directories that cannot be
    listed are logged and skipped; anything unexpected is recorded as
    ``last_error`` and reported, and the walk carries on with what is left.
    """

    def __init__(
        self,
        catalog: CatalogStore,
        log: IndexLog,
        *,
        progress_stride: int = 100,
        batch_size: int = 100,
        include_directories: bool = False,
        skip_names: Iterable[str] = PROTECTED_DIRECTORY_NAMES,
        skip_paths: Iterable[str] = PSEUDO_FILESYSTEM_PATHS,
        on_batch: Optional[BatchCallback] = None,
        on_progress: Optional[ProgressCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> None:
        self.catalog = catalog
        self.log = log
        self.progress_stride = progress_stride
        self.batch_size = batch_size
        self.include_directories = include_directories
        self.skip_names = frozenset(name.casefold() for name in skip_names)
        self.skip_paths = frozenset(skip_paths)
        self.on_batch = on_batch
        self.on_progress = on_progress
        self.on_error = on_error
        self.last_error: str | None = None

    def walk(self, roots: Sequence[Path | str], cancel: threading.Event) -> WalkStats:
        stats = WalkStats()
        start_time = time.monotonic()

        for root in roots:
            if cancel.is_set():
                break
            root_path = os.fspath(root)
            if not os.path.isdir(root_path):
                self.log.log(f"Skipped root {root_path}: not a directory")
                stats.skipped += 1
                continue
            self._walk_root(root_path, cancel, stats)

        stats.cancelled = cancel.is_set()
        stats.duration_seconds = time.monotonic() - start_time
        LOGGER.info("Walk %s: %s", "cancelled" if stats.cancelled else "complete", stats)
        return stats

    def _walk_root(self, root: str, cancel: threading.Event, stats: WalkStats) -> None:
        # Explicit stack instead of recursion; subdirectories are pushed in
        # reverse so they pop in listing order.
        pending = [root]
        while pending:
            if cancel.is_set():
                return
            directory = pending.pop()
            try:
                subdirs = self._index_directory(directory, cancel, stats)
            except Exception as exc:
                self._fail(exc, stats)
                continue
            pending.extend(reversed(subdirs))

    def _index_directory(
        self, directory: str, cancel: threading.Event, stats: WalkStats
    ) -> List[str]:
        batch: List[EntryRecord] = []
        subdirs: List[str] = []
        stats.directories += 1
        try:
            with os.scandir(directory) as listing:
                for entry in listing:
                    if cancel.is_set():
                        break
                    record = self._visit(entry, subdirs, stats)
                    if record is None:
                        continue
                    if not record.is_directory:
                        stats.files += 1
                    self._add(record, batch)
        except OSError as exc:
            stats.skipped += 1
            self.log.log(f"Skipped directory {directory}: {type(exc).__name__} {exc}")
        finally:
            self._flush(batch)
        return subdirs

    def _visit(
        self, entry: os.DirEntry, subdirs: List[str], stats: WalkStats
    ) -> EntryRecord | None:
        try:
            if entry.is_dir(follow_symlinks=False):
                if should_skip_directory(
                    entry, skip_names=self.skip_names, skip_paths=self.skip_paths
                ):
                    LOGGER.debug("Skipping protected directory %s", entry.path)
                    stats.skipped += 1
                    return None
                subdirs.append(entry.path)
                if not self.include_directories:
                    return None
            elif entry.is_symlink() and entry.is_dir():
                LOGGER.debug("Skipping directory link %s", entry.path)
                stats.skipped += 1
                return None
            return EntryRecord.from_stat(entry.path, entry.stat(follow_symlinks=False))
        except OSError as exc:
            stats.skipped += 1
            self.log.log(f"Skipped entry {entry.path}: {type(exc).__name__} {exc}")
            return None

    def _add(self, record: EntryRecord, batch: List[EntryRecord]) -> None:
        count = self.catalog.add(record)
        batch.append(record)
        if len(batch) >= self.batch_size:
            self._flush(batch)
        if count % self.progress_stride == 0:
            LOGGER.debug("Indexed count: %d", count)
            if self.on_progress is not None:
                self.on_progress(count)

    def _flush(self, batch: List[EntryRecord]) -> None:
        if not batch:
            return
        pushed = list(batch)
        batch.clear()
        if self.on_batch is not None:
            self.on_batch(pushed)

    def _fail(self, exc: BaseException, stats: WalkStats) -> None:
        stats.failed += 1
        self.last_error = str(exc)
        self.log.log_error(exc)
        if self.on_error is not None:
            self.on_error(exc)
