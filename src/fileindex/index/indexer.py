"""Indexing lifecycle: start, stop, refresh, load, search."""

from __future__ import annotations

import logging
import threading
import time
from pathlib import Path
from typing import Callable, Iterable, List, Sequence

from fileindex.config import AppConfig
from fileindex.index.catalog import CatalogStore
from fileindex.index.events import (
    EventDispatcher,
    IndexLog,
    ListResultSink,
    LoggingIndexLog,
    ResultSink,
)
from fileindex.index.search import Searcher
from fileindex.index.storage import SnapshotStore
from fileindex.index.walker import Walker, WalkStats
from fileindex.models import EntryRecord, IndexState

LOGGER = logging.getLogger(__name__)

ProgressListener = Callable[[int], None]
StateListener = Callable[[IndexState], None]
ErrorListener = Callable[[str], None]


class Indexer:
    """Coordinates walks over the file system and the catalog they build.

    Only one walk runs at a time, on a background thread. Progress, state and
    error notifications as well as result-sink updates are posted through an
    :class:`EventDispatcher`, so subscribers never run on the walking thread.
    """

    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        sink: ResultSink | None = None,
        log: IndexLog | None = None,
        store: SnapshotStore | None = None,
        dispatcher: EventDispatcher | None = None,
    ) -> None:
        self.config = config or AppConfig()
        self.log = log or LoggingIndexLog(LOGGER)
        self.sink = sink if sink is not None else ListResultSink()
        self.store = store or SnapshotStore(self.config.resolve_index_path(), log=self.log)
        self.catalog = CatalogStore()
        self.searcher = Searcher(self.catalog)
        self.dispatcher = dispatcher or EventDispatcher()
        self.last_stats: WalkStats | None = None

        self._lock = threading.Lock()
        self._start_lock = threading.Lock()
        # Spans catalog copy and store write.
        self._save_lock = threading.Lock()
        self._state = IndexState.IDLE
        self._cancel: threading.Event | None = None
        self._worker: threading.Thread | None = None
        self._last_error: str | None = None
        self._last_saved_count = 0

        self._progress_listeners: List[ProgressListener] = []
        self._state_listeners: List[StateListener] = []
        self._error_listeners: List[ErrorListener] = []

    @property
    def state(self) -> IndexState:
        with self._lock:
            return self._state

    @property
    def is_indexing(self) -> bool:
        return self.state is IndexState.INDEXING

    @property
    def indexed_count(self) -> int:
        return self.catalog.count()

    @property
    def last_error(self) -> str | None:
        with self._lock:
            return self._last_error

    def on_progress(self, listener: ProgressListener) -> None:
        self._progress_listeners.append(listener)

    def on_state_changed(self, listener: StateListener) -> None:
        self._state_listeners.append(listener)

    def on_error(self, listener: ErrorListener) -> None:
        self._error_listeners.append(listener)

    def start_indexing(self, roots: Iterable[Path | str] | None = None) -> None:
        """Start a fresh walk, cancelling any walk already running."""
        with self._start_lock:
            self._cancel_active()
            resolved = list(roots) if roots is not None else self.config.resolve_roots()

            self.catalog.clear()
            self.dispatcher.post(self.sink.clear)
            cancel = threading.Event()
            worker = threading.Thread(
                target=self._run_walk,
                args=(resolved, cancel),
                name="fileindex-walker",
                daemon=True,
            )
            with self._lock:
                self._last_saved_count = 0
                self._cancel = cancel
                self._worker = worker
            self._set_state(IndexState.INDEXING)
            self.log.log(f"Indexing started: {', '.join(str(root) for root in resolved)}")
            worker.start()

    def refresh(self, roots: Iterable[Path | str] | None = None) -> None:
        self.start_indexing(roots)

    def stop_indexing(self) -> None:
        """Cancel the active walk, if any, and save right away."""
        with self._lock:
            cancel = self._cancel
        if cancel is not None and not cancel.is_set():
            cancel.set()
            self.log.log("Indexing stop requested")
        self.save()

    def wait(self, timeout: float | None = None) -> bool:
        """Wait for the active walk to finish. Returns False on timeout."""
        with self._lock:
            worker = self._worker
        if worker is None or worker is threading.current_thread():
            return True
        worker.join(timeout)
        return not worker.is_alive()

    def close(self) -> None:
        self._cancel_active()
        self.dispatcher.flush(timeout=5.0)
        self.dispatcher.close()

    def _cancel_active(self) -> None:
        with self._lock:
            cancel, worker = self._cancel, self._worker
        if cancel is not None:
            cancel.set()
        if worker is not None and worker is not threading.current_thread():
            worker.join()

    def _run_walk(self, roots: Sequence[Path | str], cancel: threading.Event) -> None:
        walker = Walker(
            self.catalog,
            self.log,
            progress_stride=self.config.progress_stride,
            batch_size=self.config.walk_batch_size,
            include_directories=self.config.include_directories,
            on_batch=self._publish_batch,
            on_progress=self._report_progress,
            on_error=self._report_error,
        )
        stats: WalkStats | None = None
        try:
            stats = walker.walk(roots, cancel)
        except Exception as exc:
            self.log.log_error(exc)
            self._report_error(exc)
        finally:
            self.last_stats = stats
            final_state = IndexState.STOPPED if cancel.is_set() else IndexState.IDLE
            with self._lock:
                self._state = final_state
            self.log.log("Indexing finished" if final_state is IndexState.IDLE else "Indexing stopped")
            self.save()
            self._emit(self._state_listeners, final_state)
            self._report_progress(self.catalog.count())

    def _publish_batch(self, batch: List[EntryRecord]) -> None:
        self.dispatcher.post(self.sink.append, batch)
        with self._lock:
            due = self.catalog.count() - self._last_saved_count >= self.config.save_batch_size
        if due:
            self.save()

    def _report_progress(self, count: int) -> None:
        self._emit(self._progress_listeners, count)

    def _report_error(self, exc: BaseException) -> None:
        message = str(exc) or type(exc).__name__
        with self._lock:
            self._last_error = message
        self._emit(self._error_listeners, message)

    def _set_state(self, state: IndexState) -> None:
        with self._lock:
            self._state = state
        self._emit(self._state_listeners, state)

    def _emit(self, listeners: List[Callable], *args: object) -> None:
        for listener in list(listeners):
            self.dispatcher.post(listener, *args)

    def save(self) -> bool:
        with self._save_lock:
            entries = self.catalog.snapshot()
            saved = self.store.save(entries)
            if saved:
                with self._lock:
                    self._last_saved_count = len(entries)
        return saved

    def load_index(self) -> int:
        """Load the persisted snapshot into the catalog and the result sink.

        Batches are handed over one at a time with a thread yield between
        them, so a consumer can render while a large snapshot loads. The
        catalog is replaced, not extended, and no walk can start meanwhile.
        """
        with self._start_lock:
            if self.is_indexing:
                self.log.log("Skipped loading persisted index: indexing in progress")
                return 0

            self.log.log("Loading persisted index from disk...")
            self.catalog.clear()
            self.dispatcher.post(self.sink.clear)
            loaded = 0
            for batch in self.store.iter_batches(self.config.load_batch_size):
                self.catalog.extend(batch)
                self.dispatcher.post(self.sink.append, batch)
                loaded += len(batch)
                time.sleep(0)

            count = self.catalog.count()
            with self._lock:
                self._last_saved_count = count
        self.log.log(f"Loaded persisted index: {loaded} entries")
        self._report_progress(count)
        return loaded

    def search(self, query: str) -> List[EntryRecord] | None:
        """Filter the catalog and replace the result view with the matches.

        Returns None, leaving the result view untouched, if filtering failed.
        """
        try:
            matches = self.searcher.search(query)
        except Exception as exc:
            self.log.log_error(exc)
            self._report_error(exc)
            return None

        self.dispatcher.post(self.sink.clear)
        step = self.config.ui_batch_size
        for start in range(0, len(matches), step):
            self.dispatcher.post(self.sink.append, matches[start : start + step])
        return matches
