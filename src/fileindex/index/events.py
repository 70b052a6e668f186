"""Collaborator boundaries: log sink, result sink and notification dispatch."""

from __future__ import annotations

import logging
import queue
import threading
from typing import Any, Callable, List, Protocol, Sequence

from fileindex.models import EntryRecord

LOGGER = logging.getLogger(__name__)


class IndexLog(Protocol):
    """Diagnostic sink. Implementations must not raise or block for long."""

    def log(self, message: str) -> None: ...

    def log_error(self, exc: BaseException) -> None: ...


class LoggingIndexLog:
    """IndexLog backed by a stdlib logger."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.logger = logger or logging.getLogger("fileindex")

    def log(self, message: str) -> None:
        self.logger.info(message)

    def log_error(self, exc: BaseException) -> None:
        self.logger.error("%s: %s", type(exc).__name__, exc, exc_info=exc)


class ResultSink(Protocol):
    """Consumer of entry batches, e.g. a result list in a GUI.

    Called from the dispatcher thread, never from the walker. Any marshaling
    onto a UI thread is the sink's own business.
    """

    def append(self, entries: Sequence[EntryRecord]) -> None: ...

    def clear(self) -> None: ...

    def replace(self, entries: Sequence[EntryRecord]) -> None: ...


class ListResultSink:
    """Thread-safe in-memory result view."""

    def __init__(self) -> None:
        self._items: List[EntryRecord] = []
        self._lock = threading.Lock()

    def append(self, entries: Sequence[EntryRecord]) -> None:
        with self._lock:
            self._items.extend(entries)

    def clear(self) -> None:
        with self._lock:
            self._items.clear()

    def replace(self, entries: Sequence[EntryRecord]) -> None:
        with self._lock:
            self._items = list(entries)

    def items(self) -> List[EntryRecord]:
        with self._lock:
            return list(self._items)

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)


class EventDispatcher:
    """Runs posted callbacks in order on one dedicated daemon thread.

    ``post`` never blocks, so a slow subscriber cannot stall the walk.
    """

    def __init__(self, name: str = "fileindex-events") -> None:
        self._queue: "queue.SimpleQueue[tuple[Callable[..., Any], tuple] | None]" = (
            queue.SimpleQueue()
        )
        self._closed = False
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)
        self._thread.start()

    @property
    def closed(self) -> bool:
        return self._closed

    def post(self, callback: Callable[..., Any], *args: Any) -> None:
        if self._closed:
            LOGGER.debug("Dispatcher closed, dropping %r", callback)
            return
        self._queue.put((callback, args))

    def flush(self, timeout: float | None = None) -> bool:
        """Block until every callback posted so far has run."""
        if self._closed:
            return True
        done = threading.Event()
        self.post(done.set)
        return done.wait(timeout)

    def close(self, timeout: float | None = 5.0) -> None:
        if self._closed:
            return
        self._closed = True
        self._queue.put(None)
        if threading.current_thread() is not self._thread:
            self._thread.join(timeout)

    def _run(self) -> None:
        while True:
            item = self._queue.get()
            if item is None:
                break
            callback, args = item
            try:
                callback(*args)
            except Exception:
                LOGGER.exception("Subscriber %r failed", callback)
