"""Shared fixtures for FileIndex tests."""

from __future__ import annotations

import threading
from datetime import datetime
from pathlib import Path
from typing import List

import pytest

from fileindex.models import EntryRecord


class RecordingLog:
    """IndexLog that keeps every line for assertions."""

    def __init__(self) -> None:
        self.messages: List[str] = []
        self.errors: List[BaseException] = []
        self._lock = threading.Lock()

    def log(self, message: str) -> None:
        with self._lock:
            self.messages.append(message)

    def log_error(self, exc: BaseException) -> None:
        with self._lock:
            self.errors.append(exc)

    def lines_about(self, fragment: str) -> List[str]:
        with self._lock:
            return [line for line in self.messages if fragment in line]


@pytest.fixture
def recording_log() -> RecordingLog:
    return RecordingLog()


@pytest.fixture
def make_entry():
    def _make(path: str, size: int = 10, is_directory: bool = False) -> EntryRecord:
        return EntryRecord(
            path=path,
            size_bytes=size,
            modified_at=datetime(2024, 5, 1, 12, 30, 0),
            is_directory=is_directory,
        )

    return _make


@pytest.fixture
def data_tree(tmp_path: Path) -> Path:
    """/data with a.txt (10 bytes), sub/b.txt (20 bytes) and a locked folder."""
    root = tmp_path / "data"
    (root / "sub").mkdir(parents=True)
    (root / "locked").mkdir()
    (root / "a.txt").write_bytes(b"x" * 10)
    (root / "sub" / "b.txt").write_bytes(b"y" * 20)
    (root / "locked" / "secret.txt").write_bytes(b"z")
    return root
