"""Tests for core data models."""

from __future__ import annotations

import os
from dataclasses import FrozenInstanceError
from datetime import datetime

import pytest

from fileindex.models import EntryRecord, IndexState


class TestEntryRecord:
    """Test EntryRecord dataclass."""

    def test_create_record(self) -> None:
        """Should create EntryRecord with all fields."""
        modified = datetime(2024, 1, 2, 3, 4, 5)
        record = EntryRecord(path="/data/a.txt", size_bytes=10, modified_at=modified)

        assert record.path == "/data/a.txt"
        assert record.size_bytes == 10
        assert record.modified_at == modified
        assert record.is_directory is False

    def test_name_is_last_path_component(self) -> None:
        record = EntryRecord(path="/data/sub/Report 2024.PDF", size_bytes=1, modified_at=datetime.now())
        assert record.name == "Report 2024.PDF"

    def test_record_is_immutable(self, make_entry) -> None:
        record = make_entry("/data/a.txt")
        with pytest.raises(FrozenInstanceError):
            record.path = "/other"  # type: ignore[misc]

    def test_records_compare_by_value(self, make_entry) -> None:
        assert make_entry("/data/a.txt") == make_entry("/data/a.txt")
        assert make_entry("/data/a.txt") != make_entry("/data/b.txt")

    def test_to_dict_uses_snapshot_keys(self, make_entry) -> None:
        """Should serialize with the persisted JSON field names."""
        data = make_entry("/data/a.txt", size=42).to_dict()

        assert data == {
            "path": "/data/a.txt",
            "sizeBytes": 42,
            "modifiedAt": "2024-05-01T12:30:00",
            "isDirectory": False,
        }

    def test_from_dict_restores_record(self, make_entry) -> None:
        original = make_entry("/data/sub", size=0, is_directory=True)
        assert EntryRecord.from_dict(original.to_dict()) == original

    def test_from_dict_defaults_directory_flag(self) -> None:
        record = EntryRecord.from_dict(
            {"path": "/x/y.txt", "sizeBytes": 3, "modifiedAt": "2023-12-31T23:59:59"}
        )
        assert record.is_directory is False
        assert record.modified_at == datetime(2023, 12, 31, 23, 59, 59)

    @pytest.mark.parametrize(
        "data",
        [
            {"sizeBytes": 1, "modifiedAt": "2024-01-01T00:00:00"},
            {"path": "/a", "modifiedAt": "2024-01-01T00:00:00"},
            {"path": "/a", "sizeBytes": 1},
            {"path": "/a", "sizeBytes": 1, "modifiedAt": "not a date"},
            {"path": "/a", "sizeBytes": -5, "modifiedAt": "2024-01-01T00:00:00"},
            {"path": "/a", "sizeBytes": "big", "modifiedAt": "2024-01-01T00:00:00"},
            {"path": "", "sizeBytes": 1, "modifiedAt": "2024-01-01T00:00:00"},
            {"path": "/a", "sizeBytes": 1, "modifiedAt": "2024-01-01T00:00:00", "isDirectory": "false"},
            {"path": "/a", "sizeBytes": 1, "modifiedAt": "2024-01-01T00:00:00", "isDirectory": 1},
            ["not", "a", "dict"],
        ],
    )
    def test_from_dict_rejects_malformed(self, data) -> None:
        """Should raise ValueError for malformed objects."""
        with pytest.raises(ValueError):
            EntryRecord.from_dict(data)

    def test_from_stat_file(self, tmp_path) -> None:
        target = tmp_path / "a.txt"
        target.write_bytes(b"0123456789")

        record = EntryRecord.from_stat(str(target), os.stat(target))

        assert record.path == str(target)
        assert record.size_bytes == 10
        assert record.is_directory is False
        assert record.modified_at == datetime.fromtimestamp(os.stat(target).st_mtime)

    def test_from_stat_directory(self, tmp_path) -> None:
        record = EntryRecord.from_stat(str(tmp_path), os.stat(tmp_path))

        assert record.is_directory is True
        assert record.size_bytes == 0


class TestIndexState:
    def test_values(self) -> None:
        assert IndexState.IDLE.value == "idle"
        assert IndexState.INDEXING.value == "indexing"
        assert IndexState.STOPPED.value == "stopped"
