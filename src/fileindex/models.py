"""Core FileIndex data models."""

from __future__ import annotations

import os
import stat
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict


class IndexState(Enum):
    """Lifecycle state of the indexing coordinator."""

    IDLE = "idle"
    INDEXING = "indexing"
    STOPPED = "stopped"


@dataclass(frozen=True, slots=True)
class EntryRecord:
    """Metadata for one indexed filesystem object. Identity is the path."""

    path: str
    size_bytes: int
    modified_at: datetime
    is_directory: bool = False

    @property
    def name(self) -> str:
        return os.path.basename(self.path.rstrip("\\/")) or self.path

    @classmethod
    def from_stat(cls, path: str, st: os.stat_result) -> "EntryRecord":
        is_directory = stat.S_ISDIR(st.st_mode)
        return cls(
            path=path,
            size_bytes=0 if is_directory else st.st_size,
            modified_at=datetime.fromtimestamp(st.st_mtime),
            is_directory=is_directory,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "sizeBytes": self.size_bytes,
            "modifiedAt": self.modified_at.isoformat(),
            "isDirectory": self.is_directory,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EntryRecord":
        """Build a record from its persisted JSON object.

        Raises:
            ValueError: if a field is missing or has the wrong type.
        """
        try:
            path = data["path"]
            size = data["sizeBytes"]
            modified = datetime.fromisoformat(data["modifiedAt"])
            is_directory = data.get("isDirectory", False)
        except (KeyError, TypeError) as exc:
            raise ValueError(f"Malformed entry record: {data!r}") from exc

        if not isinstance(path, str) or not path:
            raise ValueError(f"Entry record has no path: {data!r}")
        if isinstance(size, bool) or not isinstance(size, int) or size < 0:
            raise ValueError(f"Entry record has invalid size: {data!r}")
        if not isinstance(is_directory, bool):
            raise ValueError(f"Entry record has invalid directory flag: {data!r}")

        return cls(
            path=path,
            size_bytes=size,
            modified_at=modified,
            is_directory=is_directory,
        )
