"""Application configuration defaults."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List

from fileindex.utils.files import ready_drives

INDEX_FILE_NAME = "index.json"
LOG_FILE_NAME = "indexer.log"

_POSITIVE_FIELDS = (
    "save_batch_size",
    "progress_stride",
    "ui_batch_size",
    "load_batch_size",
    "walk_batch_size",
)


def get_app_dir() -> Path:
    """Get the per-user application data directory for this platform."""
    if sys.platform == "win32":
        appdata = os.environ.get("APPDATA", os.path.expanduser("~"))
        return Path(appdata) / "FileIndex"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "FileIndex"
    return Path.home() / ".local" / "share" / "fileindex"


def _get_default_index_path() -> Path:
    return get_app_dir() / INDEX_FILE_NAME


def _get_default_log_path() -> Path:
    return get_app_dir() / LOG_FILE_NAME


@dataclass(slots=True)
class AppConfig:
    index_path: Path | None = None
    log_path: Path | None = None
    # None means every ready drive
    roots: List[Path] | None = None
    save_batch_size: int = 5000
    progress_stride: int = 100
    ui_batch_size: int = 500
    load_batch_size: int = 1000
    walk_batch_size: int = 100
    include_directories: bool = False

    def __post_init__(self) -> None:
        if self.index_path is None:
            self.index_path = _get_default_index_path()
        if self.log_path is None:
            self.log_path = _get_default_log_path()
        if self.roots is not None:
            self.roots = [Path(root) for root in self.roots]
        for name in _POSITIVE_FIELDS:
            if getattr(self, name) < 1:
                raise ValueError(f"{name} must be a positive integer")

    def resolve_index_path(self, base_dir: Path | None = None) -> Path:
        if self.index_path is None:
            self.index_path = _get_default_index_path()
        if Path(self.index_path).is_absolute() or base_dir is None:
            return Path(self.index_path)
        return base_dir / self.index_path

    def resolve_roots(self) -> List[Path]:
        """Return the configured roots, or every ready drive when unset."""
        if self.roots:
            return list(self.roots)
        return ready_drives()
