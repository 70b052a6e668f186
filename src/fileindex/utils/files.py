"""Utility helpers for working with files."""

from __future__ import annotations

import logging
import os
import stat
import sys
from pathlib import Path
from typing import Iterable, List

import psutil

LOGGER = logging.getLogger(__name__)

# Folder Windows keeps restore points and volume metadata in.
PROTECTED_DIRECTORY_NAMES = frozenset({"system volume information"})

# Pseudo file systems; walking them recurses forever or floods permission errors.
PSEUDO_FILESYSTEM_PATHS = (
    frozenset() if sys.platform == "win32" else frozenset({"/proc", "/sys", "/dev"})
)


def ready_drives() -> List[Path]:
    """Return the mount point of every ready physical partition.

    Mount points nested under another listed one are dropped; walking the
    outer one already reaches them.
    """
    mount_points = sorted(
        {part.mountpoint for part in psutil.disk_partitions(all=False)},
        key=lambda mount: (len(mount), mount),
    )
    drives: List[Path] = []
    for mount in mount_points:
        if not os.path.isdir(mount):
            LOGGER.debug("Partition %s is not ready", mount)
            continue
        path = Path(mount)
        if any(path.is_relative_to(drive) for drive in drives):
            continue
        drives.append(path)
    return drives


def _file_attributes(entry: os.DirEntry) -> int:
    try:
        st = entry.stat(follow_symlinks=False)
    except OSError:
        return 0
    return getattr(st, "st_file_attributes", 0)


def is_reparse_point(entry: os.DirEntry) -> bool:
    """True for symlinks, junctions and other reparse points."""
    if entry.is_symlink():
        return True
    is_junction = getattr(entry, "is_junction", None)
    if is_junction is not None and is_junction():
        return True
    return bool(_file_attributes(entry) & stat.FILE_ATTRIBUTE_REPARSE_POINT)


def is_system_directory(entry: os.DirEntry) -> bool:
    return bool(_file_attributes(entry) & stat.FILE_ATTRIBUTE_SYSTEM)


def should_skip_directory(
    entry: os.DirEntry,
    *,
    skip_names: Iterable[str] = PROTECTED_DIRECTORY_NAMES,
    skip_paths: Iterable[str] = PSEUDO_FILESYSTEM_PATHS,
) -> bool:
    """Decide whether the walker must neither descend into nor emit from a directory."""
    if entry.name.casefold() in skip_names:
        return True
    if entry.path in skip_paths:
        return True
    return is_system_directory(entry) or is_reparse_point(entry)
