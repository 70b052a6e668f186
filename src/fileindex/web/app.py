"""FastAPI application exposing the indexer."""

from __future__ import annotations

import asyncio
import logging
import os
import subprocess
import sys
import threading
from pathlib import Path
from typing import Any, List

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from fileindex.config import AppConfig
from fileindex.index.events import ListResultSink
from fileindex.index.indexer import Indexer

LOGGER = logging.getLogger(__name__)

app = FastAPI(title="FileIndex Web", version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

_indexer: Indexer | None = None
_indexer_lock = threading.Lock()


class SearchPayload(BaseModel):
    query: str = ""
    limit: int = 100


class IndexPayload(BaseModel):
    paths: List[str] | None = None


class OpenRequest(BaseModel):
    path: Path


def get_indexer() -> Indexer:
    """Return the process-wide indexer, creating one with default config."""
    global _indexer
    with _indexer_lock:
        if _indexer is None:
            _indexer = Indexer(AppConfig(), sink=ListResultSink())
        return _indexer


def set_indexer(indexer: Indexer | None) -> None:
    """Replace the indexer served by the app (CLI wiring and tests)."""
    global _indexer
    with _indexer_lock:
        _indexer = indexer


def _resolve_roots(paths: List[str]) -> List[Path]:
    resolved_paths: List[Path] = []
    for p in paths:
        clean_path = p.strip().replace("\r", "").replace("\n", "")
        if not clean_path:
            continue
        if "\0" in clean_path:
            raise HTTPException(status_code=400, detail="Invalid path: contains null byte")

        real_path = Path(os.path.realpath(os.path.expanduser(clean_path)))
        if not real_path.exists():
            raise HTTPException(status_code=404, detail="Path not found: %s" % clean_path)
        if not real_path.is_dir():
            raise HTTPException(
                status_code=400, detail="Path must be a directory: %s" % clean_path
            )
        resolved_paths.append(real_path)

    if not resolved_paths:
        raise HTTPException(status_code=400, detail="No path provided")
    return resolved_paths


def _is_indexed(indexer: Indexer, path: Path) -> bool:
    candidates = {str(path), os.path.realpath(path)}
    return any(entry.path in candidates for entry in indexer.catalog.snapshot())


def _status_payload(indexer: Indexer) -> dict[str, Any]:
    return {
        "state": indexer.state.value,
        "indexed_count": indexer.indexed_count,
        "last_error": indexer.last_error,
        "index_path": str(indexer.store.path),
    }


@app.on_event("startup")
async def startup_event() -> None:
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")
    indexer = get_indexer()
    if indexer.indexed_count == 0 and not indexer.is_indexing:
        await asyncio.to_thread(indexer.load_index)


@app.on_event("shutdown")
async def shutdown_event() -> None:
    indexer = get_indexer()
    await asyncio.to_thread(indexer.stop_indexing)


@app.get("/status")
async def index_status() -> dict[str, Any]:
    return _status_payload(get_indexer())


@app.post("/index")
async def start_indexing(payload: IndexPayload) -> dict[str, Any]:
    roots = _resolve_roots(payload.paths) if payload.paths is not None else None
    indexer = get_indexer()
    # Starting joins any running walk, keep it off the event loop.
    await asyncio.to_thread(indexer.start_indexing, roots)
    return {"status": "ok", **_status_payload(indexer)}


@app.post("/index/stop")
async def stop_indexing() -> dict[str, Any]:
    indexer = get_indexer()
    if not indexer.is_indexing:
        raise HTTPException(status_code=409, detail="Indexing is not running")
    await asyncio.to_thread(indexer.stop_indexing)
    return {"status": "ok", **_status_payload(indexer)}


@app.post("/search")
async def search_entries(payload: SearchPayload) -> dict[str, Any]:
    limit = max(1, min(payload.limit, 1000))
    indexer = get_indexer()
    matches = await asyncio.to_thread(indexer.search, payload.query)
    if matches is None:
        raise HTTPException(status_code=500, detail=indexer.last_error or "Search failed")
    return {
        "total": len(matches),
        "results": [entry.to_dict() for entry in matches[:limit]],
    }


@app.get("/results")
async def list_results(offset: int = 0, limit: int = 100) -> dict[str, Any]:
    """Page through the live result view the indexer publishes to."""
    indexer = get_indexer()
    sink = indexer.sink
    if not isinstance(sink, ListResultSink):
        raise HTTPException(status_code=404, detail="Result view is not available")

    await asyncio.to_thread(indexer.dispatcher.flush, 1.0)
    items = sink.items()
    offset = max(0, offset)
    limit = max(1, min(limit, 1000))
    return {
        "total": len(items),
        "offset": offset,
        "results": [entry.to_dict() for entry in items[offset : offset + limit]],
    }


@app.post("/open")
async def open_entry(payload: OpenRequest) -> dict[str, str]:
    path = payload.path.expanduser()
    if not path.exists():
        raise HTTPException(status_code=404, detail=f"File not found: {path}")
    if not _is_indexed(get_indexer(), path):
        raise HTTPException(status_code=404, detail=f"Not in index: {path}")

    try:
        if os.name == "posix":  # macOS/Linux
            opener = "open" if sys.platform == "darwin" else "xdg-open"
            subprocess.Popen([opener, str(path)])
        else:
            os.startfile(path)  # type: ignore[attr-defined]
    except OSError as exc:
        LOGGER.error("Unable to open %s: %s", path, exc)
        raise HTTPException(status_code=500, detail=str(exc))
    return {"status": "ok"}
