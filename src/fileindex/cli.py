"""Command line interface for FileIndex."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from fileindex.config import AppConfig
from fileindex.index.catalog import CatalogStore
from fileindex.index.indexer import Indexer
from fileindex.index.search import Searcher
from fileindex.index.storage import SnapshotStore
from fileindex.models import IndexState


console = Console()
app = typer.Typer(help="FileIndex - fast file name search over local drives")


def _setup_logging(verbose: bool, log_path: Path | None = None) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")
    if log_path is None:
        return
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
    except OSError as exc:
        logging.getLogger(__name__).warning("Cannot write log file %s: %s", log_path, exc)
        return
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(
        logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    logging.getLogger().addHandler(file_handler)


def _format_size(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    value = size / 1024
    for unit in ("KB", "MB"):
        if value < 1024:
            return f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} GB"


def _load_catalog(index_file: Path | None) -> tuple[CatalogStore, Path]:
    config = AppConfig(index_path=index_file)
    resolved = config.resolve_index_path(Path.cwd())
    store = SnapshotStore(resolved)
    if not store.exists():
        raise typer.BadParameter(f"Index not found: {resolved}")
    catalog = CatalogStore()
    catalog.extend(store.load())
    return catalog, resolved


@app.command()
def index(
    roots: Optional[List[Path]] = typer.Argument(
        None, help="Directories to index. Defaults to every ready drive.", resolve_path=True
    ),
    index_file: Path = typer.Option(None, "--index-file", help="Snapshot JSON path"),
    log_file: Path = typer.Option(None, "--log-file", help="Indexer log file path"),
    include_dirs: bool = typer.Option(
        False, "--include-dirs", help="Also record directories in the index"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Walk the given roots and save a fresh index."""
    config = AppConfig(
        index_path=index_file,
        log_path=log_file,
        roots=roots or None,
        include_directories=include_dirs,
    )
    _setup_logging(verbose, config.log_path)

    indexer = Indexer(config)
    indexer.on_error(lambda message: console.print(f"[red]Error:[/red] {message}"))
    resolved_roots = config.resolve_roots()
    console.print(
        f"Indexing {', '.join(str(root) for root in resolved_roots)} "
        f"into [bold]{indexer.store.path}[/bold]..."
    )

    indexer.start_indexing(resolved_roots)
    try:
        while not indexer.wait(timeout=0.5):
            pass
    except KeyboardInterrupt:
        console.print("[yellow]Stopping...[/yellow]")
        indexer.stop_indexing()
        indexer.wait()
    finally:
        indexer.close()

    stats = indexer.last_stats
    if stats is not None:
        console.print(
            f"Files: {stats.files}, directories: {stats.directories}, "
            f"skipped: {stats.skipped}, failed: {stats.failed}"
        )
    if indexer.state is IndexState.STOPPED:
        console.print("[yellow]Indexing was stopped before it finished.[/yellow]")
    console.print(f"Indexed entries: {indexer.indexed_count}")


@app.command()
def search(
    query: str = typer.Argument("", help="Space separated name fragments"),
    index_file: Path = typer.Option(None, "--index-file", help="Snapshot JSON path"),
    limit: int = typer.Option(50, help="Number of results to display"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Search indexed file names."""
    _setup_logging(verbose)
    catalog, _ = _load_catalog(index_file)

    results = Searcher(catalog).search(query)
    if not results:
        console.print("[yellow]No matches found.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Name")
    table.add_column("Size", justify="right")
    table.add_column("Modified")
    table.add_column("Path")

    for entry in results[: max(1, limit)]:
        table.add_row(
            entry.name,
            "<dir>" if entry.is_directory else _format_size(entry.size_bytes),
            entry.modified_at.strftime("%Y-%m-%d %H:%M"),
            entry.path,
        )

    console.print(table)
    if len(results) > limit:
        console.print(f"Showing {limit} of {len(results)} matches.")


@app.command()
def status(
    index_file: Path = typer.Option(None, "--index-file", help="Snapshot JSON path"),
) -> None:
    """Show what the persisted index contains."""
    config = AppConfig(index_path=index_file)
    resolved = config.resolve_index_path(Path.cwd())
    if not SnapshotStore(resolved).exists():
        console.print(f"[yellow]No index at {resolved}.[/yellow]")
        return

    catalog, _ = _load_catalog(index_file)
    console.print(f"Index: [bold]{resolved}[/bold]")
    console.print(f"Entries: {catalog.count()}")


@app.command()
def web(
    host: str = typer.Option("127.0.0.1", help="Host interface"),
    port: int = typer.Option(8000, help="Server port"),
    index_file: Path = typer.Option(None, "--index-file", help="Snapshot JSON path"),
) -> None:
    """Start the web interface."""
    try:
        import uvicorn
    except ImportError as exc:  # pragma: no cover
        raise typer.BadParameter(
            "uvicorn is not installed. Install the web extras with \"python -m pip install '.[web]'\""
        ) from exc

    from fileindex.web.app import app as web_app, set_indexer

    config = AppConfig(index_path=index_file)
    set_indexer(Indexer(config))

    console.print(
        f"Starting web interface on http://{host}:{port} (index: {config.resolve_index_path()})"
    )
    uvicorn.run(
        web_app,
        host=host,
        port=port,
        reload=False,
        log_level="info",
    )
