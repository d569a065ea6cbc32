"""Panels CLI — entry-point for serving, one-off lookups and archive harvesting.

Usage:
    python cli/main.py --help

Commands:
    serve     → run the REST API under uvicorn
    strip     → fetch one strip and print it as JSON
    harvest   → fill the archived-Dilbert snapshot table from the Wayback Machine
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that `from panels.xxx import ...`
# works when the CLI is invoked as `python cli/main.py` from any directory.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

import json
from typing import Optional

import typer

from panels.config import settings
from panels.errors import PanelsError

app = typer.Typer(
    name="panels",
    help="Panels comic strip backend CLI.",
    no_args_is_help=True,
)


# ---------------------------------------------------------------------------
# Server
# ---------------------------------------------------------------------------
@app.command("serve")
def serve(
    host: str = typer.Option("0.0.0.0", help="Interface to bind."),
    port: Optional[int] = typer.Option(None, help="Port (defaults to PANELS_PORT)."),
) -> None:
    """Run the REST API."""
    import uvicorn

    bind_port = port or settings.port
    typer.echo(f"[serve] Listening on {host}:{bind_port}")
    uvicorn.run("panels.api.app:app", host=host, port=bind_port)


# ---------------------------------------------------------------------------
# One-off lookup
# ---------------------------------------------------------------------------
@app.command("strip")
def strip(
    endpoint: str = typer.Argument(..., help="Comic endpoint, e.g. garfield or xkcd."),
    identifier: str = typer.Argument("latest", help="latest | random | YYYY-MM-DD | #n"),
) -> None:
    """Fetch a single strip and print it as JSON."""
    from panels.cache import StripCache
    from panels.data import load_comics
    from panels.scraper.fetcher import build_client
    from panels.sources import build_registry

    comics = load_comics(settings.comics_path)
    cache = StripCache(settings.strip_cache_max, settings.strip_cache_ttl)
    with build_client(settings) as client:
        registry = build_registry(client, comics, cache, settings)
        try:
            result = registry.resolve(endpoint, identifier)
        except PanelsError as exc:
            typer.echo(f"[strip] {exc.message}", err=True)
            raise typer.Exit(1)

    typer.echo(json.dumps(result.to_dict(), indent=2))


# ---------------------------------------------------------------------------
# Archive harvesting
# ---------------------------------------------------------------------------
@app.command("harvest")
def harvest(
    table: Optional[Path] = typer.Option(None, help="Snapshot table path (defaults to the data dir)."),
    concurrency: Optional[int] = typer.Option(None, help="Snapshots fetched per batch."),
    save_interval: Optional[int] = typer.Option(None, help="New entries between checkpoints."),
) -> None:
    """Harvest archived Dilbert strips into the snapshot table."""
    from panels.harvest import Harvester
    from panels.scraper.fetcher import build_client

    table_path = table or settings.snapshot_table_path
    typer.echo(f"[harvest] Snapshot table: {table_path}")

    with build_client(settings) as client:
        harvester = Harvester(
            client,
            table_path,
            concurrency=concurrency or settings.harvest_concurrency,
            save_interval=save_interval or settings.harvest_save_interval,
            batch_pause=settings.harvest_batch_pause,
        )
        try:
            report = harvester.run()
        except RuntimeError as exc:
            typer.echo(f"[harvest] {exc}", err=True)
            raise typer.Exit(1)

    typer.echo(
        f"[harvest] already cached: {report.already_cached}  "
        f"fetched: {report.fetched}  errors: {report.errors}  total: {report.total}"
    )


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    app()
