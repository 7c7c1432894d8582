"""``cochange-graph serve``: serve snapshot files over HTTP."""

from pathlib import Path
from typing import Optional

import typer

from . import app
from ._common import console, resolve_config
from ..exceptions import CoChangeGraphError
from ..logging_config import setup_logging


@app.command()
def serve(
    root: Path = typer.Argument(
        Path("."), help="Snapshot file, or a directory of snapshot files",
        exists=True, readable=True,
    ),
    port: Optional[int] = typer.Option(None, help="Port to listen on (default 7878)"),
    host: Optional[str] = typer.Option(None, help="Host to bind to (default 127.0.0.1)"),
    config: Optional[Path] = typer.Option(None, "-c", "--config", help="Config file"),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Verbose logging"),
) -> None:
    """Serve exported snapshots read-only."""
    try:
        from ..server import _check_deps

        _check_deps()
    except ImportError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(1)

    import uvicorn

    from ..server.app import create_app

    try:
        settings = resolve_config(
            config=config, verbose=verbose, serve_host=host, serve_port=port
        )
    except CoChangeGraphError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    setup_logging(verbose=verbose, log_file=settings.log_file)

    url = f"http://{settings.serve_host}:{settings.serve_port}"
    console.print(f"[bold]Serving[/bold] {root.resolve()} → [link={url}]{url}[/link]")
    console.print("[dim]Press Ctrl+C to stop[/dim]")

    try:
        uvicorn.run(
            create_app(root),
            host=settings.serve_host,
            port=settings.serve_port,
            log_level="info" if verbose else "warning",
        )
    except KeyboardInterrupt:
        pass
    finally:
        console.print("\n[dim]Stopped.[/dim]")
