"""CLI entry point: registers all subcommands."""

import typer

from .. import __version__
from ._common import console

app = typer.Typer(
    name="cochange-graph",
    help="cochange-graph - find files that change together",
    add_completion=False,
    rich_markup_mode="rich",
    no_args_is_help=True,
)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: bool = typer.Option(False, "--version", help="Show version and exit"),
) -> None:
    """Build and inspect co-change graphs from pull request history."""
    if version:
        console.print(f"[bold cyan]cochange-graph[/bold cyan] version [green]{__version__}[/green]")
        raise typer.Exit(0)
    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())
        raise typer.Exit(0)


# Import subcommands to register them
from .build import build as _build  # noqa: F401, E402
from .show import show as _show  # noqa: F401, E402
from .serve import serve as _serve  # noqa: F401, E402
