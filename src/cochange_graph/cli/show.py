"""``cochange-graph show``: list the strongest couplings in a snapshot."""

from pathlib import Path
from typing import Optional

import typer
from rich.table import Table

from . import app
from ._common import console
from ..exceptions import CoChangeError
from ..snapshot import decode, read_snapshot


@app.command()
def show(
    snapshot_file: Path = typer.Argument(
        ..., help="Snapshot JSON written by build",
        exists=True, file_okay=True, dir_okay=False, readable=True,
    ),
    top: int = typer.Option(20, "--top", "-n", min=1, help="Rows to show"),
    path: Optional[str] = typer.Option(
        None, "--path", "-p", help="Only show files that change with this path"
    ),
) -> None:
    """Print the heaviest co-change edges."""
    try:
        graph = decode(read_snapshot(snapshot_file))
    except CoChangeError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    rows: list[tuple[str, str, int]] = []
    if path is not None:
        node = graph.find_node(path)
        if node is None:
            console.print(f"[yellow]No file named {path} in snapshot[/yellow]")
            raise typer.Exit(1)
        for other, weight in graph.neighbors(node.id).items():
            rows.append((node.current_path, graph.node(other).current_path, weight))
    else:
        for edge in graph.all_edges():
            rows.append(
                (
                    graph.node(edge.source).current_path,
                    graph.node(edge.target).current_path,
                    edge.weight(graph.granularity),
                )
            )

    if not rows:
        console.print("[dim]No co-change edges.[/dim]")
        return

    rows.sort(key=lambda r: (-r[2], r[0], r[1]))
    table = Table(title=f"Co-change ({len(rows)} edge(s))", title_justify="left")
    table.add_column("File", style="cyan")
    table.add_column("Changes with", style="cyan")
    table.add_column("Weight", justify="right", style="bold")
    for a, b, weight in rows[:top]:
        table.add_row(a, b, str(weight))
    console.print(table)
