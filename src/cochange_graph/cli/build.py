"""``cochange-graph build``: fetch history, build the graph, write the snapshot."""

from pathlib import Path
from typing import Optional

import typer
from rich.table import Table

from . import app
from ._common import console, resolve_config
from ..exceptions import CoChangeError, CoChangeGraphError
from ..graph import BuildSummary, build_graph
from ..logging_config import setup_logging
from ..snapshot import export, write_snapshot
from ..sources import GitHubPullRequestSource, GitLogSource, parse_repo_slug


@app.command()
def build(
    github: Optional[str] = typer.Option(
        None, "--github", help="GitHub repository as OWNER/REPO"
    ),
    git: Optional[Path] = typer.Option(
        None, "--git", help="Local git clone to read history from",
        exists=True, file_okay=False, dir_okay=True, readable=True,
    ),
    output: Optional[Path] = typer.Option(
        None, "-o", "--output", help="Snapshot file to write (default: cochange.json)"
    ),
    granularity: Optional[str] = typer.Option(
        None, "--granularity", help="change_set (one PR) or sub_change (one commit)"
    ),
    max_files: Optional[int] = typer.Option(
        None, "--max-files", help="Skip change-sets touching more files than this"
    ),
    state: Optional[str] = typer.Option(
        None, "--state", help="Pull requests to read: open, closed or all"
    ),
    limit: Optional[int] = typer.Option(
        None, "--limit", help="Read at most this many pull requests"
    ),
    workers: Optional[int] = typer.Option(
        None, "-w", "--workers", help="Concurrent pull request fetches"
    ),
    config: Optional[Path] = typer.Option(
        None, "-c", "--config", help="Configuration file path (TOML format)",
        exists=True, file_okay=True, dir_okay=False, readable=True,
    ),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Verbose logging"),
    quiet: bool = typer.Option(False, "-q", "--quiet", help="Only log errors"),
) -> None:
    """Build a co-change graph and write it as a JSON snapshot."""
    if (github is None) == (git is None):
        console.print("[red]Error:[/red] pass exactly one of --github or --git")
        raise typer.Exit(2)

    try:
        settings = resolve_config(
            config=config,
            verbose=verbose,
            quiet=quiet,
            output_path=str(output) if output is not None else None,
            granularity=granularity,
            max_files_per_change_set=max_files,
            pull_state=state,
            max_change_sets=limit,
            fetch_workers=workers,
        )
    except CoChangeGraphError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    logger = setup_logging(
        verbose=settings.verbosity == "verbose",
        quiet=settings.verbosity == "quiet",
        log_file=settings.log_file,
    )

    try:
        if github is not None:
            owner, repo = parse_repo_slug(github)
            items = GitHubPullRequestSource(owner, repo, config=settings).change_sets()
            label = f"{owner}/{repo}"
        else:
            assert git is not None
            items = GitLogSource(str(git), max_commits=settings.git_max_commits).change_sets()
            label = str(git)

        with console.status(f"[cyan]Reading history of {label}..."):
            summary = build_graph(
                items,
                granularity=settings.granularity,
                max_files_per_change_set=settings.max_files_per_change_set,
            )
        path = write_snapshot(export(summary.graph), settings.output_path, indent=settings.indent)

    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    except CoChangeError as e:
        logger.error("%s: %s", e.__class__.__name__, e)
        console.print(f"[red]Error:[/red] {e}")
        if e.recovery_hint:
            console.print(f"[dim]{e.recovery_hint}[/dim]")
        raise typer.Exit(1)

    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted[/yellow]")
        raise typer.Exit(130)

    _print_summary(summary, path)


def _print_summary(summary: BuildSummary, path: Path) -> None:
    console.print(
        f"[green]Wrote[/green] {path}, {summary.node_count} file(s), "
        f"{summary.edge_count} edge(s) from {summary.applied} change-set(s)"
    )
    if not summary.skipped:
        return

    table = Table(title=f"Skipped {len(summary.skipped)} change-set(s)", title_justify="left")
    table.add_column("Change", style="cyan")
    table.add_column("Code", style="yellow")
    table.add_column("Reason")
    for skipped in summary.skipped:
        table.add_row(str(skipped.change_id), skipped.error_code, skipped.reason)
    console.print(table)
