"""Main analysis command: one-shot build of every stage."""

from pathlib import Path
from typing import Optional

import click
import typer

from ..api import AnalysisResult
from ..api import analyze as run_analysis
from ..exceptions import MetricsTreeError
from ..logging_config import setup_logging
from ..metrics import MetricLevel
from . import app
from ._common import LEVELS, console, level_tables, print_profiles, resolve_config, snapshot_json


@app.command()
def analyze(
    path: Path = typer.Argument(
        Path("."),
        help="Project root to analyze",
        exists=True,
        file_okay=False,
        dir_okay=True,
    ),
    level: str = typer.Option(
        "project",
        "--level",
        "-l",
        help="Which elements to report: method | class | package | project",
        click_type=click.Choice(LEVELS, case_sensitive=False),
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Print the metric snapshot of every element as JSON",
    ),
    config: Optional[Path] = typer.Option(
        None,
        "-c",
        "--config",
        help="Configuration file (TOML)",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
    workers: Optional[int] = typer.Option(
        None,
        "-w",
        "--workers",
        help="Parallel workers (default: auto-detect)",
        min=1,
        max=32,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress logging"),
):
    """
    Compute method, class, package and project metrics for a Python project.

    [bold cyan]Examples:[/bold cyan]

      metrics-tree analyze src

      metrics-tree analyze . --level class

      metrics-tree analyze . --level package --json
    """
    logger = setup_logging(verbose=verbose, quiet=quiet)
    selected = MetricLevel(level.lower())

    try:
        settings = resolve_config(config=config, workers=workers, verbose=verbose, quiet=quiet)
        result = run_analysis(path, settings)

        if json_output:
            print(snapshot_json(result.project, selected))
            return

        _output_rich(result, selected)
        if settings.profiles:
            print_profiles(result.project, settings)

    except typer.Exit:
        raise
    except MetricsTreeError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    except Exception as e:
        logger.exception("Unexpected error")
        console.print(f"[red]Unexpected error:[/red] {e}")
        if verbose:
            console.print_exception()
        raise typer.Exit(1)


def _output_rich(result: AnalysisResult, level: MetricLevel) -> None:
    project = result.project
    console.print()
    console.print(
        f"[bold cyan]{project.name}[/bold cyan]: "
        f"[green]{project.class_count}[/green] classes in "
        f"[green]{len(project.packages())}[/green] packages"
    )
    if result.skipped:
        console.print(f"[yellow]Skipped {len(result.skipped)} unreadable file(s)[/yellow]")
    console.print()

    tables = level_tables(project, level)
    if not tables:
        console.print(f"[yellow]No {level.value} metrics to show[/yellow]")
    for table in tables:
        console.print(table)
