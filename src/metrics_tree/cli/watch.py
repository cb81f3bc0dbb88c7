"""``metrics-tree watch``: rebuild the project metrics whenever sources change."""

import logging
import threading
from pathlib import Path
from typing import Optional

import typer

from ..exceptions import MetricsTreeError
from ..logging_config import setup_logging
from ..metrics import MetricLevel
from ..pipeline import PipelineOrchestrator, ScopeWatcher
from ..scanning import AnalysisScope
from . import app
from ._common import console, level_tables, resolve_config

logger = logging.getLogger(__name__)


@app.command()
def watch(
    path: Path = typer.Argument(
        Path("."),
        help="Project root to watch",
        exists=True,
        file_okay=False,
        dir_okay=True,
    ),
    config: Optional[Path] = typer.Option(None, "-c", "--config", help="Config file"),
    workers: Optional[int] = typer.Option(None, "-w", "--workers", help="Parallel workers"),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Verbose logging"),
) -> None:
    """Build the project metrics, then rebuild after every change until Ctrl+C."""
    setup_logging(verbose=verbose)

    try:
        settings = resolve_config(config=config, workers=workers, verbose=verbose)
        scope = AnalysisScope.from_config(path, settings)
    except MetricsTreeError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    orchestrator = PipelineOrchestrator(settings)
    rebuild_lock = threading.Lock()

    def rebuild(changed: Optional[list[str]] = None) -> None:
        with rebuild_lock:
            if changed:
                console.print(f"[dim]{len(changed)} file(s) changed, rebuilding...[/dim]")
            try:
                project = orchestrator.get_project_model(scope)
            except MetricsTreeError as e:
                console.print(f"[red]Build failed:[/red] {e}")
                return
            for table in level_tables(project, MetricLevel.PROJECT):
                console.print(table)

    console.print(f"[bold]Analyzing[/bold] {scope.root}")
    with console.status("[cyan]Running initial analysis..."):
        rebuild()

    watcher = ScopeWatcher(scope, orchestrator, on_invalidate=rebuild)
    watcher.start()
    console.print("[dim]Watching for changes. Press Ctrl+C to stop[/dim]")

    stop = threading.Event()
    try:
        while watcher.running:
            stop.wait(0.5)
    except KeyboardInterrupt:
        console.print("\n[dim]Stopping...[/dim]")
    finally:
        watcher.stop()
        orchestrator.shutdown(wait=False)
        logger.debug("Watch session closed")
