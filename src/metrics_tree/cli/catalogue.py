"""``metrics-tree metrics``: the metric catalogue."""

from typing import Optional

import click
import typer
from rich.table import Table

from ..metrics import REGISTRY, MetricLevel, MetricType
from . import app
from ._common import LEVELS, console


@app.command()
def metrics(
    level: Optional[str] = typer.Option(
        None,
        "--level",
        "-l",
        help="Only list metrics of one level",
        click_type=click.Choice(LEVELS, case_sensitive=False),
    ),
):
    """List every metric: code, level, value kind, family and description."""
    table = Table(show_header=True, show_lines=False, pad_edge=True)
    table.add_column("Code", style="cyan")
    table.add_column("Level")
    table.add_column("Kind")
    table.add_column("Set")
    table.add_column("Description")

    for metric_type in MetricType:
        meta = REGISTRY[metric_type]
        if level is not None and meta.level is not MetricLevel(level.lower()):
            continue
        table.add_row(metric_type.value, meta.level.value, meta.kind.value, meta.metric_set.value, meta.description)

    console.print(table)
