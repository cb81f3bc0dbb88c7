"""Shared CLI helpers: settings resolution and metric tables."""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.table import Table

from ..api import snapshot
from ..config import MetricsConfig, load_config
from ..metrics import MetricLevel, MetricSet, MetricType, metrics_by_level
from ..model import CodeElement, ProjectElement

console = Console()

LEVELS = [level.value for level in MetricLevel]


def resolve_config(
    config: Optional[Path] = None,
    workers: Optional[int] = None,
    verbose: bool = False,
    quiet: bool = False,
) -> MetricsConfig:
    """Build settings from CLI options."""
    return load_config(config_file=config, workers=workers, verbose=verbose, quiet=quiet)


def elements_at(project: ProjectElement, level: MetricLevel) -> list[tuple[str, CodeElement]]:
    """(display name, element) pairs of every element holding ``level`` metrics."""
    if level is MetricLevel.PROJECT:
        return [(project.name, project)]
    if level is MetricLevel.PACKAGE:
        return [(p.display_name, p) for p in project.packages() if p.metrics]
    if level is MetricLevel.CLASS:
        return [(c.qualified_name, c) for c in project.classes()]
    return [(m.qualified_name, m) for c in project.classes() for m in c.methods]


def level_tables(project: ProjectElement, level: MetricLevel) -> list[Table]:
    """One table per metric family; rows are elements, columns metric codes.

    The project level is a single Metric/Value/Description table instead.
    """
    elements = elements_at(project, level)
    codes = sorted(metrics_by_level(level), key=lambda m: list(MetricType).index(m))

    if level is MetricLevel.PROJECT:
        table = Table(title=f"Project {project.name}", show_header=True, pad_edge=True)
        table.add_column("Metric", style="cyan")
        table.add_column("Value", justify="right")
        table.add_column("Description", style="dim")
        for metric in project.metrics:
            table.add_row(metric.code, str(metric.value), metric.type.description)
        return [table]

    tables = []
    for metric_set in MetricSet:
        family = [m for m in codes if m.meta.metric_set is metric_set]
        if not family or not any(el.has_metric(m) for _, el in elements for m in family):
            continue
        table = Table(title=f"{metric_set.value} ({level.value})", show_header=True, pad_edge=True)
        table.add_column(level.value.capitalize(), style="cyan", overflow="fold")
        for metric_type in family:
            table.add_column(metric_type.value, justify="right")
        for name, element in elements:
            table.add_row(name, *(str(element.value(m)) for m in family))
        tables.append(table)
    return tables


def print_profiles(project: ProjectElement, config: MetricsConfig) -> None:
    """List the classes and methods falling outside each configured profile."""
    for profile in config.get_profiles():
        offenders = []
        for cls in project.classes():
            for element, name in [(cls, cls.qualified_name)] + [(m, m.qualified_name) for m in cls.methods]:
                violations = profile.violations(element)
                if violations:
                    offenders.append((name, ", ".join(v.value for v in violations)))
        if not offenders:
            console.print(f"[green]Profile {profile.name}:[/green] all elements conform")
            continue
        table = Table(title=f"Profile {profile.name}", show_header=True)
        table.add_column("Element", style="cyan", overflow="fold")
        table.add_column("Out of range", style="yellow")
        for name, codes in offenders:
            table.add_row(name, codes)
        console.print(table)


def snapshot_json(project: ProjectElement, level: MetricLevel) -> str:
    """Snapshots of every element at ``level`` keyed by name, sharing one timestamp."""
    now = datetime.now(timezone.utc)
    output = {name: snapshot(element, now) for name, element in elements_at(project, level)}
    return json.dumps(output, indent=2)
