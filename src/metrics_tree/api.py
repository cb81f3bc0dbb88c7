"""Public API for metrics-tree.

Example:
    >>> from metrics_tree import analyze, snapshot
    >>>
    >>> result = analyze("/path/to/code")
    >>> for cls in result.project.classes():
    ...     print(cls.qualified_name, cls.value(MetricType.WMC))
    >>>
    >>> # Historical snapshot of the project-level metrics
    >>> snapshot(result.project)
    {'AHF': '0.5', ..., 'time': '2024-05-01T10:00:00+00:00'}
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Union

from .config import MetricsConfig
from .graph import DependencyGraph
from .logging_config import get_logger
from .model import CodeElement, ProjectElement
from .pipeline import PipelineOrchestrator
from .scanning import AnalysisScope

logger = get_logger(__name__)


@dataclass(frozen=True)
class AnalysisResult:
    """Outcome of a one-shot build.

    Attributes:
        project: Fully built model (class, method, package and project metrics)
        graph: Class dependency graph of the scope
        skipped: Relative paths that could not be read
    """

    project: ProjectElement
    graph: DependencyGraph
    skipped: list[str] = field(default_factory=list)


def analyze(path: Union[str, Path] = ".", config: Optional[MetricsConfig] = None) -> AnalysisResult:
    """Build every stage for the sources under ``path``.

    Args:
        path: Project root (``root/src`` is used as source root when present)
        config: Settings; defaults apply when None

    Returns:
        AnalysisResult holding the project model and dependency graph

    Raises:
        InvalidPathError: If ``path`` is not a directory
        BuildIncompleteError: If a stage fails
    """
    config = config or MetricsConfig()
    scope = AnalysisScope.from_config(path, config)
    logger.info(f"Starting analysis of {scope.root}")

    with PipelineOrchestrator(config) as orchestrator:
        project = orchestrator.get_project_model(scope)
        graph = orchestrator.get_dependencies(scope)
        sources = orchestrator.get_sources(scope)

    logger.info(f"Analysis complete: {project.class_count} classes in {len(project.packages())} packages")
    return AnalysisResult(project=project, graph=graph, skipped=list(sources.skipped))


def snapshot(element: CodeElement, time: Optional[datetime] = None) -> dict[str, str]:
    """Mapping of metric code to printed value plus an ISO-8601 ``time`` entry.

    This is the record an exporter persists for metric history; writing it
    anywhere is up to the caller.
    """
    record = {metric.code: str(metric.value) for metric in element.metrics}
    record["time"] = (time or datetime.now(timezone.utc)).isoformat()
    return record
