"""Staged, cached metric pipeline with cancellation and change notification."""

from .cache import Generation, MetricsCache, Stage, StageState
from .cancellation import CancellationToken
from .orchestrator import PipelineOrchestrator, StageResult
from .watcher import ScopeWatcher, SourceFilter

__all__ = [
    "CancellationToken",
    "Generation",
    "MetricsCache",
    "PipelineOrchestrator",
    "ScopeWatcher",
    "SourceFilter",
    "Stage",
    "StageResult",
    "StageState",
]
