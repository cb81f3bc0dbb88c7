"""
metrics-tree - Object-oriented software metrics for Python projects

Computes method, class, package and project metrics (Chidamber-Kemerer,
Halstead, McCabe, Robert C. Martin, MOOD, QMOOD, maintainability index)
through a staged, cached and cancellable build pipeline.
"""

__version__ = "0.3.0"

from .api import AnalysisResult, analyze, snapshot
from .config import MetricsConfig, load_config
from .metrics import Metric, MetricLevel, MetricType, Value
from .pipeline import PipelineOrchestrator, Stage
from .scanning import AnalysisScope

__all__ = [
    "analyze",  # One-shot build
    "snapshot",
    "AnalysisResult",
    "AnalysisScope",
    "Metric",
    "MetricLevel",
    "MetricType",
    "MetricsConfig",
    "PipelineOrchestrator",  # Incremental, cached builds
    "Stage",
    "Value",
    "load_config",
]
