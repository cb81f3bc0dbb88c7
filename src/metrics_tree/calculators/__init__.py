"""Package- and project-level aggregation of class and method metrics."""

from .package import PackageMetricsCalculator
from .project import ProjectMetricsCalculator
from .statistics import Statistics

__all__ = ["PackageMetricsCalculator", "ProjectMetricsCalculator", "Statistics"]
