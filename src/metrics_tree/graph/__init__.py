"""Class and package dependency graph."""

from .builder import DependenciesBuilder, build_dependency_graph
from .models import DEFAULT_PACKAGE, DependencyGraph
from .references import ReferenceCollector

__all__ = [
    "DEFAULT_PACKAGE",
    "DependenciesBuilder",
    "DependencyGraph",
    "ReferenceCollector",
    "build_dependency_graph",
]
