"""Dependency graph construction from class declarations."""

from __future__ import annotations

import logging
from concurrent.futures import CancelledError, Future, ThreadPoolExecutor, as_completed
from typing import TYPE_CHECKING, Optional

from ..scanning.provider import DEFAULT_WORKERS, SourceSet
from ..scanning.syntax import ModuleDecl
from .models import DependencyGraph
from .references import ReferenceCollector

if TYPE_CHECKING:
    from ..config import MetricsConfig
    from ..pipeline.cancellation import CancellationToken

logger = logging.getLogger(__name__)


class DependenciesBuilder:
    """Records every outgoing type reference of every class of a scope.

    One builder processes many compilation units, in parallel once the scope
    holds ``parallel_threshold`` modules; the graph's own lock keeps
    population consistent.

    Usage:
        graph = DependenciesBuilder(config).build(sources)
    """

    def __init__(self, config: Optional["MetricsConfig"] = None) -> None:
        self._workers = (config.workers if config else None) or DEFAULT_WORKERS
        self._threshold = config.parallel_threshold if config else 10

    def build(self, sources: SourceSet, token: Optional["CancellationToken"] = None) -> DependencyGraph:
        """Build and freeze the graph for ``sources``.

        Raises:
            concurrent.futures.CancelledError: If ``token`` is cancelled
        """
        graph = DependencyGraph()
        collector = ReferenceCollector(sources.index)
        modules = sources.modules

        if len(modules) < self._threshold:
            for module in modules:
                self._visit_module(module, collector, graph, token)
        else:
            with ThreadPoolExecutor(max_workers=self._workers, thread_name_prefix="metrics-deps") as executor:
                futures: list[Future] = [
                    executor.submit(self._visit_module, module, collector, graph, token) for module in modules
                ]
                try:
                    for future in as_completed(futures):
                        future.result()
                except CancelledError:
                    for pending in futures:
                        pending.cancel()
                    raise

        logger.debug(
            f"Dependency graph for {sources.scope_key}: "
            f"{len(graph.class_packages)} classes, {graph.edge_count} edges"
        )
        return graph.freeze()

    def _visit_module(
        self,
        module: ModuleDecl,
        collector: ReferenceCollector,
        graph: DependencyGraph,
        token: Optional["CancellationToken"],
    ) -> None:
        if token is not None:
            token.check()
        for cls in module.all_classes():
            source = cls.qualified_name
            graph.add_class(source, cls.package)
            for ref in collector.collect(cls):
                if ref.target is not None:
                    graph.add_dependency(source, cls.package, ref.target.qualified_name, ref.target.package)
                else:
                    graph.add_unresolved(source, cls.package, ref.name)


def build_dependency_graph(sources: SourceSet, config: Optional["MetricsConfig"] = None) -> DependencyGraph:
    """Build the dependency graph of a parsed scope in one call."""
    return DependenciesBuilder(config).build(sources)
