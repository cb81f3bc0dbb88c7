"""Builds the class/method model of a scope from its declarations."""

from __future__ import annotations

import logging
from concurrent.futures import CancelledError, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

from ..metrics.metric import Metric
from ..metrics.types import MetricType
from ..metrics.value import Value
from ..scanning.provider import DEFAULT_WORKERS, SourceSet
from ..scanning.symbols import SymbolIndex
from ..scanning.syntax import FunctionDecl, ModuleDecl, TypeDecl
from ..visitors import CLASS_COMPUTE, METHOD_COMPUTE, VisitContext, enabled_computations, to_metric
from .elements import ClassElement, FileElement, MethodElement, ProjectElement
from .maintainability import maintainability_index

if TYPE_CHECKING:
    from ..config import MetricsConfig
    from ..graph.models import DependencyGraph
    from ..pipeline.cancellation import CancellationToken

logger = logging.getLogger(__name__)


@dataclass
class _ModuleResult:
    """Elements of one module, ready to be placed in the project arena."""

    file: FileElement
    package: str
    classes: list[tuple[ClassElement, Optional[str]]] = field(default_factory=list)


class ModelAssembler:
    """Runs the enabled visitors over every class and method of a scope.

    Modules are assembled independently (in parallel once the scope holds
    ``parallel_threshold`` modules) and then published into the project
    arena in module order, so class ids never depend on thread scheduling.

    Usage:
        project = ModelAssembler(config).assemble(sources, graph)
    """

    def __init__(self, config: Optional["MetricsConfig"] = None, name: str = "project") -> None:
        self.config = config
        self.name = name
        self._workers = (config.workers if config else None) or DEFAULT_WORKERS
        self._threshold = config.parallel_threshold if config else 10
        self._method_computations = enabled_computations(METHOD_COMPUTE, config)
        self._class_computations = enabled_computations(CLASS_COMPUTE, config)

    def _enabled(self, metric_type: MetricType) -> bool:
        return self.config is None or self.config.is_enabled(metric_type)

    def assemble(
        self,
        sources: SourceSet,
        graph: Optional["DependencyGraph"] = None,
        token: Optional["CancellationToken"] = None,
    ) -> ProjectElement:
        """Build the model for ``sources``.

        Raises:
            concurrent.futures.CancelledError: If ``token`` is cancelled
        """
        modules = sources.modules
        if len(modules) < self._threshold:
            results = [self.assemble_module(module, sources.index, graph, token) for module in modules]
        else:
            with ThreadPoolExecutor(max_workers=self._workers, thread_name_prefix="metrics-model") as executor:
                futures = [
                    executor.submit(self.assemble_module, module, sources.index, graph, token) for module in modules
                ]
                try:
                    results = [future.result() for future in futures]
                except CancelledError:
                    for pending in futures:
                        pending.cancel()
                    raise

        project = ProjectElement(self.name)
        for result in results:
            project.add_file(result.file, result.package)
            for element, outer in result.classes:
                project.add_class(element, outer, result.file)
        project.link_packages()

        logger.debug(f"Model for {sources.scope_key}: {project.class_count} classes in {len(modules)} modules")
        return project

    def assemble_module(
        self,
        module: ModuleDecl,
        index: SymbolIndex,
        graph: Optional["DependencyGraph"] = None,
        token: Optional["CancellationToken"] = None,
    ) -> _ModuleResult:
        if token is not None:
            token.check()

        file = FileElement(
            module.path.rsplit("/", 1)[-1],
            path=module.path,
            module=module.module_name,
            line_count=module.line_count,
        )
        result = _ModuleResult(file=file, package=module.package)

        # Enclosing classes are popped before the classes they contain
        stack: list[TypeDecl] = list(reversed(module.classes))
        while stack:
            cls = stack.pop()
            outer = cls.outer.qualified_name if cls.outer is not None else None
            result.classes.append((self.assemble_class(cls, index, graph), outer))
            stack.extend(reversed(cls.nested))
        return result

    def assemble_class(
        self, cls: TypeDecl, index: SymbolIndex, graph: Optional["DependencyGraph"] = None
    ) -> ClassElement:
        """Class element with class, method and derived metrics."""
        ctx = VisitContext(index, graph)
        element = ClassElement(
            cls.name,
            qualified_name=cls.qualified_name,
            package=cls.package,
            module=cls.module.module_name,
            line=cls.line,
            kind=_kind_of(cls, index),
            is_static=cls.is_nested,
            declaration=cls,
        )

        for metric_type, compute in self._class_computations:
            element.add_metric(to_metric(metric_type, compute(cls, ctx)))

        for method in cls.methods:
            element.methods.append(self._assemble_method(method, cls, ctx))

        self._derive_class_metrics(element)
        return element

    def _assemble_method(self, method: FunctionDecl, cls: TypeDecl, ctx: VisitContext) -> MethodElement:
        element = MethodElement(
            method.name,
            qualified_name=f"{cls.qualified_name}.{method.name}",
            line=method.line,
            is_constructor=method.is_constructor,
            is_static=method.is_static,
            is_abstract=method.is_abstract,
        )
        for metric_type, compute in self._method_computations:
            element.add_metric(to_metric(metric_type, compute(method, ctx)))

        if self._enabled(MetricType.MMI):
            element.add_metric(
                Metric.of(
                    MetricType.MMI,
                    maintainability_index(
                        element.value(MetricType.HVL),
                        element.value(MetricType.CC),
                        element.value(MetricType.LOC),
                    ),
                )
            )
        return element

    def _derive_class_metrics(self, element: ClassElement) -> None:
        lines = _method_sum(element, MetricType.LOC)
        if self._enabled(MetricType.CLOC):
            element.add_metric(Metric.of(MetricType.CLOC, lines))
        if self._enabled(MetricType.CCC):
            element.add_metric(Metric.of(MetricType.CCC, _method_sum(element, MetricType.CCM)))
        if self._enabled(MetricType.CMI):
            element.add_metric(
                Metric.of(
                    MetricType.CMI,
                    maintainability_index(
                        element.value(MetricType.CHVL),
                        _method_sum(element, MetricType.CC),
                        lines,
                    ),
                )
            )


def _method_sum(element: ClassElement, metric_type: MetricType) -> Value:
    """Sum over methods; UNDEFINED when the method metric is not computed."""
    if element.methods and not all(method.has_metric(metric_type) for method in element.methods):
        return Value.UNDEFINED
    return Value.sum(element.method_values(metric_type))


def _kind_of(cls: TypeDecl, index: SymbolIndex) -> str:
    if index.is_interface(cls):
        return "interface"
    if index.is_enum(cls):
        return "enum"
    if index.is_abstract(cls):
        return "abstract"
    return "concrete"
