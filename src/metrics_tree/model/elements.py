"""The code model: project, packages, files, classes and methods with metrics.

Classes live in an arena owned by the ProjectElement and are addressed by
integer id. Enclosing/nested relations are stored as ids, never as object
references, so the tree holds no parent back-pointers.

A published tree is never modified: a later build stage works on
:meth:`ProjectElement.copy` and publishes that copy instead.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any, Iterator, Optional

from ..graph.models import DEFAULT_PACKAGE
from ..metrics.metric import Metric
from ..metrics.types import MetricType
from ..metrics.value import Value

if TYPE_CHECKING:
    from ..scanning.syntax import TypeDecl

DEFAULT_PACKAGE_DISPLAY = "<default>"

_CATALOGUE_ORDER = {metric_type: i for i, metric_type in enumerate(MetricType)}


@dataclass(eq=False)
class CodeElement:
    """Base for every model node: a name plus at most one metric per type."""

    name: str
    _metrics: dict[MetricType, Metric] = field(default_factory=dict, repr=False)

    def add_metric(self, metric: Metric) -> None:
        self._metrics[metric.type] = metric

    def add_metrics(self, metrics: list[Metric]) -> None:
        for metric in metrics:
            self.add_metric(metric)

    def metric(self, metric_type: MetricType) -> Optional[Metric]:
        return self._metrics.get(metric_type)

    def value(self, metric_type: MetricType) -> Value:
        """Value of ``metric_type``, UNDEFINED when it was not computed."""
        metric = self._metrics.get(metric_type)
        return metric.value if metric is not None else Value.UNDEFINED

    def has_metric(self, metric_type: MetricType) -> bool:
        return metric_type in self._metrics

    @property
    def metrics(self) -> list[Metric]:
        """Attached metrics in catalogue order."""
        return sorted(self._metrics.values(), key=lambda m: _CATALOGUE_ORDER[m.type])

    def values(self) -> dict[str, Value]:
        return {metric.code: metric.value for metric in self.metrics}

    def _detached(self, **changes: Any) -> Any:
        """Shallow copy with its own metric table."""
        return replace(self, _metrics=dict(self._metrics), **changes)


@dataclass(eq=False)
class MethodElement(CodeElement):
    qualified_name: str = ""
    line: int = 0
    is_constructor: bool = False
    is_static: bool = False
    is_abstract: bool = False


@dataclass(eq=False)
class ClassElement(CodeElement):
    """One class of the scope.

    Attributes:
        qualified_name: ``module.Outer.Inner``
        package: Dotted package name
        module: Dotted module name
        kind: ``interface``, ``enum``, ``abstract`` or ``concrete``
        is_static: True for nested classes
        class_id: Arena index, assigned when added to the project
        outer_id: Arena index of the enclosing class
        nested_ids: Arena indices of directly nested classes
        declaration: The TypeDecl the element was built from, kept for
            re-resolution against the symbol index; not owned by the model
    """

    qualified_name: str = ""
    package: str = DEFAULT_PACKAGE
    module: str = ""
    line: int = 0
    kind: str = "concrete"
    is_static: bool = False
    methods: list[MethodElement] = field(default_factory=list, repr=False)
    class_id: int = -1
    outer_id: Optional[int] = None
    nested_ids: list[int] = field(default_factory=list, repr=False)
    declaration: Optional["TypeDecl"] = field(default=None, repr=False)

    @property
    def is_interface(self) -> bool:
        return self.kind == "interface"

    @property
    def is_abstract(self) -> bool:
        return self.kind == "abstract"

    @property
    def is_enum(self) -> bool:
        return self.kind == "enum"

    @property
    def is_concrete(self) -> bool:
        return self.kind == "concrete"

    def method_values(self, metric_type: MetricType) -> list[Value]:
        return [method.value(metric_type) for method in self.methods]

    def copy(self) -> "ClassElement":
        return self._detached(methods=[m._detached() for m in self.methods], nested_ids=list(self.nested_ids))


@dataclass(eq=False)
class FileElement(CodeElement):
    path: str = ""
    module: str = ""
    line_count: int = 0
    class_ids: list[int] = field(default_factory=list, repr=False)


@dataclass(eq=False)
class PackageElement(CodeElement):
    """Files and class ids of one package, plus its directly nested packages.

    ``subpackages`` holds the packages whose nearest enclosing package of the
    scope is this one: with ``a``, ``a.b.c`` and ``a.d`` present, ``a`` owns
    ``a.b.c`` and ``a.d``.
    """

    files: list[FileElement] = field(default_factory=list, repr=False)
    class_ids: list[int] = field(default_factory=list, repr=False)
    subpackages: list["PackageElement"] = field(default_factory=list, repr=False)

    @property
    def display_name(self) -> str:
        return self.name or DEFAULT_PACKAGE_DISPLAY


def _enclosing_package(name: str, names: set[str]) -> Optional[str]:
    """Longest dotted prefix of ``name`` present in ``names``."""
    parts = name.split(".")
    for size in range(len(parts) - 1, 0, -1):
        prefix = ".".join(parts[:size])
        if prefix in names:
            return prefix
    return None


@dataclass(eq=False)
class ProjectElement(CodeElement):
    """Root of the model and owner of the class arena."""

    _classes: list[ClassElement] = field(default_factory=list, repr=False)
    _by_name: dict[str, int] = field(default_factory=dict, repr=False)
    _packages: dict[str, PackageElement] = field(default_factory=dict, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def package(self, name: str) -> PackageElement:
        """The package element for ``name``, created if absent."""
        with self._lock:
            element = self._packages.get(name)
            if element is None:
                element = PackageElement(name)
                self._packages[name] = element
            return element

    def add_file(self, element: FileElement, package: str) -> None:
        self.package(package).files.append(element)

    def add_class(self, element: ClassElement, outer: Optional[str] = None, file: Optional[FileElement] = None) -> int:
        """Place ``element`` in the arena and return its id."""
        pkg = self.package(element.package)
        with self._lock:
            if element.qualified_name in self._by_name:
                return self._by_name[element.qualified_name]
            element.class_id = len(self._classes)
            self._classes.append(element)
            self._by_name[element.qualified_name] = element.class_id
            pkg.class_ids.append(element.class_id)
            if outer is not None and outer in self._by_name:
                element.outer_id = self._by_name[outer]
                self._classes[element.outer_id].nested_ids.append(element.class_id)
        if file is not None:
            file.class_ids.append(element.class_id)
        return element.class_id

    def class_by_id(self, class_id: int) -> ClassElement:
        return self._classes[class_id]

    def class_named(self, qualified_name: str) -> Optional[ClassElement]:
        class_id = self._by_name.get(qualified_name)
        return self._classes[class_id] if class_id is not None else None

    def classes(self) -> list[ClassElement]:
        return sorted(self._classes, key=lambda c: c.qualified_name)

    def classes_in(self, package: str) -> list[ClassElement]:
        element = self._packages.get(package)
        if element is None:
            return []
        return sorted((self._classes[i] for i in element.class_ids), key=lambda c: c.qualified_name)

    def outer_of(self, element: ClassElement) -> Optional[ClassElement]:
        return self._classes[element.outer_id] if element.outer_id is not None else None

    def nested_of(self, element: ClassElement) -> list[ClassElement]:
        return [self._classes[i] for i in element.nested_ids]

    def packages(self) -> list[PackageElement]:
        return [self._packages[name] for name in sorted(self._packages)]

    def package_named(self, name: str) -> Optional[PackageElement]:
        return self._packages.get(name)

    def link_packages(self) -> None:
        """Rebuild ``subpackages`` of every package from the dotted names."""
        with self._lock:
            names = set(self._packages)
            for element in self._packages.values():
                element.subpackages = []
            for name in sorted(names):
                parent = _enclosing_package(name, names)
                if parent is not None:
                    self._packages[parent].subpackages.append(self._packages[name])

    def root_packages(self) -> list[PackageElement]:
        """Packages not nested in another package of the scope."""
        names = set(self._packages)
        return [p for p in self.packages() if _enclosing_package(p.name, names) is None]

    def copy(self) -> "ProjectElement":
        """Independent tree with the same elements and metrics.

        Metric tables, methods, files and packages are duplicated; class
        declarations stay shared.
        """
        with self._lock:
            classes = [element.copy() for element in self._classes]
            packages = {
                name: element._detached(
                    files=[f._detached(class_ids=list(f.class_ids)) for f in element.files],
                    class_ids=list(element.class_ids),
                    subpackages=[],
                )
                for name, element in self._packages.items()
            }
            by_name = dict(self._by_name)
            metrics = dict(self._metrics)
        duplicate = ProjectElement(self.name, metrics, classes, by_name, packages)
        duplicate.link_packages()
        return duplicate

    def methods(self) -> Iterator[MethodElement]:
        for element in self.classes():
            yield from element.methods

    @property
    def class_count(self) -> int:
        return len(self._classes)
