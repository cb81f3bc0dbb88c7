"""Project metrics: Halstead sums, maintainability, MOOD and QMOOD.

MOOD factors need the declarations (visibility, inheritance, overriding), so
the calculator reads the SymbolIndex next to the model and the graph. QMOOD
design properties are max z-scores of class and package populations; the
composite weights follow Bansiya and Davis.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Iterable, Optional

from ..graph.models import DependencyGraph
from ..metrics.metric import Metric
from ..metrics.types import MetricType
from ..metrics.value import Value
from ..model.elements import PackageElement, ProjectElement
from ..model.maintainability import maintainability_index
from ..scanning.symbols import SymbolIndex
from ..scanning.syntax import TypeDecl
from .package import method_sum, statistics
from .statistics import Statistics

if TYPE_CHECKING:
    from ..config import MetricsConfig
    from ..pipeline.cancellation import CancellationToken

logger = logging.getLogger(__name__)

M = MetricType

# Project Halstead metric -> package metric it sums
HALSTEAD_SUMS = {
    M.PRHVL: M.PAHVL,
    M.PRHD: M.PAHD,
    M.PRCHL: M.PACHL,
    M.PRCHEF: M.PACHEF,
    M.PRCHVC: M.PACHVC,
    M.PRCHER: M.PACHER,
}


@dataclass
class MoodCounts:
    """Raw MOOD counters collected in one pass over the classes."""

    classes: int = 0
    methods: int = 0
    attributes: int = 0
    method_visibility: int = 0
    attribute_visibility: int = 0
    available_methods: int = 0
    inherited_methods: int = 0
    available_attributes: int = 0
    inherited_attributes: int = 0
    overriding_methods: int = 0
    override_potential: int = 0
    coupling: int = 0


def hiding_factor(members: int, visibility: int, classes: int) -> Value:
    if classes <= 1 or members == 0:
        return Value.of(0.0)
    denominator = members * (classes - 1)
    return Value.of(denominator - visibility) / Value.of(float(denominator))


def ratio_or_zero(part: int, whole: int) -> Value:
    if whole <= 0:
        return Value.of(0.0)
    return Value.of(part) / Value.of(float(whole))


class ProjectMetricsCalculator:
    """Computes the project-level metric set.

    Usage:
        ProjectMetricsCalculator(index, graph, project, config).calculate()
    """

    def __init__(
        self,
        index: SymbolIndex,
        graph: DependencyGraph,
        project: ProjectElement,
        config: Optional["MetricsConfig"] = None,
    ) -> None:
        self.index = index
        self.graph = graph
        self.project = project
        self.config = config

    def _enabled(self, metric_type: MetricType) -> bool:
        return self.config is None or self.config.is_enabled(metric_type)

    def calculate(self, token: Optional["CancellationToken"] = None) -> list[Metric]:
        values: dict[MetricType, Value] = {}
        classes = self.project.classes()
        packages = [p for p in self.project.packages() if p.metrics]

        values.update(statistics(classes))
        values.update(self.mood(token))
        values.update(self.qmood(packages))

        for project_type, package_type in HALSTEAD_SUMS.items():
            values[project_type] = Value.sum(p.value(package_type) for p in packages)
        values[M.PRMI] = maintainability_index(values[M.PRHVL], method_sum(classes, M.CC), values[M.PLOC])

        metrics = [Metric.of(t, v) for t, v in values.items() if self._enabled(t)]
        self.project.add_metrics(metrics)
        logger.debug(f"Project metrics computed over {len(classes)} classes")
        return metrics

    # ── MOOD ────────────────────────────────────────────────────────

    def mood(self, token: Optional["CancellationToken"] = None) -> dict[MetricType, Value]:
        counts = self.mood_counts(token)
        return {
            M.MHF: hiding_factor(counts.methods, counts.method_visibility, counts.classes),
            M.AHF: hiding_factor(counts.attributes, counts.attribute_visibility, counts.classes),
            M.MIF: ratio_or_zero(counts.inherited_methods, counts.available_methods),
            M.AIF: ratio_or_zero(counts.inherited_attributes, counts.available_attributes),
            M.PF: (
                Value.of(1.0)
                if counts.override_potential == 0
                else Value.of(counts.overriding_methods) / Value.of(float(counts.override_potential))
            ),
            M.CF: (
                Value.of(0.0)
                if counts.classes <= 1
                else Value.of(float(counts.coupling)) / Value.of(counts.classes * (counts.classes - 1) / 2)
            ),
        }

    def mood_counts(self, token: Optional["CancellationToken"] = None) -> MoodCounts:
        index = self.index
        classes = index.classes()
        counts = MoodCounts(classes=len(classes))

        per_package: dict[str, int] = {}
        for cls in classes:
            per_package[cls.package] = per_package.get(cls.package, 0) + 1

        for cls in classes:
            if token is not None:
                token.check()
            descendants = [d for d in index.descendants(cls) if not index.is_interface(d)]
            outside = sum(1 for d in descendants if d.package != cls.package)
            protected_reach = max(0, per_package[cls.package] - 1) + outside

            # Hiding
            counts.methods += len(cls.methods)
            counts.attributes += len(cls.fields)
            counts.method_visibility += sum(
                _reach(m.visibility, counts.classes, protected_reach) for m in cls.methods
            )
            counts.attribute_visibility += sum(
                _reach(f.visibility, counts.classes, protected_reach) for f in cls.fields.values()
            )

            # Inheritance
            ancestors = index.ancestors(cls)
            available, inherited = _inheritance(cls, ancestors, _methods_of)
            counts.available_methods += available
            counts.inherited_methods += inherited
            available, inherited = _inheritance(cls, ancestors, _fields_of)
            counts.available_attributes += available
            counts.inherited_attributes += inherited

            # Polymorphism
            new_methods = sum(1 for m in cls.methods if not index.overrides(cls, m))
            counts.overriding_methods += len(cls.methods) - new_methods
            counts.override_potential += new_methods * len(descendants)

            # Coupling, inheritance relations excluded
            ancestor_names = {a.qualified_name for a in ancestors}
            counts.coupling += len(self.graph.dependencies(cls.qualified_name) - ancestor_names)
        return counts

    # ── QMOOD ───────────────────────────────────────────────────────

    def qmood(self, packages: list[PackageElement]) -> dict[MetricType, Value]:
        classes = self.project.classes()

        def z_classes(metric_type: MetricType) -> Value:
            return Statistics.max_z_score([c.value(metric_type) for c in classes])

        def z_packages(metric_type: MetricType) -> Value:
            return Statistics.max_z_score([p.value(metric_type) for p in packages])

        coupling = z_packages(M.Ce)
        cohesion = Statistics.inverse(z_classes(M.LCOM))
        messaging = z_classes(M.NOM)
        design_size = z_packages(M.PNOCC)
        encapsulation = Value.of(1.0)
        composition = z_classes(M.NOA)
        polymorphism = z_classes(M.NOOM)
        abstraction = z_packages(M.A)
        complexity = z_classes(M.WMC)
        hierarchies = z_classes(M.DIT)
        inheritance = _inheritance_property(classes)

        return {
            M.Reusability: -0.25 * coupling + 0.25 * cohesion + 0.5 * messaging + 0.5 * design_size,
            M.Flexibility: 0.25 * encapsulation - 0.25 * coupling + 0.5 * composition + 0.5 * polymorphism,
            M.Understandability: (
                -0.33 * abstraction
                + 0.33 * encapsulation
                - 0.33 * coupling
                + 0.33 * cohesion
                - 0.33 * polymorphism
                - 0.33 * complexity
                - 0.33 * design_size
            ),
            M.Functionality: 0.12 * cohesion + 0.22 * (polymorphism + messaging + design_size + hierarchies),
            M.Extendibility: 0.5 * abstraction - 0.5 * coupling + 0.5 * inheritance + 0.5 * polymorphism,
            M.Effectiveness: 0.2 * (abstraction + encapsulation + composition + inheritance + polymorphism),
        }


def _reach(visibility: str, classes: int, protected_reach: int) -> int:
    """Number of other classes a member of the given visibility is visible from."""
    if visibility == "public":
        return classes - 1
    if visibility == "protected":
        return protected_reach
    return 0


def _methods_of(cls: TypeDecl) -> list[tuple[str, str]]:
    return [(m.name, m.visibility) for m in cls.methods]


def _fields_of(cls: TypeDecl) -> list[tuple[str, str]]:
    return [(f.name, f.visibility) for f in cls.fields.values()]


def _inheritance(
    cls: TypeDecl, ancestors: list[TypeDecl], members_of: Callable[[TypeDecl], list[tuple[str, str]]]
) -> tuple[int, int]:
    """(available, inherited) members of ``cls``; redefinitions hide inherited ones."""
    own = members_of(cls)
    seen = {name for name, _ in own}
    available = len(own)
    inherited = 0
    for ancestor in ancestors:
        for name, visibility in members_of(ancestor):
            if visibility == "private" or name in seen:
                continue
            seen.add(name)
            available += 1
            inherited += 1
    return available, inherited


def _inheritance_property(classes: Iterable) -> Value:
    """QMOOD Inheritance: sum of NOOM / (NOM * 100) over classes with methods."""
    total = Value.of(0.0)
    for element in classes:
        nom = element.value(M.NOM)
        if nom.is_undefined or float(nom) <= 0:
            continue
        noom = element.value(M.NOOM)
        total = total + noom / (nom * 100)
    return total
