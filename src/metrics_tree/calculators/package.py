"""Package metrics: Martin coupling, abstractness, statistics and Halstead sums.

Only packages holding at least one class of the model receive metrics, so a
directory outside the scope never shows a misleading all-zero set. Coupling
counts unique package sets, not edges.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable, Optional

from ..graph.models import DependencyGraph
from ..metrics.metric import Metric
from ..metrics.types import MetricType
from ..metrics.value import Value
from ..model.elements import ClassElement, PackageElement, ProjectElement
from ..model.maintainability import maintainability_index

if TYPE_CHECKING:
    from ..config import MetricsConfig
    from ..pipeline.cancellation import CancellationToken

logger = logging.getLogger(__name__)

M = MetricType

# Package Halstead metric -> class metric it sums
HALSTEAD_SUMS = {
    M.PAHVL: M.CHVL,
    M.PAHD: M.CHD,
    M.PACHL: M.CHL,
    M.PACHEF: M.CHEF,
    M.PACHVC: M.CHVC,
    M.PACHER: M.CHER,
}


def _has_halstead(element: ClassElement) -> bool:
    return not (element.is_interface or element.is_enum)


def _has_ncss(element: ClassElement) -> bool:
    return not element.is_interface


def class_sum(
    classes: list[ClassElement],
    metric_type: MetricType,
    applies: Callable[[ClassElement], bool] = lambda element: True,
) -> Value:
    """Sum of a class metric over the classes it applies to."""
    return Value.sum(element.value(metric_type) for element in classes if applies(element))


def method_sum(classes: list[ClassElement], metric_type: MetricType) -> Value:
    return Value.sum(value for element in classes for value in element.method_values(metric_type))


def statistics(classes: list[ClassElement]) -> dict[MetricType, Value]:
    """Class-kind counts, NCSS and LOC shared by package and project scope."""
    return {
        M.PNOCC: Value.of(sum(1 for c in classes if c.is_concrete)),
        M.PNOAC: Value.of(sum(1 for c in classes if c.is_abstract)),
        M.PNOSC: Value.of(sum(1 for c in classes if c.is_static)),
        M.PNOI: Value.of(sum(1 for c in classes if c.is_interface)),
        M.PNCSS: class_sum(classes, M.NCSS, _has_ncss),
        M.PLOC: method_sum(classes, M.LOC),
    }


class PackageMetricsCalculator:
    """Computes the metric set of every package of a class model.

    Results are computed for all packages first and attached afterwards, so
    an interrupted calculation leaves no package half populated.

    Usage:
        PackageMetricsCalculator(graph, project, config).calculate()
    """

    def __init__(
        self,
        graph: DependencyGraph,
        project: ProjectElement,
        config: Optional["MetricsConfig"] = None,
    ) -> None:
        self.graph = graph
        self.project = project
        self.config = config

    def _enabled(self, metric_type: MetricType) -> bool:
        return self.config is None or self.config.is_enabled(metric_type)

    def calculate(self, token: Optional["CancellationToken"] = None) -> dict[str, list[Metric]]:
        results: dict[str, list[Metric]] = {}
        for package in self.project.packages():
            if token is not None:
                token.check()
            classes = self.project.classes_in(package.name)
            if not classes:
                continue
            results[package.name] = self.package_metrics(package, classes)

        for name, metrics in results.items():
            self.project.package(name).add_metrics(metrics)

        logger.debug(f"Package metrics computed for {len(results)} packages")
        return results

    def package_metrics(self, package: PackageElement, classes: list[ClassElement]) -> list[Metric]:
        names = [element.qualified_name for element in classes]
        efferent = len(self.graph.efferent_packages(package.name, names))
        afferent = len(self.graph.afferent_packages(package.name, names))

        if efferent + afferent == 0:
            instability = Value.of(0.0)
        else:
            instability = Value.of(efferent) / Value.of(efferent + afferent)

        abstract = sum(1 for element in classes if element.is_abstract or element.is_interface)
        abstractness = Value.of(abstract) / Value.of(float(len(classes)))
        distance = abs(Value.of(1.0) - abstractness - instability)

        values: dict[MetricType, Value] = {
            M.Ce: Value.of(efferent),
            M.Ca: Value.of(afferent),
            M.I: instability,
            M.A: abstractness,
            M.D: distance,
        }
        values.update(statistics(classes))
        for package_type, class_type in HALSTEAD_SUMS.items():
            values[package_type] = class_sum(classes, class_type, _has_halstead)

        values[M.PAMI] = maintainability_index(
            values[M.PAHVL],
            method_sum(classes, M.CC),
            values[M.PLOC],
        )
        return [Metric.of(metric_type, value) for metric_type, value in values.items() if self._enabled(metric_type)]
