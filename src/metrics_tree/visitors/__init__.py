"""Primitive metric computations for methods and classes.

Every primitive MetricType maps to exactly one compute function in a closed
dispatch table. Method functions take ``(FunctionDecl, VisitContext)``, class
functions take ``(TypeDecl, VisitContext)``; both return a Value (CBO returns
a full Metric because it carries an alternate value).

Usage:
    ctx = VisitContext(index, graph)
    for metric_type, compute in enabled_computations(CLASS_COMPUTE, config):
        result = compute(cls, ctx)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Optional, Union

from ..metrics.metric import Metric
from ..metrics.types import MetricType
from ..metrics.value import Value
from . import cohesion, complexity, coupling, halstead, inheritance, size
from .context import VisitContext

if TYPE_CHECKING:
    from ..config import MetricsConfig

ComputeResult = Union[Value, Metric]
ComputeFn = Callable[..., ComputeResult]

METHOD_COMPUTE: dict[MetricType, ComputeFn] = {
    MetricType.CC: complexity.compute_cc,
    MetricType.LOC: complexity.compute_loc,
    MetricType.NOL: complexity.compute_nol,
    MetricType.NOPM: complexity.compute_nopm,
    MetricType.CND: complexity.compute_cnd,
    MetricType.LND: complexity.compute_lnd,
    MetricType.MND: complexity.compute_mnd,
    MetricType.CCM: complexity.compute_ccm,
    **halstead.METHOD_COMPUTE,
}

CLASS_COMPUTE: dict[MetricType, ComputeFn] = {
    MetricType.WMC: complexity.compute_wmc,
    MetricType.DIT: inheritance.compute_dit,
    MetricType.NOC: inheritance.compute_noc,
    MetricType.CBO: coupling.compute_cbo,
    MetricType.RFC: coupling.compute_rfc,
    MetricType.LCOM: cohesion.compute_lcom,
    MetricType.TCC: cohesion.compute_tcc,
    MetricType.NCSS: size.compute_ncss,
    MetricType.NOA: size.compute_noa,
    MetricType.NOM: size.compute_nom,
    MetricType.NOO: inheritance.compute_noo,
    MetricType.NOOM: inheritance.compute_noom,
    MetricType.NOAM: inheritance.compute_noam,
    MetricType.SIZE2: size.compute_size2,
    MetricType.MPC: coupling.compute_mpc,
    MetricType.DAC: coupling.compute_dac,
    MetricType.NOPA: size.compute_nopa,
    MetricType.NOAC: size.compute_noac,
    MetricType.WOC: size.compute_woc,
    **halstead.CLASS_COMPUTE,
}

COMPUTE: dict[MetricType, ComputeFn] = {**METHOD_COMPUTE, **CLASS_COMPUTE}


def enabled_computations(
    table: dict[MetricType, ComputeFn], config: Optional["MetricsConfig"] = None
) -> list[tuple[MetricType, ComputeFn]]:
    """Entries of ``table`` whose metric is enabled, in catalogue order."""
    return [
        (metric_type, compute)
        for metric_type, compute in table.items()
        if config is None or config.is_enabled(metric_type)
    ]


def to_metric(metric_type: MetricType, result: ComputeResult) -> Metric:
    if isinstance(result, Metric):
        return result
    return Metric.of(metric_type, result)


__all__ = [
    "CLASS_COMPUTE",
    "COMPUTE",
    "METHOD_COMPUTE",
    "VisitContext",
    "enabled_computations",
    "to_metric",
]
