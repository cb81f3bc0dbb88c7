"""Metric values, the metric catalogue and fitness profiles."""

from .metric import Metric
from .profiles import Profile, Range
from .types import (
    REGISTRY,
    MetricLevel,
    MetricMeta,
    MetricSet,
    MetricType,
    ValueKind,
    get_metric_meta,
    metrics_by_level,
    metrics_by_set,
)
from .value import Value

__all__ = [
    "Metric",
    "MetricLevel",
    "MetricMeta",
    "MetricSet",
    "MetricType",
    "Profile",
    "Range",
    "REGISTRY",
    "Value",
    "ValueKind",
    "get_metric_meta",
    "metrics_by_level",
    "metrics_by_set",
]
