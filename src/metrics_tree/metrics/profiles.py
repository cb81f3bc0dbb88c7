"""Fitness functions: acceptable value ranges per metric, grouped in profiles."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List

from .types import MetricType
from .value import Value

if TYPE_CHECKING:
    from ..model.elements import CodeElement


@dataclass(frozen=True)
class Range:
    """Closed interval of acceptable values. UNDEFINED never conforms."""

    low: float
    high: float

    def __post_init__(self) -> None:
        if self.low > self.high:
            raise ValueError(f"Range low {self.low} is greater than high {self.high}")

    def contains(self, value: Value) -> bool:
        if value.is_undefined:
            return False
        return self.low <= float(value) <= self.high


@dataclass(frozen=True)
class Profile:
    """A named set of metric ranges used to classify code elements."""

    name: str
    ranges: Dict[MetricType, Range] = field(default_factory=dict)

    def violations(self, element: "CodeElement") -> List[MetricType]:
        """Metric types the element holds whose value falls outside the range.

        Metrics the element does not hold are not violations.
        """
        result = []
        for metric_type, allowed in self.ranges.items():
            metric = element.metric(metric_type)
            if metric is not None and not allowed.contains(metric.value):
                result.append(metric_type)
        return sorted(result, key=lambda m: m.value)

    def conforms(self, element: "CodeElement") -> bool:
        return not self.violations(element)
