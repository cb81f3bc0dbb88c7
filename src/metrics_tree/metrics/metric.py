"""Metric: a (MetricType, Value) pair attached to a code element."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from .types import MetricType, ValueKind
from .value import Value


@dataclass(frozen=True)
class Metric:
    """One metric value.

    Attributes:
        type: Which metric this is.
        value: The computed value (possibly UNDEFINED).
        alternate: Value produced by a second computation of the same metric,
            kept for cross-validation only. None when there is no second engine.
    """

    type: MetricType
    value: Value
    alternate: Optional[Value] = None

    @classmethod
    def of(
        cls,
        metric_type: MetricType,
        value: Union[Value, int, float, None],
        alternate: Union[Value, int, float, None] = None,
    ) -> "Metric":
        """Build a metric, coercing the value to the metric's declared kind."""
        coerced = _coerce(metric_type, Value.of(value))
        alt = None if alternate is None else _coerce(metric_type, Value.of(alternate))
        return cls(metric_type, coerced, alt)

    @property
    def code(self) -> str:
        return self.type.value

    def __str__(self) -> str:
        return f"{self.type.value}={self.value}"


def _coerce(metric_type: MetricType, value: Value) -> Value:
    if value.is_undefined:
        return value
    if metric_type.kind is ValueKind.FRACTIONAL and value.is_integral:
        return Value(float(value))
    return value
