"""Population statistics used by the QMOOD design properties."""

from __future__ import annotations

from typing import Iterable

import numpy as np

from ..metrics.value import Value


class Statistics:
    """Statistical helpers over metric value populations."""

    @staticmethod
    def as_array(values: Iterable[Value]) -> np.ndarray:
        return np.array([float(value) for value in values], dtype=float)

    @staticmethod
    def max_z_score(values: list[Value]) -> Value:
        """
        Z-score of the population maximum: (max - mean) / sigma.

        Uses the population standard deviation.

        Args:
            values: Metric values of the population

        Returns:
            0.0 for an empty population, UNDEFINED when the population holds
            an UNDEFINED value or has zero variance
        """
        if not values:
            return Value.of(0.0)
        if any(value.is_undefined for value in values):
            return Value.UNDEFINED

        data = Statistics.as_array(values)
        std = float(np.std(data))
        if np.isclose(std, 0.0):
            return Value.UNDEFINED
        return Value.of((float(np.max(data)) - float(np.mean(data))) / std)

    @staticmethod
    def inverse(value: Value) -> Value:
        """1 / value, with 0.0 for a zero value."""
        if value.is_undefined:
            return value
        if float(value) == 0.0:
            return Value.of(0.0)
        return Value.of(1.0) / value
