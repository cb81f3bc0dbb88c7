"""Maintainability Index, shared by method, class, package and project scope."""

from __future__ import annotations

import math

from ..metrics.value import Value


def maintainability_index(volume: Value, complexity: Value, lines: Value) -> Value:
    """``max(0, (171 - 5.2 ln V - 0.23 ln CC - 16.2 ln LOC) * 100 / 171)``.

    0.0 when any input is zero or negative, UNDEFINED when any is UNDEFINED.
    """
    if volume.is_undefined or complexity.is_undefined or lines.is_undefined:
        return Value.UNDEFINED
    v, cc, loc = float(volume), float(complexity), float(lines)
    if v <= 0 or cc <= 0 or loc <= 0:
        return Value.of(0.0)
    raw = 171.0 - 5.2 * math.log(v) - 0.23 * math.log(cc) - 16.2 * math.log(loc)
    return Value.of(max(0.0, raw * 100.0 / 171.0))
