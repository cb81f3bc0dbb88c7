"""Tagged numeric metric value with an UNDEFINED sentinel.

A Value wraps either an ``int`` (counts) or a ``float`` (ratios, Halstead
measures). Arithmetic follows Python numeric promotion except that division
always produces a float. UNDEFINED means "not computable": it is produced by
division by zero and by any operation that has UNDEFINED as an operand, so a
missing input can never be mistaken for a zero.

Example:
    >>> Value.of(3) + 2
    Value(5)
    >>> Value.of(1) / 0
    Value.UNDEFINED
    >>> str(Value.of(2) / 3)
    '0.6667'
"""

from __future__ import annotations

import math
from functools import total_ordering
from typing import Iterable, Union

from ..exceptions import UndefinedValueError

Number = Union[int, float]
Operand = Union["Value", int, float]


@total_ordering
class Value:
    """Immutable metric value. Use :meth:`of` or the class constants."""

    __slots__ = ("_number",)

    UNDEFINED: "Value"
    ZERO: "Value"
    ONE: "Value"

    def __init__(self, number: Number | None = None) -> None:
        if isinstance(number, bool):
            number = int(number)
        if isinstance(number, float) and not math.isfinite(number):
            number = None
        object.__setattr__(self, "_number", number)

    def __setattr__(self, name, value):
        raise AttributeError("Value is immutable")

    @classmethod
    def of(cls, number: Operand | None) -> "Value":
        """Coerce a number (or an existing Value) into a Value."""
        if isinstance(number, Value):
            return number
        if number is None:
            return cls.UNDEFINED
        return cls(number)

    @classmethod
    def sum(cls, values: Iterable[Operand]) -> "Value":
        """Add up ``values``; an empty population sums to ZERO."""
        total = cls.ZERO
        for value in values:
            total = total + value
        return total

    # ── Inspection ──────────────────────────────────────────────────

    @property
    def is_undefined(self) -> bool:
        return self._number is None

    @property
    def is_integral(self) -> bool:
        return isinstance(self._number, int)

    def to_number(self) -> Number | None:
        """Return the wrapped number, or None for UNDEFINED."""
        return self._number

    def __int__(self) -> int:
        if self._number is None:
            raise UndefinedValueError("int()")
        return int(self._number)

    def __float__(self) -> float:
        if self._number is None:
            raise UndefinedValueError("float()")
        return float(self._number)

    # ── Arithmetic ──────────────────────────────────────────────────

    def _combine(self, other: Operand, op) -> "Value":
        other = Value.of(other)
        if self._number is None or other._number is None:
            return Value.UNDEFINED
        try:
            return Value(op(self._number, other._number))
        except (ZeroDivisionError, OverflowError, ValueError):
            return Value.UNDEFINED

    def __add__(self, other: Operand) -> "Value":
        return self._combine(other, lambda a, b: a + b)

    def __sub__(self, other: Operand) -> "Value":
        return self._combine(other, lambda a, b: a - b)

    def __mul__(self, other: Operand) -> "Value":
        return self._combine(other, lambda a, b: a * b)

    def __truediv__(self, other: Operand) -> "Value":
        return self._combine(other, lambda a, b: a / b)

    def __pow__(self, other: Operand) -> "Value":
        def _pow(a: Number, b: Number) -> Number:
            result = a**b
            if isinstance(result, complex):
                raise ValueError("complex result")
            return result

        return self._combine(other, _pow)

    def __radd__(self, other: Operand) -> "Value":
        return Value.of(other) + self

    def __rsub__(self, other: Operand) -> "Value":
        return Value.of(other) - self

    def __rmul__(self, other: Operand) -> "Value":
        return Value.of(other) * self

    def __rtruediv__(self, other: Operand) -> "Value":
        return Value.of(other) / self

    def __neg__(self) -> "Value":
        if self._number is None:
            return self
        return Value(-self._number)

    def __abs__(self) -> "Value":
        if self._number is None:
            return self
        return Value(abs(self._number))

    # ── Comparison ──────────────────────────────────────────────────
    # UNDEFINED equals only itself and orders below every defined value.

    def __eq__(self, other: object) -> bool:
        if isinstance(other, (int, float)) and not isinstance(other, bool):
            other = Value(other)
        if not isinstance(other, Value):
            return NotImplemented
        return self._number == other._number

    def __lt__(self, other: Operand) -> bool:
        other = Value.of(other)
        if self._number is None:
            return other._number is not None
        if other._number is None:
            return False
        return self._number < other._number

    def __hash__(self) -> int:
        return hash(self._number)

    # ── Formatting ──────────────────────────────────────────────────

    def __str__(self) -> str:
        if self._number is None:
            return "N/A"
        if isinstance(self._number, int):
            return str(self._number)
        text = f"{self._number:.4f}".rstrip("0")
        if text.endswith("."):
            text += "0"
        if text == "-0.0":
            text = "0.0"
        return text

    def __repr__(self) -> str:
        if self._number is None:
            return "Value.UNDEFINED"
        return f"Value({self._number!r})"


Value.UNDEFINED = Value(None)
Value.ZERO = Value(0)
Value.ONE = Value(1)
