"""Halstead software science measures.

Operators are Python operator tokens, keywords and called names; operands are
identifiers and literals. Each string literal, including implicitly
concatenated ones, is a single operand keyed by its source text.
"""

from __future__ import annotations

import keyword
import math
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Iterator

from ..metrics.types import MetricType
from ..metrics.value import Value
from ..scanning.nodes import node_key, node_text, unwrap_definition
from ..scanning.syntax import FunctionDecl, TypeDecl
from .context import VisitContext

Node = Any

OPERATOR_TOKENS = frozenset(
    {
        "+", "-", "*", "/", "//", "%", "**", "@",
        "<<", ">>", "&", "|", "^", "~",
        "<", ">", "<=", ">=", "==", "!=", "<>",
        "not in", "is not",
        "=", ":=",
        "+=", "-=", "*=", "/=", "//=", "%=", "**=", "@=",
        "<<=", ">>=", "&=", "|=", "^=",
    }
)  # fmt: skip

KEYWORD_OPERATORS = (frozenset(keyword.kwlist) - {"True", "False", "None"}) | {"match", "case"}

LITERALS = frozenset({"integer", "float", "true", "false", "none", "ellipsis"})
STRINGS = frozenset({"string", "concatenated_string"})


@dataclass
class HalsteadCounts:
    """Operator and operand multisets of one syntax subtree."""

    operators: Counter = field(default_factory=Counter)
    operands: Counter = field(default_factory=Counter)

    @property
    def total_operators(self) -> int:
        return sum(self.operators.values())

    @property
    def total_operands(self) -> int:
        return sum(self.operands.values())

    @property
    def distinct_operators(self) -> int:
        return len(self.operators)

    @property
    def distinct_operands(self) -> int:
        return len(self.operands)


@dataclass(frozen=True)
class HalsteadMeasures:
    length: int
    vocabulary: int
    volume: float
    difficulty: float
    effort: float
    errors: float


def measures(n1: int, n2: int, big_n1: int, big_n2: int) -> HalsteadMeasures:
    """Derived measures from distinct (n1, n2) and total (N1, N2) counts."""
    length = big_n1 + big_n2
    vocabulary = n1 + n2
    volume = length * math.log2(vocabulary) if vocabulary > 0 else 0.0
    difficulty = (n1 / 2.0) * (big_n2 / n2) if n2 > 0 else 0.0
    effort = difficulty * volume
    errors = effort ** (2.0 / 3.0) / 3000.0
    return HalsteadMeasures(length, vocabulary, volume, difficulty, effort, errors)


def measures_of(counts: HalsteadCounts) -> HalsteadMeasures:
    return measures(
        counts.distinct_operators,
        counts.distinct_operands,
        counts.total_operators,
        counts.total_operands,
    )


def _is_declared_name(node: Node) -> bool:
    parent = node.parent
    return (
        parent is not None
        and parent.type in ("function_definition", "class_definition")
        and parent.child_by_field_name("name") == node
    )


def _called_name(call: Node) -> tuple[str, Node] | None:
    function = call.child_by_field_name("function")
    if function is None:
        return None
    if function.type == "identifier":
        return node_text(function), function
    if function.type == "attribute":
        attr = function.child_by_field_name("attribute")
        if attr is not None:
            return node_text(attr), attr
    return None


def count_tokens(roots: Iterator[Node]) -> HalsteadCounts:
    """Classify every token below ``roots`` as operator or operand."""
    counts = HalsteadCounts()
    callee_keys: set = set()

    stack = list(reversed(list(roots)))
    while stack:
        node = stack.pop()
        kind = node.type

        if kind == "comment":
            continue

        if not node.is_named:
            if kind in OPERATOR_TOKENS or kind in KEYWORD_OPERATORS:
                counts.operators[kind] += 1
            continue

        if kind in STRINGS:
            counts.operands[node_text(node)] += 1
            # f-string replacement fields hold ordinary expressions
            stack.extend(reversed(list(_interpolations(node))))
            continue

        if kind in LITERALS:
            counts.operands[node_text(node)] += 1
            continue

        if kind == "call":
            called = _called_name(node)
            if called is not None:
                name, name_node = called
                counts.operators[f"{name}()"] += 1
                callee_keys.add(node_key(name_node))

        if kind == "identifier":
            if not _is_declared_name(node) and node_key(node) not in callee_keys:
                counts.operands[node_text(node)] += 1
            continue

        stack.extend(reversed(node.children))
    return counts


def _interpolations(node: Node) -> Iterator[Node]:
    parts = node.named_children if node.type == "concatenated_string" else [node]
    for part in parts:
        for child in part.named_children:
            if child.type == "interpolation":
                yield from child.named_children


def method_counts(method: FunctionDecl, ctx: VisitContext) -> HalsteadCounts:
    return ctx.memo(("halstead", id(method)), lambda: count_tokens(iter([method.node])))


def class_roots(cls: TypeDecl) -> Iterator[Node]:
    """The class header and body statements, nested class statements excluded."""
    for child in cls.node.children:
        if child.type != "block":
            yield child
            continue
        nested = {node_key(inner.node) for inner in cls.nested}
        for statement in child.children:
            definition, _ = unwrap_definition(statement)
            if definition is not None and node_key(definition) in nested:
                continue
            yield statement


def class_counts(cls: TypeDecl, ctx: VisitContext) -> HalsteadCounts:
    return ctx.memo(("halstead", id(cls)), lambda: count_tokens(class_roots(cls)))


# ── Metric entry points ───────────────────────────────────────────────

METHOD_SUITE = {
    MetricType.HVL: "volume",
    MetricType.HD: "difficulty",
    MetricType.HL: "length",
    MetricType.HEF: "effort",
    MetricType.HVC: "vocabulary",
    MetricType.HER: "errors",
}

CLASS_SUITE = {
    MetricType.CHVL: "volume",
    MetricType.CHD: "difficulty",
    MetricType.CHL: "length",
    MetricType.CHEF: "effort",
    MetricType.CHVC: "vocabulary",
    MetricType.CHER: "errors",
}


def _method_measure(attribute: str):
    def compute(method: FunctionDecl, ctx: VisitContext) -> Value:
        return Value.of(getattr(measures_of(method_counts(method, ctx)), attribute))

    compute.__name__ = f"compute_method_{attribute}"
    return compute


def _class_measure(attribute: str):
    def compute(cls: TypeDecl, ctx: VisitContext) -> Value:
        if ctx.index.is_interface(cls) or ctx.index.is_enum(cls):
            return Value.UNDEFINED
        return Value.of(getattr(measures_of(class_counts(cls, ctx)), attribute))

    compute.__name__ = f"compute_class_{attribute}"
    return compute


METHOD_COMPUTE = {metric_type: _method_measure(name) for metric_type, name in METHOD_SUITE.items()}
CLASS_COMPUTE = {metric_type: _class_measure(name) for metric_type, name in CLASS_SUITE.items()}
