"""Method complexity measures: McCabe, nesting depths, cognitive complexity.

All measures walk the ``function_definition`` subtree, so nested functions,
lambdas and local classes count towards the enclosing method.
"""

from __future__ import annotations

from typing import Any

from ..metrics.value import Value
from ..scanning.nodes import COMPOUND_STATEMENTS, LOOP_STATEMENTS, node_text, walk
from ..scanning.syntax import FunctionDecl, TypeDecl
from .context import VisitContext

Node = Any

# Nodes adding one independent path; boolean operators are counted separately
DECISION_POINTS = frozenset(
    {
        "if_statement",
        "elif_clause",
        "for_statement",
        "while_statement",
        "except_clause",
        "except_group_clause",
        "case_clause",
        "conditional_expression",
        "for_in_clause",
        "if_clause",
    }
)

CONDITIONS = frozenset({"if_statement"})

# Constructs that cost 1 + nesting in cognitive complexity
_COGNITIVE_NESTED = frozenset(
    {
        "for_statement",
        "while_statement",
        "except_clause",
        "except_group_clause",
        "match_statement",
        "conditional_expression",
    }
)
_COGNITIVE_SCOPES = frozenset({"function_definition", "lambda"})


def cyclomatic_complexity(method: FunctionDecl) -> int:
    count = 1
    for node in walk(method.node):
        if node.type in DECISION_POINTS:
            count += 1
        elif node.type == "boolean_operator":
            count += 1
    return count


def lines_of_code(node: Node) -> int:
    """Non-blank lines that are not comment-only."""
    count = 0
    for line in node_text(node).splitlines():
        stripped = line.strip()
        if stripped and not stripped.startswith("#"):
            count += 1
    return count


def loop_count(method: FunctionDecl) -> int:
    return sum(1 for node in walk(method.node) if node.type in LOOP_STATEMENTS)


def nesting_depth(node: Node, nesting_types: frozenset) -> int:
    """Maximum number of nested ``nesting_types`` constructs below ``node``."""

    def count_depth(n: Node, current_depth: int) -> int:
        max_depth = current_depth
        for child in n.children:
            child_depth = current_depth
            if child.type in nesting_types:
                child_depth = current_depth + 1
            max_depth = max(max_depth, count_depth(child, child_depth))
        return max_depth

    return count_depth(node, 0)


# ── Cognitive complexity ──────────────────────────────────────────────


def _boolean_sequence(node: Node, operators: list[str], operands: list[Node]) -> None:
    """Flatten a chain of ``and``/``or`` into operators and leaf operands."""
    if node.type != "boolean_operator":
        operands.append(node)
        return
    left = node.child_by_field_name("left")
    right = node.child_by_field_name("right")
    operator = node.child_by_field_name("operator")
    if left is not None:
        _boolean_sequence(left, operators, operands)
    operators.append(operator.type if operator is not None else "")
    if right is not None:
        _boolean_sequence(right, operators, operands)


class _CognitiveCounter:
    def __init__(self, method: FunctionDecl) -> None:
        self.name = method.name
        self.receiver = method.receiver_name
        self.is_method = method.is_method

    def count(self, node: Node, nesting: int) -> int:
        kind = node.type

        if kind == "if_statement":
            return self._if_statement(node, nesting)

        if kind in _COGNITIVE_NESTED:
            return 1 + nesting + sum(self.count(child, nesting + 1) for child in node.children)

        if kind in _COGNITIVE_SCOPES:
            return sum(self.count(child, nesting + 1) for child in node.children)

        if kind == "boolean_operator":
            operators: list[str] = []
            operands: list[Node] = []
            _boolean_sequence(node, operators, operands)
            changes = sum(1 for a, b in zip(operators, operators[1:]) if a != b)
            return 1 + changes + sum(self.count(operand, nesting) for operand in operands)

        total = 0
        if kind == "call" and self._is_recursive(node):
            total += 1
        return total + sum(self.count(child, nesting) for child in node.children)

    def _if_statement(self, node: Node, nesting: int) -> int:
        total = 1 + nesting
        for child in node.children:
            if child.type in ("elif_clause", "else_clause"):
                total += 1
                for part in child.children:
                    total += self.count(part, nesting + 1 if part.type == "block" else nesting)
            elif child.type == "block":
                total += self.count(child, nesting + 1)
            else:
                total += self.count(child, nesting)
        return total

    def _is_recursive(self, call: Node) -> bool:
        function = call.child_by_field_name("function")
        if function is None:
            return False
        if function.type == "identifier":
            return not self.is_method and node_text(function) == self.name
        if function.type == "attribute" and self.receiver is not None:
            obj = function.child_by_field_name("object")
            attr = function.child_by_field_name("attribute")
            return (
                obj is not None
                and obj.type == "identifier"
                and node_text(obj) == self.receiver
                and node_text(attr) == self.name
            )
        return False


def cognitive_complexity(method: FunctionDecl) -> int:
    counter = _CognitiveCounter(method)
    return sum(counter.count(child, 0) for child in method.node.children)


# ── Metric entry points ───────────────────────────────────────────────


def compute_cc(method: FunctionDecl, ctx: VisitContext) -> Value:
    return Value.of(ctx.memo(("cc", id(method)), lambda: cyclomatic_complexity(method)))


def compute_loc(method: FunctionDecl, ctx: VisitContext) -> Value:
    return Value.of(ctx.memo(("loc", id(method)), lambda: lines_of_code(method.node)))


def compute_nol(method: FunctionDecl, ctx: VisitContext) -> Value:
    return Value.of(loop_count(method))


def compute_nopm(method: FunctionDecl, ctx: VisitContext) -> Value:
    return Value.of(len(method.bound_parameters))


def compute_cnd(method: FunctionDecl, ctx: VisitContext) -> Value:
    return Value.of(nesting_depth(method.node, CONDITIONS))


def compute_lnd(method: FunctionDecl, ctx: VisitContext) -> Value:
    return Value.of(nesting_depth(method.node, LOOP_STATEMENTS))


def compute_mnd(method: FunctionDecl, ctx: VisitContext) -> Value:
    return Value.of(nesting_depth(method.node, COMPOUND_STATEMENTS))


def compute_ccm(method: FunctionDecl, ctx: VisitContext) -> Value:
    return Value.of(ctx.memo(("ccm", id(method)), lambda: cognitive_complexity(method)))


def compute_wmc(cls: TypeDecl, ctx: VisitContext) -> Value:
    """Sum of the cyclomatic complexity of the declared methods."""
    return Value.sum(compute_cc(method, ctx) for method in cls.methods)
