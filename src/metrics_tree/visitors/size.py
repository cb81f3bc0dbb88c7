"""Size and interface measures of a class.

NOM, NOA, SIZE2 and NOPA are simple counts over the declarations. NOAC and
WOC classify methods by their bodies:

    accessor     @property-style methods, or get_/set_/is_ methods whose body
                 is a single ``return self.x`` or ``self.x = v``
    trivial      empty, ``pass``/``...`` or abstract bodies, and single
                 statement delegations (``return x``, ``return f()``,
                 ``f()``, ``x = y``)
    functional   everything else except constructors and boilerplate dunders

NCSS counts statements the way a reader would: one for the class header,
one per simple or compound statement and one per extra branch.
"""

from __future__ import annotations

import re
from typing import Any, Optional

from ..metrics.value import Value
from ..scanning.nodes import block_statements, is_docstring, named_children, node_text, walk
from ..scanning.syntax import FunctionDecl, TypeDecl
from .context import VisitContext
from .halstead import class_roots

Node = Any

STATEMENTS = frozenset(
    {
        "expression_statement",
        "return_statement",
        "break_statement",
        "continue_statement",
        "raise_statement",
        "assert_statement",
        "delete_statement",
        "global_statement",
        "nonlocal_statement",
        "import_statement",
        "import_from_statement",
        "future_import_statement",
        "type_alias_statement",
        "print_statement",
        "exec_statement",
        "if_statement",
        "for_statement",
        "while_statement",
        "try_statement",
        "with_statement",
        "match_statement",
        "function_definition",
        "class_definition",
    }
)

BRANCHES = frozenset(
    {
        "elif_clause",
        "else_clause",
        "except_clause",
        "except_group_clause",
        "finally_clause",
        "case_clause",
    }
)

_ACCESSOR_NAME = re.compile(r"^(get|set|is)_\w+$")


def _is_ellipsis(statement: Node) -> bool:
    if statement.type != "expression_statement":
        return False
    children = named_children(statement)
    return len(children) == 1 and children[0].type == "ellipsis"


def body_statements(method: FunctionDecl) -> list[Node]:
    """Statements of the method body without its docstring."""
    return [s for s in block_statements(method.body) if not is_docstring(s)]


def _is_receiver_attribute(node: Optional[Node], receiver: str) -> bool:
    if node is None or node.type != "attribute":
        return False
    obj = node.child_by_field_name("object")
    return obj is not None and obj.type == "identifier" and node_text(obj) == receiver


def _single_expression(statement: Node) -> Optional[Node]:
    if statement.type != "expression_statement":
        return None
    children = named_children(statement)
    return children[0] if len(children) == 1 else None


def is_accessor(method: FunctionDecl) -> bool:
    if method.is_property:
        return True
    receiver = method.receiver_name
    if receiver is None or not _ACCESSOR_NAME.match(method.name):
        return False
    statements = body_statements(method)
    if len(statements) != 1:
        return False
    statement = statements[0]
    if statement.type == "return_statement":
        values = named_children(statement)
        return len(values) == 1 and _is_receiver_attribute(values[0], receiver)
    expression = _single_expression(statement)
    if expression is not None and expression.type == "assignment":
        return _is_receiver_attribute(expression.child_by_field_name("left"), receiver)
    return False


def is_trivial(method: FunctionDecl) -> bool:
    if method.is_abstract:
        return True
    statements = [
        s for s in body_statements(method) if s.type != "pass_statement" and not _is_ellipsis(s)
    ]
    if not statements:
        return True
    if len(statements) != 1:
        return False
    statement = statements[0]
    if statement.type == "return_statement":
        values = named_children(statement)
        return not values or (len(values) == 1 and values[0].type in ("identifier", "attribute", "call"))
    expression = _single_expression(statement)
    if expression is None:
        return False
    if expression.type == "call":
        return True
    if expression.type == "assignment":
        right = expression.child_by_field_name("right")
        return right is not None and right.type in ("identifier", "attribute")
    return False


def statement_count(root: Node) -> int:
    count = 0
    for node in walk(root):
        kind = node.type
        if kind in BRANCHES:
            count += 1
        elif kind in STATEMENTS:
            if kind == "expression_statement" and is_docstring(node):
                continue
            count += 1
    return count


# ── Metric entry points ───────────────────────────────────────────────


def compute_nom(cls: TypeDecl, ctx: VisitContext) -> Value:
    return Value.of(len(cls.methods))


def compute_noa(cls: TypeDecl, ctx: VisitContext) -> Value:
    return Value.of(len(cls.fields))


def compute_size2(cls: TypeDecl, ctx: VisitContext) -> Value:
    return Value.of(len(cls.fields) + len(cls.methods))


def compute_nopa(cls: TypeDecl, ctx: VisitContext) -> Value:
    return Value.of(sum(1 for f in cls.fields.values() if f.visibility == "public"))


def compute_noac(cls: TypeDecl, ctx: VisitContext) -> Value:
    return Value.of(sum(1 for m in cls.methods if is_accessor(m)))


def compute_woc(cls: TypeDecl, ctx: VisitContext) -> Value:
    """Functional methods over all non-constructor methods."""
    if ctx.index.is_interface(cls) or ctx.index.is_enum(cls):
        return Value.UNDEFINED
    methods = [m for m in cls.methods if not m.is_constructor]
    if not methods:
        return Value.of(0.0)
    functional = [m for m in methods if not (is_accessor(m) or m.is_boilerplate or is_trivial(m))]
    return Value.of(len(functional) / len(methods))


def compute_ncss(cls: TypeDecl, ctx: VisitContext) -> Value:
    if ctx.index.is_interface(cls):
        return Value.UNDEFINED
    return Value.of(1 + sum(statement_count(root) for root in class_roots(cls)))
