"""Small helpers over tree-sitter nodes of the Python grammar."""

from __future__ import annotations

import re
from typing import Any, Iterator, Optional

Node = Any

_DOTTED_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)*$")

# Statement-like nodes that open a nested block
COMPOUND_STATEMENTS = frozenset(
    {
        "if_statement",
        "for_statement",
        "while_statement",
        "try_statement",
        "with_statement",
        "match_statement",
    }
)

LOOP_STATEMENTS = frozenset({"for_statement", "while_statement"})

DEFINITIONS = frozenset({"function_definition", "class_definition"})


def node_text(node: Optional[Node]) -> str:
    if node is None or node.text is None:
        return ""
    return node.text.decode("utf-8", errors="replace")


def node_key(node: Node) -> tuple[int, int, str]:
    """Stable identity for a node within one tree."""
    return (node.start_byte, node.end_byte, node.type)


def named_children(node: Node) -> list[Node]:
    """Named children without comments."""
    return [child for child in node.named_children if child.type != "comment"]


def walk(node: Node, skip: frozenset = frozenset()) -> Iterator[Node]:
    """Pre-order walk in source order.

    Nodes whose type is in ``skip`` (other than ``node`` itself) are neither
    yielded nor descended into.
    """
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        for child in reversed(current.children):
            if child.type not in skip:
                stack.append(child)


def unwrap_definition(node: Node) -> tuple[Node, list[Node]]:
    """Split a possibly decorated definition into (definition, decorators)."""
    if node.type == "decorated_definition":
        decorators = [child for child in node.children if child.type == "decorator"]
        return node.child_by_field_name("definition"), decorators
    return node, []


def decorator_name(decorator: Node) -> str:
    """Dotted name of a decorator, without call arguments: ``@a.b(x)`` -> ``a.b``."""
    expr = named_children(decorator)
    if not expr:
        return ""
    target = expr[0]
    if target.type == "call":
        target = target.child_by_field_name("function")
    return node_text(target)


def block_statements(block: Optional[Node]) -> list[Node]:
    if block is None:
        return []
    return named_children(block)


def is_docstring(statement: Node) -> bool:
    if statement.type != "expression_statement":
        return False
    children = named_children(statement)
    return len(children) == 1 and children[0].type in ("string", "concatenated_string")


def dotted_name(node: Optional[Node]) -> Optional[str]:
    """``a.b.c`` for identifier/attribute chains, None for anything else."""
    if node is None:
        return None
    if node.type == "identifier":
        return node_text(node)
    if node.type == "attribute":
        head = dotted_name(node.child_by_field_name("object"))
        attr = node.child_by_field_name("attribute")
        if head is None or attr is None:
            return None
        return f"{head}.{node_text(attr)}"
    if node.type == "member_type":
        parts = named_children(node)
        if len(parts) == 2:
            head = dotted_name(parts[0])
            return f"{head}.{node_text(parts[1])}" if head is not None else None
        return None
    if node.type in ("type", "parenthesized_expression"):
        inner = named_children(node)
        if len(inner) == 1:
            return dotted_name(inner[0])
    return None


def string_literal_value(node: Node) -> Optional[str]:
    """Content of a plain string literal, used for quoted annotations."""
    if node.type != "string":
        return None
    parts = [node_text(child) for child in node.named_children if child.type == "string_content"]
    if any(child.type == "interpolation" for child in node.named_children):
        return None
    return "".join(parts)


def is_dotted_text(text: str) -> bool:
    return bool(_DOTTED_RE.match(text))


def has_ancestor(node: Node, types: frozenset, limit: int = 6) -> bool:
    parent = node.parent
    depth = 0
    while parent is not None and depth < limit:
        if parent.type in types:
            return True
        parent = parent.parent
        depth += 1
    return False


def line_span(node: Node) -> tuple[int, int]:
    """1-based first and last line of a node."""
    return node.start_point[0] + 1, node.end_point[0] + 1
