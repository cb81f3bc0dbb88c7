"""Cohesion: Lack of Cohesion of Methods (LCOM) and Tight Class Cohesion (TCC)."""

from __future__ import annotations

from collections import deque
from itertools import combinations

from ..metrics.value import Value
from ..scanning.nodes import node_text, walk
from ..scanning.syntax import FunctionDecl, TypeDecl
from .context import VisitContext

_SKIP_LOCAL_CLASSES = frozenset({"class_definition"})


def applicable_methods(cls: TypeDecl) -> list[FunctionDecl]:
    """Instance methods that take part in cohesion measures."""
    return [
        method
        for method in cls.methods
        if not (method.is_constructor or method.is_static or method.is_boilerplate or method.is_abstract)
        and method.body is not None
    ]


def _receiver_accesses(method: FunctionDecl) -> tuple[set[str], set[str]]:
    """Attribute names read or written through the receiver, and names called on it."""
    receiver = method.receiver_name
    accessed: set[str] = set()
    called: set[str] = set()
    if receiver is None:
        return accessed, called
    for node in walk(method.body, _SKIP_LOCAL_CLASSES):
        if node.type != "attribute":
            continue
        obj = node.child_by_field_name("object")
        if obj is None or obj.type != "identifier" or node_text(obj) != receiver:
            continue
        name = node_text(node.child_by_field_name("attribute"))
        parent = node.parent
        if parent is not None and parent.type == "call" and parent.child_by_field_name("function") == node:
            called.add(name)
        else:
            accessed.add(name)
    return accessed, called


def field_usage(cls: TypeDecl, ctx: VisitContext) -> dict[FunctionDecl, tuple[frozenset, frozenset]]:
    """Per applicable method: own fields used and own methods called via the receiver."""

    def build() -> dict:
        fields = set(cls.fields)
        names = cls.method_names()
        usage = {}
        for method in applicable_methods(cls):
            accessed, called = _receiver_accesses(method)
            usage[method] = (frozenset(accessed & fields), frozenset(called & names))
        return usage

    return ctx.memo(("field_usage", id(cls)), build)


def lack_of_cohesion(cls: TypeDecl, ctx: VisitContext) -> int:
    """Connected components among methods that use at least one field."""
    usage = field_usage(cls, ctx)
    nodes = [method for method, (fields, _) in usage.items() if fields]
    if not nodes:
        return 0

    def adjacent(a: FunctionDecl, b: FunctionDecl) -> bool:
        a_fields, a_calls = usage[a]
        b_fields, b_calls = usage[b]
        return bool(a_fields & b_fields) or b.name in a_calls or a.name in b_calls

    visited: set[FunctionDecl] = set()
    components = 0
    for start in nodes:
        if start in visited:
            continue
        components += 1
        visited.add(start)
        queue = deque([start])
        while queue:
            current = queue.popleft()
            for other in nodes:
                if other not in visited and adjacent(current, other):
                    visited.add(other)
                    queue.append(other)
    return components


def tight_class_cohesion(cls: TypeDecl, ctx: VisitContext) -> float:
    usage = field_usage(cls, ctx)
    methods = list(usage)
    if len(methods) < 2:
        return 0.0
    connected = sum(1 for a, b in combinations(methods, 2) if usage[a][0] & usage[b][0])
    possible = len(methods) * (len(methods) - 1) / 2
    return connected / possible


def compute_lcom(cls: TypeDecl, ctx: VisitContext) -> Value:
    return Value.of(lack_of_cohesion(cls, ctx))


def compute_tcc(cls: TypeDecl, ctx: VisitContext) -> Value:
    return Value.of(tight_class_cohesion(cls, ctx))
