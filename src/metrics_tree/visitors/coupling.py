"""Coupling: CBO, RFC, MPC and DAC."""

from __future__ import annotations

from typing import Any, Iterator, Optional

from ..graph.references import ReferenceCollector
from ..metrics.metric import Metric
from ..metrics.types import MetricType
from ..metrics.value import Value
from ..scanning.nodes import named_children, node_text, walk
from ..scanning.syntax import TypeDecl
from .context import VisitContext
from .halstead import class_roots

Node = Any

_RECEIVERS = frozenset({"self", "cls"})


def class_calls(cls: TypeDecl) -> Iterator[Node]:
    """Call nodes of the class body, nested classes skipped."""
    for root in class_roots(cls):
        for node in walk(root):
            if node.type == "call":
                yield node


def called_name(call: Node) -> Optional[str]:
    function = call.child_by_field_name("function")
    if function is None:
        return None
    if function.type == "identifier":
        return node_text(function)
    if function.type == "attribute":
        return node_text(function.child_by_field_name("attribute"))
    return None


def call_arity(call: Node) -> int:
    arguments = call.child_by_field_name("arguments")
    if arguments is None:
        return 0
    if arguments.type == "generator_expression":
        return 1
    return len(named_children(arguments))


def _is_super_call(node: Node) -> bool:
    if node.type != "call":
        return False
    function = node.child_by_field_name("function")
    return function is not None and function.type == "identifier" and node_text(function) == "super"


def compute_cbo(cls: TypeDecl, ctx: VisitContext) -> Metric:
    """Graph coupling, with the per-class outgoing count as alternate value."""
    outgoing = ctx.memo(("outgoing", id(cls)), lambda: ReferenceCollector(ctx.index).distinct_count(cls))
    if ctx.graph is None:
        return Metric.of(MetricType.CBO, outgoing)
    return Metric.of(MetricType.CBO, ctx.graph.coupling(cls.qualified_name), outgoing)


def compute_rfc(cls: TypeDecl, ctx: VisitContext) -> Value:
    """Declared methods plus distinct (name, arity) call sites."""
    if ctx.index.is_interface(cls):
        return Value.UNDEFINED
    response = {(method.name, len(method.bound_parameters)) for method in cls.methods}
    for call in class_calls(cls):
        name = called_name(call)
        if name is not None:
            response.add((name, call_arity(call)))
    return Value.of(len(response))


def compute_mpc(cls: TypeDecl, ctx: VisitContext) -> Value:
    """Calls sent to objects other than the instance, the class or ``super()``."""
    receivers = set(_RECEIVERS)
    receivers.update(method.receiver_name for method in cls.methods if method.receiver_name)
    count = 0
    for call in class_calls(cls):
        function = call.child_by_field_name("function")
        if function is None or function.type != "attribute":
            continue
        obj = function.child_by_field_name("object")
        if obj is None or _is_super_call(obj):
            continue
        if obj.type == "identifier" and node_text(obj) in receivers:
            continue
        count += 1
    return Value.of(count)


def compute_dac(cls: TypeDecl, ctx: VisitContext) -> Value:
    """Fields typed by another class, resolved or not."""
    count = 0
    for name in cls.fields:
        found = ctx.index.field_type(cls, name)
        if found is not None and found.name != cls.qualified_name:
            count += 1
    return Value.of(count)
