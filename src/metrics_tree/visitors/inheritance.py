"""Inheritance: DIT, NOC, NOOM, NOAM and NOO."""

from __future__ import annotations

from ..metrics.value import Value
from ..scanning.syntax import TypeDecl
from .context import VisitContext


def compute_dit(cls: TypeDecl, ctx: VisitContext) -> Value:
    return Value.of(ctx.index.inheritance_depth(cls))


def compute_noc(cls: TypeDecl, ctx: VisitContext) -> Value:
    return Value.of(len(ctx.index.subclasses(cls)))


def compute_noom(cls: TypeDecl, ctx: VisitContext) -> Value:
    """Methods redefining a name declared by a project ancestor."""
    names = {m.name for m in cls.methods if not m.is_constructor and ctx.index.overrides(cls, m)}
    return Value.of(len(names))


def compute_noam(cls: TypeDecl, ctx: VisitContext) -> Value:
    names = {m.name for m in cls.methods if not m.is_constructor and not ctx.index.overrides(cls, m)}
    return Value.of(len(names))


def compute_noo(cls: TypeDecl, ctx: VisitContext) -> Value:
    operations = {m.name for m in cls.methods if m.visibility != "private"}
    for ancestor in ctx.index.ancestors(cls):
        operations.update(m.name for m in ancestor.methods if m.visibility != "private")
    return Value.of(len(operations))
