"""Outgoing type references of one class.

The traversal covers the class header (bases, keywords, type parameter
bounds, decorators), class-level statements and every method: parameter and
return annotations, local annotations, constructor calls, method call
targets (resolved to the declaring class), attribute reads through typed
receivers, ``isinstance``/``cast`` operands, raised exceptions and quoted
annotations. Bodies of nested classes belong to those classes. Local classes
declared inside methods contribute to the enclosing class.
"""

from __future__ import annotations

import re
from typing import Any, Iterator

from ..scanning.inference import ScopeTypes
from ..scanning.nodes import (
    block_statements,
    dotted_name,
    node_key,
    node_text,
    string_literal_value,
    unwrap_definition,
)
from ..scanning.symbols import Reference, SymbolIndex
from ..scanning.syntax import TypeDecl

Node = Any

_QUOTED_NAME_RE = re.compile(r"[A-Za-z_][\w.]*")

# Parents under which an identifier names something instead of reading it
_BINDING_PARENTS = frozenset(
    {
        "parameters",
        "lambda_parameters",
        "list_splat_pattern",
        "dictionary_splat_pattern",
        "global_statement",
        "nonlocal_statement",
        "aliased_import",
        "dotted_name",
        "pattern_list",
        "tuple_pattern",
        "typed_parameter",
    }
)
_NAMED_PARENTS = frozenset(
    {
        "function_definition",
        "class_definition",
        "default_parameter",
        "typed_default_parameter",
        "keyword_argument",
    }
)
_TARGET_PARENTS = frozenset({"assignment", "augmented_assignment", "for_statement", "for_in_clause"})
_SKIPPED = frozenset(
    {"import_statement", "import_from_statement", "future_import_statement", "comment", "keyword_separator"}
)


def _is_read(identifier: Node) -> bool:
    parent = identifier.parent
    if parent is None:
        return True
    kind = parent.type
    if kind in _BINDING_PARENTS:
        return False
    if kind in _NAMED_PARENTS and parent.child_by_field_name("name") == identifier:
        return False
    if kind in _TARGET_PARENTS and parent.child_by_field_name("left") == identifier:
        return False
    return True


def _in_annotation(node: Node) -> bool:
    parent = node.parent
    depth = 0
    while parent is not None and depth < 6:
        if parent.type == "type":
            return True
        if parent.type in ("block", "call", "argument_list"):
            return False
        parent = parent.parent
        depth += 1
    return False


class ReferenceCollector:
    """Collects the type references of classes against one SymbolIndex."""

    def __init__(self, index: SymbolIndex) -> None:
        self.index = index

    def collect(self, cls: TypeDecl) -> list[Reference]:
        """References from ``cls`` in source order (duplicates kept)."""
        module = cls.module
        refs: list[Reference] = []

        for decorator in cls.decorators:
            found = self.index.resolve(module, decorator, cls.outer)
            if found is not None:
                refs.append(found)

        header = ScopeTypes(self.index, module, cls)
        for part in ("superclasses", "type_parameters"):
            node = cls.node.child_by_field_name(part)
            if node is not None:
                refs.extend(self._references(node, header))

        methods = {node_key(method.node): method for method in cls.methods}
        for statement in block_statements(cls.body):
            definition, decorators = unwrap_definition(statement)
            if definition is None or definition.type == "class_definition":
                continue
            method = methods.get(node_key(definition)) if definition.type == "function_definition" else None
            if method is not None:
                context = ScopeTypes(self.index, module, cls, method)
                for decorator in decorators:
                    refs.extend(self._references(decorator, context))
                refs.extend(self._references(definition, context))
            else:
                refs.extend(self._references(statement, header))
        return refs

    def distinct_count(self, cls: TypeDecl) -> int:
        """Distinct referenced types other than ``cls`` itself."""
        names = {ref.name for ref in self.collect(cls)}
        names.discard(cls.qualified_name)
        return len(names)

    def _references(self, root: Node, context: ScopeTypes) -> Iterator[Reference]:
        index = self.index
        module = context.module
        owner = context.owner

        stack = [root]
        while stack:
            node = stack.pop()
            kind = node.type

            if kind in _SKIPPED:
                continue

            if kind == "identifier":
                if _is_read(node):
                    name = node_text(node)
                    if not context.is_local(name):
                        found = index.resolve(module, name, owner)
                        if found is not None:
                            yield found
                continue

            if kind in ("attribute", "member_type"):
                dotted = dotted_name(node)
                if dotted is not None:
                    if context.is_local(dotted.split(".", 1)[0]):
                        # Attribute read through a typed receiver
                        found = context.type_of(node.child_by_field_name("object")) if kind == "attribute" else None
                    else:
                        found = index.resolve(module, dotted, owner)
                    if found is not None:
                        yield found
                    continue
                obj = node.child_by_field_name("object")
                if obj is not None:
                    stack.append(obj)
                continue

            if kind == "call":
                found = context.call_target(node)
                if found is not None:
                    yield found

            elif kind == "keyword_argument":
                value = node.child_by_field_name("value")
                if value is not None:
                    stack.append(value)
                continue

            elif kind == "string":
                if _in_annotation(node):
                    yield from self._quoted(node, context)
                stack.extend(reversed([c for c in node.named_children if c.type == "interpolation"]))
                continue

            stack.extend(reversed(node.children))

    def _quoted(self, node: Node, context: ScopeTypes) -> Iterator[Reference]:
        text = string_literal_value(node)
        if not text:
            return
        for name in _QUOTED_NAME_RE.findall(text):
            if name == "None":
                continue
            found = self.index.resolve(context.module, name, context.owner)
            if found is not None:
                yield found

