"""Static receiver typing inside a function body.

Only what can be read off the source is inferred:
    - ``self``/``cls`` are the enclosing class
    - annotated parameters and annotated locals take their annotation
    - ``x = Foo(...)`` makes ``x`` a ``Foo`` (the last such assignment wins)
    - ``self.attr`` takes the attribute's declared or constructor type
    - ``obj.method()`` takes the return annotation of the resolved method
    - ``super()`` is the first project base
"""

from __future__ import annotations

from typing import Any, Optional

from .nodes import dotted_name, named_children, node_text, walk
from .symbols import Reference, SymbolIndex
from .syntax import FunctionDecl, ModuleDecl, TypeDecl

Node = Any


class ScopeTypes:
    """Local type bindings of one function (or of a class body)."""

    def __init__(
        self,
        index: SymbolIndex,
        module: ModuleDecl,
        owner: Optional[TypeDecl],
        function: Optional[FunctionDecl] = None,
    ) -> None:
        self.index = index
        self.module = module
        self.owner = owner
        self.receiver: Optional[str] = None
        self._locals: dict[str, Reference] = {}

        if function is None:
            return

        self.receiver = function.receiver_name
        for parameter in function.parameters:
            if parameter.name == self.receiver or parameter.annotation is None:
                continue
            if parameter.kind != "plain":
                continue
            found = index.principal_type(module, parameter.annotation, owner)
            if found is not None:
                self._locals[parameter.name] = found

        body = function.body
        if body is None:
            return
        for node in walk(body, skip=frozenset({"class_definition"})):
            if node.type != "assignment":
                continue
            left = node.child_by_field_name("left")
            if left is None or left.type != "identifier":
                continue
            name = node_text(left)
            annotation = node.child_by_field_name("type")
            if annotation is not None:
                found = index.principal_type(module, annotation, owner)
            else:
                found = self._constructed_type(node.child_by_field_name("right"))
            if found is not None:
                self._locals[name] = found

    def _constructed_type(self, value: Optional[Node]) -> Optional[Reference]:
        if value is None or value.type != "call":
            return None
        callee = dotted_name(value.child_by_field_name("function"))
        if callee is None or callee.split(".", 1)[0] in self._locals:
            return None
        if callee.split(".", 1)[0] == self.receiver:
            return None
        return self.index.resolve(self.module, callee, self.owner)

    def is_receiver(self, name: str) -> bool:
        """True for ``self``/``cls``."""
        return self.receiver is not None and name == self.receiver

    def is_local(self, name: str) -> bool:
        return self.is_receiver(name) or name in self._locals

    def local_type(self, name: str) -> Optional[Reference]:
        if self.is_receiver(name) and self.owner is not None:
            return Reference(self.owner.qualified_name, self.owner)
        return self._locals.get(name)

    def type_of(self, node: Optional[Node]) -> Optional[Reference]:
        """Static type of an expression used as a receiver, if known."""
        if node is None:
            return None
        kind = node.type

        if kind == "parenthesized_expression":
            children = named_children(node)
            return self.type_of(children[0]) if len(children) == 1 else None

        if kind == "identifier":
            name = node_text(node)
            if self.is_local(name):
                return self.local_type(name)
            return self.index.resolve(self.module, name, self.owner)

        if kind == "attribute":
            obj = node.child_by_field_name("object")
            attr = node_text(node.child_by_field_name("attribute"))
            dotted = dotted_name(node)
            if dotted is not None and not self.is_local(dotted.split(".", 1)[0]):
                exact = self.index.resolve_exact(self.module, dotted, self.owner)
                if exact is not None:
                    return Reference(exact.qualified_name, exact)
            receiver = self.type_of(obj)
            if receiver is None or receiver.target is None:
                return None
            return self.index.field_type(receiver.target, attr)

        if kind == "call":
            function = node.child_by_field_name("function")
            if function is None:
                return None
            if function.type == "identifier" and node_text(function) == "super":
                return self.super_type()
            if function.type == "attribute":
                receiver = self.type_of(function.child_by_field_name("object"))
                if receiver is not None and receiver.target is not None:
                    name = node_text(function.child_by_field_name("attribute"))
                    found = self.index.find_method(receiver.target, name)
                    if found is not None:
                        declaring, method = found
                        return self.index.principal_type(declaring.module, method.return_annotation, declaring)
                    return None
            callee = self.type_of(function)
            # Calling a class yields an instance of it
            return callee if callee is not None and function.type != "call" else None

        return None

    def super_type(self) -> Optional[Reference]:
        if self.owner is None:
            return None
        bases = self.index.bases(self.owner)
        if not bases:
            return None
        return Reference(bases[0].qualified_name, bases[0])

    def call_target(self, call: Node) -> Optional[Reference]:
        """Class declaring the method invoked by ``call`` (``recv.m(...)``).

        Falls back to the receiver's type when no ancestor declares ``m``.
        """
        function = call.child_by_field_name("function")
        if function is None or function.type != "attribute":
            return None
        receiver = self.type_of(function.child_by_field_name("object"))
        if receiver is None:
            return None
        if receiver.target is None:
            return receiver
        name = node_text(function.child_by_field_name("attribute"))
        found = self.index.find_method(receiver.target, name)
        if found is None:
            return receiver
        declaring, _ = found
        return Reference(declaring.qualified_name, declaring)
