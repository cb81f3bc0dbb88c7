"""Declaration models for parsed Python compilation units.

ModuleDecl provides the declaration view the metric pipeline consumes:
    - Per-module: classes, functions, import bindings, type variables
    - Per-class: bases, keywords, methods, fields, nested classes
    - Per-function: parameters, decorators, body node

Declarations keep the tree-sitter nodes they were built from so visitors can
walk the syntax tree. Identity (not value) equality is used throughout, which
keeps declarations usable as dict keys.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterator, Optional

Node = Any

BOILERPLATE_METHODS = frozenset({"__repr__", "__str__", "__eq__", "__hash__", "__ne__"})
CONSTRUCTORS = frozenset({"__init__", "__new__"})


def visibility_of(name: str) -> str:
    """``private`` for ``__x``, ``protected`` for ``_x``, otherwise ``public``."""
    if name.startswith("__") and not name.endswith("__"):
        return "private"
    if name.startswith("_") and not (name.startswith("__") and name.endswith("__")):
        return "protected"
    return "public"


@dataclass(eq=False)
class ParameterDecl:
    """One formal parameter.

    Attributes:
        name: Parameter name without stars
        kind: ``plain``, ``args`` (``*args``) or ``kwargs`` (``**kwargs``)
        annotation: Annotation node, if any
    """

    name: str
    kind: str = "plain"
    annotation: Optional[Node] = None


@dataclass(eq=False)
class FieldDecl:
    """A class attribute or an instance attribute assigned through ``self``.

    Attributes:
        name: Attribute name
        class_level: True for assignments in the class body
        annotation: Declared annotation node (first declaration wins)
        value: First assigned expression node
        line: 1-based line of the first declaration
    """

    name: str
    class_level: bool
    annotation: Optional[Node] = None
    value: Optional[Node] = None
    line: int = 0

    @property
    def visibility(self) -> str:
        return visibility_of(self.name)


@dataclass(eq=False)
class FunctionDecl:
    """A function or method definition.

    Attributes:
        name: Function name
        node: The ``function_definition`` node
        decorators: Decorator names without call arguments (e.g. ``["property"]``)
        parameters: Formal parameters in declaration order
        is_method: True when declared directly in a class body
        is_async: True for ``async def``
    """

    name: str
    node: Node = field(repr=False)
    decorators: list[str] = field(default_factory=list)
    parameters: list[ParameterDecl] = field(default_factory=list)
    is_method: bool = False
    is_async: bool = False

    @property
    def body(self) -> Optional[Node]:
        return self.node.child_by_field_name("body")

    @property
    def return_annotation(self) -> Optional[Node]:
        return self.node.child_by_field_name("return_type")

    @property
    def line(self) -> int:
        return self.node.start_point[0] + 1

    @property
    def visibility(self) -> str:
        return visibility_of(self.name)

    def _decorated_with(self, *names: str) -> bool:
        for decorator in self.decorators:
            last = decorator.rsplit(".", 1)[-1]
            if decorator in names or last in names:
                return True
        return False

    @property
    def is_staticmethod(self) -> bool:
        return self.is_method and self._decorated_with("staticmethod")

    @property
    def is_classmethod(self) -> bool:
        return self.is_method and self._decorated_with("classmethod")

    @property
    def is_static(self) -> bool:
        """Static in the object-oriented sense: not bound to an instance."""
        return self.is_staticmethod or self.is_classmethod

    @property
    def is_abstract(self) -> bool:
        return self._decorated_with("abstractmethod", "abstractproperty")

    @property
    def is_property(self) -> bool:
        """``@property``, ``@cached_property`` or ``@x.setter``/``@x.deleter``."""
        for decorator in self.decorators:
            if decorator in ("property", "functools.cached_property", "cached_property"):
                return True
            if decorator.endswith((".setter", ".getter", ".deleter")):
                return True
        return False

    @property
    def is_constructor(self) -> bool:
        return self.is_method and self.name in CONSTRUCTORS

    @property
    def is_boilerplate(self) -> bool:
        return self.is_method and self.name in BOILERPLATE_METHODS

    @property
    def receiver_name(self) -> Optional[str]:
        """Name of the bound first parameter (``self``/``cls``), if any."""
        if not self.is_method or self.is_staticmethod or not self.parameters:
            return None
        first = self.parameters[0]
        return first.name if first.kind == "plain" else None

    @property
    def bound_parameters(self) -> list[ParameterDecl]:
        """Parameters a caller supplies (the bound receiver removed)."""
        if self.receiver_name is not None:
            return self.parameters[1:]
        return list(self.parameters)


@dataclass(eq=False)
class TypeDecl:
    """A class declared at module level or nested in another class body.

    Attributes:
        name: Simple class name
        qualified_name: ``module.Outer.Inner``
        module: Declaring module (non-owning)
        node: The ``class_definition`` node
        outer: Enclosing class for nested classes
        bases: Positional base-class expression nodes
        keywords: Keyword arguments of the class statement (``metaclass=...``)
        decorators: Decorator names without call arguments
        methods: Methods declared directly in the body
        fields: Attributes keyed by name, in declaration order
        nested: Classes declared directly in the body
        type_parameters: PEP 695 type parameter names
    """

    name: str
    qualified_name: str
    module: "ModuleDecl" = field(repr=False)
    node: Node = field(repr=False)
    outer: Optional["TypeDecl"] = field(default=None, repr=False)
    bases: list[Node] = field(default_factory=list, repr=False)
    keywords: dict[str, Node] = field(default_factory=dict, repr=False)
    decorators: list[str] = field(default_factory=list)
    methods: list[FunctionDecl] = field(default_factory=list, repr=False)
    fields: dict[str, FieldDecl] = field(default_factory=dict, repr=False)
    nested: list["TypeDecl"] = field(default_factory=list, repr=False)
    type_parameters: set[str] = field(default_factory=set)

    @property
    def package(self) -> str:
        return self.module.package

    @property
    def body(self) -> Optional[Node]:
        return self.node.child_by_field_name("body")

    @property
    def is_nested(self) -> bool:
        return self.outer is not None

    @property
    def line(self) -> int:
        return self.node.start_point[0] + 1

    def method(self, name: str) -> Optional[FunctionDecl]:
        for method in self.methods:
            if method.name == name:
                return method
        return None

    def method_names(self) -> set[str]:
        return {method.name for method in self.methods}

    def iter_types(self) -> Iterator["TypeDecl"]:
        """This class followed by its nested classes, depth first."""
        stack = [self]
        while stack:
            current = stack.pop()
            yield current
            stack.extend(reversed(current.nested))

    def type_variables(self) -> set[str]:
        """Type parameter names in scope: own, enclosing classes' and the module's."""
        names = set(self.module.type_variables)
        current: Optional[TypeDecl] = self
        while current is not None:
            names |= current.type_parameters
            current = current.outer
        return names


@dataclass(eq=False)
class ModuleDecl:
    """Declarations of one compilation unit.

    Attributes:
        path: Path relative to the scope root (POSIX separators)
        module_name: Dotted module name (``pkg.mod``; ``pkg`` for ``pkg/__init__.py``)
        package: Dotted package name (``""`` for the source root)
        source: Raw source bytes
        tree: The tree-sitter tree
        classes: Module-level classes in source order
        functions: Module-level functions
        imports: Local binding name -> dotted target
        star_imports: Modules imported with ``from m import *``
        local_classes: Names of classes declared inside function bodies
        type_variables: Names bound to ``TypeVar``/``ParamSpec``/``TypeVarTuple``
    """

    path: str
    module_name: str
    package: str
    source: bytes = field(repr=False)
    tree: Any = field(repr=False)
    classes: list[TypeDecl] = field(default_factory=list, repr=False)
    functions: list[FunctionDecl] = field(default_factory=list, repr=False)
    imports: dict[str, str] = field(default_factory=dict, repr=False)
    star_imports: list[str] = field(default_factory=list, repr=False)
    local_classes: set[str] = field(default_factory=set, repr=False)
    type_variables: set[str] = field(default_factory=set, repr=False)

    @property
    def is_package_init(self) -> bool:
        return self.path.endswith("__init__.py")

    @property
    def line_count(self) -> int:
        if not self.source:
            return 0
        return self.source.count(b"\n") + (0 if self.source.endswith(b"\n") else 1)

    def all_classes(self) -> list[TypeDecl]:
        """Every class of the module, nested ones included, in source order."""
        result: list[TypeDecl] = []
        for cls in self.classes:
            result.extend(cls.iter_types())
        return result

    def class_named(self, name: str) -> Optional[TypeDecl]:
        for cls in self.classes:
            if cls.name == name:
                return cls
        return None
