"""Symbol resolution over the declarations of one analysis scope.

SymbolIndex answers the questions the dependency builder and the metric
visitors ask about names:

    - which project class (if any) a dotted reference denotes
    - what best-effort name an unresolved type reference gets
    - bases, ancestors, subclasses and inheritance depth of a class
    - whether a class is an interface (Protocol), enum or abstract

Name lookup for the first segment of a reference follows enclosing nested
classes, module-level classes, import bindings (relative imports already
made absolute), star imports of project modules, then builtins. Anything
still unknown is unresolved. When no declaration is found, a segment that
starts with an upper-case letter (and is not ALL_CAPS) is taken to be a type
name. That fallback is a heuristic: ``np.ndarray`` is not counted while
``requests.Session`` is.

Everything structural is computed eagerly in ``__init__``. The one table
filled later is the memo of attribute types, which is guarded by a lock, so
visitors on worker threads can share one index.
"""

from __future__ import annotations

import builtins
import logging
import re
import threading
from dataclasses import dataclass
from typing import Any, Iterable, Optional

from .nodes import dotted_name, named_children, node_text, string_literal_value
from .syntax import FunctionDecl, ModuleDecl, TypeDecl

logger = logging.getLogger(__name__)

Node = Any

IGNORED_MODULES = ("typing", "typing_extensions", "abc", "collections.abc", "__future__", "builtins")
PROTOCOL_BASES = frozenset({"typing.Protocol", "typing_extensions.Protocol"})
ENUM_BASES = frozenset(
    {"enum.Enum", "enum.IntEnum", "enum.Flag", "enum.IntFlag", "enum.StrEnum", "enum.ReprEnum"}
)
ABSTRACT_BASES = frozenset({"abc.ABC"})
ABSTRACT_METACLASSES = frozenset({"abc.ABCMeta"})

_BUILTIN_NAMES = frozenset(dir(builtins))
_WRAPPER_TYPES = frozenset(
    {"Optional", "Union", "Annotated", "Final", "ClassVar", "Required", "NotRequired", "ReadOnly"}
)
_ANNOTATION_TEXT_RE = re.compile(r"^\s*(?:(?:typing\.)?Optional\[)?\s*([A-Za-z_][\w.]*)")

# Reexport chains longer than this are not followed
_MAX_REEXPORT_DEPTH = 5


@dataclass(frozen=True)
class Reference:
    """Outcome of resolving a type reference.

    Attributes:
        name: Qualified name of the project class, or the best-effort dotted
            name of an unresolved type
        target: The project class, None when unresolved
    """

    name: str
    target: Optional[TypeDecl] = None

    @property
    def resolved(self) -> bool:
        return self.target is not None


def _looks_like_type(segment: str) -> bool:
    return segment[:1].isupper() and not segment.isupper()


def _is_ignored(full: str) -> bool:
    return any(full == name or full.startswith(name + ".") for name in IGNORED_MODULES)


class SymbolIndex:
    """Read-only symbol table of every module and class in a scope.

    Usage:
        index = SymbolIndex(modules)
        ref = index.resolve(module, "Repository", scope=cls)
        if ref is not None and ref.resolved:
            ...
    """

    def __init__(self, modules: Iterable[ModuleDecl]) -> None:
        ordered = sorted(modules, key=lambda m: m.path)
        self._modules: dict[str, ModuleDecl] = {}
        self._packages: set[str] = set()
        self._classes: dict[str, TypeDecl] = {}

        for module in ordered:
            self._modules.setdefault(module.module_name, module)
            parts = module.module_name.split(".") if module.module_name else []
            for i in range(1, len(parts) + 1):
                self._packages.add(".".join(parts[:i]))
            for cls in module.all_classes():
                if cls.qualified_name in self._classes:
                    logger.debug(f"Duplicate class name {cls.qualified_name}; keeping the first")
                    continue
                self._classes[cls.qualified_name] = cls

        self._field_types: dict[tuple[str, str], Optional[Reference]] = {}
        self._field_lock = threading.Lock()
        self._base_names: dict[TypeDecl, list[str]] = {}
        self._bases: dict[TypeDecl, list[TypeDecl]] = {}
        self._subclasses: dict[TypeDecl, list[TypeDecl]] = {}
        self._ancestors: dict[TypeDecl, list[TypeDecl]] = {}
        self._dit: dict[TypeDecl, int] = {}
        self._enums: dict[TypeDecl, bool] = {}

        classes = self.classes()
        for cls in classes:
            self._link_bases(cls)
        for cls in classes:
            self._ancestors[cls] = self._linearize(cls)
        for cls in classes:
            self._inheritance_depth(cls, set())
            self._enum_flag(cls, set())

    # ── Lookup ──────────────────────────────────────────────────────

    @property
    def modules(self) -> list[ModuleDecl]:
        return [self._modules[name] for name in sorted(self._modules)]

    def classes(self) -> list[TypeDecl]:
        """All project classes, sorted by qualified name."""
        return [self._classes[name] for name in sorted(self._classes)]

    def lookup(self, qualified_name: str) -> Optional[TypeDecl]:
        return self._classes.get(qualified_name)

    def qualify(self, module: ModuleDecl, dotted: str, scope: Optional[TypeDecl] = None) -> tuple[str, str]:
        """Expand the first segment of ``dotted`` to an absolute name.

        Returns ``(full_name, binding)`` where binding is one of ``class``,
        ``import``, ``builtin``, ``typevar`` (type variables and local classes,
        never graph nodes) or ``unknown``.
        """
        head, _, rest = dotted.partition(".")
        suffix = f".{rest}" if rest else ""

        current = scope
        while current is not None:
            for nested in current.nested:
                if nested.name == head:
                    return nested.qualified_name + suffix, "class"
            if current.name == head:
                return current.qualified_name + suffix, "class"
            current = current.outer

        type_variables = scope.type_variables() if scope is not None else module.type_variables
        if head in type_variables:
            return dotted, "typevar"

        cls = module.class_named(head)
        if cls is not None:
            return cls.qualified_name + suffix, "class"
        if head in module.local_classes:
            return dotted, "typevar"

        target = module.imports.get(head)
        if target is not None:
            return target + suffix, "import"

        for star in module.star_imports:
            candidate = f"{star}.{head}" if star else head
            if candidate in self._classes:
                return candidate + suffix, "import"

        if head in _BUILTIN_NAMES:
            return f"builtins.{dotted}", "builtin"

        return dotted, "unknown"

    def resolve(self, module: ModuleDecl, dotted: str, scope: Optional[TypeDecl] = None) -> Optional[Reference]:
        """Resolve a dotted reference to a project class or an unresolved type.

        Returns None for references that are not types: type variables,
        builtins, excluded modules, project functions and lower-case names.
        The longest dotted prefix naming a project class wins, so
        ``Config.DEFAULT`` resolves to ``Config``.
        """
        if not dotted:
            return None
        full, binding = self.qualify(module, dotted, scope)
        if binding == "typevar":
            return None

        found = self._find_class(full, 0)
        if found is not None:
            return Reference(found.qualified_name, found)

        if binding == "builtin" or _is_ignored(full):
            return None
        if self._is_project_path(full):
            return None

        parts = full.split(".")
        for i, segment in enumerate(parts):
            if _looks_like_type(segment):
                return Reference(".".join(parts[: i + 1]))
        return None

    def resolve_exact(self, module: ModuleDecl, dotted: str, scope: Optional[TypeDecl] = None) -> Optional[TypeDecl]:
        """The project class named by the whole of ``dotted``, if any."""
        full, binding = self.qualify(module, dotted, scope)
        if binding == "typevar":
            return None
        found = self._find_class(full, 0)
        if found is not None and full.rsplit(".", 1)[-1] == found.name:
            return found
        return None

    def _find_class(self, full: str, depth: int) -> Optional[TypeDecl]:
        parts = full.split(".")
        for i in range(len(parts), 0, -1):
            cls = self._classes.get(".".join(parts[:i]))
            if cls is not None:
                return cls

        if depth >= _MAX_REEXPORT_DEPTH:
            return None

        # Names re-exported by a project module, e.g. ``from .impl import Cls`` in __init__
        for i in range(len(parts) - 1, 0, -1):
            module = self._modules.get(".".join(parts[:i]))
            if module is None:
                continue
            target = module.imports.get(parts[i])
            if target is None:
                return None
            rest = parts[i + 1 :]
            expanded = ".".join([target] + rest)
            if expanded == full:
                return None
            return self._find_class(expanded, depth + 1)
        return None

    def _is_project_path(self, full: str) -> bool:
        parts = full.split(".")
        return any(".".join(parts[:i]) in self._packages for i in range(1, len(parts) + 1))

    # ── Annotations ─────────────────────────────────────────────────

    def principal_type(
        self, module: ModuleDecl, node: Optional[Node], scope: Optional[TypeDecl] = None
    ) -> Optional[Reference]:
        """The class an annotation mainly denotes.

        ``Optional[X]``, ``X | None``, ``Annotated[X, ...]`` and ``"X"`` all
        denote X. Containers denote themselves (``list[X]`` is a list).
        """
        if node is None:
            return None
        kind = node.type
        if kind in ("type", "parenthesized_expression"):
            children = named_children(node)
            return self.principal_type(module, children[0], scope) if len(children) == 1 else None
        if kind == "string":
            return self._principal_from_text(module, string_literal_value(node), scope)
        if kind in ("identifier", "attribute", "member_type"):
            name = dotted_name(node)
            return self.resolve(module, name, scope) if name else None
        if kind in ("binary_operator", "union_type"):
            for side in named_children(node):
                found = self.principal_type(module, side, scope)
                if found is not None:
                    return found
            return None
        if kind in ("subscript", "generic_type"):
            if kind == "subscript":
                head = node.child_by_field_name("value")
                arguments = node.children_by_field_name("subscript")
            else:
                children = named_children(node)
                head = children[0] if children else None
                arguments = []
                for child in children[1:]:
                    if child.type == "type_parameter":
                        arguments.extend(named_children(child))
            name = dotted_name(head) or ""
            if name.rsplit(".", 1)[-1] in _WRAPPER_TYPES:
                for argument in arguments:
                    found = self.principal_type(module, argument, scope)
                    if found is not None:
                        return found
                return None
            return self.principal_type(module, head, scope)
        return None

    def _principal_from_text(
        self, module: ModuleDecl, text: Optional[str], scope: Optional[TypeDecl]
    ) -> Optional[Reference]:
        if not text:
            return None
        for part in text.split("|"):
            match = _ANNOTATION_TEXT_RE.match(part)
            if match is None or match.group(1) == "None":
                continue
            return self.resolve(module, match.group(1), scope)
        return None

    def field_type(self, cls: TypeDecl, name: str) -> Optional[Reference]:
        """Declared or inferred type of attribute ``name`` (inherited ones included)."""
        key = (cls.qualified_name, name)
        with self._field_lock:
            if key in self._field_types:
                return self._field_types[key]
        result = self._infer_field_type(cls, name)
        with self._field_lock:
            return self._field_types.setdefault(key, result)

    def _infer_field_type(self, cls: TypeDecl, name: str) -> Optional[Reference]:
        for owner in [cls] + self.ancestors(cls):
            field_decl = owner.fields.get(name)
            if field_decl is None:
                method = owner.method(name)
                if method is not None and method.is_property:
                    return self.principal_type(owner.module, method.return_annotation, owner)
                continue
            if field_decl.annotation is not None:
                return self.principal_type(owner.module, field_decl.annotation, owner)
            value = field_decl.value
            if value is None:
                return None
            if value.type == "call":
                callee = dotted_name(value.child_by_field_name("function"))
                return self.resolve(owner.module, callee, owner) if callee else None
            if value.type == "identifier":
                init = owner.method("__init__")
                if init is not None:
                    for parameter in init.parameters:
                        if parameter.name == node_text(value) and parameter.annotation is not None:
                            return self.principal_type(owner.module, parameter.annotation, owner)
            return None
        return None

    # ── Inheritance ─────────────────────────────────────────────────

    def _base_expression_name(self, node: Node) -> Optional[str]:
        if node.type == "subscript":
            node = node.child_by_field_name("value")
        elif node.type == "generic_type":
            children = named_children(node)
            node = children[0] if children else None
        return dotted_name(node)

    def _link_bases(self, cls: TypeDecl) -> None:
        names: list[str] = []
        bases: list[TypeDecl] = []
        for expression in cls.bases:
            dotted = self._base_expression_name(expression)
            if dotted is None:
                continue
            full, binding = self.qualify(cls.module, dotted, cls.outer)
            if binding == "typevar":
                continue
            found = self._find_class(full, 0)
            if found is not None and found is not cls:
                bases.append(found)
                names.append(found.qualified_name)
            else:
                names.append(full)
        self._base_names[cls] = names
        self._bases[cls] = bases
        for base in bases:
            children = self._subclasses.setdefault(base, [])
            if cls not in children:
                children.append(cls)

    def _linearize(self, cls: TypeDecl) -> list[TypeDecl]:
        result: list[TypeDecl] = []
        seen = {cls}
        queue = list(self._bases.get(cls, []))
        while queue:
            base = queue.pop(0)
            if base in seen:
                continue
            seen.add(base)
            result.append(base)
            queue.extend(self._bases.get(base, []))
        return result

    def _inheritance_depth(self, cls: TypeDecl, visiting: set) -> int:
        if cls in self._dit:
            return self._dit[cls]
        if cls in visiting:
            # Cycle cut
            return 0
        visiting.add(cls)

        depths = []
        resolved = {base.qualified_name: base for base in self._bases.get(cls, [])}
        for name in self._base_names.get(cls, []):
            base = resolved.get(name)
            if base is not None:
                depths.append(self._inheritance_depth(base, visiting))
            elif name.startswith("builtins."):
                builtin = getattr(builtins, name[len("builtins.") :], None)
                depths.append(len(builtin.__mro__) - 1 if isinstance(builtin, type) else 1)
            elif _is_ignored(name):
                depths.append(0)
            else:
                depths.append(1)

        visiting.discard(cls)
        depth = 1 + max(depths, default=0)
        self._dit[cls] = depth
        return depth

    def _enum_flag(self, cls: TypeDecl, visiting: set) -> bool:
        if cls in self._enums:
            return self._enums[cls]
        if cls in visiting:
            return False
        visiting.add(cls)
        result = any(name in ENUM_BASES for name in self._base_names.get(cls, []))
        if not result:
            result = any(self._enum_flag(base, visiting) for base in self._bases.get(cls, []))
        visiting.discard(cls)
        self._enums[cls] = result
        return result

    def base_names(self, cls: TypeDecl) -> list[str]:
        """Qualified names of the direct bases, resolved or not."""
        return list(self._base_names.get(cls, []))

    def bases(self, cls: TypeDecl) -> list[TypeDecl]:
        """Direct bases that are project classes."""
        return list(self._bases.get(cls, []))

    def ancestors(self, cls: TypeDecl) -> list[TypeDecl]:
        """Project ancestors, nearest first, each once."""
        return list(self._ancestors.get(cls, []))

    def subclasses(self, cls: TypeDecl) -> list[TypeDecl]:
        """Project classes listing ``cls`` as a direct base."""
        return sorted(self._subclasses.get(cls, []), key=lambda c: c.qualified_name)

    def descendants(self, cls: TypeDecl) -> list[TypeDecl]:
        """All project classes inheriting from ``cls``, directly or not."""
        result: list[TypeDecl] = []
        seen = {cls}
        stack = list(self._subclasses.get(cls, []))
        while stack:
            child = stack.pop()
            if child in seen:
                continue
            seen.add(child)
            result.append(child)
            stack.extend(self._subclasses.get(child, []))
        return sorted(result, key=lambda c: c.qualified_name)

    def inheritance_depth(self, cls: TypeDecl) -> int:
        return self._dit.get(cls) or self._inheritance_depth(cls, set())

    def find_method(self, cls: TypeDecl, name: str) -> Optional[tuple[TypeDecl, FunctionDecl]]:
        """The nearest declaration of method ``name`` in ``cls`` or its ancestors."""
        for owner in [cls] + self.ancestors(cls):
            method = owner.method(name)
            if method is not None:
                return owner, method
        return None

    def overrides(self, cls: TypeDecl, method: FunctionDecl) -> bool:
        """True when a project ancestor also declares ``method.name``."""
        return any(ancestor.method(method.name) is not None for ancestor in self.ancestors(cls))

    # ── Kinds ───────────────────────────────────────────────────────

    def is_interface(self, cls: TypeDecl) -> bool:
        return any(name in PROTOCOL_BASES or name == "Protocol" for name in self._base_names.get(cls, []))

    def is_enum(self, cls: TypeDecl) -> bool:
        return self._enums.get(cls, False)

    def is_abstract(self, cls: TypeDecl) -> bool:
        if self.is_interface(cls):
            return False
        if any(name in ABSTRACT_BASES for name in self._base_names.get(cls, [])):
            return True
        metaclass = cls.keywords.get("metaclass")
        if metaclass is not None:
            name = dotted_name(metaclass)
            if name is not None:
                full, _ = self.qualify(cls.module, name, cls.outer)
                if full in ABSTRACT_METACLASSES:
                    return True
        return any(method.is_abstract for method in cls.methods)

    def is_concrete(self, cls: TypeDecl) -> bool:
        return not (self.is_interface(cls) or self.is_abstract(cls) or self.is_enum(cls))
