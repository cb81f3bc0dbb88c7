"""Normalizer: converts tree-sitter Python parse trees to ModuleDecl.

Only declarations are extracted here (classes, methods, fields, imports).
Metric visitors walk the retained syntax nodes themselves.
"""

from __future__ import annotations

import logging
from typing import Any, Iterator, Optional

from .nodes import (
    block_statements,
    decorator_name,
    dotted_name,
    named_children,
    node_text,
    unwrap_definition,
    walk,
)
from .syntax import FieldDecl, FunctionDecl, ModuleDecl, ParameterDecl, TypeDecl
from .treesitter_parser import TreeSitterParser

logger = logging.getLogger(__name__)

Node = Any

_TYPE_VARIABLE_FACTORIES = frozenset({"TypeVar", "ParamSpec", "TypeVarTuple"})

_IGNORED_CLASS_ATTRIBUTES = frozenset({"__slots__", "__all__", "__doc__", "__match_args__"})

# Blocks at module level whose statements still bind module names
_MODULE_LEVEL_BLOCKS = frozenset(
    {
        "if_statement",
        "elif_clause",
        "else_clause",
        "try_statement",
        "except_clause",
        "finally_clause",
        "with_statement",
        "block",
    }
)


class TreeSitterNormalizer:
    """Converts tree-sitter parse trees to ModuleDecl.

    Usage:
        normalizer = TreeSitterNormalizer()
        module = normalizer.parse_module(source, "pkg/mod.py", "pkg.mod", "pkg")
    """

    def __init__(self, parser: TreeSitterParser | None = None) -> None:
        self._parser = parser or TreeSitterParser()

    def parse_module(self, source: bytes, path: str, module_name: str, package: str) -> ModuleDecl:
        """Parse source bytes and extract declarations."""
        tree = self._parser.parse(source)
        if tree.root_node.has_error:
            logger.debug(f"Syntax errors in {path}; using the valid declarations only")
        return self.normalize(tree, source, path, module_name, package)

    def normalize(self, tree: Any, source: bytes, path: str, module_name: str, package: str) -> ModuleDecl:
        module = ModuleDecl(
            path=path,
            module_name=module_name,
            package=package,
            source=source,
            tree=tree,
        )

        for statement in _module_statements(tree.root_node):
            kind = statement.type
            if kind == "import_statement":
                self._add_import(module, statement)
            elif kind == "import_from_statement":
                self._add_from_import(module, statement)
            elif kind in ("class_definition", "function_definition", "decorated_definition"):
                definition, decorators = unwrap_definition(statement)
                if definition is None:
                    continue
                if definition.type == "class_definition":
                    module.classes.append(self._build_class(definition, decorators, module, None))
                elif definition.type == "function_definition":
                    module.functions.append(_build_function(definition, decorators, is_method=False))
            elif kind == "expression_statement":
                self._add_type_variables(module, statement)

        module.local_classes = _local_class_names(tree.root_node)
        return module

    # ── Imports ─────────────────────────────────────────────────────

    def _add_import(self, module: ModuleDecl, statement: Node) -> None:
        for child in named_children(statement):
            if child.type == "dotted_name":
                target = node_text(child)
                head = target.split(".", 1)[0]
                module.imports.setdefault(head, head)
            elif child.type == "aliased_import":
                target = node_text(child.child_by_field_name("name"))
                alias = node_text(child.child_by_field_name("alias"))
                if target and alias:
                    module.imports.setdefault(alias, target)

    def _add_from_import(self, module: ModuleDecl, statement: Node) -> None:
        source = _import_source(module, statement.child_by_field_name("module_name"))
        if source is None:
            return

        if any(child.type == "wildcard_import" for child in statement.children):
            module.star_imports.append(source)
            return

        for child in statement.children_by_field_name("name"):
            if child.type == "aliased_import":
                name = node_text(child.child_by_field_name("name"))
                alias = node_text(child.child_by_field_name("alias"))
            else:
                name = node_text(child)
                alias = name.rsplit(".", 1)[-1]
            if name and alias:
                target = f"{source}.{name}" if source else name
                module.imports.setdefault(alias, target)

    def _add_type_variables(self, module: ModuleDecl, statement: Node) -> None:
        for child in named_children(statement):
            if child.type != "assignment":
                continue
            right = child.child_by_field_name("right")
            left = child.child_by_field_name("left")
            if right is None or left is None or right.type != "call" or left.type != "identifier":
                continue
            factory = dotted_name(right.child_by_field_name("function")) or ""
            if factory.rsplit(".", 1)[-1] in _TYPE_VARIABLE_FACTORIES:
                module.type_variables.add(node_text(left))

    # ── Classes ─────────────────────────────────────────────────────

    def _build_class(
        self,
        node: Node,
        decorators: list[Node],
        module: ModuleDecl,
        outer: Optional[TypeDecl],
    ) -> TypeDecl:
        name = node_text(node.child_by_field_name("name"))
        prefix = outer.qualified_name if outer is not None else module.module_name
        qualified = f"{prefix}.{name}" if prefix else name

        cls = TypeDecl(
            name=name,
            qualified_name=qualified,
            module=module,
            node=node,
            outer=outer,
            decorators=[decorator_name(d) for d in decorators],
            type_parameters=_type_parameter_names(node.child_by_field_name("type_parameters")),
        )

        superclasses = node.child_by_field_name("superclasses")
        if superclasses is not None:
            for argument in named_children(superclasses):
                if argument.type == "keyword_argument":
                    key = node_text(argument.child_by_field_name("name"))
                    value = argument.child_by_field_name("value")
                    if key and value is not None:
                        cls.keywords[key] = value
                elif argument.type not in ("list_splat", "dictionary_splat"):
                    cls.bases.append(argument)

        for statement in block_statements(cls.body):
            definition, decos = unwrap_definition(statement)
            if definition is None:
                continue
            if definition.type == "class_definition":
                cls.nested.append(self._build_class(definition, decos, module, cls))
            elif definition.type == "function_definition":
                cls.methods.append(_build_function(definition, decos, is_method=True))
            elif definition.type == "expression_statement":
                for assignment in named_children(definition):
                    _collect_class_fields(cls, assignment)

        for method in cls.methods:
            _collect_instance_fields(cls, method)

        return cls


# ── Module helpers ──────────────────────────────────────────────────


def _module_statements(root: Node) -> Iterator[Node]:
    """Module-level statements, looking through if/try/with blocks."""
    stack = list(reversed(named_children(root)))
    while stack:
        statement = stack.pop()
        if statement.type in _MODULE_LEVEL_BLOCKS:
            stack.extend(reversed(named_children(statement)))
            continue
        yield statement


def _import_source(module: ModuleDecl, node: Optional[Node]) -> Optional[str]:
    """Absolute dotted module of a ``from`` import, resolving relative imports."""
    if node is None:
        return None
    if node.type == "dotted_name":
        return node_text(node)
    if node.type != "relative_import":
        return None

    level = 0
    suffix = ""
    for child in node.children:
        if child.type == "import_prefix":
            level = node_text(child).count(".")
        elif child.type == "dotted_name":
            suffix = node_text(child)

    parts = module.package.split(".") if module.package else []
    if level - 1 > len(parts):
        return None
    base = parts[: len(parts) - (level - 1)] if level > 1 else parts
    return ".".join(base + ([suffix] if suffix else []))


def _type_parameter_names(node: Optional[Node]) -> set[str]:
    names: set[str] = set()
    if node is None:
        return names
    for parameter in named_children(node):
        for child in walk(parameter):
            if child.type == "identifier":
                names.add(node_text(child))
                break
    return names


# ── Functions ───────────────────────────────────────────────────────


def _build_function(node: Node, decorators: list[Node], is_method: bool) -> FunctionDecl:
    return FunctionDecl(
        name=node_text(node.child_by_field_name("name")),
        node=node,
        decorators=[decorator_name(d) for d in decorators],
        parameters=_parameters(node.child_by_field_name("parameters")),
        is_method=is_method,
        is_async=any(child.type == "async" for child in node.children),
    )


def _parameters(node: Optional[Node]) -> list[ParameterDecl]:
    result: list[ParameterDecl] = []
    if node is None:
        return result
    for child in named_children(node):
        kind = child.type
        if kind == "identifier":
            result.append(ParameterDecl(node_text(child)))
        elif kind in ("default_parameter", "typed_default_parameter"):
            result.append(
                ParameterDecl(
                    node_text(child.child_by_field_name("name")),
                    annotation=child.child_by_field_name("type"),
                )
            )
        elif kind == "typed_parameter":
            annotation = child.child_by_field_name("type")
            inner = next((c for c in named_children(child) if c != annotation), None)
            if inner is None:
                continue
            if inner.type == "list_splat_pattern":
                result.append(ParameterDecl(_splat_name(inner), "args", annotation))
            elif inner.type == "dictionary_splat_pattern":
                result.append(ParameterDecl(_splat_name(inner), "kwargs", annotation))
            else:
                result.append(ParameterDecl(node_text(inner), annotation=annotation))
        elif kind == "list_splat_pattern":
            result.append(ParameterDecl(_splat_name(child), "args"))
        elif kind == "dictionary_splat_pattern":
            result.append(ParameterDecl(_splat_name(child), "kwargs"))
    return result


def _splat_name(node: Node) -> str:
    children = named_children(node)
    return node_text(children[0]) if children else ""


# ── Fields ──────────────────────────────────────────────────────────


def _assignment_targets(left: Optional[Node]) -> Iterator[Node]:
    """Identifiers and attributes bound by an assignment target."""
    if left is None:
        return
    stack = [left]
    while stack:
        node = stack.pop()
        if node.type in ("identifier", "attribute"):
            yield node
        elif node.type in (
            "pattern_list",
            "tuple_pattern",
            "list_pattern",
            "expression_list",
            "tuple",
            "list",
            "parenthesized_expression",
            "list_splat_pattern",
        ):
            stack.extend(reversed(named_children(node)))


def _assignment_chain(node: Node) -> Iterator[tuple[Node, Optional[Node], Optional[Node]]]:
    """(left, annotation, value) for ``a = b = value`` chains."""
    while node is not None and node.type in ("assignment", "augmented_assignment"):
        right = node.child_by_field_name("right")
        value = right
        while value is not None and value.type == "assignment":
            value = value.child_by_field_name("right")
        yield node.child_by_field_name("left"), node.child_by_field_name("type"), value
        node = right


def _record_field(
    cls: TypeDecl,
    name: str,
    class_level: bool,
    annotation: Optional[Node],
    value: Optional[Node],
    line: int,
) -> None:
    existing = cls.fields.get(name)
    if existing is None:
        cls.fields[name] = FieldDecl(name, class_level, annotation, value, line)
        return
    if existing.annotation is None and annotation is not None:
        existing.annotation = annotation
    if existing.value is None and value is not None:
        existing.value = value


def _collect_class_fields(cls: TypeDecl, assignment: Node) -> None:
    for left, annotation, value in _assignment_chain(assignment):
        targets = list(_assignment_targets(left))
        single = len(targets) == 1
        for target in targets:
            if target.type != "identifier":
                continue
            name = node_text(target)
            if name in _IGNORED_CLASS_ATTRIBUTES:
                continue
            _record_field(
                cls,
                name,
                True,
                annotation if single else None,
                value if single else None,
                target.start_point[0] + 1,
            )


def _collect_instance_fields(cls: TypeDecl, method: FunctionDecl) -> None:
    receiver = method.receiver_name
    body = method.body
    if receiver is None or body is None:
        return
    class_level = method.is_classmethod

    for node in walk(body, skip=frozenset({"class_definition"})):
        if node.type not in ("assignment", "augmented_assignment"):
            continue
        left = node.child_by_field_name("left")
        targets = list(_assignment_targets(left))
        single = len(targets) == 1
        annotation = node.child_by_field_name("type")
        value = node.child_by_field_name("right")
        while value is not None and value.type == "assignment":
            value = value.child_by_field_name("right")
        for target in targets:
            if target.type != "attribute":
                continue
            obj = target.child_by_field_name("object")
            if obj is None or obj.type != "identifier" or node_text(obj) != receiver:
                continue
            name = node_text(target.child_by_field_name("attribute"))
            _record_field(
                cls,
                name,
                class_level,
                annotation if single else None,
                value if single else None,
                target.start_point[0] + 1,
            )


def _local_class_names(root: Node) -> set[str]:
    """Names of classes declared inside function bodies."""
    names: set[str] = set()
    stack = [(root, False)]
    while stack:
        node, in_function = stack.pop()
        if node.type == "class_definition" and in_function:
            names.add(node_text(node.child_by_field_name("name")))
        inside = in_function or node.type in ("function_definition", "lambda")
        stack.extend((child, inside) for child in node.named_children)
    return names
