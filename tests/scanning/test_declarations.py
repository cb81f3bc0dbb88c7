"""Tests for scanning/normalizer.py - declarations extracted from Python sources."""

from metrics_tree.scanning.syntax import visibility_of

SAMPLE = '''
"""Sample module."""

from typing import TypeVar

T = TypeVar("T")


class Account:
    """A bank account."""

    currency = "EUR"
    limit: int = 100
    owner: str

    def __init__(self, owner, balance: float = 0.0):
        self.owner = owner
        self._balance = balance
        self.__pin = None

    @property
    def balance(self) -> float:
        return self._balance

    @staticmethod
    def validate(amount, *args, **kwargs):
        return amount > 0

    @classmethod
    def empty(cls):
        cls.instances = 0
        return cls("nobody")

    async def sync(self, *, force=False):
        self._balance += 0

    class Ledger:
        entries = []

    def report(self):
        class Local:
            pass

        return Local()


def helper():
    pass
'''


class TestClasses:
    """Test class and nested class extraction."""

    def test_module_level_classes(self, parse_module):
        """Module-level classes are recorded in source order."""
        module = parse_module(SAMPLE)
        assert [cls.name for cls in module.classes] == ["Account"]

    def test_nested_classes(self, parse_module):
        """Classes in a class body are nested with qualified names."""
        module = parse_module(SAMPLE)
        account = module.classes[0]
        assert [n.qualified_name for n in account.nested] == ["mod.Account.Ledger"]
        assert account.nested[0].outer is account
        assert account.nested[0].is_nested

    def test_all_classes_depth_first(self, parse_module):
        module = parse_module(SAMPLE)
        assert [c.qualified_name for c in module.all_classes()] == ["mod.Account", "mod.Account.Ledger"]

    def test_local_classes_are_not_declarations(self, parse_module):
        """Classes inside function bodies are only remembered by name."""
        module = parse_module(SAMPLE)
        assert "Local" in module.local_classes
        assert all(c.name != "Local" for c in module.all_classes())

    def test_module_functions(self, parse_module):
        module = parse_module(SAMPLE)
        assert [f.name for f in module.functions] == ["helper"]

    def test_type_variables(self, parse_module):
        """Names bound to TypeVar(...) are type variables."""
        module = parse_module(SAMPLE)
        assert module.type_variables == {"T"}

    def test_pep695_type_parameters(self, parse_module):
        module = parse_module("class Box[T]:\n    item: T\n")
        assert module.classes[0].type_parameters == {"T"}

    def test_classes_under_module_level_if(self, parse_module):
        """Classes declared under if/try at module level still count."""
        module = parse_module(
            """
            import sys

            if sys.version_info >= (3, 8):
                class Modern:
                    pass
            else:
                class Legacy:
                    pass
            """
        )
        assert [c.name for c in module.classes] == ["Modern", "Legacy"]


class TestMethods:
    """Test method extraction and classification."""

    def test_methods_in_order(self, parse_module):
        account = parse_module(SAMPLE).classes[0]
        assert [m.name for m in account.methods] == [
            "__init__",
            "balance",
            "validate",
            "empty",
            "sync",
            "report",
        ]

    def test_constructor(self, parse_module):
        account = parse_module(SAMPLE).classes[0]
        assert account.method("__init__").is_constructor
        assert not account.method("report").is_constructor

    def test_static_and_class_methods(self, parse_module):
        """@staticmethod and @classmethod are static."""
        account = parse_module(SAMPLE).classes[0]
        assert account.method("validate").is_staticmethod
        assert account.method("empty").is_classmethod
        assert account.method("empty").is_static
        assert not account.method("report").is_static

    def test_property(self, parse_module):
        account = parse_module(SAMPLE).classes[0]
        assert account.method("balance").is_property

    def test_async(self, parse_module):
        account = parse_module(SAMPLE).classes[0]
        assert account.method("sync").is_async

    def test_parameters(self, parse_module):
        """Receivers are dropped from bound parameters; splats are kept."""
        account = parse_module(SAMPLE).classes[0]
        init = account.method("__init__")
        assert init.receiver_name == "self"
        assert [p.name for p in init.bound_parameters] == ["owner", "balance"]

        validate = account.method("validate")
        assert validate.receiver_name is None
        assert [(p.name, p.kind) for p in validate.parameters] == [
            ("amount", "plain"),
            ("args", "args"),
            ("kwargs", "kwargs"),
        ]

        sync = account.method("sync")
        assert [p.name for p in sync.bound_parameters] == ["force"]

    def test_abstract_method(self, parse_module):
        module = parse_module(
            """
            from abc import ABC, abstractmethod

            class Base(ABC):
                @abstractmethod
                def run(self):
                    ...
            """
        )
        assert module.classes[0].method("run").is_abstract


class TestFields:
    """Test class-level and instance attribute extraction."""

    def test_class_level_fields(self, parse_module):
        account = parse_module(SAMPLE).classes[0]
        assert account.fields["currency"].class_level
        assert account.fields["limit"].annotation is not None

    def test_annotation_only_field(self, parse_module):
        """``owner: str`` declares a field without a value."""
        account = parse_module(SAMPLE).classes[0]
        owner = account.fields["owner"]
        assert owner.class_level
        assert owner.annotation is not None

    def test_instance_fields(self, parse_module):
        """Attributes assigned through self are fields, each recorded once."""
        account = parse_module(SAMPLE).classes[0]
        assert list(account.fields) == ["currency", "limit", "owner", "_balance", "__pin", "instances"]
        assert not account.fields["_balance"].class_level

    def test_classmethod_assignments_are_class_level(self, parse_module):
        account = parse_module(SAMPLE).classes[0]
        assert account.fields["instances"].class_level

    def test_nested_class_fields_stay_nested(self, parse_module):
        account = parse_module(SAMPLE).classes[0]
        assert "entries" not in account.fields
        assert "entries" in account.nested[0].fields

    def test_tuple_assignment(self, parse_module):
        module = parse_module(
            """
            class Point:
                def __init__(self, x, y):
                    self.x, self.y = x, y
            """
        )
        assert list(module.classes[0].fields) == ["x", "y"]


class TestVisibility:
    """Test Python naming conventions for visibility."""

    def test_public(self):
        assert visibility_of("name") == "public"

    def test_dunder_is_public(self):
        assert visibility_of("__init__") == "public"

    def test_protected(self):
        assert visibility_of("_name") == "protected"

    def test_private(self):
        assert visibility_of("__name") == "private"


class TestImports:
    """Test import bindings."""

    def test_plain_and_aliased_imports(self, parse_module):
        module = parse_module("import os.path\nimport numpy as np\n")
        assert module.imports == {"os": "os", "np": "numpy"}

    def test_from_imports(self, parse_module):
        module = parse_module("from a.b import C, D as E\n")
        assert module.imports == {"C": "a.b.C", "E": "a.b.D"}

    def test_relative_imports(self, parse_module):
        """Relative imports resolve against the module's package."""
        module = parse_module(
            "from .models import User\nfrom ..core import Base\n",
            path="app/api/views.py",
            module_name="app.api.views",
            package="app.api",
        )
        assert module.imports["User"] == "app.api.models.User"
        assert module.imports["Base"] == "app.core.Base"

    def test_star_import(self, parse_module):
        module = parse_module("from shapes import *\n")
        assert module.star_imports == ["shapes"]


class TestErrorTolerance:
    """Test parsing of broken sources."""

    def test_valid_declarations_survive_syntax_errors(self, parse_module):
        module = parse_module(
            """
            class Good:
                def ok(self):
                    return 1

            def broken(:
                pass
            """
        )
        assert "Good" in [c.name for c in module.classes]
