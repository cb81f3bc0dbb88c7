"""Tests for method-level metrics: complexity, nesting, Halstead, MMI."""

import math

import pytest

from metrics_tree.config import MetricsConfig
from metrics_tree.metrics import MetricType
from metrics_tree.visitors.halstead import measures

ROUTER = """
class Router:
    def route(self, request, strict):
        if request.method == "GET" and strict:
            return self.get(request)
        elif request.method == "POST":
            for handler in self.handlers:
                if handler.accepts(request):
                    return handler
        else:
            while False:
                pass
        return None
"""


@pytest.fixture
def method_of(class_model):
    """``method_of(code, "Cls.meth")`` -> the MethodElement."""

    def _method(code, dotted):
        class_name, method_name = dotted.split(".")
        element = class_model(code)[class_name]
        return next(m for m in element.methods if m.name == method_name)

    return _method


class TestComplexity:
    """Test McCabe complexity and the nesting depths."""

    def test_cyclomatic_complexity(self, method_of):
        """if, and, elif, for, nested if and while each add a path."""
        route = method_of(ROUTER, "Router.route")
        assert route.value(MetricType.CC) == 7

    def test_trivial_method_has_complexity_one(self, method_of):
        method = method_of("class A:\n    def f(self):\n        return 1\n", "A.f")
        assert method.value(MetricType.CC) == 1
        assert method.value(MetricType.CCM) == 0

    def test_loops_and_nesting(self, method_of):
        route = method_of(ROUTER, "Router.route")
        assert route.value(MetricType.NOL) == 2
        assert route.value(MetricType.CND) == 2
        assert route.value(MetricType.LND) == 1
        assert route.value(MetricType.MND) == 3

    def test_parameters_exclude_receiver(self, method_of):
        route = method_of(ROUTER, "Router.route")
        assert route.value(MetricType.NOPM) == 2

    def test_static_method_parameters(self, method_of):
        code = """
            class Util:
                @staticmethod
                def join(a, b, *rest):
                    return a
        """
        assert method_of(code, "Util.join").value(MetricType.NOPM) == 3

    def test_lines_skip_blank_and_comment_lines(self, method_of):
        code = """
            class A:
                def f(self):
                    # leading comment
                    x = 1

                    return x
        """
        assert method_of(code, "A.f").value(MetricType.LOC) == 3


class TestCognitiveComplexity:
    """Test nesting-weighted cognitive complexity."""

    def test_nesting_increments(self, method_of):
        """for (+1), nested if (+2) and one boolean sequence (+1)."""
        code = """
            class Checker:
                def check(self, items):
                    for item in items:
                        if item and self.ok:
                            return True
                    return False
        """
        assert method_of(code, "Checker.check").value(MetricType.CCM) == 4

    def test_mixed_boolean_operators(self, method_of):
        """Each change of operator in a sequence costs one more."""
        code = """
            class Checker:
                def check(self, a, b, c):
                    return a and b or c
        """
        assert method_of(code, "Checker.check").value(MetricType.CCM) == 2

    def test_recursion(self, method_of):
        code = """
            class Tree:
                def walk(self, node):
                    return self.walk(node.child)
        """
        assert method_of(code, "Tree.walk").value(MetricType.CCM) == 1


class TestHalstead:
    """Test the Halstead suite of a method."""

    def test_minimal_method(self, method_of):
        """``def f(self): return 1``: operators def/return, operands self/1."""
        method = method_of("class A:\n    def f(self): return 1\n", "A.f")
        assert method.value(MetricType.HL) == 4
        assert method.value(MetricType.HVC) == 4
        assert method.value(MetricType.HVL) == 8.0
        assert method.value(MetricType.HD) == 1.0
        assert method.value(MetricType.HEF) == 8.0
        assert float(method.value(MetricType.HER)) == pytest.approx(4 / 3000)

    def test_measures_without_operands(self):
        """No operands: difficulty falls back to zero."""
        result = measures(1, 0, 1, 0)
        assert result.volume == 0.0
        assert result.difficulty == 0.0
        assert result.effort == 0.0

    def test_measures(self):
        result = measures(n1=4, n2=4, big_n1=8, big_n2=8)
        assert result.length == 16
        assert result.vocabulary == 8
        assert result.volume == pytest.approx(48.0)
        assert result.difficulty == pytest.approx(4.0)
        assert result.effort == pytest.approx(192.0)


class TestMethodMaintainability:
    """Test the per-method maintainability index."""

    def test_formula(self, method_of):
        method = method_of("class A:\n    def f(self): return 1\n", "A.f")
        expected = (171 - 5.2 * math.log(8.0)) * 100 / 171
        assert float(method.value(MetricType.MMI)) == pytest.approx(expected)

    def test_disabled_input_gives_undefined(self, class_model):
        classes = class_model("class A:\n    def f(self): return 1\n", MetricsConfig(disabled_metrics=["HVL"]))
        method = classes["A"].methods[0]
        assert not method.has_metric(MetricType.HVL)
        assert method.value(MetricType.MMI).is_undefined
