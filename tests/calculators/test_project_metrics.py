"""Tests for calculators/project.py and calculators/statistics.py."""

import math

import pytest

from metrics_tree.calculators import Statistics
from metrics_tree.calculators.project import hiding_factor, ratio_or_zero
from metrics_tree.metrics import MetricType, Value

HIDING = """
class A:
    def __init__(self):
        self.x = 1
        self._y = 2
        self.__z = 3

    def run(self):
        pass

    def _helper(self):
        pass

    def __secret(self):
        pass


class B(A):
    def run(self):
        pass
"""

CHAIN = """
class A:
    pass


class B:
    def f(self, a: A):
        return a


class C:
    def g(self, b: B):
        return b
"""


class TestMood:
    """Test the MOOD factors on small hand-counted projects."""

    def test_hiding_factors(self, build_model):
        """One private method of five; one private attribute of three."""
        project, _, _ = build_model({"mod.py": HIDING})
        assert project.value(MetricType.MHF) == pytest.approx(0.2)
        assert project.value(MetricType.AHF) == pytest.approx(1 / 3)

    def test_inheritance_factors(self, build_model):
        """B inherits __init__ and _helper, and x and _y."""
        project, _, _ = build_model({"mod.py": HIDING})
        assert project.value(MetricType.MIF) == pytest.approx(2 / 7)
        assert project.value(MetricType.AIF) == pytest.approx(0.4)

    def test_polymorphism_factor(self, build_model):
        """One override out of four new methods times one descendant."""
        project, _, _ = build_model({"mod.py": HIDING})
        assert project.value(MetricType.PF) == pytest.approx(0.25)

    def test_inheritance_is_not_coupling(self, build_model):
        project, _, _ = build_model({"mod.py": HIDING})
        assert project.value(MetricType.CF) == 0.0

    def test_coupling_factor(self, build_model):
        project, _, _ = build_model({"mod.py": CHAIN})
        assert project.value(MetricType.CF) == pytest.approx(2 / 3)

    def test_no_override_potential(self, build_model):
        project, _, _ = build_model({"mod.py": CHAIN})
        assert project.value(MetricType.PF) == 1.0
        assert project.value(MetricType.MHF) == 0.0

    def test_helpers(self):
        assert hiding_factor(0, 0, 5) == 0.0
        assert hiding_factor(4, 4, 1) == 0.0
        assert hiding_factor(2, 2, 3) == 0.5
        assert ratio_or_zero(1, 0) == 0.0
        assert ratio_or_zero(1, 4) == 0.25


class TestProjectSums:
    """Test statistics and Halstead sums at project scope."""

    def test_statistics(self, build_model):
        project, _, _ = build_model({"mod.py": HIDING})
        assert project.value(MetricType.PNOCC) == 2
        assert project.value(MetricType.PNOAC) == 0
        assert project.value(MetricType.PNOI) == 0

    def test_halstead_sums_over_packages(self, build_model):
        files = {"a/__init__.py": "", "a/x.py": "class X:\n    pass\n", "b/__init__.py": "", "b/y.py": CHAIN}
        project, _, _ = build_model(files)
        expected = Value.sum(p.value(MetricType.PAHVL) for p in project.packages() if p.metrics)
        assert project.value(MetricType.PRHVL) == expected

    def test_maintainability(self, build_model):
        project, _, _ = build_model({"mod.py": HIDING})
        volume = float(project.value(MetricType.PRHVL))
        complexity = sum(float(m.value(MetricType.CC)) for m in project.methods())
        lines = float(project.value(MetricType.PLOC))
        expected = (171 - 5.2 * math.log(volume) - 0.23 * math.log(complexity) - 16.2 * math.log(lines)) * 100 / 171
        assert float(project.value(MetricType.PRMI)) == pytest.approx(max(0.0, expected))


class TestQmood:
    """Test the QMOOD quality attributes."""

    def test_single_class_has_undefined_design_properties(self, build_model):
        """A one-class population has zero variance."""
        project, _, _ = build_model({"mod.py": "class Only:\n    def f(self):\n        pass\n"})
        assert project.value(MetricType.Reusability).is_undefined
        assert project.value(MetricType.Effectiveness).is_undefined

    def test_attributes_are_computed_for_every_quality(self, build_model):
        project, _, _ = build_model({"mod.py": HIDING})
        for metric_type in (
            MetricType.Reusability,
            MetricType.Flexibility,
            MetricType.Understandability,
            MetricType.Functionality,
            MetricType.Extendibility,
            MetricType.Effectiveness,
        ):
            assert project.has_metric(metric_type)


class TestStatistics:
    """Test Statistics.max_z_score and Statistics.inverse."""

    def test_max_z_score(self):
        values = [Value.of(1), Value.of(2), Value.of(3)]
        assert float(Statistics.max_z_score(values)) == pytest.approx(1 / math.sqrt(2 / 3))

    def test_empty_population(self):
        assert Statistics.max_z_score([]) == 0.0

    def test_zero_variance(self):
        assert Statistics.max_z_score([Value.of(2), Value.of(2)]).is_undefined

    def test_undefined_member(self):
        assert Statistics.max_z_score([Value.of(1), Value.UNDEFINED]).is_undefined

    def test_inverse(self):
        assert Statistics.inverse(Value.of(4)) == 0.25
        assert Statistics.inverse(Value.of(0)) == 0.0
        assert Statistics.inverse(Value.UNDEFINED).is_undefined
