"""Tests for pipeline/cache.py and pipeline/cancellation.py."""

from concurrent.futures import CancelledError

import pytest

from metrics_tree.pipeline import CancellationToken, Generation, MetricsCache, Stage, StageState


class TestStage:
    """Test stage ordering."""

    def test_previous(self):
        assert Stage.DEPENDENCIES.previous is None
        assert Stage.CLASS_METHOD_MODEL.previous is Stage.DEPENDENCIES
        assert Stage.PROJECT_MODEL.previous is Stage.PACKAGE_MODEL

    def test_label(self):
        assert Stage.CLASS_METHOD_MODEL.label == "class method model"


class TestGeneration:
    """Test immutable generations."""

    def test_with_result_returns_new_generation(self):
        empty = Generation(0)
        filled = empty.with_result(Stage.DEPENDENCIES, "deps")
        assert empty.results == {}
        assert filled.results[Stage.DEPENDENCIES] == "deps"
        assert filled.number == 0

    def test_results_are_read_only(self):
        generation = Generation(0).with_result(Stage.DEPENDENCIES, "deps")
        with pytest.raises(TypeError):
            generation.results[Stage.PROJECT_MODEL] = "project"

    def test_state_requires_every_earlier_stage(self):
        generation = Generation(0).with_result(Stage.DEPENDENCIES, "d").with_result(Stage.PACKAGE_MODEL, "p")
        assert generation.state is StageState.DEPENDENCIES_BUILT


class TestMetricsCache:
    """Test publishing and invalidation."""

    def test_publish_and_get(self):
        cache = MetricsCache()
        number = cache.generation("scope").number
        assert cache.publish("scope", number, Stage.DEPENDENCIES, "deps")
        assert cache.get("scope", Stage.DEPENDENCIES) == "deps"
        assert cache.state("scope") is StageState.DEPENDENCIES_BUILT

    def test_stale_publish_is_dropped(self):
        cache = MetricsCache()
        number = cache.generation("scope").number
        assert cache.invalidate("scope") == number + 1
        assert not cache.publish("scope", number, Stage.DEPENDENCIES, "stale")
        assert cache.get("scope", Stage.DEPENDENCIES) is None
        assert cache.state("scope") is StageState.EMPTY

    def test_invalidate_discards_results(self):
        cache = MetricsCache()
        cache.publish("scope", 0, Stage.DEPENDENCIES, "deps")
        cache.invalidate("scope")
        assert cache.get("scope", Stage.DEPENDENCIES) is None

    def test_keys_are_independent(self):
        cache = MetricsCache()
        cache.publish("a", 0, Stage.DEPENDENCIES, "deps")
        cache.invalidate("b")
        assert cache.get("a", Stage.DEPENDENCIES) == "deps"
        assert cache.keys() == ["a", "b"]
        cache.clear()
        assert cache.keys() == []


class TestCancellationToken:
    """Test the cooperative cancellation flag."""

    def test_check_raises_once_cancelled(self):
        token = CancellationToken()
        token.check()
        token.cancel("stop")
        assert token.cancelled
        with pytest.raises(CancelledError):
            token.check()

    def test_first_reason_wins(self):
        token = CancellationToken()
        token.cancel("first")
        token.cancel("second")
        assert token.reason == "first"
