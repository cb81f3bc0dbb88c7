"""Tests for pipeline/orchestrator.py - staged, cached, single-flight builds."""

import threading

import pytest

from metrics_tree.config import MetricsConfig
from metrics_tree.exceptions import BuildCancelledError, BuildIncompleteError
from metrics_tree.metrics import MetricType
from metrics_tree.pipeline import CancellationToken, PipelineOrchestrator, Stage, StageState
from metrics_tree.scanning import AnalysisScope

FILES = {
    "shop/__init__.py": "",
    "shop/cart.py": """
        class Cart:
            def __init__(self):
                self.items = []

            def add(self, item):
                self.items.append(item)
    """,
}


@pytest.fixture
def scope(make_project):
    return AnalysisScope(make_project(FILES))


@pytest.fixture
def orchestrator():
    orchestrator = PipelineOrchestrator(MetricsConfig())
    yield orchestrator
    orchestrator.shutdown()


@pytest.fixture
def gated_load(orchestrator, monkeypatch):
    """Hold source loading until ``release`` is set."""
    started = threading.Event()
    release = threading.Event()
    original = orchestrator.provider.load

    def load(scope, token=None):
        started.set()
        release.wait(5)
        return original(scope, token)

    monkeypatch.setattr(orchestrator.provider, "load", load)
    yield started, release
    release.set()


class TestStages:
    """Test get-or-build access to each stage."""

    def test_project_model_builds_every_stage(self, orchestrator, scope):
        project = orchestrator.get_project_model(scope)
        assert project.class_named("shop.cart.Cart") is not None
        assert project.has_metric(MetricType.MHF)
        assert project.package_named("shop").has_metric(MetricType.I)
        assert orchestrator.state(scope) is StageState.PROJECT_MODEL_BUILT
        assert orchestrator.build_counts(scope) == {stage: 1 for stage in Stage}

    def test_state_follows_requested_stage(self, orchestrator, scope):
        assert orchestrator.state(scope) is StageState.EMPTY
        orchestrator.get_dependencies(scope)
        assert orchestrator.state(scope) is StageState.DEPENDENCIES_BUILT
        orchestrator.get_class_model(scope)
        assert orchestrator.state(scope) is StageState.CLASS_METHOD_MODEL_BUILT

    def test_class_model_has_no_package_metrics_yet(self, orchestrator, scope):
        project = orchestrator.get_class_model(scope)
        assert project.package_named("shop").metrics == []
        assert orchestrator.build_count(scope, Stage.PACKAGE_MODEL) == 0

    def test_later_stages_leave_published_models_untouched(self, orchestrator, scope):
        """Package and project metrics land on new trees, never on the class model."""
        class_model = orchestrator.get_class_model(scope)
        class_metrics = [m.code for m in class_model.class_named("shop.cart.Cart").metrics]
        package_model = orchestrator.get_package_model(scope)
        project_model = orchestrator.get_project_model(scope)

        assert class_model is not package_model
        assert package_model is not project_model
        assert class_model.package_named("shop").metrics == []
        assert class_model.metrics == []
        assert [m.code for m in class_model.class_named("shop.cart.Cart").metrics] == class_metrics
        assert package_model.package_named("shop").has_metric(MetricType.I)
        assert package_model.metrics == []
        assert project_model.has_metric(MetricType.MHF)
        assert project_model.package_named("shop").has_metric(MetricType.I)

    def test_results_are_memoized(self, orchestrator, scope):
        first = orchestrator.get_project_model(scope)
        second = orchestrator.get_project_model(scope)
        assert first is second
        assert orchestrator.build_count(scope, Stage.DEPENDENCIES) == 1
        assert orchestrator.build_count(scope, Stage.PROJECT_MODEL) == 1

    def test_sources_and_graph(self, orchestrator, scope):
        sources = orchestrator.get_sources(scope)
        graph = orchestrator.get_dependencies(scope)
        assert [m.module_name for m in sources.modules] == ["shop", "shop.cart"]
        assert graph.classes() == ["shop.cart.Cart"]

    def test_scopes_are_independent(self, orchestrator, make_project, tmp_path):
        first = AnalysisScope(make_project(FILES), key="first")
        second = AnalysisScope(tmp_path, key="second")
        orchestrator.get_project_model(first)
        orchestrator.invalidate("second")
        assert orchestrator.state("first") is StageState.PROJECT_MODEL_BUILT
        orchestrator.get_dependencies(second)
        assert orchestrator.build_count("second", Stage.DEPENDENCIES) == 1


class TestInvalidation:
    """Test invalidation and rebuilding."""

    def test_invalidate_resets_to_empty(self, orchestrator, scope):
        orchestrator.get_project_model(scope)
        orchestrator.invalidate(scope)
        assert orchestrator.state(scope) is StageState.EMPTY

    def test_invalidate_rebuilds_full_chain(self, orchestrator, scope, make_project):
        before = orchestrator.get_project_model(scope)
        make_project({"shop/order.py": "class Order:\n    pass\n"})
        orchestrator.invalidate(scope)
        after = orchestrator.get_project_model(scope)
        assert after is not before
        assert after.class_named("shop.order.Order") is not None
        assert orchestrator.build_counts(scope) == {stage: 2 for stage in Stage}

    def test_invalidate_during_build_discards_result(self, orchestrator, scope, gated_load):
        started, release = gated_load
        future = orchestrator.submit(scope, Stage.DEPENDENCIES)
        assert started.wait(5)
        orchestrator.invalidate(scope)
        release.set()
        with pytest.raises(BuildCancelledError):
            future.result(timeout=5)
        assert orchestrator.state(scope) is StageState.EMPTY


class TestSingleFlight:
    """Test that concurrent requests share one build."""

    def test_concurrent_requests_share_a_future(self, orchestrator, scope, gated_load):
        started, release = gated_load
        first = orchestrator.submit(scope, Stage.PROJECT_MODEL)
        second = orchestrator.submit(scope, Stage.PROJECT_MODEL)
        assert first is second
        assert started.wait(5)
        release.set()
        assert first.result(timeout=10).project is not None
        assert orchestrator.build_count(scope, Stage.DEPENDENCIES) == 1

    def test_concurrent_threads(self, orchestrator, scope, gated_load):
        started, release = gated_load
        results = []

        def request():
            results.append(orchestrator.get_project_model(scope))

        threads = [threading.Thread(target=request) for _ in range(4)]
        for thread in threads:
            thread.start()
        assert started.wait(5)
        release.set()
        for thread in threads:
            thread.join(timeout=10)
        assert len(results) == 4
        assert all(result is results[0] for result in results)
        assert orchestrator.build_count(scope, Stage.PROJECT_MODEL) == 1


class TestCancellation:
    """Test cancel, failures and timeouts."""

    def test_cancel_in_flight_build(self, orchestrator, scope, gated_load):
        started, release = gated_load
        future = orchestrator.submit(scope, Stage.PROJECT_MODEL)
        assert started.wait(5)
        orchestrator.cancel(scope)
        release.set()
        with pytest.raises(BuildCancelledError):
            future.result(timeout=5)
        assert orchestrator.state(scope) is StageState.EMPTY

    def test_request_after_cancel_starts_over(self, orchestrator, scope, gated_load):
        started, release = gated_load
        future = orchestrator.submit(scope, Stage.DEPENDENCIES)
        assert started.wait(5)
        orchestrator.cancel(scope)
        release.set()
        with pytest.raises(BuildCancelledError):
            future.result(timeout=5)
        graph = orchestrator.get_dependencies(scope)
        assert graph.classes() == ["shop.cart.Cart"]
        assert orchestrator.build_count(scope, Stage.DEPENDENCIES) == 2

    def test_failed_build_is_incomplete(self, orchestrator, scope, monkeypatch):
        def broken(scope, token=None):
            raise RuntimeError("disk on fire")

        monkeypatch.setattr(orchestrator.provider, "load", broken)
        with pytest.raises(BuildIncompleteError) as exc_info:
            orchestrator.get_project_model(scope)
        assert not isinstance(exc_info.value, BuildCancelledError)
        assert exc_info.value.reason == "disk on fire"
        assert orchestrator.state(scope) is StageState.EMPTY

    def test_timeout(self, orchestrator, scope, gated_load):
        started, release = gated_load
        with pytest.raises(BuildIncompleteError) as exc_info:
            orchestrator.get_dependencies(scope, timeout=0.05)
        assert "timed out" in exc_info.value.reason
        release.set()

    def test_stage_without_upstream_is_incomplete(self, orchestrator, scope):
        with pytest.raises(BuildIncompleteError) as exc_info:
            orchestrator._build(scope, Stage.PACKAGE_MODEL, None, CancellationToken())
        assert exc_info.value.stage == Stage.PACKAGE_MODEL.value
        assert exc_info.value.reason.startswith("no ")

    def test_stage_without_class_model_is_incomplete(self, orchestrator, scope):
        graph_only = orchestrator.submit(scope, Stage.DEPENDENCIES).result(timeout=10)
        with pytest.raises(BuildIncompleteError) as exc_info:
            orchestrator._build(scope, Stage.PROJECT_MODEL, graph_only, CancellationToken())
        assert exc_info.value.reason == "no class model"
