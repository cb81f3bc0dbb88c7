"""Tests for pipeline/watcher.py - change filtering and scope invalidation."""

from watchfiles import Change

from metrics_tree.config import MetricsConfig
from metrics_tree.pipeline import ScopeWatcher, SourceFilter
from metrics_tree.scanning import AnalysisScope


class FakeOrchestrator:
    def __init__(self):
        self.config = MetricsConfig(debounce_ms=250)
        self.invalidated = []

    def invalidate(self, key):
        self.invalidated.append(key)


class TestSourceFilter:
    """Test which paths trigger an invalidation."""

    def test_python_files_pass(self):
        source_filter = SourceFilter()
        assert source_filter(Change.modified, "/project/pkg/mod.py")
        assert source_filter(Change.added, "/project/new.py")

    def test_other_extensions_are_ignored(self):
        source_filter = SourceFilter()
        assert not source_filter(Change.modified, "/project/README.md")
        assert not source_filter(Change.modified, "/project/mod.pyc")

    def test_noise_directories_are_ignored(self):
        source_filter = SourceFilter()
        assert not source_filter(Change.modified, "/project/.git/hooks/pre-commit.py")
        assert not source_filter(Change.modified, "/project/__pycache__/mod.py")
        assert not source_filter(Change.modified, "/project/venv/lib/site.py")
        assert not source_filter(Change.modified, "/project/demo.egg-info/top.py")

    def test_custom_extensions(self):
        source_filter = SourceFilter((".py", ".pyi"))
        assert source_filter(Change.modified, "/project/stubs.pyi")


class TestScopeWatcher:
    """Test change batches without starting the watch thread."""

    def test_debounce_defaults_to_config(self, tmp_path):
        watcher = ScopeWatcher(AnalysisScope(tmp_path), FakeOrchestrator())
        assert watcher.debounce_ms == 250
        assert not watcher.running

    def test_relevant_change_invalidates_scope(self, tmp_path):
        orchestrator = FakeOrchestrator()
        notified = []
        scope = AnalysisScope(tmp_path, key="project")
        watcher = ScopeWatcher(scope, orchestrator, on_invalidate=notified.append)
        changed = watcher.handle_changes(
            {
                (Change.modified, str(tmp_path / "b.py")),
                (Change.added, str(tmp_path / "a.py")),
                (Change.modified, str(tmp_path / "notes.txt")),
            }
        )
        assert changed == [str(tmp_path / "a.py"), str(tmp_path / "b.py")]
        assert orchestrator.invalidated == ["project"]
        assert notified == [changed]

    def test_irrelevant_changes_do_nothing(self, tmp_path):
        orchestrator = FakeOrchestrator()
        watcher = ScopeWatcher(AnalysisScope(tmp_path), orchestrator)
        assert watcher.handle_changes({(Change.modified, str(tmp_path / "notes.txt"))}) == []
        assert orchestrator.invalidated == []

    def test_deleted_file_invalidates(self, tmp_path):
        orchestrator = FakeOrchestrator()
        watcher = ScopeWatcher(AnalysisScope(tmp_path), orchestrator, debounce_ms=10)
        watcher.handle_changes({(Change.deleted, str(tmp_path / "gone.py"))})
        assert orchestrator.invalidated == [str(tmp_path.resolve())]
