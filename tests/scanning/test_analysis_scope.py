"""Tests for scanning/scope.py and scanning/provider.py - enumeration and loading."""

import pytest

from metrics_tree.config import MetricsConfig
from metrics_tree.exceptions import InvalidPathError
from metrics_tree.scanning import AnalysisScope, SourceProvider


class TestAnalysisScope:
    """Test file enumeration and module naming."""

    def test_enumerates_sorted_python_files(self, make_project):
        root = make_project(
            {
                "b.py": "x = 1\n",
                "pkg/__init__.py": "",
                "pkg/a.py": "y = 2\n",
                "README.md": "# readme\n",
                "stubs.pyi": "z: int\n",
            }
        )
        assert AnalysisScope(root).files() == ["b.py", "pkg/__init__.py", "pkg/a.py"]

    def test_skips_noise_directories(self, make_project):
        root = make_project(
            {
                "app.py": "",
                ".venv/lib/site.py": "",
                "__pycache__/app.py": "",
                "node_modules/x.py": "",
                "demo.egg-info/x.py": "",
            }
        )
        assert AnalysisScope(root).files() == ["app.py"]

    def test_exclude_patterns(self, make_project):
        root = make_project({"app.py": "", "tests/test_app.py": ""})
        scope = AnalysisScope(root, exclude_patterns=["tests/*"])
        assert scope.files() == ["app.py"]

    def test_explicit_files(self, make_project):
        root = make_project({"a.py": "", "b.py": ""})
        assert AnalysisScope(root, files=["b.py"]).files() == ["b.py"]

    def test_key_defaults_to_resolved_root(self, make_project):
        root = make_project({"a.py": ""})
        assert AnalysisScope(root).key == str(root.resolve())
        assert AnalysisScope(root, key="custom").key == "custom"

    def test_missing_root(self, tmp_path):
        with pytest.raises(InvalidPathError):
            AnalysisScope(tmp_path / "missing")

    def test_module_names(self, make_project):
        """``pkg/__init__.py`` is module ``pkg`` in package ``pkg``."""
        root = make_project({"pkg/__init__.py": "", "pkg/sub/mod.py": "", "top.py": ""})
        scope = AnalysisScope(root)
        assert scope.module_name("pkg/__init__.py") == ("pkg", "pkg")
        assert scope.module_name("pkg/sub/mod.py") == ("pkg.sub.mod", "pkg.sub")
        assert scope.module_name("top.py") == ("top", "")

    def test_src_layout(self, make_project):
        """Module names are relative to ``src`` when the project uses that layout."""
        root = make_project({"src/lib/core.py": ""})
        assert AnalysisScope(root).module_name("src/lib/core.py") == ("lib.core", "lib")

    def test_tracks(self, make_project):
        scope = AnalysisScope(make_project({"a.py": ""}))
        assert scope.tracks("pkg/a.py")
        assert not scope.tracks("pkg/a.txt")
        assert not scope.tracks("__pycache__/a.py")


class TestSourceProvider:
    """Test parsing a scope into declarations."""

    def test_load(self, load_sources):
        sources = load_sources({"shop/cart.py": "class Cart:\n    pass\n", "shop/__init__.py": ""})
        assert [m.module_name for m in sources.modules] == ["shop", "shop.cart"]
        assert sources.index.lookup("shop.cart.Cart") is not None

    def test_unreadable_file_is_skipped(self, load_sources):
        """A file that cannot be decoded is skipped; the rest of the scope loads."""
        sources = load_sources({"good.py": "class Good:\n    pass\n", "bad.py": b"\xff\xfe\x00\x81 class"})
        assert [m.path for m in sources.modules] == ["good.py"]
        assert sources.skipped == ["bad.py"]

    def test_counters(self, make_project):
        root = make_project({"a.py": "", "b.py": b"\xff\xfe"})
        provider = SourceProvider(MetricsConfig())
        provider.load(AnalysisScope(root))
        assert provider.parsed_count == 1
        assert provider.skipped_count == 1

    def test_parallel_load_matches_sequential(self, load_sources):
        """Parsing in a thread pool yields the same ordered modules."""
        files = {f"m{i:02d}.py": f"class C{i}:\n    pass\n" for i in range(12)}
        sequential = load_sources(files, MetricsConfig(parallel_threshold=100))
        parallel = load_sources(files, MetricsConfig(parallel_threshold=2, workers=4))
        assert [m.path for m in sequential.modules] == [m.path for m in parallel.modules]
        assert [c.qualified_name for c in parallel.index.classes()] == [f"m{i:02d}.C{i}" for i in range(12)]
