"""Shared test fixtures: sample projects written to tmp_path and built models."""

import textwrap

import pytest

from metrics_tree.calculators import PackageMetricsCalculator, ProjectMetricsCalculator
from metrics_tree.config import MetricsConfig
from metrics_tree.graph import DependenciesBuilder
from metrics_tree.model import ModelAssembler
from metrics_tree.scanning import AnalysisScope, SourceProvider, TreeSitterNormalizer
from metrics_tree.scanning.symbols import SymbolIndex


def pytest_addoption(parser):
    """Add --run-slow option for slow tests."""
    parser.addoption(
        "--run-slow",
        action="store_true",
        default=False,
        help="run slow tests",
    )


def pytest_configure(config):
    """Configure slow marker."""
    config.addinivalue_line("markers", "slow: mark test as slow to run")


def pytest_collection_modifyitems(config, items):
    """Skip slow tests unless --run-slow is given."""
    if config.getoption("--run-slow"):
        return
    skip_slow = pytest.mark.skip(reason="need --run-slow option to run")
    for item in items:
        if "slow" in item.keywords:
            item.add_marker(skip_slow)


@pytest.fixture
def make_project(tmp_path):
    """Write ``{relative_path: source}`` under tmp_path and return the root."""

    def _make(files):
        for rel_path, text in files.items():
            path = tmp_path / rel_path
            path.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(text, bytes):
                path.write_bytes(text)
            else:
                path.write_text(textwrap.dedent(text), encoding="utf-8")
        return tmp_path

    return _make


@pytest.fixture
def parse_module():
    """Parse one source string into a ModuleDecl."""
    normalizer = TreeSitterNormalizer()

    def _parse(code, path="mod.py", module_name="mod", package=""):
        source = textwrap.dedent(code).encode("utf-8")
        return normalizer.parse_module(source, path, module_name, package)

    return _parse


@pytest.fixture
def index_of(parse_module):
    """SymbolIndex over ``{module_name: source}``; packages follow the dots."""

    def _index(modules):
        decls = []
        for module_name, code in modules.items():
            package = module_name.rsplit(".", 1)[0] if "." in module_name else ""
            path = module_name.replace(".", "/") + ".py"
            decls.append(parse_module(code, path, module_name, package))
        return SymbolIndex(decls)

    return _index


@pytest.fixture
def load_sources(make_project):
    """Parse a sample project into a SourceSet."""

    def _load(files, config=None):
        config = config or MetricsConfig()
        root = make_project(files)
        return SourceProvider(config).load(AnalysisScope.from_config(root, config))

    return _load


@pytest.fixture
def build_model(load_sources):
    """Run every stage over a sample project and return ``(project, graph, sources)``."""

    def _build(files, config=None, stages=("class", "package", "project")):
        config = config or MetricsConfig()
        sources = load_sources(files, config)
        graph = DependenciesBuilder(config).build(sources)
        project = ModelAssembler(config).assemble(sources, graph)
        if "package" in stages:
            PackageMetricsCalculator(graph, project, config).calculate()
        if "project" in stages:
            ProjectMetricsCalculator(sources.index, graph, project, config).calculate()
        return project, graph, sources

    return _build


@pytest.fixture
def class_model(build_model):
    """Class/method model of a single-module project; returns ``{simple name: ClassElement}``."""

    def _classes(code, config=None):
        project, _, _ = build_model({"mod.py": code}, config, stages=("class",))
        return {element.name: element for element in project.classes()}

    return _classes
