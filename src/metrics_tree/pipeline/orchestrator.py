"""Staged, cached and single-flight metric builds.

Each (scope, stage, generation) is built at most once at a time. A stage
task first waits on the future of its predecessor, so the stage order forms
an explicit chain of futures:

    DEPENDENCIES -> CLASS_METHOD_MODEL -> PACKAGE_MODEL -> PROJECT_MODEL

Predecessors are always submitted before their successors, so a FIFO
executor never has a worker waiting on a task queued behind it.
"""

from __future__ import annotations

import logging
import threading
from collections import Counter
from concurrent.futures import CancelledError, Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass
from typing import Any, Optional, Union

from ..calculators import PackageMetricsCalculator, ProjectMetricsCalculator
from ..config import MetricsConfig
from ..exceptions import BuildCancelledError, BuildIncompleteError
from ..graph import DependenciesBuilder, DependencyGraph
from ..model import ModelAssembler, ProjectElement
from ..scanning import AnalysisScope, SourceProvider, SourceSet
from .cache import MetricsCache, Stage, StageState
from .cancellation import CancellationToken

logger = logging.getLogger(__name__)

ScopeOrKey = Union[AnalysisScope, str]


@dataclass(frozen=True)
class StageResult:
    """What a stage publishes. Model stages publish their own copy of the element tree."""

    sources: SourceSet
    graph: DependencyGraph
    project: Optional[ProjectElement] = None


def _key(scope: ScopeOrKey) -> str:
    return scope.key if isinstance(scope, AnalysisScope) else scope


class PipelineOrchestrator:
    """Get-or-build access to the stages of any number of scopes.

    Usage:
        with PipelineOrchestrator(config) as orchestrator:
            project = orchestrator.get_project_model(AnalysisScope("src"))
    """

    def __init__(
        self,
        config: Optional[MetricsConfig] = None,
        cache: Optional[MetricsCache] = None,
        executor: Optional[ThreadPoolExecutor] = None,
    ) -> None:
        self.config = config or MetricsConfig()
        self.cache = cache if cache is not None else MetricsCache()
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(max_workers=4, thread_name_prefix="metrics-pipeline")
        self._provider = SourceProvider(self.config)

        self._lock = threading.RLock()
        self._inflight: dict[tuple[str, Stage, int], Future] = {}
        self._tokens: dict[tuple[str, int], CancellationToken] = {}
        self._build_counts: Counter = Counter()

    # ── Blocking accessors ──────────────────────────────────────────

    def get_dependencies(self, scope: AnalysisScope, timeout: Optional[float] = None) -> DependencyGraph:
        return self._await(scope, Stage.DEPENDENCIES, timeout).graph

    def get_class_model(self, scope: AnalysisScope, timeout: Optional[float] = None) -> ProjectElement:
        return self._await(scope, Stage.CLASS_METHOD_MODEL, timeout).project

    def get_package_model(self, scope: AnalysisScope, timeout: Optional[float] = None) -> ProjectElement:
        return self._await(scope, Stage.PACKAGE_MODEL, timeout).project

    def get_project_model(self, scope: AnalysisScope, timeout: Optional[float] = None) -> ProjectElement:
        return self._await(scope, Stage.PROJECT_MODEL, timeout).project

    def get_sources(self, scope: AnalysisScope, timeout: Optional[float] = None) -> SourceSet:
        return self._await(scope, Stage.DEPENDENCIES, timeout).sources

    def _await(self, scope: AnalysisScope, stage: Stage, timeout: Optional[float]) -> StageResult:
        if timeout is None and self.config.build_timeout_seconds > 0:
            timeout = self.config.build_timeout_seconds
        future = self.submit(scope, stage)
        try:
            return future.result(timeout=timeout)
        except FutureTimeoutError:
            raise BuildIncompleteError(scope.key, stage.value, f"timed out after {timeout}s") from None
        except CancelledError:
            raise BuildCancelledError(scope.key, stage.value) from None

    # ── Scheduling ──────────────────────────────────────────────────

    def submit(self, scope: AnalysisScope, stage: Stage) -> Future:
        """Future of ``stage`` for ``scope``, shared by concurrent requesters."""
        key = scope.key
        with self._lock:
            generation = self.cache.generation(key)
            cached = generation.results.get(stage)
            if cached is not None:
                done: Future = Future()
                done.set_result(cached)
                return done

            flight = (key, stage, generation.number)
            inflight = self._inflight.get(flight)
            if inflight is not None:
                return inflight

            predecessor = self.submit(scope, stage.previous) if stage.previous is not None else None
            token = self._token(key, generation.number)
            future = self._executor.submit(self._run_stage, scope, stage, generation.number, predecessor, token)
            self._inflight[flight] = future
        future.add_done_callback(lambda _: self._forget(flight, future))
        return future

    def _token(self, key: str, number: int) -> CancellationToken:
        token = self._tokens.get((key, number))
        if token is None:
            token = CancellationToken()
            self._tokens[(key, number)] = token
        return token

    def _forget(self, flight: tuple[str, Stage, int], future: Future) -> None:
        with self._lock:
            if self._inflight.get(flight) is future:
                del self._inflight[flight]

    def _run_stage(
        self,
        scope: AnalysisScope,
        stage: Stage,
        number: int,
        predecessor: Optional[Future],
        token: CancellationToken,
    ) -> StageResult:
        key = scope.key
        try:
            upstream = predecessor.result() if predecessor is not None else None
            token.check()
            with self._lock:
                self._build_counts[(key, stage)] += 1
            logger.info(f"Building {stage.label} for {key} (generation {number})")
            result = self._build(scope, stage, upstream, token)
            token.check()
        except BuildIncompleteError:
            raise
        except CancelledError as e:
            logger.info(f"Build of {stage.label} for {key} cancelled")
            raise BuildCancelledError(key, stage.value, str(e) or None) from e
        except Exception as e:
            logger.exception(f"Build of {stage.label} for {key} failed")
            raise BuildIncompleteError(key, stage.value, str(e)) from e

        if not self.cache.publish(key, number, stage, result):
            raise BuildCancelledError(key, stage.value, "scope invalidated during build")
        logger.info(f"Built {stage.label} for {key}")
        return result

    def _build(
        self,
        scope: AnalysisScope,
        stage: Stage,
        upstream: Optional[StageResult],
        token: CancellationToken,
    ) -> StageResult:
        config = self.config
        if stage is Stage.DEPENDENCIES:
            sources = self._provider.load(scope, token)
            graph = DependenciesBuilder(config).build(sources, token)
            return StageResult(sources, graph)

        if upstream is None:
            raise BuildIncompleteError(scope.key, stage.value, f"no {stage.previous.label} result")
        if stage is Stage.CLASS_METHOD_MODEL:
            project = ModelAssembler(config, name=scope.root.name).assemble(upstream.sources, upstream.graph, token)
            return StageResult(upstream.sources, upstream.graph, project)

        if upstream.project is None:
            raise BuildIncompleteError(scope.key, stage.value, "no class model")
        # The upstream tree is already published; metrics go on a copy
        project = upstream.project.copy()
        if stage is Stage.PACKAGE_MODEL:
            PackageMetricsCalculator(upstream.graph, project, config).calculate(token)
        else:
            ProjectMetricsCalculator(upstream.sources.index, upstream.graph, project, config).calculate(token)
        return StageResult(upstream.sources, upstream.graph, project)

    # ── Control ─────────────────────────────────────────────────────

    def cancel(self, scope: ScopeOrKey) -> None:
        """Abort every in-flight build of the current generation of ``scope``.

        Nothing of the cancelled builds is published; the next request starts
        over with a fresh cancellation token.
        """
        key = _key(scope)
        with self._lock:
            number = self.cache.generation(key).number
            token = self._tokens.pop((key, number), None)
            for flight in [f for f in self._inflight if f[0] == key]:
                del self._inflight[flight]
        if token is not None:
            token.cancel(f"build of {key} cancelled")
            logger.info(f"Cancelled builds of {key}")

    def invalidate(self, scope: ScopeOrKey) -> None:
        """Reset ``scope`` to EMPTY; the next request rebuilds the whole chain."""
        key = _key(scope)
        with self._lock:
            stale = [k for k in self._tokens if k[0] == key]
            tokens = [self._tokens.pop(k) for k in stale]
            for flight in [f for f in self._inflight if f[0] == key]:
                del self._inflight[flight]
            number = self.cache.invalidate(key)
        for token in tokens:
            token.cancel(f"{key} invalidated")
        logger.info(f"Invalidated {key} (generation {number})")

    def state(self, scope: ScopeOrKey) -> StageState:
        return self.cache.state(_key(scope))

    def build_count(self, scope: ScopeOrKey, stage: Stage) -> int:
        """How many times ``stage`` has been built for ``scope``."""
        with self._lock:
            return self._build_counts[(_key(scope), stage)]

    def build_counts(self, scope: ScopeOrKey) -> dict[Stage, int]:
        key = _key(scope)
        with self._lock:
            return {stage: self._build_counts[(key, stage)] for stage in Stage}

    @property
    def provider(self) -> SourceProvider:
        return self._provider

    def shutdown(self, wait: bool = True) -> None:
        with self._lock:
            tokens = list(self._tokens.values())
            self._tokens.clear()
        for token in tokens:
            token.cancel("orchestrator shut down")
        if self._owns_executor:
            self._executor.shutdown(wait=wait)

    def __enter__(self) -> "PipelineOrchestrator":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.shutdown()
