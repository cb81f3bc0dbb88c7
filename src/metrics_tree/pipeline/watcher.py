"""Change notification: invalidates a scope when its source files change."""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Iterable, Optional

from watchfiles import Change, watch

from ..scanning.scope import SKIP_DIRS, AnalysisScope

if TYPE_CHECKING:
    from .orchestrator import PipelineOrchestrator

logger = logging.getLogger(__name__)

# Rust-side poll timeout, so the stop event is observed promptly
RUST_TIMEOUT_MS = 5000


class SourceFilter:
    """watchfiles filter: only tracked source files, ignoring common noise."""

    def __init__(self, extensions: Iterable[str] = (".py",)) -> None:
        self.extensions = frozenset(extensions)

    def __call__(self, change: Change, path: str) -> bool:
        p = Path(path)

        # Skip hidden directories and common noise
        for part in p.parts[:-1]:
            if part.startswith(".") or part in SKIP_DIRS or part.endswith(".egg-info"):
                return False

        return p.suffix in self.extensions


class ScopeWatcher:
    """Watches the root of a scope and calls ``orchestrator.invalidate(key)``.

    Runs on a daemon thread; added, modified and deleted files all reset the
    scope (a move shows up as a delete plus an add).

    Usage:
        watcher = ScopeWatcher(scope, orchestrator, on_invalidate=rebuild)
        watcher.start()
        ...
        watcher.stop()
    """

    def __init__(
        self,
        scope: AnalysisScope,
        orchestrator: "PipelineOrchestrator",
        debounce_ms: Optional[int] = None,
        on_invalidate: Optional[Callable[[list[str]], None]] = None,
    ) -> None:
        self.scope = scope
        self.orchestrator = orchestrator
        self.debounce_ms = debounce_ms if debounce_ms is not None else orchestrator.config.debounce_ms
        self.on_invalidate = on_invalidate
        self.filter = SourceFilter(scope.tracked_extensions)

        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the watcher thread."""
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._watch_loop,
            name="metrics-watcher",
            daemon=True,
        )
        self._thread.start()

    def stop(self) -> None:
        """Signal the watcher to stop."""
        logger.debug("Stopping watcher thread...")
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=5)
            if self._thread.is_alive():
                logger.warning("Watcher thread did not exit cleanly within 5 seconds")
            else:
                logger.debug("Watcher thread stopped")

    def handle_changes(self, changes: Iterable[tuple[Change, str]]) -> list[str]:
        """Invalidate the scope for a batch of filtered changes.

        Returns:
            The changed paths, empty when nothing relevant changed
        """
        changed = sorted({path for change, path in changes if self.filter(change, path)})
        if not changed:
            return []
        logger.info(f"Detected {len(changed)} changed file(s) under {self.scope.key}")
        self.orchestrator.invalidate(self.scope.key)
        if self.on_invalidate is not None:
            self.on_invalidate(changed)
        return changed

    def _watch_loop(self) -> None:
        """Background thread: watch files and invalidate on change."""
        logger.info(f"Watching {self.scope.root} for changes")
        for changes in watch(
            self.scope.root,
            stop_event=self._stop_event,
            debounce=self.debounce_ms,
            rust_timeout=RUST_TIMEOUT_MS,
            watch_filter=self.filter,
        ):
            if self._stop_event.is_set():
                break
            self.handle_changes(changes)
