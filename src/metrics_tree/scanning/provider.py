"""SourceProvider: reads and parses every compilation unit of a scope.

Usage:
    provider = SourceProvider(config)
    sources = provider.load(scope, token)
    for module in sources.modules:
        ...

Unreadable files are logged and skipped; the rest of the scope is still
analysed. Parsing runs on a thread pool once the scope holds at least
``config.parallel_threshold`` files.
"""

from __future__ import annotations

import logging
import os
from concurrent.futures import CancelledError, Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from threading import Lock
from typing import TYPE_CHECKING, Optional

from ..config import MetricsConfig
from ..exceptions import ParsingError, SourceAccessError
from .normalizer import TreeSitterNormalizer
from .scope import AnalysisScope
from .symbols import SymbolIndex
from .syntax import ModuleDecl

if TYPE_CHECKING:
    from ..pipeline.cancellation import CancellationToken

logger = logging.getLogger(__name__)

# Default worker count: use CPU count, capped at 8 to avoid overwhelming I/O
DEFAULT_WORKERS = min(os.cpu_count() or 4, 8)


@dataclass
class SourceSet:
    """Parsed declarations of one scope.

    Attributes:
        scope_key: Key of the scope the modules came from
        modules: Parsed modules sorted by path
        index: Symbol table over ``modules``
        skipped: Relative paths that could not be read
    """

    scope_key: str
    modules: list[ModuleDecl]
    index: SymbolIndex = field(repr=False)
    skipped: list[str] = field(default_factory=list)


class SourceProvider:
    """Produces ModuleDecl for all files of an AnalysisScope.

    Attributes:
        parsed_count: Number of files parsed since the last reset
        skipped_count: Number of files skipped since the last reset
    """

    def __init__(self, config: MetricsConfig, normalizer: TreeSitterNormalizer | None = None) -> None:
        self.config = config
        self._normalizer = normalizer or TreeSitterNormalizer()
        self._lock = Lock()  # Thread-safe counter updates
        self.parsed_count = 0
        self.skipped_count = 0

    def read(self, scope: AnalysisScope, rel_path: str) -> ModuleDecl:
        """Read and parse one compilation unit.

        Raises:
            SourceAccessError: If the file cannot be read or decoded
            ParsingError: If tree-sitter rejects the source
        """
        path = scope.root / rel_path
        try:
            source = path.read_bytes()
        except OSError as e:
            raise SourceAccessError(path, str(e)) from e
        try:
            source.decode("utf-8")
        except UnicodeDecodeError as e:
            raise SourceAccessError(path, f"not UTF-8: {e}") from e

        module_name, package = scope.module_name(rel_path)
        try:
            module = self._normalizer.parse_module(source, rel_path, module_name, package)
        except (ValueError, RuntimeError) as e:
            raise ParsingError(path, str(e)) from e
        with self._lock:
            self.parsed_count += 1
        return module

    def _read_or_skip(
        self, scope: AnalysisScope, rel_path: str, token: Optional["CancellationToken"]
    ) -> Optional[ModuleDecl]:
        if token is not None:
            token.check()
        try:
            return self.read(scope, rel_path)
        except (SourceAccessError, ParsingError) as e:
            with self._lock:
                self.skipped_count += 1
            logger.warning(f"Skipping {rel_path}: {e.reason}")
            return None

    def load(self, scope: AnalysisScope, token: Optional["CancellationToken"] = None) -> SourceSet:
        """Parse the whole scope.

        Raises:
            concurrent.futures.CancelledError: If ``token`` is cancelled
        """
        rel_paths = scope.files()
        modules: list[ModuleDecl] = []
        skipped: list[str] = []

        if len(rel_paths) < self.config.parallel_threshold:
            # Sequential for small batches (parallel overhead not worth it)
            for rel_path in rel_paths:
                module = self._read_or_skip(scope, rel_path, token)
                if module is None:
                    skipped.append(rel_path)
                else:
                    modules.append(module)
        else:
            workers = self.config.workers or DEFAULT_WORKERS
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="metrics-parse") as executor:
                futures: dict[Future, str] = {
                    executor.submit(self._read_or_skip, scope, rel_path, token): rel_path
                    for rel_path in rel_paths
                }
                try:
                    for future in as_completed(futures):
                        module = future.result()
                        if module is None:
                            skipped.append(futures[future])
                        else:
                            modules.append(module)
                except CancelledError:
                    for pending in futures:
                        pending.cancel()
                    raise

        modules.sort(key=lambda m: m.path)
        skipped.sort()
        logger.debug(f"Parsed {len(modules)} modules of {scope.key} ({len(skipped)} skipped)")
        return SourceSet(scope.key, modules, SymbolIndex(modules), skipped)

    def reset_stats(self) -> None:
        self.parsed_count = 0
        self.skipped_count = 0
