"""AnalysisScope: the set of compilation units one computation pass covers."""

from __future__ import annotations

import fnmatch
import logging
from pathlib import Path, PurePosixPath
from typing import Iterable, Optional, Sequence

from ..exceptions import InvalidPathError

logger = logging.getLogger(__name__)

# Directories never part of a scope, whatever the exclude patterns say
SKIP_DIRS = frozenset(
    {
        ".git",
        ".hg",
        ".svn",
        "__pycache__",
        ".mypy_cache",
        ".pytest_cache",
        ".ruff_cache",
        ".tox",
        ".nox",
        ".venv",
        "venv",
        "env",
        ".eggs",
        "node_modules",
        "site-packages",
    }
)


def is_excluded(rel_path: str, exclude_patterns: Iterable[str]) -> bool:
    """Check a relative POSIX path against glob exclusion patterns."""
    pure = PurePosixPath(rel_path)
    for pattern in exclude_patterns:
        if pure.match(pattern) or fnmatch.fnmatch(rel_path, pattern):
            return True
    return False


class AnalysisScope:
    """An enumeration of the Python files to analyse under ``root``.

    The pipeline only iterates :meth:`files` and uses :attr:`key` to cache
    results; it never looks inside the scope otherwise.

    Args:
        root: Directory holding the sources
        files: Explicit relative paths; enumerated from ``root`` when None
        exclude_patterns: Glob patterns excluded from enumeration
        key: Cache key; defaults to the resolved root path
        tracked_extensions: File suffixes that belong to the scope
        follow_symlinks: Follow symbolic links during enumeration
    """

    def __init__(
        self,
        root: Path | str,
        files: Optional[Sequence[str]] = None,
        exclude_patterns: Sequence[str] = (),
        key: Optional[str] = None,
        tracked_extensions: Sequence[str] = (".py",),
        follow_symlinks: bool = False,
    ) -> None:
        self.root = Path(root).resolve()
        if not self.root.is_dir():
            raise InvalidPathError(self.root, "Not a directory")
        self._files = sorted(PurePosixPath(f).as_posix() for f in files) if files is not None else None
        self.exclude_patterns = tuple(exclude_patterns)
        self.key = key or str(self.root)
        self.tracked_extensions = tuple(tracked_extensions)
        self.follow_symlinks = follow_symlinks

    @classmethod
    def from_config(cls, root: Path | str, config, key: Optional[str] = None) -> "AnalysisScope":
        """Scope over ``root`` using the extensions and exclusions of ``config``."""
        return cls(
            root,
            exclude_patterns=config.exclude_patterns,
            key=key,
            tracked_extensions=config.tracked_extensions,
            follow_symlinks=config.follow_symlinks,
        )

    def __repr__(self) -> str:
        return f"AnalysisScope({self.key!r})"

    @property
    def source_root(self) -> Path:
        """``root/src`` for src-layout projects, otherwise ``root``."""
        src = self.root / "src"
        return src if src.is_dir() else self.root

    def tracks(self, path: Path | str) -> bool:
        """True when ``path`` has a tracked extension and lives outside skipped dirs."""
        path = Path(path)
        if path.suffix not in self.tracked_extensions:
            return False
        return not any(part in SKIP_DIRS for part in path.parts)

    def files(self) -> list[str]:
        """Relative POSIX paths of the compilation units, sorted."""
        if self._files is not None:
            return list(self._files)

        result = []
        for path in self._iter_paths(self.root):
            rel = path.relative_to(self.root).as_posix()
            if is_excluded(rel, self.exclude_patterns):
                logger.debug(f"Skipped (pattern): {rel}")
                continue
            result.append(rel)
        return sorted(result)

    def _iter_paths(self, directory: Path):
        stack = [directory]
        while stack:
            current = stack.pop()
            try:
                entries = sorted(current.iterdir())
            except OSError as e:
                logger.warning(f"Cannot list {current}: {e}")
                continue
            for entry in entries:
                if entry.is_symlink() and not self.follow_symlinks:
                    continue
                if entry.is_dir():
                    if entry.name in SKIP_DIRS or entry.name.startswith(".") or entry.name.endswith(".egg-info"):
                        continue
                    stack.append(entry)
                elif entry.is_file() and entry.suffix in self.tracked_extensions:
                    yield entry

    def module_name(self, rel_path: str) -> tuple[str, str]:
        """Dotted (module, package) names of a scope-relative path.

        ``pkg/__init__.py`` is module ``pkg`` of package ``pkg``; a module in
        the source root belongs to the default package ``""``.
        """
        path = self.root / rel_path
        base = self.source_root
        try:
            relative = path.relative_to(base)
        except ValueError:
            relative = path.relative_to(self.root)

        parts = list(relative.with_suffix("").parts)
        package_parts = parts[:-1]
        if parts and parts[-1] == "__init__":
            parts = parts[:-1]
        return ".".join(parts), ".".join(package_parts)
