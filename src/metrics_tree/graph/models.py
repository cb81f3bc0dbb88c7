"""Class-level dependency graph.

Nodes are project classes keyed by qualified name. Edges are directed:
``dependencies[A]`` contains B means a reference to B appears in A's body.
Each edge is recorded in both directions, and a class-to-package edge is
added whenever the two classes live in different packages. References that
do not resolve to a project class are kept per class by best-effort name.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Iterable

DEFAULT_PACKAGE = ""


@dataclass
class DependencyGraph:
    """Bidirectional class/package dependency graph.

    Population is thread-safe: every mutation runs under one lock with
    create-if-absent semantics. Call :meth:`freeze` once the build is done;
    afterwards the graph is read-only.
    """

    class_dependencies: dict[str, set[str]] = field(default_factory=dict)
    class_dependents: dict[str, set[str]] = field(default_factory=dict)
    package_dependencies: dict[str, set[str]] = field(default_factory=dict)
    package_dependents: dict[str, set[str]] = field(default_factory=dict)
    unresolved: dict[str, set[str]] = field(default_factory=dict)
    class_packages: dict[str, str] = field(default_factory=dict)

    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)
    _frozen: bool = field(default=False, repr=False, compare=False)

    # ── Population ──────────────────────────────────────────────────

    def _check_mutable(self) -> None:
        if self._frozen:
            raise RuntimeError("DependencyGraph is read-only once published")

    def add_class(self, qualified_name: str, package: str) -> None:
        """Register a node, so classes without edges still appear."""
        with self._lock:
            self._check_mutable()
            self.class_packages.setdefault(qualified_name, package)

    def add_dependency(self, source: str, source_package: str, target: str, target_package: str) -> bool:
        """Record ``source`` depends on ``target``. Self-edges are ignored.

        Returns:
            True when an edge was recorded
        """
        if source == target:
            return False
        with self._lock:
            self._check_mutable()
            self.class_packages.setdefault(source, source_package)
            self.class_packages.setdefault(target, target_package)
            self.class_dependencies.setdefault(source, set()).add(target)
            self.class_dependents.setdefault(target, set()).add(source)
            if source_package != target_package:
                self.package_dependencies.setdefault(source, set()).add(target_package)
                self.package_dependents.setdefault(target, set()).add(source_package)
        return True

    def add_unresolved(self, source: str, source_package: str, name: str) -> None:
        """Record a reference from ``source`` that matched no project class."""
        with self._lock:
            self._check_mutable()
            self.class_packages.setdefault(source, source_package)
            self.unresolved.setdefault(source, set()).add(name)

    def freeze(self) -> "DependencyGraph":
        with self._lock:
            self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    # ── Queries ─────────────────────────────────────────────────────

    def classes(self) -> list[str]:
        return sorted(self.class_packages)

    def packages(self) -> list[str]:
        return sorted(set(self.class_packages.values()))

    def package_of(self, qualified_name: str) -> str | None:
        return self.class_packages.get(qualified_name)

    def dependencies(self, qualified_name: str) -> frozenset[str]:
        """Classes ``qualified_name`` depends on."""
        return frozenset(self.class_dependencies.get(qualified_name, ()))

    def dependents(self, qualified_name: str) -> frozenset[str]:
        """Classes depending on ``qualified_name``."""
        return frozenset(self.class_dependents.get(qualified_name, ()))

    def depended_packages(self, qualified_name: str) -> frozenset[str]:
        """Other packages ``qualified_name`` depends on."""
        return frozenset(self.package_dependencies.get(qualified_name, ()))

    def depending_packages(self, qualified_name: str) -> frozenset[str]:
        """Other packages whose classes depend on ``qualified_name``."""
        return frozenset(self.package_dependents.get(qualified_name, ()))

    def unresolved_of(self, qualified_name: str) -> frozenset[str]:
        return frozenset(self.unresolved.get(qualified_name, ()))

    def dependents_in_package(self, qualified_name: str, package: str) -> frozenset[str]:
        """Dependents of ``qualified_name`` declared in ``package``."""
        return frozenset(c for c in self.dependents(qualified_name) if self.class_packages.get(c) == package)

    def coupling(self, qualified_name: str) -> int:
        """|dependencies| + |unresolved references| (CBO); dependents do not count."""
        return len(self.dependencies(qualified_name)) + len(self.unresolved_of(qualified_name))

    def efferent_packages(self, package: str, classes: Iterable[str]) -> frozenset[str]:
        """Distinct other packages the given classes of ``package`` depend on."""
        result: set[str] = set()
        for cls in classes:
            result |= self.depended_packages(cls)
        result.discard(package)
        return frozenset(result)

    def afferent_packages(self, package: str, classes: Iterable[str]) -> frozenset[str]:
        """Distinct other packages whose classes depend on the given classes."""
        result: set[str] = set()
        for cls in classes:
            result |= self.depending_packages(cls)
        result.discard(package)
        return frozenset(result)

    @property
    def edge_count(self) -> int:
        return sum(len(targets) for targets in self.class_dependencies.values())
