"""Shared state handed to every metric computation of one class."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Optional, TypeVar

if TYPE_CHECKING:
    from ..graph.models import DependencyGraph
    from ..scanning.symbols import SymbolIndex

T = TypeVar("T")


@dataclass
class VisitContext:
    """Symbol table, optional dependency graph and a per-class memo.

    A context is created per class by the assembler and never shared between
    threads, so the memo needs no locking.
    """

    index: "SymbolIndex"
    graph: Optional["DependencyGraph"] = None
    _memo: dict[Any, Any] = field(default_factory=dict, repr=False)

    def memo(self, key: Any, factory: Callable[[], T]) -> T:
        """Compute ``factory()`` once per key."""
        if key not in self._memo:
            self._memo[key] = factory()
        return self._memo[key]
