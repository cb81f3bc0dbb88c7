"""Tree-sitter parser wrapper for Python sources.

Usage:
    parser = TreeSitterParser()
    tree = parser.parse(code_bytes)
    root = tree.root_node

tree-sitter ``Parser`` objects keep mutable state, so each thread gets its own
parser instance while the compiled ``Language`` is shared.
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Any

import tree_sitter
import tree_sitter_python

if TYPE_CHECKING:
    from tree_sitter import Tree

LANGUAGE_NAME = "python"

_LANGUAGE: Any = None
_LANGUAGE_LOCK = threading.Lock()


def python_language() -> Any:
    """Return the shared tree-sitter ``Language`` for Python."""
    global _LANGUAGE
    with _LANGUAGE_LOCK:
        if _LANGUAGE is None:
            # tree-sitter >= 0.23 returns a PyCapsule; wrap in Language()
            _LANGUAGE = tree_sitter.Language(tree_sitter_python.language())
        return _LANGUAGE


class TreeSitterParser:
    """Thread-safe facade over per-thread tree-sitter parsers."""

    def __init__(self) -> None:
        self._local = threading.local()

    def _parser(self) -> Any:
        parser = getattr(self._local, "parser", None)
        if parser is None:
            parser = tree_sitter.Parser(python_language())
            self._local.parser = parser
        return parser

    def parse(self, code: bytes) -> "Tree":
        """Parse Python source bytes into a syntax tree.

        tree-sitter is error tolerant: source with syntax errors still yields
        a tree whose ``root_node.has_error`` is True.
        """
        return self._parser().parse(code)
