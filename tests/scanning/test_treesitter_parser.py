"""Tests for the tree-sitter parser wrapper."""

import threading

from metrics_tree.scanning import TreeSitterParser
from metrics_tree.scanning.treesitter_parser import python_language


class TestTreeSitterParser:
    """Test parsing Python sources."""

    def test_parse_returns_module_tree(self):
        tree = TreeSitterParser().parse(b"def foo():\n    pass\n")
        assert tree.root_node.type == "module"
        assert not tree.root_node.has_error

    def test_syntax_errors_still_yield_a_tree(self):
        """Parsing is error tolerant."""
        tree = TreeSitterParser().parse(b"class Broken(:\n    pass\n")
        assert tree.root_node.has_error

    def test_language_is_shared(self):
        assert python_language() is python_language()

    def test_parser_per_thread(self):
        """Each thread parses with its own parser instance."""
        parser = TreeSitterParser()
        results = []

        def parse():
            results.append(parser.parse(b"x = 1\n").root_node.type)

        threads = [threading.Thread(target=parse) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        assert results == ["module"] * 4
