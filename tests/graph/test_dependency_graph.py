"""Tests for graph/ - class and package dependency edges, coupling."""

import pytest

from metrics_tree.graph import DependencyGraph

SHOP = {
    "shop/__init__.py": "",
    "shop/item.py": """
        class Item:
            price: float = 0.0
    """,
    "shop/cart.py": """
        from shop.item import Item

        class Cart:
            def __init__(self):
                self.items: list[Item] = []

            def add(self, item: Item) -> None:
                self.items.append(item)
    """,
    "billing/__init__.py": "",
    "billing/invoice.py": """
        from shop.cart import Cart

        class Invoice:
            def __init__(self, cart: Cart):
                self.cart = cart
    """,
}


class TestDependencyGraph:
    """Test the graph populated from a parsed project."""

    def test_nodes(self, build_model):
        _, graph, _ = build_model(SHOP, stages=())
        assert graph.classes() == ["billing.invoice.Invoice", "shop.cart.Cart", "shop.item.Item"]
        assert graph.packages() == ["billing", "shop"]
        assert graph.package_of("shop.cart.Cart") == "shop"

    def test_edges_are_symmetric(self, build_model):
        """Every dependency is mirrored by a dependent."""
        _, graph, _ = build_model(SHOP, stages=())
        for source in graph.classes():
            for target in graph.dependencies(source):
                assert source in graph.dependents(target)
            for dependent in graph.dependents(source):
                assert source in graph.dependencies(dependent)

    def test_class_edges(self, build_model):
        _, graph, _ = build_model(SHOP, stages=())
        assert graph.dependencies("shop.cart.Cart") == {"shop.item.Item"}
        assert graph.dependencies("billing.invoice.Invoice") == {"shop.cart.Cart"}
        assert graph.dependents("shop.item.Item") == {"shop.cart.Cart"}
        assert graph.dependencies("shop.item.Item") == frozenset()

    def test_package_edges_only_cross_packages(self, build_model):
        _, graph, _ = build_model(SHOP, stages=())
        assert graph.depended_packages("billing.invoice.Invoice") == {"shop"}
        assert graph.depending_packages("shop.cart.Cart") == {"billing"}
        assert graph.depended_packages("shop.cart.Cart") == frozenset()

    def test_package_fan(self, build_model):
        _, graph, _ = build_model(SHOP, stages=())
        shop = ["shop.cart.Cart", "shop.item.Item"]
        assert graph.afferent_packages("shop", shop) == {"billing"}
        assert graph.efferent_packages("shop", shop) == frozenset()
        assert graph.efferent_packages("billing", ["billing.invoice.Invoice"]) == {"shop"}

    def test_coupling(self, build_model):
        _, graph, _ = build_model(SHOP, stages=())
        assert graph.coupling("shop.cart.Cart") == 1
        assert graph.coupling("shop.item.Item") == 0
        assert graph.coupling("billing.invoice.Invoice") == 1

    def test_unresolved_references_count(self, build_model):
        """A sibling referenced twice and an unknown type give coupling 2."""
        code = """
            class X:
                def run(self):
                    y = Y()
                    y.go()
                    return Bar()

            class Y:
                def go(self):
                    pass
        """
        _, graph, _ = build_model({"mod.py": code}, stages=())
        assert graph.dependencies("mod.X") == {"mod.Y"}
        assert graph.unresolved_of("mod.X") == {"Bar"}
        assert graph.coupling("mod.X") == 2
        assert graph.coupling("mod.Y") == 0

    def test_dependents_do_not_add_coupling(self, build_model):
        """A class using X leaves the coupling of X unchanged."""
        code = """
            from foo import Bar

            class X:
                def run(self):
                    Y().go()
                    Y().go()
                    return Bar()

            class Y:
                def go(self):
                    pass

            class Z:
                def build(self):
                    return X()
        """
        _, graph, _ = build_model({"mod.py": code}, stages=())
        assert graph.dependents("mod.X") == {"mod.Z"}
        assert graph.coupling("mod.X") == 2
        assert graph.coupling("mod.Y") == 0
        assert graph.coupling("mod.Z") == 1

    def test_self_references_are_not_edges(self, build_model):
        code = """
            class Node:
                def __init__(self, parent: "Node" = None):
                    self.parent = parent

                def clone(self) -> "Node":
                    return Node(self.parent)
        """
        _, graph, _ = build_model({"mod.py": code}, stages=())
        assert graph.classes() == ["mod.Node"]
        assert graph.dependencies("mod.Node") == frozenset()
        assert graph.coupling("mod.Node") == 0

    def test_edge_count(self, build_model):
        _, graph, _ = build_model(SHOP, stages=())
        assert graph.edge_count == 2


class TestGraphPopulation:
    """Test direct population of a DependencyGraph."""

    def test_self_edge_ignored(self):
        graph = DependencyGraph()
        assert graph.add_dependency("a.A", "a", "a.A", "a") is False
        assert graph.edge_count == 0

    def test_same_package_edge_has_no_package_edge(self):
        graph = DependencyGraph()
        assert graph.add_dependency("a.A", "a", "a.B", "a") is True
        assert graph.depended_packages("a.A") == frozenset()
        assert graph.dependents_in_package("a.B", "a") == {"a.A"}

    def test_frozen_graph_is_read_only(self):
        graph = DependencyGraph()
        graph.add_class("a.A", "a")
        graph.freeze()
        assert graph.frozen
        with pytest.raises(RuntimeError):
            graph.add_dependency("a.A", "a", "b.B", "b")

    def test_unknown_class_queries(self):
        graph = DependencyGraph()
        assert graph.dependencies("missing") == frozenset()
        assert graph.coupling("missing") == 0
        assert graph.package_of("missing") is None
