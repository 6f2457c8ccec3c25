"""Tests for DependencyTree — provide/require/link, queries and closures."""

from __future__ import annotations

import pytest

from cftctl.infrastructure.graph import DependencyCycleError, DependencyTree


@pytest.fixture
def tree() -> DependencyTree:
    return DependencyTree()


# ---------------------------------------------------------------------------
# Variable-mediated dependencies
# ---------------------------------------------------------------------------


class TestInterdependencies:
    @pytest.fixture(autouse=True)
    def _seed(self, tree: DependencyTree) -> None:
        tree.provide("vpc/base.yaml", "vpc-id")
        tree.require("network/vpc.yaml", "vpc-id")

    def test_no_undefined_variables(self, tree: DependencyTree) -> None:
        assert tree.undefined_variables() == set()

    def test_finds_the_dependency(self, tree: DependencyTree) -> None:
        assert tree.dependencies_for("network/vpc.yaml") == ["vpc/base.yaml"]

    def test_finds_the_dependents(self, tree: DependencyTree) -> None:
        assert tree.dependents_for("vpc/base.yaml") == ["network/vpc.yaml"]

    def test_edge_records_variable(self, tree: DependencyTree) -> None:
        assert tree.edge_variables("vpc/base.yaml", "network/vpc.yaml") == ["vpc-id"]


class TestOrderIndependence:
    def test_require_before_provide(self, tree: DependencyTree) -> None:
        tree.require("consumer", "x")
        tree.provide("provider", "x")
        assert tree.dependencies_for("consumer") == ["provider"]
        assert tree.dependents_for("provider") == ["consumer"]

    def test_same_graph_either_order(self) -> None:
        first = DependencyTree()
        first.provide("p", "x")
        first.require("c", "x")
        second = DependencyTree()
        second.require("c", "x")
        second.provide("p", "x")
        assert sorted(first.graph.edges) == sorted(second.graph.edges)

    def test_provider_added_after_query(self, tree: DependencyTree) -> None:
        tree.require("c", "x")
        tree.provide("p1", "x")
        assert tree.dependencies_for("c") == ["p1"]
        tree.provide("p2", "x")
        assert tree.dependencies_for("c") == ["p1", "p2"]


class TestMultipleProviders:
    def test_both_providers_are_dependencies(self, tree: DependencyTree) -> None:
        tree.provide("a", "x")
        tree.provide("b", "x")
        tree.require("c", "x")
        assert tree.dependencies_for("c") == ["a", "b"]
        assert tree.duplicate_providers() == {"x": ["a", "b"]}

    def test_single_provider_not_duplicate(self, tree: DependencyTree) -> None:
        tree.provide("a", "x")
        tree.provide("a", "x")
        assert tree.duplicate_providers() == {}
        assert tree.providers_of("x") == ["a"]


# ---------------------------------------------------------------------------
# Direct links
# ---------------------------------------------------------------------------


class TestLinked:
    @pytest.fixture(autouse=True)
    def _seed(self, tree: DependencyTree) -> None:
        tree.link("A", "B")

    def test_no_undefined_variables(self, tree: DependencyTree) -> None:
        assert tree.undefined_variables() == set()

    def test_finds_the_dependency(self, tree: DependencyTree) -> None:
        assert tree.dependencies_for("B") == ["A"]

    def test_finds_the_dependents(self, tree: DependencyTree) -> None:
        assert tree.dependents_for("A") == ["B"]

    def test_link_and_variable_collapse_to_one_edge(self, tree: DependencyTree) -> None:
        tree.provide("A", "x")
        tree.require("B", "x")
        tree.link("A", "B")
        assert tree.dependencies_for("B") == ["A"]
        assert tree.dependents_for("A") == ["B"]
        assert tree.graph.edges["A", "B"]["linked"] is True
        assert tree.edge_variables("A", "B") == ["x"]


# ---------------------------------------------------------------------------
# Unknown / isolated templates
# ---------------------------------------------------------------------------


class TestUnknownTemplates:
    def test_unknown_template_has_no_edges(self, tree: DependencyTree) -> None:
        tree.link("A", "B")
        assert tree.dependencies_for("Z") == []
        assert tree.dependents_for("Z") == []

    def test_empty_tree(self, tree: DependencyTree) -> None:
        assert tree.dependencies_for("A") == []
        assert tree.undefined_variables() == set()
        assert tree.closed_subset([]) == []

    def test_isolated_provider_is_known(self, tree: DependencyTree) -> None:
        tree.provide("lonely", "unused")
        assert "lonely" in tree.templates
        assert tree.dependents_for("lonely") == []


class TestUndefinedVariables:
    def test_missing_provider(self, tree: DependencyTree) -> None:
        tree.require("c", "x")
        tree.require("d", "y")
        tree.provide("p", "y")
        assert tree.undefined_variables() == {"x"}

    def test_provided_but_unused_is_fine(self, tree: DependencyTree) -> None:
        tree.provide("p", "x")
        assert tree.undefined_variables() == set()


# ---------------------------------------------------------------------------
# Ordering of query results
# ---------------------------------------------------------------------------


class TestDiscoveryOrder:
    def test_dependents_in_insertion_order(self, tree: DependencyTree) -> None:
        tree.link("root", "zeta")
        tree.link("root", "alpha")
        tree.link("root", "mid")
        assert tree.dependents_for("root") == ["zeta", "alpha", "mid"]

    def test_no_duplicates(self, tree: DependencyTree) -> None:
        tree.provide("p", "x")
        tree.provide("p", "y")
        tree.require("c", "x")
        tree.require("c", "y")
        tree.link("p", "c")
        assert tree.dependencies_for("c") == ["p"]
        assert tree.edge_variables("p", "c") == ["x", "y"]

    def test_queries_are_idempotent(self, tree: DependencyTree) -> None:
        tree.link("A", "B")
        tree.require("B", "x")
        first = (tree.dependencies_for("B"), tree.undefined_variables(), tree.closed_subset(["B"]))
        second = (tree.dependencies_for("B"), tree.undefined_variables(), tree.closed_subset(["B"]))
        assert first == second


# ---------------------------------------------------------------------------
# closed_subset
# ---------------------------------------------------------------------------


class TestClosedSubset:
    @pytest.fixture(autouse=True)
    def _seed(self, tree: DependencyTree) -> None:
        tree.link("A", "B")
        tree.link("C", "D")

    def test_items_with_no_downstream_dependencies(self, tree: DependencyTree) -> None:
        assert tree.closed_subset(["C", "B"]) == ["B"]

    def test_interdependent_items_with_no_downstream_dependencies(
        self, tree: DependencyTree
    ) -> None:
        assert tree.closed_subset(["D", "C", "B"]) == ["D", "C", "B"]

    def test_unknown_template_always_kept(self, tree: DependencyTree) -> None:
        assert tree.closed_subset(["X", "A"]) == ["X"]

    def test_duplicates_preserved(self, tree: DependencyTree) -> None:
        assert tree.closed_subset(["B", "C", "B"]) == ["B", "B"]

    def test_transitive_dependents_count(self, tree: DependencyTree) -> None:
        tree.link("D", "E")
        assert tree.closed_subset(["C", "D"]) == []
        assert tree.closed_subset(["C", "D", "E"]) == ["C", "D", "E"]

    def test_blocking_dependents(self, tree: DependencyTree) -> None:
        tree.link("D", "E")
        assert tree.blocking_dependents("C", ["C"]) == ["D", "E"]
        assert tree.blocking_dependents("C", ["C", "D"]) == ["E"]

    def test_cycle_terminates(self, tree: DependencyTree) -> None:
        tree.link("B", "A")
        assert tree.closed_subset(["A", "B"]) == ["A", "B"]
        assert tree.closed_subset(["A"]) == []


# ---------------------------------------------------------------------------
# sort / with_dependencies
# ---------------------------------------------------------------------------


class TestSort:
    def test_providers_first(self, tree: DependencyTree) -> None:
        tree.provide("base", "x")
        tree.require("app", "x")
        tree.link("app", "edge")
        assert tree.sort(["edge", "app", "base"]) == ["base", "app", "edge"]

    def test_independent_templates_keep_input_order(self, tree: DependencyTree) -> None:
        tree.link("A", "B")
        assert tree.sort(["Z", "B", "Y", "A"]) == ["Z", "Y", "A", "B"]

    def test_ordering_through_unselected_template(self, tree: DependencyTree) -> None:
        tree.link("A", "X")
        tree.link("X", "B")
        assert tree.sort(["B", "A"]) == ["A", "B"]

    def test_default_sorts_everything(self, tree: DependencyTree) -> None:
        tree.link("B", "C")
        tree.link("A", "B")
        assert tree.sort() == ["A", "B", "C"]

    def test_cycle_raises(self, tree: DependencyTree) -> None:
        tree.link("A", "B")
        tree.link("B", "A")
        with pytest.raises(DependencyCycleError) as exc_info:
            tree.sort(["A", "B"])
        assert set(exc_info.value.cycle) == {"A", "B"}
        assert tree.cycles()

    def test_with_dependencies(self, tree: DependencyTree) -> None:
        tree.link("A", "B")
        tree.link("B", "C")
        tree.link("Z", "Y")
        assert tree.with_dependencies(["C"]) == ["C", "B", "A"]
        assert tree.with_dependencies(["Y", "C"]) == ["Y", "C", "Z", "B", "A"]
