import pytest

from kinship_atlas.graph import (
    build_graph,
    children_of,
    get_ego_subgraph,
    get_lineage_subgraph,
    parents_of,
    siblings_of,
    spouses_of,
)
from kinship_atlas.models import Relation


def test_inverse_relations_are_derived(builder):
    people = builder.add("a").add("b").parent("a", "b", both=False).build()
    G = build_graph(people)

    assert G.edges["a", "b"]["relationship_type"] == "parent"
    assert G.edges["b", "a"]["relationship_type"] == "child"
    assert children_of(G, "b") == ["a"]


def test_both_sides_recorded_no_double_count(nuclear_family):
    G = build_graph(nuclear_family)

    assert G.number_of_nodes() == 4
    # 1 marriage + 4 parent/child links, each as two directed edges
    assert G.number_of_edges() == 10
    assert parents_of(G, "kid1") == ["dad", "mom"]
    assert spouses_of(G, "dad") == ["mom"]
    assert siblings_of(G, "kid1") == []


def test_node_attributes(nuclear_family):
    G = build_graph(nuclear_family)

    assert G.nodes["dad"]["person_name"] == "John Doe"
    assert G.nodes["mom"]["gender"] == "female"
    assert G.nodes["kid2"]["birth_year"] == 1978


def test_dangling_and_bad_relations_are_skipped(builder):
    people = builder.add("a").add("b").siblings("a", "b").build()
    people[0].relations.append(Relation("x1", "parent", "ghost"))
    people[0].relations.append(Relation("x2", "cousin", "b"))
    people[0].relations.append(Relation("x3", "spouse", "a"))

    G = build_graph(people)

    assert "ghost" not in G
    assert not G.has_edge("a", "a")
    assert G.edges["a", "b"]["relationship_type"] == "sibling"
    assert G.number_of_edges() == 2


def test_empty_snapshot():
    G = build_graph([])
    assert G.number_of_nodes() == 0
    assert parents_of(G, "anyone") == []


class TestSubgraphs:
    def test_ego_subgraph_radius(self, extended_family):
        G = build_graph(extended_family)

        sub = get_ego_subgraph(G, "cat", radius=1)

        assert set(sub.nodes) == {"cat", "ann", "carl", "eve"}

    def test_ego_subgraph_unknown_center(self, extended_family):
        G = build_graph(extended_family)
        with pytest.raises(ValueError):
            get_ego_subgraph(G, "nobody")

    def test_lineage_follows_one_gender(self, extended_family):
        G = build_graph(extended_family)

        sub = get_lineage_subgraph(G, "cat", gender="female", radius=0)

        # cat -> ann -> gm, plus spouses along the way
        assert set(sub.nodes) == {"cat", "ann", "carl", "gm", "gp"}
