from kinship_atlas.edges import build_family_units, build_tree_edges
from kinship_atlas.generations import assign_generations


def edges_by_id(edges):
    return {edge.id: edge for edge in edges}


def test_couple_children_edges_are_mergeable(nuclear_family):
    generations = assign_generations(nuclear_family, "dad").generations

    edges = edges_by_id(build_tree_edges(nuclear_family, generations))

    assert set(edges) == {"e-dad-mom", "e-dad-kid1", "e-dad-kid2", "e-kid1-mom", "e-kid2-mom"}
    assert edges["e-dad-mom"].relationship_type == "spouse"
    assert edges["e-dad-mom"].merge_info is None

    for edge_id, other in [("e-dad-kid1", "mom"), ("e-kid1-mom", "dad")]:
        edge = edges[edge_id]
        assert edge.relationship_type == "parent"
        assert edge.target == "kid1"
        assert edge.merge_info.has_merge is True
        assert edge.merge_info.child_id == "kid1"
        assert edge.merge_info.other_parent_id == other
        assert edge.merge_info.all_children_ids == ["kid1", "kid2"]


def test_parent_edges_point_from_parent_to_child(builder):
    people = builder.add("p").add("c").parent("c", "p", both=False).build()

    (edge,) = build_tree_edges(people, {"p": 0, "c": 1})

    assert (edge.source, edge.target, edge.relationship_type) == ("p", "c", "parent")
    assert edge.id == "e-c-p"


def test_no_merge_when_parents_are_not_married(builder):
    people = builder.add("a").add("b").add("kid").parent("kid", "a", "b").build()

    edges = build_tree_edges(people, {"a": 0, "b": 0, "kid": 1})

    assert len(edges) == 2
    assert all(edge.merge_info is None for edge in edges)


def test_no_merge_for_single_parent(builder):
    people = builder.add("a").add("b").add("kid").marry("a", "b").parent("kid", "a").build()

    edges = edges_by_id(build_tree_edges(people, {"a": 0, "b": 0, "kid": 1}))

    assert edges["e-a-kid"].merge_info is None


def test_only_people_with_generations(extended_family):
    generations = {"ann": 0, "carl": 0, "cat": 1}

    edges = build_tree_edges(extended_family, generations)

    assert {edge.id for edge in edges} == {"e-ann-carl", "e-ann-cat", "e-carl-cat"}


def test_sibling_edges_kept(extended_family):
    generations = assign_generations(extended_family, "gp").generations

    edges = edges_by_id(build_tree_edges(extended_family, generations))

    assert edges["e-ann-ben"].relationship_type == "sibling"
    assert len(edges) == 11


def test_family_units(extended_family):
    units = build_family_units(extended_family)

    assert [(unit.id, unit.parents, unit.children) for unit in units] == [
        ("fam-gm-gp", ("gm", "gp"), ["ann", "ben"]),
        ("fam-ann-carl", ("ann", "carl"), ["cat"]),
        ("fam-ben", ("ben",), ["dan"]),
        ("fam-cat", ("cat",), ["eve"]),
    ]
