"""Edges between laid-out people, with merge hints for couples' children."""

import itertools
import logging

import networkx as nx

from kinship_atlas.graph import build_graph, parents_of, spouses_of
from kinship_atlas.models import CHILD, PARENT, FamilyUnit, MergeInfo, Person, TreeEdge

logger = logging.getLogger(__name__)


def build_family_units(people: list[Person], graph: nx.DiGraph | None = None) -> list[FamilyUnit]:
    """
    Group children under the couple (or single parent) they descend from.

    For each child, the first pair of its parents who are married to each other
    forms the unit. Without such a pair, all of the child's parents form a unit
    together. Units come out in order of first child, children in input order.
    """
    G = graph if graph is not None else build_graph(people)
    units: dict[tuple[str, ...], FamilyUnit] = {}

    for child_id in G.nodes:
        parents = list(dict.fromkeys(parents_of(G, child_id)))
        if not parents:
            continue

        key = None
        for p1, p2 in itertools.combinations(parents, 2):
            if p2 in spouses_of(G, p1):
                key = tuple(sorted((p1, p2)))
                break
        if key is None:
            key = tuple(sorted(parents))

        if key not in units:
            units[key] = FamilyUnit(id="fam-" + "-".join(key), parents=key)
        units[key].children.append(child_id)

    return list(units.values())


def _is_couple(G: nx.DiGraph, unit: FamilyUnit) -> bool:
    return len(unit.parents) == 2 and unit.parents[1] in spouses_of(G, unit.parents[0])


def build_tree_edges(
    people: list[Person],
    generations: dict[str, int],
    graph: nx.DiGraph | None = None,
) -> list[TreeEdge]:
    """
    One edge per related pair of people that are both in `generations`.

    Edge ids are ``e-{a}-{b}`` with the two ids sorted, so a relation stored on
    both sides yields a single edge. Parent/child edges always run from the
    parent to the child with type ``parent``. A parent edge whose child also
    descends from the parent's spouse carries MergeInfo so the couple's
    children can be drawn from one shared connector.
    """
    G = graph if graph is not None else build_graph(people)
    unit_of: dict[str, FamilyUnit] = {}
    for unit in build_family_units(people, graph=G):
        if _is_couple(G, unit):
            for child_id in unit.children:
                unit_of[child_id] = unit

    edges: list[TreeEdge] = []
    seen: set[tuple[str, str]] = set()
    for u, v, data in G.edges(data=True):
        pair = tuple(sorted((u, v)))
        if pair in seen:
            continue
        seen.add(pair)
        if u not in generations or v not in generations:
            continue

        rel_type = data["relationship_type"]
        source, target = u, v
        if rel_type in (PARENT, CHILD):
            # "v is u's parent" puts v on top
            source, target = (v, u) if rel_type == PARENT else (u, v)
            rel_type = PARENT

        merge_info = None
        unit = unit_of.get(target) if rel_type == PARENT else None
        if unit is not None and source in unit.parents:
            other = unit.parents[1] if unit.parents[0] == source else unit.parents[0]
            merge_info = MergeInfo(
                has_merge=True,
                child_id=target,
                other_parent_id=other,
                all_children_ids=sorted(unit.children),
            )

        edges.append(
            TreeEdge(
                id=f"e-{pair[0]}-{pair[1]}",
                source=source,
                target=target,
                relationship_type=rel_type,
                merge_info=merge_info,
            )
        )

    logger.debug("Built %d edges for %d people", len(edges), len(generations))
    return edges
