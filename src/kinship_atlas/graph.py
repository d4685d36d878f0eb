"""NetworkX graph building and operations."""

import logging

import networkx as nx

from kinship_atlas.models import (
    CHILD,
    INVERSE_RELATION,
    PARENT,
    RELATION_TYPES,
    SIBLING,
    SPOUSE,
    Person,
)

logger = logging.getLogger(__name__)


def build_graph(people: list[Person]) -> nx.DiGraph:
    """
    Build the relationship graph for a snapshot of people.

    An edge A -> B with ``relationship_type=T`` means "B is A's T". Every stored
    relation is added first, in input order, then the logical inverse of each
    relation is derived wherever the other side did not record it, so the graph
    is complete even when upstream storage only kept one half of a pair.
    Relations pointing at people absent from the snapshot are skipped.
    """
    G = nx.DiGraph()

    for person in people:
        G.add_node(
            person.id,
            person_name=person.full_name,
            first_name=person.first_name,
            last_name=person.last_name,
            gender=person.gender,
            birth_year=person.birth_year,
        )

    dangling = 0
    for person in people:
        for rel in person.relations:
            if rel.type not in RELATION_TYPES:
                logger.warning("Ignoring relation %s of unknown type %r", rel.id, rel.type)
                continue
            if rel.person_id not in G or rel.person_id == person.id:  # dangling or self
                dangling += 1
                logger.debug(
                    "Skipping relation %s: %s -> %s (%s) is dangling or self-referential",
                    rel.id,
                    person.id,
                    rel.person_id,
                    rel.type,
                )
                continue
            # First record wins when the same pair is stored twice
            if not G.has_edge(person.id, rel.person_id):
                G.add_edge(person.id, rel.person_id, relationship_type=rel.type)

    for u, v, data in list(G.edges(data=True)):
        if not G.has_edge(v, u):
            G.add_edge(v, u, relationship_type=INVERSE_RELATION[data["relationship_type"]])

    if dangling:
        logger.info("Skipped %d relation(s) pointing at unknown people", dangling)
    return G


def relatives(G: nx.DiGraph, person_id: str, relation_type: str) -> list[str]:
    """Ids that are `person_id`'s `relation_type`, in adjacency order."""
    if person_id not in G:
        return []
    return [
        other
        for other, data in G.adj[person_id].items()
        if data.get("relationship_type") == relation_type
    ]


def parents_of(G: nx.DiGraph, person_id: str) -> list[str]:
    return relatives(G, person_id, PARENT)


def children_of(G: nx.DiGraph, person_id: str) -> list[str]:
    return relatives(G, person_id, CHILD)


def spouses_of(G: nx.DiGraph, person_id: str) -> list[str]:
    return relatives(G, person_id, SPOUSE)


def siblings_of(G: nx.DiGraph, person_id: str) -> list[str]:
    return relatives(G, person_id, SIBLING)


def get_ego_subgraph(G: nx.DiGraph, center_id: str, radius: int = 2) -> nx.DiGraph:
    """
    Extract a subgraph containing people within `radius` relation steps of a center person.

    Raises:
        ValueError: if `center_id` is not in the graph
    """
    if center_id not in G:
        raise ValueError(f"Person ID {center_id} not found in graph")

    ego = nx.ego_graph(G.to_undirected(as_view=True), center_id, radius=radius)
    return G.subgraph(ego.nodes()).copy()


def get_lineage_subgraph(
    G: nx.DiGraph, center_id: str, gender: str = "male", radius: int = 1
) -> nx.DiGraph:
    """
    Extract the "lineage" of center_id along parents of one gender.

    Starting at center_id, take the ego subgraph of the given radius, then move to
    the parent of the given gender and repeat until the line runs out. With
    radius = 0 each step contributes only the person and their spouse(s).
    """
    if center_id not in G:
        raise ValueError(f"Person ID {center_id} not found in graph")

    undirected = G.to_undirected(as_view=True)
    all_nodes: set[str] = set()
    seen: set[str] = set()

    current_id = center_id
    while current_id is not None and current_id not in seen:
        seen.add(current_id)
        if radius == 0:
            all_nodes.add(current_id)
            all_nodes.update(spouses_of(G, current_id))
        else:
            all_nodes.update(nx.ego_graph(undirected, current_id, radius=radius).nodes())

        current_id = next(
            (p for p in parents_of(G, current_id) if G.nodes[p].get("gender") == gender),
            None,
        )

    return G.subgraph(all_nodes).copy()
