"""Shortest relationship paths between two people, and what to call them."""

import logging
from collections import deque

import networkx as nx

from kinship_atlas.graph import build_graph
from kinship_atlas.models import (
    CHILD,
    PARENT,
    SIBLING,
    SPOUSE,
    PathStep,
    Person,
    RelationshipPath,
)
from kinship_atlas.terms import (
    collateral_term,
    cousin_term,
    gendered_term,
    lineal_term,
)

logger = logging.getLogger(__name__)

SAME_PERSON = "Same person"

# (first step, second step) -> role, for one marriage plus one blood step
_IN_LAW_ROLES = {
    (SPOUSE, PARENT): "parent_in_law",
    (CHILD, SPOUSE): "child_in_law",
    (SPOUSE, SIBLING): "sibling_in_law",
    (SIBLING, SPOUSE): "sibling_in_law",
    (PARENT, SPOUSE): "step_parent",
    (SPOUSE, CHILD): "step_child",
}


def _line_shape(types: list[str]) -> tuple[int, bool, int] | None:
    """
    Split a spouse-free path into (parent steps, sibling step?, child steps).

    Returns None unless the path climbs, crosses over at most one sibling step,
    then descends: parent* sibling? child*.
    """
    i = 0
    n = len(types)
    while i < n and types[i] == PARENT:
        i += 1
    up = i
    sibling = i < n and types[i] == SIBLING
    if sibling:
        i += 1
    down_start = i
    while i < n and types[i] == CHILD:
        i += 1
    if i != n:
        return None
    return up, sibling, n - down_start


def classify_path(types: list[str], gender: str | None) -> tuple[str, int | None]:
    """
    Name the relationship described by a sequence of relation types.

    `types[i]` says how person i+1 on the path relates to person i, and `gender`
    is the gender of the last person. Returns the term and, when the path goes
    through a single shared ancestor (or is a straight line), the index of that
    person on the path. Unrecognized shapes return an empty term.
    """
    if not types:
        return SAME_PERSON, 0
    if len(types) == 1:
        return gendered_term(types[0], gender), None

    if SPOUSE not in types:
        shape = _line_shape(types)
        if shape is None:
            return "", None
        parents_up, via_sibling, children_down = shape
        ancestor = None if via_sibling else parents_up
        # A sibling step stands for one generation up and one back down
        up = parents_up + int(via_sibling)
        down = children_down + int(via_sibling)
        if down == 0:
            return lineal_term(up, gender, ascending=True), ancestor
        if up == 0:
            return lineal_term(down, gender, ascending=False), ancestor
        if up == 1 and down == 1:
            return gendered_term("sibling", gender), ancestor
        if down == 1:
            return collateral_term(up, gender, elder=True), ancestor
        if up == 1:
            return collateral_term(down, gender, elder=False), ancestor
        return cousin_term(min(up, down) - 1, abs(up - down)), ancestor

    role = _IN_LAW_ROLES.get(tuple(types)) if len(types) == 2 else None
    if role:
        return gendered_term(role, gender), None
    return "", None


class RelationshipPathFinder:
    """
    Finds how two people in a snapshot are related.

    The relationship graph is built once per snapshot; ``find_path`` can then
    be called for any pair.
    """

    def __init__(self, people: list[Person], graph: nx.DiGraph | None = None):
        self.graph = graph if graph is not None else build_graph(people)

    def _name(self, person_id: str) -> str:
        return self.graph.nodes[person_id].get("person_name") or person_id

    def _gender(self, person_id: str) -> str | None:
        return self.graph.nodes[person_id].get("gender")

    def _shortest_path(self, from_id: str, to_id: str) -> list[str] | None:
        """
        Breadth-first search for a shortest path by edge count.

        Among equally short paths the one with the fewest spouse steps wins,
        then the first one discovered, so both directions agree on whether two
        people are blood relatives.
        """
        G = self.graph
        distance = {from_id: 0}
        spouse_steps = {from_id: 0}
        previous: dict[str, str] = {}
        queue = deque([from_id])

        while queue:
            current = queue.popleft()
            if to_id in distance and distance[current] >= distance[to_id]:
                break
            for other, data in G.adj[current].items():
                steps = spouse_steps[current] + (data["relationship_type"] == SPOUSE)
                if other not in distance:
                    distance[other] = distance[current] + 1
                    spouse_steps[other] = steps
                    previous[other] = current
                    queue.append(other)
                elif distance[other] == distance[current] + 1 and steps < spouse_steps[other]:
                    spouse_steps[other] = steps
                    previous[other] = current

        if to_id not in distance:
            return None

        path = [to_id]
        while path[-1] != from_id:
            path.append(previous[path[-1]])
        path.reverse()
        return path

    def find_path(self, from_id: str, to_id: str) -> RelationshipPath | None:
        """
        Find the shortest relationship path from `from_id` to `to_id`.

        Returns None when either person is unknown or they are not connected.
        """
        if from_id == to_id:
            return RelationshipPath(
                path=[from_id],
                detailed_path=[],
                distance=0,
                relationship_description=SAME_PERSON,
                is_blood_relative=True,
                common_ancestor=None,
                relationship_term=SAME_PERSON,
            )

        if from_id not in self.graph or to_id not in self.graph:
            logger.debug("No path: %s or %s is not in the snapshot", from_id, to_id)
            return None

        path = self._shortest_path(from_id, to_id)
        if path is None:
            return None

        detailed_path = []
        for a, b in zip(path, path[1:]):
            relation_type = self.graph.edges[a, b]["relationship_type"]
            term = gendered_term(relation_type, self._gender(b))
            detailed_path.append(
                PathStep(
                    from_id=a,
                    to_id=b,
                    relation_type=relation_type,
                    description=f"{self._name(b)} is {self._name(a)}'s {term}",
                )
            )

        types = [step.relation_type for step in detailed_path]
        is_blood = SPOUSE not in types
        term, ancestor_index = classify_path(types, self._gender(to_id))

        from_name = self._name(from_id)
        to_name = self._name(to_id)
        if term:
            description = f"{to_name} is {from_name}'s {term}"
        else:
            chain = " → ".join(
                gendered_term(step.relation_type, self._gender(step.to_id))
                for step in detailed_path
            )
            kind = "by blood" if is_blood else "by marriage"
            term = "blood relative" if is_blood else "relative by marriage"
            description = f"{to_name} is related to {from_name} {kind}: {chain}"

        return RelationshipPath(
            path=path,
            detailed_path=detailed_path,
            distance=len(path) - 1,
            relationship_description=description,
            is_blood_relative=is_blood,
            common_ancestor=path[ancestor_index] if ancestor_index is not None else None,
            relationship_term=term,
        )

    def describe(self, from_id: str, to_id: str) -> str | None:
        result = self.find_path(from_id, to_id)
        return result.relationship_description if result else None
