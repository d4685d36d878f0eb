"""
Collapse/expand bookkeeping for descendant subtrees.

A collapsed person hides every descendant reachable through child relations.
A person stays hidden while any collapsed ancestor's hidden set contains them.
The state can be persisted through a store: any object with ``load()``
returning a mapping (or None) and ``save(mapping)``, see
``kinship_atlas.store.SQLiteCollapseStore``.
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

import networkx as nx

from kinship_atlas.graph import build_graph, children_of
from kinship_atlas.models import Person

logger = logging.getLogger(__name__)


@dataclass
class CollapseState:
    collapsed_nodes: set[str] = field(default_factory=set)
    hidden_descendants: dict[str, set[str]] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "collapsedNodes": sorted(self.collapsed_nodes),
            "hiddenDescendants": {
                node_id: sorted(hidden) for node_id, hidden in sorted(self.hidden_descendants.items())
            },
        }

    @classmethod
    def from_dict(cls, data: Mapping | None) -> "CollapseState":
        if not data:
            return cls()
        return cls(
            collapsed_nodes=set(data.get("collapsedNodes", [])),
            hidden_descendants={
                node_id: set(hidden) for node_id, hidden in data.get("hiddenDescendants", {}).items()
            },
        )


def find_descendants(people: list[Person], person_id: str, graph: nx.DiGraph | None = None) -> set[str]:
    """Everyone below `person_id` through child relations; the person is never included."""
    G = graph if graph is not None else build_graph(people)
    if person_id not in G:
        return set()

    descendants: set[str] = set()
    stack = [person_id]
    while stack:
        current = stack.pop()
        for child_id in children_of(G, current):
            if child_id != person_id and child_id not in descendants:
                descendants.add(child_id)
                stack.append(child_id)
    return descendants


def _node_id(node) -> str:
    if isinstance(node, str):
        return node
    if isinstance(node, Mapping):
        return node["id"]
    return node.id


def _endpoints(edge) -> tuple[str, str]:
    if isinstance(edge, Mapping):
        return edge["source"], edge["target"]
    if isinstance(edge, tuple):
        return edge[0], edge[1]
    return edge.source, edge.target


class CollapseTracker:
    """
    Collapse state for one snapshot of people.

    Loads the saved state from `store` when created and saves it after every
    change. Store failures are logged; the in-memory state stays authoritative.
    """

    def __init__(self, people: list[Person], store=None):
        self.people = people
        self.store = store
        self._graph = build_graph(people)
        self.state = self._load()

    def _load(self) -> CollapseState:
        if self.store is None:
            return CollapseState()
        try:
            return CollapseState.from_dict(self.store.load())
        except Exception:
            logger.exception("Failed to load collapse state; starting expanded")
            return CollapseState()

    def _save(self) -> None:
        if self.store is None:
            return
        try:
            self.store.save(self.state.to_dict())
        except Exception:
            logger.exception("Failed to save collapse state")

    def find_descendants(self, person_id: str) -> set[str]:
        return find_descendants(self.people, person_id, graph=self._graph)

    def toggle_collapse(self, node_id: str) -> bool:
        """Collapse or expand `node_id`. Returns True when it is now collapsed."""
        if node_id in self.state.collapsed_nodes:
            self.state.collapsed_nodes.discard(node_id)
            self.state.hidden_descendants.pop(node_id, None)
            collapsed = False
        else:
            self.state.collapsed_nodes.add(node_id)
            self.state.hidden_descendants[node_id] = self.find_descendants(node_id)
            collapsed = True
        self._save()
        return collapsed

    def is_collapsed(self, node_id: str) -> bool:
        return node_id in self.state.collapsed_nodes

    def hidden_ids(self) -> set[str]:
        """Union of every collapsed node's hidden descendants."""
        hidden: set[str] = set()
        for descendants in self.state.hidden_descendants.values():
            hidden |= descendants
        return hidden

    def is_hidden(self, node_id: str) -> bool:
        return any(node_id in descendants for descendants in self.state.hidden_descendants.values())

    def hidden_descendant_count(self, node_id: str) -> int:
        return len(self.state.hidden_descendants.get(node_id, ()))

    def collapse_all(self, node_ids: Iterable[str] | None = None) -> None:
        """Collapse every node in `node_ids` (default: every person in the snapshot)."""
        ids = list(node_ids) if node_ids is not None else list(self._graph.nodes)
        hidden: dict[str, set[str]] = {}
        for node_id in ids:
            descendants = self.find_descendants(node_id)
            if descendants:
                hidden[node_id] = descendants
        self.state = CollapseState(collapsed_nodes=set(ids), hidden_descendants=hidden)
        self._save()

    def expand_all(self) -> None:
        self.state = CollapseState()
        self._save()

    def visible_nodes(self, nodes: Iterable) -> list:
        """Filter `nodes` (ids, mappings with ``id`` or objects with ``.id``) to the visible ones."""
        hidden = self.hidden_ids()
        return [node for node in nodes if _node_id(node) not in hidden]

    def visible_edges(self, edges: Iterable) -> list:
        """Drop edges with a hidden endpoint. Edges may be mappings, (source, target) tuples or TreeEdges."""
        hidden = self.hidden_ids()
        visible = []
        for edge in edges:
            source, target = _endpoints(edge)
            if source not in hidden and target not in hidden:
                visible.append(edge)
        return visible

    @property
    def collapsed_count(self) -> int:
        return len(self.state.collapsed_nodes)
