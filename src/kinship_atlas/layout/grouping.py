"""Sibling clusters and spouse pairing used to group people within a row."""

from dataclasses import dataclass, field

import networkx as nx

from kinship_atlas.graph import children_of, parents_of, siblings_of, spouses_of


def birth_order_key(G: nx.DiGraph, order: dict[str, int]):
    """Sort key: known birth years first, oldest first, then input order."""

    def key(person_id: str) -> tuple[int, int, int]:
        year = G.nodes[person_id].get("birth_year")
        return (year is None, year or 0, order.get(person_id, 0))

    return key


def sibling_clusters(
    G: nx.DiGraph,
    member_ids: list[str],
    use_sibling_edges: bool = True,
) -> list[list[str]]:
    """
    Partition `member_ids` into sibling clusters.

    Two people are in the same cluster when they share at least one recorded
    parent or (with `use_sibling_edges`) a recorded sibling relation; clusters
    are closed under that relation. Clusters come out in order of their first
    member in `member_ids`, members in `member_ids` order.
    """
    members = set(member_ids)
    linked = nx.Graph()
    linked.add_nodes_from(member_ids)

    by_parent: dict[str, list[str]] = {}
    for person_id in member_ids:
        for parent_id in parents_of(G, person_id):
            by_parent.setdefault(parent_id, []).append(person_id)
        if use_sibling_edges:
            for sibling_id in siblings_of(G, person_id):
                if sibling_id in members:
                    linked.add_edge(person_id, sibling_id)
    for children in by_parent.values():
        nx.add_path(linked, children)

    position = {pid: i for i, pid in enumerate(member_ids)}
    clusters = [sorted(component, key=position.__getitem__) for component in nx.connected_components(linked)]
    clusters.sort(key=lambda cluster: position[cluster[0]])
    return clusters


def parent_set_groups(G: nx.DiGraph, member_ids: list[str]) -> list[list[str]]:
    """
    Group `member_ids` by identical parent sets, in order of first appearance.

    People with no recorded parent each form their own group.
    """
    groups: dict[object, list[str]] = {}
    for person_id in member_ids:
        parents = tuple(sorted(parents_of(G, person_id)))
        key = parents if parents else ("__single__", person_id)
        groups.setdefault(key, []).append(person_id)
    return list(groups.values())


def pair_spouses(G: nx.DiGraph, member_ids: list[str]) -> dict[str, str]:
    """
    Map each person to at most one spouse, both ways.

    People are considered in `member_ids` order and paired with their first
    recorded spouse that is still unpaired.
    """
    pairs: dict[str, str] = {}
    for person_id in member_ids:
        if person_id in pairs:
            continue
        for spouse_id in spouses_of(G, person_id):
            if spouse_id not in pairs and spouse_id != person_id:
                pairs[person_id] = spouse_id
                pairs[spouse_id] = person_id
                break
    return pairs


@dataclass
class SiblingGroup:
    """A sibling cluster plus the spouses that sit on its edges."""

    sibling_ids: list[str]
    spouse_of: dict[str, str] = field(default_factory=dict)  # sibling -> out-of-cluster spouse

    @property
    def member_ids(self) -> list[str]:
        return self.sibling_ids + [self.spouse_of[s] for s in self.sibling_ids if s in self.spouse_of]

    def children(self, G: nx.DiGraph) -> list[str]:
        found: list[str] = []
        for sibling_id in self.sibling_ids:
            for child_id in children_of(G, sibling_id):
                if child_id not in found:
                    found.append(child_id)
        return found


def build_sibling_groups(G: nx.DiGraph, member_ids: list[str]) -> list[SiblingGroup]:
    """
    Build sibling groups for one generation.

    Members are taken oldest first. Each unassigned member starts a group with
    every unassigned member of its sibling cluster; the first recorded spouse
    of each sibling that is in this generation, outside the cluster and not yet
    grouped is attached to the group.
    """
    order = {pid: i for i, pid in enumerate(member_ids)}
    key = birth_order_key(G, order)
    members = set(member_ids)
    cluster_of: dict[str, list[str]] = {}
    for cluster in sibling_clusters(G, member_ids, use_sibling_edges=False):
        for person_id in cluster:
            cluster_of[person_id] = cluster

    groups: list[SiblingGroup] = []
    assigned: set[str] = set()
    for person_id in sorted(member_ids, key=key):
        if person_id in assigned:
            continue
        siblings = sorted(
            (pid for pid in cluster_of[person_id] if pid not in assigned),
            key=key,
        )
        assigned.update(siblings)
        group = SiblingGroup(sibling_ids=siblings)
        for sibling_id in siblings:
            spouse_id = next(iter(spouses_of(G, sibling_id)), None)
            if (
                spouse_id is not None
                and spouse_id in members
                and spouse_id not in assigned
                and spouse_id not in siblings
            ):
                group.spouse_of[sibling_id] = spouse_id
                assigned.add(spouse_id)
        groups.append(group)
    return groups
