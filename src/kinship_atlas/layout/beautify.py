"""
Beautify layout: keeps sibling clusters visually intact.

1. Generations come from birth years, refined so children sit below parents
   and spouses share a row.
2. Each family branch (the descendants of a root couple) is laid out on its
   own, branches side by side. Within a row, sibling clusters are placed with
   their married-in spouses on the outer edges: the first sibling's spouse to
   its left, every other sibling's spouse to its right.
3. Working up from the youngest row, each sibling cluster (with spouses) is
   moved to sit centered above all of its children.
4. Remaining overlaps in each row are pushed apart.
5. The whole chart is centered on x = 0.
"""

import logging
from collections import deque

import networkx as nx

from kinship_atlas.generations import birth_year_generations, find_root_ids
from kinship_atlas.graph import build_graph, children_of, parents_of, spouses_of
from kinship_atlas.layout.config import LayoutConfig
from kinship_atlas.layout.geometry import recenter, resolve_overlaps
from kinship_atlas.layout.grouping import SiblingGroup, birth_order_key, build_sibling_groups
from kinship_atlas.models import Person, Position

logger = logging.getLogger(__name__)


def find_root_couples(G: nx.DiGraph) -> list[list[str]]:
    """
    People without recorded parents, oldest first, each paired with their
    first spouse when that spouse has no recorded parents either.

    People who only married into the family (every spouse has recorded
    parents) do not found a branch of their own.
    """
    roots = find_root_ids(G)
    root_set = set(roots)
    order = {pid: i for i, pid in enumerate(G.nodes)}
    processed: set[str] = set()
    couples: list[list[str]] = []

    for root_id in sorted(roots, key=birth_order_key(G, order)):
        if root_id in processed:
            continue
        spouses = spouses_of(G, root_id)
        if spouses and not any(spouse_id in root_set for spouse_id in spouses):
            continue
        processed.add(root_id)
        couple = [root_id]
        spouse_id = next(iter(spouses), None)
        if spouse_id in root_set and spouse_id not in processed:
            processed.add(spouse_id)
            couple.append(spouse_id)
        couples.append(couple)
    return couples


def descendants_of(G: nx.DiGraph, root_ids: list[str]) -> list[str]:
    """`root_ids` and all their descendants, breadth first."""
    seen: set[str] = set()
    ordered: list[str] = []
    queue = deque(root_ids)
    while queue:
        person_id = queue.popleft()
        if person_id in seen:
            continue
        seen.add(person_id)
        ordered.append(person_id)
        queue.extend(child for child in children_of(G, person_id) if child not in seen)
    return ordered


def build_branches(G: nx.DiGraph) -> list[list[str]]:
    """
    Split the snapshot into family branches, one per root couple.

    A branch holds the couple's descendants plus the spouses without recorded
    parents who married into it. Each person belongs to the first branch that
    reaches them. People no branch reaches (for instance inside a parent/child
    cycle) join the first branch.
    """
    branches: list[list[str]] = []
    assigned: set[str] = set()
    for couple in find_root_couples(G):
        members = [pid for pid in descendants_of(G, couple) if pid not in assigned]
        in_branch = set(members)
        for person_id in list(members):
            for spouse_id in spouses_of(G, person_id):
                if spouse_id not in assigned and spouse_id not in in_branch and not parents_of(G, spouse_id):
                    members.append(spouse_id)
                    in_branch.add(spouse_id)
        if members:
            assigned.update(members)
            branches.append(members)

    leftovers = [pid for pid in G.nodes if pid not in assigned]
    if leftovers:
        if branches:
            branches[0].extend(leftovers)
        else:
            branches.append(leftovers)
    return branches


def _place_group(
    group: SiblingGroup,
    x: float,
    y: float,
    config: LayoutConfig,
    positions: dict[str, Position],
) -> float:
    """Place one sibling group starting at `x`; returns the x just past its last node."""
    count = len(group.sibling_ids)
    for index, sibling_id in enumerate(group.sibling_ids):
        spouse_id = group.spouse_of.get(sibling_id)
        if spouse_id is not None and index == 0 and count > 1:
            positions[spouse_id] = Position(x, y)
            x += config.spouse_step
            positions[sibling_id] = Position(x, y)
            x += config.node_width
        elif spouse_id is not None:
            positions[sibling_id] = Position(x, y)
            x += config.spouse_step
            positions[spouse_id] = Position(x, y)
            x += config.node_width
        else:
            positions[sibling_id] = Position(x, y)
            x += config.node_width
        if index < count - 1:
            x += config.sibling_gap
    return x


def _rows(member_ids, generation_of: dict[str, int]) -> dict[int, list[str]]:
    rows: dict[int, list[str]] = {}
    for person_id in member_ids:
        rows.setdefault(generation_of[person_id], []).append(person_id)
    return rows


def compute_beautify_layout(
    people: list[Person],
    config: LayoutConfig | None = None,
    graph: nx.DiGraph | None = None,
) -> dict[str, Position]:
    """Lay out every person in the snapshot, keeping sibling clusters together."""
    config = config or LayoutConfig()
    G = graph if graph is not None else build_graph(people)
    if G.number_of_nodes() == 0:
        return {}

    generation_of = birth_year_generations(
        people, years_per_generation=config.years_per_generation, seed_all=True, graph=G
    )
    positions: dict[str, Position] = {}

    # Branches side by side
    branches = build_branches(G)
    branch_x = 0.0
    for members in branches:
        width = 0.0
        for generation, row in sorted(_rows(members, generation_of).items()):
            y = generation * config.row_height
            x = branch_x
            for index, group in enumerate(build_sibling_groups(G, row)):
                if index > 0:
                    x += config.family_unit_gap
                x = _place_group(group, x, y, config, positions)
            width = max(width, x - branch_x)
        branch_x += width + config.branch_gap

    # Parents above the middle of their children, youngest row first
    all_rows = _rows(G.nodes, generation_of)
    for generation in sorted(all_rows, reverse=True):
        for group in build_sibling_groups(G, all_rows[generation]):
            child_xs = [positions[c].x for c in group.children(G) if c in positions]
            if not child_xs:
                continue
            group_xs = [positions[m].x for m in group.member_ids]
            offset = (min(child_xs) + max(child_xs)) / 2 - (min(group_xs) + max(group_xs)) / 2
            for member_id in group.member_ids:
                positions[member_id] = positions[member_id].shifted(dx=offset)

    positions = resolve_overlaps(positions, generation_of, config.min_gap)
    positions = recenter(positions)

    logger.debug(
        "Beautify layout placed %d people in %d branch(es)", len(positions), len(branches)
    )
    return positions
