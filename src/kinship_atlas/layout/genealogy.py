"""
Genealogy layout: classic pedigree rows seeded from birth years.

Generations come from the people without recorded parents (seeded by birth
year) and flow breadth-first down parent/child edges, so unconnected family branches each
get sensible rows. Children are grouped by their parent set and each group is
centered under its parents when those are already placed. Spouses go to the
right of the person they married.
"""

import logging

import networkx as nx

from kinship_atlas.exceptions import UnknownStrategyError
from kinship_atlas.generations import bfs_generations
from kinship_atlas.graph import build_graph, parents_of, spouses_of
from kinship_atlas.layout.config import LayoutConfig
from kinship_atlas.layout.geometry import resolve_overlaps, translate
from kinship_atlas.layout.grouping import birth_order_key, parent_set_groups
from kinship_atlas.models import Person, Position

logger = logging.getLogger(__name__)

TOP_DOWN = "top-down"
BOTTOM_UP = "bottom-up"
ORIENTATIONS = (TOP_DOWN, BOTTOM_UP)


def _group_slots(
    G: nx.DiGraph,
    siblings: list[str],
    generation: int,
    generation_of: dict[str, int],
    placed: set[str],
    config: LayoutConfig,
) -> list[tuple[str, float]]:
    """Offsets of each sibling and their unplaced same-row spouses, relative to the group start."""
    slots: list[tuple[str, float]] = []
    claimed: set[str] = set()
    offset = 0.0
    for sibling_id in siblings:
        if sibling_id in placed or sibling_id in claimed:
            continue
        if slots:
            offset += config.sibling_step
        slots.append((sibling_id, offset))
        claimed.add(sibling_id)
        for spouse_id in spouses_of(G, sibling_id):
            if spouse_id in placed or spouse_id in claimed:
                continue
            if generation_of.get(spouse_id) != generation:
                continue
            offset += config.spouse_step
            slots.append((spouse_id, offset))
            claimed.add(spouse_id)
    return slots


def compute_genealogy_layout(
    people: list[Person],
    root_id: str | None = None,
    config: LayoutConfig | None = None,
    orientation: str = TOP_DOWN,
    graph: nx.DiGraph | None = None,
) -> dict[str, Position]:
    """
    Lay out every person in the snapshot in birth-year-seeded generation rows.

    Args:
        people: Snapshot of people and their relations
        root_id: Optional focus person; the layout is shifted so this person
            sits at the origin
        config: Spacing options
        orientation: "top-down" (descendants at larger y) or "bottom-up"
            (ancestors at larger y)

    Raises:
        UnknownStrategyError: for an unknown orientation
    """
    if orientation not in ORIENTATIONS:
        raise UnknownStrategyError(f"Unknown orientation: {orientation!r}")
    config = config or LayoutConfig()
    G = graph if graph is not None else build_graph(people)
    generation_of = bfs_generations(people, years_per_generation=config.years_per_generation, graph=G)
    if not generation_of:
        return {}

    order = {pid: i for i, pid in enumerate(G.nodes)}
    by_age = birth_order_key(G, order)
    rows: dict[int, list[str]] = {}
    for person_id in G.nodes:
        rows.setdefault(generation_of[person_id], []).append(person_id)
    top, bottom = min(rows), max(rows)

    positions: dict[str, Position] = {}
    placed: set[str] = set()

    for generation in sorted(rows):
        unplaced = [pid for pid in rows[generation] if pid not in placed]
        if not unplaced:
            continue
        if orientation == TOP_DOWN:
            y = (generation - top) * config.row_height
        else:
            y = (bottom - generation) * config.row_height

        groups = [sorted(group, key=by_age) for group in parent_set_groups(G, unplaced)]

        # Row width if every group were placed one after another
        spans = []
        claimed: set[str] = set(placed)
        for siblings in groups:
            slots = _group_slots(G, siblings, generation, generation_of, claimed, config)
            claimed.update(pid for pid, _ in slots)
            spans.append(slots[-1][1] if slots else 0.0)
        total = sum(spans) + (len(groups) - 1) * (config.node_width + config.family_unit_gap)
        cursor = -total / 2

        for siblings in groups:
            slots = _group_slots(G, siblings, generation, generation_of, placed, config)
            if not slots:
                continue
            span = slots[-1][1]
            parent_xs = [
                positions[parent_id].x
                for parent_id in parents_of(G, siblings[0])
                if parent_id in positions
            ]
            start = sum(parent_xs) / len(parent_xs) - span / 2 if parent_xs else cursor
            for person_id, offset in slots:
                positions[person_id] = Position(start + offset, y)
                placed.add(person_id)
            cursor += span + config.node_width + config.family_unit_gap

    positions = resolve_overlaps(positions, generation_of, config.min_gap)

    if root_id is not None and root_id in positions:
        focus = positions[root_id]
        positions = translate(positions, dx=-focus.x, dy=-focus.y)

    logger.debug(
        "Genealogy layout placed %d of %d people in %d rows",
        len(positions),
        G.number_of_nodes(),
        len(rows),
    )
    return positions
