"""
Layout engine: turns a snapshot of people into canvas coordinates.

Three strategies share one entry point, ``compute_layout``:

* ``hierarchical``: rows from the root's point of view, spouses side by side
* ``genealogy``: pedigree rows seeded from birth years, groups under parents
* ``beautify``: like genealogy but keeps sibling clusters intact and lays out
  unconnected family branches side by side
"""

import logging
from collections.abc import Mapping

import networkx as nx

from kinship_atlas.exceptions import UnknownStrategyError
from kinship_atlas.generations import GenerationCache, assign_generations
from kinship_atlas.graph import build_graph
from kinship_atlas.layout.beautify import compute_beautify_layout
from kinship_atlas.layout.config import LayoutConfig
from kinship_atlas.layout.genealogy import (
    BOTTOM_UP,
    ORIENTATIONS,
    TOP_DOWN,
    compute_genealogy_layout,
)
from kinship_atlas.layout.geometry import flip_vertical, normalize_zero, resolve_overlaps
from kinship_atlas.layout.hierarchical import compute_hierarchical_layout
from kinship_atlas.models import Person, Position

logger = logging.getLogger(__name__)

HIERARCHICAL = "hierarchical"
GENEALOGY = "genealogy"
BEAUTIFY = "beautify"
STRATEGIES = (HIERARCHICAL, GENEALOGY, BEAUTIFY)

__all__ = [
    "BEAUTIFY",
    "BOTTOM_UP",
    "GENEALOGY",
    "HIERARCHICAL",
    "LayoutConfig",
    "ORIENTATIONS",
    "STRATEGIES",
    "TOP_DOWN",
    "compute_layout",
    "reachable_people",
    "resolve_overlaps",
]


def reachable_people(people: list[Person], root_id: str, graph: nx.DiGraph | None = None) -> list[Person]:
    """The people connected to `root_id` by any chain of relations, in input order."""
    G = graph if graph is not None else build_graph(people)
    if root_id not in G:
        return []
    component = nx.node_connected_component(G.to_undirected(as_view=True), root_id)
    return [person for person in people if person.id in component]


def _apply_seed(
    positions: dict[str, Position],
    seed: Mapping[str, object],
) -> dict[str, Position]:
    seeded = dict(positions)
    for person_id, value in seed.items():
        if person_id not in seeded:
            continue
        if isinstance(value, Position):
            seeded[person_id] = value
        elif isinstance(value, Mapping):
            seeded[person_id] = Position(float(value["x"]), float(value["y"]))
        else:
            x, y = value
            seeded[person_id] = Position(float(x), float(y))
    return seeded


def compute_layout(
    people: list[Person],
    root_id: str,
    config: LayoutConfig | Mapping | None = None,
    strategy: str = BEAUTIFY,
    orientation: str = TOP_DOWN,
    seed: Mapping[str, object] | None = None,
    use_seed: bool = False,
    reachable_only: bool = True,
    max_people: int | None = None,
    strict: bool = False,
    generation_cache: GenerationCache | None = None,
) -> dict[str, Position]:
    """
    Compute a position for every person in the layout.

    Args:
        people: Snapshot of people and their relations
        root_id: Person the layout is built around
        config: LayoutConfig, or a mapping of options (camelCase accepted)
        strategy: "hierarchical", "genealogy" or "beautify"
        orientation: "top-down" or "bottom-up"
        seed: Prior positions keyed by person id, e.g. from a layout store
        use_seed: Keep seeded positions for people still in the snapshot
            instead of the computed ones
        reachable_only: Only lay out people connected to `root_id`
        max_people: Above this many people fall back to the hierarchical
            strategy
        strict: Raise DataQualityError when generations contradict the
            relation data
        generation_cache: Caller-owned cache of root generations, reused by
            the hierarchical strategy across calls

    Returns:
        Mapping of person id to Position; empty for empty input or an
        unknown root

    Raises:
        LayoutConfigError: for invalid spacing options
        UnknownStrategyError: for an unknown strategy or orientation
        DataQualityError: in strict mode, for contradictory relations
    """
    if config is None:
        config = LayoutConfig()
    elif isinstance(config, Mapping):
        config = LayoutConfig.from_mapping(config)
    config.validate()

    if strategy not in STRATEGIES:
        raise UnknownStrategyError(f"Unknown layout strategy: {strategy!r}")
    if orientation not in ORIENTATIONS:
        raise UnknownStrategyError(f"Unknown orientation: {orientation!r}")

    G = build_graph(people)
    if root_id not in G:
        if people:
            logger.info("Root %s is not in the snapshot; nothing to lay out", root_id)
        return {}

    if reachable_only:
        selected = reachable_people(people, root_id, graph=G)
        if len(selected) != len(people):
            G = build_graph(selected)
    else:
        selected = people

    if strict:
        assign_generations(selected, root_id, graph=G, strict=True)

    if max_people is not None and len(selected) > max_people and strategy != HIERARCHICAL:
        logger.warning(
            "%d people exceed max_people=%d; using the %s strategy instead of %s",
            len(selected),
            max_people,
            HIERARCHICAL,
            strategy,
        )
        strategy = HIERARCHICAL

    if strategy == HIERARCHICAL:
        positions = compute_hierarchical_layout(
            selected, root_id, config=config, graph=G, generation_cache=generation_cache
        )
    elif strategy == GENEALOGY:
        positions = compute_genealogy_layout(
            selected, root_id, config=config, orientation=orientation, graph=G
        )
    else:
        positions = compute_beautify_layout(selected, config=config, graph=G)

    if orientation == BOTTOM_UP and strategy != GENEALOGY:
        positions = flip_vertical(positions)

    if use_seed and seed:
        positions = _apply_seed(positions, seed)

    logger.debug("Computed %s layout for %d people", strategy, len(positions))
    return normalize_zero(positions)
