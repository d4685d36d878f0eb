"""
Hierarchical layout: generations from the root's point of view, top to bottom.

Within a generation spouses sit side by side and each spouse's own siblings
are placed on that spouse's outer side; people without a spouse in the row are
grouped with their siblings. Every row is centered on x = 0.
"""

import networkx as nx

from kinship_atlas.generations import GenerationCache, assign_generations
from kinship_atlas.graph import build_graph, spouses_of
from kinship_atlas.layout.config import LayoutConfig
from kinship_atlas.layout.geometry import center_rows, resolve_overlaps
from kinship_atlas.layout.grouping import pair_spouses, sibling_clusters
from kinship_atlas.models import Person, Position


def _row_groups(G: nx.DiGraph, row: list[str], spouse_pairs: dict[str, str]) -> list[list[str]]:
    in_row = set(row)
    cluster_of: dict[str, list[str]] = {}
    for cluster in sibling_clusters(G, row):
        for person_id in cluster:
            cluster_of[person_id] = cluster

    processed: set[str] = set()
    groups: list[list[str]] = []

    def unprocessed_siblings(person_id: str) -> list[str]:
        return sorted(pid for pid in cluster_of[person_id] if pid != person_id and pid not in processed)

    for person_id in row:
        if person_id in processed:
            continue
        spouse_id = spouse_pairs.get(person_id)

        if spouse_id in in_row and spouse_id not in processed:
            processed.update((person_id, spouse_id))
            left = unprocessed_siblings(person_id)
            processed.update(left)
            right = unprocessed_siblings(spouse_id)
            processed.update(right)
            groups.append(left + [person_id, spouse_id] + right)
            continue

        group: list[str] = []
        for member_id in [pid for pid in cluster_of[person_id] if pid not in processed]:
            if member_id in processed:
                continue
            group.append(member_id)
            processed.add(member_id)
            partner = spouse_pairs.get(member_id)
            if partner in in_row and partner not in processed:
                group.append(partner)
                processed.add(partner)
        groups.append(group)
    return groups


def compute_hierarchical_layout(
    people: list[Person],
    root_id: str,
    config: LayoutConfig | None = None,
    graph: nx.DiGraph | None = None,
    generation_cache: GenerationCache | None = None,
) -> dict[str, Position]:
    """
    Place everyone reachable from `root_id`, one row per generation.

    Root generations come from `generation_cache` when one is given. Returns
    an empty mapping for empty input or an unknown root.
    """
    config = config or LayoutConfig()
    G = graph if graph is not None else build_graph(people)
    if generation_cache is not None:
        result = generation_cache.get(people, root_id, graph=G)
    else:
        result = assign_generations(people, root_id, graph=G)
    if not result.generations:
        return {}

    order = list(result.generations)
    spouse_pairs = pair_spouses(G, order)
    top = min(result.buckets)
    positions: dict[str, Position] = {}

    for generation, row in result.buckets.items():
        y = (generation - top) * config.row_height
        x = 0.0
        for group in _row_groups(G, row, spouse_pairs):
            for index, person_id in enumerate(group):
                positions[person_id] = Position(x, y)
                if index < len(group) - 1:
                    next_id = group[index + 1]
                    married = next_id in spouses_of(G, person_id)
                    x += config.spouse_step if married else config.sibling_step
            x += config.node_width + config.family_unit_gap

    positions = center_rows(positions, result.generations)
    return resolve_overlaps(positions, result.generations, config.min_gap)
