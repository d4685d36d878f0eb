"""Generation numbers for people in a relationship graph.

Two policies live here:

* ``assign_generations`` walks outward from a chosen root (generation 0) and is
  what the hierarchical layout and the tree edge builder use.
* ``birth_year_generations`` seeds generations from birth years and relaxes them
  over parent/child and spouse edges in a bounded number of passes (beautify).
* ``bfs_generations`` seeds the roots from birth years and spreads breadth-first
  down to every descendant however deep the tree is (genealogy).

The birth-year policies need no root and cope with several unconnected family
branches.
"""

import hashlib
import json
import logging
import math
from collections import deque

import networkx as nx

from kinship_atlas.exceptions import DataQualityError
from kinship_atlas.graph import build_graph, children_of, parents_of, spouses_of
from kinship_atlas.models import (
    CHILD,
    PARENT,
    SIBLING,
    SPOUSE,
    GenerationResult,
    Person,
)

logger = logging.getLogger(__name__)

DEFAULT_EARLIEST_YEAR = 1900
DEFAULT_YEARS_PER_GENERATION = 25
MAX_RELAXATION_PASSES = 10

_OFFSETS = {PARENT: -1, CHILD: 1, SPOUSE: 0, SIBLING: 0}
_TRAVERSAL_ORDER = (PARENT, CHILD, SPOUSE, SIBLING)


def _ordered_relatives(G: nx.DiGraph, person_id: str) -> list[tuple[str, str]]:
    return [
        (other, rel_type)
        for rel_type in _TRAVERSAL_ORDER
        for other, data in G.adj[person_id].items()
        if data["relationship_type"] == rel_type
    ]


def _should_propagate(rel_type: str, current: int | None, expected: int) -> bool:
    if current is None:
        return True
    if rel_type == PARENT:
        return current > expected
    if rel_type == CHILD:
        return current < expected
    return current != expected


def assign_generations(
    people: list[Person],
    root_id: str,
    graph: nx.DiGraph | None = None,
    strict: bool = False,
) -> GenerationResult:
    """
    Propagate generation numbers depth-first from `root_id` (generation 0).

    Parent edges push generation - 1, child edges generation + 1, spouse and
    sibling edges the same generation. A relative is (re)assigned when it has no
    generation yet, when a parent would move strictly further up, when a child
    would move strictly further down, or when a spouse/sibling differs. A person
    is expanded at most once, so relation cycles terminate; contradictory data
    resolves by visiting order.

    Args:
        people: Snapshot of people and their relations
        root_id: Person at generation 0
        graph: Prebuilt graph for `people`, to avoid rebuilding it
        strict: Raise DataQualityError when the result violates a relation

    Returns:
        GenerationResult; empty when `people` is empty or the root is unknown
    """
    G = graph if graph is not None else build_graph(people)
    if root_id not in G:
        if people:
            logger.warning("Root %s is not part of the snapshot", root_id)
        return GenerationResult.empty()

    generations: dict[str, int] = {root_id: 0}
    discovery: list[str] = [root_id]
    processed: set[str] = {root_id}

    # Explicit stack of (person, generation at visit time, pending relatives)
    # mirrors a recursive depth-first walk without the recursion limit.
    stack = [(root_id, 0, iter(_ordered_relatives(G, root_id)))]
    while stack:
        _, generation, pending = stack[-1]
        for other, rel_type in pending:
            expected = generation + _OFFSETS[rel_type]
            if not _should_propagate(rel_type, generations.get(other), expected):
                continue
            if other not in generations:
                discovery.append(other)
            generations[other] = expected
            if other not in processed:
                processed.add(other)
                stack.append((other, expected, iter(_ordered_relatives(G, other))))
                break
        else:
            stack.pop()

    buckets: dict[int, list[str]] = {}
    for person_id in discovery:
        buckets.setdefault(generations[person_id], []).append(person_id)

    result = GenerationResult(
        generations=generations,
        buckets=dict(sorted(buckets.items())),
        processed=processed,
    )

    if strict:
        conflicts = find_generation_conflicts(G, generations)
        if conflicts:
            raise DataQualityError(conflicts)
    return result


def find_root_ids(G: nx.DiGraph) -> list[str]:
    """People with no recorded parent in the snapshot, in input order."""
    return [person_id for person_id in G.nodes if not parents_of(G, person_id)]


def _seed_generation(birth_year: int | None, earliest_year: int, years_per_generation: int) -> int:
    year = birth_year if birth_year is not None else earliest_year
    return math.floor((year - earliest_year) / years_per_generation)


def _birth_years(people: list[Person], G: nx.DiGraph) -> tuple[dict[str, int | None], int]:
    years = {p.id: p.birth_year for p in people if p.id in G}
    known_years = [y for y in years.values() if y is not None]
    return years, min(known_years) if known_years else DEFAULT_EARLIEST_YEAR


def birth_year_generations(
    people: list[Person],
    years_per_generation: int = DEFAULT_YEARS_PER_GENERATION,
    seed_all: bool = False,
    max_passes: int = MAX_RELAXATION_PASSES,
    graph: nx.DiGraph | None = None,
) -> dict[str, int]:
    """
    Assign generations from birth years, refined by the relation structure.

    Roots (people with no recorded parent) are seeded with
    ``floor((birth_year - earliest_year) / years_per_generation)``; with
    `seed_all` everyone is seeded (an unknown birth year counts as the earliest
    one). At most `max_passes` relaxation passes then push each child strictly
    below its parents; a generation only ever increases there. Anyone still
    unassigned falls back to the birth year seed, spouse pairs are pulled to
    the smaller of their two generations, and the result is shifted so the
    smallest generation is 0.
    """
    if years_per_generation <= 0:
        raise ValueError("years_per_generation must be positive")

    G = graph if graph is not None else build_graph(people)
    if G.number_of_nodes() == 0:
        return {}

    years, earliest_year = _birth_years(people, G)

    seeded = G.nodes if seed_all else find_root_ids(G)
    generations = {
        person_id: _seed_generation(years.get(person_id), earliest_year, years_per_generation)
        for person_id in seeded
    }

    for _ in range(max_passes):
        changed = False
        for person_id in G.nodes:
            generation = generations.get(person_id)
            if generation is None:
                continue
            for child_id in children_of(G, person_id):
                current = generations.get(child_id)
                if current is None or current <= generation:
                    generations[child_id] = generation + 1
                    changed = True
            for spouse_id in spouses_of(G, person_id):
                if spouse_id not in generations:
                    generations[spouse_id] = generation
                    changed = True
        if not changed:
            break
    else:
        logger.debug("Generation relaxation stopped after %d passes", max_passes)

    for person_id in G.nodes:
        if person_id not in generations:
            generations[person_id] = _seed_generation(
                years.get(person_id), earliest_year, years_per_generation
            )

    for person_id in G.nodes:
        for spouse_id in spouses_of(G, person_id):
            low = min(generations[person_id], generations[spouse_id])
            generations[person_id] = generations[spouse_id] = low

    lowest = min(generations.values())
    return {person_id: generations[person_id] - lowest for person_id in G.nodes}


def bfs_generations(
    people: list[Person],
    years_per_generation: int = DEFAULT_YEARS_PER_GENERATION,
    graph: nx.DiGraph | None = None,
) -> dict[str, int]:
    """
    Birth-year-seeded generations spread breadth-first from the roots.

    Roots (people with no recorded parent) get their birth-year seed. A child
    moves to one below the deepest parent seen so far and is revisited each
    time it moves, so its own descendants follow. A spouse takes the
    generation of the first partner to reach them and is never moved by that
    partner afterwards. People no root reaches fall back to their seed. The
    result is shifted so the smallest generation is 0.
    """
    if years_per_generation <= 0:
        raise ValueError("years_per_generation must be positive")

    G = graph if graph is not None else build_graph(people)
    if G.number_of_nodes() == 0:
        return {}

    years, earliest_year = _birth_years(people, G)
    roots = find_root_ids(G)
    generations = {
        person_id: _seed_generation(years.get(person_id), earliest_year, years_per_generation)
        for person_id in roots
    }

    # A parent cycle reachable from a root would push its members down forever
    max_moves = G.number_of_nodes()
    moves: dict[str, int] = {}
    visited = set(roots)
    queue = deque(roots)
    while queue:
        person_id = queue.popleft()
        generation = generations[person_id]
        for child_id in children_of(G, person_id):
            current = generations.get(child_id)
            if current is None or current <= generation:
                generations[child_id] = generation + 1
                moves[child_id] = moves.get(child_id, 0) + 1
                if moves[child_id] <= max_moves:
                    visited.add(child_id)
                    queue.append(child_id)
            elif child_id not in visited:
                visited.add(child_id)
                queue.append(child_id)
        for spouse_id in spouses_of(G, person_id):
            if spouse_id not in generations:
                generations[spouse_id] = generation
            if spouse_id not in visited:
                visited.add(spouse_id)
                queue.append(spouse_id)

    for person_id in G.nodes:
        if person_id not in generations:
            generations[person_id] = _seed_generation(
                years.get(person_id), earliest_year, years_per_generation
            )

    lowest = min(generations.values())
    return {person_id: generations[person_id] - lowest for person_id in G.nodes}


def find_generation_conflicts(G: nx.DiGraph, generations: dict[str, int]) -> list[str]:
    """
    Describe every relation whose endpoints break the generation invariants.

    A parent must sit exactly one generation above its child; spouses and
    siblings must share a generation. Pairs without a generation are ignored.
    """
    warnings: list[str] = []
    seen: set[frozenset] = set()
    for u, v, data in G.edges(data=True):
        pair = frozenset((u, v))
        if pair in seen or u not in generations or v not in generations:
            continue
        seen.add(pair)
        rel_type = data["relationship_type"]
        expected = generations[u] + _OFFSETS[rel_type]
        if generations[v] != expected:
            warnings.append(
                f"{G.nodes[v].get('person_name', v)} is recorded as "
                f"{G.nodes[u].get('person_name', u)}'s {rel_type} but their generations are "
                f"{generations[v]} and {generations[u]}"
            )
    return warnings


def snapshot_fingerprint(people: list[Person]) -> str:
    """Content hash of a snapshot; equal snapshots (same order) hash equally."""
    payload = [
        [
            p.id,
            p.first_name,
            p.last_name,
            p.gender,
            p.birth_date,
            [[r.id, r.type, r.person_id] for r in p.relations],
        ]
        for p in people
    ]
    return hashlib.sha256(json.dumps(payload, separators=(",", ":")).encode()).hexdigest()


class GenerationCache:
    """
    Memoizes ``assign_generations`` per (root, snapshot content).

    Owned by the caller and passed where needed; entries live until
    ``invalidate`` is called. Returned results are shared, treat them as
    read-only.
    """

    def __init__(self, max_entries: int = 32):
        self.max_entries = max_entries
        self._entries: dict[tuple[str, str], GenerationResult] = {}
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, people: list[Person], root_id: str, graph: nx.DiGraph | None = None) -> GenerationResult:
        key = (root_id, snapshot_fingerprint(people))
        if key in self._entries:
            self.hits += 1
            return self._entries[key]

        self.misses += 1
        result = assign_generations(people, root_id, graph=graph)
        if len(self._entries) >= self.max_entries:
            # Oldest entry first: dicts keep insertion order
            self._entries.pop(next(iter(self._entries)))
        self._entries[key] = result
        return result

    def invalidate(self, root_id: str | None = None) -> None:
        """Drop every entry, or only the entries for one root."""
        if root_id is None:
            self._entries.clear()
            return
        for key in [k for k in self._entries if k[0] == root_id]:
            del self._entries[key]
