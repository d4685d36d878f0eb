"""Data-quality checks for a people snapshot."""

import networkx as nx

from kinship_atlas.dates import parse_date_string
from kinship_atlas.generations import birth_year_generations, find_generation_conflicts
from kinship_atlas.graph import build_graph
from kinship_atlas.models import CHILD, RELATION_TYPES, Person

MIN_PARENT_AGE = 12


def find_dangling_relations(people: list[Person]) -> list[str]:
    known = {person.id for person in people}
    warnings = []
    for person in people:
        for rel in person.relations:
            if rel.type not in RELATION_TYPES:
                warnings.append(f"Unknown relation type {rel.type!r} on {person.full_name} ({rel.id})")
            elif rel.person_id not in known:
                warnings.append(
                    f"Dangling: {person.full_name} has a {rel.type} relation to unknown person {rel.person_id}"
                )
    return warnings


def validate_graph(G: nx.DiGraph, birth_dates: dict[str, str], death_dates: dict[str, str]) -> list[str]:
    """
    Validate the relationship graph for:
    - Cycles in parent-child relationships
    - Impossible ages (child born before parent, parent younger than 12)
    - Death before birth

    Returns a list of warning messages.
    """
    warnings: list[str] = []

    # Edges parent -> child only
    parent_edges = [(u, v) for u, v, d in G.edges(data=True) if d.get("relationship_type") == CHILD]
    parent_graph = nx.DiGraph(parent_edges)

    try:
        cycle = nx.find_cycle(parent_graph, orientation="original")
        cycle_nodes = [edge[0] for edge in cycle]
        warnings.append(f"Cycle detected in parent-child relationships: {cycle_nodes}")
    except nx.NetworkXNoCycle:
        pass

    # ISO dates compare correctly as strings
    for parent, child in parent_edges:
        parent_birth = birth_dates.get(parent)
        child_birth = birth_dates.get(child)
        if not (parent_birth and child_birth):
            continue
        parent_name = G.nodes[parent].get("person_name")
        child_name = G.nodes[child].get("person_name")
        if child_birth < parent_birth:
            warnings.append(f"Impossible: {child_name} born before parent {parent_name}")
        elif int(child_birth[:4]) - int(parent_birth[:4]) < MIN_PARENT_AGE:
            warnings.append(
                f"Suspicious: {parent_name} was less than {MIN_PARENT_AGE} years old when {child_name} was born"
            )

    for person_id, death in death_dates.items():
        birth = birth_dates.get(person_id)
        if birth and death < birth:
            warnings.append(f"Impossible: {G.nodes[person_id].get('person_name')} died before being born")

    return warnings


def validate_people(people: list[Person], generations: dict[str, int] | None = None) -> list[str]:
    """
    All data-quality warnings for a snapshot: dangling relations, graph
    problems and relations that contradict the generation numbers.

    `generations` defaults to birth-year generations for the whole snapshot.
    """
    G = build_graph(people)
    birth_dates = {}
    death_dates = {}
    for person in people:
        birth = parse_date_string(person.birth_date)
        death = parse_date_string(person.death_date)
        if birth:
            birth_dates[person.id] = birth
        if death:
            death_dates[person.id] = death

    warnings = find_dangling_relations(people)
    warnings.extend(validate_graph(G, birth_dates, death_dates))
    if generations is None:
        generations = birth_year_generations(people, graph=G)
    warnings.extend(find_generation_conflicts(G, generations))
    return warnings
