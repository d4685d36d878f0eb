"""
Command line entry point.

    kinship-atlas generations family.json --root p1
    kinship-atlas path family.ged I1 I42
    kinship-atlas layout family.json --root p1 --strategy genealogy --db tree.db
    kinship-atlas validate family.ged
"""

import argparse
import json
import logging
import sys

from kinship_atlas.exceptions import KinshipError
from kinship_atlas.generations import assign_generations, birth_year_generations
from kinship_atlas.graph import build_graph, get_ego_subgraph, get_lineage_subgraph
from kinship_atlas.layout import ORIENTATIONS, STRATEGIES, LayoutConfig, compute_layout
from kinship_atlas.parsing import load_people
from kinship_atlas.pathfinder import RelationshipPathFinder
from kinship_atlas.store import SQLiteLayoutStore
from kinship_atlas.validation import validate_people

logger = logging.getLogger(__name__)

MAX_WARNINGS_SHOWN = 10


def cmd_generations(args, people) -> int:
    if args.birth_years:
        generations = birth_year_generations(people, seed_all=True)
    else:
        result = assign_generations(people, args.root, strict=args.strict)
        generations = result.generations
    if not generations:
        print("No generations: empty snapshot or unknown root")
        return 1

    names = {person.id: person.full_name for person in people}
    for generation in sorted(set(generations.values())):
        members = [pid for pid, gen in generations.items() if gen == generation]
        print(f"Generation {generation}: " + ", ".join(names[pid] for pid in members))
    return 0


def cmd_path(args, people) -> int:
    finder = RelationshipPathFinder(people)
    path = finder.find_path(args.from_id, args.to_id)
    if path is None:
        print(f"No relationship found between {args.from_id} and {args.to_id}")
        return 1
    if args.json:
        print(json.dumps(path.to_dict(), indent=2))
        return 0
    print(path.relationship_description)
    print(f"  Distance: {path.distance}, blood relative: {'yes' if path.is_blood_relative else 'no'}")
    for step in path.detailed_path:
        print(f"    - {step.description}")
    return 0


def focus_people(people, root_id: str, radius: int | None = None, lineage: str | None = None):
    """
    Narrow a snapshot to the people around `root_id`.

    With `lineage` ("male" or "female") the root's line through parents of that
    gender is kept, with `radius` relation steps around each person on it
    (default 1). Otherwise everyone within `radius` steps of the root is kept
    (default 2).
    An unknown root leaves the snapshot unchanged.
    """
    G = build_graph(people)
    if root_id not in G:
        return people
    if lineage:
        sub = get_lineage_subgraph(G, root_id, gender=lineage, radius=1 if radius is None else radius)
    else:
        sub = get_ego_subgraph(G, root_id, radius=2 if radius is None else radius)
    return [person for person in people if person.id in sub]


def cmd_layout(args, people) -> int:
    if args.radius is not None or args.lineage:
        people = focus_people(people, args.root, radius=args.radius, lineage=args.lineage)
    config = LayoutConfig(
        node_width=args.node_width,
        node_height=args.node_height,
        spouse_gap=args.spouse_gap,
        sibling_gap=args.sibling_gap,
        generation_gap=args.generation_gap,
    )
    store = SQLiteLayoutStore.open(args.db) if args.db else None
    seed = store.load_layout() if store and args.use_seed else None

    positions = compute_layout(
        people,
        args.root,
        config=config,
        strategy=args.strategy,
        orientation=args.orientation,
        seed=seed,
        use_seed=args.use_seed,
        reachable_only=not args.everyone,
        max_people=args.max_people,
        strict=args.strict,
    )
    if store is not None:
        store.save_layout(positions)
        store.conn.close()
        print(f"Stored {len(positions)} positions in {args.db}")

    print(json.dumps({pid: {"x": pos.x, "y": pos.y} for pid, pos in positions.items()}, indent=2))
    return 0


def cmd_validate(args, people) -> int:
    print("Validating relations...")
    warnings = validate_people(people)
    if not warnings:
        print("  No validation issues found")
        return 0
    print(f"  Found {len(warnings)} validation warnings:")
    for w in warnings[:MAX_WARNINGS_SHOWN]:
        print(f"    - {w}")
    if len(warnings) > MAX_WARNINGS_SHOWN:
        print(f"    ... and {len(warnings) - MAX_WARNINGS_SHOWN} more")
    return 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="kinship-atlas", description=__doc__.strip().splitlines()[0])
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("generations", help="generation number of every person")
    p.add_argument("input", help="people snapshot (.json or .ged)")
    p.add_argument("--root", help="person at generation 0")
    p.add_argument("--birth-years", action="store_true", help="seed generations from birth years instead")
    p.add_argument("--strict", action="store_true", help="fail on contradictory relations")
    p.set_defaults(func=cmd_generations)

    p = sub.add_parser("path", help="describe how two people are related")
    p.add_argument("input")
    p.add_argument("from_id")
    p.add_argument("to_id")
    p.add_argument("--json", action="store_true", help="print the full path as JSON")
    p.set_defaults(func=cmd_path)

    p = sub.add_parser("layout", help="compute canvas positions")
    p.add_argument("input")
    p.add_argument("--root", required=True)
    p.add_argument("--strategy", choices=STRATEGIES, default="beautify")
    p.add_argument("--orientation", choices=ORIENTATIONS, default="top-down")
    p.add_argument("--node-width", type=float, default=LayoutConfig.node_width)
    p.add_argument("--node-height", type=float, default=LayoutConfig.node_height)
    p.add_argument("--spouse-gap", type=float, default=LayoutConfig.spouse_gap)
    p.add_argument("--sibling-gap", type=float, default=LayoutConfig.sibling_gap)
    p.add_argument("--generation-gap", type=float, default=LayoutConfig.generation_gap)
    p.add_argument("--everyone", action="store_true", help="also place people not connected to the root")
    p.add_argument("--radius", type=int, help="only people within this many relation steps of the root")
    p.add_argument("--lineage", choices=("male", "female"), help="only the root's paternal or maternal line")
    p.add_argument("--max-people", type=int, help="fall back to the hierarchical layout above this size")
    p.add_argument("--db", help="SQLite file to store the positions in")
    p.add_argument("--use-seed", action="store_true", help="keep positions already stored in --db")
    p.add_argument("--strict", action="store_true")
    p.set_defaults(func=cmd_layout)

    p = sub.add_parser("validate", help="report data-quality problems")
    p.add_argument("input")
    p.set_defaults(func=cmd_validate)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    if args.command == "generations" and not args.birth_years and not args.root:
        print("--root is required unless --birth-years is given", file=sys.stderr)
        return 2

    people = load_people(args.input)
    logger.info("Loaded %d people from %s", len(people), args.input)
    try:
        return args.func(args, people)
    except KinshipError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
