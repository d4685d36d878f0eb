"""Coordinate post-processing shared by the layout strategies."""

from kinship_atlas.models import Position


def resolve_overlaps(
    positions: dict[str, Position],
    generation_of: dict[str, int],
    min_gap: float,
) -> dict[str, Position]:
    """
    Push people apart until neighbours in a generation are at least `min_gap` apart.

    Each generation is sorted by x (ties by id). Whenever a person sits closer
    than `min_gap` to its left neighbour, it and everyone to its right move
    right by the deficit. Relative order never changes.
    """
    resolved = dict(positions)
    by_generation: dict[int, list[str]] = {}
    for person_id in positions:
        by_generation.setdefault(generation_of.get(person_id, 0), []).append(person_id)

    for members in by_generation.values():
        ordered = sorted(members, key=lambda pid: (resolved[pid].x, pid))
        shift = 0.0
        previous_x = None
        for person_id in ordered:
            x = resolved[person_id].x + shift
            if previous_x is not None and x - previous_x < min_gap:
                shift += min_gap - (x - previous_x)
                x = previous_x + min_gap
            resolved[person_id] = Position(x, resolved[person_id].y)
            previous_x = x
    return resolved


def recenter(positions: dict[str, Position]) -> dict[str, Position]:
    """Shift everything horizontally so the bounding box is centered on x = 0."""
    if not positions:
        return {}
    xs = [pos.x for pos in positions.values()]
    offset = -(min(xs) + max(xs)) / 2
    return {pid: pos.shifted(dx=offset) for pid, pos in positions.items()}


def center_rows(positions: dict[str, Position], generation_of: dict[str, int]) -> dict[str, Position]:
    """Center each generation row on x = 0 independently."""
    rows: dict[int, dict[str, Position]] = {}
    for person_id, pos in positions.items():
        rows.setdefault(generation_of.get(person_id, 0), {})[person_id] = pos
    centered: dict[str, Position] = {}
    for row in rows.values():
        centered.update(recenter(row))
    return {pid: centered[pid] for pid in positions}


def flip_vertical(positions: dict[str, Position]) -> dict[str, Position]:
    """Mirror rows so the top row ends up at the largest y (bottom-up charts)."""
    if not positions:
        return {}
    top = min(pos.y for pos in positions.values())
    bottom = max(pos.y for pos in positions.values())
    return {pid: Position(pos.x, top + bottom - pos.y) for pid, pos in positions.items()}


def translate(positions: dict[str, Position], dx: float = 0.0, dy: float = 0.0) -> dict[str, Position]:
    return {pid: pos.shifted(dx, dy) for pid, pos in positions.items()}


def normalize_zero(positions: dict[str, Position]) -> dict[str, Position]:
    """Replace -0.0 with 0.0 so equal layouts compare and serialize identically."""
    return {pid: Position(pos.x + 0.0, pos.y + 0.0) for pid, pos in positions.items()}
