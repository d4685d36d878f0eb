"""Relationship-graph analysis and layout for family trees."""

from kinship_atlas.collapse import CollapseState, CollapseTracker
from kinship_atlas.generations import GenerationCache, assign_generations
from kinship_atlas.layout import LayoutConfig, compute_layout
from kinship_atlas.models import Person, Position, Relation, RelationshipPath
from kinship_atlas.pathfinder import RelationshipPathFinder

__all__ = [
    "CollapseState",
    "CollapseTracker",
    "GenerationCache",
    "LayoutConfig",
    "Person",
    "Position",
    "Relation",
    "RelationshipPath",
    "RelationshipPathFinder",
    "assign_generations",
    "compute_layout",
]
