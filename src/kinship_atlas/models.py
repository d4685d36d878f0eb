"""Data classes for family tree entities."""

from dataclasses import dataclass, field

from kinship_atlas.dates import year_of

PARENT = "parent"
CHILD = "child"
SPOUSE = "spouse"
SIBLING = "sibling"

RELATION_TYPES = (PARENT, CHILD, SPOUSE, SIBLING)

INVERSE_RELATION = {
    PARENT: CHILD,
    CHILD: PARENT,
    SPOUSE: SPOUSE,
    SIBLING: SIBLING,
}

GENDERS = ("male", "female", "other")


@dataclass
class Relation:
    id: str
    type: str  # parent, child, spouse, sibling
    person_id: str  # the other endpoint: person_id is the owner's <type>


@dataclass
class Person:
    id: str
    first_name: str
    last_name: str
    gender: str = "other"
    birth_date: str | None = None  # ISO format YYYY-MM-DD or None
    death_date: str | None = None
    relations: list[Relation] = field(default_factory=list)

    @property
    def full_name(self) -> str:
        name = f"{self.first_name} {self.last_name}".strip()
        return name or self.id

    @property
    def birth_year(self) -> int | None:
        return year_of(self.birth_date)

    def related_ids(self, relation_type: str) -> list[str]:
        """Ids this person records under `relation_type`, in stored order."""
        return [rel.person_id for rel in self.relations if rel.type == relation_type]


@dataclass(frozen=True)
class Position:
    x: float
    y: float

    def shifted(self, dx: float = 0.0, dy: float = 0.0) -> "Position":
        return Position(self.x + dx, self.y + dy)


@dataclass
class GenerationResult:
    generations: dict[str, int]  # person id -> generation
    buckets: dict[int, list[str]]  # generation -> person ids in discovery order
    processed: set[str]  # everyone reached from the root

    @classmethod
    def empty(cls) -> "GenerationResult":
        return cls(generations={}, buckets={}, processed=set())


@dataclass
class PathStep:
    from_id: str
    to_id: str
    relation_type: str  # to_id is from_id's <relation_type>
    description: str


@dataclass
class RelationshipPath:
    path: list[str]
    detailed_path: list[PathStep]
    distance: int
    relationship_description: str
    is_blood_relative: bool
    common_ancestor: str | None = None
    relationship_term: str = ""

    def to_dict(self) -> dict:
        return {
            "path": list(self.path),
            "detailedPath": [
                {
                    "fromId": step.from_id,
                    "toId": step.to_id,
                    "relationType": step.relation_type,
                    "description": step.description,
                }
                for step in self.detailed_path
            ],
            "distance": self.distance,
            "relationshipDescription": self.relationship_description,
            "isBloodRelative": self.is_blood_relative,
            "commonAncestor": self.common_ancestor,
        }


@dataclass
class MergeInfo:
    has_merge: bool
    child_id: str
    other_parent_id: str | None = None
    all_children_ids: list[str] = field(default_factory=list)


@dataclass
class TreeEdge:
    id: str
    source: str
    target: str
    relationship_type: str
    merge_info: MergeInfo | None = None


@dataclass
class FamilyUnit:
    """A couple (or single parent) and the children they share."""

    id: str
    parents: tuple[str, ...]
    children: list[str] = field(default_factory=list)
