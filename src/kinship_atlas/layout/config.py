"""Spacing options shared by every layout strategy."""

import re
from dataclasses import dataclass, fields

from kinship_atlas.exceptions import LayoutConfigError


@dataclass(frozen=True)
class LayoutConfig:
    node_width: float = 180
    node_height: float = 120
    spouse_gap: float = 40  # between spouses
    sibling_gap: float = 60  # between siblings and unrelated neighbours
    generation_gap: float = 80  # vertical gap between generation rows
    family_unit_gap: float = 80  # between sibling groups / family units
    branch_gap: float = 300  # between unconnected family branches
    years_per_generation: int = 25
    min_spacing: float | None = None  # defaults to node_width + sibling_gap / 2

    @classmethod
    def from_mapping(cls, options: dict) -> "LayoutConfig":
        """
        Build a config from a mapping that may use camelCase option names
        (``nodeWidth``, ``spouseGap``, ...) as well as the field names.
        """
        known = {f.name for f in fields(cls)}
        values = {}
        for key, value in options.items():
            name = re.sub(r"(?<!^)(?=[A-Z])", "_", key).lower()
            if name not in known:
                raise LayoutConfigError(f"Unknown layout option: {key}")
            values[name] = value
        return cls(**values)

    @property
    def row_height(self) -> float:
        return self.node_height + self.generation_gap

    @property
    def spouse_step(self) -> float:
        """Distance between two spouses placed side by side."""
        return self.node_width + self.spouse_gap

    @property
    def sibling_step(self) -> float:
        """Distance between two siblings (or unrelated people) in the same group."""
        return self.node_width + self.sibling_gap

    @property
    def min_gap(self) -> float:
        """Smallest allowed distance between two people in one generation."""
        if self.min_spacing is not None:
            return self.min_spacing
        return self.node_width + self.sibling_gap / 2

    def validate(self) -> "LayoutConfig":
        """
        Reject options that would give overlapping or negative coordinates.

        Raises:
            LayoutConfigError: on the first offending option
        """
        for name in (
            "node_width",
            "node_height",
            "spouse_gap",
            "sibling_gap",
            "generation_gap",
            "family_unit_gap",
            "branch_gap",
            "years_per_generation",
        ):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise LayoutConfigError(f"{name} must be a number, got {value!r}")
            if value <= 0:
                raise LayoutConfigError(f"{name} must be positive, got {value}")

        if self.spouse_gap >= self.sibling_gap:
            raise LayoutConfigError(
                f"spouse_gap ({self.spouse_gap}) must be smaller than sibling_gap "
                f"({self.sibling_gap}) so spouses sit closer than other neighbours"
            )
        if self.min_spacing is not None and self.min_spacing < self.node_width:
            raise LayoutConfigError(
                f"min_spacing ({self.min_spacing}) is smaller than node_width ({self.node_width})"
            )
        return self
