"""Exceptions raised at the package boundary.

Almost nothing here raises: empty input, dangling relations, contradictory
generations and missing paths all have well-defined non-exceptional results.
Only malformed layout configuration, or strict mode explicitly requested by a
caller, surface as errors.
"""


class KinshipError(Exception):
    """Base class for errors raised by kinship_atlas."""


class LayoutConfigError(KinshipError, ValueError):
    """A layout option would produce overlapping or negative coordinates."""


class UnknownStrategyError(KinshipError, ValueError):
    """The requested layout strategy or orientation does not exist."""


class DataQualityError(KinshipError):
    """Raised in strict mode when relation data contradicts itself."""

    def __init__(self, warnings: list[str]):
        self.warnings = list(warnings)
        summary = warnings[0] if warnings else "inconsistent relation data"
        extra = f" (and {len(warnings) - 1} more)" if len(warnings) > 1 else ""
        super().__init__(f"{summary}{extra}")
