"""Version range parsing and matching.

A range is written ``[min,max)`` with ``[``/``]`` inclusive and ``(``/``)``
exclusive, or as a bare version meaning "minimum inclusive, no maximum". A range with
no maximum and an inclusive closing bracket, e.g. ``[1.0]``, is an exact match.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .compare import compare_versions

BELOW = -1
INSIDE = 0
ABOVE = 1


@dataclass(frozen=True)
class VersionRange:
    """Parsed version interval."""

    raw: str
    minimum: str
    maximum: Optional[str]
    is_min_inclusive: bool
    is_max_inclusive: bool

    @classmethod
    def parse(cls, range_str: str) -> "VersionRange":
        text = (range_str or "").strip()
        interior = text.lstrip("[(").rstrip("])")
        minimum, sep, maximum = interior.partition(",")
        maximum = maximum.strip() if sep else None
        return cls(
            raw=text,
            minimum=minimum.strip(),
            maximum=maximum or None,
            is_min_inclusive=not text.startswith("("),
            is_max_inclusive=text.endswith("]"),
        )

    @property
    def is_exact(self) -> bool:
        return self.maximum is None and self.is_max_inclusive

    def contains(self, version: str) -> int:
        """Locate a version relative to this range.

        Returns BELOW (-1), INSIDE (0) or ABOVE (+1). An exact range returns
        the direct comparison of its version against the candidate.
        """
        if self.is_exact:
            return compare_versions(self.minimum, version)

        if self.minimum:
            compare = compare_versions(self.minimum, version)
            if compare > 0 or (compare == 0 and not self.is_min_inclusive):
                return BELOW

        if self.maximum:
            compare = compare_versions(self.maximum, version)
            if compare < 0 or (compare == 0 and not self.is_max_inclusive):
                return ABOVE

        return INSIDE

    def includes(self, version: str) -> bool:
        return self.contains(version) == INSIDE

    def __str__(self) -> str:
        return self.raw
