"""Version string comparison.

Versions look like ``major.minor[.patch[.build]][-prerelease]``. Parsing is
tolerant: anything unparseable is reported and sorts lowest, so a single bad
version never aborts a sort or filter.
"""
from __future__ import annotations

import logging
from typing import Tuple

logger = logging.getLogger(__name__)

PRERELEASE_SEPARATOR = "-"


def _parse(version: str) -> Tuple[Tuple[int, int, int, int], str]:
    """Split a version into its four numeric fields and prerelease tag.

    Raises:
        ValueError: When major/minor are missing or a field is not an integer.
    """
    core, _, prerelease = version.partition(PRERELEASE_SEPARATOR)
    fields = core.split(".")
    if len(fields) < 2:
        raise ValueError(f"missing minor version in {version!r}")
    major = int(fields[0])
    minor = int(fields[1])
    patch = int(fields[2]) if len(fields) >= 3 else 0
    build = int(fields[3]) if len(fields) >= 4 else 0
    return (major, minor, patch, build), prerelease


def _sign(a, b) -> int:
    return (a > b) - (a < b)


def compare_versions(version_a: str, version_b: str) -> int:
    """Compare two version strings.

    Returns -1, 0 or +1. Numeric fields are compared first. When they are
    equal a prerelease sorts below the release of the same number, and two
    prerelease tags are compared as plain strings.

    Any parse failure returns -1 and is logged.
    """
    try:
        numbers_a, pre_a = _parse(version_a)
        numbers_b, pre_b = _parse(version_b)
    except (ValueError, AttributeError, TypeError):
        logger.error("Compare error: %s %s", version_a, version_b)
        return -1

    for field_a, field_b in zip(numbers_a, numbers_b):
        result = _sign(field_a, field_b)
        if result:
            return result
    if pre_a and not pre_b:
        return -1
    if pre_b and not pre_a:
        return 1
    return _sign(pre_a, pre_b)


def is_prerelease(version: str) -> bool:
    """True when the version carries a prerelease tag."""
    return PRERELEASE_SEPARATOR in (version or "")
