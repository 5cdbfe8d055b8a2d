"""Version comparison, ranges and package identity models."""

from .compare import compare_versions, is_prerelease  # noqa: F401
from .ranges import VersionRange, BELOW, INSIDE, ABOVE  # noqa: F401
from .models import (  # noqa: F401
    PackageIdentifier,
    PackageRecord,
    ManifestEntry,
    compare_identifiers,
    identifier_sort_key,
    sort_identifiers,
)

__all__ = [
    "compare_versions",
    "is_prerelease",
    "VersionRange",
    "BELOW",
    "INSIDE",
    "ABOVE",
    "PackageIdentifier",
    "PackageRecord",
    "ManifestEntry",
    "compare_identifiers",
    "identifier_sort_key",
    "sort_identifiers",
]
