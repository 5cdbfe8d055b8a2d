"""Data models for package identity, feed records and manifest entries."""

from __future__ import annotations

import functools
import weakref
from dataclasses import dataclass, field
from typing import Any, List, Optional

from .compare import compare_versions, is_prerelease
from .ranges import VersionRange


@dataclass(frozen=True)
class PackageIdentifier:
    """A package id and version. Identity is the (id, version) pair."""
    id: str
    version: str

    @property
    def is_prerelease(self) -> bool:
        return is_prerelease(self.version)

    def in_range(self, range_str: str) -> bool:
        """True when this identifier's version lies inside the given range."""
        return VersionRange.parse(range_str).includes(self.version)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PackageIdentifier):
            return NotImplemented
        return self.id == other.id and self.version == other.version

    def __hash__(self) -> int:
        return hash((self.id, self.version))

    def __str__(self) -> str:
        return f"{self.id}.{self.version}"


@dataclass(frozen=True, eq=False)
class PackageRecord(PackageIdentifier):
    """Package metadata read from a feed entry or a local archive."""
    title: str = ""
    description: str = ""
    release_notes: str = ""
    license_url: str = ""
    icon_url: str = ""
    download_url: str = ""
    dependencies: List[PackageIdentifier] = field(default_factory=list)
    _source_ref: Optional[weakref.ReferenceType] = field(default=None, init=False, repr=False)

    @property
    def source(self) -> Optional[Any]:
        """The package source that produced this record, if still alive."""
        return self._source_ref() if self._source_ref is not None else None

    def attach_source(self, value: Optional[Any]) -> None:
        """Set the weak back-link. The only field that changes after construction."""
        ref = weakref.ref(value) if value is not None else None
        object.__setattr__(self, "_source_ref", ref)

    __hash__ = PackageIdentifier.__hash__


@dataclass
class ManifestEntry:
    """One ``<package>`` element of a packages.config manifest."""
    id: str
    version: str
    target_framework: Optional[str] = None
    allowed_versions: Optional[str] = None
    development_dependency: bool = False

    def to_identifier(self) -> PackageIdentifier:
        return PackageIdentifier(self.id, self.version)


def compare_identifiers(first: PackageIdentifier, second: PackageIdentifier) -> int:
    """Order by ordinal id first, then by version."""
    if first.id != second.id:
        return -1 if first.id < second.id else 1
    return compare_versions(first.version, second.version)


identifier_sort_key = functools.cmp_to_key(compare_identifiers)


def sort_identifiers(items, *, reverse: bool = False) -> list:
    """Return a new list ordered by id then version."""
    return sorted(items, key=identifier_sort_key, reverse=reverse)

