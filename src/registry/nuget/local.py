"""Package source backed by a local directory of ``{id}.{version}.nupkg`` files."""
from __future__ import annotations

import glob
import logging
import os
from typing import Callable, Dict, List, Optional, Sequence

from constants import Constants
from common.logging_utils import extra_context, is_debug_enabled
from versioning.compare import compare_versions
from versioning.models import (
    ManifestEntry,
    PackageIdentifier,
    PackageRecord,
    identifier_sort_key,
)
from versioning.ranges import INSIDE, VersionRange

from .config import PackageSourceConfig
from .nupkg import ArchiveError, read_nupkg
from .source import PackageSource

logger = logging.getLogger(__name__)

ArchiveOpener = Callable[[str], PackageRecord]


def _latest_per_id(packages: List[PackageRecord]) -> List[PackageRecord]:
    latest: Dict[str, PackageRecord] = {}
    for package in packages:
        current = latest.get(package.id)
        if current is None or compare_versions(package.version, current.version) > 0:
            latest[package.id] = package
    return list(latest.values())


class LocalDirectorySource(PackageSource):
    """Reads package archives straight from a directory."""

    def __init__(self, config: PackageSourceConfig, opener: Optional[ArchiveOpener] = None):
        super().__init__(config)
        self._open = opener or read_nupkg

    def _open_archive(self, path: str) -> Optional[PackageRecord]:
        try:
            return self._open(path)
        except (ArchiveError, OSError) as exc:
            logger.error("Unable to read package %s: %s", path, exc)
            return None

    def _list(
        self,
        pattern: str,
        include_all_versions: bool,
        include_prerelease: bool,
        package_id: Optional[str] = None,
    ) -> List[PackageRecord]:
        """Open every archive matching a glob and apply the version filters.

        Returns packages ordered highest first.
        """
        directory = self.config.expanded_path
        if not os.path.isdir(directory):
            logger.error("Local folder not found: %s", directory)
            return []

        packages: List[PackageRecord] = []
        for path in sorted(glob.glob(os.path.join(glob.escape(directory), pattern))):
            package = self._open_archive(path)
            if package is None:
                continue
            # "Foo.*.nupkg" also matches Foo.Bar packages
            if package_id is not None and package.id.lower() != package_id.lower():
                continue
            if not include_prerelease and package.is_prerelease:
                continue
            packages.append(package)

        if not include_all_versions:
            packages = _latest_per_id(packages)

        if is_debug_enabled(logger):
            logger.debug(
                "Listed local packages",
                extra=extra_context(
                    event="list", component="local_source", target=directory,
                    pattern=pattern, count=len(packages),
                ),
            )
        return self._claim(sorted(packages, key=identifier_sort_key, reverse=True))

    def find_local_packages(
        self, package_id: str, include_all_versions: bool = False, include_prerelease: bool = False
    ) -> List[PackageRecord]:
        """All local archives of one package, highest version first."""
        pattern = f"{glob.escape(package_id)}.*{Constants.PACKAGE_EXTENSION}"
        return self._list(pattern, include_all_versions, include_prerelease, package_id=package_id)

    def find_by_id(self, identifier: PackageIdentifier) -> Optional[PackageRecord]:
        path = os.path.join(
            self.config.expanded_path,
            f"{identifier.id}.{identifier.version}{Constants.PACKAGE_EXTENSION}",
        )
        if not os.path.isfile(path):
            return None
        package = self._open_archive(path)
        if package is None:
            return None
        return self._claim([package])[0]

    def find_by_range(
        self, package_id: str, version_range: str, include_prerelease: bool = False
    ) -> List[PackageRecord]:
        """Skip local versions until one is inside the range, return the rest."""
        vrange = VersionRange.parse(version_range)
        ascending = list(reversed(self.find_local_packages(package_id, True, include_prerelease)))
        for index, package in enumerate(ascending):
            if vrange.contains(package.version) == INSIDE:
                return ascending[index:]
        return []

    def search(
        self,
        term: str = "",
        include_all_versions: bool = False,
        include_prerelease: bool = False,
        page_size: int = Constants.DEFAULT_SEARCH_PAGE_SIZE,
        skip: int = 0,
    ) -> List[PackageRecord]:
        needle = term.strip().lower()
        packages = [
            p for p in self._list(f"*{Constants.PACKAGE_EXTENSION}", include_all_versions, include_prerelease)
            if needle in p.id.lower()
        ]
        return packages[skip:skip + page_size]

    def compute_updates(
        self,
        installed: Sequence[ManifestEntry],
        include_prerelease: bool = False,
        include_all_versions: bool = False,
    ) -> List[PackageRecord]:
        updates: List[PackageRecord] = []
        for entry in installed:
            for package in self.find_local_packages(entry.id, include_all_versions, include_prerelease):
                if compare_versions(package.version, entry.version) > 0:
                    updates.append(package)
        return updates
