"""Multi-source update resolution and lookup."""
from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence

from common.logging_utils import extra_context, is_debug_enabled
from registry.nuget.source import PackageSource
from versioning.models import (
    ManifestEntry,
    PackageIdentifier,
    PackageRecord,
    identifier_sort_key,
)

logger = logging.getLogger(__name__)


def _enabled(sources: Iterable[PackageSource]) -> List[PackageSource]:
    return [source for source in sources if source.enabled]


def resolve_updates(
    installed: Iterable[ManifestEntry],
    sources: Sequence[PackageSource],
    include_prerelease: bool = False,
    include_all_versions: bool = False,
) -> List[PackageRecord]:
    """Collect updates for the installed packages from every enabled source.

    Results are concatenated in source priority order, then sorted by id and
    version. The same package offered by two sources appears twice.
    """
    entries = list(installed)
    updates: List[PackageRecord] = []
    for source in _enabled(sources):
        found = source.compute_updates(entries, include_prerelease, include_all_versions)
        if is_debug_enabled(logger):
            logger.debug(
                "Source updates computed",
                extra=extra_context(
                    event="decision", component="resolver", action="compute_updates",
                    target=source.name, count=len(found),
                ),
            )
        updates.extend(found)
    updates.sort(key=identifier_sort_key)
    logger.info("Found %d update(s) for %d installed package(s).", len(updates), len(entries))
    return updates


class UpdateResolver:
    """Binds an ordered source list for repeated resolutions."""

    def __init__(self, sources: Sequence[PackageSource]):
        self.sources = list(sources)

    def resolve(
        self,
        installed: Iterable[ManifestEntry],
        include_prerelease: bool = False,
        include_all_versions: bool = False,
    ) -> List[PackageRecord]:
        return resolve_updates(installed, self.sources, include_prerelease, include_all_versions)

    def find_package(self, identifier: PackageIdentifier) -> Optional[PackageRecord]:
        return find_package(identifier, self.sources)


def find_package(identifier: PackageIdentifier, sources: Sequence[PackageSource]) -> Optional[PackageRecord]:
    """Return the first match for an exact id/version, consulting sources in order."""
    for source in _enabled(sources):
        package = source.find_by_id(identifier)
        if package is not None:
            return package
    logger.info("%s was not found in any enabled source.", identifier)
    return None
