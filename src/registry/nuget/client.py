"""NuGet v2 (OData) feed client.

Query URLs follow the OData URI conventions of the v2 API:
https://www.odata.org/documentation/odata-version-2-0/uri-conventions/
"""
from __future__ import annotations

import logging
from typing import List, Optional, Sequence
from urllib.parse import quote

from constants import Constants
from common.errors import FeedError, UnsupportedFeedOperation
from common.logging_utils import extra_context, is_debug_enabled, safe_url, Timer
from versioning.models import (
    ManifestEntry,
    PackageIdentifier,
    PackageRecord,
    identifier_sort_key,
)
from versioning.compare import compare_versions
from versioning.ranges import INSIDE, VersionRange

import registry.nuget as nuget_pkg
from .odata import parse_feed
from .source import PackageSource

logger = logging.getLogger(__name__)


def _bool(value: bool) -> str:
    return "true" if value else "false"


def _odata_str(value: Optional[str], safe: str = "") -> str:
    """Quote a value as a percent-encoded OData string literal."""
    escaped = (value or "").replace("'", "''")
    return "'%s'" % quote(escaped, safe=safe)


def _base(path: str) -> str:
    return path if path.endswith("/") else path + "/"


def build_find_by_id_url(base: str, identifier: PackageIdentifier) -> str:
    return (
        f"{_base(base)}FindPackagesById()?id={_odata_str(identifier.id)}"
        f"&$filter=Version eq {_odata_str(identifier.version)}"
    )


def build_all_versions_url(base: str, package_id: str) -> str:
    # Server-side "Version ge" filters compare lexically (10.0.0 < 9.0.0), so
    # every version is requested and filtered locally.
    return f"{_base(base)}FindPackagesById()?$orderby=Version asc&id={_odata_str(package_id)}"


def build_search_url(
    base: str,
    term: str,
    include_all_versions: bool,
    include_prerelease: bool,
    page_size: int,
    skip: int,
) -> str:
    url = f"{_base(base)}Search()?"
    if not include_all_versions:
        url += "$filter=IsAbsoluteLatestVersion&" if include_prerelease else "$filter=IsLatestVersion&"
    url += "$orderby=DownloadCount desc&"
    url += f"$skip={skip}&"
    url += f"$top={page_size}&"
    url += f"searchTerm={_odata_str(term)}&"
    url += "targetFramework=''&"
    url += f"includePrerelease={_bool(include_prerelease)}"
    return url


def build_get_updates_url(
    base: str,
    batch: Sequence[ManifestEntry],
    include_prerelease: bool,
    include_all_versions: bool,
) -> str:
    package_ids = "|".join(p.id for p in batch)
    versions = "|".join(p.version for p in batch)
    frameworks = "|".join(p.target_framework or "" for p in batch)
    constraints = "|".join(p.allowed_versions or "" for p in batch)
    return (
        f"{_base(base)}GetUpdates()?packageIds={_odata_str(package_ids, safe='|')}"
        f"&versions={_odata_str(versions, safe='|')}"
        f"&includePrerelease={_bool(include_prerelease)}"
        f"&includeAllVersions={_bool(include_all_versions)}"
        f"&targetFrameworks={_odata_str(frameworks, safe='|')}"
        f"&versionConstraints={_odata_str(constraints, safe='|')}"
    )


def batched(items: Sequence, size: int) -> List[Sequence]:
    """Split a sequence into consecutive chunks of at most ``size`` items."""
    return [items[i:i + size] for i in range(0, len(items), size)]


class RemoteFeedSource(PackageSource):
    """Queries an http(s) OData feed."""

    def _fetch(self, url: str) -> List[PackageRecord]:
        """GET a feed URL and parse it.

        Raises:
            FeedError: Transport, status or decoding failure.
        """
        with Timer() as t:
            document = nuget_pkg.fetch_feed_document(
                url, context=self.name, password=self.config.expanded_password
            )
            packages = self._claim(parse_feed(document))
        if is_debug_enabled(logger):
            logger.debug(
                "Retrieved packages",
                extra=extra_context(
                    event="http_response", component="client", action="fetch",
                    target=safe_url(url), count=len(packages), duration_ms=t.duration_ms(),
                ),
            )
        return packages

    def _query(self, url: str) -> List[PackageRecord]:
        """Like _fetch, but failures are logged and yield an empty list."""
        try:
            return self._fetch(url)
        except FeedError as exc:
            logger.error("Unable to retrieve package list from %s: %s", safe_url(url), exc)
            return []

    def find_by_id(self, identifier: PackageIdentifier) -> Optional[PackageRecord]:
        packages = self._query(build_find_by_id_url(self.config.expanded_path, identifier))
        return packages[0] if packages else None

    def find_by_range(
        self, package_id: str, version_range: str, include_prerelease: bool = False
    ) -> List[PackageRecord]:
        """Versions inside the range, ascending.

        When nothing lies inside the range, the single smallest version above
        the range minimum is returned instead, if there is one.
        """
        vrange = VersionRange.parse(version_range)
        packages = self._query(build_all_versions_url(self.config.expanded_path, package_id))
        packages = [
            p for p in packages
            if p.id.lower() == package_id.lower() and (include_prerelease or not p.is_prerelease)
        ]
        packages.sort(key=identifier_sort_key)

        in_range = [p for p in packages if vrange.contains(p.version) == INSIDE]
        if in_range:
            return in_range

        above_minimum = [
            p for p in packages
            if not vrange.minimum or compare_versions(p.version, vrange.minimum) > 0
        ]
        return above_minimum[:1]

    def search(
        self,
        term: str = "",
        include_all_versions: bool = False,
        include_prerelease: bool = False,
        page_size: int = Constants.DEFAULT_SEARCH_PAGE_SIZE,
        skip: int = 0,
    ) -> List[PackageRecord]:
        url = build_search_url(
            self.config.expanded_path, term, include_all_versions, include_prerelease, page_size, skip
        )
        return self._query(url)

    def _updates_fallback(
        self,
        batch: Sequence[ManifestEntry],
        include_prerelease: bool,
        include_all_versions: bool,
    ) -> List[PackageRecord]:
        """Per-package update lookup for feeds without GetUpdates()."""
        updates: List[PackageRecord] = []
        for entry in batch:
            # Exclusive minimum at the installed version, no maximum
            candidates = self.find_by_range(entry.id, f"({entry.version},)", include_prerelease)
            candidates = [p for p in candidates if compare_versions(p.version, entry.version) > 0]
            if entry.allowed_versions:
                allowed = VersionRange.parse(entry.allowed_versions)
                candidates = [p for p in candidates if allowed.contains(p.version) == INSIDE]

            prereleases = [p for p in candidates if p.is_prerelease]
            newest_prerelease = prereleases[-1] if prereleases else None
            candidates = [p for p in candidates if not p.is_prerelease or p is newest_prerelease]

            if not include_all_versions:
                candidates = candidates[-1:]
            updates.extend(candidates)
        return updates

    def compute_updates(
        self,
        installed: Sequence[ManifestEntry],
        include_prerelease: bool = False,
        include_all_versions: bool = False,
    ) -> List[PackageRecord]:
        """Query GetUpdates() in batches, falling back per package on 404.

        Batches run sequentially; a failed batch is logged and omitted.
        """
        updates: List[PackageRecord] = []
        installed = list(installed)
        for batch in batched(installed, Constants.UPDATE_BATCH_SIZE):
            url = build_get_updates_url(
                self.config.expanded_path, batch, include_prerelease, include_all_versions
            )
            try:
                updates.extend(self._fetch(url))
            except UnsupportedFeedOperation:
                logger.info("%s not found. Falling back to FindPackagesById.", safe_url(url))
                updates.extend(self._updates_fallback(batch, include_prerelease, include_all_versions))
            except FeedError as exc:
                logger.error("Unable to retrieve package list from %s: %s", safe_url(url), exc)
        return updates
