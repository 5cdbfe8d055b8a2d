"""Package source interface shared by local directories and remote feeds."""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable, List, Optional, Sequence

from constants import Constants
from versioning.models import ManifestEntry, PackageIdentifier, PackageRecord

from .config import PackageSourceConfig


class PackageSource(ABC):
    """Query surface for one configured source.

    Implementations never raise for unavailable data: failures are logged
    and reported as an empty result.
    """

    def __init__(self, config: PackageSourceConfig):
        self.config = config

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def enabled(self) -> bool:
        return self.config.enabled

    def _claim(self, records: Iterable[PackageRecord]) -> List[PackageRecord]:
        """Attach this source to each record and materialize the sequence."""
        claimed = []
        for record in records:
            record.attach_source(self)
            claimed.append(record)
        return claimed

    @abstractmethod
    def find_by_id(self, identifier: PackageIdentifier) -> Optional[PackageRecord]:
        """Return the package with exactly this id and version, if present."""

    @abstractmethod
    def find_by_range(
        self, package_id: str, version_range: str, include_prerelease: bool = False
    ) -> List[PackageRecord]:
        """Return versions of a package inside a range, in ascending order."""

    @abstractmethod
    def search(
        self,
        term: str = "",
        include_all_versions: bool = False,
        include_prerelease: bool = False,
        page_size: int = Constants.DEFAULT_SEARCH_PAGE_SIZE,
        skip: int = 0,
    ) -> List[PackageRecord]:
        """Return one page of packages matching a search term."""

    @abstractmethod
    def compute_updates(
        self,
        installed: Sequence[ManifestEntry],
        include_prerelease: bool = False,
        include_all_versions: bool = False,
    ) -> List[PackageRecord]:
        """Return the packages newer than the installed ones."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r}, {self.config.path!r})"


def create_source(config: PackageSourceConfig, **kwargs) -> PackageSource:
    """Build the source variant matching a config's path."""
    # Imported here to keep the variants free to import this module
    from .client import RemoteFeedSource
    from .local import LocalDirectorySource

    if config.is_local:
        return LocalDirectorySource(config, **kwargs)
    return RemoteFeedSource(config)
