"""NuGet package source package.

This package provides querying of NuGet package sources:
- config.py: package source configuration loaded from YAML
- odata.py: parsing of OData/Atom feed responses into package records
- nupkg.py: reading metadata from local .nupkg archives
- source.py: the PackageSource interface and the create_source factory
- local.py: sources backed by a local directory of archives
- client.py: sources backed by a remote OData feed

Public API is preserved at registry.nuget without shims.
"""

# Patch points exposed for tests (e.g., monkeypatch in tests)
from common.http_client import fetch_feed_document  # noqa: F401

# Public API re-exports
from .config import PackageSourceConfig, load_source_configs, default_sources  # noqa: F401
from .odata import parse_feed, parse_dependencies, MalformedFeedEntry  # noqa: F401
from .nupkg import read_nupkg, ArchiveError  # noqa: F401
from .source import PackageSource, create_source  # noqa: F401
from .local import LocalDirectorySource  # noqa: F401
from .client import RemoteFeedSource  # noqa: F401

__all__ = [
    # Configuration
    "PackageSourceConfig",
    "load_source_configs",
    "default_sources",
    # Parsing
    "parse_feed",
    "parse_dependencies",
    "MalformedFeedEntry",
    "read_nupkg",
    "ArchiveError",
    # Sources
    "PackageSource",
    "create_source",
    "LocalDirectorySource",
    "RemoteFeedSource",
    # Patch points for tests
    "fetch_feed_document",
]
