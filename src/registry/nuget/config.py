"""Package source configuration.

Sources come from the ``sources:`` list of the YAML config file, in priority
order. When none are configured the public nuget.org feed is used.
"""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from constants import Constants, _load_yaml_config

logger = logging.getLogger(__name__)

_WINDOWS_VAR = re.compile(r"%([^%]+)%")


def expand_env(value: str) -> str:
    """Expand ``$VAR``/``${VAR}`` and ``%VAR%`` references; unknown ones are kept."""
    expanded = os.path.expandvars(value)
    return _WINDOWS_VAR.sub(lambda m: os.environ.get(m.group(1), m.group(0)), expanded)


@dataclass
class PackageSourceConfig:
    """A named feed location: a local directory or an http(s) URL."""
    name: str
    path: str
    password: Optional[str] = None
    enabled: bool = True

    @property
    def expanded_path(self) -> str:
        return expand_env(self.path)

    @property
    def expanded_password(self) -> Optional[str]:
        return expand_env(self.password) if self.password is not None else None

    @property
    def has_password(self) -> bool:
        return self.password is not None

    @property
    def is_local(self) -> bool:
        return not self.expanded_path.startswith("http")


def default_sources() -> List[PackageSourceConfig]:
    return [PackageSourceConfig(Constants.DEFAULT_FEED_NAME, Constants.DEFAULT_FEED_URL)]


def _parse_enabled(value: Any, index: int) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in ("true", "yes", "on", "1"):
        return True
    if text in ("false", "no", "off", "0"):
        return False
    logger.warning("Source #%d has invalid enabled value %r; treating it as enabled", index, value)
    return True


def _source_from_mapping(item: Dict[str, Any], index: int) -> Optional[PackageSourceConfig]:
    path = item.get("path") or item.get("url")
    if not path:
        logger.warning("Ignoring source #%d: no path", index)
        return None
    password = item.get("password")
    return PackageSourceConfig(
        name=str(item.get("name") or path),
        path=str(path),
        password=str(password) if password is not None else None,
        enabled=_parse_enabled(item.get("enabled", True), index),
    )


def load_source_configs(config_path: Optional[str] = None) -> List[PackageSourceConfig]:
    """Read the ordered source list from the YAML config.

    Invalid items are skipped with a warning. Returns the default feed when
    the config has no usable sources.
    """
    data = _load_yaml_config(config_path)
    raw_sources = data.get("sources")
    if not raw_sources:
        return default_sources()
    if not isinstance(raw_sources, list):
        logger.warning("Ignoring 'sources': expected a list")
        return default_sources()

    sources: List[PackageSourceConfig] = []
    for index, item in enumerate(raw_sources):
        if not isinstance(item, dict):
            logger.warning("Ignoring source #%d: expected a mapping", index)
            continue
        source = _source_from_mapping(item, index)
        if source is not None:
            sources.append(source)
    return sources or default_sources()
