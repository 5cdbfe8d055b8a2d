"""Constants used in the project."""

import logging
import os
from enum import Enum
from typing import Any, Dict, Optional

import yaml


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    FILE_ERROR = 1
    CONNECTION_ERROR = 2
    USAGE_ERROR = 3


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    DEFAULT_FEED_NAME = "nuget.org"
    DEFAULT_FEED_URL = "https://www.nuget.org/api/v2/"
    PACKAGES_CONFIG_FILE = "packages.config"
    PACKAGE_EXTENSION = ".nupkg"
    CONFIG_FILE = "nugetfeed.yml"
    ENV_CONFIG = "NUGETFEED_CONFIG"
    ENV_LOG_LEVEL = "NUGETFEED_LOG_LEVEL"
    LOG_FORMAT = "[%(levelname)s] %(message)s"
    REQUEST_TIMEOUT = 5  # Timeout in seconds for feed requests
    UPDATE_BATCH_SIZE = 10  # GetUpdates() query strings get too long past this
    DEFAULT_SEARCH_PAGE_SIZE = 15
    LEGACY_TARGET_FRAMEWORK = "net30"

    # OData/Atom namespaces used by v2 feeds
    ATOM_NAMESPACE = "http://www.w3.org/2005/Atom"
    DATASERVICES_NAMESPACE = "http://schemas.microsoft.com/ado/2007/08/dataservices"
    METADATA_NAMESPACE = "http://schemas.microsoft.com/ado/2007/08/dataservices/metadata"


def _config_path(path: Optional[str] = None) -> Optional[str]:
    """Return the YAML config path to use, if any exists."""
    candidate = path or os.environ.get(Constants.ENV_CONFIG) or Constants.CONFIG_FILE
    return candidate if os.path.isfile(candidate) else None


def _load_yaml_config(path: Optional[str] = None) -> Dict[str, Any]:
    """Load the YAML config file and apply tunables onto Constants.

    Never raises: a missing or malformed file yields an empty dict.
    """
    cfg_path = _config_path(path)
    if not cfg_path:
        return {}
    try:
        with open(cfg_path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}
    except (OSError, yaml.YAMLError) as exc:
        logging.warning("Failed to load config %s: %s", cfg_path, exc)
        return {}
    if not isinstance(data, dict):
        logging.warning("Ignoring config %s: top level must be a mapping", cfg_path)
        return {}

    http = data.get("http") or {}
    if isinstance(http, dict):
        try:
            if http.get("request_timeout") is not None:
                Constants.REQUEST_TIMEOUT = float(http["request_timeout"])
            if http.get("batch_size") is not None:
                Constants.UPDATE_BATCH_SIZE = max(1, int(http["batch_size"]))
        except (TypeError, ValueError) as exc:
            logging.warning("Ignoring invalid http settings in %s: %s", cfg_path, exc)
    return data
