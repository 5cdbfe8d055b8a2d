"""Installed-package manifest (packages.config) handling."""

from .packages_config import PackagesConfig, ManifestError  # noqa: F401

__all__ = ["PackagesConfig", "ManifestError"]
