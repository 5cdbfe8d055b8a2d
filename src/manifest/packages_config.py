"""packages.config manifest store.

The manifest lists the packages a project depends on::

    <packages>
      <package id="Newtonsoft.Json" version="9.0.1" />
    </packages>

Entries are unique by id (case-insensitive). Adding an existing id keeps the
higher of the two versions.
"""
from __future__ import annotations

import logging
import os
import stat
from typing import Iterator, List, Optional
from xml.etree import ElementTree as ET

from versioning.compare import compare_versions
from versioning.models import ManifestEntry, PackageIdentifier, identifier_sort_key

logger = logging.getLogger(__name__)


class ManifestError(Exception):
    """The manifest file exists but cannot be read."""


def _parse_bool(value: str) -> bool:
    return value.strip().lower() == "true"


def _entry_from_element(elem: ET.Element) -> ManifestEntry:
    package_id = elem.get("id")
    version = elem.get("version")
    if not package_id or not version:
        raise ManifestError("package element without id or version")
    entry = ManifestEntry(id=package_id, version=version)
    if elem.get("targetFramework") is not None:
        entry.target_framework = elem.get("targetFramework")
    if elem.get("allowedVersions") is not None:
        entry.allowed_versions = elem.get("allowedVersions")
    if elem.get("developmentDependency") is not None:
        entry.development_dependency = _parse_bool(elem.get("developmentDependency"))
    return entry


class PackagesConfig:
    """In-memory packages.config manifest."""

    def __init__(self, entries: Optional[List[ManifestEntry]] = None):
        self.entries: List[ManifestEntry] = list(entries or [])

    def __iter__(self) -> Iterator[ManifestEntry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def find(self, package_id: str) -> Optional[ManifestEntry]:
        """Entry with this id, compared case-insensitively."""
        key = package_id.strip().lower()
        for entry in self.entries:
            if entry.id.lower() == key:
                return entry
        return None

    def add(self, entry: ManifestEntry) -> None:
        """Add an entry, keeping the higher version when the id is already listed."""
        existing = self.find(entry.id)
        if existing is None:
            self.entries.append(entry)
            return

        compare = compare_versions(existing.version, entry.version)
        if compare < 0:
            logger.warning(
                "%s %s is already listed in the packages.config file. Updating to %s",
                existing.id, existing.version, entry.version,
            )
            self.entries.remove(existing)
            self.entries.append(entry)
        elif compare > 0:
            logger.warning(
                "Trying to add %s %s to the packages.config file. %s is already listed, so using that.",
                entry.id, entry.version, existing.version,
            )

    def remove(self, package_id: str) -> bool:
        """Remove the entry with this id. Returns whether one was removed."""
        key = package_id.strip().lower()
        for index, entry in enumerate(self.entries):
            if entry.id.lower() == key:
                del self.entries[index]
                return True
        return False

    def to_identifiers(self) -> List[PackageIdentifier]:
        return [entry.to_identifier() for entry in self.entries]

    @classmethod
    def load(cls, filepath: str) -> "PackagesConfig":
        """Read a manifest, creating an empty one on disk if it is missing.

        Raises:
            ManifestError: The file is unreadable or not a valid manifest.
        """
        if not os.path.exists(filepath):
            logger.info("No packages.config file found. Creating default at %s", filepath)
            manifest = cls()
            manifest.save(filepath)
            return manifest

        try:
            root = ET.parse(filepath).getroot()
        except (ET.ParseError, OSError) as exc:
            raise ManifestError(f"Couldn't read {filepath}: {exc}") from exc

        manifest = cls()
        for elem in root.findall("package"):
            manifest.add(_entry_from_element(elem))
        return manifest

    def save(self, filepath: str) -> None:
        """Write the manifest sorted by id then version.

        Only id and version are written. A read-only flag on an existing file
        is cleared first.
        """
        self.entries.sort(key=identifier_sort_key)

        root = ET.Element("packages")
        for entry in self.entries:
            ET.SubElement(root, "package", {"id": entry.id, "version": entry.version})
        tree = ET.ElementTree(root)
        ET.indent(tree, space="  ")

        if os.path.exists(filepath):
            mode = os.stat(filepath).st_mode
            if not mode & stat.S_IWRITE:
                os.chmod(filepath, mode | stat.S_IWRITE)

        directory = os.path.dirname(filepath)
        if directory:
            os.makedirs(directory, exist_ok=True)
        tree.write(filepath, encoding="utf-8", xml_declaration=True)
