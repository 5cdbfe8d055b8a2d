"""Read package metadata from a local ``.nupkg`` archive."""
from __future__ import annotations

import logging
import os
import zipfile
from typing import List, Optional
from xml.etree import ElementTree as ET

from constants import Constants
from versioning.models import PackageIdentifier, PackageRecord

logger = logging.getLogger(__name__)


class ArchiveError(Exception):
    """The archive is unreadable or has no usable .nuspec."""


def _strip_namespaces(root: ET.Element) -> None:
    # nuspec files use several schema versions; match on local names only
    for elem in root.iter():
        if "}" in elem.tag:
            elem.tag = elem.tag.split("}", 1)[1]


def _text(metadata: ET.Element, name: str) -> str:
    elem = metadata.find(name)
    return (elem.text or "").strip() if elem is not None else ""


def _dependency(elem: ET.Element) -> Optional[PackageIdentifier]:
    dep_id = (elem.get("id") or "").strip()
    version = (elem.get("version") or "").strip()
    if not dep_id or not version:
        return None
    return PackageIdentifier(dep_id, version)


def _read_dependencies(metadata: ET.Element) -> List[PackageIdentifier]:
    """Flat dependencies plus those from framework-neutral or legacy groups."""
    container = metadata.find("dependencies")
    if container is None:
        return []
    elements = list(container.findall("dependency"))
    for group in container.findall("group"):
        framework = (group.get("targetFramework") or "").strip()
        if framework and framework != Constants.LEGACY_TARGET_FRAMEWORK:
            continue
        elements.extend(group.findall("dependency"))
    return [dep for dep in (_dependency(e) for e in elements) if dep is not None]


def read_nuspec(data: bytes, download_url: str = "") -> PackageRecord:
    """Build a PackageRecord from the raw bytes of a .nuspec file."""
    try:
        root = ET.fromstring(data)
    except ET.ParseError as exc:
        raise ArchiveError(f"invalid nuspec: {exc}") from exc
    _strip_namespaces(root)
    metadata = root.find("metadata")
    if metadata is None:
        raise ArchiveError("nuspec has no metadata element")

    package_id = _text(metadata, "id")
    version = _text(metadata, "version")
    if not package_id or not version:
        raise ArchiveError("nuspec is missing id or version")

    return PackageRecord(
        id=package_id,
        version=version,
        title=_text(metadata, "title") or package_id,
        description=_text(metadata, "description"),
        release_notes=_text(metadata, "releaseNotes"),
        license_url=_text(metadata, "licenseUrl"),
        icon_url=_text(metadata, "iconUrl"),
        download_url=download_url,
        dependencies=_read_dependencies(metadata),
    )


def read_nupkg(path: str) -> PackageRecord:
    """Open a .nupkg archive and return its package metadata.

    Raises:
        ArchiveError: The file is not a zip or contains no root .nuspec.
    """
    try:
        with zipfile.ZipFile(path) as archive:
            nuspecs = [
                name for name in archive.namelist()
                if name.lower().endswith(".nuspec") and "/" not in name
            ]
            if not nuspecs:
                raise ArchiveError(f"{os.path.basename(path)} contains no .nuspec")
            data = archive.read(nuspecs[0])
    except (zipfile.BadZipFile, OSError) as exc:
        raise ArchiveError(f"cannot open {path}: {exc}") from exc
    return read_nuspec(data, download_url=os.path.abspath(path))
