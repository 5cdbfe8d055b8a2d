"""NuGet v2 OData response parsing.

OData responses are Atom feeds: one ``<entry>`` per package, with the
package id in the Atom title, the download link in ``content/@src`` and the
remaining metadata in an ``m:properties`` block.
"""
from __future__ import annotations

import logging
from typing import Iterator, List, Optional, Union
from xml.etree import ElementTree as ET

from constants import Constants
from common.logging_utils import extra_context, is_debug_enabled
from versioning.models import PackageIdentifier, PackageRecord

logger = logging.getLogger(__name__)

ATOM = "{%s}" % Constants.ATOM_NAMESPACE
DATA = "{%s}" % Constants.DATASERVICES_NAMESPACE
META = "{%s}" % Constants.METADATA_NAMESPACE


class MalformedFeedEntry(ValueError):
    """A feed entry lacks a required element or attribute."""


def _property(properties: ET.Element, name: str) -> str:
    """Text of a dataservices property, or the empty string."""
    elem = properties.find(DATA + name)
    if elem is None or elem.text is None:
        return ""
    return elem.text.strip()


def parse_dependencies(raw: Optional[str]) -> List[PackageIdentifier]:
    """Decode ``id:version[:framework]|...`` into identifiers.

    Semi-empty entries such as ``::net40`` are skipped, and so is any
    dependency scoped to a target framework other than the legacy one.
    """
    dependencies: List[PackageIdentifier] = []
    if not raw:
        return dependencies
    for item in raw.split("|"):
        details = item.split(":")
        dep_id = details[0].strip()
        version = details[1].strip() if len(details) > 1 else ""
        framework = details[2].strip() if len(details) > 2 else ""
        if not dep_id or not version:
            continue
        if framework and framework != Constants.LEGACY_TARGET_FRAMEWORK:
            continue
        dependencies.append(PackageIdentifier(dep_id, version))
    return dependencies


def parse_entry(entry: ET.Element) -> PackageRecord:
    """Build a PackageRecord from a single Atom entry.

    Raises:
        MalformedFeedEntry: Title, content link, properties or version missing.
    """
    title = entry.find(ATOM + "title")
    if title is None or not (title.text or "").strip():
        raise MalformedFeedEntry("entry has no title")
    package_id = title.text.strip()

    content = entry.find(ATOM + "content")
    download_url = content.get("src") if content is not None else None
    if not download_url:
        raise MalformedFeedEntry(f"{package_id}: entry has no content src")

    properties = entry.find(META + "properties")
    if properties is None:
        raise MalformedFeedEntry(f"{package_id}: entry has no properties")

    version = _property(properties, "Version")
    if not version:
        raise MalformedFeedEntry(f"{package_id}: entry has no version")

    return PackageRecord(
        id=package_id,
        version=version,
        title=_property(properties, "Title") or package_id,
        description=_property(properties, "Description"),
        release_notes=_property(properties, "ReleaseNotes"),
        license_url=_property(properties, "LicenseUrl"),
        icon_url=_property(properties, "IconUrl"),
        download_url=download_url,
        dependencies=parse_dependencies(_property(properties, "Dependencies")),
    )


def parse_feed(document: Union[ET.Element, ET.ElementTree, str, bytes]) -> Iterator[PackageRecord]:
    """Lazily yield the packages contained in an OData feed document.

    Malformed entries are logged and skipped; an undecodable document yields
    nothing. Never raises.
    """
    if isinstance(document, (str, bytes)):
        try:
            root = ET.fromstring(document)
        except ET.ParseError as exc:
            logger.error("Unable to parse feed document: %s", exc)
            return
    elif isinstance(document, ET.ElementTree):
        root = document.getroot()
    else:
        root = document

    # Packages(Id=...,Version=...) answers with a bare entry instead of a feed
    entries = [root] if root.tag == ATOM + "entry" else root.findall(ATOM + "entry")
    for index, entry in enumerate(entries):
        try:
            record = parse_entry(entry)
        except MalformedFeedEntry as exc:
            logger.warning(
                "Skipping malformed feed entry: %s",
                exc,
                extra=extra_context(event="parse", component="odata", outcome="skipped", index=index),
            )
            continue
        if is_debug_enabled(logger):
            logger.debug(
                "Parsed feed entry",
                extra=extra_context(event="parse", component="odata", target=str(record)),
            )
        yield record
