"""Shared fixtures: OData feed documents, nupkg archives and fake HTTP responses."""

import zipfile
from unittest.mock import MagicMock

import pytest

FEED_TEMPLATE = """<?xml version="1.0" encoding="utf-8"?>
<feed xml:base="https://www.nuget.org/api/v2/"
      xmlns="http://www.w3.org/2005/Atom"
      xmlns:d="http://schemas.microsoft.com/ado/2007/08/dataservices"
      xmlns:m="http://schemas.microsoft.com/ado/2007/08/dataservices/metadata">
  <title type="text">Packages</title>
{entries}
</feed>"""

ENTRY_TEMPLATE = """  <entry>
    <title type="text">{id}</title>
    <content type="application/zip" src="https://www.nuget.org/api/v2/package/{id}/{version}" />
    <m:properties>
      <d:Version>{version}</d:Version>
      <d:Title>{title}</d:Title>
      <d:Description>{id} description</d:Description>
      <d:ReleaseNotes m:null="true" />
      <d:LicenseUrl>https://example.org/license</d:LicenseUrl>
      <d:IconUrl>https://example.org/icon.png</d:IconUrl>
      <d:Dependencies>{dependencies}</d:Dependencies>
    </m:properties>
  </entry>"""

NUSPEC_TEMPLATE = """<?xml version="1.0" encoding="utf-8"?>
<package xmlns="http://schemas.microsoft.com/packaging/2013/05/nuspec.xsd">
  <metadata>
    <id>{id}</id>
    <version>{version}</version>
    <title>{id} title</title>
    <description>{id} description</description>
    <dependencies>{dependencies}</dependencies>
  </metadata>
</package>"""


def entry_xml(package_id, version, title="", dependencies=""):
    return ENTRY_TEMPLATE.format(id=package_id, version=version, title=title, dependencies=dependencies)


def feed_xml(*entries):
    return FEED_TEMPLATE.format(entries="\n".join(entries))


def packages_feed(*identifiers):
    """Feed document with one entry per (id, version) pair."""
    return feed_xml(*(entry_xml(pid, ver) for pid, ver in identifiers))


def write_nupkg(directory, package_id, version, dependencies=""):
    """Create ``{id}.{version}.nupkg`` containing a minimal nuspec."""
    path = directory / f"{package_id}.{version}.nupkg"
    nuspec = NUSPEC_TEMPLATE.format(id=package_id, version=version, dependencies=dependencies)
    with zipfile.ZipFile(path, "w") as archive:
        archive.writestr(f"{package_id}.nuspec", nuspec)
        archive.writestr("lib/net30/placeholder.txt", "")
    return path


def fake_response(status_code=200, text=""):
    """A stand-in for requests.Response."""
    response = MagicMock()
    response.status_code = status_code
    response.text = text
    response.content = text.encode("utf-8")
    return response


@pytest.fixture
def feed_builder():
    """Builder callables for OData documents."""
    return {"entry": entry_xml, "feed": feed_xml, "packages": packages_feed}


@pytest.fixture
def nupkg_factory(tmp_path):
    """Write nupkg archives into a temporary local feed directory."""
    def _make(package_id, version, dependencies=""):
        return write_nupkg(tmp_path, package_id, version, dependencies)
    return _make
