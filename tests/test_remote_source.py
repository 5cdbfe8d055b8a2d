"""Tests for the remote OData feed source."""

from unittest.mock import patch
from urllib.parse import unquote

import pytest
import requests

from conftest import fake_response, feed_xml, packages_feed
from registry.nuget.client import (
    RemoteFeedSource,
    batched,
    build_all_versions_url,
    build_find_by_id_url,
    build_get_updates_url,
    build_search_url,
)
from registry.nuget.config import PackageSourceConfig
from versioning.models import ManifestEntry, PackageIdentifier

FEED = "https://feed.example.org/api/v2/"


@pytest.fixture
def source():
    return RemoteFeedSource(PackageSourceConfig("example", FEED))


def _installed(count):
    return [ManifestEntry(f"Pkg{i:02d}", "1.0") for i in range(count)]


class TestUrlBuilding:
    """Test OData query URLs."""

    def test_find_by_id_url(self):
        url = build_find_by_id_url("https://x.org/api/v2", PackageIdentifier("Foo", "1.0"))
        assert url == "https://x.org/api/v2/FindPackagesById()?id='Foo'&$filter=Version eq '1.0'"

    def test_all_versions_url_orders_ascending(self):
        url = build_all_versions_url(FEED, "Foo")
        assert url == FEED + "FindPackagesById()?$orderby=Version asc&id='Foo'"

    def test_search_url(self):
        url = build_search_url(FEED, "json", False, False, 15, 30)
        assert url == (
            FEED + "Search()?$filter=IsLatestVersion&$orderby=DownloadCount desc&$skip=30&$top=15"
            "&searchTerm='json'&targetFramework=''&includePrerelease=false"
        )

    def test_search_url_variants(self):
        assert "$filter=IsAbsoluteLatestVersion" in build_search_url(FEED, "", False, True, 15, 0)
        assert "$filter" not in build_search_url(FEED, "", True, True, 15, 0)

    def test_search_term_quotes_are_escaped(self):
        assert "searchTerm='o%27%27brien'" in build_search_url(FEED, "o'brien", True, False, 15, 0)

    def test_search_term_is_percent_encoded(self):
        url = build_search_url(FEED, "a&includePrerelease=true#", True, False, 15, 0)
        assert "searchTerm='a%26includePrerelease%3Dtrue%23'" in url
        assert url.endswith("&includePrerelease=false")
        assert url.count("&includePrerelease=") == 1

    def test_find_by_id_encodes_reserved_characters(self):
        url = build_find_by_id_url(FEED, PackageIdentifier("Foo&x=1", "1.0 beta"))
        assert "id='Foo%26x%3D1'" in url
        assert url.endswith("Version eq '1.0%20beta'")

    def test_get_updates_url(self):
        batch = [
            ManifestEntry("A", "1.0", target_framework="net30"),
            ManifestEntry("B", "2.0", allowed_versions="[2.0,3.0)"),
        ]
        url = build_get_updates_url(FEED, batch, True, False)
        assert url == (
            FEED + "GetUpdates()?packageIds='A|B'&versions='1.0|2.0'&includePrerelease=true"
            "&includeAllVersions=false&targetFrameworks='net30|'&versionConstraints='|%5B2.0%2C3.0%29'"
        )

    def test_batched(self):
        assert [len(b) for b in batched(list(range(23)), 10)] == [10, 10, 3]
        assert batched([], 10) == []


class TestQueries:
    """Test single-shot queries against the feed."""

    @patch("common.http_client.requests.get")
    def test_find_by_id(self, mock_get, source):
        mock_get.return_value = fake_response(200, packages_feed(("Foo", "1.0")))

        package = source.find_by_id(PackageIdentifier("Foo", "1.0"))

        assert package == PackageIdentifier("Foo", "1.0")
        assert package.source is source
        _, kwargs = mock_get.call_args
        assert kwargs["verify"] is False
        assert kwargs["auth"] is None

    @patch("common.http_client.requests.get")
    def test_password_is_sent_as_basic_auth(self, mock_get, monkeypatch):
        monkeypatch.setenv("FEED_TOKEN", "s3cret")
        secured = RemoteFeedSource(PackageSourceConfig("secure", FEED, password="$FEED_TOKEN"))
        mock_get.return_value = fake_response(200, feed_xml())

        secured.search("x")

        _, kwargs = mock_get.call_args
        assert kwargs["auth"] == ("", "s3cret")

    @patch("common.http_client.requests.get")
    def test_connection_error_returns_empty(self, mock_get, source, caplog):
        mock_get.side_effect = requests.ConnectionError("boom")

        assert source.search("json") == []
        assert source.find_by_id(PackageIdentifier("Foo", "1.0")) is None
        assert "Unable to retrieve package list" in caplog.text

    @patch("common.http_client.requests.get")
    def test_timeout_returns_empty(self, mock_get, source):
        mock_get.side_effect = requests.Timeout()
        assert source.find_by_range("Foo", "[1.0,)") == []

    @patch("common.http_client.requests.get")
    def test_bad_document_returns_empty(self, mock_get, source):
        mock_get.return_value = fake_response(200, "<html>not xml")
        assert source.search("json") == []

    @patch("common.http_client.requests.get")
    def test_search(self, mock_get, source):
        mock_get.return_value = fake_response(200, packages_feed(("A", "1.0"), ("B", "2.0")))
        assert [str(p) for p in source.search("x")] == ["A.1.0", "B.2.0"]


class TestFindByRange:
    """Test client-side range filtering over all versions."""

    @patch("common.http_client.requests.get")
    def test_filters_and_sorts_numerically(self, mock_get, source):
        # Feed ordering is lexical: 10.0.0 before 9.0.0
        mock_get.return_value = fake_response(200, packages_feed(
            ("Foo", "1.0.0"), ("Foo", "10.0.0"), ("Foo", "2.0.0"), ("Foo", "9.0.0"),
        ))

        result = source.find_by_range("Foo", "[2.0.0,)")

        assert [p.version for p in result] == ["2.0.0", "9.0.0", "10.0.0"]

    @patch("common.http_client.requests.get")
    def test_excludes_prerelease_unless_requested(self, mock_get, source):
        mock_get.return_value = fake_response(200, packages_feed(("Foo", "1.0"), ("Foo", "2.0-beta")))

        assert [p.version for p in source.find_by_range("Foo", "[1.0,)")] == ["1.0"]
        assert [p.version for p in source.find_by_range("Foo", "[1.0,)", True)] == ["1.0", "2.0-beta"]

    @patch("common.http_client.requests.get")
    def test_falls_back_to_nearest_above_minimum(self, mock_get, source):
        mock_get.return_value = fake_response(200, packages_feed(
            ("Foo", "1.0"), ("Foo", "3.0"), ("Foo", "4.0"),
        ))

        result = source.find_by_range("Foo", "[2.0,2.5]")

        assert [p.version for p in result] == ["3.0"]

    @patch("common.http_client.requests.get")
    def test_nothing_above_minimum(self, mock_get, source):
        mock_get.return_value = fake_response(200, packages_feed(("Foo", "1.0")))
        assert source.find_by_range("Foo", "[2.0,3.0)") == []


class TestComputeUpdates:
    """Test batched GetUpdates() queries and the per-package fallback."""

    @patch("common.http_client.requests.get")
    def test_batches_of_ten(self, mock_get, source):
        mock_get.return_value = fake_response(200, feed_xml())

        source.compute_updates(_installed(23))

        urls = [unquote(c.args[0]) for c in mock_get.call_args_list]
        assert len(urls) == 3
        sizes = [url.split("packageIds='")[1].split("'")[0].count("|") + 1 for url in urls]
        assert sizes == [10, 10, 3]
        assert all("GetUpdates()" in url for url in urls)

    @patch("common.http_client.requests.get")
    def test_collects_results_across_batches(self, mock_get, source):
        mock_get.side_effect = [
            fake_response(200, packages_feed(("Pkg00", "2.0"))),
            fake_response(200, packages_feed(("Pkg10", "1.1"))),
        ]

        updates = source.compute_updates(_installed(15))

        assert [str(p) for p in updates] == ["Pkg00.2.0", "Pkg10.1.1"]

    @patch("common.http_client.requests.get")
    def test_failed_batch_is_omitted(self, mock_get, source, caplog):
        mock_get.side_effect = [
            fake_response(500, "oops"),
            fake_response(200, packages_feed(("Pkg10", "1.1"))),
        ]

        updates = source.compute_updates(_installed(12))

        assert [str(p) for p in updates] == ["Pkg10.1.1"]
        assert "HTTP 500" in caplog.text

    @patch("common.http_client.requests.get")
    def test_not_found_falls_back_per_package(self, mock_get, source):
        responses = {
            "Foo": packages_feed(("Foo", "1.0"), ("Foo", "1.5"), ("Foo", "2.0")),
            "Bar": packages_feed(("Bar", "3.0")),
        }

        def fake_get(url, **kwargs):
            if "GetUpdates()" in url:
                return fake_response(404, "")
            if "id='Missing'" in url:
                return fake_response(404, "")
            for package_id, body in responses.items():
                if f"id='{package_id}'" in url:
                    return fake_response(200, body)
            raise AssertionError(url)

        mock_get.side_effect = fake_get
        installed = [ManifestEntry("Foo", "1.0"), ManifestEntry("Missing", "1.0"), ManifestEntry("Bar", "3.0")]

        latest = source.compute_updates(installed)
        every = source.compute_updates(installed, include_all_versions=True)

        assert [str(p) for p in latest] == ["Foo.2.0"]
        assert [str(p) for p in every] == ["Foo.1.5", "Foo.2.0"]

    @patch("common.http_client.requests.get")
    def test_fallback_keeps_newest_prerelease_only(self, mock_get, source):
        body = packages_feed(("Foo", "1.1-alpha"), ("Foo", "1.1-beta"), ("Foo", "1.1"), ("Foo", "1.2-rc"))

        def fake_get(url, **kwargs):
            if "GetUpdates()" in url:
                return fake_response(404, "")
            return fake_response(200, body)

        mock_get.side_effect = fake_get

        updates = source.compute_updates(
            [ManifestEntry("Foo", "1.0")], include_prerelease=True, include_all_versions=True
        )

        assert [p.version for p in updates] == ["1.1", "1.2-rc"]

    @patch("common.http_client.requests.get")
    def test_fallback_honours_allowed_versions(self, mock_get, source):
        def fake_get(url, **kwargs):
            if "GetUpdates()" in url:
                return fake_response(404, "")
            return fake_response(200, packages_feed(("Foo", "1.5"), ("Foo", "2.0")))

        mock_get.side_effect = fake_get

        updates = source.compute_updates([ManifestEntry("Foo", "1.0", allowed_versions="[1.0,2.0)")])

        assert [p.version for p in updates] == ["1.5"]
