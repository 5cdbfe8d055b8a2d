"""Shared HTTP helpers for talking to package feeds.

Encapsulates the request/timeout error handling so the package sources
avoid duplicating try/except blocks. Failures are raised as FeedError
subclasses instead of exiting, since callers degrade to empty results.
"""
from __future__ import annotations

import logging
from typing import Any, Optional
from xml.etree import ElementTree as ET

import requests
import urllib3

from constants import Constants
from common.errors import FeedUnavailable, UnsupportedFeedOperation
from common.logging_utils import extra_context, is_debug_enabled, safe_url, Timer

logger = logging.getLogger(__name__)

HEADERS_XML = {"Accept": "application/atom+xml,application/xml"}

# Feeds are queried with certificate validation off; keep the per-request
# warning out of the logs.
urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)


def safe_get(url: str, *, context: str, password: Optional[str] = None, **kwargs: Any) -> requests.Response:
    """Perform a GET request with consistent error handling and DEBUG traces.

    Args:
        url: Target URL.
        context: Human-readable source tag for logs (e.g., the feed name).
        password: Optional feed password, sent as basic auth with an empty user.
        **kwargs: Passed through to requests.get.

    Returns:
        requests.Response: The HTTP response object.

    Raises:
        FeedUnavailable: On timeout or connection failure.
    """
    safe_target = safe_url(url)
    auth = ("", password) if password is not None else None
    with Timer() as t:
        if is_debug_enabled(logger):
            logger.debug(
                "HTTP request",
                extra=extra_context(
                    event="http_request",
                    component="http_client",
                    action="GET",
                    target=safe_target,
                    context=context,
                ),
            )
        try:
            res = requests.get(
                url,
                timeout=Constants.REQUEST_TIMEOUT,
                auth=auth,
                verify=False,
                headers=HEADERS_XML,
                **kwargs,
            )
        except requests.Timeout as exc:
            raise FeedUnavailable(
                f"{context} request timed out after {Constants.REQUEST_TIMEOUT} seconds",
                url=safe_target,
            ) from exc
        except requests.RequestException as exc:  # includes ConnectionError
            raise FeedUnavailable(f"{context} connection error: {exc}", url=safe_target) from exc
        if is_debug_enabled(logger):
            logger.debug(
                "HTTP response",
                extra=extra_context(
                    event="http_response",
                    component="http_client",
                    action="GET",
                    status_code=res.status_code,
                    duration_ms=t.duration_ms(),
                    target=safe_target,
                    context=context,
                ),
            )
        return res


def fetch_feed_document(url: str, *, context: str = "feed", password: Optional[str] = None) -> ET.Element:
    """GET an OData/Atom document and return its parsed root element.

    Raises:
        UnsupportedFeedOperation: The feed answered 404.
        FeedUnavailable: Any other transport, status or XML decoding failure.
    """
    res = safe_get(url, context=context, password=password)
    try:
        if res.status_code == 404:
            raise UnsupportedFeedOperation(
                f"{context} does not support {safe_url(url)}", url=safe_url(url), status_code=404
            )
        if res.status_code != 200:
            raise FeedUnavailable(
                f"{context} returned HTTP {res.status_code}", url=safe_url(url), status_code=res.status_code
            )
        try:
            return ET.fromstring(res.content)
        except ET.ParseError as exc:
            raise FeedUnavailable(
                f"{context} returned an undecodable document: {exc}", url=safe_url(url), status_code=res.status_code
            ) from exc
    finally:
        res.close()
