"""Errors raised by the feed transport layer.

Package sources catch these and degrade to empty results; they are never
meant to escape a query or a multi-source resolution.
"""
from __future__ import annotations

from typing import Optional


class FeedError(Exception):
    """Base class for feed failures."""

    def __init__(self, message: str, *, url: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class FeedUnavailable(FeedError):
    """Transport failure, timeout, bad status or undecodable response body."""


class UnsupportedFeedOperation(FeedUnavailable):
    """The feed answered 404 for the requested operation."""
