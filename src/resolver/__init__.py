"""Update resolution across package sources."""

from .updates import UpdateResolver, resolve_updates, find_package  # noqa: F401

__all__ = ["UpdateResolver", "resolve_updates", "find_package"]
