"""Exceptions raised by routing-data construction and lookup."""

from __future__ import annotations


class RoutingDataError(Exception):
    """Base exception for routing-data errors."""

    def __init__(self, message: str, *, path: str | None = None) -> None:
        super().__init__(message)
        self.path = path


class ConflictError(RoutingDataError):
    """Raised when a mapping would overlap an existing ownership region."""

    def __init__(
        self,
        message: str,
        *,
        path: str | None = None,
        existing_path: str | None = None,
        existing_realm: str | None = None,
    ) -> None:
        super().__init__(message, path=path)
        self.existing_path = existing_path
        self.existing_realm = existing_realm


class PathNotFoundError(RoutingDataError, LookupError):
    """Raised when no trie node exists for a path."""

    pass


class NoRealmFoundError(RoutingDataError, LookupError):
    """Raised when no leaf governs a path."""

    pass


class BuildError(RoutingDataError):
    """Internal consistency failure while freezing a builder tree."""

    pass


class RoutingDataFormatError(RoutingDataError, ValueError):
    """Raised when a routing-data document cannot be interpreted."""

    pass
