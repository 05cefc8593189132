# src/core/errors.py

"""Error taxonomy for the catalog sync.

Every failure the sync can report derives from ``SyncError`` so hosts can
catch a single base class. Artwork failures never surface as exceptions;
they are recovered per entry and only counted.
"""

from __future__ import annotations

__all__ = [
    "AuthenticationError",
    "ConfigurationMissingError",
    "PersistenceError",
    "ProtocolError",
    "RommConnectionError",
    "SyncCancelledError",
    "SyncError",
    "SyncInProgressError",
]


class SyncError(Exception):
    """Base class for all sync failures."""


class ConfigurationMissingError(SyncError):
    """Base URL or API token is not configured."""


class RommConnectionError(SyncError):
    """The RomM server could not be reached or answered with an error status.

    Attributes:
        status_code: HTTP status of the response, or None when no response
            was received (DNS failure, refused connection, timeout).
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class AuthenticationError(SyncError):
    """The server rejected the API token (HTTP 401/403)."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ProtocolError(SyncError):
    """A response body could not be parsed into the expected record shape."""


class PersistenceError(SyncError):
    """A document could not be written to (or read from) disk."""


class SyncInProgressError(SyncError):
    """Another sync run is already active."""


class SyncCancelledError(SyncError):
    """The run was cancelled before any entries were resolved."""
