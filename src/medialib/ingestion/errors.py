"""Errors raised while scanning library roots."""

from __future__ import annotations


class ScanError(Exception):
    """Base exception for failures that abort a scan."""


class WalkError(ScanError):
    """Raised when a directory or file cannot be read during a walk.

    Attributes:
        path: Filesystem path that triggered the failure.
    """

    def __init__(self, path: str, message: str) -> None:
        super().__init__(message)
        self.path = path


class FingerprintError(ScanError):
    """Raised when a file's content cannot be read for hashing.

    Attributes:
        path: Filesystem path that could not be fingerprinted.
    """

    def __init__(self, path: str, message: str) -> None:
        super().__init__(message)
        self.path = path


class RootUnavailableError(ScanError):
    """Raised when a configured library root fails validation at scan time."""


class ScanCancelledError(ScanError):
    """Raised when a scan is cancelled before it completes."""
