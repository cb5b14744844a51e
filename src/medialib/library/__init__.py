"""Library roots, MIME allow-list, and their validation."""

from .errors import (
    InvalidMimeTypeError,
    LibraryError,
    LibraryPathAlreadyConfiguredError,
    LibraryPathNotADirectoryError,
    LibraryPathNotConfiguredError,
    LibraryPathNotExistingError,
    LibraryPathNotReadableError,
    SupportedMimeTypeAlreadyConfiguredError,
    SupportedMimeTypeNotConfiguredError,
)
from .settings import LibrarySettingsService
from .validation import normalize_library_path, validate_library_path

__all__ = [
    "InvalidMimeTypeError",
    "LibraryError",
    "LibraryPathAlreadyConfiguredError",
    "LibraryPathNotADirectoryError",
    "LibraryPathNotConfiguredError",
    "LibraryPathNotExistingError",
    "LibraryPathNotReadableError",
    "LibrarySettingsService",
    "SupportedMimeTypeAlreadyConfiguredError",
    "SupportedMimeTypeNotConfiguredError",
    "normalize_library_path",
    "validate_library_path",
]
