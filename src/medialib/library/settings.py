"""Library preference store backed by the configuration file."""

from __future__ import annotations

import logging
from typing import Any, Iterable, List, Mapping

from medialib.config import ConfigManager
from medialib.config.models import MIME_TYPE_PATTERN, LibrarySettings

from .errors import (
    InvalidMimeTypeError,
    LibraryPathAlreadyConfiguredError,
    LibraryPathNotConfiguredError,
    SupportedMimeTypeAlreadyConfiguredError,
    SupportedMimeTypeNotConfiguredError,
)
from .validation import normalize_library_path, validate_library_path

LOGGER = logging.getLogger(__name__)


def _normalize_mime_type(value: str) -> str:
    normalized = value.strip().lower()
    if not MIME_TYPE_PATTERN.match(normalized):
        raise InvalidMimeTypeError(value, f"'{value}' is not a valid MIME type.")
    return normalized


def _unique(values: Iterable[str]) -> List[str]:
    return list(dict.fromkeys(values))


class LibrarySettingsService:
    """Read and mutate the library roots and MIME allow-list.

    Every call reads the configuration file afresh; nothing is cached on the
    instance. Mutations are validated completely before the file is written,
    so a rejected call leaves the configuration untouched.
    """

    def __init__(self, manager: ConfigManager | None = None) -> None:
        self._manager = manager or ConfigManager()

    @property
    def manager(self) -> ConfigManager:
        """Return the underlying configuration manager."""
        return self._manager

    def load(self) -> LibrarySettings:
        """Return the effective library settings."""
        return self._manager.load().library

    def get_library_paths(self) -> list[str]:
        """Return the configured library roots in order."""
        return list(self.load().paths)

    def get_mime_types(self) -> list[str]:
        """Return the configured MIME allow-list in order."""
        return list(self.load().mime_types)

    # Library paths ----------------------------------------------------

    def add_library_path(self, path: str) -> str:
        """Validate ``path`` and append it to the configured roots.

        Returns:
            str: Normalized path that was stored.

        Raises:
            LibraryPathNotExistingError: If the path does not exist.
            LibraryPathNotADirectoryError: If the path is not a directory.
            LibraryPathNotReadableError: If the path is not readable.
            LibraryPathAlreadyConfiguredError: If the path is already configured.
        """
        normalized = normalize_library_path(path)
        validate_library_path(normalized)

        paths = list(self._stored().paths)
        if normalized in paths:
            raise LibraryPathAlreadyConfiguredError(
                normalized, f"Library path '{normalized}' is already configured."
            )

        self._store("paths", [*paths, normalized])
        LOGGER.info("Added library path %s", normalized)
        return normalized

    def remove_library_path(self, path: str) -> str:
        """Remove ``path`` from the configured roots.

        Raises:
            LibraryPathNotConfiguredError: If the path is not configured.
        """
        normalized = normalize_library_path(path)
        paths = list(self._stored().paths)
        if normalized not in paths:
            raise LibraryPathNotConfiguredError(
                normalized, f"Library path '{normalized}' is not configured."
            )

        self._store("paths", [item for item in paths if item != normalized])
        LOGGER.info("Removed library path %s", normalized)
        return normalized

    def set_library_paths(self, paths: Iterable[str]) -> list[str]:
        """Replace the configured roots after validating every entry.

        Validation of all paths happens before anything is written.
        """
        normalized = _unique(normalize_library_path(path) for path in paths)
        for candidate in normalized:
            validate_library_path(candidate)

        self._store("paths", normalized)
        LOGGER.info("Library paths replaced with %d entries", len(normalized))
        return normalized

    # MIME types -------------------------------------------------------

    def add_mime_type(self, mime_type: str) -> str:
        """Append ``mime_type`` to the allow-list.

        Raises:
            InvalidMimeTypeError: If the value is not a ``type/subtype`` string.
            SupportedMimeTypeAlreadyConfiguredError: If already allowed.
        """
        normalized = _normalize_mime_type(mime_type)
        mime_types = list(self._stored().mime_types)
        if normalized in mime_types:
            raise SupportedMimeTypeAlreadyConfiguredError(
                normalized, f"MIME type '{normalized}' is already configured."
            )

        self._store("mime_types", [*mime_types, normalized])
        return normalized

    def remove_mime_type(self, mime_type: str) -> str:
        """Remove ``mime_type`` from the allow-list.

        Raises:
            SupportedMimeTypeNotConfiguredError: If the type is not allowed.
        """
        normalized = mime_type.strip().lower()
        mime_types = list(self._stored().mime_types)
        if normalized not in mime_types:
            raise SupportedMimeTypeNotConfiguredError(
                normalized, f"MIME type '{normalized}' is not configured."
            )

        self._store("mime_types", [item for item in mime_types if item != normalized])
        return normalized

    def set_mime_types(self, mime_types: Iterable[str]) -> list[str]:
        """Replace the allow-list; every entry is validated first."""
        normalized = _unique(_normalize_mime_type(item) for item in mime_types)
        self._store("mime_types", normalized)
        return normalized

    def check_section(self, section: Mapping[str, Any]) -> dict[str, Any]:
        """Return a copy of a raw ``library`` mapping with its entries checked.

        Paths are normalized and validated like :meth:`set_library_paths`,
        MIME types like :meth:`set_mime_types`. Nothing is written. Values that
        are not lists are passed through for model validation to reject.

        Raises:
            LibraryError: If any path or MIME type is rejected.
        """
        checked = dict(section)
        paths = checked.get("paths")
        if isinstance(paths, list):
            normalized = _unique(normalize_library_path(str(path)) for path in paths if path)
            for candidate in normalized:
                validate_library_path(candidate)
            checked["paths"] = normalized
        mime_types = checked.get("mime_types")
        if isinstance(mime_types, list):
            checked["mime_types"] = _unique(_normalize_mime_type(str(item)) for item in mime_types)
        return checked

    # Internal helpers -------------------------------------------------

    def _stored(self) -> LibrarySettings:
        """Return library settings as persisted, ignoring environment overrides."""
        return self._manager.load(include_env=False).library

    def _store(self, key: str, values: list[str]) -> None:
        self._manager.update(("library", key), values)


__all__ = ["LibrarySettingsService"]
