"""Validation of library root directories."""

from __future__ import annotations

import logging
import os
import stat
import sys
from pathlib import Path

from .errors import (
    LibraryPathNotADirectoryError,
    LibraryPathNotExistingError,
    LibraryPathNotReadableError,
)

LOGGER = logging.getLogger(__name__)


def normalize_library_path(path: str | Path) -> str:
    """Return ``path`` with ``~`` expanded and made absolute."""
    return os.path.abspath(os.path.expanduser(os.fspath(path)))


def validate_library_path(path: str | Path) -> None:
    """Ensure ``path`` is an existing, readable directory.

    The readability check is skipped on Windows where ``os.access`` does not
    reflect ACLs reliably.

    Args:
        path: Candidate library root.

    Raises:
        LibraryPathNotExistingError: If the path cannot be found.
        LibraryPathNotADirectoryError: If the path is not a directory.
        LibraryPathNotReadableError: If the directory cannot be listed.
    """
    target = os.fspath(path)
    LOGGER.debug("Checking whether '%s' is a valid library path", target)

    try:
        info = os.stat(target)
    except (FileNotFoundError, NotADirectoryError) as exc:
        raise LibraryPathNotExistingError(
            target, f"Library path '{target}' does not exist."
        ) from exc
    except PermissionError as exc:
        raise LibraryPathNotReadableError(
            target, f"Library path '{target}' cannot be accessed."
        ) from exc

    if not stat.S_ISDIR(info.st_mode):
        raise LibraryPathNotADirectoryError(
            target, f"Library path '{target}' is not a directory."
        )

    if sys.platform != "win32" and not os.access(target, os.R_OK | os.X_OK):
        raise LibraryPathNotReadableError(target, f"Library path '{target}' is not readable.")

    LOGGER.debug("Library path '%s' is valid", target)


__all__ = ["normalize_library_path", "validate_library_path"]
