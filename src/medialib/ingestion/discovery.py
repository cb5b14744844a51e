"""File discovery utilities."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterator

from .detectors import TypeDetector
from .errors import WalkError
from .models import FileDescriptor

LOGGER = logging.getLogger(__name__)


class DirectoryWalker:
    """Enumerate every file beneath a library root, depth first.

    Each call to :meth:`walk` reads the tree afresh. Entries are visited in
    sorted name order so repeated walks over an unchanged tree yield the same
    sequence. Any I/O failure raises :class:`WalkError`; nothing is skipped
    silently.
    """

    def __init__(
        self,
        detector: TypeDetector | None = None,
        *,
        follow_symlinks: bool = False,
        include_hidden: bool = True,
    ) -> None:
        self.detector = detector or TypeDetector()
        self.follow_symlinks = follow_symlinks
        self.include_hidden = include_hidden

    def walk(self, root: str | Path) -> Iterator[FileDescriptor]:
        """Yield a descriptor for each regular file under ``root``.

        Raises:
            WalkError: If ``root`` or any directory beneath it cannot be listed,
                or an entry cannot be inspected.
        """
        root_path = os.path.abspath(os.path.expanduser(os.fspath(root)))
        LOGGER.debug("Walking library root %s", root_path)
        visited: set[str] = set()
        yield from self._walk_directory(root_path, visited)

    def _walk_directory(self, directory: str, visited: set[str]) -> Iterator[FileDescriptor]:
        real = os.path.realpath(directory)
        if real in visited:
            LOGGER.warning("Skipping %s; directory already visited through a symlink", directory)
            return
        visited.add(real)

        try:
            with os.scandir(directory) as iterator:
                entries = sorted(iterator, key=lambda entry: entry.name)
        except OSError as exc:
            raise WalkError(directory, f"Cannot list directory {directory}: {exc}") from exc

        for entry in entries:
            if not self.include_hidden and entry.name.startswith("."):
                continue
            try:
                is_link = entry.is_symlink()
                if is_link and not self.follow_symlinks:
                    LOGGER.debug("Skipping symbolic link %s", entry.path)
                    continue
                if entry.is_dir(follow_symlinks=self.follow_symlinks):
                    yield from self._walk_directory(entry.path, visited)
                    continue
                if not entry.is_file(follow_symlinks=self.follow_symlinks):
                    if is_link:
                        LOGGER.warning("Skipping dangling symbolic link %s", entry.path)
                    continue
                info = entry.stat(follow_symlinks=self.follow_symlinks)
            except OSError as exc:
                raise WalkError(entry.path, f"Cannot inspect {entry.path}: {exc}") from exc

            yield FileDescriptor(
                path=entry.path,
                size_bytes=info.st_size,
                mime_type=self.detector.detect(entry.path),
            )


__all__ = ["DirectoryWalker"]
