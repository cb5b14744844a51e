"""File type detection and content hashing utilities."""

from __future__ import annotations

import hashlib
import logging
import mimetypes
import os
from pathlib import Path
from typing import Mapping, Optional, Union

from .errors import FingerprintError

LOGGER = logging.getLogger(__name__)

# Audio extensions missing from, or mapped inconsistently by, the interpreter's
# built-in table.
AUDIO_TYPES: Mapping[str, str] = {
    ".mp3": "audio/mpeg",
    ".flac": "audio/flac",
    ".ogg": "audio/ogg",
    ".oga": "audio/ogg",
    ".opus": "audio/ogg",
    ".m4a": "audio/mp4",
    ".aac": "audio/aac",
    ".wav": "audio/x-wav",
    ".aif": "audio/x-aiff",
    ".aiff": "audio/x-aiff",
    ".wma": "audio/x-ms-wma",
}

_CHUNK_SIZE = 1024 * 1024

FingerprintSource = Union[str, os.PathLike, bytes, bytearray, memoryview]


class TypeDetector:
    """Identify MIME types from file names.

    A private ``mimetypes.MimeTypes`` table is used so results do not depend on
    the host's ``mime.types`` files.
    """

    def __init__(self, extra_types: Mapping[str, str] | None = None) -> None:
        self._table = mimetypes.MimeTypes()
        for extension, mime_type in {**AUDIO_TYPES, **(extra_types or {})}.items():
            self._table.add_type(mime_type, extension)

    def detect(self, path: str | Path) -> Optional[str]:
        """Return the MIME type for ``path`` or None when it cannot be determined."""
        mime_type, _encoding = self._table.guess_type(os.fspath(path), strict=False)
        return mime_type


class HashComputer:
    """Compute MD5 content digests used for change detection."""

    def compute(self, source: FingerprintSource) -> str:
        """Return the lowercase hex MD5 digest of ``source``.

        Args:
            source: A filesystem path, or the content itself as a bytes-like object.

        Returns:
            str: 32 character hex digest.

        Raises:
            FingerprintError: If the file cannot be read.
        """
        digest = hashlib.md5()
        if isinstance(source, (bytes, bytearray, memoryview)):
            LOGGER.debug("Computing MD5 checksum from buffer")
            digest.update(source)
            return digest.hexdigest()

        path = os.fspath(source)
        LOGGER.debug("Computing MD5 checksum of %s", path)
        try:
            with open(path, "rb") as handle:
                for chunk in iter(lambda: handle.read(_CHUNK_SIZE), b""):
                    digest.update(chunk)
        except OSError as exc:
            raise FingerprintError(path, f"Cannot read {path}: {exc}") from exc
        return digest.hexdigest()


__all__ = ["AUDIO_TYPES", "FingerprintSource", "HashComputer", "TypeDetector"]
