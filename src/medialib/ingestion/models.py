"""Data models produced while walking and fingerprinting library roots."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class FileDescriptor(BaseModel):
    """A file discovered by the directory walker.

    Attributes:
        path: Absolute path of the file.
        size_bytes: File size in bytes.
        mime_type: Detected MIME type, or None when undetectable.
    """

    model_config = ConfigDict(frozen=True)

    path: str
    size_bytes: int = Field(ge=0)
    mime_type: Optional[str] = None


class ScannedFile(FileDescriptor):
    """A walked file carrying its content fingerprint.

    Attributes:
        content_hash: Lowercase hex MD5 digest of the file content.
    """

    content_hash: Optional[str] = None


__all__ = ["FileDescriptor", "ScannedFile"]
