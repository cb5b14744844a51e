"""Configuration models describing medialib settings."""

from __future__ import annotations

import re
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

MIME_TYPE_PATTERN = re.compile(r"^[a-z0-9][a-z0-9!#$&^_.+-]*/[a-z0-9][a-z0-9!#$&^_.+-]*$")

DEFAULT_MIME_TYPES = [
    "audio/mpeg",
    "audio/flac",
    "audio/x-flac",
    "audio/ogg",
    "audio/mp4",
    "audio/x-m4a",
    "audio/aac",
    "audio/wav",
    "audio/x-wav",
]


def _unique(values: List[str]) -> List[str]:
    seen: set[str] = set()
    result: List[str] = []
    for value in values:
        if value in seen:
            continue
        seen.add(value)
        result.append(value)
    return result


class MedialibBaseModel(BaseModel):
    """Shared configuration for medialib Pydantic models."""

    model_config = ConfigDict(extra="forbid")


class LibrarySettings(MedialibBaseModel):
    """Library roots and the MIME allow-list applied while scanning.

    Attributes:
        paths: Ordered list of absolute library root directories.
        mime_types: Ordered list of MIME types eligible for indexing.
    """

    paths: List[str] = Field(default_factory=list)
    mime_types: List[str] = Field(default_factory=lambda: list(DEFAULT_MIME_TYPES))

    @field_validator("paths")
    @classmethod
    def _dedupe_paths(cls, value: List[str]) -> List[str]:
        return _unique([item for item in value if item])

    @field_validator("mime_types")
    @classmethod
    def _validate_mime_types(cls, value: List[str]) -> List[str]:
        normalized = [item.strip().lower() for item in value]
        for item in normalized:
            if not MIME_TYPE_PATTERN.match(item):
                raise ValueError(f"'{item}' is not a valid MIME type")
        return _unique(normalized)


class ScanOptions(MedialibBaseModel):
    """Options governing a scan pass.

    Attributes:
        workers: Size of the fingerprinting worker pool.
        follow_symlinks: Whether to traverse symbolic links.
        include_hidden: Whether dot-prefixed entries are walked.
        revalidate_roots: Whether library roots are validated again before each scan.
    """

    workers: int = Field(default=4, ge=1)
    follow_symlinks: bool = False
    include_hidden: bool = True
    revalidate_roots: bool = True


class InventorySettings(MedialibBaseModel):
    """Location of the persisted inventory.

    Attributes:
        path: JSON file holding the inventory records.
    """

    path: str = "~/.medialib/inventory.json"


class LoggingSettings(MedialibBaseModel):
    """Runtime logging configuration.

    Attributes:
        level: Logging verbosity level.
        file: Optional log file; rotation applies when set.
        max_size_mb: Maximum log size before rotation.
        backup_count: Number of historical log files to retain.
    """

    level: str = "WARNING"
    file: Optional[str] = None
    max_size_mb: int = Field(default=100, ge=1)
    backup_count: int = Field(default=5, ge=0)


class CLIOptions(MedialibBaseModel):
    """CLI behavior defaults and presentation preferences.

    Attributes:
        quiet_default: Whether commands suppress non-error output by default.
        summary_default: Whether commands only print summary lines by default.
    """

    quiet_default: bool = False
    summary_default: bool = False


class MedialibConfig(MedialibBaseModel):
    """Top-level configuration struct for medialib.

    Attributes:
        library: Library roots and MIME allow-list.
        scan: Scan behaviour.
        inventory: Inventory persistence settings.
        logging: Logging configuration.
        cli: CLI presentation defaults.
    """

    library: LibrarySettings = Field(default_factory=LibrarySettings)
    scan: ScanOptions = Field(default_factory=ScanOptions)
    inventory: InventorySettings = Field(default_factory=InventorySettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    cli: CLIOptions = Field(default_factory=CLIOptions)


__all__ = [
    "DEFAULT_MIME_TYPES",
    "MIME_TYPE_PATTERN",
    "MedialibBaseModel",
    "LibrarySettings",
    "ScanOptions",
    "InventorySettings",
    "LoggingSettings",
    "CLIOptions",
    "MedialibConfig",
]
