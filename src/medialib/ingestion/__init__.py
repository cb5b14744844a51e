"""Library discovery, type detection and fingerprinting.

The scan orchestrator lives in :mod:`medialib.ingestion.pipeline`.
"""

from .detectors import HashComputer, TypeDetector
from .discovery import DirectoryWalker
from .errors import (
    FingerprintError,
    RootUnavailableError,
    ScanCancelledError,
    ScanError,
    WalkError,
)
from .models import FileDescriptor, ScannedFile

__all__ = [
    "DirectoryWalker",
    "FileDescriptor",
    "FingerprintError",
    "HashComputer",
    "RootUnavailableError",
    "ScanCancelledError",
    "ScanError",
    "ScannedFile",
    "TypeDetector",
    "WalkError",
]
