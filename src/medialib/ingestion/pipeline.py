"""High-level scan orchestration."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from typing import Dict, Iterable, List, Protocol, Sequence

from medialib.inventory.models import InventoryRecord
from medialib.library.errors import LibraryError
from medialib.library.validation import normalize_library_path, validate_library_path
from medialib.reconciliation.classifier import classify
from medialib.reconciliation.models import ChangeRecord

from .detectors import HashComputer
from .discovery import DirectoryWalker
from .errors import RootUnavailableError, ScanCancelledError
from .models import FileDescriptor, ScannedFile

LOGGER = logging.getLogger(__name__)


class LibrarySettingsSource(Protocol):
    """Supplies the library roots and MIME allow-list."""

    def get_library_paths(self) -> Sequence[str]: ...

    def get_mime_types(self) -> Sequence[str]: ...


class InventorySource(Protocol):
    """Supplies a snapshot of the persisted inventory."""

    def get_all_records(self) -> Sequence[InventoryRecord]: ...


class ScanOrchestrator:
    """Walk, filter, fingerprint and classify the configured library.

    The orchestrator reads configuration through ``settings`` on every call and
    never writes to the inventory; applying the returned changes is up to the
    caller.
    """

    def __init__(
        self,
        settings: LibrarySettingsSource,
        inventory: InventorySource,
        *,
        walker: DirectoryWalker | None = None,
        hasher: HashComputer | None = None,
        workers: int = 1,
        revalidate_roots: bool = True,
    ) -> None:
        if workers < 1:
            raise ValueError("workers must be at least 1")
        self.settings = settings
        self.inventory = inventory
        self.walker = walker or DirectoryWalker()
        self.hasher = hasher or HashComputer()
        self.workers = workers
        self.revalidate_roots = revalidate_roots

    def scan(self, cancel_event: threading.Event | None = None) -> List[ChangeRecord]:
        """Run one scan pass against the current configuration.

        Args:
            cancel_event: Optional event checked between files; when set the
                scan stops with :class:`ScanCancelledError`.

        Returns:
            List[ChangeRecord]: Classified changes. Empty when no library roots
            are configured.

        Raises:
            RootUnavailableError: If a configured root no longer validates.
            WalkError: If the tree cannot be walked.
            FingerprintError: If a candidate file cannot be read.
            ScanCancelledError: If ``cancel_event`` is set mid-scan.
        """
        roots = [normalize_library_path(root) for root in self.settings.get_library_paths()]
        if not roots:
            LOGGER.warning("No library paths configured; nothing to scan")
            return []

        allowed = {mime.lower() for mime in self.settings.get_mime_types()}
        LOGGER.info("Scanning %d library root(s) for %d MIME type(s)", len(roots), len(allowed))

        candidates = self._collect_candidates(roots, allowed, cancel_event)
        LOGGER.info("Fingerprinting %d candidate file(s)", len(candidates))
        scanned = self._fingerprint(candidates, cancel_event)

        records = list(self.inventory.get_all_records())
        changes = classify(scanned, records)
        LOGGER.info("Scan produced %d change record(s)", len(changes))
        return changes

    def _collect_candidates(
        self,
        roots: Iterable[str],
        allowed: set[str],
        cancel_event: threading.Event | None,
    ) -> List[FileDescriptor]:
        candidates: Dict[str, FileDescriptor] = {}
        for root in roots:
            if self.revalidate_roots:
                try:
                    validate_library_path(root)
                except LibraryError as exc:
                    raise RootUnavailableError(
                        f"Library root {root} is unavailable: {exc}"
                    ) from exc

            for descriptor in self.walker.walk(root):
                _check_cancelled(cancel_event)
                if descriptor.mime_type is None or descriptor.mime_type.lower() not in allowed:
                    LOGGER.debug(
                        "Skipping %s with MIME type %s", descriptor.path, descriptor.mime_type
                    )
                    continue
                candidates.setdefault(descriptor.path, descriptor)
        return list(candidates.values())

    def _fingerprint(
        self,
        candidates: Sequence[FileDescriptor],
        cancel_event: threading.Event | None,
    ) -> List[ScannedFile]:
        if self.workers == 1 or len(candidates) < 2:
            return [self._fingerprint_one(item, cancel_event) for item in candidates]

        with ThreadPoolExecutor(max_workers=self.workers) as executor:
            futures = [
                executor.submit(self._fingerprint_one, item, cancel_event) for item in candidates
            ]
            done, not_done = wait(futures, return_when=FIRST_EXCEPTION)
            for future in not_done:
                future.cancel()
            for future in futures:
                if future not in done:
                    continue
                error = future.exception()
                if error is not None:
                    raise error
            return [future.result() for future in futures]

    def _fingerprint_one(
        self, descriptor: FileDescriptor, cancel_event: threading.Event | None
    ) -> ScannedFile:
        _check_cancelled(cancel_event)
        content_hash = self.hasher.compute(descriptor.path)
        return ScannedFile(**descriptor.model_dump(), content_hash=content_hash)


def _check_cancelled(cancel_event: threading.Event | None) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise ScanCancelledError("Scan cancelled")


__all__ = ["InventorySource", "LibrarySettingsSource", "ScanOrchestrator"]
