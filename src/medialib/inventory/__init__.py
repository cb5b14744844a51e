"""Inventory persistence for indexed library files."""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from .errors import (
    InventoryError,
    NotAUniqueValueError,
    ParameterOutOfBoundsError,
    RecordNotFoundError,
    RequiredParameterNotSetError,
)
from .models import (
    CONTENT_HASH_MAX_LENGTH,
    ID_MAX_LENGTH,
    PATH_MAX_LENGTH,
    InventoryRecord,
    InventoryState,
)

LOGGER = logging.getLogger(__name__)

DEFAULT_INVENTORY_PATH = Path("~/.medialib/inventory.json")


class InventoryRepository:
    """Persist inventory records in a JSON file.

    The repository reads the file on every call, so callers always work
    against the current on-disk snapshot.
    """

    def __init__(self, path: Path | str | None = None) -> None:
        """Initialize the repository.

        Args:
            path: Location of the inventory file. Defaults to
                ``~/.medialib/inventory.json``.
        """
        self._path = Path(path or DEFAULT_INVENTORY_PATH).expanduser()

    @property
    def path(self) -> Path:
        """Return the inventory file location."""
        return self._path

    def load(self) -> InventoryState:
        """Load the inventory state.

        Returns:
            InventoryState: Stored state, or an empty state when no file exists.

        Raises:
            InventoryError: If stored data cannot be parsed.
        """
        if not self._path.exists():
            return InventoryState()

        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise InventoryError(f"Invalid inventory data in {self._path}: {exc}") from exc

        try:
            return InventoryState.model_validate(data)
        except ValidationError as exc:
            raise InventoryError(f"Invalid inventory data in {self._path}: {exc}") from exc

    def get_all_records(self) -> List[InventoryRecord]:
        """Return every stored record."""
        records = self.load().records
        LOGGER.debug("Loaded %d inventory records from %s", len(records), self._path)
        return records

    def get_by_checksum(self, content_hash: str) -> Optional[InventoryRecord]:
        """Return the record with ``content_hash``, if any."""
        return next(
            (record for record in self.get_all_records() if record.content_hash == content_hash),
            None,
        )

    def get_by_path(self, path: str) -> Optional[InventoryRecord]:
        """Return the record stored for ``path``, if any."""
        return next((record for record in self.get_all_records() if record.path == path), None)

    def save_or_update(self, record: InventoryRecord) -> InventoryRecord:
        """Insert ``record`` or replace the stored record with the same id.

        Args:
            record: Record to persist.

        Returns:
            InventoryRecord: The stored copy, with ``updated_at`` refreshed.

        Raises:
            RequiredParameterNotSetError: If a required field is empty.
            ParameterOutOfBoundsError: If a field exceeds its maximum length.
            NotAUniqueValueError: If another record already holds the content hash.
        """
        self._check_required(record)
        self._check_bounds(record)

        state = self.load()
        for other in state.records:
            if other.content_hash == record.content_hash and other.id != record.id:
                raise NotAUniqueValueError(
                    "content_hash",
                    record.content_hash,
                    f"A library file with checksum {record.content_hash} already exists.",
                )

        stored = record.model_copy(update={"updated_at": datetime.now(timezone.utc)})
        for position, existing in enumerate(state.records):
            if existing.id == record.id:
                stored = stored.model_copy(update={"created_at": existing.created_at})
                state.records[position] = stored
                LOGGER.debug("Updated inventory record %s", record.id)
                break
        else:
            state.records.append(stored)
            LOGGER.debug("Inserted inventory record %s", record.id)

        self._write(state)
        return stored

    def delete(self, record: InventoryRecord) -> InventoryRecord:
        """Remove ``record`` from the inventory.

        Returns:
            InventoryRecord: The record that was removed.

        Raises:
            RecordNotFoundError: If no record with that id is stored.
        """
        state = self.load()
        for position, existing in enumerate(state.records):
            if existing.id == record.id:
                del state.records[position]
                self._write(state)
                LOGGER.debug("Deleted inventory record %s", record.id)
                return existing
        raise RecordNotFoundError(f"Inventory record {record.id} does not exist.")

    def _check_required(self, record: InventoryRecord) -> None:
        for name in ("id", "path", "content_hash"):
            if not getattr(record, name):
                raise RequiredParameterNotSetError(name, f"The {name} of a library file must be set.")

    def _check_bounds(self, record: InventoryRecord) -> None:
        limits = (
            ("id", ID_MAX_LENGTH),
            ("path", PATH_MAX_LENGTH),
            ("content_hash", CONTENT_HASH_MAX_LENGTH),
        )
        for name, limit in limits:
            if len(getattr(record, name)) > limit:
                raise ParameterOutOfBoundsError(
                    name, f"The {name} of a library file exceeds {limit} characters."
                )
        if record.size_bytes < 0:
            raise ParameterOutOfBoundsError(
                "size_bytes", "The size of a library file cannot be negative."
            )

    def _write(self, state: InventoryState) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        state.updated_at = datetime.now(timezone.utc)
        payload = json.dumps(state.model_dump(mode="json"), indent=2)
        staging = self._path.with_name(f"{self._path.name}.tmp")
        staging.write_text(payload, encoding="utf-8")
        os.replace(staging, self._path)


__all__ = [
    "DEFAULT_INVENTORY_PATH",
    "InventoryError",
    "InventoryRecord",
    "InventoryRepository",
    "InventoryState",
    "NotAUniqueValueError",
    "ParameterOutOfBoundsError",
    "RecordNotFoundError",
    "RequiredParameterNotSetError",
]
