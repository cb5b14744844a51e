"""Change classification models."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, model_validator

from medialib.ingestion.models import ScannedFile
from medialib.inventory.models import InventoryRecord


class ChangeOperation(str, Enum):
    """Outcome of reconciling one file against the inventory."""

    NONE = "none"
    CREATED = "created"
    UPDATED = "updated"
    MOVED = "moved"
    DELETED = "deleted"
    UNSUPPORTED = "unsupported"


class ChangeRecord(BaseModel):
    """One classified change.

    ``file`` is set for every operation except DELETED, which carries the
    inventory ``record`` that disappeared. ``record`` is also set for NONE,
    UPDATED and MOVED so the caller knows which stored entry to touch.

    Attributes:
        operation: Classified operation.
        file: Scanned file the change refers to.
        record: Inventory record the change refers to, when one applies.
    """

    model_config = ConfigDict(frozen=True)

    operation: ChangeOperation
    file: Optional[ScannedFile] = None
    record: Optional[InventoryRecord] = None

    @model_validator(mode="after")
    def _check_subject(self) -> "ChangeRecord":
        if self.operation is ChangeOperation.DELETED:
            if self.record is None:
                raise ValueError("DELETED changes require an inventory record")
        elif self.file is None:
            raise ValueError(f"{self.operation.name} changes require a scanned file")
        return self

    @property
    def path(self) -> str:
        """Return the path the change applies to."""
        if self.file is not None:
            return self.file.path
        if self.record is None:
            raise ValueError("change has neither a scanned file nor a record")
        return self.record.path


__all__ = ["ChangeOperation", "ChangeRecord"]
