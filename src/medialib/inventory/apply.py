"""Apply classified changes to the inventory on behalf of a caller."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, List

from medialib.reconciliation.models import ChangeOperation, ChangeRecord

from . import InventoryRepository
from .models import InventoryRecord

LOGGER = logging.getLogger(__name__)

_ORDER = {
    ChangeOperation.DELETED: 0,
    ChangeOperation.UPDATED: 1,
    ChangeOperation.MOVED: 1,
    ChangeOperation.CREATED: 2,
}


@dataclass(slots=True)
class ApplySummary:
    """Counts of inventory writes performed by :func:`apply_changes`.

    Attributes:
        created: Records inserted.
        updated: Records whose content hash and size changed.
        moved: Records whose path changed.
        deleted: Records removed.
        skipped: Changes that required no write (NONE and UNSUPPORTED).
        unsupported: Paths left for manual handling.
    """

    created: int = 0
    updated: int = 0
    moved: int = 0
    deleted: int = 0
    skipped: int = 0
    unsupported: List[str] = field(default_factory=list)

    def as_dict(self) -> dict[str, int]:
        """Return the counters as a JSON-friendly mapping."""
        return {
            "created": self.created,
            "updated": self.updated,
            "moved": self.moved,
            "deleted": self.deleted,
            "skipped": self.skipped,
        }


def apply_changes(
    repository: InventoryRepository, changes: Iterable[ChangeRecord]
) -> ApplySummary:
    """Persist CREATED, UPDATED, MOVED and DELETED changes.

    Deletions run first so freed content hashes can be reused, then in-place
    updates and moves, then insertions. NONE and UNSUPPORTED changes are left
    untouched.

    Raises:
        InventoryError: Propagated from the repository when a write is rejected.
    """
    summary = ApplySummary()
    pending = []
    for change in changes:
        if change.operation in _ORDER:
            pending.append(change)
            continue
        summary.skipped += 1
        if change.operation is ChangeOperation.UNSUPPORTED:
            summary.unsupported.append(change.path)

    for change in sorted(pending, key=lambda item: _ORDER[item.operation]):
        operation = change.operation
        record = change.record
        if operation is ChangeOperation.DELETED:
            if record is None:
                raise ValueError("DELETED change has no inventory record")
            repository.delete(record)
            summary.deleted += 1
            continue

        scanned = change.file
        if scanned is None:
            raise ValueError(f"{operation.name} change has no scanned file")
        if operation is ChangeOperation.CREATED:
            repository.save_or_update(
                InventoryRecord(
                    path=scanned.path,
                    content_hash=scanned.content_hash or "",
                    size_bytes=scanned.size_bytes,
                )
            )
            summary.created += 1
        elif record is None:
            raise ValueError(f"{operation.name} change for {scanned.path} has no inventory record")
        elif operation is ChangeOperation.UPDATED:
            repository.save_or_update(
                record.model_copy(
                    update={
                        "content_hash": scanned.content_hash,
                        "size_bytes": scanned.size_bytes,
                    }
                )
            )
            summary.updated += 1
        else:
            repository.save_or_update(
                record.model_copy(
                    update={"path": scanned.path, "size_bytes": scanned.size_bytes}
                )
            )
            summary.moved += 1

    LOGGER.info(
        "Applied changes: %d created, %d updated, %d moved, %d deleted",
        summary.created,
        summary.updated,
        summary.moved,
        summary.deleted,
    )
    return summary


__all__ = ["ApplySummary", "apply_changes"]
