"""Reconcile a scanned file set against the persisted inventory.

Each scanned file is joined against the inventory on two identity keys, its
path and its content hash:

==========================  ==========================  ===============
record at same path         record with same hash       operation
==========================  ==========================  ===============
present                     same record                 ``NONE``
present                     absent                      ``UPDATED``
absent                      present                     ``MOVED``
absent                      absent                      ``CREATED``
present                     a different record          ``UNSUPPORTED``
==========================  ==========================  ===============

Further states cannot be applied safely and are reported as ``UNSUPPORTED``
instead of being auto-resolved:

* the scanned path or hash matches more than one inventory record (an
  integrity problem in the inventory; the record with the smallest id is
  still used for matching so the result does not depend on input order);
* several scanned files share one content hash; every member of the group
  except one already classified ``NONE`` is unsupported, since persisting
  more than one of them would break hash uniqueness;
* one inventory record is claimed by an ``UPDATED`` at its own path and by a
  ``MOVED`` elsewhere; both claims are unsupported.

Inventory records matched by neither key of any scanned file are reported as
``DELETED``. The classifier performs no I/O and never mutates its inputs.
"""

from __future__ import annotations

import logging
from collections import Counter, defaultdict
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional

from medialib.ingestion.models import ScannedFile
from medialib.inventory.models import InventoryRecord

from .models import ChangeOperation, ChangeRecord

LOGGER = logging.getLogger(__name__)

_WRITES = (ChangeOperation.CREATED, ChangeOperation.UPDATED, ChangeOperation.MOVED)


@dataclass(slots=True)
class _KeyIndex:
    """Inventory records grouped by one identity key."""

    label: str
    buckets: Dict[str, List[InventoryRecord]]

    @classmethod
    def build(
        cls,
        records: Iterable[InventoryRecord],
        key: Callable[[InventoryRecord], str],
        label: str,
    ) -> "_KeyIndex":
        buckets: Dict[str, List[InventoryRecord]] = defaultdict(list)
        for record in records:
            buckets[key(record)].append(record)
        for value, bucket in buckets.items():
            bucket.sort(key=lambda record: record.id)
            if len(bucket) > 1:
                LOGGER.warning(
                    "Inventory integrity problem: %d records share %s %s",
                    len(bucket),
                    label,
                    value,
                )
        return cls(label=label, buckets=dict(buckets))

    def lookup(self, value: Optional[str]) -> List[InventoryRecord]:
        if value is None:
            return []
        return self.buckets.get(value, [])


@dataclass(slots=True)
class _Match:
    file: ScannedFile
    by_path: Optional[InventoryRecord]
    by_hash: Optional[InventoryRecord]
    operation: ChangeOperation
    ambiguous: bool


def _provisional(
    by_path: Optional[InventoryRecord], by_hash: Optional[InventoryRecord]
) -> ChangeOperation:
    if by_path is not None and by_hash is not None:
        if by_path.id == by_hash.id:
            return ChangeOperation.NONE
        return ChangeOperation.UNSUPPORTED
    if by_path is not None:
        return ChangeOperation.UPDATED
    if by_hash is not None:
        return ChangeOperation.MOVED
    return ChangeOperation.CREATED


def classify(
    scanned: Iterable[ScannedFile],
    inventory: Iterable[InventoryRecord],
) -> List[ChangeRecord]:
    """Classify every scanned file and every unmatched inventory record.

    Args:
        scanned: Fingerprinted files found by a scan. Paths must be unique.
        inventory: Snapshot of the persisted inventory.

    Returns:
        List[ChangeRecord]: One record per scanned file, sorted by path,
        followed by one ``DELETED`` record per unmatched inventory entry,
        sorted by path.

    Raises:
        ValueError: If a scanned file lacks a content hash or a path occurs twice.
    """
    files = sorted(scanned, key=lambda item: item.path)
    records = list(inventory)

    seen_paths: set[str] = set()
    for item in files:
        if item.content_hash is None:
            raise ValueError(f"Scanned file {item.path} has not been fingerprinted")
        if item.path in seen_paths:
            raise ValueError(f"Scanned file {item.path} appears more than once")
        seen_paths.add(item.path)

    paths = _KeyIndex.build(records, lambda record: record.path, "path")
    hashes = _KeyIndex.build(records, lambda record: record.content_hash, "content hash")

    matched_ids: set[str] = set()
    matches: List[_Match] = []
    for item in files:
        path_bucket = paths.lookup(item.path)
        hash_bucket = hashes.lookup(item.content_hash)
        matched_ids.update(record.id for record in (*path_bucket, *hash_bucket))

        by_path = path_bucket[0] if path_bucket else None
        by_hash = hash_bucket[0] if hash_bucket else None
        matches.append(
            _Match(
                file=item,
                by_path=by_path,
                by_hash=by_hash,
                operation=_provisional(by_path, by_hash),
                ambiguous=len(path_bucket) > 1 or len(hash_bucket) > 1,
            )
        )

    hash_counts = Counter(item.content_hash for item in files)
    updated_ids = {
        match.by_path.id
        for match in matches
        if match.operation is ChangeOperation.UPDATED and match.by_path is not None
    }
    moved_ids = {
        match.by_hash.id
        for match in matches
        if match.operation is ChangeOperation.MOVED
        and match.by_hash is not None
        and hash_counts[match.file.content_hash] == 1
    }
    contested_ids = updated_ids & moved_ids

    changes: List[ChangeRecord] = []
    for match in matches:
        operation = match.operation
        reason: Optional[str] = None
        if match.ambiguous:
            reason = "matches several inventory records"
        elif operation in _WRITES and hash_counts[match.file.content_hash] > 1:
            reason = f"shares content hash {match.file.content_hash} with another scanned file"
        elif operation is ChangeOperation.UPDATED and match.by_path.id in contested_ids:
            reason = f"record {match.by_path.id} was also moved elsewhere"
        elif operation is ChangeOperation.MOVED and match.by_hash.id in contested_ids:
            reason = f"record {match.by_hash.id} was also changed in place"
        elif operation is ChangeOperation.UNSUPPORTED:
            reason = "path and content belong to different inventory records"

        if reason is not None:
            LOGGER.warning("Cannot reconcile %s: %s", match.file.path, reason)
            changes.append(ChangeRecord(operation=ChangeOperation.UNSUPPORTED, file=match.file))
            continue

        subject = match.by_path if match.by_path is not None else match.by_hash
        changes.append(ChangeRecord(operation=operation, file=match.file, record=subject))

    deleted = sorted(
        (record for record in records if record.id not in matched_ids),
        key=lambda record: (record.path, record.id),
    )
    changes.extend(
        ChangeRecord(operation=ChangeOperation.DELETED, record=record) for record in deleted
    )

    LOGGER.debug(
        "Classified %d scanned files against %d inventory records into %d changes",
        len(files),
        len(records),
        len(changes),
    )
    return changes


def summarize(changes: Iterable[ChangeRecord]) -> Dict[str, int]:
    """Return a count of changes per operation, covering every operation."""
    counts = Counter(change.operation for change in changes)
    return {operation.value: counts.get(operation, 0) for operation in ChangeOperation}


__all__ = ["classify", "summarize"]
