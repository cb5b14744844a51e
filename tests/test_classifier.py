"""Tests for reconciling scanned files against the inventory."""

import itertools
import logging

import pytest

from medialib.ingestion import ScannedFile
from medialib.inventory.models import InventoryRecord
from medialib.reconciliation import ChangeOperation, ChangeRecord, classify, summarize

H1 = "1" * 32
H2 = "2" * 32
H3 = "3" * 32


def _record(record_id: str, path: str, content_hash: str) -> InventoryRecord:
    return InventoryRecord(id=record_id, path=path, content_hash=content_hash, size_bytes=10)


def _scanned(path: str, content_hash: str | None) -> ScannedFile:
    return ScannedFile(path=path, size_bytes=10, mime_type="audio/mpeg", content_hash=content_hash)


def _operations(changes: list[ChangeRecord]) -> list[tuple[str, str]]:
    return [(change.operation.value, change.path) for change in changes]


def test_unchanged_file_is_none() -> None:
    record = _record("1", "/a/x.mp3", H1)

    (change,) = classify([_scanned("/a/x.mp3", H1)], [record])

    assert change.operation is ChangeOperation.NONE
    assert change.record == record


def test_content_changed_in_place_is_updated() -> None:
    record = _record("1", "/a/x.mp3", H1)

    (change,) = classify([_scanned("/a/x.mp3", H2)], [record])

    assert change.operation is ChangeOperation.UPDATED
    assert change.record == record
    assert change.file is not None and change.file.content_hash == H2


def test_same_content_at_new_path_is_moved() -> None:
    record = _record("1", "/a/x.mp3", H1)

    (change,) = classify([_scanned("/b/y.mp3", H1)], [record])

    assert change.operation is ChangeOperation.MOVED
    assert change.record == record
    assert change.path == "/b/y.mp3"


def test_unknown_file_is_created() -> None:
    (change,) = classify([_scanned("/a/new.mp3", H3)], [])

    assert change.operation is ChangeOperation.CREATED
    assert change.record is None


def test_missing_file_is_deleted() -> None:
    record = _record("1", "/a/x.mp3", H1)

    (change,) = classify([], [record])

    assert change.operation is ChangeOperation.DELETED
    assert change.record == record
    assert change.file is None


def test_identity_collision_is_unsupported() -> None:
    inventory = [_record("1", "/a/x.mp3", H1), _record("2", "/b/y.mp3", H2)]

    changes = classify([_scanned("/a/x.mp3", H2)], inventory)

    assert _operations(changes) == [("unsupported", "/a/x.mp3")]
    assert changes[0].record is None


def test_every_input_is_accounted_for_exactly_once() -> None:
    inventory = [
        _record("1", "/a/keep.mp3", H1),
        _record("2", "/a/edit.mp3", "a" * 32),
        _record("3", "/a/gone.mp3", "b" * 32),
        _record("4", "/a/old-name.mp3", "c" * 32),
    ]
    scanned = [
        _scanned("/a/keep.mp3", H1),
        _scanned("/a/edit.mp3", "d" * 32),
        _scanned("/a/new-name.mp3", "c" * 32),
        _scanned("/a/fresh.mp3", "e" * 32),
    ]

    changes = classify(scanned, inventory)

    assert _operations(changes) == [
        ("updated", "/a/edit.mp3"),
        ("created", "/a/fresh.mp3"),
        ("none", "/a/keep.mp3"),
        ("moved", "/a/new-name.mp3"),
        ("deleted", "/a/gone.mp3"),
    ]
    assert summarize(changes) == {
        "none": 1,
        "created": 1,
        "updated": 1,
        "moved": 1,
        "deleted": 1,
        "unsupported": 0,
    }


def test_result_does_not_depend_on_input_order() -> None:
    inventory = [
        _record("1", "/a/x.mp3", H1),
        _record("2", "/b/y.mp3", H2),
        _record("3", "/c/z.mp3", H3),
    ]
    scanned = [
        _scanned("/a/x.mp3", H2),
        _scanned("/c/moved.mp3", H3),
        _scanned("/d/new.mp3", "f" * 32),
    ]

    expected = classify(scanned, inventory)
    for scanned_order in itertools.permutations(scanned):
        for inventory_order in itertools.permutations(inventory):
            assert classify(list(scanned_order), list(inventory_order)) == expected


def test_classify_is_idempotent_and_pure() -> None:
    inventory = [_record("1", "/a/x.mp3", H1)]
    scanned = [_scanned("/a/y.mp3", H1)]
    inventory_before = [record.model_copy() for record in inventory]

    first = classify(scanned, inventory)
    second = classify(scanned, inventory)

    assert first == second
    assert inventory == inventory_before


def test_copies_sharing_content_are_unsupported(caplog: pytest.LogCaptureFixture) -> None:
    inventory = [_record("1", "/a/x.mp3", H1)]
    scanned = [
        _scanned("/a/x.mp3", H1),
        _scanned("/b/copy.mp3", H1),
        _scanned("/c/one.mp3", H3),
        _scanned("/c/two.mp3", H3),
    ]

    with caplog.at_level(logging.WARNING, logger="medialib.reconciliation"):
        changes = classify(scanned, inventory)

    assert _operations(changes) == [
        ("none", "/a/x.mp3"),
        ("unsupported", "/b/copy.mp3"),
        ("unsupported", "/c/one.mp3"),
        ("unsupported", "/c/two.mp3"),
    ]
    assert "shares content hash" in caplog.text


def test_record_claimed_by_update_and_move_is_unsupported() -> None:
    # The old content moved away and new content took its place.
    inventory = [_record("1", "/a/x.mp3", H1)]
    scanned = [_scanned("/a/x.mp3", H2), _scanned("/b/x.mp3", H1)]

    changes = classify(scanned, inventory)

    assert _operations(changes) == [
        ("unsupported", "/a/x.mp3"),
        ("unsupported", "/b/x.mp3"),
    ]


def test_duplicate_inventory_paths_are_unsupported_and_not_deleted() -> None:
    inventory = [_record("2", "/a/x.mp3", H2), _record("1", "/a/x.mp3", H1)]

    changes = classify([_scanned("/a/x.mp3", H1)], inventory)

    assert _operations(changes) == [("unsupported", "/a/x.mp3")]


def test_deleted_records_follow_scanned_files_sorted_by_path() -> None:
    inventory = [_record("1", "/z/first.mp3", H1), _record("2", "/a/second.mp3", H2)]

    changes = classify([_scanned("/m/new.mp3", H3)], inventory)

    assert _operations(changes) == [
        ("created", "/m/new.mp3"),
        ("deleted", "/a/second.mp3"),
        ("deleted", "/z/first.mp3"),
    ]


def test_unfingerprinted_file_is_rejected() -> None:
    with pytest.raises(ValueError):
        classify([_scanned("/a/x.mp3", None)], [])


def test_duplicate_scanned_path_is_rejected() -> None:
    with pytest.raises(ValueError):
        classify([_scanned("/a/x.mp3", H1), _scanned("/a/x.mp3", H2)], [])


def test_change_record_requires_a_subject() -> None:
    with pytest.raises(ValueError):
        ChangeRecord(operation=ChangeOperation.DELETED)
    with pytest.raises(ValueError):
        ChangeRecord(operation=ChangeOperation.CREATED)
