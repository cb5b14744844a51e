"""Tests for the directory walker."""

import os
from pathlib import Path

import pytest

from medialib.ingestion import DirectoryWalker, WalkError


def _tree(root: Path) -> None:
    (root / "b_album").mkdir()
    (root / "a_album" / "disc1").mkdir(parents=True)
    (root / "a_album" / "disc1" / "01.mp3").write_bytes(b"one")
    (root / "a_album" / "cover.jpg").write_bytes(b"jpeg")
    (root / "b_album" / "02.flac").write_bytes(b"two!")
    (root / "notes").write_text("no extension", encoding="utf-8")
    (root / ".hidden.mp3").write_bytes(b"h")


def test_walk_yields_every_file_depth_first_in_name_order(tmp_path: Path) -> None:
    _tree(tmp_path)

    found = list(DirectoryWalker().walk(tmp_path))

    assert [Path(item.path).relative_to(tmp_path).as_posix() for item in found] == [
        ".hidden.mp3",
        "a_album/cover.jpg",
        "a_album/disc1/01.mp3",
        "b_album/02.flac",
        "notes",
    ]
    by_name = {Path(item.path).name: item for item in found}
    assert by_name["01.mp3"].mime_type == "audio/mpeg"
    assert by_name["02.flac"].size_bytes == 4
    assert by_name["notes"].mime_type is None
    assert all(os.path.isabs(item.path) for item in found)


def test_walk_can_skip_hidden_entries(tmp_path: Path) -> None:
    _tree(tmp_path)

    names = [Path(item.path).name for item in DirectoryWalker(include_hidden=False).walk(tmp_path)]

    assert ".hidden.mp3" not in names


def test_walk_is_repeatable(tmp_path: Path) -> None:
    _tree(tmp_path)
    walker = DirectoryWalker()

    assert list(walker.walk(tmp_path)) == list(walker.walk(tmp_path))


def test_walk_missing_root_raises(tmp_path: Path) -> None:
    with pytest.raises(WalkError) as excinfo:
        list(DirectoryWalker().walk(tmp_path / "gone"))

    assert excinfo.value.path == str(tmp_path / "gone")


def test_walk_unlistable_directory_raises(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _tree(tmp_path)
    real_scandir = os.scandir
    blocked = str(tmp_path / "b_album")

    def _scandir(path):
        if os.fspath(path) == blocked:
            raise PermissionError(13, "Permission denied", blocked)
        return real_scandir(path)

    monkeypatch.setattr("medialib.ingestion.discovery.os.scandir", _scandir)

    with pytest.raises(WalkError) as excinfo:
        list(DirectoryWalker().walk(tmp_path))

    assert excinfo.value.path == blocked


def test_symlinks_are_skipped_unless_followed(tmp_path: Path) -> None:
    library = tmp_path / "library"
    library.mkdir()
    outside = tmp_path / "outside"
    outside.mkdir()
    (outside / "linked.mp3").write_bytes(b"linked")
    (library / "local.mp3").write_bytes(b"local")
    try:
        (library / "link").symlink_to(outside, target_is_directory=True)
        (library / "loop").symlink_to(library, target_is_directory=True)
    except (OSError, NotImplementedError):
        pytest.skip("symlinks are not supported on this platform")

    default_names = [Path(item.path).name for item in DirectoryWalker().walk(library)]
    followed_names = [
        Path(item.path).name for item in DirectoryWalker(follow_symlinks=True).walk(library)
    ]

    assert default_names == ["local.mp3"]
    # The self-referencing link is visited only once.
    assert followed_names == ["linked.mp3", "local.mp3"]
