"""Tests for the library preference store."""

from pathlib import Path

import pytest

from medialib.config import ConfigManager
from medialib.library import (
    InvalidMimeTypeError,
    LibraryPathAlreadyConfiguredError,
    LibraryPathNotConfiguredError,
    LibraryPathNotExistingError,
    LibrarySettingsService,
    SupportedMimeTypeAlreadyConfiguredError,
    SupportedMimeTypeNotConfiguredError,
)


@pytest.fixture()
def service(tmp_path: Path) -> LibrarySettingsService:
    manager = ConfigManager(config_path=tmp_path / "config" / "config.yaml", env={})
    return LibrarySettingsService(manager)


def _make_dirs(tmp_path: Path, *names: str) -> list[str]:
    created = []
    for name in names:
        directory = tmp_path / name
        directory.mkdir()
        created.append(str(directory))
    return created


def test_add_library_path_persists_normalized_path(
    service: LibrarySettingsService, tmp_path: Path
) -> None:
    (music,) = _make_dirs(tmp_path, "music")

    stored = service.add_library_path(f"{music}/../music")

    assert stored == music
    assert service.get_library_paths() == [music]
    assert music in service.manager.read_text()


def test_add_library_path_rejects_duplicates(
    service: LibrarySettingsService, tmp_path: Path
) -> None:
    (music,) = _make_dirs(tmp_path, "music")
    service.add_library_path(music)

    with pytest.raises(LibraryPathAlreadyConfiguredError) as excinfo:
        service.add_library_path(music)

    assert excinfo.value.code == 409
    assert service.get_library_paths() == [music]


def test_add_library_path_validates_before_writing(
    service: LibrarySettingsService, tmp_path: Path
) -> None:
    with pytest.raises(LibraryPathNotExistingError):
        service.add_library_path(str(tmp_path / "missing"))

    assert service.get_library_paths() == []


def test_remove_library_path(service: LibrarySettingsService, tmp_path: Path) -> None:
    music, podcasts = _make_dirs(tmp_path, "music", "podcasts")
    service.add_library_path(music)
    service.add_library_path(podcasts)

    service.remove_library_path(music)

    assert service.get_library_paths() == [podcasts]


def test_remove_unknown_library_path_fails(
    service: LibrarySettingsService, tmp_path: Path
) -> None:
    with pytest.raises(LibraryPathNotConfiguredError):
        service.remove_library_path(str(tmp_path))


def test_set_library_paths_is_all_or_nothing(
    service: LibrarySettingsService, tmp_path: Path
) -> None:
    music, podcasts = _make_dirs(tmp_path, "music", "podcasts")
    service.set_library_paths([music])

    with pytest.raises(LibraryPathNotExistingError):
        service.set_library_paths([podcasts, str(tmp_path / "missing")])

    assert service.get_library_paths() == [music]

    assert service.set_library_paths([podcasts, music, podcasts]) == [podcasts, music]
    assert service.get_library_paths() == [podcasts, music]


def test_mime_type_round_trip(service: LibrarySettingsService) -> None:
    service.set_mime_types(["audio/mpeg"])

    assert service.add_mime_type("Audio/FLAC") == "audio/flac"
    assert service.get_mime_types() == ["audio/mpeg", "audio/flac"]

    service.remove_mime_type("audio/mpeg")
    assert service.get_mime_types() == ["audio/flac"]


def test_mime_type_errors(service: LibrarySettingsService) -> None:
    service.set_mime_types(["audio/mpeg"])

    with pytest.raises(SupportedMimeTypeAlreadyConfiguredError):
        service.add_mime_type("audio/mpeg")
    with pytest.raises(SupportedMimeTypeNotConfiguredError):
        service.remove_mime_type("audio/ogg")
    with pytest.raises(InvalidMimeTypeError):
        service.set_mime_types(["audio/ogg", "not a mime"])

    assert service.get_mime_types() == ["audio/mpeg"]


def test_changes_are_visible_to_a_fresh_service(
    service: LibrarySettingsService, tmp_path: Path
) -> None:
    (music,) = _make_dirs(tmp_path, "music")
    service.add_library_path(music)

    other = LibrarySettingsService(ConfigManager(config_path=service.manager.config_path, env={}))

    assert other.get_library_paths() == [music]
