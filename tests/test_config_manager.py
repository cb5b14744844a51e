"""Unit tests for configuration management."""

from pathlib import Path

import pytest

from medialib.config import (
    ConfigError,
    ConfigManager,
    MedialibConfig,
    flatten_for_env,
    resolve_with_precedence,
)
from medialib.config.models import DEFAULT_MIME_TYPES, LibrarySettings


def _fresh_manager(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> ConfigManager:
    monkeypatch.setenv("HOME", str(tmp_path))
    return ConfigManager()


def test_ensure_exists_creates_default_file(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch)

    path = manager.ensure_exists()

    assert path == tmp_path / ".medialib" / "config.yaml"
    text = path.read_text(encoding="utf-8")
    assert "medialib configuration file" in text
    assert "Last updated:" in text

    config = manager.load(include_env=False)
    assert isinstance(config, MedialibConfig)
    assert config.library.paths == []
    assert config.library.mime_types == DEFAULT_MIME_TYPES


def test_resolve_with_precedence_respects_order(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch)
    manager.ensure_exists()

    manager.save({"scan": {"workers": 2, "include_hidden": False}, "logging": {"level": "INFO"}})

    env = {"MEDIALIB__SCAN__WORKERS": "8", "MEDIALIB__LOGGING__LEVEL": "DEBUG"}
    cli = {"logging.level": "ERROR"}

    config = manager.load(cli_overrides=cli, env_overrides=env)

    assert config.scan.include_hidden is False
    # Environment overrides the file, CLI overrides the environment
    assert config.scan.workers == 8
    assert config.logging.level == "ERROR"


def test_environment_lists_are_parsed_as_yaml(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch)

    config = manager.load(env_overrides={"MEDIALIB__LIBRARY__MIME_TYPES": "[audio/mpeg, Audio/FLAC]"})

    assert config.library.mime_types == ["audio/mpeg", "audio/flac"]


def test_load_can_ignore_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MEDIALIB__SCAN__WORKERS", "9")
    manager = _fresh_manager(tmp_path, monkeypatch)

    assert manager.load().scan.workers == 9
    assert manager.load(include_env=False).scan.workers == 4


def test_invalid_yaml_raises_config_error(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch)
    manager.ensure_exists()

    manager.config_path.write_text("- not-a-mapping", encoding="utf-8")

    with pytest.raises(ConfigError):
        manager.load()


def test_unknown_keys_are_rejected() -> None:
    with pytest.raises(ConfigError):
        resolve_with_precedence(defaults=MedialibConfig(), file_overrides={"watch": {"x": 1}})


def test_flatten_for_env_round_trips_defaults() -> None:
    flat = flatten_for_env(MedialibConfig())

    assert flat["MEDIALIB__SCAN__WORKERS"] == "4"
    assert flat["MEDIALIB__LIBRARY__PATHS"] == "[]"
    assert flat["MEDIALIB__LOGGING__FILE"] == "null"


def test_resolve_with_precedence_invalid_value_raises() -> None:
    with pytest.raises(ConfigError):
        resolve_with_precedence(
            defaults=MedialibConfig(),
            file_overrides={"scan": {"workers": 0}},
        )


def test_library_settings_normalize_mime_types() -> None:
    settings = LibrarySettings(
        paths=["/music", "/music", "/podcasts"],
        mime_types=[" Audio/MPEG", "audio/mpeg", "audio/ogg"],
    )

    assert settings.paths == ["/music", "/podcasts"]
    assert settings.mime_types == ["audio/mpeg", "audio/ogg"]


def test_library_settings_reject_malformed_mime_type() -> None:
    with pytest.raises(ValueError):
        LibrarySettings(mime_types=["mpeg"])


def test_update_validates_before_writing(tmp_path: Path) -> None:
    manager = ConfigManager(config_path=tmp_path / "config.yaml", env={})

    config = manager.update(("scan", "workers"), 6)
    assert config.scan.workers == 6

    with pytest.raises(ConfigError):
        manager.update(("scan", "workers"), -2)
    with pytest.raises(ConfigError):
        manager.update(("scan", "workers", "nested"), 1)

    assert manager.load().scan.workers == 6
