"""Configuration management for medialib.

The configuration file is YAML, stored at ``~/.medialib/config.yaml`` unless
another location is given. It holds only the values the user changed; the
effective configuration is always rebuilt from the defaults, the file, the
``MEDIALIB__`` environment and any CLI overrides, and is never cached.
"""

from __future__ import annotations

import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping, Sequence

import yaml

from .exceptions import ConfigError
from .models import MedialibConfig
from .resolver import ENV_PREFIX, assign_nested, flatten_for_env, resolve_with_precedence

LOGGER = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("~/.medialib/config.yaml")
_HEADER_LINES = (
    "# medialib configuration file",
    "# Generated automatically; manage via `medialib config set` or the "
    "`medialib library` commands.",
)


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class ConfigManager:
    """Read, validate and persist the medialib configuration file."""

    def __init__(
        self,
        config_path: Path | None = None,
        *,
        env: Mapping[str, str] | None = None,
    ) -> None:
        """Initialize the manager.

        Args:
            config_path: Location of the YAML file. Defaults to
                ``~/.medialib/config.yaml``.
            env: Environment mapping consulted for ``MEDIALIB__`` overrides.
                Defaults to ``os.environ``; pass ``{}`` to disable.
        """
        self._config_path = (config_path or DEFAULT_CONFIG_PATH).expanduser()
        self._env = os.environ if env is None else env

    @property
    def config_path(self) -> Path:
        """Return the resolved configuration path."""
        return self._config_path

    def load(
        self,
        *,
        cli_overrides: Mapping[str, Any] | None = None,
        include_env: bool = True,
        ensure_file: bool = True,
        env_overrides: Mapping[str, str] | None = None,
    ) -> MedialibConfig:
        """Build the effective configuration.

        Args:
            cli_overrides: Highest-precedence values, dotted keys allowed.
            include_env: Whether ``MEDIALIB__`` variables participate.
            ensure_file: Create the file with defaults when it is missing.
            env_overrides: Environment mapping to use instead of the one given
                at construction.

        Returns:
            MedialibConfig: Validated configuration.

        Raises:
            ConfigError: If the file cannot be parsed or a value is invalid.
        """
        if ensure_file:
            self.ensure_exists()

        env_values: dict[str, Any] | None = None
        if include_env:
            env_values = self._extract_env(self._env if env_overrides is None else env_overrides)

        return resolve_with_precedence(
            defaults=MedialibConfig(),
            file_overrides=self._read_file(),
            env_overrides=env_values or None,
            cli_overrides=cli_overrides,
        )

    def load_file_overrides(self) -> dict[str, Any]:
        """Return the raw mapping stored on disk."""
        return self._read_file()

    def update(self, path: Sequence[str], value: Any) -> MedialibConfig:
        """Set one nested value in the file after validating the result.

        The file is left untouched when the new value does not validate.

        Args:
            path: Key segments, e.g. ``("library", "paths")``.
            value: Value to store.

        Returns:
            MedialibConfig: Configuration as stored, without environment values.

        Raises:
            ConfigError: If the path collides with a scalar or the value is invalid.
        """
        file_data = self._read_file()
        assign_nested(file_data, list(path), value)
        validated = resolve_with_precedence(defaults=MedialibConfig(), file_overrides=file_data)
        self._write_file(file_data)
        LOGGER.debug("Configuration key %s updated in %s", ".".join(path), self._config_path)
        return validated

    def save(self, config: MedialibConfig | Mapping[str, Any]) -> None:
        """Persist ``config`` as the file contents."""
        if isinstance(config, MedialibConfig):
            data = config.model_dump(mode="python")
        else:
            data = dict(config)
        self._write_file(data)

    def ensure_exists(self) -> Path:
        """Create a configuration file with defaults if one does not exist."""
        if not self._config_path.exists():
            self._write_file(MedialibConfig().model_dump(mode="python"))
            LOGGER.debug("Created default configuration at %s", self._config_path)
        return self._config_path

    def read_text(self) -> str:
        """Return the current configuration file contents."""
        if not self._config_path.exists():
            return ""
        return self._config_path.read_text(encoding="utf-8")

    # Internal helpers -------------------------------------------------

    def _read_file(self) -> dict[str, Any]:
        text = self.read_text()
        if not text:
            return {}

        try:
            raw = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Failed to parse {self._config_path}: {exc}") from exc

        if raw is None:
            return {}
        if not isinstance(raw, dict):
            raise ConfigError(f"{self._config_path} must contain a mapping at the top level.")
        return raw

    def _write_file(self, data: Mapping[str, Any]) -> None:
        lines = [*_HEADER_LINES, f"# Last updated: {_timestamp()}"]
        body = yaml.safe_dump(dict(data), sort_keys=False)
        self._config_path.parent.mkdir(parents=True, exist_ok=True)
        staging = self._config_path.with_name(f"{self._config_path.name}.tmp")
        staging.write_text("\n".join(lines) + "\n" + body, encoding="utf-8")
        os.replace(staging, self._config_path)

    def _extract_env(self, env: Mapping[str, str]) -> dict[str, Any]:
        overrides: dict[str, Any] = {}
        for key, raw_value in env.items():
            if not key.startswith(ENV_PREFIX):
                continue
            segments = [part.lower() for part in key[len(ENV_PREFIX) :].split("__") if part]
            if not segments:
                continue
            try:
                value: Any = yaml.safe_load(raw_value)
            except yaml.YAMLError:
                value = raw_value
            assign_nested(overrides, segments, value, source_name="environment")
        return overrides


__all__ = [
    "ConfigError",
    "ConfigManager",
    "DEFAULT_CONFIG_PATH",
    "MedialibConfig",
    "flatten_for_env",
    "resolve_with_precedence",
]
