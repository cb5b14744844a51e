"""Configuration resolution helpers."""

from __future__ import annotations

from collections.abc import Mapping as MappingABC
from copy import deepcopy
from typing import Any, Dict, Mapping, Sequence

import yaml
from pydantic import ValidationError

from .exceptions import ConfigError
from .models import MedialibConfig

ENV_PREFIX = "MEDIALIB__"


def resolve_with_precedence(
    *,
    defaults: MedialibConfig,
    file_overrides: Mapping[str, Any] | None = None,
    env_overrides: Mapping[str, Any] | None = None,
    cli_overrides: Mapping[str, Any] | None = None,
) -> MedialibConfig:
    """Merge configuration sources, later sources winning.

    Precedence runs defaults < file < environment < CLI. Dotted keys such as
    ``scan.workers`` are expanded into nested mappings before merging.

    Args:
        defaults: Baseline configuration.
        file_overrides: Values read from the configuration file.
        env_overrides: Values derived from ``MEDIALIB__`` environment variables.
        cli_overrides: Values supplied on the command line.

    Returns:
        MedialibConfig: Validated, merged configuration.

    Raises:
        ConfigError: If a source is malformed or the merged result is invalid.
    """
    merged = defaults.model_dump(mode="python")
    sources = (("file", file_overrides), ("environment", env_overrides), ("cli", cli_overrides))
    for name, source in sources:
        if source is None:
            continue
        merged = _deep_merge(merged, _expand_dotted(source, source_name=name))

    try:
        return MedialibConfig.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration values: {exc}") from exc


def flatten_for_env(config: MedialibConfig) -> Dict[str, str]:
    """Flatten the config into ``MEDIALIB__SECTION__KEY`` environment variable mappings."""
    flat: Dict[str, str] = {}

    def _walk(prefix: Sequence[str], value: Any) -> None:
        if isinstance(value, dict):
            for key, child in value.items():
                _walk([*prefix, str(key)], child)
            return
        env_key = ENV_PREFIX + "__".join(part.upper() for part in prefix)
        if isinstance(value, list):
            flat[env_key] = yaml.safe_dump(value, default_flow_style=True).strip()
        elif value is None:
            flat[env_key] = "null"
        else:
            flat[env_key] = str(value)

    _walk([], config.model_dump(mode="python"))
    return flat


def assign_nested(
    target: dict[str, Any], path: Sequence[str], value: Any, *, source_name: str = "file"
) -> None:
    """Assign ``value`` at ``path`` inside ``target``, creating intermediate mappings.

    Raises:
        ConfigError: If an intermediate segment already holds a non-mapping value.
    """
    node = target
    for segment in path[:-1]:
        child = node.get(segment)
        if child is None:
            child = {}
            node[segment] = child
        elif not isinstance(child, dict):
            raise ConfigError(
                f"{source_name.capitalize()} override for {'.'.join(path)} conflicts with "
                f"existing value at '{segment}'."
            )
        node = child
    node[path[-1]] = value


def _expand_dotted(source: Mapping[str, Any], *, source_name: str) -> dict[str, Any]:
    if not isinstance(source, MappingABC):
        raise ConfigError(f"{source_name.capitalize()} overrides must be a mapping.")

    expanded: dict[str, Any] = {}
    for key, value in source.items():
        if not isinstance(key, str):
            raise ConfigError(f"{source_name.capitalize()} override keys must be strings.")
        if isinstance(value, MappingABC):
            value = _expand_dotted(value, source_name=source_name)
        path = key.split(".")
        existing = _lookup(expanded, path)
        if isinstance(existing, dict) and isinstance(value, dict):
            value = _deep_merge(existing, value)
        assign_nested(expanded, path, value, source_name=source_name)
    return expanded


def _lookup(target: Mapping[str, Any], path: Sequence[str]) -> Any:
    node: Any = target
    for segment in path:
        if not isinstance(node, MappingABC) or segment not in node:
            return None
        node = node[segment]
    return node


def _deep_merge(base: Mapping[str, Any], overrides: Mapping[str, Any]) -> dict[str, Any]:
    merged = {key: deepcopy(value) for key, value in base.items()}
    for key, value in overrides.items():
        current = merged.get(key)
        if isinstance(value, MappingABC) and isinstance(current, MappingABC):
            merged[key] = _deep_merge(current, value)
        else:
            merged[key] = deepcopy(value)
    return merged


__all__ = ["ENV_PREFIX", "assign_nested", "resolve_with_precedence", "flatten_for_env"]
