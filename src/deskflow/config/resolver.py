"""Configuration layering: defaults, file, environment, then CLI."""

from __future__ import annotations

from collections.abc import Mapping as MappingABC
from copy import deepcopy
from typing import Any, Dict, Mapping

import yaml
from pydantic import ValidationError

from .exceptions import ConfigError
from .models import DeskflowConfig

ENV_PREFIX = "DESKFLOW__"


def resolve_with_precedence(
    *,
    defaults: DeskflowConfig,
    file_overrides: Mapping[str, Any] | None = None,
    env_overrides: Mapping[str, Any] | None = None,
    cli_overrides: Mapping[str, Any] | None = None,
) -> DeskflowConfig:
    """Merge override layers onto ``defaults``; later layers win.

    Args:
        defaults: Baseline configuration.
        file_overrides: Nested mapping read from the YAML file.
        env_overrides: Nested mapping derived from ``DESKFLOW__`` variables.
        cli_overrides: Mapping whose keys may be dotted (``watch.debounce_ms``).

    Returns:
        DeskflowConfig: Validated merged configuration.

    Raises:
        ConfigError: If a layer is malformed or the result fails validation.
    """
    merged: dict[str, Any] = defaults.model_dump(mode="python")
    layers = (("file", file_overrides), ("environment", env_overrides), ("cli", cli_overrides))
    for label, layer in layers:
        if layer is None:
            continue
        merged = deep_merge(merged, expand_dotted(layer, label=label))

    try:
        return DeskflowConfig.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration values: {exc}") from exc


def env_to_overrides(env: Mapping[str, str]) -> dict[str, Any]:
    """Convert ``DESKFLOW__SECTION__KEY`` variables into a nested mapping.

    Values are parsed as YAML scalars so ``true`` and ``250`` keep their types.
    """
    overrides: dict[str, Any] = {}
    for key, raw_value in env.items():
        if not key.startswith(ENV_PREFIX):
            continue
        segments = [segment.lower() for segment in key[len(ENV_PREFIX) :].split("__") if segment]
        if not segments:
            continue
        try:
            value = yaml.safe_load(raw_value)
        except yaml.YAMLError:
            value = raw_value
        _set_path(overrides, segments, value, label="environment")
    return overrides


def flatten_for_env(config: DeskflowConfig) -> Dict[str, str]:
    """Render ``config`` as the environment variables that would reproduce it."""
    flat: Dict[str, str] = {}

    def _walk(prefix: list[str], value: Any) -> None:
        if isinstance(value, dict):
            for child_key, child in value.items():
                _walk([*prefix, str(child_key)], child)
            return
        name = ENV_PREFIX + "__".join(part.upper() for part in prefix)
        flat[name] = "null" if value is None else str(value)

    _walk([], config.model_dump(mode="python"))
    return flat


def expand_dotted(source: Mapping[str, Any], *, label: str) -> dict[str, Any]:
    """Return a nested copy of ``source`` with dotted keys expanded."""
    if not isinstance(source, MappingABC):
        raise ConfigError(f"{label.capitalize()} overrides must be a mapping.")

    result: dict[str, Any] = {}
    for key, value in source.items():
        if not isinstance(key, str):
            raise ConfigError(f"{label.capitalize()} override keys must be strings.")
        if isinstance(value, MappingABC):
            value = expand_dotted(value, label=label)
        _set_path(result, key.split("."), value, label=label)
    return result


def deep_merge(base: Mapping[str, Any], overrides: Mapping[str, Any]) -> dict[str, Any]:
    """Recursively merge ``overrides`` into a copy of ``base``."""
    merged = {key: deepcopy(value) for key, value in base.items()}
    for key, value in overrides.items():
        current = merged.get(key)
        if isinstance(value, MappingABC) and isinstance(current, MappingABC):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = deepcopy(value)
    return merged


def _set_path(target: dict[str, Any], path: list[str], value: Any, *, label: str) -> None:
    node = target
    for segment in path[:-1]:
        child = node.setdefault(segment, {})
        if not isinstance(child, dict):
            raise ConfigError(
                f"{label.capitalize()} override for {'.'.join(path)} conflicts with existing value."
            )
        node = child
    leaf = path[-1]
    existing = node.get(leaf)
    if isinstance(value, MappingABC) and isinstance(existing, MappingABC):
        node[leaf] = deep_merge(existing, value)
    else:
        node[leaf] = value


__all__ = [
    "ENV_PREFIX",
    "resolve_with_precedence",
    "env_to_overrides",
    "flatten_for_env",
    "expand_dotted",
    "deep_merge",
]
