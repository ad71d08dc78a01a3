"""Configuration management for DeskFlow."""

from __future__ import annotations

import os
import textwrap
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping

import yaml

from .exceptions import ConfigError
from .models import DeskflowConfig
from .resolver import env_to_overrides, flatten_for_env, resolve_with_precedence

DEFAULT_CONFIG_PATH = Path("~/.deskflow/config.yaml")
_CONFIG_HEADER = textwrap.dedent(
    """\
    # DeskFlow configuration file
    # Generated automatically; edit by hand or with `deskflow config set`.
    """
)


class ConfigManager:
    """Load and persist configuration data, applying precedence rules."""

    def __init__(
        self,
        config_path: Path | None = None,
        *,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self._config_path = (config_path or DEFAULT_CONFIG_PATH).expanduser()
        self._env = env if env is not None else os.environ

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
    ) -> DeskflowConfig:
        """Return the effective configuration.

        Args:
            cli_overrides: Highest-precedence overrides, dotted keys allowed.
            include_env: Whether ``DESKFLOW__`` environment variables apply.
            ensure_file: Create the file with defaults when it is missing.

        Raises:
            ConfigError: If the file or any override is invalid.
        """
        if ensure_file:
            self.ensure_exists()

        return resolve_with_precedence(
            defaults=DeskflowConfig(),
            file_overrides=self.load_file_overrides(),
            env_overrides=env_to_overrides(self._env) if include_env else None,
            cli_overrides=cli_overrides,
        )

    def load_file_overrides(self) -> dict[str, Any]:
        """Return the raw mapping stored on disk (empty when absent)."""
        if not self._config_path.exists():
            return {}

        try:
            raw = yaml.safe_load(self._config_path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Failed to parse configuration file: {exc}") from exc

        if not isinstance(raw, dict):
            raise ConfigError("Configuration file must contain a mapping at the top level.")
        return raw

    def save(self, config: DeskflowConfig | Mapping[str, Any]) -> None:
        """Persist configuration data to disk."""
        data = config.model_dump(mode="python") if isinstance(config, DeskflowConfig) else dict(config)
        self._config_path.parent.mkdir(parents=True, exist_ok=True)
        stamp = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
        body = yaml.safe_dump(data, sort_keys=False, allow_unicode=True)
        self._config_path.write_text(
            f"{_CONFIG_HEADER}# Last updated: {stamp}\n{body}", encoding="utf-8"
        )

    def ensure_exists(self) -> Path:
        """Create a configuration file with defaults if one does not exist."""
        if not self._config_path.exists():
            self.save(DeskflowConfig())
        return self._config_path

    def read_text(self) -> str:
        """Return the current configuration file contents."""
        if not self._config_path.exists():
            return ""
        return self._config_path.read_text(encoding="utf-8")


__all__ = [
    "ConfigManager",
    "DEFAULT_CONFIG_PATH",
    "DeskflowConfig",
    "resolve_with_precedence",
    "flatten_for_env",
    "ConfigError",
]
