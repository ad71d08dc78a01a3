"""Configuration models describing DeskFlow settings."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class DeskflowBaseModel(BaseModel):
    """Shared configuration for DeskFlow Pydantic models."""

    model_config = ConfigDict(extra="forbid")


class WatchSettings(DeskflowBaseModel):
    """Settings for the watch pipeline.

    Attributes:
        directory: Directory to watch; ``None`` means the user's Desktop.
        debounce_ms: Quiet period before a batch of notifications is reconciled.
        error_backoff_ms: Delay before re-subscribing after a watcher fault.
        monitoring_enabled: Whether monitoring starts enabled.
        include_hidden: Whether hidden/system files are cataloged.
    """

    directory: Optional[str] = None
    debounce_ms: int = Field(default=500, gt=0)
    error_backoff_ms: int = Field(default=500, ge=0)
    monitoring_enabled: bool = True
    include_hidden: bool = False

    def resolved_directory(self) -> Path:
        """Return the watched directory as an absolute path."""
        raw = self.directory or "~/Desktop"
        return Path(raw).expanduser().resolve()


class CatalogSettings(DeskflowBaseModel):
    """Catalog behavior.

    Attributes:
        auto_sort_on_create: Re-sort after the watcher catalogs new files.
        sort_history_limit: Maximum number of undo snapshots retained.
    """

    auto_sort_on_create: bool = False
    sort_history_limit: int = Field(default=50, ge=1)


class StorageSettings(DeskflowBaseModel):
    """Where state is persisted.

    Attributes:
        data_path: JSON document holding the catalog, profiles, and tasks.
    """

    data_path: str = "~/.deskflow/data.json"

    def resolved_data_path(self) -> Path:
        return Path(self.data_path).expanduser()


class OrganizationOptions(DeskflowBaseModel):
    """Settings for moving files into category folders.

    Attributes:
        sort_directory: Parent of the category folders; defaults to the
            watched directory.
    """

    sort_directory: Optional[str] = None


class LoggingSettings(DeskflowBaseModel):
    """Runtime logging configuration.

    Attributes:
        level: Logging verbosity level.
    """

    level: str = "WARNING"


class CLIOptions(DeskflowBaseModel):
    """CLI behavior defaults and presentation preferences.

    Attributes:
        quiet_default: Whether commands suppress non-error output by default.
        summary_default: Whether commands only print summary lines by default.
    """

    quiet_default: bool = False
    summary_default: bool = False


class DeskflowConfig(DeskflowBaseModel):
    """Top-level configuration struct for DeskFlow."""

    watch: WatchSettings = Field(default_factory=WatchSettings)
    catalog: CatalogSettings = Field(default_factory=CatalogSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    organization: OrganizationOptions = Field(default_factory=OrganizationOptions)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    cli: CLIOptions = Field(default_factory=CLIOptions)


__all__ = [
    "DeskflowBaseModel",
    "WatchSettings",
    "CatalogSettings",
    "StorageSettings",
    "OrganizationOptions",
    "LoggingSettings",
    "CLIOptions",
    "DeskflowConfig",
]
