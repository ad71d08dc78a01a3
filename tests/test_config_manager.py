"""Unit tests for configuration management."""

from pathlib import Path

import pytest

from deskflow.config import (
    ConfigError,
    ConfigManager,
    DeskflowConfig,
    flatten_for_env,
    resolve_with_precedence,
)


def _fresh_manager(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, env: dict[str, str] | None = None
) -> ConfigManager:
    monkeypatch.setenv("HOME", str(tmp_path))
    return ConfigManager(env=env or {})


def test_ensure_exists_creates_default_file(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch)

    path = manager.ensure_exists()

    assert path == tmp_path / ".deskflow" / "config.yaml"
    text = path.read_text(encoding="utf-8")
    assert "DeskFlow configuration file" in text
    assert "Last updated:" in text

    config = manager.load(include_env=False)
    assert isinstance(config, DeskflowConfig)
    assert config.watch.debounce_ms == 500
    assert config.catalog.sort_history_limit == 50


def test_resolve_with_precedence_respects_order(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    env = {"DESKFLOW__WATCH__DEBOUNCE_MS": "250", "DESKFLOW__CATALOG__AUTO_SORT_ON_CREATE": "true"}
    manager = _fresh_manager(tmp_path, monkeypatch, env)
    manager.save({"watch": {"debounce_ms": 900, "directory": "/srv/desk"}})

    config = manager.load(cli_overrides={"watch.debounce_ms": 100})

    assert config.watch.directory == "/srv/desk"
    assert config.catalog.auto_sort_on_create is True
    # CLI overrides take precedence over environment
    assert config.watch.debounce_ms == 100


def test_environment_overrides_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch, {"DESKFLOW__WATCH__DEBOUNCE_MS": "250"})
    manager.save({"watch": {"debounce_ms": 900}})

    assert manager.load().watch.debounce_ms == 250
    assert manager.load(include_env=False).watch.debounce_ms == 900


def test_invalid_yaml_raises_config_error(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch)
    manager.ensure_exists()

    manager.config_path.write_text("- not-a-mapping", encoding="utf-8")

    with pytest.raises(ConfigError):
        manager.load()


def test_unknown_keys_are_rejected() -> None:
    with pytest.raises(ConfigError):
        resolve_with_precedence(defaults=DeskflowConfig(), file_overrides={"watch": {"bogus": 1}})


def test_flatten_for_env_round_trips_defaults() -> None:
    flat = flatten_for_env(DeskflowConfig())

    assert flat["DESKFLOW__WATCH__DEBOUNCE_MS"] == "500"
    assert flat["DESKFLOW__CATALOG__SORT_HISTORY_LIMIT"] == "50"
    assert flat["DESKFLOW__WATCH__DIRECTORY"] == "null"


@pytest.mark.parametrize(
    "overrides",
    [
        {"watch": {"debounce_ms": 0}},
        {"watch": {"debounce_ms": "soon"}},
        {"catalog": {"sort_history_limit": 0}},
    ],
)
def test_resolve_with_precedence_invalid_value_raises(overrides: dict) -> None:
    with pytest.raises(ConfigError):
        resolve_with_precedence(defaults=DeskflowConfig(), file_overrides=overrides)


def test_resolved_paths_expand_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HOME", str(tmp_path))
    config = DeskflowConfig()

    assert config.storage.resolved_data_path() == tmp_path / ".deskflow" / "data.json"
    assert config.watch.resolved_directory() == (tmp_path / "Desktop").resolve()
