"""CLI integration tests."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

from click.testing import CliRunner, Result

from deskflow.cli import cli


def _env_with_home(tmp_path: Path, desktop: Path) -> dict[str, str]:
    """Return environment variables pointing HOME and the watched directory at temp dirs."""
    env = {key: value for key, value in os.environ.items() if not key.startswith("DESKFLOW__")}
    env["HOME"] = str(tmp_path / "home")
    env["DESKFLOW__WATCH__DIRECTORY"] = str(desktop)
    return env


class _Cli:
    def __init__(self, tmp_path: Path, desktop: Path) -> None:
        self.runner = CliRunner()
        self.env = _env_with_home(tmp_path, desktop)

    def __call__(self, *args: str, input: str | None = None) -> Result:
        return self.runner.invoke(cli, list(args), env=self.env, input=input)

    def json(self, *args: str) -> Any:
        result = self(*args, "--json")
        assert result.exit_code == 0, result.output
        return json.loads(result.output)


def _populate(desktop: Path, *names: str) -> None:
    for name in names:
        (desktop / name).write_text(name, encoding="utf-8")


def test_cli_help_displays_commands() -> None:
    result = CliRunner().invoke(cli, ["--help"])

    assert result.exit_code == 0
    assert "DeskFlow keeps a categorized" in result.output
    for command in ("scan", "watch", "sort", "undo", "profile", "task", "config"):
        assert command in result.output


def test_scan_list_and_status(tmp_path: Path, desktop: Path) -> None:
    _populate(desktop, "b.png", "a.txt", "c.unknown")
    run = _Cli(tmp_path, desktop)

    scanned = run.json("scan")
    listed = run.json("list")
    images = run("list", "--category", "images", "--json")
    status = run.json("status")

    assert [item["name"] for item in scanned["files"]] == ["a.txt", "b.png", "c.unknown"]
    assert [item["name"] for item in listed["files"]] == ["a.txt", "b.png", "c.unknown"]
    assert [item["name"] for item in json.loads(images.output)["files"]] == ["b.png"]
    assert status["counts"]["files"] == 3
    assert status["categories"] == {"Documents": 1, "Images": 1, "Other": 1}
    data_path = tmp_path / "home" / ".deskflow" / "data.json"
    assert status["data_path"] == str(data_path)
    assert data_path.exists()


def test_scan_summary_line(tmp_path: Path, desktop: Path) -> None:
    _populate(desktop, "a.txt", "b.txt")

    result = _Cli(tmp_path, desktop)("scan", "--summary")

    assert result.exit_code == 0
    assert "files=2" in result.output


def test_scan_missing_directory_fails(tmp_path: Path) -> None:
    result = _Cli(tmp_path, tmp_path / "absent")("scan")

    assert result.exit_code != 0
    assert "does not exist" in result.output


def test_sort_and_undo_across_invocations(tmp_path: Path, desktop: Path) -> None:
    _populate(desktop, "a.mp3", "b.png", "c.txt")
    run = _Cli(tmp_path, desktop)
    run.json("scan")

    sorted_names = [item["name"] for item in run.json("sort")["files"]]
    restored_names = [item["name"] for item in run.json("undo")["files"]]
    second_undo = run("undo")

    assert sorted_names == ["c.txt", "b.png", "a.mp3"]
    assert restored_names == ["a.mp3", "b.png", "c.txt"]
    assert second_undo.exit_code == 1
    assert "Nothing to undo" in second_undo.output


def test_json_and_quiet_conflict(tmp_path: Path, desktop: Path) -> None:
    result = _Cli(tmp_path, desktop)("list", "--json", "--quiet")

    assert result.exit_code != 0
    assert "--json cannot be combined with --quiet" in result.output


def test_profile_commands(tmp_path: Path, desktop: Path) -> None:
    _populate(desktop, "a.txt", "b.png")
    run = _Cli(tmp_path, desktop)
    run.json("scan")

    assert run("profile", "create", "Work", "--description", "desk").exit_code == 0
    assert run("profile", "create", "  ").exit_code != 0
    profiles = run.json("profile", "list")["profiles"]
    assert [(p["name"], p["files_count"]) for p in profiles] == [("Work", 2)]
    profile_id = profiles[0]["id"]

    (desktop / "b.png").unlink()
    applied = run("profile", "apply", profile_id[:8])
    assert applied.exit_code == 0, applied.output
    assert [item["name"] for item in run.json("list")["files"]] == ["a.txt"]

    assert run("profile", "edit", profile_id[:8], "--name", "Office").exit_code == 0
    assert run.json("profile", "list")["profiles"][0]["name"] == "Office"

    assert run("profile", "delete", profile_id).exit_code == 0
    assert run.json("profile", "list")["profiles"] == []
    missing = run("profile", "apply", profile_id)
    assert missing.exit_code != 0
    assert "No profile matches" in missing.output


def test_task_commands(tmp_path: Path, desktop: Path) -> None:
    run = _Cli(tmp_path, desktop)

    assert run("task", "add", "water plants").exit_code == 0
    assert run("task", "add", "pay rent").exit_code == 0
    tasks = run.json("task", "list")["tasks"]
    first_id = tasks[0]["id"]

    assert run("task", "done", first_id[:8]).exit_code == 0
    assert run("task", "done", first_id[:8]).exit_code == 0
    assert run.json("task", "list")["tasks"][0]["completed"] is True
    assert run("task", "done", first_id, "--reopen").exit_code == 0
    assert run.json("task", "list")["tasks"][0]["completed"] is False
    assert run("task", "done", first_id).exit_code == 0
    assert run("task", "rm", tasks[1]["id"]).exit_code == 0
    assert [t["text"] for t in run.json("task", "list")["tasks"]] == ["water plants"]
    assert run.json("status")["counts"]["completed_tasks"] == 1


def test_notes_commands(tmp_path: Path, desktop: Path) -> None:
    run = _Cli(tmp_path, desktop)

    assert run("notes", "set", "buy stamps").exit_code == 0
    shown = run("notes", "show")

    assert shown.exit_code == 0
    assert "buy stamps" in shown.output
    assert (tmp_path / "home" / ".deskflow" / "notes.txt").exists()


def test_export_and_import(tmp_path: Path, desktop: Path) -> None:
    _populate(desktop, "a.txt")
    run = _Cli(tmp_path, desktop)
    run.json("scan")
    run("task", "add", "exported task")
    export_path = tmp_path / "backup.json"

    assert run("export", str(export_path)).exit_code == 0
    (tmp_path / "home" / ".deskflow" / "data.json").unlink()
    assert run.json("list")["files"] == []

    assert run("import", str(export_path)).exit_code == 0
    assert [item["name"] for item in run.json("list")["files"]] == ["a.txt"]
    assert [t["text"] for t in run.json("task", "list")["tasks"]] == ["exported task"]


def test_organize_dry_run_then_apply(tmp_path: Path, desktop: Path) -> None:
    _populate(desktop, "a.pdf", "b.png")
    run = _Cli(tmp_path, desktop)
    run.json("scan")

    preview = run.json("organize", "--dry-run")
    assert preview["dry_run"] is True
    assert {Path(m["destination"]).parent.name for m in preview["moves"]} == {"Documents", "Images"}
    assert (desktop / "a.pdf").exists()

    applied = run.json("organize")
    assert len(applied["moves"]) == 2
    assert (desktop / "Documents" / "a.pdf").exists()
    paths = {item["path"] for item in run.json("list")["files"]}
    assert str(desktop / "Images" / "b.png") in paths


def test_rm_deletes_file(tmp_path: Path, desktop: Path) -> None:
    _populate(desktop, "a.txt", "b.txt")
    run = _Cli(tmp_path, desktop)
    files = run.json("scan")["files"]

    result = run("rm", files[0]["id"][:8])

    assert result.exit_code == 0, result.output
    assert not (desktop / "a.txt").exists()
    assert [item["name"] for item in run.json("list")["files"]] == ["b.txt"]


def test_add_copies_and_catalogs(tmp_path: Path, desktop: Path) -> None:
    outside = tmp_path / "downloads"
    outside.mkdir()
    (outside / "song.mp3").write_text("la", encoding="utf-8")
    run = _Cli(tmp_path, desktop)

    result = run("add", str(outside / "song.mp3"))

    assert result.exit_code == 0, result.output
    assert (desktop / "song.mp3").exists()
    assert [item["category"] for item in run.json("list")["files"]] == ["Audio"]


def test_watch_rejects_invalid_debounce(tmp_path: Path, desktop: Path) -> None:
    result = _Cli(tmp_path, desktop)("watch", "--debounce", "0")

    assert result.exit_code != 0
    assert "--debounce must be greater than zero" in result.output


def test_config_set_and_view(tmp_path: Path, desktop: Path) -> None:
    run = _Cli(tmp_path, desktop)

    result = run("config", "set", "watch.debounce_ms", "--value", "750")
    assert result.exit_code == 0, result.output
    assert "Updated watch.debounce_ms" in result.output

    view = run("config", "view")
    assert view.exit_code == 0
    assert "debounce_ms: 750" in view.output

    invalid = run("config", "set", "watch.debounce_ms", "--value", "-5")
    assert invalid.exit_code != 0
    config_text = (tmp_path / "home" / ".deskflow" / "config.yaml").read_text(encoding="utf-8")
    assert "debounce_ms: 750" in config_text


def test_clear_asks_for_confirmation(tmp_path: Path, desktop: Path) -> None:
    _populate(desktop, "a.txt", "b.png")
    run = _Cli(tmp_path, desktop)
    run.json("scan")

    declined = run("clear", input="n\n")
    assert declined.exit_code != 0
    assert (desktop / "a.txt").exists()

    confirmed = run("clear", "--yes")
    assert confirmed.exit_code == 0, confirmed.output
    assert "deleted=2" in confirmed.output
    assert list(desktop.iterdir()) == []
    assert run.json("list")["files"] == []
