"""Command line interface for DeskFlow."""

from __future__ import annotations

import difflib
import logging
import time
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Iterable, Sequence, TypeVar
from uuid import UUID

import click
import yaml
from click.core import ParameterSource
from rich.console import Console
from rich.logging import RichHandler
from rich.syntax import Syntax
from rich.table import Table

from deskflow.catalog import FileEntry, Profile, TaskItem
from deskflow.classification import describe_category
from deskflow.config import ConfigError, ConfigManager, DeskflowConfig, resolve_with_precedence
from deskflow.session import DeskflowSession, log_notification
from deskflow.watch import PendingEvent

console = Console()

F = TypeVar("F", bound=Callable[..., Any])
T = TypeVar("T")


def _handle_cli_error(
    message: str,
    *,
    code: str,
    json_output: bool,
    details: Any | None = None,
    original: Exception | None = None,
) -> None:
    """Emit a standardized error and terminate the command.

    Args:
        message: Human-readable error message.
        code: Machine-readable error identifier.
        json_output: Indicates whether JSON mode is active.
        details: Optional structured details to include in the payload.
        original: Original exception for chaining when not using JSON.

    Raises:
        SystemExit: When emitting JSON output.
        click.ClickException: For non-JSON flows.
    """
    if json_output:
        payload: dict[str, Any] = {"error": {"code": code, "message": message}}
        if details is not None:
            payload["error"]["details"] = details
        console.print_json(data=payload)
        raise SystemExit(1)

    if isinstance(original, click.ClickException):
        raise original

    raise click.ClickException(message) from original


def _emit_message(message: Any, *, mode: str, quiet: bool, summary_only: bool) -> None:
    """Conditionally print CLI output according to quiet/summary settings.

    Args:
        message: Renderable or string to emit.
        mode: Output mode identifier (`detail`, `summary`, `warning`, or `error`).
        quiet: Whether quiet mode is active.
        summary_only: Whether only summary lines should be emitted.
    """
    if quiet and mode != "error":
        return
    if summary_only and mode not in {"summary", "warning", "error"}:
        return
    console.print(message)


def _format_summary_line(command: str, root: Path | str, metrics: dict[str, Any]) -> str:
    parts = ", ".join(f"{key}={value}" for key, value in metrics.items())
    return f"[green]{command} summary for {root}: {parts}.[/green]"


def _configure_logging(level: str) -> None:
    """Install a Rich handler on stderr once per process."""
    root = logging.getLogger()
    if not any(isinstance(handler, RichHandler) for handler in root.handlers):
        handler = RichHandler(console=Console(stderr=True), show_path=False)
        handler.setFormatter(logging.Formatter("%(message)s"))
        root.addHandler(handler)
    resolved = logging.getLevelName(level.upper())
    root.setLevel(resolved if isinstance(resolved, int) else logging.WARNING)


def _output_options(func: F) -> F:
    """Attach the shared ``--json``/``--summary``/``--quiet`` flags."""
    func = click.option("--quiet", is_flag=True, help="Suppress non-error output.")(func)
    func = click.option("--summary", "summary_mode", is_flag=True, help="Only emit summary lines.")(
        func
    )
    func = click.option("--json", "json_output", is_flag=True, help="Emit JSON output.")(func)
    return func


class _CommandContext:
    """Effective configuration and output modes for a single command run."""

    def __init__(
        self,
        config: DeskflowConfig,
        *,
        json_output: bool,
        quiet: bool,
        summary_only: bool,
    ) -> None:
        self.config = config
        self.json_output = json_output
        self.quiet = quiet
        self.summary_only = summary_only

    def emit(self, message: Any, *, mode: str = "detail") -> None:
        if self.json_output:
            return
        _emit_message(message, mode=mode, quiet=self.quiet, summary_only=self.summary_only)

    def notify(self, message: str, is_error: bool) -> None:
        if self.json_output:
            log_notification(message, is_error)
            return
        if is_error:
            self.emit(f"[red]{message}[/red]", mode="error")
        else:
            self.emit(f"[cyan]{message}[/cyan]", mode="detail")

    def open_session(self) -> DeskflowSession:
        """Create a session and load the persisted state."""
        session = DeskflowSession(self.config, notify=self.notify)
        session.load()
        return session


def _prepare(
    ctx: click.Context,
    *,
    json_output: bool = False,
    quiet: bool = False,
    summary_mode: bool = False,
    cli_overrides: dict[str, Any] | None = None,
) -> _CommandContext:
    """Load configuration, configure logging, and resolve output modes.

    Raises:
        click.ClickException: If configuration cannot be loaded or flags conflict.
    """
    try:
        config = ConfigManager().load(cli_overrides=cli_overrides)
    except ConfigError as exc:
        _handle_cli_error(str(exc), code="config_error", json_output=json_output, original=exc)
        raise

    _configure_logging(config.logging.level)

    params = ctx.params
    explicit_quiet = "quiet" in params and (
        ctx.get_parameter_source("quiet") == ParameterSource.COMMANDLINE
    )
    explicit_summary = "summary_mode" in params and (
        ctx.get_parameter_source("summary_mode") == ParameterSource.COMMANDLINE
    )
    quiet_enabled = quiet if explicit_quiet else config.cli.quiet_default
    summary_only = summary_mode if explicit_summary else config.cli.summary_default

    if json_output:
        if explicit_quiet and quiet_enabled:
            raise click.ClickException("--json cannot be combined with --quiet.")
        if explicit_summary and summary_only:
            raise click.ClickException("--json cannot be combined with --summary.")
        quiet_enabled = False
        summary_only = False

    if quiet_enabled and summary_only:
        raise click.ClickException(
            "Quiet and summary modes cannot both be enabled. Adjust CLI defaults or flags."
        )

    return _CommandContext(
        config, json_output=json_output, quiet=quiet_enabled, summary_only=summary_only
    )


def _resolve_id(candidates: Iterable[T], prefix: str, *, label: str, key: Callable[[T], UUID]) -> T:
    """Return the single candidate whose id starts with ``prefix``.

    Raises:
        click.ClickException: If no candidate or more than one candidate matches.
    """
    needle = prefix.strip().lower()
    if not needle:
        raise click.ClickException(f"Provide a {label} id.")
    matches = [item for item in candidates if str(key(item)).startswith(needle)]
    if not matches:
        raise click.ClickException(f"No {label} matches id '{prefix}'.")
    if len(matches) > 1:
        raise click.ClickException(f"Id '{prefix}' is ambiguous; {len(matches)} {label}s match.")
    return matches[0]


def _entry_record(entry: FileEntry) -> dict[str, Any]:
    return entry.model_dump(mode="json")


def _render_entries(entries: Sequence[FileEntry]) -> Table:
    table = Table(title="Catalog")
    table.add_column("Id", style="dim")
    table.add_column("Name", style="bold")
    table.add_column("Category")
    table.add_column("Size", justify="right")
    table.add_column("Path", overflow="fold")
    for entry in entries:
        definition = describe_category(entry.category)
        table.add_row(
            str(entry.id)[:8],
            entry.name,
            f"{entry.icon or definition.icon} [{entry.color or definition.color}]{entry.category}[/]",
            entry.size,
            entry.path,
        )
    return table


def _render_profiles(profiles: Sequence[Profile]) -> Table:
    table = Table(title="Profiles")
    table.add_column("Id", style="dim")
    table.add_column("Name", style="bold")
    table.add_column("Files", justify="right")
    table.add_column("Created")
    table.add_column("Description", overflow="fold")
    for profile in profiles:
        table.add_row(
            str(profile.id)[:8],
            profile.name,
            str(profile.files_count),
            profile.created_at.strftime("%Y-%m-%d %H:%M"),
            profile.description,
        )
    return table


def _render_tasks(tasks: Sequence[TaskItem]) -> Table:
    table = Table(title="Tasks")
    table.add_column("Id", style="dim")
    table.add_column("Done", justify="center")
    table.add_column("Task")
    for task in tasks:
        table.add_row(str(task.id)[:8], "x" if task.completed else "", task.text)
    return table


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="deskflow")
def cli() -> None:
    """DeskFlow keeps a categorized, persistent catalog of your desktop."""


@cli.command()
@_output_options
@click.pass_context
def scan(ctx: click.Context, json_output: bool, summary_mode: bool, quiet: bool) -> None:
    """Rebuild the catalog from the watched directory."""
    run = _prepare(ctx, json_output=json_output, quiet=quiet, summary_mode=summary_mode)
    directory = run.config.watch.resolved_directory()
    if not directory.is_dir():
        _handle_cli_error(
            f"Watched directory does not exist: {directory}",
            code="missing_directory",
            json_output=json_output,
        )

    session = run.open_session()
    entries = session.scan()
    if json_output:
        console.print_json(
            data={"directory": str(directory), "files": [_entry_record(e) for e in entries]}
        )
        return
    run.emit(
        _format_summary_line("Scan", directory, {"files": len(entries)}),
        mode="summary",
    )


@cli.command("list")
@click.option("--category", type=str, help="Only show entries in this category.")
@_output_options
@click.pass_context
def list_entries(
    ctx: click.Context,
    category: str | None,
    json_output: bool,
    summary_mode: bool,
    quiet: bool,
) -> None:
    """Show the cataloged files in their current order."""
    run = _prepare(ctx, json_output=json_output, quiet=quiet, summary_mode=summary_mode)
    session = run.open_session()
    entries = session.catalog.entries
    if category:
        entries = [entry for entry in entries if entry.category.lower() == category.lower()]

    if json_output:
        console.print_json(data={"files": [_entry_record(entry) for entry in entries]})
        return
    if not entries:
        run.emit("[yellow]The catalog is empty. Run `deskflow scan` first.[/yellow]", mode="warning")
        return
    run.emit(_render_entries(entries))


@cli.command()
@click.option("--debounce", type=float, help="Override the quiet period in seconds.")
@click.option("--auto-sort/--no-auto-sort", default=None, help="Re-sort after new files arrive.")
@click.option("--scan/--no-scan", "initial_scan", default=True, help="Rescan before watching.")
@click.option("--duration", type=float, help="Stop after this many seconds.")
@click.option("--summary", "summary_mode", is_flag=True, help="Only emit summary lines.")
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.pass_context
def watch(
    ctx: click.Context,
    debounce: float | None,
    auto_sort: bool | None,
    initial_scan: bool,
    duration: float | None,
    summary_mode: bool,
    quiet: bool,
) -> None:
    """Monitor the watched directory and keep the catalog in sync."""
    if debounce is not None and debounce <= 0:
        raise click.ClickException("--debounce must be greater than zero.")
    if duration is not None and duration <= 0:
        raise click.ClickException("--duration must be greater than zero.")

    overrides: dict[str, Any] = {}
    if debounce is not None:
        overrides["watch.debounce_ms"] = max(1, int(debounce * 1000))
    if auto_sort is not None:
        overrides["catalog.auto_sort_on_create"] = auto_sort

    run = _prepare(ctx, quiet=quiet, summary_mode=summary_mode, cli_overrides=overrides)
    directory = run.config.watch.resolved_directory()
    if not directory.is_dir():
        raise click.ClickException(f"Watched directory does not exist: {directory}")

    def notify(message: str, is_error: bool) -> None:
        stamp = datetime.now().strftime("%H:%M:%S")
        run.notify(f"[{stamp}] {message}", is_error)

    session = DeskflowSession(run.config, notify=notify)
    session.load()
    if initial_scan:
        session.scan()

    if not run.config.watch.monitoring_enabled:
        run.emit(
            "[yellow]Monitoring is disabled in configuration; nothing to watch.[/yellow]",
            mode="warning",
        )
        return
    if not session.start_monitoring():
        raise click.ClickException(f"Unable to monitor {directory}.")

    run.emit(f"[cyan]Watching {directory}. Press Ctrl+C to stop.[/cyan]")
    deadline = None if duration is None else time.monotonic() + duration
    try:
        while deadline is None or time.monotonic() < deadline:
            time.sleep(0.25)
            session.supervisor.check_health()
    except KeyboardInterrupt:
        run.emit("[yellow]Watch stopped by user request.[/yellow]", mode="summary")
    finally:
        session.close()

    run.emit(
        _format_summary_line("Watch", directory, {"files": len(session.catalog)}),
        mode="summary",
    )


@cli.command()
@_output_options
@click.pass_context
def sort(ctx: click.Context, json_output: bool, summary_mode: bool, quiet: bool) -> None:
    """Order the catalog by category, then name."""
    run = _prepare(ctx, json_output=json_output, quiet=quiet, summary_mode=summary_mode)
    session = run.open_session()
    ordered = session.sort()
    if json_output:
        console.print_json(data={"files": [_entry_record(entry) for entry in ordered]})
        return
    run.emit(_render_entries(ordered))


@cli.command()
@_output_options
@click.pass_context
def undo(ctx: click.Context, json_output: bool, summary_mode: bool, quiet: bool) -> None:
    """Restore the order that preceded the most recent sort."""
    run = _prepare(ctx, json_output=json_output, quiet=quiet, summary_mode=summary_mode)
    session = run.open_session()
    restored = session.undo()
    if restored is None:
        _handle_cli_error("Nothing to undo.", code="nothing_to_undo", json_output=json_output)
        return
    if json_output:
        console.print_json(data={"files": [_entry_record(entry) for entry in restored]})
        return
    run.emit(_render_entries(restored))


@cli.command()
@click.option(
    "--target",
    type=click.Path(file_okay=False, path_type=Path),
    help="Parent directory for the category folders.",
)
@click.option("--dry-run", is_flag=True, help="Preview moves without touching files.")
@_output_options
@click.pass_context
def organize(
    ctx: click.Context,
    target: Path | None,
    dry_run: bool,
    json_output: bool,
    summary_mode: bool,
    quiet: bool,
) -> None:
    """Move cataloged files into one folder per category."""
    run = _prepare(ctx, json_output=json_output, quiet=quiet, summary_mode=summary_mode)
    session = run.open_session()
    outcome = session.move_to_category_folders(target, dry_run=dry_run)
    if outcome is None:
        _handle_cli_error("No files to move.", code="empty_catalog", json_output=json_output)
        return

    if json_output:
        console.print_json(
            data={
                "dry_run": dry_run,
                "moves": [
                    {
                        "source": str(move_op.source),
                        "destination": str(move_op.destination),
                        "category": move_op.category,
                        "renamed": move_op.conflict_applied,
                    }
                    for move_op in outcome.moved
                ],
                "failed": outcome.failed,
            }
        )
        return

    prefix = "[yellow]DRY RUN[/yellow] " if dry_run else ""
    for move_op in outcome.moved:
        run.emit(f"{prefix}{move_op.source.name} -> {move_op.destination}")
    run.emit(
        _format_summary_line(
            "Organize",
            target or session.directory,
            {"moved": len(outcome.moved), "failed": len(outcome.failed)},
        ),
        mode="summary",
    )


@cli.command()
@_output_options
@click.pass_context
def status(ctx: click.Context, json_output: bool, summary_mode: bool, quiet: bool) -> None:
    """Summarize the catalog, profiles, and tasks."""
    run = _prepare(ctx, json_output=json_output, quiet=quiet, summary_mode=summary_mode)
    session = run.open_session()
    stats = session.stats
    payload = {
        "directory": str(session.directory),
        "data_path": str(session.repository.data_path),
        "monitoring_enabled": run.config.watch.monitoring_enabled,
        "auto_sort_on_create": run.config.catalog.auto_sort_on_create,
        "undo_depth": len(session.sort_engine.history),
        "counts": {
            "files": stats.files,
            "profiles": stats.profiles,
            "tasks": stats.tasks,
            "completed_tasks": stats.completed_tasks,
        },
        "categories": stats.categories,
    }
    if json_output:
        console.print_json(data=payload)
        return

    run.emit(
        _format_summary_line(
            "Status",
            session.directory,
            {
                "files": stats.files,
                "profiles": stats.profiles,
                "tasks": f"{stats.completed_tasks}/{stats.tasks}",
                "undo": payload["undo_depth"],
            },
        ),
        mode="summary",
    )
    if stats.categories:
        table = Table(title="Categories")
        table.add_column("Category")
        table.add_column("Files", justify="right")
        for name, count in sorted(stats.categories.items()):
            table.add_row(f"{describe_category(name).icon} {name}", str(count))
        run.emit(table)


@cli.command("export")
@click.argument("path", type=click.Path(dir_okay=False, path_type=Path))
@click.pass_context
def export_data(ctx: click.Context, path: Path) -> None:
    """Write the catalog, profiles, and tasks to PATH."""
    run = _prepare(ctx)
    session = run.open_session()
    if not session.export_to(path):
        raise click.ClickException(f"Unable to export to {path}.")


@cli.command("import")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_context
def import_data(ctx: click.Context, path: Path) -> None:
    """Replace the catalog, profiles, and tasks with the contents of PATH."""
    run = _prepare(ctx)
    session = run.open_session()
    if not session.import_from(path):
        raise click.ClickException(f"Unable to import {path}.")


@cli.command("rm")
@click.argument("entry_id")
@click.pass_context
def remove_file(ctx: click.Context, entry_id: str) -> None:
    """Delete a cataloged file from disk."""
    run = _prepare(ctx)
    session = run.open_session()
    entry = _resolve_id(session.catalog.entries, entry_id, label="file", key=lambda e: e.id)
    if not session.delete_file(entry.id):
        raise click.ClickException(f"Unable to delete {entry.name}.")


@cli.command()
@click.option("--yes", is_flag=True, help="Do not ask for confirmation.")
@click.pass_context
def clear(ctx: click.Context, yes: bool) -> None:
    """Delete every cataloged file inside the watched directory."""
    run = _prepare(ctx)
    session = run.open_session()
    if not yes:
        click.confirm(
            f"Delete {len(session.catalog)} cataloged files from {session.directory}?",
            abort=True,
        )
    deleted = session.clear_directory()
    run.emit(_format_summary_line("Clear", session.directory, {"deleted": deleted}), mode="summary")


@cli.command()
@click.argument(
    "paths", nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False, path_type=Path)
)
@click.pass_context
def add(ctx: click.Context, paths: tuple[Path, ...]) -> None:
    """Copy files into the watched directory and catalog them."""
    run = _prepare(ctx)
    session = run.open_session()
    copied = session.add_files(paths)
    if copied:
        session.reconciler.reconcile([PendingEvent.created(path) for path in copied])
    run.emit(
        _format_summary_line(
            "Add", session.directory, {"copied": len(copied), "skipped": len(paths) - len(copied)}
        ),
        mode="summary",
    )


@cli.group()
def profile() -> None:
    """Save and restore catalog snapshots."""


@profile.command("create")
@click.argument("name")
@click.option("--description", default="", help="Free-text description.")
@click.pass_context
def profile_create(ctx: click.Context, name: str, description: str) -> None:
    """Snapshot the current catalog as profile NAME."""
    run = _prepare(ctx)
    session = run.open_session()
    created = session.create_profile(name, description)
    if created is None:
        raise click.ClickException("Profile was not created.")
    run.emit(f"[green]Profile {created.name} ({str(created.id)[:8]}) saved.[/green]", mode="summary")


@profile.command("list")
@click.option("--json", "json_output", is_flag=True, help="Emit JSON output.")
@click.pass_context
def profile_list(ctx: click.Context, json_output: bool) -> None:
    """List saved profiles."""
    run = _prepare(ctx, json_output=json_output)
    session = run.open_session()
    profiles = session.profiles.profiles
    if json_output:
        console.print_json(
            data={
                "profiles": [
                    {**item.model_dump(mode="json", exclude={"files"}), "files_count": item.files_count}
                    for item in profiles
                ]
            }
        )
        return
    if not profiles:
        run.emit("[yellow]No profiles saved.[/yellow]", mode="warning")
        return
    run.emit(_render_profiles(profiles))


@profile.command("apply")
@click.argument("profile_id")
@click.pass_context
def profile_apply(ctx: click.Context, profile_id: str) -> None:
    """Replace the catalog with profile PROFILE_ID."""
    run = _prepare(ctx)
    session = run.open_session()
    target = _resolve_id(session.profiles.profiles, profile_id, label="profile", key=lambda p: p.id)
    applied = session.apply_profile(target.id)
    if applied is None:
        raise click.ClickException(f"Unable to apply profile {target.name}.")
    skipped = target.files_count - len(applied)
    run.emit(
        _format_summary_line(
            "Profile", target.name, {"restored": len(applied), "missing": skipped}
        ),
        mode="summary",
    )


@profile.command("edit")
@click.argument("profile_id")
@click.option("--name", type=str, help="New profile name.")
@click.option("--description", type=str, help="New description.")
@click.pass_context
def profile_edit(
    ctx: click.Context, profile_id: str, name: str | None, description: str | None
) -> None:
    """Rename or re-describe profile PROFILE_ID."""
    if name is None and description is None:
        raise click.ClickException("Provide --name and/or --description.")
    run = _prepare(ctx)
    session = run.open_session()
    target = _resolve_id(session.profiles.profiles, profile_id, label="profile", key=lambda p: p.id)
    if session.update_profile(target.id, name=name, description=description) is None:
        raise click.ClickException(f"Unable to update profile {target.name}.")


@profile.command("delete")
@click.argument("profile_id")
@click.pass_context
def profile_delete(ctx: click.Context, profile_id: str) -> None:
    """Delete profile PROFILE_ID."""
    run = _prepare(ctx)
    session = run.open_session()
    target = _resolve_id(session.profiles.profiles, profile_id, label="profile", key=lambda p: p.id)
    if not session.delete_profile(target.id):
        raise click.ClickException(f"Unable to delete profile {target.name}.")


@cli.group()
def task() -> None:
    """Manage the task list."""


@task.command("add")
@click.argument("text")
@click.pass_context
def task_add(ctx: click.Context, text: str) -> None:
    run = _prepare(ctx)
    session = run.open_session()
    created = session.add_task(text)
    if created is None:
        raise click.ClickException("Task was not added.")
    run.emit(f"[green]Added task {str(created.id)[:8]}.[/green]", mode="summary")


@task.command("list")
@click.option("--json", "json_output", is_flag=True, help="Emit JSON output.")
@click.pass_context
def task_list(ctx: click.Context, json_output: bool) -> None:
    run = _prepare(ctx, json_output=json_output)
    session = run.open_session()
    tasks = session.tasks.tasks
    if json_output:
        console.print_json(data={"tasks": [item.model_dump(mode="json") for item in tasks]})
        return
    if not tasks:
        run.emit("[yellow]No tasks.[/yellow]", mode="warning")
        return
    run.emit(_render_tasks(tasks))
    run.emit(f"{session.tasks.completed_count} of {len(tasks)} completed", mode="summary")


@task.command("done")
@click.argument("task_id")
@click.option("--reopen", is_flag=True, help="Mark the task as not completed.")
@click.pass_context
def task_done(ctx: click.Context, task_id: str, reopen: bool) -> None:
    """Mark task TASK_ID as completed."""
    run = _prepare(ctx)
    session = run.open_session()
    target = _resolve_id(session.tasks.tasks, task_id, label="task", key=lambda t: t.id)
    if session.set_task_completed(target.id, not reopen) is None:
        raise click.ClickException("Task was not updated.")


@task.command("rm")
@click.argument("task_id")
@click.pass_context
def task_rm(ctx: click.Context, task_id: str) -> None:
    run = _prepare(ctx)
    session = run.open_session()
    target = _resolve_id(session.tasks.tasks, task_id, label="task", key=lambda t: t.id)
    if not session.remove_task(target.id):
        raise click.ClickException("Task was not removed.")


@cli.group()
def notes() -> None:
    """Read or replace the free-text notes."""


@notes.command("show")
@click.pass_context
def notes_show(ctx: click.Context) -> None:
    run = _prepare(ctx)
    session = DeskflowSession(run.config, notify=run.notify)
    click.echo(session.load_notes())


@notes.command("set")
@click.argument("text")
@click.pass_context
def notes_set(ctx: click.Context, text: str) -> None:
    run = _prepare(ctx)
    session = DeskflowSession(run.config, notify=run.notify)
    if not session.save_notes(text):
        raise click.ClickException("Notes could not be saved.")


@cli.group()
def config() -> None:
    """Manage DeskFlow configuration files and overrides."""


@config.command("view")
@click.option("--no-env", is_flag=True, help="Ignore environment overrides when displaying output.")
def config_view(no_env: bool) -> None:
    """Display the effective configuration after applying precedence rules."""
    try:
        effective = ConfigManager().load(include_env=not no_env)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    yaml_text = yaml.safe_dump(effective.model_dump(mode="python"), sort_keys=False)
    console.print(Syntax(yaml_text, "yaml", word_wrap=True))


@config.command("set")
@click.argument("key")
@click.option("--value", required=True, help="Value to assign to KEY.")
def config_set(key: str, value: str) -> None:
    """Persist a configuration value expressed as a dotted KEY.

    Args:
        key: Dotted path such as ``watch.debounce_ms``.
        value: YAML-literal value to write into the configuration file.

    Raises:
        click.ClickException: If parsing, assignment, or validation fails.
    """
    manager = ConfigManager()
    manager.ensure_exists()

    segments = [segment.strip() for segment in key.split(".") if segment.strip()]
    if not segments:
        raise click.ClickException("KEY must specify a dotted path such as 'watch.debounce_ms'.")

    try:
        parsed_value = yaml.safe_load(value)
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Unable to parse value: {exc}") from exc

    before = manager.read_text().splitlines()
    try:
        file_data = manager.load_file_overrides()
        node = file_data
        for segment in segments[:-1]:
            child = node.setdefault(segment, {})
            if not isinstance(child, dict):
                raise ConfigError(f"Cannot assign into '{segment}'; it is not a mapping.")
            node = child
        node[segments[-1]] = parsed_value
        resolve_with_precedence(defaults=DeskflowConfig(), file_overrides=file_data)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    manager.save(file_data)
    diff = list(
        difflib.unified_diff(
            [line for line in before if not line.startswith("# Last updated")],
            [
                line
                for line in manager.read_text().splitlines()
                if not line.startswith("# Last updated")
            ],
            fromfile="config.yaml (before)",
            tofile="config.yaml (after)",
            lineterm="",
        )
    )
    if not diff:
        console.print("[yellow]No changes applied; value already up to date.[/yellow]")
        return

    console.print(Syntax("\n".join(diff), "diff", word_wrap=False))
    console.print(f"[green]Updated {'.'.join(segments)}.[/green]")


def main() -> None:
    """Invoke the Click CLI as the console script entry point."""
    cli()


if __name__ == "__main__":
    main()
