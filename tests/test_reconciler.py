"""Tests for applying change batches to the catalog."""

from __future__ import annotations

import threading
from pathlib import Path

from deskflow.catalog import Catalog, SortEngine
from deskflow.watch import PendingEvent, ReconcileResult, Reconciler


def _write(path: Path, size: int = 4) -> Path:
    path.write_bytes(b"x" * size)
    return path


def test_created_file_is_cataloged_and_classified(desktop: Path) -> None:
    catalog = Catalog()
    path = _write(desktop / "report.PDF", 2048)

    result = Reconciler(catalog).reconcile([PendingEvent.created(path)])

    entry = catalog.get_by_path(path)
    assert entry is not None
    assert result.added == [entry]
    assert entry.name == "report.PDF"
    assert entry.category == "Documents"
    assert entry.icon == "📄"
    assert entry.size == "2.00 KB"


def test_reconcile_is_idempotent(desktop: Path) -> None:
    catalog = Catalog()
    reconciler = Reconciler(catalog)
    keep = _write(desktop / "keep.png")
    gone = _write(desktop / "gone.txt")
    batch = [
        PendingEvent.created(keep),
        PendingEvent.created(gone),
        PendingEvent.deleted(gone),
    ]
    gone.unlink()

    reconciler.reconcile(batch)
    first = [e.model_dump() for e in catalog.entries]
    second_result = reconciler.reconcile(batch)

    assert [e.model_dump() for e in catalog.entries] == first
    assert [e.name for e in catalog.entries] == ["keep.png"]
    assert second_result.added == []


def test_repeated_create_refreshes_size(desktop: Path) -> None:
    catalog = Catalog()
    reconciler = Reconciler(catalog)
    path = _write(desktop / "notes.txt", 10)
    reconciler.reconcile([PendingEvent.created(path)])
    original = catalog.entries[0]

    _write(path, 2000)
    result = reconciler.reconcile([PendingEvent.created(path)])

    assert len(catalog) == 1
    assert catalog.entries[0].id == original.id
    assert catalog.entries[0].size == "1.95 KB"
    assert len(result.updated) == 1


def test_delete_of_unknown_path_is_a_no_op(desktop: Path) -> None:
    catalog = Catalog()

    result = Reconciler(catalog).reconcile([PendingEvent.deleted(desktop / "never.txt")])

    assert not result.changed
    assert len(catalog) == 0


def test_vanished_and_hidden_files_are_skipped(desktop: Path) -> None:
    catalog = Catalog()
    hidden = _write(desktop / ".secret")
    (desktop / "folder").mkdir()

    result = Reconciler(catalog).reconcile(
        [
            PendingEvent.created(desktop / "vanished.txt"),
            PendingEvent.created(hidden),
            PendingEvent.created(desktop / "folder"),
        ]
    )

    assert len(catalog) == 0
    assert len(result.skipped) == 3


def test_include_hidden_catalogs_dot_files(desktop: Path) -> None:
    catalog = Catalog()
    hidden = _write(desktop / ".env")

    Reconciler(catalog, include_hidden=True).reconcile([PendingEvent.created(hidden)])

    assert hidden in catalog


def test_rename_keeps_identity_and_reclassifies(desktop: Path) -> None:
    catalog = Catalog()
    reconciler = Reconciler(catalog)
    old = _write(desktop / "draft.txt")
    reconciler.reconcile([PendingEvent.created(old)])
    original_id = catalog.entries[0].id
    new = desktop / "draft.png"
    old.rename(new)

    result = reconciler.reconcile([PendingEvent.renamed(old, new)])

    entry = catalog.entries[0]
    assert entry.id == original_id
    assert entry.name == "draft.png"
    assert entry.path == str(new)
    assert entry.category == "Images"
    assert result.renamed == [(old, entry)]
    assert old not in catalog


def test_rename_of_unknown_source_acts_as_create(desktop: Path) -> None:
    catalog = Catalog()
    new = _write(desktop / "arrived.zip")

    result = Reconciler(catalog).reconcile([PendingEvent.renamed(desktop / "tmp123", new)])

    assert [e.name for e in result.added] == ["arrived.zip"]
    assert catalog.entries[0].category == "Archives"


def test_rename_over_existing_entry_replaces_it(desktop: Path) -> None:
    catalog = Catalog()
    reconciler = Reconciler(catalog)
    source = _write(desktop / "a.txt")
    target = _write(desktop / "b.txt")
    reconciler.reconcile([PendingEvent.created(source), PendingEvent.created(target)])
    source_id = catalog.get_by_path(source).id  # type: ignore[union-attr]
    source.replace(target)

    result = reconciler.reconcile([PendingEvent.renamed(source, target)])

    assert len(catalog) == 1
    assert catalog.entries[0].id == source_id
    assert [e.name for e in result.removed] == ["b.txt"]


def test_auto_sort_runs_once_per_batch_with_inserts(desktop: Path) -> None:
    catalog = Catalog()
    engine = SortEngine(catalog)
    applied: list[ReconcileResult] = []
    reconciler = Reconciler(
        catalog, sort_engine=engine, auto_sort_on_create=True, on_applied=applied.append
    )
    batch = [
        PendingEvent.created(_write(desktop / name))
        for name in ("zz.txt", "song.mp3", "aa.png", "bb.txt")
    ]

    result = reconciler.reconcile(batch)

    assert result.auto_sorted is True
    assert len(engine.history) == 1
    assert [e.name for e in catalog.entries] == ["bb.txt", "zz.txt", "aa.png", "song.mp3"]
    assert applied == [result]

    reconciler.reconcile([PendingEvent.deleted(desktop / "zz.txt")])
    assert len(engine.history) == 1


def test_on_applied_runs_after_lock_release(desktop: Path) -> None:
    catalog = Catalog()
    observed: list[bool] = []

    def try_lock() -> None:
        acquired = catalog.lock.acquire(blocking=False)
        observed.append(acquired)
        if acquired:
            catalog.lock.release()

    def check(_: ReconcileResult) -> None:
        worker = threading.Thread(target=try_lock)
        worker.start()
        worker.join()

    Reconciler(catalog, on_applied=check).reconcile(
        [PendingEvent.created(_write(desktop / "a.txt"))]
    )

    assert observed == [True]
