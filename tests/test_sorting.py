"""Tests for catalog sorting and undo history."""

from __future__ import annotations

from pathlib import Path

import pytest

from deskflow.catalog import (
    Catalog,
    FileEntry,
    NothingToUndoError,
    SortEngine,
    SortHistory,
)


def _catalog(tmp_path: Path, names: list[str]) -> Catalog:
    entries = [FileEntry(name=name, path=str(tmp_path / name)).reclassify() for name in names]
    return Catalog(entries)


def test_sort_orders_by_category_rank_then_name(tmp_path: Path) -> None:
    catalog = _catalog(
        tmp_path,
        ["zeta.mp3", "notes", "Beta.png", "alpha.png", "report.pdf", "clip.mp4", "Agenda.docx"],
    )
    engine = SortEngine(catalog)

    ordered = engine.sort()

    assert [e.name for e in ordered] == [
        "Agenda.docx",
        "report.pdf",
        "alpha.png",
        "Beta.png",
        "clip.mp4",
        "zeta.mp3",
        "notes",
    ]
    assert [e.name for e in catalog.entries] == [e.name for e in ordered]


def test_sort_then_undo_restores_previous_order(tmp_path: Path) -> None:
    catalog = _catalog(tmp_path, ["b.zip", "a.txt", "c.png"])
    before = catalog.snapshot()
    engine = SortEngine(catalog)

    engine.sort()
    restored = engine.undo()

    assert [e.model_dump() for e in restored] == [e.model_dump() for e in before]
    assert [e.model_dump() for e in catalog.entries] == [e.model_dump() for e in before]


def test_undo_without_history_raises(tmp_path: Path) -> None:
    engine = SortEngine(_catalog(tmp_path, ["a.txt"]))

    with pytest.raises(NothingToUndoError):
        engine.undo()


def test_sort_is_stable_for_equal_keys(tmp_path: Path) -> None:
    first = FileEntry(name="same.txt", path=str(tmp_path / "one" / "same.txt")).reclassify()
    second = FileEntry(name="same.txt", path=str(tmp_path / "two" / "same.txt")).reclassify()
    catalog = Catalog([first, second])

    SortEngine(catalog).sort()

    assert [e.id for e in catalog.entries] == [first.id, second.id]


def test_history_keeps_only_the_newest_fifty(tmp_path: Path) -> None:
    catalog = _catalog(tmp_path, ["b.txt", "a.txt"])
    engine = SortEngine(catalog)

    for _ in range(60):
        engine.sort()

    assert len(engine.history) == 50
    for _ in range(50):
        engine.undo()
    with pytest.raises(NothingToUndoError):
        engine.undo()


def test_history_evicts_oldest_snapshot() -> None:
    history = SortHistory(limit=2)
    first = [FileEntry(name="1", path="/tmp/1")]
    second = [FileEntry(name="2", path="/tmp/2")]
    third = [FileEntry(name="3", path="/tmp/3")]

    for snapshot in (first, second, third):
        history.push(snapshot)

    assert history.pop() is third
    assert history.pop() is second
    with pytest.raises(NothingToUndoError):
        history.pop()


def test_history_replace_respects_limit() -> None:
    history = SortHistory(limit=3)

    history.replace([[FileEntry(name=str(i), path=f"/tmp/{i}")] for i in range(5)])

    assert len(history) == 3
    assert [snapshot[0].name for snapshot in history.snapshots()] == ["2", "3", "4"]


def test_history_rejects_non_positive_limit() -> None:
    with pytest.raises(ValueError):
        SortHistory(limit=0)
