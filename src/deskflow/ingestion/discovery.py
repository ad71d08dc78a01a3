"""File discovery utilities."""

from __future__ import annotations

import logging
import os
import stat as stat_module
from pathlib import Path
from typing import Iterator, Optional

from deskflow.catalog.models import FileEntry
from deskflow.classification import classify_path, format_size

LOGGER = logging.getLogger(__name__)

_HIDDEN_ATTRIBUTES = getattr(stat_module, "FILE_ATTRIBUTE_HIDDEN", 0x2) | getattr(
    stat_module, "FILE_ATTRIBUTE_SYSTEM", 0x4
)


def is_hidden_or_system(path: Path, stat_result: os.stat_result) -> bool:
    """Return whether a file carries the hidden/system attribute.

    Windows attributes are honored where the platform reports them; elsewhere
    a leading dot marks a file as hidden.
    """
    attributes = getattr(stat_result, "st_file_attributes", 0)
    if attributes & _HIDDEN_ATTRIBUTES:
        return True
    return path.name.startswith(".")


def probe_file(path: Path) -> Optional[os.stat_result]:
    """Stat ``path`` if it is a regular file.

    Returns:
        Optional[os.stat_result]: Stat result, or ``None`` when the file is
        gone, is not a regular file, or cannot be inspected.
    """
    try:
        result = path.stat()
    except OSError:
        return None
    if not stat_module.S_ISREG(result.st_mode):
        return None
    return result


def build_entry(path: Path, stat_result: os.stat_result) -> FileEntry:
    """Create a classified catalog entry for ``path``."""
    classification = classify_path(path)
    return FileEntry(
        name=path.name,
        path=str(path),
        size=format_size(stat_result.st_size),
        category=classification.category,
        icon=classification.icon,
        color=classification.color,
    )


class DesktopScanner:
    """Enumerate the visible regular files directly inside a directory."""

    def __init__(self, *, include_hidden: bool = False) -> None:
        self.include_hidden = include_hidden

    def scan(self, root: Path) -> Iterator[FileEntry]:
        """Yield classified entries for files under ``root`` (non-recursive)."""
        root = Path(root).expanduser().resolve()
        try:
            children = sorted(root.iterdir())
        except OSError as exc:
            LOGGER.warning("Unable to list %s: %s", root, exc)
            return

        for path in children:
            stat_result = probe_file(path)
            if stat_result is None:
                continue
            if not self.include_hidden and is_hidden_or_system(path, stat_result):
                continue
            yield build_entry(path, stat_result)
