"""Extension-based classification for cataloged files.

The category table is the single source of truth for category membership,
display icons, color tags, and sort rank. Every code path that needs any of
those (scanning, reconciliation, profile apply, import) goes through
:func:`classify` so the mapping cannot drift between call sites.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import PurePath
from typing import Mapping

OTHER_CATEGORY = "Other"


@dataclass(frozen=True, slots=True)
class CategorySpec:
    """Static description of a category.

    Attributes:
        name: Category label stored on catalog entries.
        icon: Display tag rendered next to entries of this category.
        color: Hex color tag associated with the category.
        extensions: Lowercase extensions (with leading dot) that belong to it.
    """

    name: str
    icon: str
    color: str
    extensions: frozenset[str]


@dataclass(frozen=True, slots=True)
class Classification:
    """Result of classifying a single extension."""

    category: str
    icon: str
    color: str


CATEGORY_TABLE: tuple[CategorySpec, ...] = (
    CategorySpec(
        "Documents",
        "📄",
        "#3B82F6",
        frozenset({".doc", ".docx", ".pdf", ".txt", ".xlsx", ".pptx"}),
    ),
    CategorySpec("Images", "🖼️", "#10B981", frozenset({".jpg", ".png", ".gif", ".bmp", ".svg"})),
    CategorySpec("Video", "🎥", "#EF4444", frozenset({".mp4", ".avi", ".mkv", ".mov"})),
    CategorySpec("Audio", "🎵", "#F59E0B", frozenset({".mp3", ".wav", ".flac", ".aac"})),
    CategorySpec("Archives", "📦", "#8B5CF6", frozenset({".zip", ".rar", ".7z", ".tar"})),
    CategorySpec("Applications", "⚙️", "#22C55E", frozenset({".exe", ".msi"})),
    CategorySpec("Shortcuts", "🔗", "#FBBF24", frozenset({".lnk", ".url"})),
)

DEFAULT_CLASSIFICATION = Classification(category=OTHER_CATEGORY, icon="📁", color="#64748B")

_BY_EXTENSION: Mapping[str, CategorySpec] = {
    extension: definition for definition in CATEGORY_TABLE for extension in definition.extensions
}
_BY_NAME: Mapping[str, CategorySpec] = {definition.name: definition for definition in CATEGORY_TABLE}
_RANKS: Mapping[str, int] = {definition.name: index for index, definition in enumerate(CATEGORY_TABLE)}


def _normalize_extension(extension: str) -> str:
    value = extension.strip().lower()
    if value and not value.startswith("."):
        value = f".{value}"
    return value


def classify(extension: str) -> Classification:
    """Map a file extension to its category, icon, and color tag.

    Args:
        extension: File extension with or without the leading dot. Matching is
            case-insensitive.

    Returns:
        Classification: Category data; unknown or empty extensions map to the
        ``Other`` category.
    """
    definition = _BY_EXTENSION.get(_normalize_extension(extension))
    if definition is None:
        return DEFAULT_CLASSIFICATION
    return Classification(category=definition.name, icon=definition.icon, color=definition.color)


def classify_path(path: str | PurePath) -> Classification:
    """Classify a path by its final suffix."""
    return classify(PurePath(path).suffix)


def category_rank(category: str) -> int:
    """Return the sort rank for ``category``; unlisted categories rank last."""
    return _RANKS.get(category, len(CATEGORY_TABLE))


def known_categories() -> list[str]:
    """Return every category label including the fallback, in rank order."""
    return [definition.name for definition in CATEGORY_TABLE] + [OTHER_CATEGORY]


def known_extensions() -> list[str]:
    """Return every extension present in the category table."""
    return sorted(_BY_EXTENSION)


def describe_category(category: str) -> Classification:
    """Return the display tags for a category label."""
    definition = _BY_NAME.get(category)
    if definition is None:
        return DEFAULT_CLASSIFICATION
    return Classification(category=definition.name, icon=definition.icon, color=definition.color)


def format_size(size_bytes: int) -> str:
    """Render a byte count as a short human-readable string.

    Args:
        size_bytes: File size in bytes.

    Returns:
        str: Size such as ``"512 B"`` or ``"1.50 MB"``.
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"
    if size_bytes < 1024**2:
        return f"{size_bytes / 1024:.2f} KB"
    if size_bytes < 1024**3:
        return f"{size_bytes / 1024**2:.2f} MB"
    return f"{size_bytes / 1024**3:.2f} GB"
