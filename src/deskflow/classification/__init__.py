"""Classification helpers package."""

from .engine import (
    CATEGORY_TABLE,
    DEFAULT_CLASSIFICATION,
    OTHER_CATEGORY,
    CategorySpec,
    Classification,
    category_rank,
    classify,
    classify_path,
    describe_category,
    format_size,
    known_categories,
    known_extensions,
)

__all__ = [
    "CATEGORY_TABLE",
    "DEFAULT_CLASSIFICATION",
    "OTHER_CATEGORY",
    "CategorySpec",
    "Classification",
    "category_rank",
    "classify",
    "classify_path",
    "describe_category",
    "format_size",
    "known_categories",
    "known_extensions",
]
