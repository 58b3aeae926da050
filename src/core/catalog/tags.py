"""
Tag normalization helpers.
"""

from typing import Iterable


def split_tags(raw: str) -> list[str]:
    """Split a comma-separated string into lower-cased, trimmed, non-empty tokens."""
    tokens = (token.strip().lower() for token in (raw or "").split(","))
    return [token for token in tokens if token]


def ordered_tags(cells: Iterable[str]) -> list[str]:
    """
    Collect tags from many comma-separated cells.

    Returns:
        Distinct tokens in order of first occurrence
    """
    seen: dict[str, None] = {}
    for cell in cells:
        for token in split_tags(cell):
            seen.setdefault(token, None)
    return list(seen)


def tag_set(raw: str) -> set[str]:
    """Distinct tokens of a comma-separated string, for membership tests."""
    return set(split_tags(raw))


def normalize_tags(raw: str) -> str:
    """Normalize and de-duplicate a tag string. Idempotent."""
    return ",".join(ordered_tags([raw]))


def normalize_manual_tags(raw: str) -> str:
    """
    Normalize typed tags without de-duplicating them.

    "Strength, Mobility ,strength" -> "strength,mobility,strength"
    """
    return ",".join(split_tags(raw))
