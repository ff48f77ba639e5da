"""Tag value normalization and tag-set helpers."""

from collections.abc import Iterable

from soundshelf.models.metadata import TagValue


def flatten_tag_values(value: TagValue | None) -> list[str]:
    """Flatten a tag value of any supported shape into a list of strings.

    Containers disagree on how multi-valued tags are stored: a single
    string, a list of strings, or a list of per-frame lists. All three
    collapse to the same flat list for the same logical content.

    Blank entries are dropped. Order is preserved and duplicates are kept,
    since some formats legitimately repeat values.

    Args:
        value: Raw tag value as read from the container, or None.

    Returns:
        Flat list of non-blank strings (possibly empty).

    Example:
        >>> flatten_tag_values([["A"], ["B", "C"]])
        ['A', 'B', 'C']
    """
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value.strip() else []

    flat: list[str] = []
    for item in value:
        if isinstance(item, str):
            if item.strip():
                flat.append(item)
        elif item is not None:
            flat.extend(v for v in item if isinstance(v, str) and v.strip())
    return flat


def unique_tags(tags: Iterable[str]) -> list[str]:
    """Deduplicate tags, keeping first-seen order."""
    return list(dict.fromkeys(tags))


def merge_tags(existing: Iterable[str], added: Iterable[str]) -> list[str]:
    """Set union of two tag collections (existing order first)."""
    return unique_tags([*existing, *added])


def subtract_tags(existing: Iterable[str], removed: Iterable[str]) -> list[str]:
    """Set difference of two tag collections.

    Removing a tag that is not present is a no-op.
    """
    removed_set = set(removed)
    return unique_tags(tag for tag in existing if tag not in removed_set)
