"""Utility functions for soundshelf.

Available via `from soundshelf.utils import ...` for power users.
Not re-exported at the top-level `soundshelf` package.
"""

from soundshelf.utils.images import (
    COVER_EXTENSIONS,
    DEFAULT_IMAGE_MIME,
    detect_image_mime,
    extension_for_mime,
    resolve_image_mime,
)
from soundshelf.utils.tags import (
    flatten_tag_values,
    merge_tags,
    subtract_tags,
    unique_tags,
)

__all__ = [
    "COVER_EXTENSIONS",
    "DEFAULT_IMAGE_MIME",
    "detect_image_mime",
    "extension_for_mime",
    "flatten_tag_values",
    "merge_tags",
    "resolve_image_mime",
    "subtract_tags",
    "unique_tags",
]
