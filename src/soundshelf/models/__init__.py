"""Public models for soundshelf."""

from soundshelf.models.metadata import (
    UNKNOWN_ALBUM,
    UNKNOWN_ARTIST,
    UNKNOWN_COMPOSER,
    UNKNOWN_GENRE,
    AudioMetadata,
    EmbeddedPicture,
    TagValue,
)

__all__ = [
    "UNKNOWN_ALBUM",
    "UNKNOWN_ARTIST",
    "UNKNOWN_COMPOSER",
    "UNKNOWN_GENRE",
    "AudioMetadata",
    "EmbeddedPicture",
    "TagValue",
]
