"""Metadata models produced by the extractor.

These are the public models that represent what was read from an
uploaded audio file, before it becomes a persisted song record.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

# Fallback values applied when a tag is missing from the file
UNKNOWN_ARTIST = "Unknown Artist"
UNKNOWN_ALBUM = "Unknown Album"
UNKNOWN_COMPOSER = "Unknown Composer"
UNKNOWN_GENRE = "Unknown"

# Shapes a multi-valued tag can take depending on the container format.
# Only ever seen at the parsing boundary; normalized with flatten_tag_values().
type TagValue = str | list[str] | list[list[str]]


class EmbeddedPicture(BaseModel):
    """A picture stored inside the audio container.

    Attributes:
        data: Raw image bytes.
        mime_type: Declared image format (e.g. "image/jpeg"), if any.
        description: Picture description from the tag, if any.
    """

    model_config = ConfigDict(frozen=True)

    data: bytes
    mime_type: str | None = None
    description: str | None = None

    def __repr__(self) -> str:
        return f"EmbeddedPicture(mime_type={self.mime_type!r}, size={len(self.data)})"


class AudioMetadata(BaseModel):
    """Normalized tag and stream metadata for one audio file.

    Multi-valued fields (artists, composer, genre) are always flat lists of
    strings with defaults applied, so they are never empty. Stream attributes
    are None when the container does not report them.
    """

    model_config = ConfigDict(frozen=True)

    title: str
    artist: str = UNKNOWN_ARTIST
    artists: list[str] = Field(default_factory=lambda: [UNKNOWN_ARTIST])
    composer: list[str] = Field(default_factory=lambda: [UNKNOWN_COMPOSER])
    album: str = UNKNOWN_ALBUM
    year: int | None = None
    genre: list[str] = Field(default_factory=lambda: [UNKNOWN_GENRE])

    duration: float | None = None  # seconds
    bitrate: int | None = None  # bits per second
    sample_rate: int | None = None  # Hz
    channels: int | None = None
    format: str | None = None  # e.g. "MP3", "FLAC"

    file_size: int
    original_filename: str
    picture: EmbeddedPicture | None = None

    @property
    def has_picture(self) -> bool:
        return self.picture is not None
