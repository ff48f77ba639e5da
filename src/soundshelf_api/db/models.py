"""Database models."""

from datetime import UTC, datetime
from typing import TypedDict

from soundshelf import UNKNOWN_ALBUM, UNKNOWN_ARTIST, UNKNOWN_GENRE
from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel


class Song(SQLModel, table=True):
    """A song record derived from an uploaded audio file.

    `id` is the storage key; `song_id` is the public identifier, assigned
    once at creation and used to name stored assets. A record without
    `file_url` is a partial ingestion: metadata is stored but the audio
    blob is not.
    """

    __tablename__ = "songs"

    id: int | None = Field(default=None, primary_key=True)
    song_id: str = Field(unique=True, index=True)

    title: str = Field(index=True)
    artist: str = Field(default=UNKNOWN_ARTIST, index=True)
    artists: list[str] = Field(
        default_factory=list, sa_column=Column(JSON, nullable=False)
    )
    composer: list[str] = Field(
        default_factory=list, sa_column=Column(JSON, nullable=False)
    )
    album: str = Field(default=UNKNOWN_ALBUM, index=True)
    year: int | None = Field(default=None)
    genre: list[str] = Field(
        default_factory=lambda: [UNKNOWN_GENRE], sa_column=Column(JSON, nullable=False)
    )

    duration: float | None = Field(default=None)
    bitrate: int | None = Field(default=None)
    sample_rate: int | None = Field(default=None)
    channels: int | None = Field(default=None)
    format: str | None = Field(default=None)

    file_size: int
    original_filename: str
    file_url: str | None = Field(default=None)
    cover_image_url: str

    upload_date: datetime = Field(default_factory=lambda: datetime.now(UTC), index=True)
    owner_id: str | None = Field(default=None, index=True)
    tags: list[str] = Field(
        default_factory=list, sa_column=Column(JSON, nullable=False)
    )

    @property
    def is_ready(self) -> bool:
        """Whether the audio blob has been stored."""
        return self.file_url is not None


class SongFields(TypedDict, total=False):
    """Fields that may be patched on an existing song."""

    title: str
    artist: str
    artists: list[str]
    composer: list[str]
    album: str
    year: int | None
    genre: list[str]
    file_url: str | None
    cover_image_url: str
    tags: list[str]
