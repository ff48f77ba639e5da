"""Song request/response schemas."""

from typing import Annotated

from pydantic import BaseModel, Field, StringConstraints, computed_field

from soundshelf_api.schemas.types import UTCDateTime

Tag = Annotated[
    str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)
]


class TagsRequest(BaseModel):
    """Request to add or remove tags."""

    tags: list[Tag] = Field(min_length=1, max_length=100)


class SongResponse(BaseModel):
    """Song record response."""

    id: int
    song_id: str
    title: str
    artist: str
    artists: list[str]
    composer: list[str]
    album: str
    year: int | None
    genre: list[str]
    duration: float | None
    bitrate: int | None
    sample_rate: int | None
    channels: int | None
    format: str | None
    file_size: int
    original_filename: str
    file_url: str | None
    cover_image_url: str
    upload_date: UTCDateTime
    owner_id: str | None
    tags: list[str]

    model_config = {"from_attributes": True}

    @computed_field  # type: ignore[prop-decorator]
    @property
    def ready(self) -> bool:
        """Whether the audio file has been stored."""
        return self.file_url is not None


class SongListResponse(BaseModel):
    """List of songs response."""

    items: list[SongResponse]


class RecommendationItem(BaseModel):
    """A recommended song with its similarity score."""

    song: SongResponse
    score: float = Field(ge=0)


class RecommendationResponse(BaseModel):
    """Recommendations for a seed song, best first."""

    song_id: str
    items: list[RecommendationItem]


class AlbumResponse(BaseModel):
    """Songs grouped by album."""

    album: str
    count: int
    songs: list[SongResponse]


class AlbumListResponse(BaseModel):
    """List of albums response."""

    items: list[AlbumResponse]


class UploadResultItem(BaseModel):
    """Outcome of one file in a batch upload."""

    filename: str
    success: bool
    song: SongResponse | None = None
    error: str | None = None
    message: str | None = None


class BatchUploadResponse(BaseModel):
    """Batch upload response."""

    items: list[UploadResultItem]
