"""Song upload, lookup, tagging and recommendation endpoints."""

from typing import Annotated

from fastapi import APIRouter, File, Query, UploadFile, status
from fastapi.responses import RedirectResponse
from soundshelf import ParseError

from soundshelf_api.api.deps import (
    CallerIdDep,
    IngestionServiceDep,
    RecommendationEngineDep,
    RepositoryDep,
    SettingsDep,
)
from soundshelf_api.api.exceptions import ServiceError, ValidationError
from soundshelf_api.api.uploads import discard_staged, stage_upload
from soundshelf_api.schemas.songs import (
    AlbumListResponse,
    AlbumResponse,
    BatchUploadResponse,
    RecommendationItem,
    RecommendationResponse,
    SongListResponse,
    SongResponse,
    TagsRequest,
    UploadResultItem,
)
from soundshelf_api.services.ingestion import IngestionOutcome, StagedUpload

router = APIRouter(prefix="/songs", tags=["songs"])

TRENDING_LIMIT = 20
ALBUM_LIMIT = 20


def _failure_item(filename: str, error: ServiceError | ParseError) -> UploadResultItem:
    code = error.error_code if isinstance(error, ServiceError) else "parse_error"
    return UploadResultItem(
        filename=filename, success=False, error=code, message=error.message
    )


def _outcome_item(outcome: IngestionOutcome) -> UploadResultItem:
    if outcome.error is not None:
        return _failure_item(outcome.original_filename, outcome.error)
    return UploadResultItem(
        filename=outcome.original_filename,
        success=True,
        song=SongResponse.model_validate(outcome.song),
    )


# =============================================================================
# Fixed-path routes MUST be registered BEFORE /{identifier} routes
# FastAPI matches routes in order - "search" would be captured as an ID otherwise
# =============================================================================


@router.post("", response_model=SongResponse, status_code=status.HTTP_201_CREATED)
def upload_song(
    ingestion: IngestionServiceDep,
    settings: SettingsDep,
    caller_id: CallerIdDep,
    file: Annotated[UploadFile | None, File(description="Audio file")] = None,
) -> SongResponse:
    """Upload an audio file and create its song record."""
    if file is None:
        raise ValidationError("No file uploaded", operation="upload")
    # Reject non-audio before anything touches the disk
    ingestion.validate_upload(file.filename or "", file.content_type, file.size)
    upload = stage_upload(file, settings.temp, settings.max_upload_bytes)
    song = ingestion.ingest(upload, owner_id=caller_id)
    return SongResponse.model_validate(song)


@router.post("/batch", response_model=BatchUploadResponse)
def upload_songs(
    ingestion: IngestionServiceDep,
    settings: SettingsDep,
    caller_id: CallerIdDep,
    files: Annotated[list[UploadFile], File(description="Audio files")],
) -> BatchUploadResponse:
    """Upload several audio files; each succeeds or fails on its own."""
    rejected: list[UploadResultItem | None] = []
    staged: list[StagedUpload] = []
    try:
        for file in files:
            try:
                ingestion.validate_upload(
                    file.filename or "", file.content_type, file.size
                )
                staged.append(
                    stage_upload(file, settings.temp, settings.max_upload_bytes)
                )
            except ServiceError as e:
                rejected.append(_failure_item(file.filename or "", e))
            else:
                rejected.append(None)
    except BaseException:
        discard_staged(staged)
        raise

    outcomes = iter(ingestion.ingest_many(staged, owner_id=caller_id))
    return BatchUploadResponse(
        items=[
            item if item is not None else _outcome_item(next(outcomes))
            for item in rejected
        ]
    )


@router.get("", response_model=SongListResponse)
def list_songs(
    repository: RepositoryDep,
    owner_id: str | None = None,
) -> SongListResponse:
    """List all songs, optionally only those uploaded by one user."""
    songs = repository.list(owner_id=owner_id)
    return SongListResponse(items=[SongResponse.model_validate(s) for s in songs])


@router.get("/search", response_model=SongListResponse)
def search_songs(
    repository: RepositoryDep,
    q: Annotated[str, Query(min_length=1, max_length=200)],
) -> SongListResponse:
    """Search songs by title, artist, album or genre."""
    songs = repository.search(q.strip())
    return SongListResponse(items=[SongResponse.model_validate(s) for s in songs])


@router.get("/trending", response_model=SongListResponse)
def trending_songs(repository: RepositoryDep) -> SongListResponse:
    """List the most recently uploaded songs."""
    songs = repository.list_recent(limit=TRENDING_LIMIT)
    return SongListResponse(items=[SongResponse.model_validate(s) for s in songs])


@router.get("/albums", response_model=AlbumListResponse)
def list_albums(repository: RepositoryDep) -> AlbumListResponse:
    """List albums with the most songs first."""
    summaries = repository.album_summaries(limit=ALBUM_LIMIT)
    return AlbumListResponse(
        items=[
            AlbumResponse(
                album=summary.album,
                count=summary.count,
                songs=[SongResponse.model_validate(s) for s in summary.songs],
            )
            for summary in summaries
        ]
    )


# =============================================================================
# Per-song routes
# =============================================================================


@router.get("/{identifier}", response_model=SongResponse)
def get_song(identifier: str, ingestion: IngestionServiceDep) -> SongResponse:
    """Get a song by song ID or storage ID."""
    return SongResponse.model_validate(ingestion.get(identifier))


@router.post("/{identifier}/play", response_model=SongResponse)
def play_song(identifier: str, ingestion: IngestionServiceDep) -> SongResponse:
    """Look up a song for playback."""
    return SongResponse.model_validate(ingestion.get(identifier))


@router.delete("/{identifier}", status_code=status.HTTP_204_NO_CONTENT)
def delete_song(identifier: str, ingestion: IngestionServiceDep) -> None:
    """Delete a song together with its stored audio and cover."""
    ingestion.delete(identifier)


@router.post("/{identifier}/add-tags", response_model=SongResponse)
def add_tags(
    identifier: str, data: TagsRequest, ingestion: IngestionServiceDep
) -> SongResponse:
    """Add tags to a song."""
    return SongResponse.model_validate(ingestion.add_tags(identifier, data.tags))


@router.post("/{identifier}/remove-tags", response_model=SongResponse)
def remove_tags(
    identifier: str, data: TagsRequest, ingestion: IngestionServiceDep
) -> SongResponse:
    """Remove tags from a song."""
    return SongResponse.model_validate(ingestion.remove_tags(identifier, data.tags))


@router.get("/{song_id}/recommendations", response_model=RecommendationResponse)
def get_recommendations(
    song_id: str, recommendations: RecommendationEngineDep
) -> RecommendationResponse:
    """Get songs similar to a seed song, best match first."""
    ranked = recommendations.rank(song_id)
    return RecommendationResponse(
        song_id=song_id,
        items=[
            RecommendationItem(
                song=SongResponse.model_validate(item.song), score=item.score
            )
            for item in ranked
        ],
    )


@router.get("/{identifier}/cover", response_class=RedirectResponse)
def get_cover(identifier: str, ingestion: IngestionServiceDep) -> RedirectResponse:
    """Redirect to the song's cover image."""
    song = ingestion.get(identifier)
    return RedirectResponse(
        song.cover_image_url, status_code=status.HTTP_307_TEMPORARY_REDIRECT
    )


@router.post("/{song_id}/file", response_model=SongResponse)
def retry_file_upload(
    song_id: str,
    ingestion: IngestionServiceDep,
    settings: SettingsDep,
    file: Annotated[UploadFile | None, File(description="Audio file")] = None,
) -> SongResponse:
    """Store the audio file of a song whose earlier upload did not complete."""
    song = ingestion.get(song_id)
    if song.file_url is not None:
        return SongResponse.model_validate(song)
    if file is None:
        raise ValidationError(
            "No file uploaded", operation="upload_asset", song_id=song.song_id
        )
    ingestion.validate_upload(file.filename or "", file.content_type, file.size)
    upload = stage_upload(file, settings.temp, settings.max_upload_bytes)
    return SongResponse.model_validate(
        ingestion.retry_asset_upload(song.song_id, upload)
    )
