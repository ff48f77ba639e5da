"""Song ingestion: upload validation, metadata, storage and record lifecycle."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

from soundshelf import AudioMetadata, EmbeddedPicture, MetadataExtractor, ParseError
from soundshelf.utils import merge_tags, subtract_tags

from soundshelf_api.api.exceptions import (
    ServiceError,
    SongNotFoundError,
    StorageError,
    UnsupportedMediaError,
    UploadTooLargeError,
    ValidationError,
)
from soundshelf_api.core.enums import IngestionState
from soundshelf_api.core.types import Clock, IdGenerator
from soundshelf_api.db.models import Song
from soundshelf_api.services.cover_art import CoverArtResolver
from soundshelf_api.services.protocols import AssetStore, SongRepo
from soundshelf_api.settings import DEFAULT_MAX_UPLOAD_BYTES

logger = logging.getLogger(__name__)


def new_song_id() -> str:
    """Generate a public song ID."""
    return f"song_{uuid.uuid4().hex}"


def audio_key(song_id: str, original_filename: str) -> str:
    """Storage key for a song's audio blob."""
    return f"songs/{song_id}{Path(original_filename).suffix.lower()}"


def audio_content_type(original_filename: str, declared: str | None = None) -> str:
    """Content type for the stored audio blob.

    Uses the declared upload type when it is an audio type, otherwise
    derives one from the file extension.
    """
    if declared and declared.lower().startswith("audio/"):
        return declared.lower()
    ext = Path(original_filename).suffix.lower().lstrip(".")
    return f"audio/{ext}" if ext else "application/octet-stream"


@dataclass(frozen=True)
class StagedUpload:
    """An uploaded file already written to a temporary path.

    The ingestion service owns the temp file once handed over and removes
    it whatever the outcome.
    """

    path: Path
    original_filename: str
    content_type: str | None = None


@dataclass(frozen=True)
class IngestionOutcome:
    """Result of ingesting one file from a batch."""

    original_filename: str
    song: Song | None = None
    error: ServiceError | ParseError | None = None

    @property
    def ok(self) -> bool:
        return self.song is not None


class IngestionService:
    """Turns uploaded audio into song records and manages their lifecycle.

    Pipeline Overview:
    ==================
    RECEIVED -> METADATA_EXTRACTED -> RECORD_PERSISTED -> ASSET_UPLOADED -> COMPLETE
    Any step may end in FAILED.

    1. Validate the upload and extract metadata (ParseError: nothing stored)
    2. Resolve cover art, best effort (storage failure: default cover)
    3. Create the record without file_url (PersistenceError: nothing stored)
    4. Store the audio blob and set file_url (StorageError: record stays
       partial and can be completed with retry_asset_upload())

    The record exists before the blob upload starts, and file_url is only
    set after the store confirms the write. Asset keys derive from the song
    ID, so retries overwrite rather than duplicate.
    """

    def __init__(
        self,
        repository: SongRepo,
        asset_store: AssetStore,
        cover_resolver: CoverArtResolver,
        extractor: MetadataExtractor | None = None,
        *,
        max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES,
        clock: Clock | None = None,
        id_generator: IdGenerator | None = None,
    ) -> None:
        self._repository = repository
        self._asset_store = asset_store
        self._cover_resolver = cover_resolver
        self._extractor = extractor or MetadataExtractor()
        self._max_upload_bytes = max_upload_bytes
        self._clock = clock or (lambda: datetime.now(UTC))
        self._id_generator = id_generator or new_song_id

    # ============================================================================
    # UPLOAD
    # ============================================================================

    def validate_upload(
        self, original_filename: str, content_type: str | None, size: int | None
    ) -> None:
        """Reject uploads that are not audio or exceed the size cap.

        Raises:
            ValidationError: If the filename is missing or the file is empty.
            UnsupportedMediaError: If the content type is not audio/*.
            UploadTooLargeError: If the file exceeds the cap.
        """
        if not original_filename:
            raise ValidationError("No file uploaded", operation="upload")
        if not content_type or not content_type.lower().startswith("audio/"):
            raise UnsupportedMediaError(content_type)
        if size is not None:
            if size > self._max_upload_bytes:
                raise UploadTooLargeError(self._max_upload_bytes)
            if size == 0:
                raise ValidationError("Uploaded file is empty", operation="upload")

    def ingest(self, upload: StagedUpload, owner_id: str | None = None) -> Song:
        """Run an upload through the full pipeline.

        Args:
            upload: Staged upload. Its temp file is removed on return.
            owner_id: Caller identity, or None for anonymous uploads.

        Returns:
            The completed song record, with file_url set.

        Raises:
            ValidationError: Upload rejected before any processing.
            ParseError: Metadata could not be read; no record created.
            PersistenceError: The record could not be stored.
            StorageError: The audio blob could not be stored; the record
                remains in the partial state.
        """
        state = IngestionState.RECEIVED
        song_id: str | None = None
        try:
            self.validate_upload(
                upload.original_filename, upload.content_type, _file_size(upload.path)
            )
            metadata = self._extractor.extract_file(
                upload.path, upload.original_filename
            )
            state = self._advance(state, IngestionState.METADATA_EXTRACTED, upload)

            song_id = self._id_generator()
            cover_url = self._resolve_cover(metadata.picture, song_id)
            song = self._repository.create(
                self._build_song(song_id, metadata, cover_url, owner_id)
            )
            state = self._advance(state, IngestionState.RECORD_PERSISTED, upload, song_id)

            song = self._store_audio(song, upload)
            state = self._advance(state, IngestionState.ASSET_UPLOADED, upload, song_id)

            self._advance(state, IngestionState.COMPLETE, upload, song_id)
            logger.info("Ingested %s as %s", upload.original_filename, song.song_id)
            return song
        except (ServiceError, ParseError) as e:
            self._advance(state, IngestionState.FAILED, upload, song_id)
            logger.warning(
                "Ingestion of %s failed after %s%s: %s",
                upload.original_filename,
                state,
                f" ({song_id})" if song_id else "",
                e,
            )
            raise
        finally:
            _remove_temp(upload.path)

    def ingest_many(
        self, uploads: Sequence[StagedUpload], owner_id: str | None = None
    ) -> list[IngestionOutcome]:
        """Ingest several uploads independently.

        A failing file does not stop the others; each outcome carries
        either the song or the error.
        """
        outcomes: list[IngestionOutcome] = []
        for index, upload in enumerate(uploads):
            try:
                song = self.ingest(upload, owner_id)
            except (ServiceError, ParseError) as e:
                outcomes.append(IngestionOutcome(upload.original_filename, error=e))
            except BaseException:
                # Still own the remaining temp files
                for pending in uploads[index + 1 :]:
                    _remove_temp(pending.path)
                raise
            else:
                outcomes.append(IngestionOutcome(upload.original_filename, song=song))
        return outcomes

    def retry_asset_upload(self, song_id: str, upload: StagedUpload) -> Song:
        """Complete a partial ingestion by storing its audio blob.

        Idempotent: a song whose file_url is already set is returned
        unchanged. The blob keeps the key derived from the original upload.

        Raises:
            SongNotFoundError: If the song does not exist.
            ValidationError: If the upload is rejected.
            StorageError: If the blob could not be stored.
        """
        try:
            song = self._require(song_id, "upload_asset")
            if song.file_url is not None:
                logger.debug("Song %s already has its audio stored", song.song_id)
                return song
            self.validate_upload(
                upload.original_filename, upload.content_type, _file_size(upload.path)
            )
            song = self._store_audio(song, upload)
            logger.info("Completed partial ingestion of %s", song.song_id)
            return song
        finally:
            _remove_temp(upload.path)

    # ============================================================================
    # RECORD LIFECYCLE
    # ============================================================================

    def get(self, identifier: str) -> Song:
        """Get a song by song ID or storage ID.

        Raises:
            SongNotFoundError: If no song matches.
        """
        return self._require(identifier, "get")

    def delete(self, identifier: str) -> None:
        """Delete a song and, best effort, its stored audio and cover.

        Blob deletion failures are logged and do not prevent the record
        from being deleted.

        Raises:
            SongNotFoundError: If no song matches.
        """
        song = self._require(identifier, "delete")

        key = audio_key(song.song_id, song.original_filename)
        try:
            self._asset_store.delete(key)
        except StorageError as e:
            logger.warning("Could not delete audio %s for %s: %s", key, song.song_id, e)

        if song.cover_image_url != self._cover_resolver.default_cover_url:
            try:
                self._cover_resolver.delete(song.song_id)
            except StorageError as e:
                logger.warning("Could not delete cover for %s: %s", song.song_id, e)

        if song.id is None or not self._repository.delete(song.id):
            raise SongNotFoundError(song.song_id, operation="delete")
        logger.info("Deleted song %s", song.song_id)

    def add_tags(self, identifier: str, tags: Iterable[str]) -> Song:
        """Add tags to a song (set union).

        Raises:
            SongNotFoundError: If no song matches.
        """
        song = self._require(identifier, "add_tags")
        return self._set_tags(song, merge_tags(song.tags or [], tags), "add_tags")

    def remove_tags(self, identifier: str, tags: Iterable[str]) -> Song:
        """Remove tags from a song (set difference).

        Removing a tag the song does not have is a no-op.

        Raises:
            SongNotFoundError: If no song matches.
        """
        song = self._require(identifier, "remove_tags")
        return self._set_tags(song, subtract_tags(song.tags or [], tags), "remove_tags")

    # ============================================================================
    # PIPELINE STEPS
    # ============================================================================

    def _advance(
        self,
        current: IngestionState,
        target: IngestionState,
        upload: StagedUpload,
        song_id: str | None = None,
    ) -> IngestionState:
        if current.is_finished:
            raise RuntimeError(
                f"Ingestion of {upload.original_filename} already {current}"
            )
        logger.debug(
            "%s: %s -> %s%s",
            upload.original_filename,
            current,
            target,
            f" ({song_id})" if song_id else "",
        )
        return target

    def _resolve_cover(self, picture: EmbeddedPicture | None, song_id: str) -> str:
        """Resolve the cover URL, falling back to the default on storage failure."""
        try:
            return self._cover_resolver.resolve(picture, song_id)
        except StorageError as e:
            logger.warning("Using default cover for %s: %s", song_id, e)
            return self._cover_resolver.default_cover_url

    def _build_song(
        self,
        song_id: str,
        metadata: AudioMetadata,
        cover_url: str,
        owner_id: str | None,
    ) -> Song:
        return Song(
            song_id=song_id,
            title=metadata.title,
            artist=metadata.artist,
            artists=list(metadata.artists),
            composer=list(metadata.composer),
            album=metadata.album,
            year=metadata.year,
            genre=list(metadata.genre),
            duration=metadata.duration,
            bitrate=metadata.bitrate,
            sample_rate=metadata.sample_rate,
            channels=metadata.channels,
            format=metadata.format,
            file_size=metadata.file_size,
            original_filename=metadata.original_filename,
            cover_image_url=cover_url,
            # Stored naive by SQLite, read back as UTC
            upload_date=self._clock().astimezone(UTC),
            owner_id=owner_id,
            tags=[],
        )

    def _store_audio(self, song: Song, upload: StagedUpload) -> Song:
        """Store the audio blob, then point the record at it."""
        key = audio_key(song.song_id, song.original_filename)
        content_type = audio_content_type(song.original_filename, upload.content_type)
        try:
            data = upload.path.read_bytes()
            url = self._asset_store.put(key, data, content_type)
        except (OSError, StorageError) as e:
            raise StorageError(
                f"Failed to store audio for {song.song_id}: {e}",
                operation="upload_asset",
                song_id=song.song_id,
            ) from e

        if song.id is None:
            raise SongNotFoundError(song.song_id, operation="upload_asset")
        updated = self._repository.update(song.id, file_url=url)
        if updated is None:
            raise SongNotFoundError(song.song_id, operation="upload_asset")
        return updated

    def _set_tags(self, song: Song, tags: list[str], operation: str) -> Song:
        if song.id is None:
            raise SongNotFoundError(song.song_id, operation=operation)
        updated = self._repository.update(song.id, tags=tags)
        if updated is None:
            raise SongNotFoundError(song.song_id, operation=operation)
        return updated

    def _require(self, identifier: str, operation: str) -> Song:
        """Look up a song by song ID, falling back to the storage ID."""
        song = self._repository.get_by_song_id(identifier)
        if song is None and identifier.isdigit():
            song = self._repository.get(int(identifier))
        if song is None:
            raise SongNotFoundError(identifier, operation=operation)
        return song


def _file_size(path: Path) -> int | None:
    try:
        return path.stat().st_size
    except OSError:
        return None


def _remove_temp(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        logger.warning("Could not remove temp file %s: %s", path, e)
