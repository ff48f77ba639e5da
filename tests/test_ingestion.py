"""Tests for the song ingestion pipeline."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from soundshelf import AudioMetadata, EmbeddedPicture, MetadataExtractor, ParseError

from soundshelf_api.api.exceptions import (
    PersistenceError,
    SongNotFoundError,
    StorageError,
    UnsupportedMediaError,
    UploadTooLargeError,
)
from soundshelf_api.db.repository import SongRepository
from soundshelf_api.services.asset_store import LocalAssetStore
from soundshelf_api.services.cover_art import CoverArtResolver
from soundshelf_api.services.ingestion import (
    IngestionService,
    StagedUpload,
    audio_content_type,
    audio_key,
)

DEFAULT_COVER = "/static/default-cover.png"


@pytest.fixture
def extractor(make_metadata: Callable[..., AudioMetadata]) -> MagicMock:
    """Extractor returning fixed metadata."""
    extractor = MagicMock(spec=MetadataExtractor)
    extractor.extract_file.return_value = make_metadata()
    return extractor


@pytest.fixture
def service(
    repository: SongRepository,
    asset_store: LocalAssetStore,
    cover_resolver: CoverArtResolver,
    extractor: MagicMock,
    clock,
    id_generator,
) -> IngestionService:
    return IngestionService(
        repository=repository,
        asset_store=asset_store,
        cover_resolver=cover_resolver,
        extractor=extractor,
        max_upload_bytes=1024,
        clock=clock,
        id_generator=id_generator,
    )


@pytest.fixture
def make_upload(tmp_path: Path) -> Callable[..., StagedUpload]:
    """Factory for staged uploads backed by real temp files."""
    staging = tmp_path / "staging"
    staging.mkdir()
    counter = 0

    def _make_upload(
        filename: str = "test.mp3",
        data: bytes = b"ID3" + b"\x00" * 61,
        content_type: str | None = "audio/mpeg",
    ) -> StagedUpload:
        nonlocal counter
        counter += 1
        path = staging / f"upload-{counter}{Path(filename).suffix}"
        path.write_bytes(data)
        return StagedUpload(
            path=path, original_filename=filename, content_type=content_type
        )

    return _make_upload


class TestAssetNaming:
    """Tests for audio key and content type derivation."""

    def test_audio_key(self) -> None:
        assert audio_key("song_1", "My Song.MP3") == "songs/song_1.mp3"
        assert audio_key("song_1", "noext") == "songs/song_1"

    def test_content_type_prefers_declared_audio(self) -> None:
        assert audio_content_type("a.mp3", "audio/mpeg") == "audio/mpeg"

    def test_content_type_from_extension(self) -> None:
        assert audio_content_type("a.flac", None) == "audio/flac"
        assert audio_content_type("a.flac", "application/octet-stream") == "audio/flac"
        assert audio_content_type("noext", None) == "application/octet-stream"


class TestIngest:
    """Tests for the happy path."""

    def test_creates_complete_record(
        self,
        service: IngestionService,
        repository: SongRepository,
        asset_store: LocalAssetStore,
        make_upload: Callable[..., StagedUpload],
        clock,
    ) -> None:
        upload = make_upload()

        song = service.ingest(upload, owner_id="user-1")

        assert song.song_id == "song_0001"
        assert song.file_url == "/media/songs/song_0001.mp3"
        assert song.cover_image_url == DEFAULT_COVER
        assert song.owner_id == "user-1"
        assert song.tags == []
        assert song.title == "Test Song"
        assert asset_store.exists("songs/song_0001.mp3")
        assert not upload.path.exists()

        stored = repository.get_by_song_id("song_0001")
        assert stored is not None
        assert stored.file_url == song.file_url
        assert stored.upload_date.replace(tzinfo=None) == clock().replace(tzinfo=None)

    def test_no_picture_means_no_cover_write(
        self,
        service: IngestionService,
        asset_store: LocalAssetStore,
        make_upload: Callable[..., StagedUpload],
    ) -> None:
        service.ingest(make_upload())

        assert not (asset_store.root / "covers").exists()

    def test_embedded_picture_stored(
        self,
        service: IngestionService,
        extractor: MagicMock,
        asset_store: LocalAssetStore,
        make_metadata: Callable[..., AudioMetadata],
        make_upload: Callable[..., StagedUpload],
        jpeg_picture: EmbeddedPicture,
    ) -> None:
        extractor.extract_file.return_value = make_metadata(picture=jpeg_picture)

        song = service.ingest(make_upload())

        assert song.cover_image_url == "/media/covers/song_0001.jpg"
        assert asset_store.exists("covers/song_0001.jpg")

    def test_cover_failure_falls_back_to_default(
        self,
        repository: SongRepository,
        asset_store: LocalAssetStore,
        extractor: MagicMock,
        make_metadata: Callable[..., AudioMetadata],
        make_upload: Callable[..., StagedUpload],
        jpeg_picture: EmbeddedPicture,
        id_generator,
    ) -> None:
        """Cover storage failure is recovered; ingestion still completes."""
        resolver = MagicMock(spec=CoverArtResolver)
        resolver.default_cover_url = DEFAULT_COVER
        resolver.resolve.side_effect = StorageError("cover store down")
        extractor.extract_file.return_value = make_metadata(picture=jpeg_picture)
        service = IngestionService(
            repository,
            asset_store,
            resolver,
            extractor,
            id_generator=id_generator,
        )

        song = service.ingest(make_upload())

        assert song.cover_image_url == DEFAULT_COVER
        assert song.file_url is not None

    def test_title_fallback_passed_to_extractor(
        self,
        service: IngestionService,
        extractor: MagicMock,
        make_upload: Callable[..., StagedUpload],
    ) -> None:
        upload = make_upload(filename="Live Take.flac", content_type="audio/flac")

        service.ingest(upload)

        extractor.extract_file.assert_called_once_with(upload.path, "Live Take.flac")


class TestIngestFailures:
    """Tests for each failure point of the pipeline."""

    def test_unsupported_media(
        self,
        service: IngestionService,
        repository: SongRepository,
        extractor: MagicMock,
        make_upload: Callable[..., StagedUpload],
    ) -> None:
        upload = make_upload(filename="notes.txt", content_type="text/plain")

        with pytest.raises(UnsupportedMediaError):
            service.ingest(upload)

        extractor.extract_file.assert_not_called()
        assert repository.count() == 0
        assert not upload.path.exists()

    def test_too_large(
        self,
        service: IngestionService,
        repository: SongRepository,
        make_upload: Callable[..., StagedUpload],
    ) -> None:
        upload = make_upload(data=b"\x00" * 2048)

        with pytest.raises(UploadTooLargeError) as exc_info:
            service.ingest(upload)

        assert exc_info.value.max_bytes == 1024
        assert repository.count() == 0

    def test_parse_error_creates_nothing(
        self,
        service: IngestionService,
        repository: SongRepository,
        asset_store: LocalAssetStore,
        extractor: MagicMock,
        make_upload: Callable[..., StagedUpload],
    ) -> None:
        extractor.extract_file.side_effect = ParseError("bad tags", filename="test.mp3")
        upload = make_upload()

        with pytest.raises(ParseError):
            service.ingest(upload)

        assert repository.count() == 0
        assert not (asset_store.root / "songs").exists()
        assert not upload.path.exists()

    def test_persistence_error_stores_no_audio(
        self,
        asset_store: LocalAssetStore,
        cover_resolver: CoverArtResolver,
        extractor: MagicMock,
        make_upload: Callable[..., StagedUpload],
    ) -> None:
        repository = MagicMock()
        repository.create.side_effect = PersistenceError("db down", operation="create")
        service = IngestionService(repository, asset_store, cover_resolver, extractor)
        upload = make_upload()

        with pytest.raises(PersistenceError):
            service.ingest(upload)

        assert not (asset_store.root / "songs").exists()
        assert not upload.path.exists()

    def test_audio_storage_failure_leaves_partial_record(
        self,
        service: IngestionService,
        repository: SongRepository,
        asset_store: LocalAssetStore,
        make_upload: Callable[..., StagedUpload],
    ) -> None:
        """The record exists without file_url and the error names the song."""
        upload = make_upload()

        with patch.object(asset_store, "put", side_effect=StorageError("s3 down")):
            with pytest.raises(StorageError) as exc_info:
                service.ingest(upload)

        assert exc_info.value.song_id == "song_0001"
        assert exc_info.value.operation == "upload_asset"
        partial = repository.get_by_song_id("song_0001")
        assert partial is not None
        assert partial.file_url is None
        assert not partial.is_ready
        assert not upload.path.exists()


class TestRetryAssetUpload:
    """Tests for completing partial ingestions."""

    def test_completes_partial_record(
        self,
        service: IngestionService,
        repository: SongRepository,
        asset_store: LocalAssetStore,
        make_upload: Callable[..., StagedUpload],
    ) -> None:
        with patch.object(asset_store, "put", side_effect=StorageError("s3 down")):
            with pytest.raises(StorageError):
                service.ingest(make_upload())

        song = service.retry_asset_upload("song_0001", make_upload())

        assert song.file_url == "/media/songs/song_0001.mp3"
        assert repository.count() == 1
        assert asset_store.exists("songs/song_0001.mp3")

    def test_idempotent_when_complete(
        self,
        service: IngestionService,
        asset_store: LocalAssetStore,
        make_upload: Callable[..., StagedUpload],
    ) -> None:
        song = service.ingest(make_upload())
        retry = make_upload()

        with patch.object(asset_store, "put") as put:
            again = service.retry_asset_upload(song.song_id, retry)

        put.assert_not_called()
        assert again.file_url == song.file_url
        assert not retry.path.exists()

    def test_unknown_song(
        self, service: IngestionService, make_upload: Callable[..., StagedUpload]
    ) -> None:
        upload = make_upload()

        with pytest.raises(SongNotFoundError):
            service.retry_asset_upload("song_missing", upload)

        assert not upload.path.exists()


class TestIngestMany:
    """Tests for batch ingestion."""

    def test_failures_are_independent(
        self,
        service: IngestionService,
        extractor: MagicMock,
        make_metadata: Callable[..., AudioMetadata],
        make_upload: Callable[..., StagedUpload],
    ) -> None:
        extractor.extract_file.side_effect = [
            make_metadata(title="one"),
            ParseError("bad", filename="two.mp3"),
            make_metadata(title="three"),
        ]
        uploads = [
            make_upload(filename="one.mp3"),
            make_upload(filename="two.mp3"),
            make_upload(filename="three.mp3"),
        ]

        outcomes = service.ingest_many(uploads)

        assert [o.ok for o in outcomes] == [True, False, True]
        assert isinstance(outcomes[1].error, ParseError)
        assert outcomes[2].song is not None
        assert outcomes[2].song.title == "three"
        assert all(not u.path.exists() for u in uploads)


class TestRecordLifecycle:
    """Tests for lookup, deletion and tag mutation."""

    def test_get_by_song_or_storage_id(
        self, service: IngestionService, make_upload: Callable[..., StagedUpload]
    ) -> None:
        song = service.ingest(make_upload())

        assert service.get(song.song_id).id == song.id
        assert service.get(str(song.id)).song_id == song.song_id

        with pytest.raises(SongNotFoundError):
            service.get("song_missing")

    def test_delete_removes_blobs_and_record(
        self,
        service: IngestionService,
        repository: SongRepository,
        asset_store: LocalAssetStore,
        extractor: MagicMock,
        make_metadata: Callable[..., AudioMetadata],
        make_upload: Callable[..., StagedUpload],
        jpeg_picture: EmbeddedPicture,
    ) -> None:
        extractor.extract_file.return_value = make_metadata(picture=jpeg_picture)
        song = service.ingest(make_upload())

        service.delete(song.song_id)

        assert repository.get_by_song_id(song.song_id) is None
        assert not asset_store.exists("songs/song_0001.mp3")
        assert not asset_store.exists("covers/song_0001.jpg")

    def test_delete_survives_blob_failure(
        self,
        service: IngestionService,
        repository: SongRepository,
        asset_store: LocalAssetStore,
        make_upload: Callable[..., StagedUpload],
    ) -> None:
        """Blob deletion is best effort; the record is deleted regardless."""
        song = service.ingest(make_upload())

        with patch.object(asset_store, "delete", side_effect=StorageError("down")):
            service.delete(song.song_id)

        assert repository.get_by_song_id(song.song_id) is None

    def test_delete_keeps_default_cover(
        self,
        service: IngestionService,
        asset_store: LocalAssetStore,
        make_upload: Callable[..., StagedUpload],
    ) -> None:
        song = service.ingest(make_upload())

        with patch.object(asset_store, "delete") as delete:
            service.delete(song.song_id)

        delete.assert_called_once_with("songs/song_0001.mp3")

    def test_delete_unknown(self, service: IngestionService) -> None:
        with pytest.raises(SongNotFoundError) as exc_info:
            service.delete("song_missing")

        assert exc_info.value.operation == "delete"

    def test_add_tags_is_union(
        self, service: IngestionService, make_upload: Callable[..., StagedUpload]
    ) -> None:
        song = service.ingest(make_upload())

        service.add_tags(song.song_id, ["chill", "night"])
        updated = service.add_tags(song.song_id, ["chill", "focus"])

        assert updated.tags == ["chill", "night", "focus"]

    def test_add_tags_idempotent(
        self, service: IngestionService, make_upload: Callable[..., StagedUpload]
    ) -> None:
        song = service.ingest(make_upload())

        first = service.add_tags(song.song_id, ["chill"])
        second = service.add_tags(song.song_id, ["chill"])

        assert first.tags == second.tags == ["chill"]

    def test_remove_tags(
        self, service: IngestionService, make_upload: Callable[..., StagedUpload]
    ) -> None:
        song = service.ingest(make_upload())
        service.add_tags(song.song_id, ["a", "b"])

        updated = service.remove_tags(song.song_id, ["a", "missing"])

        assert updated.tags == ["b"]

    @pytest.mark.parametrize("operation", ["add_tags", "remove_tags"])
    def test_tags_unknown_song(self, service: IngestionService, operation: str) -> None:
        with pytest.raises(SongNotFoundError) as exc_info:
            getattr(service, operation)("song_missing", ["x"])

        assert exc_info.value.operation == operation
