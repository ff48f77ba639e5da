"""Test fixtures and configuration for soundshelf tests.

This module provides shared fixtures organized into:
- Database fixtures: In-memory SQLite for repository tests
- Storage fixtures: Filesystem asset store under tmp_path
- Time and ID utilities: Deterministic clock and song ID generator
- Factory fixtures: Builders for test data
"""

from __future__ import annotations

from collections.abc import Generator
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import TYPE_CHECKING, Any

import pytest
from soundshelf import AudioMetadata, EmbeddedPicture
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine

from soundshelf_api.db.models import Song
from soundshelf_api.db.repository import SongRepository
from soundshelf_api.services.asset_store import LocalAssetStore
from soundshelf_api.services.cover_art import CoverArtResolver

if TYPE_CHECKING:
    from collections.abc import Callable

DEFAULT_COVER_URL = "/static/default-cover.png"
MEDIA_BASE_URL = "/media"

# Smallest payloads that pass image signature sniffing
JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"\x00" * 16
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture
def engine() -> Generator[Engine, None, None]:
    """Create in-memory SQLite engine for tests."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def repository(engine: Engine) -> SongRepository:
    """Create repository with test engine."""
    return SongRepository(engine)


# =============================================================================
# Storage Fixtures
# =============================================================================


@pytest.fixture
def asset_store(tmp_path: Path) -> LocalAssetStore:
    """Create a filesystem asset store rooted in a temp directory."""
    return LocalAssetStore(tmp_path / "assets", MEDIA_BASE_URL)


@pytest.fixture
def cover_resolver(asset_store: LocalAssetStore) -> CoverArtResolver:
    """Create a cover resolver backed by the temp asset store."""
    return CoverArtResolver(asset_store, DEFAULT_COVER_URL)


# =============================================================================
# Time Utilities
# =============================================================================


class MockClock:
    """Mock clock for deterministic time-based testing.

    Usage:
        clock = MockClock()
        clock.advance(60)  # Advance by 60 seconds
        clock.set(datetime(2024, 6, 15, 12, 0, 0, tzinfo=UTC))
    """

    def __init__(self, initial: datetime | None = None) -> None:
        self._time = initial or datetime(2024, 1, 1, 12, 0, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self._time

    def advance(self, seconds: int) -> None:
        """Advance the clock by the specified seconds."""
        self._time += timedelta(seconds=seconds)

    def set(self, time: datetime) -> None:
        """Set the clock to a specific time."""
        self._time = time


class MockIdGenerator:
    """Mock ID generator for deterministic song IDs.

    Usage:
        gen = MockIdGenerator()
        gen()  # Returns "song_0001"
        gen()  # Returns "song_0002"
    """

    def __init__(self, prefix: str = "song") -> None:
        self._counter = 0
        self._prefix = prefix

    def __call__(self) -> str:
        self._counter += 1
        return f"{self._prefix}_{self._counter:04d}"

    def reset(self) -> None:
        """Reset the counter."""
        self._counter = 0


@pytest.fixture
def clock() -> MockClock:
    """Provide a mock clock."""
    return MockClock()


@pytest.fixture
def id_generator() -> MockIdGenerator:
    """Provide a mock ID generator."""
    return MockIdGenerator()


# =============================================================================
# Factory Fixtures
# =============================================================================


@pytest.fixture
def make_song() -> Callable[..., Song]:
    """Factory for unsaved song records."""
    counter = 0

    def _make_song(**overrides: Any) -> Song:
        nonlocal counter
        counter += 1
        fields: dict[str, Any] = {
            "song_id": f"song_test{counter:04d}",
            "title": f"Song {counter}",
            "artist": "Test Artist",
            "artists": ["Test Artist"],
            "composer": ["Test Composer"],
            "album": "Test Album",
            "year": 2020,
            "genre": ["Rock"],
            "file_size": 1024,
            "original_filename": f"song{counter}.mp3",
            "file_url": f"{MEDIA_BASE_URL}/songs/song_test{counter:04d}.mp3",
            "cover_image_url": DEFAULT_COVER_URL,
            "tags": [],
        }
        fields.update(overrides)
        return Song(**fields)

    return _make_song


@pytest.fixture
def make_metadata() -> Callable[..., AudioMetadata]:
    """Factory for extracted metadata."""

    def _make_metadata(**overrides: Any) -> AudioMetadata:
        fields: dict[str, Any] = {
            "title": "Test Song",
            "artist": "Test Artist",
            "artists": ["Test Artist"],
            "composer": ["Test Composer"],
            "album": "Test Album",
            "year": 2021,
            "genre": ["Rock"],
            "duration": 180.5,
            "bitrate": 320000,
            "sample_rate": 44100,
            "channels": 2,
            "format": "MP3",
            "file_size": 2048,
            "original_filename": "test.mp3",
            "picture": None,
        }
        fields.update(overrides)
        return AudioMetadata(**fields)

    return _make_metadata


@pytest.fixture
def jpeg_picture() -> EmbeddedPicture:
    """Embedded JPEG cover."""
    return EmbeddedPicture(data=JPEG_BYTES, mime_type="image/jpeg")
