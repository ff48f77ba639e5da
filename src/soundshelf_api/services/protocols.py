"""Service protocols for dependency injection."""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol, Unpack

from soundshelf_api.db.models import Song, SongFields
from soundshelf_api.db.repository import AlbumSummary


class AssetStore(Protocol):
    """Durable blob storage with public URLs.

    Implementations raise StorageError when a write or delete fails.
    Writing an existing key overwrites it, and deleting a missing key is
    not an error, so retried steps are safe.
    """

    def put(self, key: str, data: bytes, content_type: str) -> str:
        """Store a blob and return its public URL."""
        ...

    def delete(self, key: str) -> None:
        """Delete a blob if it exists."""
        ...

    def exists(self, key: str) -> bool: ...

    def public_url(self, key: str) -> str: ...


class SongRepo(Protocol):
    """Narrow interface for song data access."""

    def create(self, song: Song) -> Song: ...

    def get(self, id: int) -> Song | None: ...

    def get_by_song_id(self, song_id: str) -> Song | None: ...

    def list(self, *, owner_id: str | None = None) -> list[Song]: ...

    def find_many(self, predicate: Callable[[Song], bool]) -> list[Song]: ...

    def update(self, id: int, **kwargs: Unpack[SongFields]) -> Song | None: ...

    def delete(self, id: int) -> bool: ...

    def search(self, query: str, limit: int = 50) -> list[Song]: ...

    def list_recent(self, limit: int = 20) -> list[Song]: ...

    def album_summaries(self, limit: int = 20) -> list[AlbumSummary]: ...

    def count(self) -> int: ...