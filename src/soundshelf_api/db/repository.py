"""Database repository for songs."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Unpack

from soundshelf import UNKNOWN_ALBUM
from sqlalchemy import Engine, String, cast, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, col, func, select

from soundshelf_api.api.exceptions import PersistenceError
from soundshelf_api.db.models import Song, SongFields


@dataclass(frozen=True)
class AlbumSummary:
    """Songs grouped under one album name."""

    album: str
    count: int
    songs: list[Song]


class SongRepository:
    """Repository for song database operations.

    Every method opens its own session and commits before returning, so a
    write is visible to any read that starts after it. SQLAlchemy failures
    surface as PersistenceError.
    """

    def __init__(self, engine: Engine) -> None:
        """Initialize repository with database engine."""
        self._engine = engine

    @contextmanager
    def _session(self, operation: str, song_id: str | None = None) -> Iterator[Session]:
        try:
            with Session(self._engine) as session:
                yield session
        except SQLAlchemyError as e:
            raise PersistenceError(
                f"Song store failed during {operation}: {e}",
                operation=operation,
                song_id=song_id,
            ) from e

    def create(self, song: Song) -> Song:
        """Create a new song."""
        with self._session("create", song.song_id) as session:
            session.add(song)
            session.commit()
            session.refresh(song)
            return song

    def get(self, id: int) -> Song | None:
        """Get song by storage ID."""
        with self._session("get") as session:
            return session.get(Song, id)

    def get_by_song_id(self, song_id: str) -> Song | None:
        """Get song by its public song ID."""
        with self._session("get_by_song_id", song_id) as session:
            stmt = select(Song).where(Song.song_id == song_id)
            return session.exec(stmt).first()

    def list(self, *, owner_id: str | None = None) -> list[Song]:
        """List songs in insertion order, optionally for one owner."""
        with self._session("list") as session:
            stmt = select(Song).order_by(col(Song.id))
            if owner_id is not None:
                stmt = stmt.where(Song.owner_id == owner_id)
            return list(session.exec(stmt).all())

    def find_many(self, predicate: Callable[[Song], bool]) -> list[Song]:
        """List songs matching a predicate, in insertion order."""
        return [song for song in self.list() if predicate(song)]

    def list_recent(self, limit: int = 20) -> list[Song]:
        """List the most recently uploaded songs first."""
        with self._session("list_recent") as session:
            stmt = (
                select(Song)
                .order_by(col(Song.upload_date).desc(), col(Song.id).desc())
                .limit(limit)
            )
            return list(session.exec(stmt).all())

    def search(self, query: str, limit: int = 50) -> list[Song]:
        """Case-insensitive substring search over title, artist, album, genre."""
        with self._session("search") as session:
            stmt = (
                select(Song)
                .where(
                    or_(
                        col(Song.title).icontains(query),
                        col(Song.artist).icontains(query),
                        col(Song.album).icontains(query),
                        cast(Song.genre, String).icontains(query),
                    )
                )
                .order_by(col(Song.id))
                .limit(limit)
            )
            return list(session.exec(stmt).all())

    def album_summaries(self, limit: int = 20) -> list[AlbumSummary]:
        """Group songs by album, largest albums first.

        Songs without an album tag are left out.
        """
        with self._session("album_summaries") as session:
            count = func.count(col(Song.id))
            stmt = (
                select(Song.album, count)
                .where(Song.album != UNKNOWN_ALBUM)
                .group_by(Song.album)
                .order_by(count.desc(), col(Song.album))
                .limit(limit)
            )
            groups = list(session.exec(stmt).all())
            if not groups:
                return []

            songs_stmt = (
                select(Song)
                .where(col(Song.album).in_([album for album, _ in groups]))
                .order_by(col(Song.id))
            )
            by_album: dict[str, list[Song]] = {}
            for song in session.exec(songs_stmt).all():
                by_album.setdefault(song.album, []).append(song)

            return [
                AlbumSummary(album=album, count=n, songs=by_album.get(album, []))
                for album, n in groups
            ]

    def update(self, id: int, **kwargs: Unpack[SongFields]) -> Song | None:
        """Update song fields by storage ID. Returns None if not found."""
        with self._session("update") as session:
            song = session.get(Song, id)
            if song is None:
                return None
            for key, value in kwargs.items():
                setattr(song, key, value)
            session.commit()
            session.refresh(song)
            return song

    def delete(self, id: int) -> bool:
        """Delete song by storage ID. Returns True if deleted, False if not found."""
        with self._session("delete") as session:
            song = session.get(Song, id)
            if song is None:
                return False
            session.delete(song)
            session.commit()
            return True

    def count(self) -> int:
        """Count stored songs."""
        with self._session("count") as session:
            stmt = select(func.count()).select_from(Song)
            return session.exec(stmt).one()
