"""Database module for song records."""

from soundshelf_api.db.engine import create_db_engine, init_db
from soundshelf_api.db.models import Song, SongFields
from soundshelf_api.db.repository import AlbumSummary, SongRepository

__all__ = [
    "AlbumSummary",
    "Song",
    "SongFields",
    "SongRepository",
    "create_db_engine",
    "init_db",
]
