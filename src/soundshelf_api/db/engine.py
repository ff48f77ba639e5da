"""SQLite engine for the song store."""

import logging
from pathlib import Path
from typing import Any

from sqlalchemy import Engine, event, inspect
from sqlmodel import SQLModel, create_engine

from soundshelf_api.db.models import Song

logger = logging.getLogger(__name__)

# How long a writer waits for the database lock
BUSY_TIMEOUT_MS = 5000


def _configure_connection(dbapi_connection: Any, _record: Any) -> None:
    cursor = dbapi_connection.cursor()
    try:
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute(f"PRAGMA busy_timeout={BUSY_TIMEOUT_MS}")
    finally:
        cursor.close()


def create_db_engine(db_path: Path, *, echo: bool = False) -> Engine:
    """Create the engine for a song database file.

    Connections use WAL journaling and a lock wait timeout.

    Args:
        db_path: Path to the SQLite database file. Parent directories are
            created as needed.
        echo: Log every SQL statement.
    """
    db_path.parent.mkdir(parents=True, exist_ok=True)
    engine = create_engine(
        f"sqlite:///{db_path}",
        connect_args={"check_same_thread": False},
        echo=echo,
    )
    event.listen(engine, "connect", _configure_connection)
    return engine


def init_db(engine: Engine) -> None:
    """Create the songs table if it does not exist yet."""
    created = not inspect(engine).has_table(Song.__tablename__)
    SQLModel.metadata.create_all(engine, tables=[Song.__table__])  # type: ignore[attr-defined]
    if created:
        logger.info("Created table %s", Song.__tablename__)
