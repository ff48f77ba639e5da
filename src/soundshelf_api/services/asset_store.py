"""Filesystem-backed asset store."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path, PurePosixPath

from soundshelf_api.api.exceptions import StorageError

logger = logging.getLogger(__name__)


class LocalAssetStore:
    """Asset store that keeps blobs under a local directory.

    Keys are POSIX-style relative paths ("songs/song_abc.mp3") mapped onto
    the root directory. Public URLs are the key appended to a base URL,
    which the API serves as static files. The declared content type is not
    persisted; files are served with the type implied by their extension.
    """

    def __init__(self, root: Path, base_url: str) -> None:
        self._root = root
        self._base_url = base_url.rstrip("/")

    @property
    def root(self) -> Path:
        return self._root

    def _path(self, key: str) -> Path:
        """Resolve a key to a path inside the root directory."""
        parts = PurePosixPath(key).parts
        if not parts or key.startswith("/") or ".." in parts:
            raise StorageError(f"Invalid asset key: {key!r}", operation="resolve_key")
        return self._root.joinpath(*parts)

    def put(self, key: str, data: bytes, content_type: str) -> str:
        """Write a blob atomically and return its public URL.

        The blob is written to a temp file in the target directory and
        renamed into place, so readers never see a partial file.
        """
        path = self._path(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=".upload-")
            try:
                with os.fdopen(fd, "wb") as tmp:
                    tmp.write(data)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            logger.error("Failed to store asset %s: %s", key, e)
            raise StorageError(f"Failed to store {key}: {e}", operation="put") from e

        logger.debug("Stored asset %s (%s, %d bytes)", key, content_type, len(data))
        return self.public_url(key)

    def delete(self, key: str) -> None:
        """Delete a blob. Missing keys are ignored."""
        path = self._path(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(
                f"Failed to delete {key}: {e}", operation="delete"
            ) from e
        logger.debug("Deleted asset %s", key)

    def exists(self, key: str) -> bool:
        return self._path(key).is_file()

    def public_url(self, key: str) -> str:
        return f"{self._base_url}/{key}"
