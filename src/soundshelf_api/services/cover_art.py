"""Cover art persistence for embedded pictures."""

import logging

from soundshelf import EmbeddedPicture
from soundshelf.utils import COVER_EXTENSIONS, extension_for_mime, resolve_image_mime

from soundshelf_api.services.protocols import AssetStore

logger = logging.getLogger(__name__)


def cover_key(song_id: str, mime_type: str) -> str:
    """Storage key for a song's cover image."""
    return f"covers/{song_id}{extension_for_mime(mime_type)}"


class CoverArtResolver:
    """Decides which cover URL a song gets.

    Songs without embedded artwork share a fixed default cover and cause
    no storage write. Embedded artwork is stored under a key derived from
    the song ID, so resolving the same song twice overwrites rather than
    duplicates.
    """

    def __init__(self, store: AssetStore, default_cover_url: str) -> None:
        self._store = store
        self._default_cover_url = default_cover_url

    @property
    def default_cover_url(self) -> str:
        return self._default_cover_url

    def resolve(self, picture: EmbeddedPicture | None, song_id: str) -> str:
        """Store the picture (if any) and return the cover URL.

        Raises:
            StorageError: If the picture could not be stored.
        """
        if picture is None:
            return self._default_cover_url

        content_type = resolve_image_mime(picture.mime_type, picture.data)
        key = cover_key(song_id, content_type)
        url = self._store.put(key, picture.data, content_type)
        logger.debug("Stored cover for %s as %s", song_id, key)
        return url

    def delete(self, song_id: str) -> None:
        """Delete any stored cover for a song.

        The extension depends on the picture format, so every known cover
        extension is tried.

        Raises:
            StorageError: If a delete fails.
        """
        for ext in COVER_EXTENSIONS:
            self._store.delete(f"covers/{song_id}{ext}")
