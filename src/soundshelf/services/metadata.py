"""Audio metadata extraction using mediafile."""

from __future__ import annotations

import logging
import tempfile
from pathlib import Path
from typing import Any

from mediafile import MediaFile, UnreadableFileError
from mutagen import File as MutagenFile
from mutagen import MutagenError

from soundshelf.exceptions import ParseError
from soundshelf.models.metadata import (
    UNKNOWN_ALBUM,
    UNKNOWN_ARTIST,
    UNKNOWN_COMPOSER,
    UNKNOWN_GENRE,
    AudioMetadata,
    EmbeddedPicture,
    TagValue,
)
from soundshelf.utils.tags import flatten_tag_values

logger = logging.getLogger(__name__)


class MetadataExtractor:
    """Service for reading tag and stream metadata from audio files.

    Pipeline Overview:
    ==================
    1. extract() / extract_file() - Main entry points
    2. _read_tags() - Title, artist(s), album, year, genre
    3. _read_composer() - Composer in whatever shape the container uses
    4. _read_stream_info() - Duration, bitrate, sample rate, channels, format
    5. _read_picture() - First embedded picture, if any

    mediafile gives a single interface over ID3, Vorbis comments, MP4 atoms
    and the rest. The composer is the one field read through mutagen's easy
    tags as well, because mediafile only exposes it as a single string and
    some files carry several composer values.
    """

    # ============================================================================
    # PUBLIC API
    # ============================================================================

    def extract(self, data: bytes, original_filename: str) -> AudioMetadata:
        """Extract metadata from an in-memory audio buffer.

        The buffer is staged to a temporary file carrying the original
        extension, since mutagen uses it to pick a container parser.

        Args:
            data: Raw audio bytes.
            original_filename: Filename supplied by the uploader. Used as the
                title fallback and to hint the container type.

        Returns:
            Normalized metadata.

        Raises:
            ParseError: If the buffer is empty or cannot be parsed.
        """
        if not data:
            raise ParseError("Empty audio buffer", filename=original_filename)

        suffix = Path(original_filename).suffix
        with tempfile.NamedTemporaryFile(suffix=suffix, delete_on_close=False) as tmp:
            tmp.write(data)
            tmp.close()
            return self.extract_file(Path(tmp.name), original_filename)

    def extract_file(self, path: Path, original_filename: str) -> AudioMetadata:
        """Extract metadata from an audio file on disk.

        Args:
            path: Path to the audio file.
            original_filename: Filename supplied by the uploader.

        Returns:
            Normalized metadata.

        Raises:
            ParseError: If the file cannot be parsed.
        """
        try:
            audio = MediaFile(path)
        except UnreadableFileError as e:
            logger.debug("Unreadable audio file %s: %s", original_filename, e)
            raise ParseError(
                f"Could not read metadata from {original_filename}: {e}",
                filename=original_filename,
            ) from e

        tags = self._read_tags(audio, original_filename)
        composer = self._read_composer(path, audio)
        stream = self._read_stream_info(audio)
        picture = self._read_picture(audio)

        metadata = AudioMetadata(
            **tags,
            **stream,
            composer=composer,
            file_size=path.stat().st_size,
            original_filename=original_filename,
            picture=picture,
        )
        logger.debug(
            "Extracted metadata from %s: '%s' by %s (picture: %s)",
            original_filename,
            metadata.title,
            metadata.artist,
            "yes" if picture else "no",
        )
        return metadata

    # ============================================================================
    # TAG READING
    # ============================================================================

    def _read_tags(self, audio: MediaFile, original_filename: str) -> dict[str, Any]:
        """Read the descriptive tags, applying defaults for missing values.

        A single-artist tag wins over the multi-artist tag: when both are
        present the artists list becomes just that one artist.
        """
        artist = audio.artist or None
        if artist:
            artists = [artist]
        else:
            artists = flatten_tag_values(audio.artists) or [UNKNOWN_ARTIST]

        return {
            "title": audio.title or original_filename,
            "artist": artist or UNKNOWN_ARTIST,
            "artists": artists,
            "album": audio.album or UNKNOWN_ALBUM,
            "year": audio.year or None,
            "genre": flatten_tag_values(audio.genres) or [UNKNOWN_GENRE],
        }

    def _read_composer(self, path: Path, audio: MediaFile) -> list[str]:
        """Read composer values and flatten them.

        Tries the raw multi-valued tag first, then mediafile's scalar field.
        """
        raw = _read_raw_tag(path, "composer")
        if raw is None:
            raw = audio.composer
        return flatten_tag_values(raw) or [UNKNOWN_COMPOSER]

    def _read_stream_info(self, audio: MediaFile) -> dict[str, Any]:
        """Read stream attributes as reported by the container.

        mediafile reports 0 for attributes the container lacks; those are
        left unset rather than stored as zero.
        """
        return {
            "duration": _positive(audio.length),
            "bitrate": _positive(audio.bitrate),
            "sample_rate": _positive(audio.samplerate),
            "channels": _positive(audio.channels),
            "format": audio.format or None,
        }

    def _read_picture(self, audio: MediaFile) -> EmbeddedPicture | None:
        """Return the first embedded picture, or None."""
        images = audio.images or []
        if not images:
            return None
        image = images[0]
        if not image.data:
            return None
        return EmbeddedPicture(
            data=image.data,
            mime_type=image.mime_type,
            description=image.desc or None,
        )


def _read_raw_tag(path: Path, key: str) -> TagValue | None:
    """Read a tag through mutagen's easy interface without normalizing it."""
    try:
        audio = MutagenFile(path, easy=True)
    except MutagenError as e:
        logger.debug("mutagen could not open %s: %s", path, e)
        return None
    if audio is None or audio.tags is None:
        return None

    try:
        raw = audio.tags.get(key)
    except (KeyError, ValueError):
        # Tag types without an easy mapping for this key
        return None
    return _coerce_tag_value(raw)


def _coerce_tag_value(raw: object) -> TagValue | None:
    """Coerce a raw mutagen value into one of the TagValue shapes."""
    if raw is None:
        return None
    if isinstance(raw, str):
        return raw
    if isinstance(raw, list | tuple):
        if all(isinstance(item, str) for item in raw):
            return list(raw)
        nested: list[list[str]] = []
        for item in raw:
            if isinstance(item, list | tuple):
                nested.append([str(v) for v in item])
            else:
                nested.append([str(item)])
        return nested
    return str(raw)


def _positive(value: int | float | None) -> int | float | None:
    if value is None or value <= 0:
        return None
    return value
