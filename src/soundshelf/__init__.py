"""soundshelf - Read audio metadata and score song similarity.

This library provides the data transformation core of the soundshelf
music library service: extracting normalized tag, stream and artwork
metadata from uploaded audio files, and ranking songs by content-based
similarity.

Designed for use as a library in applications (e.g., FastAPI) with
a CLI for debugging and development.

Examples:
    Extract metadata from an upload:
    ```python
    from soundshelf import create_extractor

    extractor = create_extractor()
    metadata = extractor.extract(data, "track.mp3")
    print(metadata.title, metadata.composer)
    ```

    Rank songs against a seed:
    ```python
    from soundshelf import rank_candidates

    for item in rank_candidates(seed, others):
        print(item.song.title, item.score)
    ```
"""

from soundshelf.exceptions import ParseError, SoundshelfError
from soundshelf.models import (
    UNKNOWN_ALBUM,
    UNKNOWN_ARTIST,
    UNKNOWN_COMPOSER,
    UNKNOWN_GENRE,
    AudioMetadata,
    EmbeddedPicture,
    TagValue,
)
from soundshelf.services import (
    DEFAULT_TOP_K,
    MetadataExtractor,
    ScoredSong,
    SongFeatures,
    rank_candidates,
    score_similarity,
)


def create_extractor() -> MetadataExtractor:
    """Create a metadata extractor.

    This is the recommended way to create an extractor for library usage.

    Returns:
        A MetadataExtractor instance.
    """
    return MetadataExtractor()


__all__ = [
    "DEFAULT_TOP_K",
    "UNKNOWN_ALBUM",
    "UNKNOWN_ARTIST",
    "UNKNOWN_COMPOSER",
    "UNKNOWN_GENRE",
    "AudioMetadata",
    "EmbeddedPicture",
    "MetadataExtractor",
    "ParseError",
    "ScoredSong",
    "SongFeatures",
    "SoundshelfError",
    "TagValue",
    "create_extractor",
    "rank_candidates",
    "score_similarity",
]
