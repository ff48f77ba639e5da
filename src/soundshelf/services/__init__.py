"""Services for soundshelf."""

from soundshelf.services.metadata import MetadataExtractor
from soundshelf.services.similarity import (
    DEFAULT_TOP_K,
    ScoredSong,
    SongFeatures,
    rank_candidates,
    score_similarity,
)

__all__ = [
    "DEFAULT_TOP_K",
    "MetadataExtractor",
    "ScoredSong",
    "SongFeatures",
    "rank_candidates",
    "score_similarity",
]
