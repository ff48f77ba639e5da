"""Content-based similarity scoring between songs.

Scores are computed from the seed song's point of view and are not
guaranteed to be symmetric. Weights:

- +1 per candidate genre also present on the seed
- +1 per candidate composer also present on the seed
- +0.5 when the album strings are equal
- +0.5 when both years are known and at most 2 apart
- +1 per candidate tag also present on the seed (only when both have tags)
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Protocol

from soundshelf.utils.tags import flatten_tag_values

DEFAULT_TOP_K = 5

GENRE_WEIGHT = 1.0
COMPOSER_WEIGHT = 1.0
ALBUM_WEIGHT = 0.5
YEAR_WEIGHT = 0.5
YEAR_WINDOW = 2
TAG_WEIGHT = 1.0


class SongFeatures(Protocol):
    """Fields the scorer reads from a song record."""

    genre: list[str]
    composer: list[str]
    album: str
    year: int | None
    tags: list[str]


@dataclass(frozen=True, slots=True)
class ScoredSong[S: SongFeatures]:
    """A candidate song paired with its similarity score."""

    song: S
    score: float


def _count_shared(candidate_values: Iterable[str], seed_values: Iterable[str]) -> int:
    """Count candidate values present on the seed, with repetition."""
    seed_set = set(seed_values)
    return sum(1 for value in candidate_values if value in seed_set)


def score_similarity(seed: SongFeatures, candidate: SongFeatures) -> float:
    """Score how similar a candidate is to the seed song.

    Album equality is literal: two songs that both fall back to the
    "Unknown Album" default still count as an album match.

    Returns:
        Non-negative score.
    """
    score = 0.0

    score += GENRE_WEIGHT * _count_shared(candidate.genre, seed.genre)

    score += COMPOSER_WEIGHT * _count_shared(
        flatten_tag_values(candidate.composer), flatten_tag_values(seed.composer)
    )

    if candidate.album == seed.album:
        score += ALBUM_WEIGHT

    if seed.year is not None and candidate.year is not None:
        if abs(seed.year - candidate.year) <= YEAR_WINDOW:
            score += YEAR_WEIGHT

    seed_tags = seed.tags or []
    candidate_tags = candidate.tags or []
    if seed_tags and candidate_tags:
        score += TAG_WEIGHT * _count_shared(candidate_tags, seed_tags)

    return score


def rank_candidates[S: SongFeatures](
    seed: SongFeatures,
    candidates: Sequence[S],
    limit: int = DEFAULT_TOP_K,
) -> list[ScoredSong[S]]:
    """Rank candidates by descending similarity to the seed.

    The sort is stable, so candidates with equal scores keep the order in
    which they were given. Zero-score candidates are kept: they are still
    valid recommendations when nothing better exists.

    Args:
        seed: Song to compare against. Must not be among the candidates.
        candidates: Candidate songs in corpus order.
        limit: Maximum number of results.

    Returns:
        At most `limit` scored songs, highest score first.
    """
    if limit <= 0:
        return []
    scored = [ScoredSong(song=c, score=score_similarity(seed, c)) for c in candidates]
    scored.sort(key=lambda item: item.score, reverse=True)
    return scored[:limit]
