"""Content-based song recommendations."""

import logging

from soundshelf import DEFAULT_TOP_K, ScoredSong, rank_candidates

from soundshelf_api.api.exceptions import SongNotFoundError
from soundshelf_api.db.models import Song
from soundshelf_api.services.protocols import SongRepo

logger = logging.getLogger(__name__)


class RecommendationEngine:
    """Recommends songs similar to a seed song from the stored corpus.

    Every stored song other than the seed is a candidate, ranked by
    soundshelf's similarity score. Ties keep storage order.
    """

    def __init__(self, repository: SongRepo, limit: int = DEFAULT_TOP_K) -> None:
        self._repository = repository
        self._limit = limit

    def rank(self, song_id: str) -> list[ScoredSong[Song]]:
        """Score and rank candidates for a seed song.

        Raises:
            SongNotFoundError: If the seed song does not exist.
        """
        seed = self._repository.get_by_song_id(song_id)
        if seed is None:
            raise SongNotFoundError(song_id, operation="recommend")

        corpus = self._repository.find_many(lambda s: s.song_id != seed.song_id)
        ranked = rank_candidates(seed, corpus, limit=self._limit)
        logger.debug(
            "Ranked %d candidates for %s, top score %s",
            len(corpus),
            song_id,
            ranked[0].score if ranked else None,
        )
        return ranked

    def recommend(self, song_id: str) -> list[Song]:
        """Return the top matches for a seed song, best first.

        Returns an empty list when the seed is the only stored song.

        Raises:
            SongNotFoundError: If the seed song does not exist.
        """
        return [item.song for item in self.rank(song_id)]
