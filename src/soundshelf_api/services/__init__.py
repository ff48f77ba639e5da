"""Application services for soundshelf-api."""

from soundshelf_api.services.asset_store import LocalAssetStore
from soundshelf_api.services.cover_art import CoverArtResolver
from soundshelf_api.services.ingestion import (
    IngestionOutcome,
    IngestionService,
    StagedUpload,
)
from soundshelf_api.services.protocols import AssetStore, SongRepo
from soundshelf_api.services.recommendation import RecommendationEngine

__all__ = [
    "AssetStore",
    "CoverArtResolver",
    "IngestionOutcome",
    "IngestionService",
    "LocalAssetStore",
    "RecommendationEngine",
    "SongRepo",
    "StagedUpload",
]
