"""FastAPI dependency injection factories.

This module provides type-safe dependency injection for FastAPI routes.
Dependencies are defined as Annotated types for clean, reusable injection.

Usage in routes:
    from soundshelf_api.api.deps import IngestionServiceDep, CallerIdDep

    @router.post("/songs")
    def upload_song(ingestion: IngestionServiceDep, caller_id: CallerIdDep) -> ...:
        ...
"""

from typing import Annotated

from fastapi import Depends, Header, Request

from soundshelf_api.api.container import Services, get_services
from soundshelf_api.services.ingestion import IngestionService
from soundshelf_api.services.protocols import SongRepo
from soundshelf_api.services.recommendation import RecommendationEngine
from soundshelf_api.settings import Settings, get_settings


def _get_app_settings(request: Request) -> Settings:
    """Settings the app was created with, falling back to the cached instance."""
    settings = getattr(request.app.state, "settings", None)
    return settings if settings is not None else get_settings()


# -- Settings --

SettingsDep = Annotated[Settings, Depends(_get_app_settings)]

# -- Service dependencies (request-scoped via app.state) --

ServicesDep = Annotated[Services, Depends(get_services)]


def _get_repository(services: ServicesDep) -> SongRepo:
    """Get song repository from services container."""
    return services.repository


def _get_ingestion(services: ServicesDep) -> IngestionService:
    """Get ingestion service from services container."""
    return services.ingestion


def _get_recommendations(services: ServicesDep) -> RecommendationEngine:
    """Get recommendation engine from services container."""
    return services.recommendations


RepositoryDep = Annotated[SongRepo, Depends(_get_repository)]
IngestionServiceDep = Annotated[IngestionService, Depends(_get_ingestion)]
RecommendationEngineDep = Annotated[
    RecommendationEngine, Depends(_get_recommendations)
]

# -- Caller identity --
# Authentication happens upstream; the verified user ID arrives in a header.


def _get_caller_id(
    x_user_id: Annotated[
        str | None,
        Header(alias="X-User-Id", description="Authenticated caller ID"),
    ] = None,
) -> str | None:
    """Caller ID from the request, or None for anonymous callers."""
    return x_user_id or None


CallerIdDep = Annotated[str | None, Depends(_get_caller_id)]
