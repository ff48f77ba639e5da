"""FastAPI application factory and configuration."""

import logging
import shutil
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import datetime
from importlib.metadata import PackageNotFoundError, version

from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from rich.console import Console
from rich.logging import RichHandler
from sqlalchemy import Engine
from starlette.staticfiles import StaticFiles

from soundshelf_api.api.container import Services
from soundshelf_api.api.exceptions import register_exception_handlers
from soundshelf_api.api.routes import health, songs
from soundshelf_api.db import SongRepository, create_db_engine, init_db
from soundshelf_api.services.asset_store import LocalAssetStore
from soundshelf_api.services.cover_art import CoverArtResolver
from soundshelf_api.services.ingestion import IngestionService, new_song_id
from soundshelf_api.services.recommendation import RecommendationEngine
from soundshelf_api.settings import Settings, get_settings

logger = logging.getLogger(__name__)

STATIC_PATH = "/static"


def setup_logging(settings: Settings) -> None:
    """Configure logging with Rich handler for all loggers including uvicorn."""
    console = Console(force_terminal=True)
    handler = RichHandler(
        console=console, rich_tracebacks=True, show_path=False, markup=False
    )
    handler.setFormatter(logging.Formatter("%(name)s - %(message)s", datefmt="[%X]"))

    # Configure root logger
    logging.root.handlers = [handler]
    logging.root.setLevel(settings.log_level)

    # Configure uvicorn loggers to use Rich
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.handlers = [handler]
        uvicorn_logger.propagate = False


def create_services(settings: Settings, engine: Engine) -> Services:
    """Create all application services with proper dependency wiring.

    Args:
        settings: Application settings.
        engine: Database engine backing the song repository.

    Returns:
        Services container with all application services.
    """
    repository = SongRepository(engine)
    asset_store = LocalAssetStore(settings.assets_dir, settings.public_base_url)
    cover_resolver = CoverArtResolver(asset_store, settings.default_cover_url)

    ingestion = IngestionService(
        repository=repository,
        asset_store=asset_store,
        cover_resolver=cover_resolver,
        max_upload_bytes=settings.max_upload_bytes,
        clock=lambda: datetime.now(settings.timezone),
        id_generator=new_song_id,
    )
    recommendations = RecommendationEngine(
        repository, limit=settings.recommendation_limit
    )

    return Services(
        repository=repository,
        asset_store=asset_store,
        cover_resolver=cover_resolver,
        ingestion=ingestion,
        recommendations=recommendations,
        engine=engine,
    )


def create_api_router() -> APIRouter:
    """Create the API router with all routes under /api prefix."""
    api_router = APIRouter(prefix="/api")
    api_router.include_router(health.router)
    api_router.include_router(songs.router)
    return api_router


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    settings: Settings = app.state.settings
    logger.info("Starting application...")

    settings.temp.mkdir(parents=True, exist_ok=True)

    engine = create_db_engine(settings.db_path, echo=settings.debug)
    init_db(engine)
    logger.info("Database ready at %s", settings.db_path)

    services = create_services(settings, engine)
    app.state.services = services
    logger.info("Services initialized")

    yield

    # Staged uploads are all owned by finished requests at this point
    if settings.temp.exists():
        shutil.rmtree(settings.temp, ignore_errors=True)

    services.close()


def _app_version() -> str:
    try:
        return version("soundshelf")
    except PackageNotFoundError:
        return "0.0.0"


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the main FastAPI application.

    Args:
        settings: Settings to use. Defaults to the cached environment settings.
    """
    settings = settings or get_settings()
    setup_logging(settings)

    app = FastAPI(
        title="soundshelf",
        description="Music library API with metadata extraction and recommendations",
        version=_app_version(),
        lifespan=lifespan,
        debug=settings.debug,
    )
    app.state.settings = settings

    # Register exception handlers
    register_exception_handlers(app)

    # CORS middleware (type ignore needed due to Starlette typing limitations)
    app.add_middleware(
        CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # API routes under /api prefix
    app.include_router(create_api_router())

    # Stored audio and cover art, addressed by the asset store's public URLs
    if settings.public_base_url.startswith("/"):
        settings.assets_dir.mkdir(parents=True, exist_ok=True)
        app.mount(
            settings.public_base_url.rstrip("/") or "/media",
            StaticFiles(directory=settings.assets_dir),
            name="media",
        )

    # Bundled images, including the cover for songs without artwork
    app.mount(
        STATIC_PATH,
        StaticFiles(packages=[("soundshelf_api", "static")]),
        name="static",
    )

    return app
