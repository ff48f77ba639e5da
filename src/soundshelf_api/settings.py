"""Application settings using pydantic-settings."""

import tempfile
from datetime import tzinfo
from functools import cache
from pathlib import Path
from typing import Annotated, Any, Literal
from zoneinfo import ZoneInfo

from pydantic import BeforeValidator, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LogLevel = Annotated[
    Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
    BeforeValidator(lambda v: v.upper() if isinstance(v, str) else v),
]


def _validate_timezone(v: str) -> str:
    """Validate timezone string by attempting to create ZoneInfo."""
    if isinstance(v, str):
        try:
            ZoneInfo(v)
        except (KeyError, ValueError) as e:
            raise ValueError(f"Invalid timezone: {v}") from e
    return v


Timezone = Annotated[str, BeforeValidator(_validate_timezone)]

# Upload cap for a single audio file
DEFAULT_MAX_UPLOAD_BYTES = 15 * 1024 * 1024


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="SOUNDSHELF_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Project root (required, set via SOUNDSHELF_ROOT)
    root: Path = Field(description="Project root directory")

    # Path settings (default to root-relative paths)
    data: Path = Field(description="Stored assets")
    config: Path = Field(description="Config directory")

    # Server settings
    host: str = Field(default="127.0.0.1", description="Server host")
    port: int = Field(default=8000, description="Server port")
    reload: bool = Field(default=False, description="Enable auto-reload")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: LogLevel = Field(default="INFO", description="Log level")

    # Upload settings
    max_upload_bytes: int = Field(
        default=DEFAULT_MAX_UPLOAD_BYTES,
        gt=0,
        description="Maximum size of an uploaded audio file in bytes",
    )

    # Asset URLs
    public_base_url: str = Field(
        default="/media",
        description="Base URL that stored asset keys are appended to",
    )
    default_cover_url: str = Field(
        default="/static/default-cover.png",
        description="Cover URL used when a song has no embedded artwork",
    )

    # Recommendations
    recommendation_limit: int = Field(
        default=5,
        ge=1,
        le=50,
        description="Number of recommendations returned per song",
    )

    # Temp directory
    temp: Path = Field(
        default_factory=lambda: Path(tempfile.gettempdir()) / "soundshelf",
        description="Staging directory for uploads",
    )

    # CORS settings
    cors_origins: list[str] = Field(default=["*"], description="Allowed CORS origins")

    # Timezone
    tz: Timezone = Field(default="UTC", description="Timezone for timestamps")

    @model_validator(mode="before")
    @classmethod
    def set_path_defaults(cls, data: Any) -> Any:
        """Set path defaults based on root before validation."""
        if not isinstance(data, dict):
            return data
        root = data.get("root")
        if not root:
            raise ValueError("SOUNDSHELF_ROOT environment variable is required")
        root = Path(root) if isinstance(root, str) else root
        if not data.get("data"):
            data["data"] = root / "data"
        if not data.get("config"):
            data["config"] = root / "config"
        return data

    @property
    def timezone(self) -> tzinfo:
        return ZoneInfo(self.tz)

    @property
    def db_path(self) -> Path:
        return self.config / "soundshelf" / "soundshelf.db"

    @property
    def assets_dir(self) -> Path:
        """Directory backing the filesystem asset store."""
        return self.data / "assets"


@cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()  # type: ignore[call-arg]
