"""Application configuration using Pydantic settings."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Database
    database_url: str = "postgresql+asyncpg://localhost:5432/civicwatch"

    # API settings
    api_v1_prefix: str = "/api/v1"
    cors_origins: list[str] = ["*"]  # Restrict in production
    rate_limit_enabled: bool = True
    rate_limit_per_minute: int = 60

    # Report queries
    default_page_size: int = 50
    max_page_size: int = 200
    nearby_default_radius_km: float = 10.0
    nearby_default_limit: int = 20
    # Bounding-box rows loaded per nearby query, closest first
    nearby_max_candidates: int = 5000

    # Delete answers 403 instead of 404 when the caller does not own the report
    disclose_forbidden_deletes: bool = False

    # Cloudinary media storage
    cloudinary_cloud_name: str | None = None
    cloudinary_api_key: str | None = None
    cloudinary_api_secret: str | None = None
    cloudinary_folder: str = "civicwatch/reports"
    media_upload_concurrency: int = 4
    media_upload_max_retries: int = 3

    # Create missing tables on startup (local development without migrations)
    auto_create_tables: bool = False

    # Environment
    debug: bool = False


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
