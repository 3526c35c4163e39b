"""Application configuration."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # App
    APP_NAME: str = "Roadtrack"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    ENV: str = "development"

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./roadtrack.db"
    DATABASE_ECHO: bool = False

    # Roadmap listing defaults
    ROADMAP_DEFAULT_FILTER: str = "all"
    ROADMAP_DEFAULT_PAGE: int = 1
    ROADMAP_DEFAULT_PAGE_SIZE: int = 6
    ROADMAP_DEFAULT_SORT: str = "updatedAtdesc"
    ROADMAP_NEAR_DUE_DAYS: int = 5

    # Spacing between created_at values assigned within one submission
    NODE_TIMESTAMP_STEP_MS: int = 10

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.ENV == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENV == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
