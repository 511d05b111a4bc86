"""Application configuration."""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

BUNDLED_RULES_DIR = Path(__file__).resolve().parent.parent / "rules" / "data"


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    app_name: str = "Tax Obligations Engine"

    # Paths
    rules_dir: str = str(BUNDLED_RULES_DIR)

    # Logging
    log_level: str = "INFO"

    # Obligations
    due_soon_days: int = 7
    default_tax_year: int | None = None

    model_config = SettingsConfigDict(
        env_prefix="TAXENGINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
