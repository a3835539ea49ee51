"""Application configuration loaded from environment variables."""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Typed settings exposed via dependency injection throughout the app."""

    # Read .env with BOM tolerance; case-sensitive keys
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8-sig",
        case_sensitive=True,
    )

    APP_NAME: str = "Catalog Taxonomy API"
    ENV: str = "dev"  # dev | staging | prod
    DEBUG: bool = True

    # CORS
    CORS_ALLOWED_ORIGINS: list[str] = Field(default_factory=list)

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True

    # Maximum accepted request body; taxonomy payloads are small.
    MAX_BODY_BYTES: int = 1024 * 1024

    # Taxonomy behaviour
    SECTOR_PALETTE_SIZE: int = Field(default=10, ge=1)
    DELETE_POLICY: Literal["cascade", "reject"] = "cascade"
    SEED_SAMPLE_TREE: bool = False


settings = Settings()
