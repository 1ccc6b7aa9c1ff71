from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    debug: bool = False

    # Required; there is no sensible local default for the card store
    database_url: str
    db_pool_size: int = Field(default=5, ge=1)

    checksum_url: str = "https://ygocdb.com/api/v0/cards.zip.md5?callback=gu"
    cards_archive_url: str = "https://ygocdb.com/api/v0/cards.zip"
    id_changelog_url: str = "https://ygocdb.com/api/v0/idChangelog.jsonp"
    http_timeout: float = Field(default=60.0, gt=0)

    # Max concurrent per-record inserts during ingestion
    ingest_concurrency: int = Field(default=8, ge=1)
    # When True, any failed record fails the whole run (watermark not committed)
    ingest_strict: bool = True

    @field_validator("database_url")
    @classmethod
    def _use_async_driver(cls, value: str) -> str:
        for prefix in ("postgres://", "postgresql://"):
            if value.startswith(prefix):
                return "postgresql+asyncpg://" + value[len(prefix) :]
        return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get cached settings.

    Raises:
        pydantic.ValidationError: If DATABASE_URL is not set
    """
    return Settings()  # type: ignore[call-arg]
