"""Application settings via Pydantic Settings."""

from functools import lru_cache
import json

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # App
    app_name: str = "Variant Studio API"
    app_version: str = "0.1.0"
    debug: bool = False

    # Server
    host: str = "0.0.0.0"
    port: int = 8080

    # CORS
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:3000"],
        validation_alias=AliasChoices("CORS_ORIGINS", "ALLOWED_ORIGINS"),
    )

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _parse_cors_origins(cls, v: object) -> list[str]:
        """
        Accept either:
        - JSON array string: '["https://a.com","http://localhost:3000"]'
        - Comma-separated string: "https://a.com,http://localhost:3000"
        - Already-parsed list[str]
        """
        if v is None:
            return []
        if isinstance(v, list):
            return [str(x).strip() for x in v if str(x).strip()]
        if isinstance(v, str):
            s = v.strip()
            if not s:
                return []
            if s.startswith("["):
                try:
                    parsed = json.loads(s)
                except json.JSONDecodeError:
                    parsed = s.split(",")
                if isinstance(parsed, list):
                    return [str(x).strip() for x in parsed if str(x).strip()]
                return [str(parsed).strip()]
            return [part.strip() for part in s.split(",") if part.strip()]
        return [str(v).strip()] if str(v).strip() else []

    # External catalog backend (REST)
    catalog_api_url: str = Field(
        default="http://localhost:3000",
        validation_alias=AliasChoices("CATALOG_API_URL", "CATALOG_BASE_URL"),
    )
    catalog_api_timeout: float = Field(
        default=30.0,
        validation_alias=AliasChoices("CATALOG_API_TIMEOUT"),
        gt=0,
    )
    catalog_locale: str = Field(
        default="en",
        validation_alias=AliasChoices("CATALOG_LOCALE"),
        min_length=2,
        max_length=5,
    )

    # Redis (reference data cache)
    redis_url: str = "redis://localhost:6379/0"
    reference_cache_ttl: int = Field(
        default=300,
        validation_alias=AliasChoices("REFERENCE_CACHE_TTL"),
        ge=0,
        description="Seconds attribute/brand/category lists stay cached (0 disables caching)",
    )

    # Variant builder
    sku_suffix_length: int = Field(
        default=4,
        validation_alias=AliasChoices("SKU_SUFFIX_LENGTH"),
        ge=2,
        le=12,
        description="Length of the random suffix appended to colliding SKUs",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
