"""Runtime configuration.

Settings are read once at process start (environment variables prefixed with
``BRAND_AUDIT_`` or a ``.env`` file) and passed down to the pipeline. Nothing
below the CLI reads the environment directly.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


PROVIDERS = ("grok", "openai", "anthropic", "google")


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    model_config = SettingsConfigDict(
        env_prefix="BRAND_AUDIT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # External scorer
    scorer_provider: str = Field(default="grok")
    scorer_api_key: Optional[SecretStr] = Field(default=None)
    scorer_model: Optional[str] = Field(default=None, description="Provider default when unset")

    # Rendering proxy used when a site blocks direct fetches
    scraper_api_key: Optional[SecretStr] = Field(default=None)
    scraper_api_url: str = Field(default="http://api.scraperapi.com/")

    # Timeouts (seconds)
    fetch_timeout: float = Field(default=15.0)
    proxy_timeout: float = Field(default=60.0)
    scorer_timeout: float = Field(default=60.0)
    scorer_retry_delay: float = Field(default=1.0, description="Pause before the single retry")
    audit_timeout: float = Field(default=120.0)

    # Limits
    min_content_bytes: int = Field(default=100)
    max_content_chars: int = Field(default=4000)
    max_discovered_pages: int = Field(default=10)

    # Unchanged pages re-use their external scores for this many days; 0 disables
    score_cache_days: float = Field(default=7.0)

    store_dir: str = Field(default=".brand-audits")
    log_level: str = Field(default="INFO")

    @field_validator("scorer_provider")
    @classmethod
    def validate_provider(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in PROVIDERS:
            raise ValueError(f"scorer_provider must be one of {', '.join(PROVIDERS)}")
        return v

    @field_validator("fetch_timeout", "proxy_timeout", "scorer_timeout", "audit_timeout")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("timeouts must be positive")
        return v

    @field_validator("scorer_retry_delay", "score_cache_days")
    @classmethod
    def validate_non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError("must not be negative")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        return v.upper()

    @property
    def has_scorer_credential(self) -> bool:
        return bool(self.scorer_api_key and self.scorer_api_key.get_secret_value())

    @property
    def has_proxy_credential(self) -> bool:
        return bool(self.scraper_api_key and self.scraper_api_key.get_secret_value())


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
