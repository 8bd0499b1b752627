import logging
import os
from functools import lru_cache

from pydantic import AliasChoices, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

_KNOWN_SNAPSHOT_ENV_KEYS = {
    "SNAPSHOT_NOISE_THRESHOLD",
    "SNAPSHOT_HIGH_THRESHOLD",
    "SNAPSHOT_MEDIUM_THRESHOLD",
    "SNAPSHOT_TOP_HOLDINGS",
}

_KNOWN_ENGINE_ENV_KEYS = {
    "ENGINE_MAX_CONCURRENCY",
}


def _warn_unknown_prefixed_env(prefix: str, known_keys: set[str]) -> None:
    unknown = sorted(key for key in os.environ if key.startswith(prefix) and key not in known_keys)
    if unknown:
        logger.warning("Unknown %s env vars ignored: %s", prefix, ", ".join(unknown))


class Settings(BaseSettings):
    """Application settings sourced from environment variables."""

    database_url: str = Field(
        default="sqlite:///./data/snapshots.db",
        validation_alias=AliasChoices("database_url", "DATABASE_URL", "db_url", "sqlite_url"),
    )
    noise_threshold: float = Field(
        default=0.1,
        ge=0,
        validation_alias=AliasChoices("noise_threshold", "SNAPSHOT_NOISE_THRESHOLD"),
    )
    high_significance_threshold: float = Field(
        default=2.0,
        gt=0,
        validation_alias=AliasChoices("high_significance_threshold", "SNAPSHOT_HIGH_THRESHOLD"),
    )
    medium_significance_threshold: float = Field(
        default=0.5,
        gt=0,
        validation_alias=AliasChoices("medium_significance_threshold", "SNAPSHOT_MEDIUM_THRESHOLD"),
    )
    top_holdings_limit: int = Field(
        default=10,
        ge=1,
        validation_alias=AliasChoices("top_holdings_limit", "SNAPSHOT_TOP_HOLDINGS"),
    )
    engine_max_concurrency: int = Field(
        default=4,
        ge=1,
        validation_alias=AliasChoices("engine_max_concurrency", "ENGINE_MAX_CONCURRENCY", "max_concurrency"),
    )
    log_level: str = Field(default="INFO", validation_alias=AliasChoices("log_level", "LOG_LEVEL"))

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            logger.warning("LOG_LEVEL=%s is not a standard level; falling back to INFO", value)
            return "INFO"
        return level

    @model_validator(mode="after")
    def _check_thresholds(self) -> "Settings":
        if self.medium_significance_threshold > self.high_significance_threshold:
            raise ValueError("SNAPSHOT_MEDIUM_THRESHOLD must not exceed SNAPSHOT_HIGH_THRESHOLD")
        if self.noise_threshold >= self.medium_significance_threshold:
            logger.warning(
                "SNAPSHOT_NOISE_THRESHOLD=%s swallows every LOW change (medium threshold=%s)",
                self.noise_threshold,
                self.medium_significance_threshold,
            )

        _warn_unknown_prefixed_env("SNAPSHOT_", _KNOWN_SNAPSHOT_ENV_KEYS)
        _warn_unknown_prefixed_env("ENGINE_", _KNOWN_ENGINE_ENV_KEYS)
        return self

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", env_prefix="", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    """Cached accessor so we only load settings once per process."""
    return Settings()
