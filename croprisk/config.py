"""Application configuration pulled from environment variables via pydantic."""
import logging

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-driven configuration for the crop risk service."""
    model_config = SettingsConfigDict(env_prefix="CROPRISK_", extra="ignore")

    api_key: str | None = None
    open_meteo_url: str = "https://api.open-meteo.com/v1/forecast"
    timezone: str = "auto"
    history_days: int = 7
    forecast_days: int = 5
    request_timeout_seconds: float = 10.0
    cache_expire_seconds: int = 3600
    http_retries: int = 5
    rule_workers: int = 1  # >1 evaluates rules on a thread pool
    log_level: str = "INFO"
    cors_origins: str = "*"  # comma-separated

    @field_validator("open_meteo_url", mode="after")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize base URLs to avoid double slashes."""
        return str(v).rstrip("/")

    @field_validator("log_level", mode="after")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Upper-case and validate the configured log level name."""
        level = str(v).strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level '{v}'")
        return level

    @field_validator("history_days", "forecast_days", "rule_workers", mode="after")
    @classmethod
    def non_negative(cls, v: int) -> int:
        """Window sizes and worker counts cannot be negative."""
        if v < 0:
            raise ValueError("must be >= 0")
        return v

    @property
    def cors_origin_list(self) -> list[str]:
        """Allowed CORS origins; an empty setting disables cross-origin access."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


settings = Settings()
