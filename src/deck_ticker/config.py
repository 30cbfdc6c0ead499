"""Runtime settings for the ticker plugin."""
from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Strongly typed runtime configuration sourced from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="TICKER_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    default_symbol: str = Field(default="BTCUSDT", description="Symbol shown by keys without a configured symbol.")
    refresh_interval_sec: float = Field(default=60.0, description="Period of the per-key refresh timer.")
    manual_refresh_cooldown_sec: float = Field(
        default=60.0,
        description="Minimum spacing between accepted key-press refreshes for one key.",
    )
    error_title_clear_sec: float = Field(default=3.0, description="Delay before a transient error title is cleared.")

    api_base_url: str = Field(default="https://api.binance.com", description="Market data REST base URL.")
    request_timeout_sec: float = Field(default=10.0)
    ca_bundle_path: Optional[str] = Field(
        default=None,
        description="Optional path to a CA bundle for outbound HTTPS calls.",
    )
    use_mock_adapter: bool = Field(default=False, description="Serve random-walk prices instead of calling the API.")

    metrics_enabled: bool = Field(default=True, description="Record Prometheus metrics.")
    metrics_port: Optional[int] = Field(default=None, description="Expose metrics over HTTP on this port when set.")
    log_level: str = Field(default="INFO")
    log_file: Optional[str] = Field(default=None)

    @field_validator("default_symbol", mode="before")
    @classmethod
    def _normalise_symbol(cls, value):
        text = str(value or "").strip().upper()
        if not text:
            raise ValueError("default_symbol must not be empty")
        return text

    @field_validator("refresh_interval_sec", "request_timeout_sec", "error_title_clear_sec")
    @classmethod
    def _positive(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("must be greater than zero")
        return value

    @field_validator("manual_refresh_cooldown_sec")
    @classmethod
    def _non_negative(cls, value: float) -> float:
        if value < 0:
            raise ValueError("must not be negative")
        return value

    @field_validator("api_base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance to avoid repeated environment parsing."""

    return Settings()
