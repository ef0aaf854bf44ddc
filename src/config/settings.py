"""Application-wide configuration loading and validation."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from realtime.errors import ConfigurationError


class Settings(BaseSettings):
    """Centralized environment configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    environment: Literal["local", "dev", "prod"] = Field(default="local")
    log_level: str = Field(default="INFO")

    # Upstream credentials
    openai_api_key: str | None = Field(default=None)
    openai_signing_secret: str | None = Field(
        default=None,
        description="Webhook signing secret (whsec_...). Only required by the SIP webhook.",
    )

    # Upstream endpoints
    realtime_api_base: str = Field(default="https://api.openai.com/v1/realtime")
    realtime_ws_base: str = Field(default="wss://api.openai.com/v1/realtime")
    upstream_timeout_seconds: float = Field(default=30.0, gt=0)
    webhook_tolerance_seconds: int = Field(default=300, gt=0)

    # Session defaults
    realtime_model: str = Field(default="gpt-realtime")
    realtime_voice: str = Field(default="marin")
    realtime_noise_reduction: Literal["near_field", "far_field"] = Field(default="near_field")
    realtime_instructions_file: str = Field(default="realtime_instructions.md")
    realtime_video_enabled: bool = Field(
        default=False,
        description="Default video capability for browser calls; /rtc?video= overrides it.",
    )

    # Observer channel
    public_base_url: str | None = Field(
        default=None,
        description="Public origin for the self-addressed observer trigger (e.g. https://<ngrok>.ngrok-free.app).",
    )
    observer_start_delay_seconds: float = Field(default=0.25, ge=0.0, le=5.0)
    observer_max_lifetime_seconds: float | None = Field(
        default=None,
        description="Optional hard cap on how long an observer channel stays open.",
    )
    observer_idle_timeout_seconds: float | None = Field(
        default=None,
        description="Optional idle limit; the observer closes after this long without events.",
    )

    @field_validator("observer_max_lifetime_seconds", "observer_idle_timeout_seconds")
    @classmethod
    def positive_or_unset(cls, value: float | None) -> float | None:
        if value is not None and value <= 0:
            return None
        return value


@dataclass(frozen=True)
class RealtimeConfig:
    api_key: str
    api_base: str
    ws_base: str
    timeout_seconds: float
    model: str
    voice: str
    noise_reduction: str
    instructions: str


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance."""

    return Settings()


def get_realtime_config() -> RealtimeConfig:
    """Project settings onto the immutable config the call flows share."""

    from prompts.loader import load_prompt

    settings = get_settings()
    if not settings.openai_api_key:
        raise ConfigurationError("OPENAI_API_KEY is not configured")

    return RealtimeConfig(
        api_key=settings.openai_api_key,
        api_base=settings.realtime_api_base.rstrip("/"),
        ws_base=settings.realtime_ws_base.rstrip("/"),
        timeout_seconds=settings.upstream_timeout_seconds,
        model=settings.realtime_model,
        voice=settings.realtime_voice,
        noise_reduction=settings.realtime_noise_reduction,
        instructions=load_prompt(settings.realtime_instructions_file),
    )
