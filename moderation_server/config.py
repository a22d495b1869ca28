"""Application configuration from environment variables."""

import logging
from typing import Annotated

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

DEFAULT_MODERATORS = frozenset({22358445})


# =============================================================================
# Settings
# =============================================================================


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Server settings
    host: str = Field(default="0.0.0.0", description="Interface to bind")
    port: int = Field(default=3000, description="Port to listen on")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Logging level")

    # Moderation settings
    moderator_ids: Annotated[set[int], NoDecode] = Field(
        default_factory=lambda: set(DEFAULT_MODERATORS),
        description="Identities allowed to ban, unban, mute and unmute",
    )
    sweep_interval_seconds: float = Field(
        default=30.0, gt=0, description="Seconds between expired mute sweeps"
    )
    default_mute_duration: int = Field(
        default=60, description="Mute duration in seconds when none is given"
    )
    default_reason: str = Field(
        default="No reason provided",
        description="Reason recorded when a ban or mute has none",
    )

    @field_validator("moderator_ids", mode="before")
    @classmethod
    def parse_moderator_ids(cls, v: str | list | set) -> set[int]:
        """Accept a JSON list or a comma-separated string of IDs."""
        if isinstance(v, str):
            cleaned = v.strip().strip("[]")
            return {int(part) for part in cleaned.split(",") if part.strip()}
        return set(v)

    @property
    def log_level_value(self) -> int:
        """Numeric logging level, falling back to INFO for unknown names."""
        level = logging.getLevelName(self.log_level.upper())
        return level if isinstance(level, int) else logging.INFO


# =============================================================================
# Singleton
# =============================================================================


_settings: Settings | None = None


def get_settings() -> Settings:
    """Get cached settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset settings (for testing)."""
    global _settings
    _settings = None
