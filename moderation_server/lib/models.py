"""Pydantic models for the moderation server."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictInt


# =============================================================================
# Records
# =============================================================================


class BanRecord(BaseModel):
    """A user ban. Bans never expire on their own."""

    user_id: int
    moderator_id: int
    reason: str
    timestamp: int = Field(description="Epoch milliseconds when issued")


class MuteRecord(BaseModel):
    """A temporary user mute."""

    user_id: int
    moderator_id: int
    duration: int = Field(description="Mute length in seconds")
    reason: str
    timestamp: int = Field(description="Epoch milliseconds when issued")
    expires_at: int = Field(description="Epoch milliseconds when the mute lapses")

    def is_expired(self, now: int) -> bool:
        """A mute is active strictly before expires_at."""
        return self.expires_at <= now


# =============================================================================
# Requests
# =============================================================================


class ModerationRequest(BaseModel):
    """Decoded payload of a ban, unban, mute or unmute request."""

    model_config = ConfigDict(extra="ignore")

    user_id: int
    # Kept as sent; only a real integer can pass ModeratorRegistry.is_moderator.
    moderator_id: StrictInt | Any
    reason: str | None = None
    duration: int | None = None
    timestamp: int | None = None
    expires_at: int | None = None


# =============================================================================
# Responses
# =============================================================================


class ActionResult(BaseModel):
    """Outcome of a mutating operation."""

    success: bool
    user_id: int | None = None
    error: str | None = None

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class UserStatus(BaseModel):
    """Ban and mute state of one user."""

    user_id: int | None
    is_banned: bool
    is_muted: bool
    ban_info: BanRecord | None = None
    mute_info: MuteRecord | None = None


class StoreStats(BaseModel):
    """Collection sizes for startup and diagnostics."""

    bans: int
    mutes: int
    moderators: int
