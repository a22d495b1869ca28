"""Custom exceptions for the moderation server.

Every exception here is reported in-band: the application turns it into
``{"success": false, "error": <message>}`` inside an encoded envelope.
"""

from typing import Any


class ModerationError(Exception):
    """Base exception for all moderation errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


# =============================================================================
# Payload Errors
# =============================================================================


class DecodeError(ModerationError):
    """Raised when a request payload cannot be decoded or validated."""

    def __init__(self, message: str = "Invalid data", **kwargs: Any):
        super().__init__(message, **kwargs)


# =============================================================================
# Authorization Errors
# =============================================================================


class AuthorizationError(ModerationError):
    """Raised when the caller is not a recognized moderator."""

    def __init__(self, moderator_id: Any = None, **kwargs: Any):
        super().__init__("Unauthorized", **kwargs)
        self.moderator_id = moderator_id


# =============================================================================
# Not Found Errors
# =============================================================================


class NotFoundError(ModerationError):
    """Base exception for a missing ban or mute record."""

    def __init__(self, message: str, user_id: int, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.user_id = user_id


class UserNotBannedError(NotFoundError):
    """Raised when unbanning a user with no ban record."""

    def __init__(self, user_id: int, **kwargs: Any):
        super().__init__("User not banned", user_id, **kwargs)


class UserNotMutedError(NotFoundError):
    """Raised when unmuting a user with no mute record (never muted or expired)."""

    def __init__(self, user_id: int, **kwargs: Any):
        super().__init__("User not muted", user_id, **kwargs)
