"""In-memory moderation state for bans and mutes.

State lives for the lifetime of the process; nothing is persisted.
"""

import asyncio
import logging
from typing import Any, Callable

from moderation_server.config import Settings, get_settings
from moderation_server.lib.exceptions import (
    AuthorizationError,
    UserNotBannedError,
    UserNotMutedError,
)
from moderation_server.lib.models import (
    BanRecord,
    ModerationRequest,
    MuteRecord,
    StoreStats,
    UserStatus,
)
from moderation_server.lib.registry import ModeratorRegistry
from moderation_server.lib.utils import now_ms

logger = logging.getLogger(__name__)


class ModerationStore:
    """
    Ban and mute collections plus the operations over them.

    Features:
    - At most one ban and one mute per user (latest write wins)
    - Moderator authorization on every mutation
    - Expired mutes dropped whenever a read encounters them
    - Bulk removal of expired mutes for the periodic sweep
    """

    def __init__(
        self,
        registry: ModeratorRegistry,
        settings: Settings | None = None,
        clock: Callable[[], int] | None = None,
    ):
        self.registry = registry
        self.settings = settings or get_settings()
        self._clock = clock or now_ms
        self._bans: dict[int, BanRecord] = {}
        self._mutes: dict[int, MuteRecord] = {}
        self._lock = asyncio.Lock()

    def now(self) -> int:
        """Current time in epoch milliseconds."""
        return self._clock()

    def _authorize(self, moderator_id: Any) -> None:
        """Reject callers that are not moderators."""
        if not self.registry.is_moderator(moderator_id):
            logger.warning(f"Unauthorized moderator: {moderator_id}")
            raise AuthorizationError(moderator_id)

    def _drop_mute_if_expired(self, user_id: int, now: int) -> MuteRecord | None:
        """Return the mute if still active, removing it otherwise."""
        mute = self._mutes.get(user_id)
        if mute is None:
            return None
        if mute.is_expired(now):
            self._mutes.pop(user_id, None)
            return None
        return mute

    # =========================================================================
    # Mutations
    # =========================================================================

    async def ban(self, request: ModerationRequest) -> BanRecord:
        """
        Ban a user, replacing any existing ban.

        Args:
            request: Decoded payload with user_id, moderator_id, optional
                reason and timestamp

        Returns:
            The stored ban record

        Raises:
            AuthorizationError: If moderator_id is not a moderator
        """
        self._authorize(request.moderator_id)

        record = BanRecord(
            user_id=request.user_id,
            moderator_id=request.moderator_id,
            reason=request.reason or self.settings.default_reason,
            timestamp=request.timestamp or self.now(),
        )
        async with self._lock:
            self._bans[record.user_id] = record

        logger.info(
            f"[BAN] User {record.user_id} banned by {record.moderator_id}. "
            f"Reason: {record.reason}"
        )
        return record

    async def unban(self, request: ModerationRequest) -> int:
        """
        Remove a user's ban.

        Returns:
            The unbanned user_id

        Raises:
            AuthorizationError: If moderator_id is not a moderator
            UserNotBannedError: If the user has no ban
        """
        self._authorize(request.moderator_id)

        async with self._lock:
            removed = self._bans.pop(request.user_id, None)

        if removed is None:
            logger.info(f"[UNBAN] User {request.user_id} was not banned")
            raise UserNotBannedError(request.user_id)

        logger.info(f"[UNBAN] User {request.user_id} unbanned by {request.moderator_id}")
        return request.user_id

    async def mute(self, request: ModerationRequest) -> MuteRecord:
        """
        Mute a user, replacing any existing mute.

        A supplied expires_at is stored as given, even if it disagrees
        with duration.

        Args:
            request: Decoded payload with user_id, moderator_id and optional
                duration, reason, timestamp, expires_at

        Returns:
            The stored mute record

        Raises:
            AuthorizationError: If moderator_id is not a moderator
        """
        self._authorize(request.moderator_id)

        duration = request.duration or self.settings.default_mute_duration
        timestamp = request.timestamp or self.now()
        expires_at = request.expires_at
        if expires_at is None:
            expires_at = timestamp + duration * 1000

        record = MuteRecord(
            user_id=request.user_id,
            moderator_id=request.moderator_id,
            duration=duration,
            reason=request.reason or self.settings.default_reason,
            timestamp=timestamp,
            expires_at=expires_at,
        )
        async with self._lock:
            self._mutes[record.user_id] = record

        logger.info(
            f"[MUTE] User {record.user_id} muted for {record.duration}s by "
            f"{record.moderator_id}. Reason: {record.reason}"
        )
        return record

    async def unmute(self, request: ModerationRequest) -> int:
        """
        Remove a user's mute.

        Returns:
            The unmuted user_id

        Raises:
            AuthorizationError: If moderator_id is not a moderator
            UserNotMutedError: If the user has no mute, including one that
                already expired and was cleaned up
        """
        self._authorize(request.moderator_id)

        async with self._lock:
            removed = self._mutes.pop(request.user_id, None)

        if removed is None:
            logger.info(f"[UNMUTE] User {request.user_id} was not muted")
            raise UserNotMutedError(request.user_id)

        logger.info(f"[UNMUTE] User {request.user_id} unmuted by {request.moderator_id}")
        return request.user_id

    # =========================================================================
    # Queries
    # =========================================================================

    async def list_bans(self) -> list[BanRecord]:
        """List every ban."""
        async with self._lock:
            bans = list(self._bans.values())
        logger.info(f"[BANLIST] Returning {len(bans)} bans")
        return bans

    async def list_mutes(self) -> list[MuteRecord]:
        """List active mutes, deleting any expired ones encountered."""
        now = self.now()
        mutes: list[MuteRecord] = []
        async with self._lock:
            for user_id in list(self._mutes):
                mute = self._drop_mute_if_expired(user_id, now)
                if mute is not None:
                    mutes.append(mute)
        logger.info(f"[MUTELIST] Returning {len(mutes)} active mutes")
        return mutes

    async def get_status(self, user_id: int | None) -> UserStatus:
        """
        Get ban and mute state for a user.

        An expired mute is deleted and reported as not muted.

        Args:
            user_id: User to look up; None matches nobody

        Returns:
            UserStatus with full records for whatever is active
        """
        now = self.now()
        async with self._lock:
            ban = self._bans.get(user_id) if user_id is not None else None
            mute = (
                self._drop_mute_if_expired(user_id, now)
                if user_id is not None
                else None
            )

        status = UserStatus(
            user_id=user_id,
            is_banned=ban is not None,
            is_muted=mute is not None,
            ban_info=ban,
            mute_info=mute,
        )
        logger.info(
            f"[STATUS] User {user_id}: Banned={status.is_banned}, Muted={status.is_muted}"
        )
        return status

    # =========================================================================
    # Maintenance
    # =========================================================================

    async def cleanup_expired(self) -> int:
        """
        Remove every expired mute.

        Returns:
            Number of mutes removed
        """
        now = self.now()
        cleaned = 0

        async with self._lock:
            expired = [
                user_id for user_id, mute in self._mutes.items() if mute.is_expired(now)
            ]
            for user_id in expired:
                if self._mutes.pop(user_id, None) is not None:
                    cleaned += 1
                    logger.info(f"[AUTO-UNMUTE] User {user_id} mute expired")

        if cleaned > 0:
            logger.info(f"Cleaned up {cleaned} expired mutes")

        return cleaned

    def get_stats(self) -> StoreStats:
        """Get collection sizes."""
        return StoreStats(
            bans=len(self._bans),
            mutes=len(self._mutes),
            moderators=len(self.registry),
        )
