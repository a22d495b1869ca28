"""Tests for the moderation store and mute sweep."""

import asyncio

import pytest

from moderation_server.lib.exceptions import (
    AuthorizationError,
    UserNotBannedError,
    UserNotMutedError,
)
from moderation_server.lib.models import ModerationRequest
from moderation_server.lib.sweeper import MuteSweeper

from conftest import MODERATOR_ID, START_MS

OUTSIDER_ID = 12345


def _request(**fields) -> ModerationRequest:
    fields.setdefault("moderator_id", MODERATOR_ID)
    return ModerationRequest(**fields)


# =============================================================================
# Bans
# =============================================================================


@pytest.mark.asyncio
async def test_ban_defaults(store):
    record = await store.ban(_request(user_id=1))

    assert record.reason == "No reason provided"
    assert record.timestamp == START_MS
    assert record.moderator_id == MODERATOR_ID


@pytest.mark.asyncio
async def test_reban_keeps_single_latest_record(store, clock):
    await store.ban(_request(user_id=5, reason="first"))
    clock.advance(10)
    await store.ban(_request(user_id=5, reason="second"))

    bans = await store.list_bans()
    assert len(bans) == 1
    assert bans[0].reason == "second"
    assert bans[0].timestamp == START_MS + 10_000


@pytest.mark.asyncio
async def test_ban_keeps_supplied_timestamp(store):
    record = await store.ban(_request(user_id=5, timestamp=123))
    assert record.timestamp == 123


@pytest.mark.asyncio
async def test_unban_removes_record(store):
    await store.ban(_request(user_id=5))

    assert await store.unban(_request(user_id=5)) == 5
    assert await store.list_bans() == []


@pytest.mark.asyncio
async def test_unban_missing_user_leaves_mutes_alone(store):
    await store.mute(_request(user_id=5))

    with pytest.raises(UserNotBannedError) as exc_info:
        await store.unban(_request(user_id=5))

    assert exc_info.value.message == "User not banned"
    assert [m.user_id for m in await store.list_mutes()] == [5]


@pytest.mark.asyncio
async def test_bans_never_expire(store, clock):
    await store.ban(_request(user_id=5))
    clock.advance(10 * 365 * 24 * 3600)

    assert len(await store.list_bans()) == 1
    assert (await store.get_status(5)).is_banned


# =============================================================================
# Mutes
# =============================================================================


@pytest.mark.asyncio
async def test_mute_defaults(store):
    record = await store.mute(_request(user_id=7))

    assert record.duration == 60
    assert record.timestamp == START_MS
    assert record.expires_at == START_MS + 60_000
    assert record.reason == "No reason provided"


@pytest.mark.asyncio
async def test_mute_zero_duration_uses_default(store):
    record = await store.mute(_request(user_id=7, duration=0))
    assert record.duration == 60


@pytest.mark.asyncio
async def test_mute_expiry_derived_from_supplied_timestamp(store):
    record = await store.mute(_request(user_id=7, duration=5, timestamp=1_000))
    assert record.expires_at == 6_000


@pytest.mark.asyncio
async def test_mute_trusts_supplied_expires_at(store):
    record = await store.mute(_request(user_id=7, duration=60, expires_at=START_MS - 1))

    assert record.expires_at == START_MS - 1
    assert not (await store.get_status(7)).is_muted


@pytest.mark.asyncio
async def test_remute_overwrites(store):
    await store.mute(_request(user_id=7, duration=5, reason="a"))
    await store.mute(_request(user_id=7, duration=100, reason="b"))

    mutes = await store.list_mutes()
    assert len(mutes) == 1
    assert mutes[0].duration == 100
    assert mutes[0].reason == "b"


@pytest.mark.asyncio
async def test_unmute(store):
    await store.mute(_request(user_id=7))

    assert await store.unmute(_request(user_id=7)) == 7
    with pytest.raises(UserNotMutedError):
        await store.unmute(_request(user_id=7))


@pytest.mark.asyncio
async def test_unmute_after_expiry_cleanup_reports_not_muted(store, clock):
    await store.mute(_request(user_id=7, duration=1))
    clock.advance(2)
    await store.list_mutes()

    with pytest.raises(UserNotMutedError) as exc_info:
        await store.unmute(_request(user_id=7))
    assert exc_info.value.message == "User not muted"


@pytest.mark.asyncio
async def test_status_drops_expired_mute(store, clock):
    await store.mute(_request(user_id=42, duration=1))
    assert (await store.get_status(42)).is_muted

    clock.advance(1.001)
    status = await store.get_status(42)

    assert status.is_muted is False
    assert status.mute_info is None
    assert store.get_stats().mutes == 0


@pytest.mark.asyncio
async def test_mute_expires_exactly_at_deadline(store, clock):
    await store.mute(_request(user_id=42, duration=1))
    clock.advance(1)

    assert await store.list_mutes() == []


@pytest.mark.asyncio
async def test_list_mutes_returns_only_active_and_prunes(store, clock):
    for user_id, duration in [(1, 1), (2, 10), (3, 3), (4, 60)]:
        await store.mute(_request(user_id=user_id, duration=duration))
    clock.advance(5)

    mutes = await store.list_mutes()

    assert sorted(m.user_id for m in mutes) == [2, 4]
    assert all(m.expires_at > clock.now for m in mutes)
    assert store.get_stats().mutes == 2


@pytest.mark.asyncio
async def test_ban_and_mute_are_independent(store):
    await store.ban(_request(user_id=3))
    await store.mute(_request(user_id=3))
    await store.unmute(_request(user_id=3))

    status = await store.get_status(3)
    assert status.is_banned
    assert not status.is_muted


# =============================================================================
# Authorization
# =============================================================================


@pytest.mark.asyncio
@pytest.mark.parametrize("operation", ["ban", "unban", "mute", "unmute"])
async def test_unauthorized_operations_leave_state_unchanged(store, operation):
    await store.ban(_request(user_id=10))
    await store.mute(_request(user_id=10))
    before = (await store.list_bans(), await store.list_mutes())

    with pytest.raises(AuthorizationError) as exc_info:
        await getattr(store, operation)(_request(user_id=10, moderator_id=OUTSIDER_ID))

    assert exc_info.value.message == "Unauthorized"
    assert (await store.list_bans(), await store.list_mutes()) == before


@pytest.mark.asyncio
async def test_unauthorized_unban_does_not_reveal_absence(store):
    with pytest.raises(AuthorizationError):
        await store.unban(_request(user_id=404, moderator_id=OUTSIDER_ID))


# =============================================================================
# Sweep
# =============================================================================


@pytest.mark.asyncio
async def test_cleanup_expired_removes_only_expired(store, clock):
    await store.mute(_request(user_id=1, duration=1))
    await store.mute(_request(user_id=2, duration=100))
    clock.advance(2)

    assert await store.cleanup_expired() == 1
    assert await store.cleanup_expired() == 0
    assert [m.user_id for m in await store.list_mutes()] == [2]


@pytest.mark.asyncio
async def test_sweep_after_lazy_cleanup_is_noop(store, clock):
    await store.mute(_request(user_id=1, duration=1))
    clock.advance(2)
    await store.get_status(1)

    assert await store.cleanup_expired() == 0


@pytest.mark.asyncio
async def test_sweeper_runs_periodically(store, clock):
    await store.mute(_request(user_id=1, duration=1))
    clock.advance(2)

    sweeper = MuteSweeper(store, interval=0.01)
    sweeper.start()
    assert sweeper.running
    try:
        for _ in range(100):
            if store.get_stats().mutes == 0:
                break
            await asyncio.sleep(0.01)
    finally:
        await sweeper.stop()

    assert store.get_stats().mutes == 0
    assert not sweeper.running


class FlakyCleanupStore:
    """Store wrapper whose first cleanup raises."""

    def __init__(self, store):
        self.store = store
        self.calls = 0

    async def cleanup_expired(self) -> int:
        self.calls += 1
        if self.calls == 1:
            raise RuntimeError("sweep failed")
        return await self.store.cleanup_expired()


@pytest.mark.asyncio
async def test_sweeper_survives_failed_iteration(store, clock, caplog):
    await store.mute(_request(user_id=1, duration=1))
    clock.advance(2)
    flaky = FlakyCleanupStore(store)

    sweeper = MuteSweeper(flaky, interval=0.01)
    sweeper.start()
    try:
        for _ in range(100):
            if store.get_stats().mutes == 0:
                break
            await asyncio.sleep(0.01)
        assert sweeper.running
    finally:
        await sweeper.stop()

    assert flaky.calls >= 2
    assert store.get_stats().mutes == 0
    assert "Mute sweep failed: sweep failed" in caplog.text


@pytest.mark.asyncio
async def test_string_moderator_id_is_unauthorized(store):
    request = _request(user_id=1, moderator_id=str(MODERATOR_ID))
    assert request.moderator_id == str(MODERATOR_ID)

    with pytest.raises(AuthorizationError):
        await store.ban(request)
    assert await store.list_bans() == []
