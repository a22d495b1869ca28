"""Ban, mute and status endpoints.

Outcomes are reported inside the encoded envelope; failures raised by the
store are converted by the application's ModerationError handler.
"""

from fastapi import APIRouter, Depends

from moderation_server.api.dependencies import (
    EnvelopeResponse,
    get_moderation_request,
    get_store,
)
from moderation_server.lib.models import ActionResult, ModerationRequest
from moderation_server.lib.store import ModerationStore
from moderation_server.lib.utils import parse_int

router = APIRouter(prefix="/moderation")


@router.post("/ban", response_class=EnvelopeResponse)
async def ban(
    payload: ModerationRequest = Depends(get_moderation_request),
    store: ModerationStore = Depends(get_store),
) -> EnvelopeResponse:
    """Ban a user. Re-banning refreshes the record."""
    record = await store.ban(payload)
    return EnvelopeResponse(ActionResult(success=True, user_id=record.user_id).to_payload())


@router.post("/unban", response_class=EnvelopeResponse)
async def unban(
    payload: ModerationRequest = Depends(get_moderation_request),
    store: ModerationStore = Depends(get_store),
) -> EnvelopeResponse:
    """Lift a user's ban."""
    user_id = await store.unban(payload)
    return EnvelopeResponse(ActionResult(success=True, user_id=user_id).to_payload())


@router.post("/mute", response_class=EnvelopeResponse)
async def mute(
    payload: ModerationRequest = Depends(get_moderation_request),
    store: ModerationStore = Depends(get_store),
) -> EnvelopeResponse:
    """Mute a user. Re-muting replaces the record."""
    record = await store.mute(payload)
    return EnvelopeResponse(ActionResult(success=True, user_id=record.user_id).to_payload())


@router.post("/unmute", response_class=EnvelopeResponse)
async def unmute(
    payload: ModerationRequest = Depends(get_moderation_request),
    store: ModerationStore = Depends(get_store),
) -> EnvelopeResponse:
    """Lift a user's mute."""
    user_id = await store.unmute(payload)
    return EnvelopeResponse(ActionResult(success=True, user_id=user_id).to_payload())


@router.get("/banlist", response_class=EnvelopeResponse)
async def banlist(store: ModerationStore = Depends(get_store)) -> EnvelopeResponse:
    bans = await store.list_bans()
    return EnvelopeResponse({"bans": [ban.model_dump() for ban in bans]})


@router.get("/mutelist", response_class=EnvelopeResponse)
async def mutelist(store: ModerationStore = Depends(get_store)) -> EnvelopeResponse:
    mutes = await store.list_mutes()
    return EnvelopeResponse({"mutes": [mute.model_dump() for mute in mutes]})


@router.get("/status/{user_id}", response_class=EnvelopeResponse)
async def status(
    user_id: str,
    store: ModerationStore = Depends(get_store),
) -> EnvelopeResponse:
    """
    Get a user's ban and mute state.

    The path segment is parsed leniently; an unparsable one matches nobody.
    """
    result = await store.get_status(parse_int(user_id))
    return EnvelopeResponse(result.model_dump())
