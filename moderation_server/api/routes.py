"""API router aggregating all route modules."""

from fastapi import APIRouter

from moderation_server.api.moderation import router as moderation_router

router = APIRouter()

# Include all sub-routers
router.include_router(moderation_router, tags=["Moderation"])
