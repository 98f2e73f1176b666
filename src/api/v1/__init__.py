"""API v1 router configuration."""

from fastapi import APIRouter

from api.v1.routes.discovery import router as discovery_router
from api.v1.routes.events import router as events_router
from api.v1.routes.likes import blocks_router
from api.v1.routes.likes import router as likes_router
from api.v1.routes.messages import router as messages_router
from api.v1.routes.profiles import router as profiles_router
from api.v1.routes.sessions import router as sessions_router

router = APIRouter()
router.include_router(sessions_router)
router.include_router(events_router)
router.include_router(profiles_router)
router.include_router(discovery_router)
router.include_router(likes_router)
router.include_router(blocks_router)
router.include_router(messages_router)
