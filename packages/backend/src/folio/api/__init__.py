"""API route aggregation.

All routers registered here get mounted in main.py.

Learn: nothing is protected at the include_router level — the public
site reads (and posts comments/reactions) anonymously. Admin-only routes
declare require_admin themselves.
"""

from fastapi import APIRouter

from folio.api.chat import router as chat_router
from folio.api.comments import router as comments_router
from folio.api.health import router as health_router
from folio.api.media import router as media_router
from folio.api.realtime import router as realtime_router
from folio.api.stats import router as stats_router

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(health_router, tags=["health"])
api_router.include_router(media_router, tags=["images", "tracks", "projects"])
api_router.include_router(comments_router, tags=["comments"])
api_router.include_router(stats_router, tags=["stats"])
api_router.include_router(realtime_router, tags=["realtime"])
api_router.include_router(chat_router, tags=["chat"])
