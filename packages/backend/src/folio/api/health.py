"""Health check endpoint.

Learn: Simple GET endpoint that verifies the server is running, the
database answers within the guarded-read deadline, and reports how many
realtime streams are open.
"""

from fastapi import APIRouter, Depends
from sqlalchemy import text

from folio import __version__
from folio.api.deps import get_broadcaster
from folio.config import settings
from folio.db.engine import Database, get_database
from folio.db.guard import classify, with_timeout
from folio.realtime.broadcaster import Broadcaster

router = APIRouter()


@router.get("/health")
async def health_check(
    database: Database = Depends(get_database),
    broadcaster: Broadcaster = Depends(get_broadcaster),
):
    """Check server health and dependency connectivity."""
    checks = {"server": "ok", "version": __version__}

    async def ping():
        async with database.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    try:
        await with_timeout(ping, settings.query_timeout_ms)
        checks["database"] = "ok"
    except Exception as e:
        info = classify(e)
        kind = "unreachable" if info.should_return_empty else "error"
        # Raw driver text only in development
        checks["database"] = (
            f"{kind}: {info.error_message}" if settings.is_development else kind
        )

    status = "healthy" if all(
        v == "ok" for k, v in checks.items() if k != "version"
    ) else "degraded"

    return {
        "status": status,
        **checks,
        "realtime_sessions": len(broadcaster.active_sessions),
    }
