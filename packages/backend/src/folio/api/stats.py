"""Visitor stats API routes — page views and visitor countries.

Learn: these are hit on every page load, so a database outage must not
turn into visible errors. Connectivity failures return zero/skip payloads
with 200, via the same guard as the content reads.
"""

import httpx
import structlog
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from folio.api.degrade import internal_error, read_or_empty
from folio.api.deps import get_http_client
from folio.config import settings
from folio.db.engine import get_db
from folio.db.guard import classify, with_timeout
from folio.schemas.stats import (
    CountryVisitCreate,
    CountryVisitRead,
    CountryVisitResult,
    ViewCountRead,
)
from folio.services.stats_service import GeoLookupError, StatsService, lookup_country

logger = structlog.get_logger()
router = APIRouter()

_SKIPPED_VIEW = {"count": 0, "last_updated": None, "skipped": True}


def _svc(db: AsyncSession = Depends(get_db)) -> StatsService:
    return StatsService(db)


def _client_ip(request: Request) -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else ""


@router.get("/stats/view", response_model=ViewCountRead)
async def get_view_count(svc: StatsService = Depends(_svc)):
    row = await read_or_empty(svc.get_view_count, None, what="view_count")
    if row is None:
        return ViewCountRead()
    return row


@router.post("/stats/view")
async def increment_view_count(svc: StatsService = Depends(_svc)):
    """Count one page view. Skipped (not failed) when the database is down."""
    try:
        row = await with_timeout(svc.increment_view_count, settings.query_timeout_ms)
    except Exception as e:
        info = classify(e)
        if info.should_return_empty:
            logger.info("stats.view_skipped", error=info.error_message)
            return _SKIPPED_VIEW
        logger.error("stats.view_failed", error=info.error_message)
        raise internal_error(info) from e
    return {"count": row.count, "last_updated": row.last_updated}


@router.get("/stats/countries", response_model=list[CountryVisitRead])
async def list_country_visits(svc: StatsService = Depends(_svc)):
    return await read_or_empty(svc.list_country_visits, [], what="country_visits")


@router.post(
    "/stats/countries",
    response_model=CountryVisitResult,
    response_model_exclude_none=True,
)
async def record_country_visit(
    body: CountryVisitCreate,
    request: Request,
    svc: StatsService = Depends(_svc),
    client: httpx.AsyncClient = Depends(get_http_client),
):
    """Record a visit from the given country, or the one the client IP maps to."""
    country = (body.country or "").strip()
    if not country:
        try:
            country = await lookup_country(client, settings.geoip_url, _client_ip(request)) or ""
        except GeoLookupError:
            raise HTTPException(
                status_code=502, detail="Failed to get country information"
            )

    if not country or country.lower() == "unknown":
        return CountryVisitResult(skipped=True)

    try:
        visit = await with_timeout(
            lambda: svc.record_country_visit(country), settings.query_timeout_ms
        )
    except Exception as e:
        info = classify(e)
        if info.should_return_empty:
            logger.info("stats.country_skipped", country=country, error=info.error_message)
            return CountryVisitResult(skipped=True)
        logger.error("stats.country_failed", country=country, error=info.error_message)
        raise internal_error(info) from e

    return CountryVisitResult(country=visit.country, count=visit.count)
