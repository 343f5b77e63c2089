"""Stats service — page view counter and per-country visit counts.

Learn: counters are bumped with a single UPDATE ... SET count = count + 1
so concurrent visits never lose increments. The row is inserted on first
use; if two first visits race, the loser's INSERT hits the unique key and
it falls back to the UPDATE.
"""

from datetime import datetime, timezone
from typing import Optional

import httpx
import structlog
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from folio.db.models import CountryVisit, ViewCount

logger = structlog.get_logger()

MAIN_COUNTER_ID = "main"

# Fallback names when the geo-IP service returns only a country code
COUNTRY_CODE_NAMES = {
    "AU": "Australia",
    "BR": "Brazil",
    "CA": "Canada",
    "CH": "Switzerland",
    "CL": "Chile",
    "CN": "China",
    "DE": "Germany",
    "FR": "France",
    "GB": "United Kingdom",
    "IN": "India",
    "JP": "Japan",
    "KR": "South Korea",
    "KW": "Kuwait",
    "LB": "Lebanon",
    "NL": "The Netherlands",
    "PH": "Philippines",
    "SE": "Sweden",
    "TH": "Thailand",
    "UK": "United Kingdom",
    "US": "United States",
}


class GeoLookupError(Exception):
    pass


class StatsService:
    def __init__(self, db: AsyncSession):
        self.db = db

    # ─── Page views ─────────────────────────────────────

    async def get_view_count(self) -> Optional[ViewCount]:
        return await self.db.get(ViewCount, MAIN_COUNTER_ID)

    async def increment_view_count(self) -> ViewCount:
        await self._increment(
            update(ViewCount)
            .where(ViewCount.id == MAIN_COUNTER_ID)
            .values(count=ViewCount.count + 1),
            lambda: ViewCount(id=MAIN_COUNTER_ID, count=1),
        )
        result = await self.db.execute(
            select(ViewCount)
            .where(ViewCount.id == MAIN_COUNTER_ID)
            .execution_options(populate_existing=True)
        )
        return result.scalars().one()

    # ─── Countries ──────────────────────────────────────

    async def list_country_visits(self) -> list[CountryVisit]:
        result = await self.db.execute(
            select(CountryVisit).order_by(
                CountryVisit.count.desc(), CountryVisit.country.asc()
            )
        )
        return list(result.scalars().all())

    async def record_country_visit(self, country: str) -> CountryVisit:
        now = datetime.now(timezone.utc)
        await self._increment(
            update(CountryVisit)
            .where(CountryVisit.country == country)
            .values(count=CountryVisit.count + 1, last_visit=now),
            lambda: CountryVisit(country=country, count=1, last_visit=now),
        )
        result = await self.db.execute(
            select(CountryVisit)
            .where(CountryVisit.country == country)
            .execution_options(populate_existing=True)
        )
        return result.scalars().one()

    async def _increment(self, stmt, make_row) -> None:
        """UPDATE the counter; INSERT it if no row matched."""
        result = await self.db.execute(stmt)
        if result.rowcount:
            await self.db.commit()
            return

        self.db.add(make_row())
        try:
            await self.db.commit()
        except IntegrityError:
            # Another request inserted it first
            await self.db.rollback()
            await self.db.execute(stmt)
            await self.db.commit()


async def lookup_country(
    client: httpx.AsyncClient, url_template: str, ip: str
) -> Optional[str]:
    """Resolve a visitor IP to a country name via the geo-IP service.

    Returns None when the service knows no country for this IP.
    Raises GeoLookupError when the service cannot be reached or errors.
    """
    url = url_template.format(ip=ip)
    try:
        r = await client.get(url, timeout=5.0)
        r.raise_for_status()
        data = r.json()
    except (httpx.HTTPError, ValueError) as e:
        logger.warning("stats.geo_lookup_failed", ip=ip, error=str(e))
        raise GeoLookupError(str(e)) from e

    if not isinstance(data, dict):
        return None
    name = (data.get("country_name") or "").strip()
    if name:
        return name
    code = (data.get("country") or data.get("country_code") or "").strip().upper()
    return COUNTRY_CODE_NAMES.get(code)
