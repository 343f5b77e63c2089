"""Visitor stats API tests — view counter, country visits, geo lookup."""

import httpx
import pytest

from folio.services.stats_service import StatsService


def _geo(payload, status=200):
    return lambda request: httpx.Response(status, json=payload)


# ═══════════════════════════════════════════════════════════
# Page views
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_view_count_starts_at_zero(client):
    resp = await client.get("/api/v1/stats/view")
    assert resp.status_code == 200
    assert resp.json() == {"count": 0, "last_updated": None}


@pytest.mark.asyncio
async def test_increment_view_count(client):
    first = await client.post("/api/v1/stats/view")
    second = await client.post("/api/v1/stats/view")
    assert first.status_code == 200
    assert first.json()["count"] == 1
    assert second.json()["count"] == 2
    assert second.json()["last_updated"] is not None

    resp = await client.get("/api/v1/stats/view")
    assert resp.json()["count"] == 2


@pytest.mark.asyncio
async def test_increment_skipped_when_database_unreachable(client, monkeypatch):
    async def refused(self):
        raise ConnectionRefusedError(111, "Connection refused")

    monkeypatch.setattr(StatsService, "increment_view_count", refused)
    resp = await client.post("/api/v1/stats/view")
    assert resp.status_code == 200
    assert resp.json() == {"count": 0, "last_updated": None, "skipped": True}


@pytest.mark.asyncio
async def test_view_count_degrades_to_zero(client, monkeypatch):
    async def refused(self):
        raise ConnectionResetError("reset")

    monkeypatch.setattr(StatsService, "get_view_count", refused)
    resp = await client.get("/api/v1/stats/view")
    assert resp.status_code == 200
    assert resp.json()["count"] == 0


# ═══════════════════════════════════════════════════════════
# Countries
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_record_explicit_country(client, upstream):
    first = await client.post("/api/v1/stats/countries", json={"country": "Sweden"})
    second = await client.post("/api/v1/stats/countries", json={"country": "Sweden"})
    await client.post("/api/v1/stats/countries", json={"country": "Chile"})

    assert first.status_code == 200
    assert first.json() == {"success": True, "country": "Sweden", "count": 1}
    assert second.json()["count"] == 2
    assert upstream.requests == []

    rows = (await client.get("/api/v1/stats/countries")).json()
    assert [(r["country"], r["count"]) for r in rows] == [("Sweden", 2), ("Chile", 1)]


@pytest.mark.asyncio
async def test_country_from_geo_lookup(client, upstream):
    upstream.responses["https://ipapi.co/"] = _geo(
        {"country_name": "Japan", "country": "JP"}
    )
    resp = await client.post(
        "/api/v1/stats/countries", json={}, headers={"X-Forwarded-For": "203.0.113.7, 10.0.0.1"}
    )
    assert resp.status_code == 200
    assert resp.json() == {"success": True, "country": "Japan", "count": 1}
    assert str(upstream.requests[0].url) == "https://ipapi.co/203.0.113.7/json/"


@pytest.mark.asyncio
async def test_geo_lookup_falls_back_to_country_code(client, upstream):
    upstream.responses["https://ipapi.co/"] = _geo({"country": "kw"})
    resp = await client.post("/api/v1/stats/countries", json={})
    assert resp.json()["country"] == "Kuwait"


@pytest.mark.asyncio
async def test_unknown_country_is_skipped(client, upstream):
    resp = await client.post("/api/v1/stats/countries", json={"country": "Unknown"})
    assert resp.json() == {"success": True, "skipped": True}

    upstream.responses["https://ipapi.co/"] = _geo({"error": True, "reason": "Reserved IP"})
    resp = await client.post("/api/v1/stats/countries", json={})
    assert resp.json() == {"success": True, "skipped": True}

    assert (await client.get("/api/v1/stats/countries")).json() == []


@pytest.mark.asyncio
async def test_geo_lookup_failure_502(client, upstream):
    upstream.responses["https://ipapi.co/"] = _geo({"error": "rate limited"}, status=429)
    resp = await client.post("/api/v1/stats/countries", json={})
    assert resp.status_code == 502
    assert resp.json()["detail"] == "Failed to get country information"


@pytest.mark.asyncio
async def test_country_visit_skipped_when_database_unreachable(client, monkeypatch):
    async def refused(self, country):
        raise ConnectionRefusedError(111, "Connection refused")

    monkeypatch.setattr(StatsService, "record_country_visit", refused)
    resp = await client.post("/api/v1/stats/countries", json={"country": "France"})
    assert resp.status_code == 200
    assert resp.json() == {"success": True, "skipped": True}


@pytest.mark.asyncio
async def test_stats_routes_are_public(unauthenticated_client):
    assert (await unauthenticated_client.post("/api/v1/stats/view")).status_code == 200
    assert (await unauthenticated_client.get("/api/v1/stats/countries")).status_code == 200
