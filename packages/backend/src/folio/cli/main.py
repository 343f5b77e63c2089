"""Folio CLI — run the server, manage the database, watch live updates.

Usage:
    folio serve                     # Run the API with uvicorn
    folio init-db                   # Create missing tables
    folio seed                      # Insert sample tracks/images/projects
    folio watch                     # Print realtime events as they arrive
    folio stats                     # View count and top visitor countries
"""

from __future__ import annotations

import asyncio
import json
import os
import sys

import click
import httpx

from folio import __version__

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DEFAULT_API_URL = "http://localhost:8000"


def _api_url() -> str:
    return os.environ.get("FOLIO_API_URL", DEFAULT_API_URL).rstrip("/")


def _client(timeout: float | None = 30.0) -> httpx.AsyncClient:
    """Build an async HTTP client pointed at the Folio backend."""
    return httpx.AsyncClient(base_url=_api_url(), timeout=timeout)


def _database():
    from folio.config import settings
    from folio.db.engine import Database

    return Database.from_settings(settings)


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version=__version__, prog_name="folio")
def main():
    """Folio — portfolio site backend."""


@main.command()
@click.option("--host", default=None, help="Bind address (default: FOLIO_HOST)")
@click.option("--port", default=None, type=int, help="Port (default: FOLIO_PORT)")
@click.option("--reload", is_flag=True, help="Auto-reload on code changes")
def serve(host: str | None, port: int | None, reload: bool):
    """Run the API server."""
    import uvicorn

    from folio.config import settings

    uvicorn.run(
        "folio.main:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
    )


@main.command("init-db")
def init_db():
    """Create any missing tables."""
    asyncio.run(_init_db_impl())
    click.secho("Tables created.", fg="green")


async def _init_db_impl():
    database = _database()
    try:
        await database.create_all()
    finally:
        await database.dispose()


# ---------------------------------------------------------------------------
# folio seed
# ---------------------------------------------------------------------------

SAMPLE_TRACKS = [
    {"title": "Sunrise", "subtitle": "Lo-fi", "src": "/music/sunrise.mp3"},
    {"title": "Night Drive", "subtitle": "Synthwave", "src": "/music/night-drive.mp3"},
]

SAMPLE_IMAGES = [
    {"src": "/images/hero-1.jpg", "alt": "Mountain lake", "priority": True},
    {"src": "/images/hero-2.jpg", "alt": "City at dusk"},
]

SAMPLE_PROJECTS = [
    {
        "title": "Portfolio",
        "description": "This site — tracks, gallery, comments and live updates.",
        "category": "web",
        "link": "https://example.com",
    },
]


@main.command()
def seed():
    """Insert sample content (skips collections that already have rows)."""
    counts = asyncio.run(_seed_impl())
    for name, n in counts.items():
        click.echo(f"  {name:10s} +{n}")


async def _seed_impl() -> dict[str, int]:
    from folio.services.media_service import MediaService

    database = _database()
    counts = {"tracks": 0, "images": 0, "projects": 0}
    try:
        await database.create_all()
        async with database.session() as db:
            svc = MediaService(db)
            if not await svc.list_tracks():
                for t in SAMPLE_TRACKS:
                    await svc.create_track(**t)
                    counts["tracks"] += 1
            if not await svc.list_images():
                for i in SAMPLE_IMAGES:
                    await svc.create_image(**i)
                    counts["images"] += 1
            if not await svc.list_projects():
                for p in SAMPLE_PROJECTS:
                    await svc.create_project(**p)
                    counts["projects"] += 1
    finally:
        await database.dispose()
    return counts


# ---------------------------------------------------------------------------
# folio watch
# ---------------------------------------------------------------------------


def _summary(data) -> str:
    if isinstance(data, list):
        return f"{len(data)} item(s)"
    if isinstance(data, dict):
        return json.dumps(data, default=str)[:120]
    return str(data)[:120]


@main.command()
@click.option("--raw", is_flag=True, help="Print full JSON payloads")
def watch(raw: bool):
    """Connect to the realtime stream and print events until Ctrl-C."""
    try:
        asyncio.run(_watch_impl(raw))
    except KeyboardInterrupt:
        click.echo()


async def _watch_impl(raw: bool):
    from folio.realtime.sse import iter_sse_events

    async with _client(timeout=None) as c:
        async with c.stream("GET", "/api/v1/realtime") as r:
            if r.status_code != 200:
                click.secho(f"Stream refused: HTTP {r.status_code}", fg="red", err=True)
                sys.exit(1)
            async for event in iter_sse_events(r.aiter_lines()):
                try:
                    data = event.json()
                except json.JSONDecodeError:
                    data = event.data
                color = "red" if event.event == "error" else "cyan"
                label = click.style(f"{event.event:11s}", fg=color, bold=True)
                body = json.dumps(data, indent=2, default=str) if raw else _summary(data)
                click.echo(f"{label} {body}")


# ---------------------------------------------------------------------------
# folio stats
# ---------------------------------------------------------------------------


@main.command()
@click.option("--top", default=10, help="How many countries to show")
def stats(top: int):
    """Show the page view count and top visitor countries."""
    asyncio.run(_stats_impl(top))


async def _stats_impl(top: int):
    async with _client() as c:
        r = await c.get("/api/v1/stats/view")
        r.raise_for_status()
        view = r.json()
        click.secho(f"Page views: {view['count']}", bold=True)
        if view.get("last_updated"):
            click.echo(f"Last view:  {view['last_updated']}")

        r = await c.get("/api/v1/stats/countries")
        r.raise_for_status()
        countries = r.json()[:top]
        if not countries:
            return
        click.echo()
        click.secho("Countries:", bold=True)
        for row in countries:
            click.echo(f"  {row['country']:25s} {row['count']:>6}")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    main()
