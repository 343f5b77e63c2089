"""Shared FastAPI dependencies backed by app.state."""

import httpx
from fastapi import HTTPException, Request

from folio.realtime.broadcaster import Broadcaster


def get_broadcaster(request: Request) -> Broadcaster:
    return request.app.state.broadcaster


def get_http_client(request: Request) -> httpx.AsyncClient:
    """Outbound HTTP client, opened in the app lifespan."""
    client = getattr(request.app.state, "http_client", None)
    if client is None:
        raise HTTPException(status_code=503, detail="HTTP client not ready")
    return client
