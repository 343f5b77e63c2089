"""Chat proxy routes — the site assistant widget talks to these.

Learn: the provider's API key never reaches the browser. Errors from the
provider are passed through with their status code and body so the widget
can show something meaningful.
"""

import httpx
from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse, StreamingResponse

from folio.api.deps import get_http_client
from folio.config import settings
from folio.realtime.sse import SSE_HEADERS
from folio.schemas.chat import ChatCompletion, ChatRequest
from folio.services.chat_service import ChatProviderError, ChatProxy

router = APIRouter()


def _proxy(client: httpx.AsyncClient = Depends(get_http_client)) -> ChatProxy:
    return ChatProxy(
        client,
        api_url=settings.chat_api_url,
        api_key=settings.chat_api_key,
        model=settings.chat_model,
        timeout=settings.chat_timeout_seconds,
    )


def _missing_key() -> PlainTextResponse:
    return PlainTextResponse("Missing chat provider API key", status_code=400)


@router.post("/chat")
async def chat_stream(body: ChatRequest, proxy: ChatProxy = Depends(_proxy)):
    """Relay the provider's streaming completion, decompressed."""
    if not proxy.api_key:
        return _missing_key()
    try:
        upstream = await proxy.open_stream([m.model_dump() for m in body.messages])
    except ChatProviderError as e:
        return PlainTextResponse(e.body, status_code=e.status_code)

    return StreamingResponse(
        proxy.relay(upstream),
        media_type="text/event-stream; charset=utf-8",
        headers=SSE_HEADERS,
    )


@router.post("/chat/complete", response_model=ChatCompletion)
async def chat_complete(body: ChatRequest, proxy: ChatProxy = Depends(_proxy)):
    """Same as /chat, but buffered into one JSON reply."""
    if not proxy.api_key:
        return _missing_key()
    try:
        content = await proxy.complete([m.model_dump() for m in body.messages])
    except ChatProviderError as e:
        return PlainTextResponse(e.body, status_code=e.status_code)
    return ChatCompletion(content=content)
