"""Realtime endpoint — Server-Sent Events stream of content changes.

Learn: one GET per open page. The response never completes on its own;
Starlette cancels the generator when the client disconnects, which closes
the session (see realtime/broadcaster.py).

Event names: connected, images, tracks, projects, comments, view_count, error.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse

from folio.api.deps import get_broadcaster
from folio.realtime.broadcaster import Broadcaster
from folio.realtime.sse import SSE_HEADERS

router = APIRouter()


@router.get("/realtime")
async def realtime_events(
    request: Request,
    broadcaster: Broadcaster = Depends(get_broadcaster),
):
    return StreamingResponse(
        broadcaster.stream(request.is_disconnected),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )
