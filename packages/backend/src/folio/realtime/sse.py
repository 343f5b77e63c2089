"""Server-Sent Events framing and parsing.

Learn: SSE is line-oriented text. An event is a block of `field: value`
lines terminated by a blank line:

    event: images
    data: [{"id": "...", "order": 0}]

Lines starting with ":" are comments (used as keep-alives by some
servers). Multiple `data:` lines in one block are joined with "\\n".

The same module frames our own stream (ServerSentEvent.encode) and parses
streams we consume (the chat provider, `folio watch`).
"""

import json
from dataclasses import dataclass
from typing import Any, AsyncIterable, AsyncIterator

import structlog

logger = structlog.get_logger()

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",  # disable nginx response buffering
}


@dataclass(frozen=True)
class ServerSentEvent:
    event: str
    data: str

    @classmethod
    def from_payload(cls, event: str, payload: Any) -> "ServerSentEvent":
        return cls(event, json.dumps(payload, ensure_ascii=False, separators=(",", ":")))

    def json(self) -> Any:
        return json.loads(self.data)

    def encode(self) -> str:
        data_lines = "".join(f"data: {line}\n" for line in self.data.split("\n"))
        return f"event: {self.event}\n{data_lines}\n"


async def iter_sse_events(lines: AsyncIterable[str]) -> AsyncIterator[ServerSentEvent]:
    """Parse an async stream of text lines into events.

    A trailing block without its closing blank line is still dispatched
    when the stream ends — providers do not always send one.
    """
    event_name = "message"
    data: list[str] = []

    async for raw in lines:
        line = raw.rstrip("\r\n")
        if not line:
            if data:
                yield ServerSentEvent(event_name, "\n".join(data))
            event_name, data = "message", []
            continue
        if line.startswith(":"):
            continue

        field, _, value = line.partition(":")
        if value.startswith(" "):
            value = value[1:]
        if field == "event":
            event_name = value or "message"
        elif field == "data":
            data.append(value)
        # id / retry are not used by any consumer here

    if data:
        yield ServerSentEvent(event_name, "\n".join(data))


async def iter_chat_tokens(lines: AsyncIterable[str]) -> AsyncIterator[str]:
    """Yield choices[0].delta.content from an OpenAI-style completion stream."""
    async for event in iter_sse_events(lines):
        if event.data.strip() in ("", "[DONE]"):
            continue
        try:
            chunk = event.json()
        except json.JSONDecodeError:
            logger.warning("sse.invalid_json", data=event.data[:200])
            continue

        choices = chunk.get("choices") if isinstance(chunk, dict) else None
        if not choices:
            continue
        content = (choices[0].get("delta") or {}).get("content")
        if isinstance(content, str) and content:
            yield content
