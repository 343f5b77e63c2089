"""SSE framing and parsing."""

import pytest

from folio.realtime.sse import ServerSentEvent, iter_chat_tokens, iter_sse_events


async def _lines(*lines):
    for line in lines:
        yield line


async def _collect(agen):
    return [item async for item in agen]


# ═══════════════════════════════════════════════════════════
# Framing
# ═══════════════════════════════════════════════════════════


def test_encode_event():
    frame = ServerSentEvent.from_payload("images", [{"id": "a", "order": 0}]).encode()
    assert frame == 'event: images\ndata: [{"id":"a","order":0}]\n\n'


def test_encode_keeps_unicode():
    frame = ServerSentEvent.from_payload("comments", [{"text": "好看 🔥"}]).encode()
    assert "好看 🔥" in frame


def test_encode_multiline_data():
    frame = ServerSentEvent("message", "line one\nline two").encode()
    assert frame == "event: message\ndata: line one\ndata: line two\n\n"


# ═══════════════════════════════════════════════════════════
# Parsing
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_parse_named_events():
    events = await _collect(iter_sse_events(_lines(
        "event: connected",
        'data: {"message": "hi"}',
        "",
        "event: tracks",
        "data: []",
        "",
    )))
    assert [e.event for e in events] == ["connected", "tracks"]
    assert events[0].json() == {"message": "hi"}
    assert events[1].json() == []


@pytest.mark.asyncio
async def test_parse_roundtrips_our_own_frames():
    frame = ServerSentEvent.from_payload("view_count", {"count": 3}).encode()
    events = await _collect(iter_sse_events(_lines(*frame.split("\n"))))
    assert events == [ServerSentEvent("view_count", '{"count":3}')]


@pytest.mark.asyncio
async def test_parse_ignores_comments_and_joins_data_lines():
    events = await _collect(iter_sse_events(_lines(
        ": keep-alive",
        "data: first",
        "data:second",
        "",
    )))
    assert len(events) == 1
    assert events[0].event == "message"
    assert events[0].data == "first\nsecond"


@pytest.mark.asyncio
async def test_parse_dispatches_trailing_block_at_eof():
    events = await _collect(iter_sse_events(_lines("data: tail")))
    assert [e.data for e in events] == ["tail"]


@pytest.mark.asyncio
async def test_chat_tokens():
    lines = _lines(
        'data: {"choices": [{"delta": {"role": "assistant"}}]}',
        "",
        'data: {"choices": [{"delta": {"content": "Hel"}}]}',
        "",
        "data: not json",
        "",
        'data: {"choices": [{"delta": {"content": "lo"}}]}',
        "",
        'data: {"choices": []}',
        "",
        "data: [DONE]",
        "",
    )
    assert await _collect(iter_chat_tokens(lines)) == ["Hel", "lo"]
