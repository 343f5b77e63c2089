"""Change-detection broadcaster — one polling session per SSE client.

Learn: Each connected client gets its own StreamSession with its own
fingerprint table, so sessions never affect each other. A poll cycle:

1. Dispatch every collection's fetch concurrently, each through
   with_timeout().
2. Handle each result as soon as it lands: compare its fingerprint with
   the last one this session emitted; emit the full snapshot on change.
3. Failures never end the stream. Timeouts and connectivity errors are
   expected transients (debug log, no event). Anything else is logged as
   an error, and after a few in a row the client gets one "error" event.

A failed fetch leaves the stored fingerprint alone, so the next successful
fetch is compared against what the client actually has.
"""

import asyncio
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Awaitable, Callable, Optional

import structlog

from folio.db.guard import classify, with_timeout
from folio.realtime.fingerprint import RecordKey, fingerprint
from folio.realtime.sse import ServerSentEvent

logger = structlog.get_logger()

CONNECTED_PAYLOAD = {"message": "SSE connection established"}
ERROR_PAYLOAD_MESSAGE = "Failed to fetch data"


@dataclass(frozen=True)
class TrackedCollection:
    """A named data set polled every cycle.

    fetch returns a JSON-ready snapshot (list of records, or one record);
    key picks the identity + version fields used for the fingerprint.
    """

    name: str
    fetch: Callable[[], Awaitable[Any]]
    key: RecordKey


class StreamSession:
    """Server-side state for one open event stream."""

    def __init__(
        self,
        collections: list[TrackedCollection],
        *,
        poll_interval: float,
        fetch_timeout_ms: int,
        error_threshold: int = 3,
    ):
        self.id = uuid.uuid4().hex[:12]
        self.created_at = datetime.now(timezone.utc)
        self.collections = collections
        self.poll_interval = poll_interval
        self.fetch_timeout_ms = fetch_timeout_ms
        self.error_threshold = error_threshold
        self.cycles = 0
        # None = not fetched successfully yet
        self.fingerprints: dict[str, Optional[str]] = {c.name: None for c in collections}
        self._failures: dict[str, int] = {c.name: 0 for c in collections}

    async def poll(self) -> AsyncIterator[ServerSentEvent]:
        """Run one poll cycle, yielding events in completion order."""
        self.cycles += 1
        pending = [asyncio.ensure_future(self._check(c)) for c in self.collections]
        try:
            for next_done in asyncio.as_completed(pending):
                event = await next_done
                if event is not None:
                    yield event
        finally:
            for task in pending:
                if not task.done():
                    task.cancel()

    async def _check(self, collection: TrackedCollection) -> Optional[ServerSentEvent]:
        try:
            snapshot = await with_timeout(collection.fetch, self.fetch_timeout_ms)
        except Exception as e:
            return self._on_failure(collection, e)

        self._failures[collection.name] = 0
        digest = fingerprint(snapshot, collection.key)
        if digest == self.fingerprints[collection.name]:
            return None

        self.fingerprints[collection.name] = digest
        return ServerSentEvent.from_payload(collection.name, snapshot)

    def _on_failure(
        self, collection: TrackedCollection, error: Exception
    ) -> Optional[ServerSentEvent]:
        info = classify(error)
        if info.should_return_empty:
            logger.debug(
                "realtime.fetch_degraded",
                session_id=self.id,
                collection=collection.name,
                timeout=info.is_timeout_error,
                error=info.error_message,
            )
            return None

        self._failures[collection.name] += 1
        logger.error(
            "realtime.fetch_failed",
            session_id=self.id,
            collection=collection.name,
            consecutive=self._failures[collection.name],
            error=info.error_message,
        )
        if self._failures[collection.name] == self.error_threshold:
            return ServerSentEvent.from_payload(
                "error",
                {"message": ERROR_PAYLOAD_MESSAGE, "collection": collection.name},
            )
        return None

    async def stream(
        self, is_disconnected: Optional[Callable[[], Awaitable[bool]]] = None
    ) -> AsyncIterator[str]:
        """Encoded SSE frames until the client goes away.

        The server cancels this generator when the transport closes;
        is_disconnected is an extra check between cycles.
        """
        logger.info("realtime.session_opened", session_id=self.id)
        try:
            yield ServerSentEvent.from_payload("connected", CONNECTED_PAYLOAD).encode()
            while True:
                if is_disconnected is not None and await is_disconnected():
                    break
                async for event in self.poll():
                    yield event.encode()
                await asyncio.sleep(self.poll_interval)
        finally:
            logger.info(
                "realtime.session_closed", session_id=self.id, cycles=self.cycles
            )


class Broadcaster:
    """Opens StreamSessions over a shared set of tracked collections.

    Learn: the broadcaster itself holds no per-client state besides the
    ids of live sessions (reported by /health). Every session polls the
    database independently; there is no fan-out or coordination.
    """

    def __init__(
        self,
        collections: list[TrackedCollection],
        *,
        poll_interval: float = 3.0,
        fetch_timeout_ms: int = 5000,
        error_threshold: int = 3,
    ):
        self.collections = collections
        self.poll_interval = poll_interval
        self.fetch_timeout_ms = fetch_timeout_ms
        self.error_threshold = error_threshold
        self.active_sessions: set[str] = set()

    def open_session(self) -> StreamSession:
        return StreamSession(
            self.collections,
            poll_interval=self.poll_interval,
            fetch_timeout_ms=self.fetch_timeout_ms,
            error_threshold=self.error_threshold,
        )

    async def stream(
        self, is_disconnected: Optional[Callable[[], Awaitable[bool]]] = None
    ) -> AsyncIterator[str]:
        """Open a session and relay its frames, tracking it while live."""
        session = self.open_session()
        self.active_sessions.add(session.id)
        try:
            async for frame in session.stream(is_disconnected):
                yield frame
        finally:
            self.active_sessions.discard(session.id)
