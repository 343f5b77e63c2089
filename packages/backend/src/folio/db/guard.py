"""Guarded database calls — deadlines and failure classification.

Learn: Every read that backs a page (one-shot endpoints and the realtime
stream) goes through two helpers:

1. with_timeout() bounds the call with a deadline and raises QueryTimeout
   when it is exceeded, so a hung database never hangs the request.
2. classify() sorts any caught error into "connectivity problem" (timeout,
   refused, reset, DNS, unreachable) vs "everything else".

Callers apply one rule: connectivity problems degrade to empty/default
data, everything else is a real server error.

On timeout the underlying task is cancelled, which asyncpg and SQLAlchemy
honour. detach=True keeps the old behaviour for calls that have no abort
hook: the task keeps running in the background and its result is dropped.
"""

import asyncio
import errno
import socket
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, TypeVar

import asyncpg
import structlog
from sqlalchemy import exc as sa_exc

logger = structlog.get_logger()

T = TypeVar("T")

# Detached tasks are referenced here until they finish, otherwise the
# event loop may garbage-collect them mid-flight.
_detached: set[asyncio.Task] = set()


class QueryTimeout(TimeoutError):
    """A guarded call did not finish within its deadline."""

    def __init__(self, message: str = "Database query timeout", timeout_ms: int | None = None):
        super().__init__(message)
        self.timeout_ms = timeout_ms


@dataclass(frozen=True)
class DbErrorInfo:
    is_connection_error: bool
    is_timeout_error: bool
    should_return_empty: bool
    error_message: str


async def with_timeout(
    operation: Callable[[], Awaitable[T]],
    timeout_ms: int = 8000,
    *,
    message: str = "Database query timeout",
    detach: bool = False,
) -> T:
    """Run operation() with a deadline.

    Returns the operation's result, or re-raises its own exception untouched.
    Raises QueryTimeout if the deadline passes first.
    """
    task = asyncio.ensure_future(operation())
    try:
        done, _ = await asyncio.wait({task}, timeout=timeout_ms / 1000)
    except asyncio.CancelledError:
        task.cancel()
        raise

    if task in done:
        return task.result()

    if detach:
        _detached.add(task)
        task.add_done_callback(_forget_detached)
    else:
        task.cancel()
    raise QueryTimeout(message, timeout_ms=timeout_ms)


def _forget_detached(task: asyncio.Task) -> None:
    _detached.discard(task)
    if task.cancelled():
        return
    error = task.exception()
    if error is not None:
        logger.debug("guard.detached_failed", error=str(error))


# ─── Classification ─────────────────────────────────────────

_TIMEOUT_KEYWORDS = ("timeout", "timed out")

_CONNECTION_KEYWORDS = (
    "can't reach database server",
    "connection refused",
    "connection reset",
    "connection closed",
    "connection was closed",
    "connection timeout",
    "server closed the connection",
    "database server doesn't accept connection",
    "too many connections",
    "connection pool",
    "econnrefused",
    "etimedout",
    "socket hang up",
    "name or service not known",
    "temporary failure in name resolution",
    "no route to host",
    "network is unreachable",
)

_UNREACHABLE_ERRNOS = {
    errno.EHOSTUNREACH,
    errno.ENETUNREACH,
    errno.ENETDOWN,
    errno.EHOSTDOWN,
}

_ASYNCPG_CONNECTION_ERRORS = (
    asyncpg.exceptions.ConnectionDoesNotExistError,
    asyncpg.exceptions.CannotConnectNowError,
    asyncpg.exceptions.TooManyConnectionsError,
    asyncpg.exceptions.PostgresConnectionError,
)


def _error_chain(error: BaseException) -> list[BaseException]:
    """The error plus anything it wraps (DBAPI .orig, explicit __cause__).

    __context__ is not followed: an error raised while handling a dropped
    connection is still an application error.
    """
    chain: list[BaseException] = []
    pending: list[Any] = [error]
    while pending:
        current = pending.pop(0)
        if not isinstance(current, BaseException) or any(current is e for e in chain):
            continue
        chain.append(current)
        pending.extend([
            getattr(current, "orig", None),
            current.__cause__,
        ])
    return chain


def _is_timeout(error: BaseException) -> bool:
    if isinstance(error, (TimeoutError, asyncio.TimeoutError, sa_exc.TimeoutError)):
        return True
    if "timeout" in type(error).__name__.lower():
        return True
    text = str(error).lower()
    return any(k in text for k in _TIMEOUT_KEYWORDS)


def _is_connection_error(error: BaseException) -> bool:
    if isinstance(error, (ConnectionError, socket.gaierror, sa_exc.DisconnectionError)):
        return True
    if isinstance(error, _ASYNCPG_CONNECTION_ERRORS):
        return True
    if isinstance(error, sa_exc.DBAPIError) and error.connection_invalidated:
        return True
    if isinstance(error, OSError) and error.errno in _UNREACHABLE_ERRNOS:
        return True
    text = str(error).lower()
    return any(k in text for k in _CONNECTION_KEYWORDS)


def classify(error: BaseException) -> DbErrorInfo:
    """Decide whether a failed data-access call should degrade to empty data."""
    chain = _error_chain(error)
    is_timeout = any(_is_timeout(e) for e in chain)
    is_connection = any(_is_connection_error(e) for e in chain)
    return DbErrorInfo(
        is_connection_error=is_connection,
        is_timeout_error=is_timeout,
        should_return_empty=is_connection or is_timeout,
        error_message=str(error) or type(error).__name__,
    )
