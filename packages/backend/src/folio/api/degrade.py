"""Graceful degradation for one-shot reads.

Learn: the public pages must render even when the database is briefly
unreachable. read_or_empty() runs a guarded read and applies one rule:

- timeout / connectivity failure → log at info, return the empty value (200)
- anything else → log at error, 500 with a generic body

The raw error text is only included in development.
"""

from typing import Any, Awaitable, Callable, TypeVar

import structlog
from fastapi import HTTPException

from folio.config import settings
from folio.db.guard import DbErrorInfo, classify, with_timeout

logger = structlog.get_logger()

T = TypeVar("T")


def internal_error(info: DbErrorInfo) -> HTTPException:
    return HTTPException(
        status_code=500,
        detail={
            "error": "Internal server error",
            "message": info.error_message if settings.is_development else None,
        },
    )


async def read_or_empty(
    operation: Callable[[], Awaitable[T]],
    empty: Any,
    *,
    what: str,
) -> T:
    try:
        return await with_timeout(operation, settings.query_timeout_ms)
    except Exception as e:
        info = classify(e)
        if info.should_return_empty:
            logger.info("api.degraded", what=what, error=info.error_message)
            return empty
        logger.error("api.read_failed", what=what, error=info.error_message)
        raise internal_error(info) from e
