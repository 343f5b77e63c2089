"""FastAPI auth dependencies.

Learn: Used as Depends() on routers or individual routes. The token is
compared in constant time (hmac.compare_digest) so response timing does
not leak how much of a guessed token was right.
"""

import hmac
from typing import Optional

from fastapi import Header, HTTPException

from folio.config import settings


async def require_admin(
    x_admin_token: Optional[str] = Header(None),
) -> None:
    """Reject the request unless it carries the admin token (401)."""
    if not x_admin_token or not hmac.compare_digest(
        x_admin_token.encode(), settings.admin_token.encode()
    ):
        raise HTTPException(
            status_code=401,
            detail="Admin authentication required",
        )
