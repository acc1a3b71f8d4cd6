"""Caller identity from the upstream auth gateway."""

from typing import Optional

import structlog
from fastapi import Header, HTTPException

from src.services.auth import CurrentUser

logger = structlog.get_logger()


async def get_current_user(
    x_user_id: Optional[str] = Header(None),
    x_user_role: Optional[str] = Header(None),
) -> CurrentUser:
    """
    Resolve the caller from gateway headers.

    The gateway authenticates the session and forwards ``X-User-Id`` and
    ``X-User-Role``; requests that bypass it carry neither.
    """
    if not x_user_id:
        logger.warning("missing_user_header")
        raise HTTPException(
            status_code=401,
            detail="Missing user identity",
        )

    return CurrentUser.from_role(x_user_id, x_user_role)
