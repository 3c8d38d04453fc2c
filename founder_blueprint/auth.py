"""Resolve the calling user from the request."""

from __future__ import annotations

from fastapi import HTTPException, Request, status

from .config import get_user_header


async def get_current_user_id(request: Request) -> str:
    """Return the authenticated user id, or reject the request with 401."""

    user_id = (request.headers.get(get_user_header()) or "").strip()
    if not user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")
    request.state.user_id = user_id
    return user_id
