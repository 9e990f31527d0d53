from __future__ import annotations

from fastapi import HTTPException, Request


def get_current_user(request: Request) -> dict | None:
    """Return the user dict from the session, or ``None``."""
    return request.session.get("user")


def require_user(request: Request) -> dict:
    """Raise 401 if no user is logged in."""
    user = get_current_user(request)
    if not user or not user.get("user_id"):
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user
