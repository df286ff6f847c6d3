from __future__ import annotations

from collections.abc import Callable

from fastapi import HTTPException, Request

from .users import READ, WRITE, can


def _require(access: str, denied: str) -> Callable[[Request], dict]:
    """Dependency raising 401 without a login and 403 when the role lacks *access*."""

    def check(request: Request) -> dict:
        user = request.session.get("user")
        if not user:
            raise HTTPException(status_code=401, detail="Not authenticated")
        if not can(user.get("role"), access):
            raise HTTPException(status_code=403, detail=denied)
        return user

    return check


require_user = _require(READ, "Read access required")
require_admin = _require(WRITE, "Admin access required")
