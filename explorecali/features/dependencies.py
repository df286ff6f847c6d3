from __future__ import annotations

from collections.abc import Callable

from fastapi import HTTPException, Request

from .flags import FeatureFlags


def require_feature(name: str, label: str | None = None) -> Callable[[Request], None]:
    """Return a dependency that raises 404 while feature *name* is switched off."""

    def check(request: Request) -> None:
        flags: FeatureFlags = request.app.state.features
        if not flags.is_enabled(name):
            raise HTTPException(status_code=404, detail=f"{label or name} feature disabled")

    return check
