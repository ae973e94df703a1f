"""
easypanel_gateway.auth.deps

FastAPI dependency functions for inbound authentication.

Responsibilities:
- Enforce the API secret on guarded routes.
- Extract a caller-supplied Easypanel token for the `/auth/*` helpers.
"""

from __future__ import annotations

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from starlette.status import HTTP_401_UNAUTHORIZED

from easypanel_gateway.api.deps import settings_dep
from easypanel_gateway.auth.guard import UnauthorizedExternal, check_api_secret
from easypanel_gateway.settings import Settings

_bearer = HTTPBearer(auto_error=False, description="API_SECRET, or an ez-token on /auth/*")


def require_api_secret(
    creds: HTTPAuthorizationCredentials | None = Depends(_bearer),
    settings: Settings = Depends(settings_dep),
) -> None:
    # HTTPBearer already rejects non-Bearer schemes by returning None.
    check_api_secret(
        presented=creds.credentials if creds is not None else None,
        secret=settings.api_secret,
    )


def caller_token(
    creds: HTTPAuthorizationCredentials | None = Depends(_bearer),
) -> str:
    if creds is None or not creds.credentials.strip():
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail="Missing Bearer token")
    return creds.credentials.strip()


__all__ = ["UnauthorizedExternal", "caller_token", "require_api_secret"]


# --- Module Notes -----------------------------------------------------------
# `UnauthorizedExternal` is rendered by `api.errors` as a 401 with WWW-Authenticate.
