"""
easypanel_gateway.api.errors

Global exception handlers.

Responsibilities:
- Map upstream/auth errors to a consistent `{"error": ...}` JSON shape.
- Preserve the originating procedure and upstream status on relay failures.
"""

from __future__ import annotations

import json
from typing import Any

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_401_UNAUTHORIZED,
    HTTP_500_INTERNAL_SERVER_ERROR,
    HTTP_502_BAD_GATEWAY,
)

from easypanel_gateway.auth.guard import UnauthorizedExternal
from easypanel_gateway.observability.logging import get_logger
from easypanel_gateway.trpc.errors import AuthConfigError, LoginFailure, UpstreamError

log = get_logger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(UpstreamError, _upstream_error)
    app.add_exception_handler(UnauthorizedExternal, _unauthorized_external)
    app.add_exception_handler(AuthConfigError, _auth_config_error)
    app.add_exception_handler(LoginFailure, _login_failure)
    app.add_exception_handler(RequestValidationError, _validation_error)
    app.add_exception_handler(StarletteHTTPException, _http_exception)
    app.add_exception_handler(Exception, _unhandled)


def upstream_body(raw: str | None) -> Any:
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except ValueError:
        # Truncated JSON: hand back the raw string.
        return raw


def _http_status(status: int) -> int:
    return status if 400 <= status <= 599 else HTTP_502_BAD_GATEWAY


async def _upstream_error(request: Request, exc: UpstreamError) -> JSONResponse:
    log.warning("upstream_error", procedure=exc.procedure, status=exc.status, error=str(exc))
    return JSONResponse(
        status_code=_http_status(exc.status),
        content={
            "error": str(exc),
            "procedure": exc.procedure,
            "upstream": upstream_body(exc.raw_body),
        },
    )


async def _unauthorized_external(request: Request, exc: UnauthorizedExternal) -> JSONResponse:
    return JSONResponse(
        status_code=HTTP_401_UNAUTHORIZED,
        content={"error": str(exc)},
        headers={"WWW-Authenticate": "Bearer"},
    )


async def _auth_config_error(request: Request, exc: AuthConfigError) -> JSONResponse:
    log.error("upstream_auth_not_configured", error=str(exc))
    return JSONResponse(status_code=HTTP_500_INTERNAL_SERVER_ERROR, content={"error": str(exc)})


async def _login_failure(request: Request, exc: LoginFailure) -> JSONResponse:
    log.error("upstream_login_failed", error=str(exc))
    return JSONResponse(status_code=HTTP_502_BAD_GATEWAY, content={"error": str(exc)})


async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    log.info("request_invalid", errors=len(exc.errors()))
    return JSONResponse(
        status_code=HTTP_400_BAD_REQUEST,
        content={"error": "Validation failed", "details": jsonable_encoder(exc.errors())},
    )


async def _http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def _unhandled(request: Request, exc: Exception) -> JSONResponse:
    log.exception("unhandled_error", error=str(exc))
    return JSONResponse(
        status_code=HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error"},
    )


# --- Module Notes -----------------------------------------------------------
# Validation failures share the `{"error": ...}` shape with every other gateway error.
