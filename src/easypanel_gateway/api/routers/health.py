"""
easypanel_gateway.api.routers.health

Index, health and readiness endpoints.

Responsibilities:
- Provide a navigational index (`/`).
- Provide liveness probe (`/health`).
- Provide readiness probe (`/readyz`) validating the upstream session.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from starlette.status import HTTP_503_SERVICE_UNAVAILABLE

from easypanel_gateway import __version__
from easypanel_gateway.api.deps import settings_dep, trpc_client_dep
from easypanel_gateway.observability.logging import get_logger
from easypanel_gateway.settings import Settings
from easypanel_gateway.trpc.client import TrpcClient
from easypanel_gateway.trpc.errors import AuthConfigError, LoginFailure, UpstreamError

log = get_logger(__name__)

router = APIRouter()


@router.get("/")
async def index(settings: Settings = Depends(settings_dep)) -> dict[str, Any]:
    base = settings.public_url
    return {
        "name": "Easypanel API Gateway",
        "version": __version__,
        "description": "REST gateway for Easypanel; relays calls to its internal tRPC API",
        "endpoints": {
            "docs": f"{base}/docs",
            "openapi": f"{base}/openapi.json",
            "health": f"{base}/health",
            "auth_status": f"{base}/auth/status",
            "api": f"{base}/api/v1",
        },
        "authentication": (
            "API_SECRET required; pass as Authorization: Bearer <secret>"
            if settings.api_secret
            else "No API_SECRET set (dev mode, no auth required)"
        ),
    }


@router.get("/health")
async def health() -> dict[str, str]:
    # Liveness: process is up and serving HTTP.
    return {
        "status": "ok",
        "version": __version__,
        "timestamp": datetime.now(tz=UTC).isoformat(),
    }


@router.get("/readyz", response_model=None)
async def readyz(client: TrpcClient = Depends(trpc_client_dep)) -> dict[str, str] | JSONResponse:
    # Readiness: the managed session must be accepted by `auth.getUser`.
    try:
        await client.verify_session()
    except (AuthConfigError, LoginFailure, UpstreamError) as e:
        log.warning("readiness_failed", error=str(e))
        return JSONResponse(
            status_code=HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "unavailable", "error": str(e)},
        )
    return {"status": "ready"}


# --- Module Notes -----------------------------------------------------------
# Kubernetes typically uses /health for liveness and /readyz for readiness gating.
