"""
easypanel_gateway.api.app

FastAPI app factory for the Easypanel gateway.

Responsibilities:
- Build the FastAPI application and register routers/middleware/error handlers.
- Create and dispose shared infrastructure (upstream HTTP client, token manager).
- Provide a single composition root where cross-cutting concerns live.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI

from easypanel_gateway import __version__
from easypanel_gateway.api.errors import register_error_handlers
from easypanel_gateway.api.routers.auth import router as auth_router
from easypanel_gateway.api.routers.health import router as health_router
from easypanel_gateway.api.routers.relay import router as relay_router
from easypanel_gateway.observability.logging import configure_logging, get_logger
from easypanel_gateway.observability.middleware import RequestContextMiddleware
from easypanel_gateway.settings import Settings
from easypanel_gateway.trpc.client import TrpcClient
from easypanel_gateway.trpc.errors import AuthConfigError, LoginFailure, UpstreamError
from easypanel_gateway.trpc.token_manager import SessionTokenManager
from easypanel_gateway.trpc.transport import TrpcTransport, upstream_http_client

log = get_logger(__name__)


def build_trpc_client(*, settings: Settings, http: httpx.AsyncClient) -> TrpcClient:
    transport = TrpcTransport(http=http, timeout=settings.upstream_timeout_seconds)
    tokens = SessionTokenManager(
        transport=transport,
        credentials=settings.login_credentials(),
        ttl_seconds=settings.token_ttl_seconds,
    )
    return TrpcClient(transport=transport, tokens=tokens)


def create_app(*, settings: Settings, http: httpx.AsyncClient | None = None) -> FastAPI:
    """
    `http` lets callers (tests) supply the upstream client; otherwise one is
    created on startup against `settings.easypanel_url` and closed on shutdown.
    """

    configure_logging(service_name=settings.service_name, level=settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        log.info(
            "startup",
            env=settings.env,
            port=settings.port,
            easypanel_url=settings.easypanel_url,
            easypanel_email_set=bool(settings.easypanel_email),
            easypanel_password_set=bool(settings.easypanel_password),
            api_secret_set=bool(settings.api_secret),
        )
        owned = http is None
        client = http or upstream_http_client(
            base_url=settings.easypanel_url,
            timeout=settings.upstream_timeout_seconds,
        )
        app.state.http = client
        app.state.trpc_client = build_trpc_client(settings=settings, http=client)

        if settings.prelogin_on_startup:
            await _prelogin(app.state.trpc_client)

        try:
            yield
        finally:
            if owned:
                await client.aclose()
            log.info("shutdown")

    app = FastAPI(
        title="Easypanel API Gateway",
        version=__version__,
        description=(
            "REST gateway for Easypanel. The gateway authenticates with Easypanel itself; "
            "external callers authenticate with API_SECRET."
        ),
        docs_url="/docs",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(RequestContextMiddleware)
    register_error_handlers(app)
    app.include_router(health_router, tags=["health"])
    app.include_router(auth_router)
    app.include_router(relay_router)

    return app


async def _prelogin(client: TrpcClient) -> None:
    # Failure here must not stop the process; the first relay call logs in lazily.
    try:
        await client.tokens.get()
    except (AuthConfigError, LoginFailure, UpstreamError) as e:
        log.warning("startup_login_failed", error=str(e))


# --- Module Notes -----------------------------------------------------------
# This file is intentionally small: app composition stays here; relay logic stays
# in the `trpc` package.
