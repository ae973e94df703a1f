"""
easypanel_gateway.api.deps

FastAPI dependency wiring for the API layer.

Responsibilities:
- Provide dependency functions for settings and the tRPC client.
- Encapsulate app.state access patterns.
"""

from __future__ import annotations

from fastapi import Request

from easypanel_gateway.settings import Settings
from easypanel_gateway.trpc.client import TrpcClient


def settings_dep(request: Request) -> Settings:
    # Bound in `easypanel_gateway.api.app.create_app`.
    return request.app.state.settings  # type: ignore[attr-defined]


def trpc_client_dep(request: Request) -> TrpcClient:
    # The client (and its token manager) is created on app startup.
    return request.app.state.trpc_client  # type: ignore[attr-defined]
