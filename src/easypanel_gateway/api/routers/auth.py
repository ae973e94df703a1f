from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from starlette.status import HTTP_401_UNAUTHORIZED

from easypanel_gateway.api.deps import trpc_client_dep
from easypanel_gateway.auth.deps import caller_token
from easypanel_gateway.observability.logging import get_logger
from easypanel_gateway.trpc.client import SESSION_CHECK_PROCEDURE, TrpcClient
from easypanel_gateway.trpc.errors import AuthConfigError, LoginFailure, UpstreamError
from easypanel_gateway.trpc.token_manager import LoginCredentials

log = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


class LoginRequest(BaseModel):
    email: str = Field(min_length=3, max_length=320, pattern=r"^[^@\s]+@[^@\s]+$")
    password: str = Field(min_length=1, repr=False)


class LoginResponse(BaseModel):
    token: str
    message: str = "Login successful"


class TokenResponse(BaseModel):
    token: Any


class AuthCheckResponse(BaseModel):
    valid: bool
    user: Any = None


class SessionStatusResponse(BaseModel):
    configured: bool
    authenticated: bool
    expires_in_seconds: float | None = None


@router.post("/login", response_model=LoginResponse)
async def login(
    body: LoginRequest,
    client: TrpcClient = Depends(trpc_client_dep),
) -> LoginResponse:
    # Public: exchanges Easypanel credentials for an ez-token (not cached by the gateway).
    try:
        token = await client.tokens.login(
            LoginCredentials(email=body.email, password=body.password)
        )
    except (AuthConfigError, LoginFailure, UpstreamError) as e:
        log.info("caller_login_rejected", error=str(e))
        raise HTTPException(
            status_code=HTTP_401_UNAUTHORIZED, detail="Invalid email or password"
        ) from e
    return LoginResponse(token=token.value)


@router.post("/api-token", response_model=TokenResponse)
async def generate_api_token(
    token: str = Depends(caller_token),
    client: TrpcClient = Depends(trpc_client_dep),
) -> TokenResponse:
    data = await client.call_with_token("users.generateApiToken", token=token)
    if isinstance(data, dict) and "token" in data:
        return TokenResponse(token=data["token"])
    return TokenResponse(token=data)


@router.get("/check", response_model=AuthCheckResponse)
async def check(
    token: str = Depends(caller_token),
    client: TrpcClient = Depends(trpc_client_dep),
) -> AuthCheckResponse:
    try:
        user = await client.call_with_token(SESSION_CHECK_PROCEDURE, token=token)
    except UpstreamError as e:
        raise HTTPException(
            status_code=HTTP_401_UNAUTHORIZED, detail="Invalid or expired token"
        ) from e
    return AuthCheckResponse(valid=True, user=user)


@router.get("/status", response_model=SessionStatusResponse)
async def session_status(client: TrpcClient = Depends(trpc_client_dep)) -> SessionStatusResponse:
    # Gateway's own upstream session; never exposes the token itself.
    tokens = client.tokens
    expires_in = tokens.expires_in()
    return SessionStatusResponse(
        configured=tokens.configured,
        authenticated=expires_in is not None,
        expires_in_seconds=round(expires_in, 1) if expires_in is not None else None,
    )
