"""
easypanel_gateway.trpc.token_manager

Session token lifecycle for the gateway's own Easypanel session.

Responsibilities:
- Log in with configured credentials when no fresh token is cached.
- Cache exactly one token per manager for a fixed freshness window.
- Serialize concurrent logins (single-flight) and support invalidation.

Note:
- The freshness window is a local policy; the login response is not inspected
  for a server-declared expiry.
"""

from __future__ import annotations

import asyncio
import re
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import httpx

from easypanel_gateway.observability.logging import get_logger
from easypanel_gateway.trpc.errors import AuthConfigError, LoginFailure
from easypanel_gateway.trpc.transport import SESSION_COOKIE, CallKind, TrpcTransport

log = get_logger(__name__)

LOGIN_PROCEDURE = "auth.login"
DEFAULT_TOKEN_TTL_SECONDS = 60 * 60

_COOKIE_RE = re.compile(rf"{re.escape(SESSION_COOKIE)}=([^;,\s]+)")


@dataclass(frozen=True, slots=True)
class LoginCredentials:
    email: str
    password: str = field(repr=False)


@dataclass(frozen=True, slots=True)
class SessionToken:
    value: str = field(repr=False)
    cached_at: float
    ttl_seconds: float

    @property
    def expires_at(self) -> float:
        return self.cached_at + self.ttl_seconds

    def is_fresh(self, now: float) -> bool:
        return now < self.expires_at


def extract_session_token(payload: Any, headers: httpx.Headers) -> tuple[str, str] | None:
    """
    Returns `(token, source)` using, in order: body field, Set-Cookie header,
    then each individual Set-Cookie value.
    """

    if isinstance(payload, dict):
        for key in ("token", "ezToken"):
            value = payload.get(key)
            if isinstance(value, str) and value:
                return value, "body"

    match = _COOKIE_RE.search(headers.get("set-cookie") or "")
    if match:
        return match.group(1), "set-cookie"

    for cookie in headers.get_list("set-cookie"):
        match = _COOKIE_RE.search(cookie)
        if match:
            return match.group(1), "set-cookie-list"

    return None


class SessionTokenManager:
    def __init__(
        self,
        *,
        transport: TrpcTransport,
        credentials: LoginCredentials | None,
        ttl_seconds: float = DEFAULT_TOKEN_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._transport = transport
        self._credentials = credentials
        self._ttl_seconds = ttl_seconds
        self._clock = clock
        self._token: SessionToken | None = None
        self._login_lock = asyncio.Lock()

    @property
    def configured(self) -> bool:
        return _usable(self._credentials)

    @property
    def current(self) -> SessionToken | None:
        token = self._token
        if token is not None and token.is_fresh(self._clock()):
            return token
        return None

    def expires_in(self) -> float | None:
        token = self.current
        if token is None:
            return None
        return max(token.expires_at - self._clock(), 0.0)

    async def get(self) -> str:
        if not self.configured:
            raise AuthConfigError(
                "EASYPANEL_EMAIL and EASYPANEL_PASSWORD must be set in environment variables"
            )

        token = self.current
        if token is not None:
            return token.value

        async with self._login_lock:
            # Another caller may have completed the login while we waited.
            token = self.current
            if token is not None:
                return token.value
            token = await self.login()
            self._token = token
            return token.value

    async def login(self, credentials: LoginCredentials | None = None) -> SessionToken:
        creds = credentials or self._credentials
        if not _usable(creds):
            raise AuthConfigError("Login credentials are not configured")

        log.info("upstream_login_started")
        result = await self._transport.send(
            LOGIN_PROCEDURE,
            {"email": creds.email, "password": creds.password},
            kind=CallKind.MUTATION,
        )

        extracted = extract_session_token(result.payload, result.headers)
        if extracted is None:
            log.error(
                "upstream_login_no_token",
                payload_keys=sorted(result.payload) if isinstance(result.payload, dict) else None,
                has_set_cookie="set-cookie" in result.headers,
            )
            raise LoginFailure("Login succeeded but could not extract ez-token from response")

        value, source = extracted
        log.info("upstream_login_ok", source=source)
        return SessionToken(value=value, cached_at=self._clock(), ttl_seconds=self._ttl_seconds)

    def invalidate(self) -> None:
        # Drop the reference; handed-out tokens are immutable and stay untouched.
        self._token = None
        log.info("upstream_token_invalidated")


def _usable(credentials: LoginCredentials | None) -> bool:
    return credentials is not None and bool(credentials.email) and bool(credentials.password)


# --- Module Notes -----------------------------------------------------------
# The login call goes through the raw transport (never `TrpcClient`) so a 401 on
# `auth.login` cannot recurse into the retry path.
