"""
easypanel_gateway.trpc.client

Protocol client used by every route that relays to Easypanel.

Responsibilities:
- Obtain the managed session token and issue the transport call.
- Apply the retry policy (invalidate + one retry on 401).
- Offer a single-attempt variant for caller-supplied tokens.
"""

from __future__ import annotations

from typing import Any

from easypanel_gateway.observability.logging import get_logger
from easypanel_gateway.trpc.errors import UpstreamError
from easypanel_gateway.trpc.retry import RetryPolicy
from easypanel_gateway.trpc.token_manager import SessionTokenManager
from easypanel_gateway.trpc.transport import CallKind, TrpcTransport

log = get_logger(__name__)

SESSION_CHECK_PROCEDURE = "auth.getUser"


class TrpcClient:
    def __init__(
        self,
        *,
        transport: TrpcTransport,
        tokens: SessionTokenManager,
        policy: RetryPolicy | None = None,
    ) -> None:
        self._transport = transport
        self._tokens = tokens
        self._policy = policy or RetryPolicy()

    @property
    def tokens(self) -> SessionTokenManager:
        return self._tokens

    async def call(
        self,
        procedure: str,
        payload: Any = None,
        kind: CallKind = CallKind.MUTATION,
    ) -> Any:
        if payload is None:
            payload = {}

        attempt = 1
        while True:
            token = await self._tokens.get()
            try:
                result = await self._transport.send(procedure, payload, kind=kind, token=token)
                return result.payload
            except UpstreamError as e:
                if not self._policy.should_retry(e, attempt=attempt):
                    raise
                log.info(
                    "upstream_session_rejected",
                    procedure=procedure,
                    status=e.status,
                    attempt=attempt,
                )
                self._tokens.invalidate()
                attempt += 1

    async def query(self, procedure: str, payload: Any = None) -> Any:
        return await self.call(procedure, payload, CallKind.QUERY)

    async def mutate(self, procedure: str, payload: Any = None) -> Any:
        return await self.call(procedure, payload, CallKind.MUTATION)

    async def call_with_token(
        self,
        procedure: str,
        payload: Any = None,
        *,
        token: str,
        kind: CallKind = CallKind.MUTATION,
    ) -> Any:
        # Caller-owned credential: no managed session, no retry.
        result = await self._transport.send(
            procedure, {} if payload is None else payload, kind=kind, token=token
        )
        return result.payload

    async def verify_session(self) -> Any:
        return await self.call(SESSION_CHECK_PROCEDURE)


# --- Module Notes -----------------------------------------------------------
# Retries never coordinate across in-flight calls; each logical call may produce at
# most `RetryPolicy.max_attempts` upstream requests (plus any login it triggers).
