"""
easypanel_gateway.trpc.transport

Single round-trip transport for Easypanel tRPC procedures.

Responsibilities:
- Encode queries (GET + `?input=`) and mutations (POST + JSON body).
- Attach the session token as both cookie and bearer credentials.
- Decode responses into a tagged `Success` / `Failure` outcome and raise
  normalized `UpstreamError`s for failures.
"""

from __future__ import annotations

import enum
import json
from dataclasses import dataclass, field
from http.cookiejar import CookieJar, DefaultCookiePolicy
from typing import Any

import httpx

from easypanel_gateway.observability.logging import get_logger
from easypanel_gateway.trpc.errors import UpstreamError, UpstreamErrorInfo, normalize_failure

log = get_logger(__name__)

SESSION_COOKIE = "ez-token"


class CallKind(str, enum.Enum):
    QUERY = "query"
    MUTATION = "mutation"


@dataclass(frozen=True, slots=True)
class Success:
    payload: Any
    headers: httpx.Headers = field(default_factory=httpx.Headers)


@dataclass(frozen=True, slots=True)
class Failure:
    status: int
    body: dict[str, Any] | str


Outcome = Success | Failure


def upstream_http_client(
    *,
    base_url: str,
    timeout: float | None = 30.0,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    # Session credentials live only in SessionTokenManager; the jar refuses every cookie.
    jar = CookieJar(policy=DefaultCookiePolicy(allowed_domains=[]))
    return httpx.AsyncClient(
        base_url=base_url, timeout=timeout, cookies=jar, transport=transport
    )


def decode_response(response: httpx.Response) -> Outcome:
    # A failure hidden inside a 2xx must not surface as a 2xx to our callers.
    status = response.status_code if not response.is_success else 502

    # Strict JSON first; anything undecodable is kept as raw text for diagnostics.
    try:
        body = response.json()
    except ValueError:
        return Failure(status=status, body=response.text)

    if not isinstance(body, dict):
        return Failure(status=status, body=response.text)
    if not response.is_success or "error" in body:
        return Failure(status=status, body=body)

    result = body.get("result")
    if not isinstance(result, dict) or "data" not in result:
        return Failure(status=status, body=body)
    data = result["data"]

    # superjson-wrapped payloads live under `json`; plain tRPC returns data directly.
    if isinstance(data, dict) and "json" in data:
        payload = data["json"]
    else:
        payload = data
    return Success(payload=payload, headers=response.headers)


class TrpcTransport:
    """
    Performs exactly one HTTP request per `send`.

    The `httpx.AsyncClient` is owned by the app (created on startup) and must
    carry the upstream base URL.
    """

    def __init__(self, *, http: httpx.AsyncClient, timeout: float | None = 30.0) -> None:
        self._http = http
        self._timeout = timeout

    def build_request(
        self,
        procedure: str,
        payload: Any,
        *,
        kind: CallKind = CallKind.MUTATION,
        token: str | None = None,
    ) -> httpx.Request:
        headers: dict[str, str] = {}
        if token:
            headers["Cookie"] = f"{SESSION_COOKIE}={token}"
            headers["Authorization"] = f"Bearer {token}"

        url = f"/api/trpc/{procedure}"
        envelope = {"json": payload}
        if kind is CallKind.QUERY:
            return self._http.build_request(
                "GET",
                url,
                params={"input": json.dumps(envelope)},
                headers=headers,
                timeout=self._timeout,
            )
        headers["Content-Type"] = "application/json"
        return self._http.build_request(
            "POST",
            url,
            content=json.dumps(envelope),
            headers=headers,
            timeout=self._timeout,
        )

    async def send(
        self,
        procedure: str,
        payload: Any,
        *,
        kind: CallKind = CallKind.MUTATION,
        token: str | None = None,
    ) -> Success:
        request = self.build_request(procedure, payload, kind=kind, token=token)
        log.info("trpc_request", procedure=procedure, method=request.method)

        try:
            response = await self._http.send(request)
        except httpx.TimeoutException as e:
            log.warning("trpc_timeout", procedure=procedure)
            raise UpstreamError(
                UpstreamErrorInfo(
                    message=f"tRPC call timed out: {procedure}",
                    status=504,
                    procedure=procedure,
                )
            ) from e
        except httpx.TransportError as e:
            log.warning("trpc_unreachable", procedure=procedure, error=str(e))
            raise UpstreamError(
                UpstreamErrorInfo(
                    message=f"tRPC upstream unreachable: {procedure}",
                    status=502,
                    procedure=procedure,
                )
            ) from e

        outcome = decode_response(response)
        if isinstance(outcome, Failure):
            info = normalize_failure(
                procedure=procedure, http_status=outcome.status, body=outcome.body
            )
            log.warning(
                "trpc_failed",
                procedure=procedure,
                http_status=response.status_code,
                status=info.status,
                raw_body=info.raw_body,
            )
            raise UpstreamError(info)

        log.info("trpc_ok", procedure=procedure)
        return outcome


# --- Module Notes -----------------------------------------------------------
# Timeouts are enforced per request; the upstream itself declares none.
