"""
easypanel_gateway.trpc.errors

Error taxonomy and failure normalization for upstream tRPC calls.

Responsibilities:
- Define the gateway's upstream-facing exceptions.
- Map a raw failure body + HTTP status into a stable `UpstreamErrorInfo`.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

MAX_RAW_BODY_CHARS = 500


class AuthConfigError(Exception):
    """Upstream login credentials are not configured."""


class LoginFailure(Exception):
    """Login call succeeded but no session token could be extracted."""


@dataclass(frozen=True, slots=True)
class UpstreamErrorInfo:
    message: str
    status: int
    procedure: str
    raw_body: str | None = None


class UpstreamError(Exception):
    """
    A remote procedure call failed.

    Carries the normalized status/message plus the originating procedure so the
    HTTP layer can map it to a response without re-parsing upstream bodies.
    """

    def __init__(self, info: UpstreamErrorInfo) -> None:
        super().__init__(info.message)
        self.info = info

    @property
    def status(self) -> int:
        return self.info.status

    @property
    def procedure(self) -> str:
        return self.info.procedure

    @property
    def raw_body(self) -> str | None:
        return self.info.raw_body


def normalize_failure(*, procedure: str, http_status: int, body: Any) -> UpstreamErrorInfo:
    # Upstream-declared message/status win when structurally present.
    error = body.get("error") if isinstance(body, dict) else None
    if not isinstance(error, dict):
        error = {}
    data = error.get("data")
    if not isinstance(data, dict):
        data = {}

    message = error.get("message")
    if not isinstance(message, str) or not message:
        message = f"tRPC call failed: {procedure}"

    declared = data.get("httpStatus")
    if isinstance(declared, int) and not isinstance(declared, bool) and 100 <= declared <= 599:
        status = declared
    else:
        status = http_status or 500

    return UpstreamErrorInfo(
        message=message,
        status=status,
        procedure=procedure,
        raw_body=_truncate(body),
    )


def _truncate(body: Any) -> str | None:
    if body is None:
        return None
    if isinstance(body, str):
        raw = body
    else:
        try:
            raw = json.dumps(body, default=str)
        except (TypeError, ValueError):
            raw = repr(body)
    return raw[:MAX_RAW_BODY_CHARS]


# --- Module Notes -----------------------------------------------------------
# `normalize_failure` never raises; callers decide whether to wrap the result in
# `UpstreamError`. Truncated bodies may no longer be valid JSON (see api.errors).
