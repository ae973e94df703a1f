"""
easypanel_gateway.auth.guard

Static shared-secret check for inbound callers.

Responsibilities:
- Validate a presented bearer credential against the configured API secret.
- Treat an unset secret as open (dev) mode.
"""

from __future__ import annotations

import hmac


class UnauthorizedExternal(Exception):
    pass


def check_api_secret(*, presented: str | None, secret: str | None) -> None:
    if not secret:
        return
    if not presented:
        raise UnauthorizedExternal("Missing Authorization: Bearer <API_SECRET>")
    if not hmac.compare_digest(presented.strip().encode(), secret.encode()):
        raise UnauthorizedExternal("Invalid API secret")


# --- Module Notes -----------------------------------------------------------
# Independent of the upstream Easypanel session; runs before any relay call.
