"""
easypanel_gateway.trpc

Upstream tRPC boundary package.

Responsibilities:
- Transport calls against Easypanel's `/api/trpc/*` endpoints.
- Session token lifecycle (login, caching, invalidation).
- Error normalization and the retry-once-on-401 client.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Routers depend on `trpc.client.TrpcClient`; nothing outside this package builds
# upstream HTTP requests directly.
