"""
easypanel_gateway.api

API package for the Easypanel gateway.

Responsibilities:
- FastAPI app factory and router modules.
- API-layer dependency wiring and error handlers.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# The API layer stays thin: request validation + auth + delegation to `trpc.client`.
