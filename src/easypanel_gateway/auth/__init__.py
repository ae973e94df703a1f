"""
easypanel_gateway.auth

Inbound authentication package.

Responsibilities:
- Shared-secret guard for relay routes.
- FastAPI auth dependencies.
"""

# Package marker.
