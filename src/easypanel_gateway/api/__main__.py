"""
easypanel_gateway.api.__main__

Entrypoint for running the gateway via `python -m easypanel_gateway.api`.

Responsibilities:
- Load settings.
- Create the app.
- Start uvicorn with structlog-compatible logging config.
"""

from __future__ import annotations

import uvicorn

from easypanel_gateway.api.app import create_app
from easypanel_gateway.settings import get_settings


def main() -> None:
    settings = get_settings()
    app = create_app(settings=settings)

    uvicorn.run(
        app,
        host=settings.api_host,
        port=settings.port,
        log_config=None,  # structlog
    )


if __name__ == "__main__":
    main()
