"""
easypanel_gateway.settings

Central configuration model (Pydantic Settings).

Responsibilities:
- Provide strongly-typed, env-driven settings for all layers.
- Hide secrets from repr/logging (Easypanel password, API secret).
- Offer a cached settings instance for the entrypoint.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from easypanel_gateway.trpc.token_manager import LoginCredentials


class Settings(BaseSettings):
    """
    - Env names match the deployed gateway (EASYPANEL_URL, API_SECRET, PORT, ...)
    - Defaults safe for local dev (no API_SECRET means open mode)
    """

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=False)

    env: Literal["dev", "test", "prod"] = "dev"
    service_name: str = "easypanel-gateway"
    log_level: str = "INFO"

    api_host: str = "0.0.0.0"
    port: int = 3100
    # Public URL used in the root index; falls back to localhost:<port>.
    app_url: str | None = None

    # Upstream Easypanel
    easypanel_url: str = "http://localhost:3000"
    easypanel_email: str | None = None
    easypanel_password: str | None = Field(default=None, repr=False)
    upstream_timeout_seconds: float = Field(default=30.0, gt=0)

    # Unverified against real Easypanel session lifetimes; keep configurable.
    token_ttl_seconds: float = Field(default=3600.0, gt=0)
    prelogin_on_startup: bool = True

    # External callers
    api_secret: str | None = Field(default=None, repr=False)

    @property
    def public_url(self) -> str:
        return (self.app_url or f"http://localhost:{self.port}").rstrip("/")

    def login_credentials(self) -> LoginCredentials | None:
        if not self.easypanel_email or not self.easypanel_password:
            return None
        return LoginCredentials(email=self.easypanel_email, password=self.easypanel_password)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    # Cache avoids re-parsing env vars on every access.
    return Settings()


# --- Module Notes -----------------------------------------------------------
# Request-time code reads the Settings bound to `app.state` (see api.deps) so tests
# can build apps with explicit settings.
