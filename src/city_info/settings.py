"""
city_info.settings

Central configuration model (Pydantic Settings).

Responsibilities:
- Provide strongly-typed, env-driven settings for all layers.
- Hide secrets from repr/logging (JWT secret, telemetry key).
- Offer a cached settings instance for dependency injection.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Enterprise pattern:
    - Strict env-driven configuration
    - Defaults safe for local dev
    - Single settings object injected across layers
    """

    model_config = SettingsConfigDict(env_prefix="CITYINFO_", case_sensitive=False)

    # "dev" selects console-only diagnostics and the local mail service.
    env: Literal["dev", "test", "prod"] = "dev"
    service_name: str = "city-info-api"
    log_level: str = "INFO"

    api_host: str = "0.0.0.0"
    api_port: int = 8080

    # Proxy / transport
    forwarded_allow_ips: list[str] = Field(default_factory=lambda: ["127.0.0.1"])
    https_redirect: bool = False

    # Auth
    jwt_alg: str = "HS256"
    jwt_issuer: str = "https://localhost:7169"
    jwt_audience: str = "cityinfoapi"
    jwt_secret: str = Field(default="dev-secret-change-me-at-least-32-bytes", repr=False)
    jwt_leeway_seconds: int = 0

    # Versioning
    api_versions: list[str] = Field(default_factory=lambda: ["1.0", "2.0"])
    default_api_version: str | None = "1.0"

    # Content negotiation
    default_media_type: str = "application/json"

    # Persistence
    database_url: str = "sqlite+aiosqlite:///./cityinfo.db"

    # Telemetry (required outside dev)
    application_insights_instrumentation_key: str | None = Field(default=None, repr=False)

    # Documentation / errors
    doc_comments_path: str | None = None
    problem_base_url: str = "https://cityinfo.example.com/errors"

    # Mail
    mail_to: str = "admin@mycompany.com"
    mail_from: str = "noreply@mycompany.com"

    @property
    def is_development(self) -> bool:
        return self.env == "dev"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    # Cache avoids re-parsing env vars for each request dependency.
    return Settings()


# --- Module Notes -----------------------------------------------------------
# `create_app` receives an explicit Settings instance; `get_settings` is only the
# default used by the process entrypoint and request-level dependencies.
