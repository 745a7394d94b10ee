"""OKRHub configuration via pydantic-settings."""

from __future__ import annotations

from pydantic_settings import BaseSettings


class OKRHubSettings(BaseSettings):
    environment: str = "development"
    database_url: str = "sqlite+aiosqlite:///okrhub.db"
    echo_sql: bool = False
    app_title: str = "OKRHub Sync"

    # Identifier namespace of the host application
    source_app: str = ""

    # LinkHub connection (caller-supplied secrets)
    endpoint_url: str = ""
    api_key_prefix: str = ""
    signing_secret: str = ""
    request_timeout_seconds: float = 30.0

    # Background sync loop
    auto_sync_enabled: bool = True
    sync_interval_seconds: float = 60.0
    sync_batch_size: int = 10

    # Inspection routes
    path_prefix: str = "/okrhub"
    routes_api_key: str = ""
    security_fail_closed: bool = False

    model_config = {"env_prefix": "OKRHUB_", "env_file": ".env", "extra": "ignore"}

    @property
    def sync_configured(self) -> bool:
        return bool(self.endpoint_url and self.api_key_prefix and self.signing_secret)

    @property
    def is_production(self) -> bool:
        return self.environment.strip().lower() in {"prod", "production"}


settings = OKRHubSettings()
