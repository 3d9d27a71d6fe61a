"""Server configuration — reads settings from environment variables.

All settings have sensible defaults for local development.  In production
the values are typically overridden via env vars or a ``.env`` file.
"""

import os
from dataclasses import dataclass, field

# Module-level so FastAPI Query() defaults can reference them
DEFAULT_PAGE_LIMIT = int(os.getenv("DEFAULT_PAGE_LIMIT", "20"))
MAX_PAGE_LIMIT = int(os.getenv("MAX_PAGE_LIMIT", "100"))


@dataclass(frozen=True)
class ServerSettings:
    """Immutable server configuration read from environment at startup."""

    # Network
    host: str = "0.0.0.0"
    port: int = 8080

    # CORS: comma-separated origins, or "*" for any origin
    cors_origins: list[str] = field(default_factory=lambda: ["*"])

    log_level: str = "INFO"

    # Shared secret for the storefront's webhook signature (None = header
    # presence is checked but not verified)
    webhook_secret: str | None = None

    # Shared secret for operator endpoints (None = disabled)
    admin_api_key: str | None = None


def load_settings() -> ServerSettings:
    """Build settings from ``SERVER_*`` and secret environment variables."""
    raw_origins = os.getenv("SERVER_CORS_ORIGINS", "*")
    origins = [o.strip() for o in raw_origins.split(",") if o.strip()]

    return ServerSettings(
        host=os.getenv("SERVER_HOST", "0.0.0.0"),
        port=int(os.getenv("SERVER_PORT", "8080")),
        cors_origins=origins,
        log_level=os.getenv("SERVER_LOG_LEVEL", "INFO").upper(),
        webhook_secret=os.getenv("WEBHOOK_SECRET") or None,
        admin_api_key=os.getenv("ADMIN_API_KEY") or None,
    )
