"""Runtime settings: env-driven via pydantic-settings.

Reads from a .env file and DERIVCAST_* environment variables.  Task
configurations (what to generate) live in ``derivcast.models.task_config``;
this module only covers deployment concerns: URLs, broker, signing keys.
"""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Deployment settings with environment variable overrides.

    Examples
    --------
    Override via environment::

        export DERIVCAST_BASE_URL=https://repo.example.org
        export DERIVCAST_BROKER_BACKEND=stomp
        export DERIVCAST_STOMP_HOST=activemq
        export DERIVCAST_JWT_SECRET=change-me

    Or via .env file::

        DERIVCAST_ENVIRONMENT=production
        DERIVCAST_JWT_ALGORITHM=RS256
        DERIVCAST_JWT_PRIVATE_KEY_PATH=/run/secrets/jwt.key
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="DERIVCAST_",
        env_file_encoding="utf-8",
    )

    # Runtime environment
    environment: str = "development"
    log_level: str = "INFO"

    # Repository URLs
    base_url: str = "http://localhost:8000"
    stream_wrappers: dict[str, str] = {
        "public": "http://localhost:8000/sites/default/files",
        "private": "http://localhost:8000/system/files",
    }

    # Derivative storage
    default_scheme: str = "public"
    allowed_schemes: list[str] = ["public", "private", "fedora"]
    allowed_mime_types: list[str] = ["image"]  # major types accepted at save time

    # Broker
    broker_backend: str = "local"  # "local" or "stomp"
    stomp_host: str = "localhost"
    stomp_port: int = 61613
    stomp_login: str = ""
    stomp_passcode: str = ""
    local_queue_max: int = 1024

    # Bearer credentials
    jwt_algorithm: str = "HS256"
    jwt_secret: str = ""
    jwt_private_key_path: Path | None = None
    jwt_issuer: str = "derivcast"
    jwt_ttl_seconds: int = 300

    @property
    def is_production(self) -> bool:
        """Whether running in production mode."""
        return self.environment == "production"


# Module-level singleton; import as `from derivcast.config import settings`
settings = Settings()
