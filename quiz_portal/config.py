"""Runtime settings for the quiz portal.

Defaults come from the constants modules; a deployment overrides them through
``QUIZ_PORTAL_*`` environment variables (or a ``.env`` file).
"""

from __future__ import annotations

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from quiz_portal.constants.network_constants import (
    BACKEND_REQUEST_TIMEOUT_SECONDS,
    DEFAULT_BACKEND_URL,
    DEFAULT_HOST,
    DEFAULT_PORT,
)

ENV_PREFIX = "QUIZ_PORTAL_"


class PortalSettings(BaseSettings):
    """Validated settings for the web server and the backend client."""

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    host: str = DEFAULT_HOST
    port: int = Field(default=DEFAULT_PORT, ge=1, le=65535)
    backend_url: str = DEFAULT_BACKEND_URL
    request_timeout: float = Field(default=BACKEND_REQUEST_TIMEOUT_SECONDS, gt=0)
    log_level: str = "INFO"

    @field_validator("backend_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        cleaned = value.strip().rstrip("/")
        if not cleaned.startswith(("http://", "https://")):
            raise ValueError("Backend URL must start with http:// or https://")
        return cleaned

    @field_validator("log_level")
    @classmethod
    def _normalize_level(cls, value: str) -> str:
        return value.strip().upper()
