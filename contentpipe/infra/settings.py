"""Runtime settings for contentpipe.

Values are read from ``CONTENTPIPE_*`` environment variables (and a ``.env``
file loaded at package import).
"""

from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Process-wide defaults for the codec, the drivers and logging."""

    model_config = SettingsConfigDict(env_prefix="CONTENTPIPE_", extra="ignore")

    max_response_size: int = 1024 * 1024
    strict_parsing: bool = False
    request_timeout: float = 60.0
    log_level: str = "WARNING"
    log_json: bool = False


settings = Settings()
