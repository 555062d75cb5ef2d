"""
Application settings.

Values are read from the environment (or a local .env file) and cached,
so importing this module never touches the store or the network.
"""

import functools

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """MATLYNX configuration."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    APP_NAME: str = "MATLYNX"

    # memory://, file://<dir>, redis://host:port/db
    STORE_URL: str = "file://.matlynx"

    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    SESSION_COOKIE_NAME: str = "matlynx_sid"
    SESSION_COOKIE_SECURE: bool = False
    CORS_ORIGINS: list[str] = ["*"]

    HOST: str = "0.0.0.0"
    PORT: int = 8000

    PROFILE_PHOTO_MAX_BYTES: int = 500 * 1024
    MATERIAL_IMAGE_MAX_BYTES: int = 2 * 1024 * 1024


@functools.lru_cache()
def get_settings() -> Settings:
    """Get settings (cached)."""
    return Settings()
