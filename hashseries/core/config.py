"""Configuration management for hashseries."""

from functools import lru_cache
from pathlib import Path
from urllib.parse import urlparse

from pydantic import PositiveFloat, PositiveInt, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # TMDB
    tmdb_api_key: str

    # Google Drive metadata API (probing is skipped when unset)
    google_drive_api_key: str | None = None

    # Session cookies for the content site, JSON list of {"name", "value"}
    cookie_data: str = "[]"
    cookie_file: Path | None = None

    # Content site
    site_url: str = "https://cineru.lk"

    # Pipeline settings
    batch_size: PositiveInt = 4  # Episodes resolved concurrently per batch

    # Timeouts in seconds
    listing_timeout: PositiveFloat = 10
    episode_page_timeout: PositiveFloat = 5
    ajax_timeout: PositiveFloat = 5
    probe_timeout: PositiveFloat = 3
    catalog_timeout: PositiveFloat = 10
    episode_timeout: PositiveFloat = 20  # Whole-episode deadline

    # Network settings
    # Proxy configuration in the format http://host:port or socks5://host:port
    proxy: str | None = None

    @field_validator("proxy")
    @classmethod
    def validate_proxy(cls, v: str | None) -> str | None:
        if v is None:
            return v

        parsed = urlparse(v)
        if parsed.scheme not in ("http", "https", "socks4", "socks5", "socks5h"):
            raise ValueError(
                "Proxy must be a valid URL with scheme http/https/socks4/socks5/socks5h"
            )
        if not parsed.netloc:
            raise ValueError("Proxy must have a host and port")
        return v

    @field_validator("site_url")
    @classmethod
    def validate_site_url(cls, v: str) -> str:
        parsed = urlparse(v)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError("Site URL must be an absolute http(s) URL")
        return f"{parsed.scheme}://{parsed.netloc}"

    # App settings
    host: str = "0.0.0.0"
    port: PositiveInt = 8000
    debug: bool = False
    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
