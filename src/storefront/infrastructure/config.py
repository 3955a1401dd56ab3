"""Runtime settings, read from the environment (prefix ``STOREFRONT_``).

Business windows (return window, auto-complete delay) are domain
constants, not settings.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):

    model_config = SettingsConfigDict(env_prefix="STOREFRONT_", env_file=".env", extra="ignore")

    database_url: str = Field(
        default="sqlite:///data/storefront.db",
        description="SQLAlchemy URL of the order store",
    )
    download_fetch_timeout: float = Field(
        default=30.0,
        gt=0,
        description="Seconds to wait for the file origin before giving up",
    )
    download_link_ttl_days: int = Field(
        default=30,
        gt=0,
        description="Lifetime of a newly issued download token",
    )
    notifier_webhook_url: str | None = Field(
        default=None,
        description="Email service endpoint; events are only logged when unset",
    )
    public_base_url: str = Field(
        default="http://localhost:8000",
        description="Prefix for download links handed to customers",
    )

    log_level: str = Field(default="INFO")
    log_json: bool = Field(default=False, description="Render logs as JSON lines")

    http_host: str = Field(default="127.0.0.1")
    http_port: int = Field(default=8000)


@lru_cache
def get_settings() -> Settings:
    return Settings()
