"""
Application configuration via pydantic-settings.

All settings are loaded from environment variables (and .env file).
"""

from __future__ import annotations

from typing import Optional

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class CouchDBSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    couchdb_url: str = "http://localhost:5984"
    couchdb_timeout_seconds: float = 10.0


class BillingSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # One usage charge per this many prompts above the free tier
    billing_batch_size: int = 100
    billing_window_days: int = 30

    shopify_api_version: str = "2024-01"
    shopify_timeout_seconds: float = 10.0


class GeoIPSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    geoip_country_db: str = "misc/GeoLite2-Country.mmdb"
    # Requests from loopback addresses resolve to this country
    geoip_localhost_country: str = "US"


class LoggingSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    log_level: str = "INFO"
    log_format: str = "console"  # "json" in production


class SentrySettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    sentry_dsn: str = ""
    sentry_send_pii: bool = False
    sentry_traces_sample_rate: float = 0.1


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    env: str = "development"
    # Database names are derived from the snake_cased app name
    app_name: str = "Geodirect"

    cors_origins: list[str] = ["*"]

    # OpenAPI docs URL (None disables the docs UI; production never serves it)
    docs_url: Optional[str] = "/docs"

    couchdb: Optional[CouchDBSettings] = None
    billing: Optional[BillingSettings] = None
    geoip: Optional[GeoIPSettings] = None
    logging: Optional[LoggingSettings] = None
    sentry: Optional[SentrySettings] = None

    @model_validator(mode="after")
    def _populate_sub_configs(self) -> "AppSettings":
        if self.couchdb is None:
            self.couchdb = CouchDBSettings()
        if self.billing is None:
            self.billing = BillingSettings()
        if self.geoip is None:
            self.geoip = GeoIPSettings()
        if self.logging is None:
            self.logging = LoggingSettings()
        if self.sentry is None:
            self.sentry = SentrySettings()
        return self

    @property
    def is_production(self) -> bool:
        return self.env == "production"
