"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

from relay_broker.adapters.midtrans_client import SANDBOX_SNAP_URL

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    credential_secret: str
    credential_ttl_seconds: int = 3600
    transaction_ttl_seconds: int = 600
    relay_session_ttl_seconds: int = 600
    midtrans_server_key: str
    midtrans_snap_url: str = SANDBOX_SNAP_URL
    payer_email_domain: str = "example.com"
    host: str = "0.0.0.0"
    port: int = 8080
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )
