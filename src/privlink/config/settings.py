"""
Application settings using Pydantic.

Provides environment-based configuration loading with PRIVLINK_ prefix.
Handler parameters set here act as defaults; ResourceProperties on the
event take precedence.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings."""

    # AWS
    aws_region: str = "us-east-1"

    # Environment
    environment: str = "development"
    log_level: str = "INFO"

    # Which handler the generic entrypoint runs
    handler: str | None = None

    # Polling
    poll_interval_seconds: float = 5.0
    poll_max_attempts: int | None = None  # None polls until the Lambda deadline
    tolerate_poll_errors: bool = False

    # Callback delivery
    response_timeout: float = 30.0

    # Observability
    metrics_enabled: bool = True
    metrics_namespace: str = "Privlink"
    xray_enabled: bool = False

    # Private DNS verification
    service_id: str | None = None
    dns_name: str | None = None
    hosted_zone_id: str | None = None
    dns_record_ttl: int = 300

    # Trust store
    trust_store_name: str | None = None
    trust_store_bucket: str | None = None
    trust_store_key: str | None = None

    # Target registration
    vpce_id: str | None = None
    target_group_arn: str | None = None

    # Endpoint policy
    api_url: str | None = None
    account_id: str | None = None

    # Authorizer
    api_key_secret_id: str | None = None

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        env_prefix = "PRIVLINK_"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
