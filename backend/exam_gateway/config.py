"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All deployment values come from environment variables (never hardcoded)
    - get_settings() is cached (lru_cache) — single instance per process
    - validate_deployment() runs once at startup; a missing bucket or broker fails fast

Design Decisions:
    - BUCKET_NAME has no default: an unset bucket is a deployment fault, not a request fault
    - Defaults provided for all other settings: works out-of-the-box with docker-compose
"""

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from exam_gateway.core.domain_types import Environment
from exam_gateway.core.errors import ConfigurationError


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Service
    service_name: str = "exam-gateway"
    host: str = "0.0.0.0"
    port: int = 8080
    deployment_environment: Environment = Environment.DEV

    # Object store (any S3-compatible endpoint)
    bucket_name: str | None = None
    s3_endpoint_url: str | None = None
    s3_region: str | None = None
    object_key_unique_suffix: bool = False

    # Messaging
    kafka_bootstrap_servers: str = "localhost:9092"
    kafka_client_id: str = "exam-gateway"
    kafka_request_timeout_ms: int = 30_000

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"

    @field_validator("bucket_name", "s3_endpoint_url", "s3_region", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        """Treat BUCKET_NAME= (empty) the same as unset."""
        if isinstance(v, str) and not v.strip():
            return None
        return v


def validate_deployment(settings: Settings) -> None:
    """Fail fast on settings every request depends on."""
    if not settings.bucket_name:
        raise ConfigurationError("BUCKET_NAME")
    if not settings.kafka_bootstrap_servers.strip():
        raise ConfigurationError("KAFKA_BOOTSTRAP_SERVERS")


@lru_cache
def get_settings() -> Settings:
    return Settings()
