"""Application configuration using Pydantic Settings.

Environment Variable Strategy:
- Names follow the deployment's existing variables (IPS_CLUSTER, DATACENTER, ASTRA_*, PREFIX_API)
- Every field has a development default so a local Cassandra container works out of the box
- Astra (cloud) mode needs the secure bundle and client credentials, checked at boot
"""

from functools import cached_property
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def parse_comma_list(value: str | list[str] | None, default: list[str]) -> list[str]:
    """Parse comma-separated string into list."""
    if value is None:
        return default
    if isinstance(value, list):
        return value
    return [item.strip() for item in value.split(",") if item.strip()]


def parse_key_value_pairs(value: str | None) -> dict[str, str]:
    """Parse comma-separated key=value pairs into a dict."""
    if not value:
        return {}
    pairs: dict[str, str] = {}
    for item in value.split(","):
        item = item.strip()
        if not item or "=" not in item:
            continue
        key, raw_value = item.split("=", 1)
        key = key.strip()
        raw_value = raw_value.strip()
        if key and raw_value:
            pairs[key] = raw_value
    return pairs


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ================================================================
    # App
    # ================================================================

    environment: str = Field(
        default="development", validation_alias=AliasChoices("ENVIRONMENT", "NODE_ENV")
    )
    debug: bool = False
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    app_host: str = Field(default="0.0.0.0", validation_alias="APP_HOST")
    app_port: int = Field(default=3300, validation_alias="PORT_API")
    api_prefix: str = Field(default="", validation_alias="PREFIX_API")

    # Env format: ALLOWED_ORIGINS="http://localhost:3000,http://localhost:3001"
    cors_origins_str: str | None = Field(default=None, validation_alias="ALLOWED_ORIGINS")

    # ================================================================
    # Cassandra
    # ================================================================

    cassandra_mode: Literal["local", "astra"] = Field(default="local", validation_alias="CASSANDRA_MODE")
    cassandra_contact_points_str: str = Field(default="localhost", validation_alias="IPS_CLUSTER")
    cassandra_port: int = Field(default=9042, validation_alias="CASSANDRA_PORT")
    cassandra_datacenter: str = Field(default="datacenter1", validation_alias="DATACENTER")
    cassandra_keyspace: str = Field(default="trace_tracker", validation_alias="CASSANDRA_KEYSPACE")
    cassandra_consistency: str = Field(default="LOCAL_ONE", validation_alias="CASSANDRA_CONSISTENCY")
    cassandra_request_timeout: float = Field(default=10.0, validation_alias="CASSANDRA_REQUEST_TIMEOUT")

    # DataStax Astra (cloud)
    astra_secure_bundle_path: str = Field(
        default="./secure-connect-db-trace-tracker.zip",
        validation_alias="ASTRA_SECURE_BUNDLE_PATH",
    )
    astra_client_id: str = Field(default="", validation_alias="ASTRA_CLIENT_ID")
    astra_client_secret: str = Field(default="", validation_alias="ASTRA_CLIENT_SECRET")
    astra_keyspace: str = Field(default="trace_tracker", validation_alias="ASTRA_KEYSPACE")

    # Startup connection retry (NoHostAvailable only)
    connect_max_attempts: int = Field(default=10, ge=1, validation_alias="CONNECT_MAX_ATTEMPTS")
    connect_retry_delay_seconds: float = Field(default=5.0, ge=0, validation_alias="CONNECT_RETRY_DELAY_SECONDS")

    # ================================================================
    # Query limits
    # ================================================================

    default_page_size: int = 100
    max_page_size: int = 1000
    # Per-value row cap for batch lookups, which are never paginated
    batch_fetch_size: int = 1000
    max_batch_lookup: int = 50

    # ================================================================
    # Observability (optional)
    # ================================================================

    otel_exporter_otlp_endpoint: str | None = Field(
        default=None,
        validation_alias="OTEL_EXPORTER_OTLP_ENDPOINT",
    )
    otel_service_name: str = Field(
        default="data-docs-api",
        validation_alias="OTEL_SERVICE_NAME",
    )
    otel_resource_attributes: str | None = Field(
        default=None,
        validation_alias="OTEL_RESOURCE_ATTRIBUTES",
    )

    @cached_property
    def cors_origins(self) -> list[str]:
        """Parse CORS origins from env string or use defaults."""
        return parse_comma_list(self.cors_origins_str, ["http://localhost:3000"])

    @cached_property
    def cassandra_contact_points(self) -> list[str]:
        return parse_comma_list(self.cassandra_contact_points_str, ["localhost"])

    @property
    def keyspace(self) -> str:
        """Keyspace holding the documents table for the active mode."""
        if self.cassandra_mode == "astra":
            return self.astra_keyspace
        return self.cassandra_keyspace


settings = Settings()
