"""
Startup Bootloader.

Validates configuration and brings the Cassandra store up before the API
accepts traffic. Used by:
1. Application startup (main.py lifespan)
2. scripts/reset_db.py (config check + connect)
"""

import os
import sys
from dataclasses import dataclass
from pathlib import Path

from trace_docs.config import Settings, settings
from trace_docs.database import StoreClient
from trace_docs.errors import StoreConnectionError
from trace_docs.logger import get_logger

logger = get_logger(__name__)


@dataclass
class ConfigIssue:
    field: str
    message: str


class Bootloader:
    """Handles configuration validation and store startup."""

    @staticmethod
    def check_config(config: Settings = settings) -> list[ConfigIssue]:
        """Static configuration problems. Empty when the config is usable."""
        issues: list[ConfigIssue] = []

        if config.cassandra_mode == "astra":
            if not Path(config.astra_secure_bundle_path).is_file():
                issues.append(
                    ConfigIssue(
                        "astra_secure_bundle_path",
                        f"Secure connect bundle not found at {config.astra_secure_bundle_path}",
                    )
                )
            if not config.astra_client_id or not config.astra_client_secret:
                issues.append(ConfigIssue("astra_client_id", "ASTRA_CLIENT_ID and ASTRA_CLIENT_SECRET are required"))
            if not config.astra_keyspace:
                issues.append(ConfigIssue("astra_keyspace", "ASTRA_KEYSPACE is required"))
        elif not config.cassandra_contact_points:
            issues.append(ConfigIssue("cassandra_contact_points", "IPS_CLUSTER must list at least one host"))

        if config.default_page_size > config.max_page_size:
            issues.append(ConfigIssue("default_page_size", "default_page_size exceeds max_page_size"))

        return issues

    @staticmethod
    def validate_config(config: Settings = settings) -> None:
        """Exit the process when the static configuration is unusable."""
        issues = Bootloader.check_config(config)
        for issue in issues:
            logger.error("Configuration check failed", field=issue.field, error=issue.message)
        if issues:
            logger.critical("Static configuration check failed. Refusing to start.")
            sys.exit(1)
        logger.info("Configuration check passed", mode=config.cassandra_mode)

    @staticmethod
    async def start_store(store: StoreClient) -> None:
        """Connect (with retry) and make sure the schema exists.

        Any failure here is fatal: the process exits with status 1.
        """
        try:
            await store.connect()
            await store.ensure_schema()
        except StoreConnectionError as e:
            logger.critical(
                "Could not connect to Cassandra. Application cannot start.",
                attempts=e.attempts,
                error=str(e.__cause__ or e),
            )
            await store.shutdown()
            sys.exit(1)
        except Exception as e:
            logger.critical(
                "Cassandra startup failed. Application cannot start.",
                error=str(e),
                error_type=type(e).__name__,
            )
            await store.shutdown()
            sys.exit(1)

        logger.info("Store ready", keyspace=store.keyspace, table=store.table)

    @staticmethod
    def print_config(config: Settings = settings) -> None:
        """Print loaded configuration if DEBUG is enabled."""
        if os.getenv("DEBUG", "").lower() not in ("true", "1", "yes"):
            return

        print("\n" + "=" * 60)
        print("Config loaded (DEBUG mode)")
        print("=" * 60)

        # Safe fields - values can be displayed in full (non-sensitive)
        safe_fields = [
            "environment",
            "app_host",
            "app_port",
            "api_prefix",
            "cassandra_mode",
            "cassandra_contact_points",
            "cassandra_datacenter",
            "keyspace",
            "cassandra_consistency",
            "connect_max_attempts",
            "connect_retry_delay_seconds",
            "otel_exporter_otlp_endpoint",
        ]

        # Sensitive fields - only show "set"/"not set" status
        sensitive_fields = [
            "astra_client_id",
            "astra_client_secret",
        ]

        for field in safe_fields:
            value = getattr(config, field, None)
            if value is not None:
                print(f"  {field}: {value}")

        print("")
        for field in sensitive_fields:
            value = getattr(config, field, None)
            status = "set" if value else "not set"
            print(f"  {field}: {status}")

        print("=" * 60 + "\n")
