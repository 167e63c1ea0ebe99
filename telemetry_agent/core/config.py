"""
Application configuration using pydantic-settings.

All settings are loaded from environment variables or .env file.
Variable names are kept compatible with existing agent deployments::

    INFLUXDB_URL=http://influxdb:8086
    INFLUXDB_TOKEN=...
    MIKROTIK_USER=monitor
    ROUTER_HOSTS=10.0.0.1,10.0.0.2
"""
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL

from telemetry_agent.core.enums import UnknownFieldPolicy
from telemetry_agent.core.exceptions import ConfigError


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Time-series sink (InfluxDB 2.x)
    influxdb_url: str = Field(default="", description="InfluxDB base URL")
    influxdb_token: str = Field(default="", description="InfluxDB API token")
    influxdb_org: str = Field(default="", description="InfluxDB organization")
    influxdb_bucket: str = Field(default="", description="InfluxDB bucket")
    influxdb_timeout_ms: int = Field(
        default=10_000,
        description="HTTP timeout for one batch write, in milliseconds",
    )

    # Device API (RouterOS)
    mikrotik_api_port: int = Field(default=8728, description="RouterOS API port")
    mikrotik_user: str = Field(default="", description="RouterOS API user")
    mikrotik_password: str = Field(default="", description="RouterOS API password")
    mikrotik_use_ssl: bool = Field(
        default=False,
        description="Use api-ssl (TLS) instead of the plain API service",
    )

    # Device registry (PostgreSQL)
    db_host: str = Field(default="", description="Registry DB host")
    db_port: int = Field(default=5432, description="Registry DB port")
    db_user: str = Field(default="", description="Registry DB user")
    db_password: str = Field(default="", description="Registry DB password")
    db_database: str = Field(default="", description="Registry DB name")
    db_driver: str = Field(
        default="postgresql+asyncpg",
        description="SQLAlchemy async driver name",
    )
    db_url: str = Field(
        default="",
        description="Full SQLAlchemy URL; overrides the DB_* parts when set",
    )
    router_hosts: str = Field(
        default="",
        description="Comma-separated fallback list of router addresses",
    )

    # Scheduling
    polling_interval_seconds: int = Field(
        default=60,
        gt=0,
        description="Seconds between two collection cycles",
    )
    connect_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Deadline for opening one device session",
    )
    command_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Deadline for one device command",
    )
    parallel_collection: bool = Field(
        default=True,
        description="Poll devices concurrently (False: one after another)",
    )
    max_concurrent_devices: int = Field(
        default=20,
        gt=0,
        description="Upper bound on simultaneously open device sessions",
    )

    # Normalization
    unknown_field_policy: UnknownFieldPolicy = Field(
        default=UnknownFieldPolicy.WRITE,
        description="What to do with fields that no table classifies",
    )
    field_tables_path: str = Field(
        default="",
        description="Alternative YAML file with field classification tables",
    )

    # Logging
    log_level: str = Field(default="INFO", description="Root log level")
    log_to_db: bool = Field(
        default=False,
        description="Also store collection warnings/errors in system_logs",
    )

    @property
    def router_host_list(self) -> list[str]:
        """Parse ROUTER_HOSTS into a list, dropping blanks."""
        return [h.strip() for h in self.router_hosts.split(",") if h.strip()]

    @property
    def registry_configured(self) -> bool:
        """True when a registry database can be reached."""
        if self.db_url:
            return True
        return bool(self.db_host and self.db_user and self.db_database)

    @property
    def database_url(self) -> str:
        """Build the async registry database URL."""
        if self.db_url:
            return self.db_url
        return URL.create(
            self.db_driver,
            username=self.db_user,
            password=self.db_password or None,
            host=self.db_host,
            port=self.db_port,
            database=self.db_database,
        ).render_as_string(hide_password=False)

    def missing_required(self) -> list[str]:
        """Names of required variables that are not set."""
        missing = [
            name.upper()
            for name in (
                "influxdb_url",
                "influxdb_token",
                "influxdb_org",
                "influxdb_bucket",
                "mikrotik_user",
            )
            if not getattr(self, name)
        ]
        if not self.registry_configured and not self.router_host_list:
            missing.append("DB_HOST/DB_USER/DB_DATABASE or ROUTER_HOSTS")
        return missing

    def validate_required(self) -> None:
        """
        Fail fast when the agent cannot possibly run.

        Raises:
            ConfigError: listing every missing variable.
        """
        missing = self.missing_required()
        if missing:
            raise ConfigError(
                "Missing required configuration: " + ", ".join(missing)
            )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance (Singleton pattern)."""
    return Settings()
