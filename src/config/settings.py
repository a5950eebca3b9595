# src/config/settings.py
# This file provides centralized configuration management for the probe service
# Every setting comes from an environment variable with a sensible default,
# so the same image can point at a local database or a staging cluster.

import os
from dataclasses import dataclass, field

# dataclass generates __init__/__repr__ for classes that just hold values.
# Defaults are read from the environment once, when this module is imported.


@dataclass
class DatabaseConfig:
    """
    Database and connection pool settings.

    Access them as settings.db.host, settings.db.max_connections, etc.
    """
    # Where the PostgreSQL server lives
    host: str = os.getenv("DB_HOST", "localhost")
    port: int = int(os.getenv("DB_PORT", "5432"))
    name: str = os.getenv("DB_NAME", "app_db")
    user: str = os.getenv("DB_USER", "app_user")
    password: str = os.getenv("DB_PASSWORD", "super_secret_password")

    # Pool bounds
    # max_connections is the number of slots the probes compete for
    min_connections: int = int(os.getenv("DB_POOL_MIN", "2"))
    max_connections: int = int(os.getenv("DB_POOL_MAX", "10"))

    # How long (seconds) a request waits for a free pool slot
    # After this, acquisition fails with PoolTimeoutError
    connection_timeout: float = float(os.getenv("DB_CONNECTION_TIMEOUT", "30"))

    # libpq connect timeout for opening a new physical connection
    connect_timeout: int = int(os.getenv("DB_CONNECT_TIMEOUT", "5"))

    # Shows up in pg_stat_activity.application_name, handy when spotting
    # our "idle in transaction" sessions
    application_name: str = os.getenv("DB_APPLICATION_NAME", "pool-probe")


@dataclass
class ProbeConfig:
    """
    Defaults for the probe endpoints.
    """
    # Used by /test/hold-tx and /test/hold-conn when holdSec is omitted
    default_hold_sec: int = int(os.getenv("PROBE_DEFAULT_HOLD_SEC", "30"))


@dataclass
class AppConfig:
    """
    Application-level configuration.
    """
    # Environment: development, staging, production
    environment: str = os.getenv("ENVIRONMENT", "development")

    # Log level: DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    # Where the API server listens
    api_host: str = os.getenv("API_HOST", "0.0.0.0")
    api_port: int = int(os.getenv("API_PORT", "8000"))

    # Debug mode - dev only
    debug: bool = os.getenv("DEBUG", "false").lower() == "true"

    # How often the background collector refreshes pool gauges (seconds)
    metrics_collect_interval: int = int(os.getenv("METRICS_COLLECT_INTERVAL", "15"))


@dataclass
class Settings:
    """
    Main settings object holding every configuration group.

    Other modules import it and read values like:
    - settings.db.host
    - settings.probe.default_hold_sec
    - settings.app.api_port
    """
    db: DatabaseConfig = field(default_factory=DatabaseConfig)
    probe: ProbeConfig = field(default_factory=ProbeConfig)
    app: AppConfig = field(default_factory=AppConfig)

    def validate(self):
        """
        Validate configuration values.

        Raises:
            ValueError: describing the first invalid setting found
        """
        # Database settings
        if not self.db.host:
            raise ValueError("DB_HOST is required")
        if not (1 <= self.db.port <= 65535):
            raise ValueError(f"DB_PORT must be between 1 and 65535, got {self.db.port}")
        if not self.db.name:
            raise ValueError("DB_NAME is required")
        if not self.db.user:
            raise ValueError("DB_USER is required")

        # Pool bounds
        if self.db.min_connections < 0:
            raise ValueError(f"DB_POOL_MIN must be >= 0, got {self.db.min_connections}")
        if self.db.max_connections < 1:
            raise ValueError(f"DB_POOL_MAX must be >= 1, got {self.db.max_connections}")
        if self.db.min_connections > self.db.max_connections:
            raise ValueError(
                f"DB_POOL_MIN ({self.db.min_connections}) cannot exceed "
                f"DB_POOL_MAX ({self.db.max_connections})"
            )
        if self.db.connection_timeout < 0:
            raise ValueError(
                f"DB_CONNECTION_TIMEOUT must be >= 0, got {self.db.connection_timeout}"
            )

        # Probe defaults
        if self.probe.default_hold_sec < 0:
            raise ValueError(
                f"PROBE_DEFAULT_HOLD_SEC must be >= 0, got {self.probe.default_hold_sec}"
            )

        # App settings
        if self.app.environment not in ["development", "staging", "production"]:
            raise ValueError(f"ENVIRONMENT must be development, staging, or production, got {self.app.environment}")

        if self.app.log_level not in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
            raise ValueError(f"LOG_LEVEL must be DEBUG, INFO, WARNING, ERROR, or CRITICAL, got {self.app.log_level}")

        if not (1 <= self.app.api_port <= 65535):
            raise ValueError(f"API_PORT must be between 1 and 65535, got {self.app.api_port}")


# One settings object for the whole process
settings = Settings()

# Validate on import so a bad environment fails before the server starts
try:
    settings.validate()
except ValueError as e:
    raise RuntimeError(f"Invalid configuration: {e}") from e
