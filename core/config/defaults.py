# ============================================================================
# CONFIGURATION DEFAULTS
# ============================================================================
# STATUS: Core - Default configuration values
# PURPOSE: Centralized defaults for query rendering, database access, logging
# ============================================================================
"""
Configuration Defaults

Provides sensible defaults for the data layer.
These can be overridden via environment variables.

Design:
- Immutable dataclasses for defaults
- Environment variable overrides
- Type-safe access
"""

import os
from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class QueryDefaults:
    """
    Defaults for SQL rendering.

    Controls the bind-parameter naming convention and predicate suffixes.
    """
    # Every bound parameter is named <prefix><column or predicate>
    parameter_prefix: str = "p_"

    # Range predicates: "<column>__from" -> >=, "<column>__to" -> <=
    range_from_suffix: str = "__from"
    range_to_suffix: str = "__to"

    # Alias of the queried table; joined tables are <base>_1, <base>_2, ... by column position
    base_alias: str = "t0"

    @classmethod
    def from_env(cls) -> "QueryDefaults":
        """Create from environment variables."""
        return cls(
            parameter_prefix=os.getenv("SCAFFOLD_PARAMETER_PREFIX", "p_"),
        )


def _build_connection_string() -> str:
    """
    Get database connection string from environment.

    Priority:
    1. DATABASE_URL environment variable
    2. Individual POSTGRES_* components
    """
    if url := os.environ.get("DATABASE_URL"):
        return url

    host = os.environ.get("POSTGRES_HOST", "localhost")
    port = os.environ.get("POSTGRES_PORT", "5432")
    name = os.environ.get("POSTGRES_DB", "postgres")
    user = os.environ.get("POSTGRES_USER", "postgres")
    password = os.environ.get("POSTGRES_PASSWORD", "")
    sslmode = os.environ.get("POSTGRES_SSLMODE", "prefer")

    return f"postgresql://{user}:{password}@{host}:{port}/{name}?sslmode={sslmode}"


@dataclass(frozen=True)
class DatabaseDefaults:
    """
    Defaults for the PostgreSQL collaborator.

    Timeouts are enforced by the server; the data layer only forwards them.
    """
    connection_string: str = "postgresql://postgres@localhost:5432/postgres"
    schema_name: str = "public"
    connect_timeout_seconds: int = 10
    statement_timeout_ms: int = 0  # 0 = unlimited

    @classmethod
    def from_env(cls) -> "DatabaseDefaults":
        """Create from environment variables."""
        return cls(
            connection_string=_build_connection_string(),
            schema_name=os.getenv("POSTGRES_SCHEMA", "public"),
            connect_timeout_seconds=int(os.getenv("DB_CONNECT_TIMEOUT", 10)),
            statement_timeout_ms=int(os.getenv("DB_STATEMENT_TIMEOUT_MS", 0)),
        )


@dataclass(frozen=True)
class LoggingDefaults:
    """Defaults for log output."""
    level: str = "INFO"
    json_output: bool = False

    @classmethod
    def from_env(cls) -> "LoggingDefaults":
        """Create from environment variables."""
        return cls(
            level=os.getenv("LOG_LEVEL", "INFO"),
            json_output=os.getenv("LOG_FORMAT", "").lower() == "json",
        )


# ============================================================================
# GLOBAL DEFAULTS INSTANCE
# ============================================================================

@dataclass
class Defaults:
    """Container for all default configurations."""
    query: QueryDefaults = field(default_factory=QueryDefaults)
    database: DatabaseDefaults = field(default_factory=DatabaseDefaults)
    logging: LoggingDefaults = field(default_factory=LoggingDefaults)

    @classmethod
    def from_env(cls) -> "Defaults":
        """Create all defaults from environment variables."""
        return cls(
            query=QueryDefaults.from_env(),
            database=DatabaseDefaults.from_env(),
            logging=LoggingDefaults.from_env(),
        )


_defaults: Optional[Defaults] = None


def get_defaults() -> Defaults:
    """Get global defaults instance."""
    global _defaults
    if _defaults is None:
        _defaults = Defaults.from_env()
    return _defaults


def reset_defaults() -> None:
    """Reset defaults (for testing)."""
    global _defaults
    _defaults = None


__all__ = [
    "QueryDefaults",
    "DatabaseDefaults",
    "LoggingDefaults",
    "Defaults",
    "get_defaults",
    "reset_defaults",
]
