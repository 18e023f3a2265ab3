"""Store types and driver configuration."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from dataquery.errors import ConfigError

if TYPE_CHECKING:
    from dataquery.settings import DataQuerySettings


class DatabaseType(str, Enum):
    """Supported store types."""

    SQLITE = "sqlite"
    POSTGRESQL = "postgresql"
    DUCKDB = "duckdb"
    ORACLE = "oracle"


_ALIASES = {"postgres": "postgresql"}

_DEFAULT_PORTS = {
    DatabaseType.POSTGRESQL: 5432,
    DatabaseType.ORACLE: 1521,
}


@dataclass
class DatabaseConfig:
    """
    Opaque connection values handed to the driver at connect time.

    Different fields are used by different store types.
    """

    db_type: DatabaseType = DatabaseType.SQLITE

    # Embedded stores (SQLite, DuckDB)
    path: str | None = None

    # Server stores (PostgreSQL, Oracle)
    host: str = "localhost"
    port: int | None = None
    database: str = ""
    username: str | None = None
    password: str | None = None
    driver: str | None = None

    # Connection pool
    max_conns: int = 10
    min_conns: int = 1
    max_conn_lifetime: int | None = None
    max_conn_idle_time: int | None = None

    connect_timeout: int = 10
    readonly: bool = False

    # Extra options (driver-specific)
    options: dict[str, Any] = field(default_factory=dict)

    @property
    def effective_port(self) -> int | None:
        return self.port if self.port is not None else _DEFAULT_PORTS.get(self.db_type)

    @classmethod
    def from_settings(cls, settings: DataQuerySettings) -> DatabaseConfig:
        try:
            db_type = DatabaseType(_ALIASES.get(settings.store_type.lower(), settings.store_type.lower()))
        except ValueError:
            raise ConfigError(f"Unknown store type: {settings.store_type}") from None
        return cls(
            db_type=db_type,
            path=settings.path,
            host=settings.host,
            port=settings.port,
            database=settings.database,
            username=settings.user,
            password=settings.password,
            driver=settings.driver,
            max_conns=settings.max_conns,
            min_conns=settings.min_conns,
            max_conn_lifetime=settings.max_conn_lifetime,
            max_conn_idle_time=settings.max_conn_idle_time,
            connect_timeout=settings.connect_timeout,
        )

    def to_connection_string(self) -> str:
        """Connection string for the store type (credentials included)."""
        match self.db_type:
            case DatabaseType.SQLITE | DatabaseType.DUCKDB:
                return self.path or ":memory:"
            case DatabaseType.POSTGRESQL:
                return (
                    f"postgresql://{self.username}:{self.password}"
                    f"@{self.host}:{self.effective_port}/{self.database}"
                )
            case DatabaseType.ORACLE:
                return (
                    f"oracle://{self.username}:{self.password}"
                    f"@{self.host}:{self.effective_port}/{self.database}"
                )
            case _:
                raise ConfigError(f"Connection string not supported for: {self.db_type}")


__all__ = [
    "DatabaseType",
    "DatabaseConfig",
]
