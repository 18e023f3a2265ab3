"""Oracle database adapter.

Uses ``oracledb`` (python-oracledb), the modern Oracle DB driver that
supersedes ``cx_Oracle``.  Oracle uses **numeric** (``:1``, ``:2``)
placeholder style, which the driver binds directly.

Install the driver::

    pip install dataquery[oracle]

This adapter is import-guarded: if ``oracledb`` is not installed a
clear :class:`~dataquery.errors.ConfigError` is raised at
``connect()`` time.
"""

from __future__ import annotations

from typing import Any

from dataquery.errors import ConfigError, DatabaseConnectionError
from dataquery.logging import get_logger
from dataquery.protocols import Connection

from .base import DatabaseAdapter
from .types import DatabaseConfig, DatabaseType

logger = get_logger(__name__)


class OracleAdapter(DatabaseAdapter):
    """Oracle database adapter.

    Uses an ``oracledb`` session pool sized by ``min_conns``/``max_conns``.
    """

    def __init__(
        self,
        host: str = "localhost",
        port: int = 1521,
        database: str = "",  # service name
        username: str | None = None,
        password: str | None = None,
        *,
        min_conns: int = 1,
        max_conns: int = 5,
        config: DatabaseConfig | None = None,
        **kwargs: Any,
    ):
        config = config or DatabaseConfig(
            db_type=DatabaseType.ORACLE,
            host=host,
            port=port,
            database=database,
            username=username,
            password=password,
            min_conns=min_conns,
            max_conns=max_conns,
            options=kwargs,
        )
        super().__init__(config)
        self._pool: Any = None

    def connect(self) -> None:
        """Create the session pool."""
        try:
            import oracledb
        except ImportError:
            raise ConfigError(
                "oracledb is required for Oracle. Install with: pip install dataquery[oracle]"
            ) from None

        try:
            dsn = oracledb.makedsn(
                self._config.host,
                self._config.effective_port,
                service_name=self._config.database,
            )
            self._pool = oracledb.create_pool(
                user=self._config.username,
                password=self._config.password,
                dsn=dsn,
                min=self._config.min_conns,
                max=self._config.max_conns,
                increment=1,
                **self._config.options,
            )
            self._connected = True
            logger.debug("adapter_connected", db_type="oracle", host=self._config.host)
        except oracledb.Error as e:
            raise DatabaseConnectionError(
                f"Failed to connect to Oracle: {e}",
                cause=e,
            ) from e

    def disconnect(self) -> None:
        """Close Oracle connection pool."""
        if self._pool:
            self._pool.close()
            self._pool = None
            self._connected = False
            logger.debug("adapter_disconnected", db_type="oracle")

    def acquire(self) -> Connection:
        if not self._pool:
            self.connect()
        return self._pool.acquire()

    def release(self, conn: Connection) -> None:
        if self._pool:
            self._pool.release(conn)


__all__ = [
    "OracleAdapter",
]
