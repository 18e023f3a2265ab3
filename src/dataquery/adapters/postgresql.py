"""PostgreSQL database adapter.

Uses ``psycopg2`` with a ``ThreadedConnectionPool``.  The PostgreSQL
dialect speaks ``$1, $2 …``; psycopg2 only understands ``%s``, so
:meth:`PostgreSQLAdapter.prepare` rewrites numbered placeholders into
positional ones (duplicating parameters a statement references twice)
and escapes literal ``%``.

Install the driver::

    pip install dataquery[postgresql]

This adapter is import-guarded: if ``psycopg2`` is not installed a
clear :class:`~dataquery.errors.ConfigError` is raised at ``connect()``.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from typing import Any

from dataquery.errors import ConfigError, DatabaseConnectionError
from dataquery.logging import get_logger
from dataquery.protocols import Connection

from .base import DatabaseAdapter
from .types import DatabaseConfig, DatabaseType

logger = get_logger(__name__)

# numbered placeholder, or a quoted literal to skip over
_TOKEN_RE = re.compile(r"'(?:[^']|'')*'|\"(?:[^\"]|\"\")*\"|\$(\d+)|%")


def translate_numbered(sql: str) -> tuple[str, list[int]]:
    """Rewrite ``$N`` into ``%s``; returns the new SQL and the 0-based parameter order.

    Literal ``%`` becomes ``%%`` everywhere, psycopg2 formats the whole text.
    """
    order: list[int] = []

    def _replace(match: re.Match[str]) -> str:
        token = match.group(0)
        if token == "%":
            return "%%"
        if match.group(1) is not None:
            order.append(int(match.group(1)) - 1)
            return "%s"
        return token.replace("%", "%%")

    return _TOKEN_RE.sub(_replace, sql), order


class PostgreSQLAdapter(DatabaseAdapter):
    """
    PostgreSQL database adapter.

    Pool sizing comes from ``min_conns``/``max_conns``.  Suitable for
    production deployments.
    """

    def __init__(
        self,
        host: str = "localhost",
        port: int = 5432,
        database: str = "",
        username: str | None = None,
        password: str | None = None,
        *,
        min_conns: int = 1,
        max_conns: int = 10,
        config: DatabaseConfig | None = None,
        **kwargs: Any,
    ):
        config = config or DatabaseConfig(
            db_type=DatabaseType.POSTGRESQL,
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
        """Create the connection pool."""
        try:
            import psycopg2
            import psycopg2.pool
        except ImportError:
            raise ConfigError(
                "psycopg2 is required for PostgreSQL. Install with: pip install dataquery[postgresql]"
            ) from None

        try:
            self._pool = psycopg2.pool.ThreadedConnectionPool(
                minconn=self._config.min_conns,
                maxconn=self._config.max_conns,
                host=self._config.host,
                port=self._config.effective_port,
                dbname=self._config.database,
                user=self._config.username,
                password=self._config.password,
                connect_timeout=self._config.connect_timeout,
                **self._config.options,
            )
            self._connected = True
            logger.debug(
                "adapter_connected",
                db_type="postgresql",
                host=self._config.host,
                database=self._config.database,
            )
        except psycopg2.Error as e:
            raise DatabaseConnectionError(
                f"Failed to connect to PostgreSQL: {e}",
                cause=e,
            ) from e

    def disconnect(self) -> None:
        """Close PostgreSQL connection pool."""
        if self._pool:
            self._pool.closeall()
            self._pool = None
            self._connected = False
            logger.debug("adapter_disconnected", db_type="postgresql")

    def acquire(self) -> Connection:
        """Get connection from pool."""
        if not self._pool:
            self.connect()
        return self._pool.getconn()

    def release(self, conn: Connection) -> None:
        """Return connection to pool (an open transaction is rolled back by the pool)."""
        if self._pool:
            self._pool.putconn(conn)

    def prepare(self, sql: str, params: Sequence[Any]) -> tuple[str, Any]:
        if not params:
            return sql, None
        pg_sql, order = translate_numbered(sql)
        return pg_sql, tuple(params[i] for i in order)

    def prepare_many(
        self, sql: str, param_rows: Sequence[Sequence[Any]]
    ) -> tuple[str, list[Any]]:
        pg_sql, order = translate_numbered(sql)
        return pg_sql, [tuple(row[i] for i in order) for row in param_rows]


__all__ = [
    "PostgreSQLAdapter",
    "translate_numbered",
]
