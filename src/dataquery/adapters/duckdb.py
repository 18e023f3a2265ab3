"""DuckDB database adapter.

DuckDB binds ``$1, $2 …`` natively.  Its Python connections run in
autocommit mode, so :meth:`DuckDBAdapter.begin` opens the transaction
explicitly.

``DuckDBPyConnection.cursor()`` opens a *new* connection that does not
see the parent's open transaction, so acquired connections are wrapped:
every cursor the engine asks for executes on the one connection that
owns the unit of work.

Install the driver::

    pip install dataquery[duckdb]

Import-guarded: without ``duckdb`` installed, ``connect()`` raises
:class:`~dataquery.errors.ConfigError`.
"""

from __future__ import annotations

import threading
from collections.abc import Sequence
from typing import Any

from dataquery.errors import ConfigError, DatabaseConnectionError
from dataquery.logging import get_logger
from dataquery.protocols import Connection

from .base import DatabaseAdapter
from .types import DatabaseConfig, DatabaseType

logger = get_logger(__name__)


class _SharedCursor:
    """DB-API cursor view over a DuckDB connection; ``close()`` leaves it open."""

    def __init__(self, conn: Any):
        self._conn = conn

    @property
    def description(self):
        return self._conn.description

    @property
    def rowcount(self) -> int:
        return getattr(self._conn, "rowcount", -1)

    def execute(self, sql: str, params: Any = None) -> _SharedCursor:
        self._conn.execute(sql, params)
        return self

    def executemany(self, sql: str, params: Sequence[Any]) -> _SharedCursor:
        self._conn.executemany(sql, params)
        return self

    def fetchone(self):
        return self._conn.fetchone()

    def fetchmany(self, size: int = 1):
        return self._conn.fetchmany(size)

    def close(self) -> None:
        pass


class _DuckDBConnection:
    """One DuckDB connection per unit of work."""

    def __init__(self, conn: Any):
        self.raw = conn

    def cursor(self) -> _SharedCursor:
        return _SharedCursor(self.raw)

    def begin(self) -> None:
        self.raw.begin()

    def commit(self) -> None:
        self.raw.commit()

    def rollback(self) -> None:
        self.raw.rollback()

    def close(self) -> None:
        self.raw.close()


class DuckDBAdapter(DatabaseAdapter):
    """
    DuckDB adapter.

    One database handle; every :meth:`acquire` hands out a fresh
    connection to it (``db.cursor()``), so concurrent units of work do not
    share transaction state.
    """

    def __init__(
        self,
        path: str = ":memory:",
        *,
        readonly: bool = False,
        config: DatabaseConfig | None = None,
        **kwargs: Any,
    ):
        config = config or DatabaseConfig(
            db_type=DatabaseType.DUCKDB,
            path=path,
            readonly=readonly,
            options=kwargs,
        )
        super().__init__(config)
        self._db: Any = None
        self._lock = threading.Lock()

    def connect(self) -> None:
        try:
            import duckdb
        except ImportError:
            raise ConfigError(
                "duckdb is required for DuckDB. Install with: pip install dataquery[duckdb]"
            ) from None

        path = self._config.path or ":memory:"
        try:
            self._db = duckdb.connect(
                path,
                read_only=self._config.readonly,
                config=self._config.options or {},
            )
            self._connected = True
            logger.debug("adapter_connected", db_type="duckdb", path=path)
        except duckdb.Error as e:
            raise DatabaseConnectionError(
                f"Failed to connect to DuckDB: {e}",
                cause=e,
            ) from e

    def disconnect(self) -> None:
        with self._lock:
            if self._db is not None:
                self._db.close()
                self._db = None
                self._connected = False
                logger.debug("adapter_disconnected", db_type="duckdb")

    def acquire(self) -> Connection:
        with self._lock:
            if self._db is None:
                self.connect()
            return _DuckDBConnection(self._db.cursor())

    def release(self, conn: Connection) -> None:
        conn.close()

    def begin(self, conn: Connection) -> None:
        conn.begin()

    def prepare(self, sql: str, params: Sequence[Any]) -> tuple[str, Any]:
        return sql, (list(params) if params else None)

    def prepare_many(
        self, sql: str, param_rows: Sequence[Sequence[Any]]
    ) -> tuple[str, list[Any]]:
        return sql, [list(row) for row in param_rows]


__all__ = [
    "DuckDBAdapter",
]
