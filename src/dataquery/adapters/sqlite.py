"""SQLite database adapter."""

from __future__ import annotations

import sqlite3
import threading
from typing import Any

from dataquery.errors import DatabaseConnectionError, TransactionError
from dataquery.logging import get_logger
from dataquery.protocols import Connection

from .base import DatabaseAdapter
from .types import DatabaseConfig, DatabaseType

logger = get_logger(__name__)


class SQLiteAdapter(DatabaseAdapter):
    """
    SQLite database adapter.

    Uses the built-in sqlite3 module with one shared connection.  The
    connection is guarded by a re-entrant lock held from :meth:`acquire`
    to :meth:`release`, so one unit of work owns it at a time; other
    threads block until it is released.  Suitable for:

    - Development and testing
    - Embedded, single-process applications

    Note:
        While an explicit transaction holds the connection, an ambient
        statement from the same thread raises :class:`TransactionError`
        instead of committing the transaction's work; pass ``tx=``.
    """

    def __init__(
        self,
        path: str = ":memory:",
        *,
        readonly: bool = False,
        timeout: float = 5.0,
        config: DatabaseConfig | None = None,
        **kwargs: Any,
    ):
        config = config or DatabaseConfig(
            db_type=DatabaseType.SQLITE,
            path=path,
            readonly=readonly,
            options=kwargs,
        )
        super().__init__(config)
        self._timeout = timeout
        self._conn: sqlite3.Connection | None = None
        self._lock = threading.RLock()
        self._tx_conn: Connection | None = None

    def connect(self) -> None:
        """Connect to SQLite database."""
        path = self._config.path or ":memory:"
        uri = path.startswith("file:")

        try:
            self._conn = sqlite3.connect(
                path,
                timeout=self._timeout,
                check_same_thread=False,
                uri=uri,
            )
            self._conn.execute("PRAGMA foreign_keys = ON")
            if self._config.readonly:
                self._conn.execute("PRAGMA query_only = ON")
            self._connected = True
            logger.debug("adapter_connected", db_type="sqlite", path=path)

        except sqlite3.Error as e:
            raise DatabaseConnectionError(
                f"Failed to connect to SQLite: {e}",
                cause=e,
            ) from e

    def disconnect(self) -> None:
        """Close SQLite connection."""
        with self._lock:
            if self._conn:
                self._conn.close()
                self._conn = None
                self._connected = False
                logger.debug("adapter_disconnected", db_type="sqlite")

    def acquire(self) -> Connection:
        """Lock and return the shared connection, connecting on first use."""
        self._lock.acquire()
        if self._tx_conn is not None:
            # only the thread running the transaction gets past the lock here
            self._lock.release()
            raise TransactionError(
                "The SQLite connection is held by an active transaction on this thread; "
                "pass tx= to run on it"
            )
        try:
            if not self._conn:
                self.connect()
        except BaseException:
            self._lock.release()
            raise
        return self._conn

    def release(self, conn: Connection) -> None:
        self._lock.release()

    def attach_transaction(self, conn: Connection) -> None:
        self._tx_conn = conn

    def detach_transaction(self, conn: Connection) -> None:
        self._tx_conn = None


__all__ = [
    "SQLiteAdapter",
]
