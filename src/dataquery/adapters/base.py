"""Database adapter base class.

Manifesto:
    The execution engine needs exactly four things from a driver: hand out
    a connection, take it back, open a unit of work on it, and accept SQL in
    the dialect's placeholder style.  The abstract base class defines that
    contract so the engine never depends on a specific database vendor.

Features:
    - Abstract ``connect()``, ``disconnect()``, ``acquire()``, ``release()``
    - ``begin()`` hook for drivers without implicit transactions
    - ``prepare()`` / ``prepare_many()`` hooks for driver-level parameter
      translation (e.g. ``$1`` → ``%s`` for psycopg2)
    - ``connection()`` / ``transaction()`` context managers
    - Context-manager protocol for adapter lifecycle

Tags:
    dataquery, database, abstract-base, adapter-pattern

Doc-Types:
    api-reference
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from typing import Any

from dataquery.dialect import Dialect, get_dialect
from dataquery.protocols import Connection

from .types import DatabaseConfig, DatabaseType


class DatabaseAdapter(ABC):
    """
    Abstract base class for driver adapters.

    Provides common functionality and defines the interface
    that all adapters must implement.
    """

    def __init__(self, config: DatabaseConfig):
        self._config = config
        self._connected = False
        self._dialect: Dialect = get_dialect(config.db_type.value)

    @property
    def dialect(self) -> Dialect:
        """SQL dialect for this adapter's store type."""
        return self._dialect

    @property
    def db_type(self) -> DatabaseType:
        return self._config.db_type

    @property
    def config(self) -> DatabaseConfig:
        return self._config

    @property
    def is_connected(self) -> bool:
        return self._connected

    @abstractmethod
    def connect(self) -> None:
        """Establish connection (or pool) to the database."""
        ...

    @abstractmethod
    def disconnect(self) -> None:
        """Close every connection held by the adapter."""
        ...

    @abstractmethod
    def acquire(self) -> Connection:
        """Check out a connection for one unit of work."""
        ...

    @abstractmethod
    def release(self, conn: Connection) -> None:
        """Return a connection obtained from :meth:`acquire`."""
        ...

    def begin(self, conn: Connection) -> None:
        """Start a transaction on ``conn``.

        DB-API drivers open transactions implicitly, so the default is a
        no-op; autocommit drivers override it.
        """

    def attach_transaction(self, conn: Connection) -> None:
        """``conn`` now belongs to an explicit transaction until :meth:`detach_transaction`.

        Pooled adapters never hand that connection out again while it is
        checked out, so the default does nothing.
        """

    def detach_transaction(self, conn: Connection) -> None:
        """The explicit transaction on ``conn`` has finished."""

    def prepare(self, sql: str, params: Sequence[Any]) -> tuple[str, Any]:
        """Translate dialect SQL and parameters into what the driver accepts."""
        return sql, tuple(params)

    def prepare_many(
        self, sql: str, param_rows: Sequence[Sequence[Any]]
    ) -> tuple[str, list[Any]]:
        """:meth:`prepare` for ``executemany`` parameter rows."""
        return sql, [tuple(row) for row in param_rows]

    @contextmanager
    def connection(self) -> Iterator[Connection]:
        """Borrow a connection without transaction handling."""
        conn = self.acquire()
        try:
            yield conn
        finally:
            self.release(conn)

    @contextmanager
    def transaction(self) -> Iterator[Connection]:
        """Borrow a connection as an implicit unit of work: commit or roll back."""
        conn = self.acquire()
        try:
            self.begin(conn)
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            self.release(conn)

    def __enter__(self) -> DatabaseAdapter:
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.disconnect()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(db_type={self.db_type.value}, connected={self._connected})"


__all__ = [
    "DatabaseAdapter",
]
