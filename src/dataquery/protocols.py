"""
Driver-facing protocol definitions.

The execution engine never imports a database driver.  It talks to
whatever the adapter hands back through these two structural protocols,
which every DB-API 2.0 (PEP 249) driver already satisfies: ``sqlite3``,
``psycopg2``, ``duckdb``, ``oracledb``.

Architecture:
    ::

        Connection                         Cursor
        ┌──────────────────────────┐       ┌──────────────────────────────┐
        │ cursor()    → Cursor     │       │ execute(sql, params)         │
        │ commit()                 │       │ executemany(sql, seq)        │
        │ rollback()               │       │ fetchone() / fetchmany(n)    │
        │ close()                  │       │ description, rowcount        │
        └──────────────────────────┘       │ lastrowid (optional), close()│
                                           └──────────────────────────────┘

Guardrails:
    ❌ DON'T: Import sqlite3 or psycopg2 outside ``dataquery.adapters``
    ✅ DO: Depend on these protocols

Tags:
    protocol, connection, cursor, dbapi, dataquery
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Cursor(Protocol):
    """Minimal DB-API cursor used by the engine and :class:`~dataquery.rows.Rows`."""

    @property
    def description(self) -> Sequence[Sequence[Any]] | None:
        """Column metadata of the last query; ``None`` for non-returning statements."""
        ...

    @property
    def rowcount(self) -> int:
        """Rows affected by the last statement, ``-1`` when unknown."""
        ...

    def execute(self, sql: str, params: Any = ()) -> Any:
        ...

    def executemany(self, sql: str, params: Sequence[Any]) -> Any:
        ...

    def fetchone(self) -> Any:
        ...

    def fetchmany(self, size: int = ...) -> list[Any]:
        ...

    def close(self) -> None:
        ...


@runtime_checkable
class Connection(Protocol):
    """Minimal DB-API connection handed out by an adapter."""

    def cursor(self) -> Cursor:
        ...

    def commit(self) -> None:
        ...

    def rollback(self) -> None:
        ...

    def close(self) -> None:
        ...


__all__ = ["Connection", "Cursor"]
