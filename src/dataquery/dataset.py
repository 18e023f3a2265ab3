"""Datasets and their statement caches.

A :class:`TableDataSet` names one table (optionally schema-qualified) and
owns a :class:`Statements` cache: logical statement key → raw SQL.  Callers
usually build datasets once, as module-level values, with their hand
written statements; the engine adds the implicitly generated INSERT under
:data:`INSERT_KEY` the first time a record is inserted.

Architecture::

    TableDataSet("orders", schema="sales", record_type=Order)
    ├── entity            → "sales.orders"
    ├── descriptor        → RecordDescriptor (derived once, cached)
    └── statements        → Statements
            "select"      → "select * from sales.orders"
            "by-customer" → "select * from sales.orders where customer_id = ?"
            "insert"      → generated on first insert, then reused

Guardrails:
    ❌ DON'T: Share one Statements instance between datasets
    ✅ DO: Give each dataset its own cache (the default)
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterator, Mapping

from dataquery.errors import QueryError, StatementNotFoundError
from dataquery.records import RecordDescriptor, describe
from dataquery.result import Err, Ok, Result

SELECT_KEY = "select"
INSERT_KEY = "insert"


class Statements:
    """Statement key → SQL text, safe for concurrent readers and first-time writers."""

    def __init__(self, initial: Mapping[str, str] | None = None, *, owner: str | None = None):
        self._stmts: dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()
        self._owner = owner

    def get(self, key: str) -> Result[str]:
        """Look up ``key``; ``Err(StatementNotFoundError)`` on a miss."""
        sql = self._stmts.get(key)
        if sql is None:
            return Err(StatementNotFoundError(key, self._owner))
        return Ok(sql)

    def get_or_fail(self, key: str) -> str:
        """Look up ``key``; raises :class:`StatementNotFoundError` on a miss."""
        sql = self._stmts.get(key)
        if sql is None:
            raise StatementNotFoundError(key, self._owner)
        return sql

    def put(self, key: str, sql: str) -> None:
        with self._lock:
            self._stmts[key] = sql

    def put_if_absent(self, key: str, factory: Callable[[], str]) -> str:
        """Return the SQL under ``key``, generating it with ``factory`` at most once."""
        sql = self._stmts.get(key)
        if sql is not None:
            return sql
        with self._lock:
            sql = self._stmts.get(key)
            if sql is None:
                sql = factory()
                self._stmts[key] = sql
            return sql

    def __contains__(self, key: object) -> bool:
        return key in self._stmts

    def __len__(self) -> int:
        return len(self._stmts)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._stmts))

    def as_dict(self) -> dict[str, str]:
        return dict(self._stmts)

    def __repr__(self) -> str:
        return f"Statements({sorted(self._stmts)!r})"


class TableDataSet:
    """A logical table: qualified name, statement cache and record shape."""

    def __init__(
        self,
        name: str,
        *,
        schema: str | None = None,
        statements: Mapping[str, str] | Statements | None = None,
        record_type: type | None = None,
        descriptor: RecordDescriptor | None = None,
    ):
        self.name = name
        self.schema = schema
        self.record_type = record_type
        self._descriptor = descriptor
        if isinstance(statements, Statements):
            self.statements = statements
        else:
            self.statements = Statements(statements, owner=self.entity)

    @property
    def entity(self) -> str:
        """``schema.table`` when a schema is set, else the bare table name."""
        if self.schema:
            return f"{self.schema}.{self.name}"
        return self.name

    @property
    def descriptor(self) -> RecordDescriptor:
        if self._descriptor is None:
            if self.record_type is None:
                raise QueryError(
                    f"Dataset '{self.entity}' has no record type or descriptor"
                ).with_context(dataset=self.entity)
            self._descriptor = describe(self.record_type)
        return self._descriptor

    def put_command(self, key: str, sql: str) -> None:
        self.statements.put(key, sql)

    def commands(self) -> dict[str, str]:
        return self.statements.as_dict()

    def __repr__(self) -> str:
        return f"TableDataSet({self.entity!r})"


__all__ = [
    "SELECT_KEY",
    "INSERT_KEY",
    "Statements",
    "TableDataSet",
]

