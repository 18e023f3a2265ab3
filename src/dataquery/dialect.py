"""SQL dialect abstraction for backend-agnostic statements.

A ``Dialect`` is an immutable value describing how one backend spells a
positional parameter and how it answers "does this table exist".  The
execution engine routes every placeholder through ``bind`` so the same
builder-level API runs unchanged on SQLite, PostgreSQL, DuckDB and Oracle.

Manifesto:
    Application statements must be portable across backends.  Without a
    dialect layer, SQL is littered with ``?`` here and ``$1`` there and
    breaks the moment the store type changes.

    - **Pure:** ``bind`` is a total, deterministic function of the index
    - **Numbered:** distinct indices give distinct placeholders, so a
      parameter can be referenced twice in one statement
    - **Registry, not globals:** store-type → Dialect lives in an explicit
      read-only :class:`DialectRegistry`

Architecture::

    ┌──────────┐ ┌──────────────┐ ┌────────┐ ┌──────────┐
    │ SQLite   │ │ PostgreSQL   │ │ DuckDB │ │  Oracle  │
    │ ?1, ?2   │ │ $1, $2       │ │ $1, $2 │ │ :1, :2   │
    └──────────┘ └──────────────┘ └────────┘ └──────────┘

Examples:
    >>> from dataquery.dialect import get_dialect
    >>> d = get_dialect("postgresql")
    >>> d.bind(None, 0)
    '$1'
    >>> d.placeholders(3)
    '$1, $2, $3'

Guardrails:
    ❌ DON'T: Hard-code ``$1`` in statements meant to run on several backends
    ✅ DO: Write the portable ``?`` and let the store rewrite it

Tags:
    dialect, sql, placeholders, portability, dataquery
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from typing import Callable, Protocol, runtime_checkable

from dataquery.errors import ConfigError


@runtime_checkable
class Dialect(Protocol):
    """SQL dialect contract."""

    @property
    def name(self) -> str:
        """Human-readable dialect name (e.g. ``'sqlite'``)."""
        ...

    @property
    def table_exists_query(self) -> str:
        """Single-parameter query whose first column is truthy if the table exists."""
        ...

    def bind(self, field: str | None, index: int) -> str:
        """Placeholder for the parameter at 0-based ``index``.

        ``field`` names the column the value belongs to; numbered dialects
        ignore it.
        """
        ...

    def placeholders(self, count: int) -> str:
        """Comma-separated placeholders for indices ``0..count-1``."""
        ...


@dataclass(frozen=True)
class SQLDialect:
    """Concrete dialect value: a name, a bind function and a table-exists template."""

    name: str
    table_exists_query: str
    binder: Callable[[str | None, int], str]

    def bind(self, field: str | None, index: int) -> str:
        return self.binder(field, index)

    def placeholders(self, count: int) -> str:
        return ", ".join(self.bind(None, i) for i in range(count))

    def __repr__(self) -> str:
        return f"SQLDialect({self.name!r})"


def _qmark_numbered(field: str | None, index: int) -> str:  # noqa: ARG001
    return f"?{index + 1}"


def _dollar_numbered(field: str | None, index: int) -> str:  # noqa: ARG001
    return f"${index + 1}"


def _colon_numbered(field: str | None, index: int) -> str:  # noqa: ARG001
    return f":{index + 1}"


SQLiteDialect = SQLDialect(
    name="sqlite",
    table_exists_query=(
        "SELECT EXISTS (SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = ?1)"
    ),
    binder=_qmark_numbered,
)

PostgreSQLDialect = SQLDialect(
    name="postgresql",
    table_exists_query=(
        "SELECT EXISTS (SELECT 1 FROM information_schema.tables "
        "WHERE table_schema = current_schema() AND table_name = $1)"
    ),
    binder=_dollar_numbered,
)

DuckDBDialect = SQLDialect(
    name="duckdb",
    table_exists_query=(
        "SELECT EXISTS (SELECT 1 FROM information_schema.tables WHERE table_name = $1)"
    ),
    binder=_dollar_numbered,
)

OracleDialect = SQLDialect(
    name="oracle",
    table_exists_query=(
        "SELECT COUNT(*) FROM USER_TABLES WHERE TABLE_NAME = UPPER(:1)"
    ),
    binder=_colon_numbered,
)


class DialectRegistry(Mapping[str, Dialect]):
    """Store-type identifier → Dialect.

    Built once at process start and handed to the execution engine by
    reference.  Lookups are case-insensitive.
    """

    def __init__(self, dialects: Mapping[str, Dialect] | None = None):
        self._dialects: dict[str, Dialect] = {}
        for name, dialect in (dialects or {}).items():
            self._dialects[name.lower()] = dialect

    def __getitem__(self, store_type: str) -> Dialect:
        key = store_type.lower()
        if key not in self._dialects:
            raise ConfigError(
                f"Unknown dialect '{store_type}'. Supported: {sorted(self._dialects)}"
            )
        return self._dialects[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._dialects)

    def __len__(self) -> int:
        return len(self._dialects)

    def __contains__(self, store_type: object) -> bool:
        return isinstance(store_type, str) and store_type.lower() in self._dialects

    def with_dialect(self, name: str, dialect: Dialect) -> DialectRegistry:
        """Return a new registry that also maps ``name`` to ``dialect``."""
        merged = dict(self._dialects)
        merged[name.lower()] = dialect
        return DialectRegistry(merged)


default_dialects = DialectRegistry(
    {
        "sqlite": SQLiteDialect,
        "postgresql": PostgreSQLDialect,
        "postgres": PostgreSQLDialect,  # alias
        "duckdb": DuckDBDialect,
        "oracle": OracleDialect,
    }
)


def get_dialect(store_type: str, registry: DialectRegistry | None = None) -> Dialect:
    """Get a dialect by store-type identifier.

    Raises:
        ConfigError: If ``store_type`` is not registered.
    """
    key = store_type if isinstance(store_type, str) else store_type.value
    return (registry if registry is not None else default_dialects)[key]


def register_dialect(name: str, dialect: Dialect) -> None:
    """Add a custom dialect to the default registry.

    Intended for process start-up, before any store is constructed.
    """
    global default_dialects
    default_dialects = default_dialects.with_dialect(name, dialect)


__all__ = [
    "Dialect",
    "SQLDialect",
    "SQLiteDialect",
    "PostgreSQLDialect",
    "DuckDBDialect",
    "OracleDialect",
    "DialectRegistry",
    "default_dialects",
    "get_dialect",
    "register_dialect",
]
