"""Fluent SELECT builder.

Configuration calls return the builder so they chain in any order; a
terminal call resolves the SQL, executes it once and materialises the
result::

    users = (
        store.select()
        .dataset(USERS)
        .stmt("by-status")
        .suffix("order by id")
        .params("active")
        .dest(list[User])
        .fetch()
    )

SQL resolution, in order:

1. Base text: a statement key on a bound dataset wins over inline SQL.
   A dataset with neither key nor inline SQL uses its ``"select"``
   statement.
2. ``apply(*args)`` printf-substitutes trusted identifiers.
3. ``suffix(text)`` is appended with one space (last call wins).
4. Portable ``?`` placeholders are rewritten for the store's dialect.

Destination modes (``dest`` and ``for_each_row``) are mutually
exclusive, and the JSON terminals take neither.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import IO, TYPE_CHECKING, Any

from dataquery.dataset import SELECT_KEY, TableDataSet
from dataquery.errors import QueryError
from dataquery.logging import get_logger
from dataquery.materialize import as_destination, materialize, rows_to_json, stream_json
from dataquery.result import Err
from dataquery.rows import Rows
from dataquery.sqlgen import append_suffix, apply_args

if TYPE_CHECKING:
    from dataquery.store import DataStore
    from dataquery.transaction import Tx

logger = get_logger(__name__)

RowCallback = Callable[[Rows], Any]


class FluentSelect:
    """Single-use SELECT builder bound to a store."""

    def __init__(self, store: DataStore, sql: str | None = None, params: tuple[Any, ...] = ()):
        self._store = store
        self._sql = sql
        self._params: tuple[Any, ...] = tuple(params)
        self._dataset: TableDataSet | None = None
        self._key: str | None = None
        self._args: tuple[Any, ...] = ()
        self._suffix: str | None = None
        self._dest: Any = None
        self._callback: RowCallback | None = None
        self._tx: Tx | None = None
        self._log_sql = False
        self._executed = False

    # -- configuration ------------------------------------------------------

    def dataset(self, dataset: TableDataSet) -> FluentSelect:
        self._dataset = dataset
        return self

    def stmt(self, key: str) -> FluentSelect:
        """Use the statement cached under ``key`` on the bound dataset."""
        self._key = key
        return self

    def sql(self, text: str) -> FluentSelect:
        self._sql = text
        return self

    def apply(self, *args: Any) -> FluentSelect:
        """printf-style arguments for identifiers; never for user values."""
        self._args = args
        return self

    def params(self, *values: Any) -> FluentSelect:
        """Bound parameters, replacing any given earlier."""
        self._params = values
        return self

    def suffix(self, text: str) -> FluentSelect:
        self._suffix = text
        return self

    def dest(self, target: Any) -> FluentSelect:
        self._dest = target
        return self

    def for_each_row(self, fn: RowCallback) -> FluentSelect:
        """Call ``fn(rows)`` per row; raising or returning ``Err`` stops iteration."""
        self._callback = fn
        return self

    def tx(self, tx: Tx | None) -> FluentSelect:
        self._tx = tx
        return self

    def log_sql(self, flag: bool = True) -> FluentSelect:
        self._log_sql = flag
        return self

    # -- resolution ---------------------------------------------------------

    def resolve_sql(self) -> str:
        """Final SQL text as it will be sent to the adapter."""
        if self._dataset is not None and (self._key is not None or self._sql is None):
            base = self._dataset.statements.get_or_fail(self._key or SELECT_KEY)
        elif self._key is not None:
            raise QueryError(f"Statement key '{self._key}' needs a dataset").with_context(
                statement_key=self._key
            )
        elif self._sql is not None:
            base = self._sql
        else:
            raise QueryError("Select has neither SQL text nor a dataset statement")

        sql = append_suffix(apply_args(base, self._args), self._suffix)
        sql = self._store.prepare_sql(sql)
        if self._log_sql:
            logger.info("sql", sql=sql, params=len(self._params))
        return sql

    def _open(self) -> Rows:
        if self._executed:
            raise QueryError("Select builder has already been executed")
        self._executed = True
        sql = self.resolve_sql()
        return self._store.open_rows(sql, self._params, self._tx)

    def _require_no_destination(self, terminal: str) -> None:
        if self._dest is not None or self._callback is not None:
            raise QueryError(f"{terminal}() does not take a dest() or for_each_row() destination")

    # -- terminals ----------------------------------------------------------

    def fetch(self) -> Any:
        """Execute and materialise into the configured destination.

        Returns the destination value, or the number of rows visited for
        ``for_each_row``.  The cursor is released on every path.
        """
        if self._dest is not None and self._callback is not None:
            raise QueryError("dest() and for_each_row() are mutually exclusive")
        if self._dest is None and self._callback is None:
            raise QueryError("fetch() needs dest() or for_each_row()")

        if self._callback is None:
            destination = as_destination(self._dest)
            return materialize(self._open(), destination)

        rows = self._open()
        visited = 0
        try:
            while rows.next():
                out = self._callback(rows)
                if isinstance(out, Err):
                    raise out.error
                visited += 1
        except BaseException as e:
            rows.close(e)
            raise
        rows.close()
        return visited

    def fetch_rows(self) -> Rows:
        """Execute and hand the live cursor to the caller, who must close it."""
        self._require_no_destination("fetch_rows")
        return self._open()

    def fetch_json(self) -> bytes:
        """Whole result as one UTF-8 JSON array; for small result sets."""
        self._require_no_destination("fetch_json")
        return rows_to_json(self._open())

    def output_json(self, writer: IO[str]) -> int:
        """Stream the result as a JSON array to ``writer``; returns the row count."""
        self._require_no_destination("output_json")
        return stream_json(self._open(), writer)

    def __repr__(self) -> str:
        return f"FluentSelect(sql={self._sql!r}, key={self._key!r}, dataset={self._dataset!r})"


__all__ = ["FluentSelect"]
