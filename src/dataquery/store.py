"""Execution engine.

Manifesto:
    Application code should say *what* to run (a statement, a dataset, a
    destination) and never *how* a given backend wants it spelled or
    where its connection comes from.  :class:`DataStore` owns the adapter
    and the dialect and dispatches every operation through them: fluent
    selects and inserts, non-returning statements, transactions and
    batches.

Architecture::

    DataStore(adapter, dialect)
    ├── select(sql, *params)  → FluentSelect ─┐
    ├── insert(dataset)       → FluentInsert ─┤
    ├── exec / execr / must_exec / must_execr ─┤
    ├── send_batch(batch)                      ├──▶ prepare SQL
    │                                          │     (portable ? → dialect bind)
    ├── transaction(body) / begin() / tx()     │
    └── table_exists(table)                    └──▶ connection
                                                     tx given → tx.connection
                                                     NO_TX    → adapter.transaction()

    Ambient statements borrow a connection, run as their own unit of
    work (commit on success, rollback on failure) and give it back.

Examples:
    >>> store = DataStore(SQLiteAdapter())
    >>> store.must_exec("create table t (id integer primary key, name text)")
    >>> store.exec("insert into t (name) values (?)", "a").is_ok()
    True
    >>> store.select("select name from t").dest(list[str]).fetch()
    ['a']

Guardrails:
    ❌ DON'T: Format values into SQL text (``apply`` is for identifiers only)
    ✅ DO: Bind values with ``params`` / positional ``*params``
    ❌ DON'T: Use ``exec`` inside a transaction body and ignore its Result
    ✅ DO: Use ``must_exec`` there, or return the ``Err``

Tags:
    dataquery, execution-engine, store, transaction, batch

Doc-Types:
    api-reference, architecture-map
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any, TypeVar

from dataquery.adapters.base import DatabaseAdapter
from dataquery.adapters.registry import adapter_registry
from dataquery.adapters.types import DatabaseConfig
from dataquery.batch import Batch, BatchResult
from dataquery.dataset import INSERT_KEY, TableDataSet
from dataquery.dialect import Dialect, get_dialect
from dataquery.errors import (
    BatchError,
    DataQueryError,
    QueryError,
    TransactionError,
)
from dataquery.fluent import FluentSelect
from dataquery.fluent_insert import DEFAULT_BATCH_SIZE, FluentInsert
from dataquery.logging import get_logger
from dataquery.protocols import Connection
from dataquery.result import Err, Ok, Result
from dataquery.rows import Rows
from dataquery.settings import DataQuerySettings, get_settings
from dataquery.sqlgen import build_insert_sql, rewrite_placeholders
from dataquery.transaction import Tx, run_transaction

logger = get_logger(__name__)

T = TypeVar("T")

NO_TX: Tx | None = None
"""Run on the ambient connection path, as its own unit of work."""


@dataclass(frozen=True)
class ExecResult:
    """Outcome of a non-returning statement."""

    rows_affected: int = 0
    last_insert_id: Any = None


class DataStore:
    """Dialect-aware execution engine over one adapter."""

    def __init__(
        self,
        adapter: DatabaseAdapter,
        dialect: Dialect | None = None,
        *,
        rewrite_placeholders: bool = True,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ):
        self._adapter = adapter
        self._dialect = dialect or adapter.dialect
        self._rewrite = rewrite_placeholders
        self.default_batch_size = batch_size

    @property
    def adapter(self) -> DatabaseAdapter:
        return self._adapter

    @property
    def dialect(self) -> Dialect:
        return self._dialect

    # -- builders ---------------------------------------------------------

    def select(self, sql: str | None = None, *params: Any) -> FluentSelect:
        return FluentSelect(self, sql, params)

    def insert(self, dataset: TableDataSet) -> FluentInsert:
        return FluentInsert(self, dataset)

    # -- non-returning statements ---------------------------------------

    def exec(self, sql: str, *params: Any, tx: Tx | None = NO_TX) -> Result[None]:
        return self.execr(sql, *params, tx=tx).map(lambda _: None)

    def execr(self, sql: str, *params: Any, tx: Tx | None = NO_TX) -> Result[ExecResult]:
        try:
            return Ok(self.must_execr(sql, *params, tx=tx))
        except DataQueryError as e:
            return Err(e)

    def must_exec(self, sql: str, *params: Any, tx: Tx | None = NO_TX) -> None:
        """:meth:`exec` that raises instead of returning ``Err``."""
        self.must_execr(sql, *params, tx=tx)

    def must_execr(self, sql: str, *params: Any, tx: Tx | None = NO_TX) -> ExecResult:
        """:meth:`execr` that raises instead of returning ``Err``."""
        prepared = self.prepare_sql(sql)
        return self._on_connection(tx, lambda conn: self._execute(conn, prepared, params))

    def table_exists(self, table: str, tx: Tx | None = NO_TX) -> bool:
        with self.open_rows(self._dialect.table_exists_query, (table,), tx) as rows:
            if not rows.next():
                return False
            return bool(rows.scan()[0])

    # -- transactions -----------------------------------------------------

    def transaction(self, body: Callable[[Tx], T | Result[T]]) -> Result[T]:
        """Run ``body(tx)`` as one unit of work.

        A plain return value or ``Ok`` commits; ``Err`` or a raised
        exception rolls back.  Always returns a Result.
        """
        return run_transaction(Tx(self._adapter), body)

    def begin(self) -> Tx:
        """Begin a transaction the caller commits or rolls back."""
        return Tx(self._adapter).begin()

    def tx(self) -> Tx:
        """Transaction for ``with store.tx() as tx:`` blocks."""
        return Tx(self._adapter)

    # -- batches ----------------------------------------------------------

    def batch(self) -> Batch:
        return Batch()

    def send_batch(self, batch: Batch, tx: Tx | None = NO_TX) -> BatchResult:
        """Run every queued statement in order on one connection.

        Without ``tx`` the batch is atomic: any failure rolls all of it
        back.  Statements after the first failure are not executed.
        """
        statements = batch.statements
        if tx is not None:
            results = self._run_batch(tx.connection, statements)
        else:
            conn = self._adapter.acquire()
            try:
                self._adapter.begin(conn)
                results = self._run_batch(conn, statements)
                if all(r.is_ok() for r in results):
                    try:
                        conn.commit()
                    except Exception as e:
                        conn.rollback()
                        err = BatchError(f"Batch commit failed: {e}", cause=e)
                        results = [Err(err) for _ in results]
                else:
                    conn.rollback()
            finally:
                self._adapter.release(conn)

        result = BatchResult(results)
        logger.debug("batch_sent", statements=len(statements), ok=result.ok)
        return result

    def _run_batch(self, conn: Connection, statements: Sequence[Any]) -> list[Result[ExecResult]]:
        results: list[Result[ExecResult]] = []
        failed: DataQueryError | None = None
        for position, stmt in enumerate(statements):
            if failed is not None:
                results.append(Err(BatchError(
                    f"Statement {position} not executed: an earlier statement failed",
                    cause=failed,
                ).with_context(sql=stmt.sql, executed=False)))
                continue
            try:
                results.append(Ok(self._execute(conn, self.prepare_sql(stmt.sql), stmt.params)))
            except DataQueryError as e:
                failed = e
                results.append(Err(e))
        return results

    # -- engine internals -------------------------------------------------

    def prepare_sql(self, sql: str) -> str:
        """Rewrite portable ``?`` placeholders for the active dialect."""
        if not self._rewrite:
            return sql
        return rewrite_placeholders(sql, self._dialect)

    def open_rows(self, sql: str, params: Sequence[Any], tx: Tx | None = NO_TX) -> Rows:
        """Execute a row-returning statement; the caller owns the returned Rows.

        On the ambient path the connection stays checked out until the
        rows are closed, then commits (or rolls back after a failure).
        """
        if tx is not None:
            return Rows(self._cursor_for(tx.connection, sql, params))

        conn = self._adapter.acquire()
        try:
            self._adapter.begin(conn)
            cursor = self._cursor_for(conn, sql, params)
        except BaseException:
            try:
                conn.rollback()
            finally:
                self._adapter.release(conn)
            raise

        def _finish(error: BaseException | None) -> None:
            try:
                if error is None:
                    conn.commit()
                else:
                    conn.rollback()
            finally:
                self._adapter.release(conn)

        return Rows(cursor, on_close=_finish)

    def _cursor_for(self, conn: Connection, sql: str, params: Sequence[Any]):
        cursor = conn.cursor()
        try:
            driver_sql, driver_params = self._adapter.prepare(sql, params)
            if driver_params is None:
                cursor.execute(driver_sql)
            else:
                cursor.execute(driver_sql, driver_params)
        except Exception as e:
            cursor.close()
            raise self._wrap(e, sql) from e
        return cursor

    def _execute(self, conn: Connection, sql: str, params: Sequence[Any]) -> ExecResult:
        cursor = self._cursor_for(conn, sql, params)
        try:
            return ExecResult(max(cursor.rowcount, 0), getattr(cursor, "lastrowid", None))
        finally:
            cursor.close()

    def _execute_many(
        self, conn: Connection, sql: str, param_rows: Sequence[Sequence[Any]]
    ) -> ExecResult:
        cursor = conn.cursor()
        try:
            driver_sql, driver_rows = self._adapter.prepare_many(sql, param_rows)
            cursor.executemany(driver_sql, driver_rows)
            return ExecResult(max(cursor.rowcount, 0), getattr(cursor, "lastrowid", None))
        except Exception as e:
            raise self._wrap(e, sql) from e
        finally:
            cursor.close()

    def _on_connection(self, tx: Tx | None, work: Callable[[Connection], T]) -> T:
        if tx is not None:
            return work(tx.connection)
        try:
            with self._adapter.transaction() as conn:
                return work(conn)
        except DataQueryError:
            raise
        except Exception as e:
            raise TransactionError(f"Implicit unit of work failed: {e}", cause=e) from e

    @staticmethod
    def _wrap(error: Exception, sql: str) -> DataQueryError:
        if isinstance(error, DataQueryError):
            return error
        return QueryError(str(error), cause=error).with_context(sql=sql)

    # -- inserts ------------------------------------------------------------

    def insert_sql(self, dataset: TableDataSet) -> str:
        """The dataset's INSERT, generated from its descriptor on first use."""

        def _generate() -> str:
            sql = build_insert_sql(dataset.entity, dataset.descriptor, self._dialect)
            logger.debug("insert_statement_generated", dataset=dataset.entity, sql=sql)
            return sql

        return dataset.statements.put_if_absent(INSERT_KEY, _generate)

    def run_insert(
        self,
        dataset: TableDataSet,
        records: Sequence[Any],
        *,
        tx: Tx | None = NO_TX,
        batch: bool = False,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ) -> ExecResult:
        """Insert ``records`` into ``dataset``; raises on the first failure."""
        sql = self.prepare_sql(self.insert_sql(dataset))
        params = [self._record_params(dataset, r) for r in records]

        total = 0
        last_id = None
        try:
            if batch:
                for start in range(0, len(params), batch_size):
                    chunk = params[start:start + batch_size]
                    res = self._on_connection(tx, lambda conn: self._execute_many(conn, sql, chunk))
                    total += res.rows_affected
                    last_id = res.last_insert_id
            else:
                for p in params:
                    res = self._on_connection(tx, lambda conn: self._execute(conn, sql, p))
                    total += res.rows_affected
                    last_id = res.last_insert_id
        except DataQueryError as e:
            e.with_context(dataset=dataset.entity, statement_key=INSERT_KEY)
            raise
        return ExecResult(total, last_id)

    @staticmethod
    def _record_params(dataset: TableDataSet, record: Any) -> tuple[Any, ...]:
        if isinstance(record, (tuple, list)):
            return tuple(record)
        return dataset.descriptor.values(record)

    # -- lifecycle ----------------------------------------------------------

    def close(self) -> None:
        self._adapter.disconnect()

    def __enter__(self) -> DataStore:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"DataStore(adapter={self._adapter!r}, dialect={self._dialect.name!r})"


def create_store(settings: DataQuerySettings | None = None, **overrides: Any) -> DataStore:
    """Build a store from settings (environment by default).

    ``overrides`` replace individual settings fields::

        store = create_store(store_type="sqlite", path="app.db")
    """
    settings = settings or get_settings()
    if overrides:
        settings = settings.model_copy(update=overrides)
    config = DatabaseConfig.from_settings(settings)
    adapter = adapter_registry.create_from_config(config)
    return DataStore(
        adapter,
        get_dialect(settings.store_type),
        rewrite_placeholders=settings.rewrite_placeholders,
        batch_size=settings.batch_size,
    )


__all__ = [
    "DataStore",
    "ExecResult",
    "NO_TX",
    "create_store",
]
