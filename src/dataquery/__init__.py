"""dataquery -- dialect-abstracted relational data access.

Manifesto:
    Issuing parameterised SQL against SQLite, PostgreSQL, DuckDB or Oracle
    should look the same in application code.  dataquery is a
    statement-dispatch and result-mapping layer, not an ORM: callers write
    SQL (or let it be generated for plain inserts), and the library takes
    care of placeholder syntax, connections, units of work and turning
    cursors into records, scalars or JSON.

Architecture::

    Layer 1 -- Types, Errors, Config
        errors.py          Typed error hierarchy (DataQueryError, QueryError, ...)
        result.py          Ok / Err envelope used by exec, insert, transaction
        settings.py        DataQuerySettings (pydantic-settings, DATAQUERY_*)
        logging.py         structlog configuration

    Layer 2 -- SQL
        dialect.py         Placeholder syntax + table-exists template per backend
        records.py         Record descriptors (dataclass / pydantic introspection)
        dataset.py         TableDataSet + per-dataset Statements cache
        sqlgen.py          INSERT generation, apply/suffix, ? rewriting

    Layer 3 -- Execution
        adapters/          Driver adapters (sqlite3, psycopg2, duckdb, oracledb)
        rows.py            Rows cursor handle
        materialize.py     One / Many / Scalars destinations + JSON output
        fluent.py          FluentSelect
        fluent_insert.py   FluentInsert
        transaction.py     Tx state machine + run_transaction
        batch.py           Batch / BatchResult
        store.py           DataStore engine + create_store()

Examples:
    >>> from dataquery import DataStore, SQLiteAdapter
    >>> store = DataStore(SQLiteAdapter())
    >>> store.must_exec("create table t (id integer primary key, name text)")
    >>> store.transaction(lambda tx: store.must_exec("insert into t (name) values (?)", "a", tx=tx))
    Ok(None)
"""

from dataquery.adapters import (
    DatabaseAdapter,
    DatabaseConfig,
    DatabaseType,
    DuckDBAdapter,
    OracleAdapter,
    PostgreSQLAdapter,
    SQLiteAdapter,
    get_adapter,
)
from dataquery.batch import Batch, BatchResult, QueuedStatement
from dataquery.dataset import INSERT_KEY, SELECT_KEY, Statements, TableDataSet
from dataquery.dialect import (
    Dialect,
    DialectRegistry,
    DuckDBDialect,
    OracleDialect,
    PostgreSQLDialect,
    SQLiteDialect,
    get_dialect,
    register_dialect,
)
from dataquery.errors import (
    BatchError,
    ConfigError,
    DatabaseConnectionError,
    DatabaseError,
    DataQueryError,
    MaterializationError,
    NoRowsError,
    QueryError,
    StatementNotFoundError,
    TransactionError,
)
from dataquery.fluent import FluentSelect
from dataquery.fluent_insert import DEFAULT_BATCH_SIZE, FluentInsert
from dataquery.materialize import Many, One, Scalars
from dataquery.records import RecordDescriptor, RecordField, column, describe
from dataquery.result import Err, Ok, Result, try_result
from dataquery.rows import Rows
from dataquery.settings import DataQuerySettings, get_settings
from dataquery.store import NO_TX, DataStore, ExecResult, create_store
from dataquery.transaction import Tx, TxState

__version__ = "0.1.0"

__all__ = [
    # store
    "DataStore",
    "ExecResult",
    "NO_TX",
    "create_store",
    # builders
    "FluentSelect",
    "FluentInsert",
    "DEFAULT_BATCH_SIZE",
    # datasets and records
    "TableDataSet",
    "Statements",
    "SELECT_KEY",
    "INSERT_KEY",
    "RecordDescriptor",
    "RecordField",
    "column",
    "describe",
    # results
    "Rows",
    "One",
    "Many",
    "Scalars",
    "Ok",
    "Err",
    "Result",
    "try_result",
    # transactions and batches
    "Tx",
    "TxState",
    "Batch",
    "BatchResult",
    "QueuedStatement",
    # dialects
    "Dialect",
    "DialectRegistry",
    "SQLiteDialect",
    "PostgreSQLDialect",
    "DuckDBDialect",
    "OracleDialect",
    "get_dialect",
    "register_dialect",
    # adapters
    "DatabaseAdapter",
    "DatabaseConfig",
    "DatabaseType",
    "SQLiteAdapter",
    "PostgreSQLAdapter",
    "DuckDBAdapter",
    "OracleAdapter",
    "get_adapter",
    # config
    "DataQuerySettings",
    "get_settings",
    # errors
    "DataQueryError",
    "ConfigError",
    "DatabaseConnectionError",
    "DatabaseError",
    "QueryError",
    "StatementNotFoundError",
    "MaterializationError",
    "NoRowsError",
    "TransactionError",
    "BatchError",
]
