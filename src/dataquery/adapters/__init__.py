"""Database adapters -- one connection contract for four store types.

Manifesto:
    The execution engine must run identically on SQLite (dev and tests),
    PostgreSQL (production), DuckDB (analytics) and Oracle (enterprise).
    Adapters own everything driver-specific: connecting, pooling, opening a
    unit of work and translating parameters into what the driver accepts.

    Each adapter except SQLite is **import-guarded**: the driver is only
    required at ``connect()`` time.  Install the corresponding extra::

        pip install dataquery[postgresql]   # psycopg2-binary
        pip install dataquery[duckdb]       # duckdb
        pip install dataquery[oracle]       # oracledb

Architecture::

    DatabaseAdapter (base.py)        acquire/release/begin/prepare contract
        |-- SQLiteAdapter            stdlib sqlite3 (always available)
        |-- PostgreSQLAdapter        psycopg2 (optional)
        |-- DuckDBAdapter            duckdb (optional)
        |-- OracleAdapter            oracledb (optional)

    AdapterRegistry (registry.py)    Singleton: DatabaseType -> adapter class
    DatabaseConfig (types.py)        Connection parameters
    DatabaseType (types.py)          Enum of supported store types

Guardrails:
    ❌ Importing optional drivers at module scope
    ✅ Import-guarded at ``connect()`` time with clear ``ConfigError``
    ❌ ``adapter = PostgreSQLAdapter(...)`` scattered through application code
    ✅ ``adapter = get_adapter(DatabaseType.POSTGRESQL, host=...)``

Tags:
    dataquery, database, adapters, multi-backend, import-guarded

Doc-Types:
    package-overview, module-index
"""

from .base import DatabaseAdapter
from .duckdb import DuckDBAdapter
from .oracle import OracleAdapter
from .postgresql import PostgreSQLAdapter, translate_numbered
from .registry import AdapterRegistry, adapter_registry, get_adapter
from .sqlite import SQLiteAdapter
from .types import DatabaseConfig, DatabaseType

__all__ = [
    "AdapterRegistry",
    "DatabaseAdapter",
    "DatabaseConfig",
    "DatabaseType",
    "DuckDBAdapter",
    "OracleAdapter",
    "PostgreSQLAdapter",
    "SQLiteAdapter",
    "adapter_registry",
    "get_adapter",
    "translate_numbered",
]
