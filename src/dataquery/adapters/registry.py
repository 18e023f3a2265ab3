"""Store-type → adapter class lookup.

``create_store`` and :func:`get_adapter` resolve a store type such as
``"postgresql"`` here instead of importing adapter classes directly, so
an application can plug in its own adapter under a new name::

    adapter_registry.register("embedded", MyEmbeddedAdapter)
    store = create_store(store_type="embedded")

Names are case-insensitive.  Adapters are created unconnected; the first
``acquire()`` opens the driver connection.
"""

from __future__ import annotations

from typing import Any

from dataquery.errors import ConfigError

from .base import DatabaseAdapter
from .duckdb import DuckDBAdapter
from .oracle import OracleAdapter
from .postgresql import PostgreSQLAdapter
from .sqlite import SQLiteAdapter
from .types import DatabaseConfig, DatabaseType

_BUILTIN: dict[str, type[DatabaseAdapter]] = {
    "sqlite": SQLiteAdapter,
    "postgresql": PostgreSQLAdapter,
    "postgres": PostgreSQLAdapter,
    "duckdb": DuckDBAdapter,
    "oracle": OracleAdapter,
}


class AdapterRegistry:
    """Adapter classes by store-type name, seeded with the built-in drivers."""

    def __init__(self):
        self._adapters: dict[str, type[DatabaseAdapter]] = dict(_BUILTIN)

    def register(self, name: str, adapter_class: type[DatabaseAdapter]) -> None:
        if not (isinstance(adapter_class, type) and issubclass(adapter_class, DatabaseAdapter)):
            raise ConfigError(f"Adapter for '{name}' must subclass DatabaseAdapter")
        self._adapters[name.lower()] = adapter_class

    def create(self, name: str, **kwargs: Any) -> DatabaseAdapter:
        """Instantiate the adapter registered under ``name`` with ``kwargs``."""
        adapter_class = self._adapters.get(name.lower())
        if adapter_class is None:
            known = ", ".join(self.list_adapters())
            raise ConfigError(f"Unknown database adapter: {name} (known: {known})")
        return adapter_class(**kwargs)

    def create_from_config(self, config: DatabaseConfig) -> DatabaseAdapter:
        return self.create(config.db_type.value, config=config)

    def list_adapters(self) -> list[str]:
        return sorted(self._adapters)


adapter_registry = AdapterRegistry()


def get_adapter(db_type: DatabaseType | str, **kwargs: Any) -> DatabaseAdapter:
    """Adapter for ``db_type`` from the process-wide registry.

    ``get_adapter("postgresql", host="db", database="orders")``
    """
    name = db_type.value if isinstance(db_type, DatabaseType) else db_type
    return adapter_registry.create(name, **kwargs)


__all__ = [
    "AdapterRegistry",
    "adapter_registry",
    "get_adapter",
]
