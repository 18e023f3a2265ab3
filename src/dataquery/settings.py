"""
Configuration for dataquery stores.

``DataQuerySettings`` is the single validated source for everything the
driver collaborator needs at connection time (credentials, host, pool
sizing) plus the store-type identifier that selects the Dialect/adapter
pairing.  Values come from ``DATAQUERY_*`` environment variables, a
``.env`` file, or keyword arguments.

Examples:
    >>> settings = DataQuerySettings(store_type="sqlite", path=":memory:")
    >>> settings.store_type
    'sqlite'

    Environment driven::

        DATAQUERY_STORE_TYPE=postgresql
        DATAQUERY_HOST=db.internal
        DATAQUERY_MAX_CONNS=20

Tags:
    settings, configuration, pydantic, environment, dataquery
"""

from __future__ import annotations

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DataQuerySettings(BaseSettings):
    """Connection and store settings.

    Fields
    ──────
    store_type          : Dialect/adapter pairing (sqlite, postgresql, duckdb, oracle)
    driver              : Optional driver identifier, informational for custom adapters
    user / password     : Credentials handed to the driver
    host / port         : Network location
    database            : Database (or Oracle service) name
    path                : File path for embedded stores (SQLite, DuckDB)
    max_conns/min_conns : Pool sizing
    max_conn_lifetime   : Seconds before a pooled connection is recycled
    max_conn_idle_time  : Seconds an idle pooled connection is kept
    """

    model_config = SettingsConfigDict(
        env_prefix="DATAQUERY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Store selection ──────────────────────────────────────────
    store_type: str = Field(default="sqlite")
    driver: str | None = Field(default=None)

    # ── Connection ───────────────────────────────────────────────
    user: str | None = Field(default=None)
    password: str | None = Field(default=None)
    host: str = Field(default="localhost")
    port: int | None = Field(default=None)
    database: str = Field(default="")
    path: str = Field(default=":memory:")
    connect_timeout: int = Field(default=10)

    # ── Pool ─────────────────────────────────────────────────────
    max_conns: int = Field(default=10, ge=1)
    min_conns: int = Field(default=1, ge=0)
    max_conn_lifetime: int | None = Field(default=None, description="Seconds")
    max_conn_idle_time: int | None = Field(default=None, description="Seconds")

    # ── Statement handling ───────────────────────────────────────
    rewrite_placeholders: bool = Field(default=True)
    batch_size: int = Field(default=100, ge=1)

    # ── Logging ──────────────────────────────────────────────────
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="console")

    @model_validator(mode="after")
    def _check_pool(self) -> DataQuerySettings:
        if self.min_conns > self.max_conns:
            raise ValueError(
                f"min_conns ({self.min_conns}) must not exceed max_conns ({self.max_conns})"
            )
        return self


_settings_cache: dict[str, DataQuerySettings] = {}


def get_settings(*, reload: bool = False) -> DataQuerySettings:
    """Load and cache settings from the environment."""
    if reload or "default" not in _settings_cache:
        _settings_cache["default"] = DataQuerySettings()
    return _settings_cache["default"]


__all__ = ["DataQuerySettings", "get_settings"]
