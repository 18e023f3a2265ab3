"""Tests for ``dataquery.settings``.

Covers:
- Defaults
- Environment variable override (DATAQUERY_ prefix)
- Validation (pool sizing, batch size)
- get_settings caching
"""

import pytest
from pydantic import ValidationError

from dataquery.settings import DataQuerySettings, get_settings


class TestDefaults:
    def test_store_defaults(self):
        s = DataQuerySettings()
        assert s.store_type == "sqlite"
        assert s.path == ":memory:"
        assert s.rewrite_placeholders is True
        assert s.batch_size == 100

    def test_pool_defaults(self):
        s = DataQuerySettings()
        assert (s.min_conns, s.max_conns) == (1, 10)
        assert s.max_conn_lifetime is None


class TestEnvOverride:
    def test_prefixed_env(self, monkeypatch):
        monkeypatch.setenv("DATAQUERY_STORE_TYPE", "postgresql")
        monkeypatch.setenv("DATAQUERY_HOST", "db.internal")
        monkeypatch.setenv("DATAQUERY_PORT", "6432")
        monkeypatch.setenv("DATAQUERY_REWRITE_PLACEHOLDERS", "false")
        s = DataQuerySettings()
        assert s.store_type == "postgresql"
        assert s.host == "db.internal"
        assert s.port == 6432
        assert s.rewrite_placeholders is False

    def test_unprefixed_ignored(self, monkeypatch):
        monkeypatch.setenv("STORE_TYPE", "oracle")
        assert DataQuerySettings().store_type == "sqlite"


class TestValidation:
    def test_min_above_max(self):
        with pytest.raises(ValidationError, match="must not exceed"):
            DataQuerySettings(min_conns=5, max_conns=2)

    def test_batch_size_positive(self):
        with pytest.raises(ValidationError):
            DataQuerySettings(batch_size=0)


class TestGetSettings:
    def test_cached(self):
        assert get_settings() is get_settings()

    def test_reload(self, monkeypatch):
        first = get_settings()
        monkeypatch.setenv("DATAQUERY_BATCH_SIZE", "5")
        assert get_settings() is first
        assert get_settings(reload=True).batch_size == 5
