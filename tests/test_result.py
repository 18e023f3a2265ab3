"""Tests for dataquery.result module."""

import pytest

from dataquery.errors import QueryError
from dataquery.result import Err, Ok, Result, try_result


class TestOk:
    """Test Ok class."""

    def test_create_ok(self):
        """Create Ok with value."""
        result = Ok(42)
        assert result.value == 42
        assert result.is_ok() is True
        assert result.is_err() is False
        assert result.error is None

    def test_unwrap_variants(self):
        result = Ok("hello")
        assert result.unwrap() == "hello"
        assert result.unwrap_or("x") == "hello"
        assert result.unwrap_or_else(lambda e: "x") == "hello"

    def test_map_chaining(self):
        """map can be chained."""
        assert Ok(3).map(lambda x: x * 2).map(lambda x: x + 1).unwrap() == 7

    def test_flat_map(self):
        """flat_map chains Result-returning functions."""

        def half(x: int) -> Result[int]:
            if x % 2 == 0:
                return Ok(x // 2)
            return Err(ValueError("Odd number"))

        assert Ok(4).flat_map(half).unwrap() == 2
        assert Ok(3).flat_map(half).is_err()

    def test_map_err_no_op(self):
        assert Ok(42).map_err(lambda e: ValueError("new")).unwrap() == 42

    def test_to_dict(self):
        assert Ok(1).to_dict() == {"ok": True, "value": 1}

    def test_equality(self):
        assert Ok(1) == Ok(1)
        assert Ok(1) != Ok(2)


class TestErr:
    """Test Err class."""

    def test_unwrap_raises_carried_error(self):
        err = ValueError("bad")
        with pytest.raises(ValueError, match="bad"):
            Err(err).unwrap()

    def test_defaults(self):
        result = Err(ValueError("bad"))
        assert result.is_err()
        assert result.unwrap_or(0) == 0
        assert result.unwrap_or_else(lambda e: str(e)) == "bad"

    def test_map_is_skipped(self):
        calls = []
        result = Err(ValueError("bad")).map(lambda x: calls.append(x))
        assert result.is_err()
        assert calls == []

    def test_map_err(self):
        result = Err(ValueError("bad")).map_err(lambda e: QueryError(str(e)))
        assert isinstance(result.error, QueryError)

    def test_to_dict_for_library_error(self):
        d = Err(QueryError("boom")).to_dict()
        assert d["ok"] is False
        assert d["error"]["error_type"] == "QueryError"

    def test_to_dict_for_builtin_error(self):
        assert Err(KeyError("k")).to_dict()["error"]["error_type"] == "KeyError"


class TestTryResult:
    def test_success(self):
        assert try_result(lambda: int("42")) == Ok(42)

    def test_failure(self):
        result = try_result(lambda: int("x"))
        assert result.is_err()
        assert isinstance(result.error, ValueError)
