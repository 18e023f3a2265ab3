"""
Result envelope for explicit success/failure.

``Ok[T]`` / ``Err[T]`` make failure a return value instead of a control-flow
jump.  The data-access layer uses them where a caller must decide what to do
with a failure without a surrounding ``try``: ``DataStore.exec``,
``FluentInsert.execute``, ``Statements.get`` and, most importantly, the
transaction body contract: a body returns ``Err`` to request a rollback.

Architecture:
    ::

        ┌───────────────┬────────────────┬──────────────────┐
        │    Ok[T]      │    Err[T]      │    Utilities     │
        ├───────────────┼────────────────┼──────────────────┤
        │ value: T      │ error: Exc     │ try_result()     │
        │ map()         │ map_err()      │                  │
        │ flat_map()    │ unwrap_or()    │                  │
        └───────────────┴────────────────┴──────────────────┘

Examples:
    >>> Ok(2).map(lambda x: x * 3).unwrap()
    6
    >>> Err(ValueError("bad")).unwrap_or(0)
    0

Tags:
    result-pattern, error-handling, dataquery
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar

from dataquery.errors import DataQueryError

T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Successful result containing a value."""

    value: T

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    @property
    def error(self) -> None:
        return None

    def unwrap(self) -> T:
        """Get the value. Safe for Ok."""
        return self.value

    def unwrap_or(self, default: T) -> T:
        return self.value

    def unwrap_or_else(self, f: Callable[[Exception], T]) -> T:
        return self.value

    def map(self, f: Callable[[T], U]) -> Result[U]:
        """Transform the value."""
        return Ok(f(self.value))

    def map_err(self, f: Callable[[Exception], Exception]) -> Result[T]:
        return self

    def flat_map(self, f: Callable[[T], Result[U]]) -> Result[U]:
        """Chain to another Result-returning function."""
        return f(self.value)

    def to_dict(self) -> dict[str, Any]:
        return {"ok": True, "value": self.value}

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True, slots=True)
class Err(Generic[T]):
    """Failed result carrying the exception that caused it."""

    error: Exception

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def unwrap(self) -> T:
        """Raise the carried error."""
        raise self.error

    def unwrap_or(self, default: T) -> T:
        return default

    def unwrap_or_else(self, f: Callable[[Exception], T]) -> T:
        return f(self.error)

    def map(self, f: Callable[[T], U]) -> Result[U]:
        return Err(self.error)

    def map_err(self, f: Callable[[Exception], Exception]) -> Result[T]:
        """Transform the error."""
        return Err(f(self.error))

    def flat_map(self, f: Callable[[T], Result[U]]) -> Result[U]:
        return Err(self.error)

    def to_dict(self) -> dict[str, Any]:
        if isinstance(self.error, DataQueryError):
            return {"ok": False, "error": self.error.to_dict()}
        return {
            "ok": False,
            "error": {
                "error_type": type(self.error).__name__,
                "message": str(self.error),
            },
        }

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


Result = Ok[T] | Err[T]


def try_result(f: Callable[[], T]) -> Result[T]:
    """Call ``f`` and wrap its return value in ``Ok`` or its exception in ``Err``.

    Example:
        >>> try_result(lambda: int("42")).unwrap()
        42
        >>> try_result(lambda: int("x")).is_err()
        True
    """
    try:
        return Ok(f())
    except Exception as e:
        return Err(e)


__all__ = ["Ok", "Err", "Result", "try_result"]
