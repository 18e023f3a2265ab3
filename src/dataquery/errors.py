"""
Structured error types for dataquery.

Every failure the data-access layer surfaces is a :class:`DataQueryError`
subclass carrying a category, a retry hint, structured context (the SQL,
the statement key, the dataset) and the chained driver exception.

Manifesto:
    - **Typed hierarchy:** Callers catch ``StatementNotFoundError`` or
      ``NoRowsError`` instead of string-matching driver messages
    - **Explicit retry semantics:** Connection failures are retryable,
      statement failures are not
    - **Error chaining:** The driver exception is always kept as ``cause``

Architecture:
    ::

        DataQueryError (category, retryable, context, cause)
        ├── ConfigError               unknown store type, missing driver
        ├── DatabaseConnectionError   driver connect failure (retryable)
        └── DatabaseError
            ├── QueryError            backend rejected/failed a statement
            │   └── StatementNotFoundError
            ├── MaterializationError  destination shape mismatch, scan failure
            │   └── NoRowsError       single-record destination, zero rows
            ├── TransactionError      begin/commit/rollback, finished handle
            └── BatchError            statement skipped after a batch failure

Examples:
    >>> err = QueryError("insert failed").with_context(sql="INSERT ...")
    >>> err.context.sql
    'INSERT ...'
    >>> is_retryable(DatabaseConnectionError("refused"))
    True

Tags:
    error-handling, exception-hierarchy, dataquery

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and routing."""

    DATABASE = "DATABASE"  # connection, statement execution
    CONFIG = "CONFIG"  # store type, driver, settings
    VALIDATION = "VALIDATION"  # destination or record shape
    INTERNAL = "INTERNAL"  # misuse, unexpected state
    UNKNOWN = "UNKNOWN"


@dataclass
class ErrorContext:
    """Structured metadata attached to an error.

    Attributes:
        sql: Resolved SQL text that was executing
        statement_key: Statement cache key that was looked up
        dataset: Qualified entity name of the dataset involved
        metadata: Additional key-value pairs
    """

    sql: str | None = None
    statement_key: str | None = None
    dataset: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result: dict[str, Any] = {}
        for key in ("sql", "statement_key", "dataset"):
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class DataQueryError(Exception):
    """
    Base exception for all dataquery errors.

    Subclasses set ``default_category`` and ``default_retryable``; callers
    may override both per instance.
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

    def with_context(self, **kwargs: Any) -> DataQueryError:
        """Add context fields; unknown keys go to ``metadata``. Returns self."""
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Serialize for structured logging."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context = self.context.to_dict()
        if context:
            result["context"] = context
        if self.cause is not None:
            result["cause"] = f"{type(self.cause).__name__}: {self.cause}"
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


class ConfigError(DataQueryError):
    """Invalid store type, dialect, driver or settings."""

    default_category = ErrorCategory.CONFIG


class DatabaseConnectionError(DataQueryError):
    """The driver could not establish a connection."""

    default_category = ErrorCategory.DATABASE
    default_retryable = True


class DatabaseError(DataQueryError):
    """Base for failures raised while talking to a connected backend."""

    default_category = ErrorCategory.DATABASE


class QueryError(DatabaseError):
    """The backend rejected or failed a statement."""


class StatementNotFoundError(QueryError):
    """A statement key is not present in a dataset's statement cache."""

    def __init__(self, key: str, dataset: str | None = None):
        where = f" in dataset '{dataset}'" if dataset else ""
        super().__init__(
            f"Invalid statement: '{key}' not found{where}",
            context=ErrorContext(statement_key=key, dataset=dataset),
        )
        self.key = key


class MaterializationError(DatabaseError):
    """A result row could not be mapped into the requested destination."""

    default_category = ErrorCategory.VALIDATION


class NoRowsError(MaterializationError):
    """A single-record destination received an empty result set."""


class TransactionError(DatabaseError):
    """Begin, commit or rollback failed, or a finished handle was reused."""


class BatchError(DatabaseError):
    """A batched statement was not executed because an earlier one failed."""


def is_retryable(error: BaseException) -> bool:
    """Check whether an error is worth retrying."""
    if isinstance(error, DataQueryError):
        return error.retryable
    return isinstance(error, (ConnectionError, TimeoutError))


__all__ = [
    "ErrorCategory",
    "ErrorContext",
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
    "is_retryable",
]
