"""Record shape descriptors.

A :class:`RecordDescriptor` says which columns a record type maps to and
which of them the database generates itself (identity / sequence keys).
It drives two things: implicit INSERT generation (auto columns are left
out) and row materialisation (column name → constructor argument).

Descriptors are derived once per type with :func:`describe` and cached;
nothing is re-introspected per statement.

Examples:
    >>> from dataclasses import dataclass
    >>> @dataclass
    ... class User:
    ...     id: int | None = column(auto=True, default=None)
    ...     email: str = ""
    >>> [f.column for f in describe(User).insert_fields]
    ['email']

Pydantic models declare the same hints through ``json_schema_extra``::

    class User(BaseModel):
        id: int | None = Field(default=None, json_schema_extra={"auto": True})
        email: str
"""

from __future__ import annotations

import dataclasses
import threading
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel

from dataquery.errors import MaterializationError, QueryError

_MISSING = dataclasses.MISSING


@dataclass(frozen=True)
class RecordField:
    """One mapped attribute of a record type."""

    attr: str
    column: str
    auto: bool = False


@dataclass(frozen=True)
class RecordDescriptor:
    """Column mapping for a record type."""

    record_type: type | None
    fields: tuple[RecordField, ...]

    @property
    def insert_fields(self) -> tuple[RecordField, ...]:
        """Fields written by a generated INSERT (auto columns excluded)."""
        return tuple(f for f in self.fields if not f.auto)

    @property
    def columns(self) -> list[str]:
        return [f.column for f in self.fields]

    def field_for(self, column: str) -> RecordField | None:
        wanted = column.lower()
        for f in self.fields:
            if f.column.lower() == wanted:
                return f
        return None

    def values(self, record: Any) -> tuple[Any, ...]:
        """Ordered insert values for ``record`` (object or mapping)."""
        if isinstance(record, Mapping):
            try:
                return tuple(record[f.column] if f.column in record else record[f.attr]
                             for f in self.insert_fields)
            except KeyError as e:
                raise MaterializationError(
                    f"Record mapping is missing column {e.args[0]!r}"
                ) from e
        try:
            return tuple(getattr(record, f.attr) for f in self.insert_fields)
        except AttributeError as e:
            raise MaterializationError(
                f"Record {type(record).__name__} does not match descriptor: {e}",
                cause=e,
            ) from e

    def build(self, row: Mapping[str, Any]) -> Any:
        """Construct a record from a column → value mapping."""
        if self.record_type is None:
            return dict(row)
        kwargs: dict[str, Any] = {}
        for column, value in row.items():
            f = self.field_for(column)
            if f is None:
                raise MaterializationError(
                    f"Column {column!r} has no matching field on {self.record_type.__name__}"
                )
            kwargs[f.attr] = value
        try:
            return self.record_type(**kwargs)
        except (TypeError, ValueError) as e:
            raise MaterializationError(
                f"Cannot build {self.record_type.__name__} from row: {e}",
                cause=e,
            ) from e


def column(
    name: str | None = None,
    *,
    auto: bool = False,
    default: Any = _MISSING,
    default_factory: Any = _MISSING,
) -> Any:
    """Dataclass ``field()`` carrying a column name override and/or the auto flag."""
    metadata: dict[str, Any] = {"auto": auto}
    if name is not None:
        metadata["column"] = name
    kwargs: dict[str, Any] = {"metadata": metadata}
    if default is not _MISSING:
        kwargs["default"] = default
    if default_factory is not _MISSING:
        kwargs["default_factory"] = default_factory
    return dataclasses.field(**kwargs)


def is_record_type(tp: Any) -> bool:
    """True for dataclass types and pydantic model classes."""
    if not isinstance(tp, type):
        return False
    return dataclasses.is_dataclass(tp) or issubclass(tp, BaseModel)


_cache: dict[type, RecordDescriptor] = {}
_cache_lock = threading.Lock()


def describe(record_type: type) -> RecordDescriptor:
    """Derive (once) and return the descriptor for a dataclass or pydantic model."""
    cached = _cache.get(record_type)
    if cached is not None:
        return cached
    with _cache_lock:
        cached = _cache.get(record_type)
        if cached is None:
            cached = _introspect(record_type)
            _cache[record_type] = cached
        return cached


def _introspect(record_type: type) -> RecordDescriptor:
    if dataclasses.is_dataclass(record_type):
        fields = tuple(
            RecordField(
                attr=f.name,
                column=f.metadata.get("column", f.name),
                auto=bool(f.metadata.get("auto", False)),
            )
            for f in dataclasses.fields(record_type)
        )
        return RecordDescriptor(record_type, fields)

    if isinstance(record_type, type) and issubclass(record_type, BaseModel):
        mapped = []
        for attr, info in record_type.model_fields.items():
            extra = info.json_schema_extra if isinstance(info.json_schema_extra, dict) else {}
            mapped.append(
                RecordField(
                    attr=attr,
                    column=str(extra.get("column", info.alias or attr)),
                    auto=bool(extra.get("auto", False)),
                )
            )
        return RecordDescriptor(record_type, tuple(mapped))

    raise QueryError(
        f"{record_type!r} is not a dataclass or pydantic model; "
        "pass an explicit RecordDescriptor instead"
    )


__all__ = [
    "RecordField",
    "RecordDescriptor",
    "column",
    "describe",
    "is_record_type",
]
