"""Result materialisation: cursor → records, scalars or JSON.

Destinations are tagged descriptors rather than "any" output parameters:

- :class:`One`: the first row as one record (or ``dict``)
- :class:`Many`: one record (or ``dict``) per row, in result order
- :class:`Scalars`: the first column of every row (``RETURNING id``)

:func:`as_destination` turns the type expressions callers pass to
``FluentSelect.dest()`` into one of these::

    User            → One(User)
    list[User]      → Many(User)
    list[int]       → Scalars(int)
    dict            → One(dict)
    list[dict]      → Many(dict)

Every entry point here consumes a :class:`~dataquery.rows.Rows` handle
and closes it on all paths.

JSON values are encoded with :func:`json_default`: datetimes as
ISO-8601, ``Decimal`` and ``UUID`` as strings, ``bytes`` as base64, and
any other unknown type through ``str()``.
"""

from __future__ import annotations

import base64
import datetime as dt
import json
import typing
import uuid
from dataclasses import dataclass
from decimal import Decimal
from typing import IO, Any

from dataquery.errors import MaterializationError, NoRowsError, QueryError
from dataquery.records import RecordDescriptor, describe, is_record_type
from dataquery.rows import Rows

_SCALARS = (int, float, str, bytes, bool, Decimal, dt.datetime, dt.date, dt.time, uuid.UUID)


@dataclass(frozen=True)
class One:
    """Single-record destination; zero rows raise :class:`NoRowsError`."""

    target: type | RecordDescriptor = dict


@dataclass(frozen=True)
class Many:
    """List-of-records destination."""

    target: type | RecordDescriptor = dict


@dataclass(frozen=True)
class Scalars:
    """List of first-column values."""

    scalar_type: type | None = None


Destination = One | Many | Scalars


def as_destination(target: Any) -> Destination:
    """Normalise a ``dest()`` argument into a destination descriptor."""
    if isinstance(target, (One, Many, Scalars)):
        return target
    if isinstance(target, RecordDescriptor) or target is dict or is_record_type(target):
        return One(target)

    if typing.get_origin(target) is list:
        (item,) = typing.get_args(target) or (None,)
        if item is dict or typing.get_origin(item) is dict:
            return Many(dict)
        if isinstance(item, RecordDescriptor) or is_record_type(item):
            return Many(item)
        if item in _SCALARS:
            return Scalars(item)

    raise QueryError(f"Unsupported destination: {target!r}")


def _row_builder(target: type | RecordDescriptor):
    if target is dict:
        return lambda rows: rows.scan_dict()
    descriptor = target if isinstance(target, RecordDescriptor) else describe(target)
    return lambda rows: descriptor.build(rows.scan_dict())


def _consume(rows: Rows, dest: Destination) -> Any:
    if isinstance(dest, One):
        if not rows.next():
            raise NoRowsError("Query returned no rows for a single-record destination")
        return _row_builder(dest.target)(rows)

    if isinstance(dest, Many):
        build = _row_builder(dest.target)
        out = []
        while rows.next():
            out.append(build(rows))
        return out

    values = []
    while rows.next():
        row = rows.scan()
        if len(row) != 1:
            raise MaterializationError(
                f"Scalar destination needs exactly one column, query returned {len(row)}"
            )
        values.append(row[0])
    return values


def materialize(rows: Rows, dest: Destination) -> Any:
    """Read ``rows`` into ``dest`` and close them."""
    try:
        value = _consume(rows, dest)
    except BaseException as e:
        rows.close(e)
        raise
    rows.close()
    return value


def json_default(value: Any) -> Any:
    """``json.dumps`` fallback for driver value types."""
    if isinstance(value, (dt.datetime, dt.date, dt.time)):
        return value.isoformat()
    if isinstance(value, (Decimal, uuid.UUID)):
        return str(value)
    if isinstance(value, (bytes, bytearray, memoryview)):
        return base64.b64encode(bytes(value)).decode("ascii")
    return str(value)


def _dumps(obj: Any) -> str:
    return json.dumps(obj, default=json_default, ensure_ascii=False)


def rows_to_json(rows: Rows) -> bytes:
    """Buffer the whole result as one UTF-8 JSON array of row objects."""
    return _dumps(materialize(rows, Many(dict))).encode("utf-8")


def stream_json(rows: Rows, writer: IO[str]) -> int:
    """Write ``[``, one object per row, ``]`` to ``writer``; returns the row count."""
    count = 0
    try:
        writer.write("[")
        while rows.next():
            if count:
                writer.write(",")
            writer.write(_dumps(rows.scan_dict()))
            count += 1
        writer.write("]")
    except BaseException as e:
        rows.close(e)
        raise
    rows.close()
    return count


__all__ = [
    "One",
    "Many",
    "Scalars",
    "Destination",
    "as_destination",
    "materialize",
    "json_default",
    "rows_to_json",
    "stream_json",
]
