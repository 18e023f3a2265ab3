"""SQL text assembly: generated INSERTs, argument substitution, suffixes and
portable placeholder rewriting.

Everything here is a pure string function; the execution engine composes
them in a fixed order::

    base SQL ──apply_args──▶ ──append_suffix──▶ ──rewrite_placeholders──▶ driver
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from dataquery.dialect import Dialect
from dataquery.errors import QueryError
from dataquery.records import RecordDescriptor


def build_insert_sql(entity: str, descriptor: RecordDescriptor, dialect: Dialect) -> str:
    """INSERT for every non-auto field of ``descriptor``, in declaration order."""
    fields = descriptor.insert_fields
    if not fields:
        raise QueryError(f"No insertable fields for '{entity}'").with_context(dataset=entity)
    cols = ", ".join(f.column for f in fields)
    binds = ", ".join(dialect.bind(f.column, i) for i, f in enumerate(fields))
    return f"INSERT INTO {entity} ({cols}) VALUES ({binds})"


def apply_args(sql: str, args: Sequence[Any]) -> str:
    """printf-style substitution of ``%s``/``%d`` slots.

    Only for trusted identifiers (table or column names); values must go
    through bound parameters.
    """
    if not args:
        return sql
    try:
        return sql % tuple(args)
    except (TypeError, ValueError) as e:
        raise QueryError(f"Cannot apply {len(args)} argument(s) to statement: {e}").with_context(
            sql=sql
        ) from e


def append_suffix(sql: str, suffix: str | None) -> str:
    """Join ``sql`` and ``suffix`` with exactly one space."""
    if not suffix or not suffix.strip():
        return sql
    return f"{sql.rstrip()} {suffix.strip()}"


def rewrite_placeholders(sql: str, dialect: Dialect) -> str:
    """Translate portable ``?`` placeholders into the dialect's native binds.

    A ``?`` counts as portable when it is outside quoted text, ``--`` and
    ``/* */`` comments, and not followed by a digit (``?1`` is already
    native SQLite).  Portable slots are numbered in order of appearance,
    after the highest native bind already in the text, so
    ``a = $1 and b = ?`` becomes ``a = $1 and b = $2``.
    """
    if "?" not in sql:
        return sql

    native = _native_prefix(dialect)
    out: list[str | None] = []
    highest = 0
    i = 0
    n = len(sql)
    quote: str | None = None
    while i < n:
        ch = sql[i]
        if quote:
            out.append(ch)
            if ch == quote:
                # doubled quote is an escaped quote inside the literal
                if i + 1 < n and sql[i + 1] == quote:
                    out.append(sql[i + 1])
                    i += 1
                else:
                    quote = None
        elif ch in ("'", '"'):
            quote = ch
            out.append(ch)
        elif sql.startswith("--", i) or sql.startswith("/*", i):
            end = _comment_end(sql, i)
            out.append(sql[i:end])
            i = end
            continue
        elif native and (end := _native_end(sql, i, native)):
            highest = max(highest, int(sql[i + len(native):end]))
            out.append(sql[i:end])
            i = end
            continue
        elif ch == "?" and not (i + 1 < n and sql[i + 1].isdigit()):
            out.append(None)
        else:
            out.append(ch)
        i += 1

    parts = []
    index = highest
    for piece in out:
        if piece is None:
            piece = dialect.bind(None, index)
            index += 1
        parts.append(piece)
    return "".join(parts)


def _native_prefix(dialect: Dialect) -> str:
    """Text before the number in the dialect's binds (``$`` for ``$1``); empty if unnumbered."""
    sample = dialect.bind(None, 0)
    prefix = sample.rstrip("0123456789")
    return prefix if prefix != sample else ""


def _native_end(sql: str, start: int, prefix: str) -> int:
    """End of a native numbered bind starting at ``start``, or 0 if there is none."""
    if not sql.startswith(prefix, start):
        return 0
    end = start + len(prefix)
    while end < len(sql) and sql[end].isdigit():
        end += 1
    return end if end > start + len(prefix) else 0


def _comment_end(sql: str, start: int) -> int:
    if sql.startswith("--", start):
        end = sql.find("\n", start)
        return len(sql) if end == -1 else end
    end = sql.find("*/", start + 2)
    return len(sql) if end == -1 else end + 2


__all__ = [
    "build_insert_sql",
    "apply_args",
    "append_suffix",
    "rewrite_placeholders",
]
