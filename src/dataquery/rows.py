"""Live result cursor handle.

:class:`Rows` wraps a DB-API cursor with a ``next()``/``scan()`` reading
contract and guaranteed, idempotent release.  Whoever holds a ``Rows``
owns the cursor (and, for ambient queries, the connection behind it)
until :meth:`Rows.close` is called:

- ``FluentSelect.fetch_rows()`` hands ownership to the caller.
- ``fetch()``, ``fetch_json()`` and ``output_json()`` keep ownership and
  always close, on success and on failure alike.

Examples:
    >>> with store.select("select id, email from users").fetch_rows() as rows:
    ...     while rows.next():
    ...         user_id, email = rows.scan()

Guardrails:
    ❌ DON'T: Share a Rows handle between threads
    ✅ DO: Close it in the thread that obtained it (``with`` block)
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from typing import Any

from dataquery.errors import MaterializationError
from dataquery.protocols import Cursor
from dataquery.records import RecordDescriptor, describe

OnClose = Callable[[BaseException | None], None]


class Rows:
    """Forward-only cursor over a query result."""

    def __init__(self, cursor: Cursor, *, on_close: OnClose | None = None):
        self._cursor = cursor
        self._on_close = on_close
        self._current: tuple[Any, ...] | None = None
        self._closed = False
        self._columns: list[str] = [d[0] for d in (cursor.description or ())]

    @property
    def closed(self) -> bool:
        return self._closed

    def columns(self) -> list[str]:
        """Column names in result order."""
        return list(self._columns)

    def column_types(self) -> list[Any]:
        """Driver type codes (DB-API ``description[i][1]``) in result order."""
        return [d[1] for d in (self._cursor.description or ())]

    def next(self) -> bool:
        """Advance to the next row; False once the result is exhausted."""
        if self._closed:
            return False
        row = self._cursor.fetchone()
        if row is None:
            self._current = None
            return False
        self._current = tuple(row)
        return True

    def scan(self) -> tuple[Any, ...]:
        """Values of the current row."""
        if self._current is None:
            raise MaterializationError("scan() called without a current row; call next() first")
        return self._current

    def scan_dict(self) -> dict[str, Any]:
        """Current row as a column name → value mapping."""
        return dict(zip(self._columns, self.scan()))

    def scan_struct(self, target: type | RecordDescriptor) -> Any:
        """Current row built into a record type (or through an explicit descriptor)."""
        descriptor = target if isinstance(target, RecordDescriptor) else describe(target)
        return descriptor.build(self.scan_dict())

    def close(self, error: BaseException | None = None) -> None:
        """Release the cursor; safe to call more than once.

        ``error`` tells the owner the rows were abandoned because of a
        failure, so an ambient unit of work is rolled back instead of
        committed.
        """
        if self._closed:
            return
        self._closed = True
        self._current = None
        try:
            self._cursor.close()
        finally:
            if self._on_close is not None:
                self._on_close(error)

    def __iter__(self) -> Iterator[tuple[Any, ...]]:
        while self.next():
            yield self._current

    def __enter__(self) -> Rows:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close(exc_val)

    def __repr__(self) -> str:
        return f"Rows(columns={self._columns!r}, closed={self._closed})"


__all__ = ["Rows"]
