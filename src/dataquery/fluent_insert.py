"""Fluent INSERT builder.

::

    store.insert(USERS).records(users).batch().batch_size(500).execute()

Records are inserted with the dataset's ``"insert"`` statement, which is
generated from the record descriptor the first time it is needed and
cached on the dataset.  Records may be dataclass instances, pydantic
models, mappings, or tuples in column order.

Inside a transaction body, either return the ``Err`` from
:meth:`FluentInsert.execute` or set :meth:`FluentInsert.panic_on_err` so
a failure raises and the transaction rolls back.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any

from dataquery.dataset import TableDataSet
from dataquery.errors import DataQueryError, QueryError
from dataquery.result import Err, Ok, Result

if TYPE_CHECKING:
    from dataquery.store import DataStore, ExecResult
    from dataquery.transaction import Tx

DEFAULT_BATCH_SIZE = 100


class FluentInsert:
    """Single-use INSERT builder bound to a store and a dataset."""

    def __init__(self, store: DataStore, dataset: TableDataSet):
        self._store = store
        self._dataset = dataset
        self._records: list[Any] | None = None
        self._tx: Tx | None = None
        self._batch = False
        self._batch_size = store.default_batch_size
        self._panic = False
        self._executed = False

    def records(self, records: Any) -> FluentInsert:
        """One record, or a sequence of records.

        Tuple records must be wrapped in a list: a bare tuple is read as a
        sequence of records.
        """
        if isinstance(records, (str, bytes, Mapping)) or not isinstance(records, Sequence):
            self._records = [records]
        else:
            self._records = list(records)
        return self

    def tx(self, tx: Tx | None) -> FluentInsert:
        self._tx = tx
        return self

    def batch(self, flag: bool = True) -> FluentInsert:
        self._batch = flag
        return self

    def batch_size(self, size: int) -> FluentInsert:
        if size < 1:
            raise QueryError(f"batch_size must be >= 1, got {size}")
        self._batch_size = size
        return self

    def panic_on_err(self, flag: bool = True) -> FluentInsert:
        """Raise failures from :meth:`execute` instead of returning ``Err``."""
        self._panic = flag
        return self

    def execute(self) -> Result[ExecResult]:
        try:
            if self._executed:
                raise QueryError("Insert builder has already been executed")
            self._executed = True
            if self._records is None:
                raise QueryError(f"No records given for insert into '{self._dataset.entity}'")
            value = self._store.run_insert(
                self._dataset,
                self._records,
                tx=self._tx,
                batch=self._batch,
                batch_size=self._batch_size,
            )
        except DataQueryError as e:
            if self._panic:
                raise
            return Err(e)
        return Ok(value)

    def __repr__(self) -> str:
        count = len(self._records) if self._records is not None else 0
        return f"FluentInsert(dataset={self._dataset!r}, records={count}, batch={self._batch})"


__all__ = [
    "DEFAULT_BATCH_SIZE",
    "FluentInsert",
]
