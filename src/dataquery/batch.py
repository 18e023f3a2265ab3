"""Statement batches.

A :class:`Batch` queues statements; ``DataStore.send_batch`` runs the
queue in order on one connection and reports a :class:`BatchResult`
with one outcome per statement, in submission order.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from dataquery.result import Result

if TYPE_CHECKING:
    from dataquery.store import ExecResult


@dataclass(frozen=True)
class QueuedStatement:
    sql: str
    params: tuple[Any, ...] = ()


class Batch:
    """Ordered queue of statements for one submission."""

    def __init__(self) -> None:
        self._statements: list[QueuedStatement] = []

    def queue(self, sql: str, *params: Any) -> Batch:
        self._statements.append(QueuedStatement(sql, tuple(params)))
        return self

    @property
    def statements(self) -> list[QueuedStatement]:
        return list(self._statements)

    def __len__(self) -> int:
        return len(self._statements)

    def __iter__(self) -> Iterator[QueuedStatement]:
        return iter(list(self._statements))

    def __repr__(self) -> str:
        return f"Batch(statements={len(self._statements)})"


class BatchResult:
    """Per-statement outcomes of a sent batch."""

    def __init__(self, results: Sequence[Result[ExecResult]]):
        self._results = list(results)

    @property
    def ok(self) -> bool:
        """True when every statement succeeded."""
        return all(r.is_ok() for r in self._results)

    @property
    def error(self) -> Exception | None:
        """The first failure, if any."""
        for r in self._results:
            if r.is_err():
                return r.error
        return None

    @property
    def rows_affected(self) -> int:
        return sum(r.value.rows_affected for r in self._results if r.is_ok())

    def __len__(self) -> int:
        return len(self._results)

    def __iter__(self) -> Iterator[Result[ExecResult]]:
        return iter(self._results)

    def __getitem__(self, index: int) -> Result[ExecResult]:
        return self._results[index]

    def __repr__(self) -> str:
        return f"BatchResult(statements={len(self._results)}, ok={self.ok})"


__all__ = [
    "Batch",
    "BatchResult",
    "QueuedStatement",
]
