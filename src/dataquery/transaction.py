"""Unit-of-work handles.

Manifesto:
    A transaction body must be able to say "this failed, undo everything"
    without relying on an exception escaping through unrelated frames.
    Bodies therefore return a :class:`~dataquery.result.Result`: ``Err``
    rolls back, anything else commits.  Exceptions raised by the body are
    still intercepted and turned into a rollback plus ``Err``, so the
    ``must_*`` helpers remain usable inside a body.

Architecture::

    IDLE ──begin()──▶ ACTIVE ──commit()───▶ COMMITTED
                        │
                        └────rollback()──▶ ROLLED_BACK

    run_transaction(tx, body)
        begin → body(tx) ─┬─ value / Ok(value) → commit → Ok(value)
                          ├─ Err(e)            → rollback → Err(e)
                          └─ raise e           → rollback → Err(e)

Guardrails:
    ❌ DON'T: Use a Tx from two threads (one connection, one ordered stream)
    ❌ DON'T: Keep using a Tx after commit/rollback
    ✅ DO: Return ``Err`` from a body to request a rollback

Tags:
    dataquery, transaction, unit-of-work, result-pattern
"""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum
from typing import TYPE_CHECKING, Any, TypeVar

from dataquery.errors import TransactionError
from dataquery.logging import get_logger
from dataquery.protocols import Connection
from dataquery.result import Err, Ok, Result

if TYPE_CHECKING:
    from dataquery.adapters.base import DatabaseAdapter

logger = get_logger(__name__)

T = TypeVar("T")


class TxState(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


class Tx:
    """One live transaction on one connection borrowed from an adapter."""

    def __init__(self, adapter: DatabaseAdapter):
        self._adapter = adapter
        self._conn: Connection | None = None
        self._state = TxState.IDLE

    @property
    def state(self) -> TxState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state is TxState.ACTIVE

    @property
    def connection(self) -> Connection:
        """The transaction's connection; raises unless ACTIVE."""
        if self._state is not TxState.ACTIVE or self._conn is None:
            raise TransactionError(f"Transaction is {self._state.value}, not active")
        return self._conn

    def begin(self) -> Tx:
        if self._state is not TxState.IDLE:
            raise TransactionError(f"Cannot begin a transaction that is {self._state.value}")
        conn = self._adapter.acquire()
        try:
            self._adapter.begin(conn)
        except Exception as e:
            self._adapter.release(conn)
            raise TransactionError(f"Failed to begin transaction: {e}", cause=e) from e
        self._adapter.attach_transaction(conn)
        self._conn = conn
        self._state = TxState.ACTIVE
        return self

    def commit(self) -> None:
        """Commit and release; a failed commit is rolled back and raised as TransactionError."""
        conn = self.connection
        try:
            conn.commit()
        except Exception as e:
            try:
                self._finish(TxState.ROLLED_BACK, conn.rollback)
            except Exception as rb:
                logger.error("transaction_rollback_failed", error=str(rb), cause=str(e))
            logger.warning("transaction_rolled_back", reason="commit_failed", error=str(e))
            raise TransactionError(f"Commit failed: {e}", cause=e) from e
        self._finish(TxState.COMMITTED, None)
        logger.debug("transaction_committed")

    def rollback(self) -> None:
        conn = self.connection
        self._finish(TxState.ROLLED_BACK, conn.rollback)
        logger.debug("transaction_rolled_back")

    def _finish(self, state: TxState, action: Callable[[], None] | None) -> None:
        conn = self._conn
        self._state = state
        self._conn = None
        try:
            if action is not None:
                action()
        finally:
            self._adapter.detach_transaction(conn)
            self._adapter.release(conn)

    def __enter__(self) -> Tx:
        if self._state is TxState.IDLE:
            self.begin()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._state is not TxState.ACTIVE:
            return
        if exc_type is None:
            self.commit()
        else:
            self.rollback()

    def __repr__(self) -> str:
        return f"Tx(state={self._state.value})"


def run_transaction(tx: Tx, body: Callable[[Tx], Any]) -> Result[Any]:
    """Run ``body`` as one unit of work on ``tx`` (see module docs)."""
    if tx.state is TxState.IDLE:
        try:
            tx.begin()
        except TransactionError as e:
            return Err(e)

    try:
        out = body(tx)
    except BaseException as e:
        _rollback_quietly(tx, e)
        if not isinstance(e, Exception):
            raise
        return Err(e)

    if isinstance(out, Err):
        _rollback_quietly(tx, out.error)
        return out

    value = out.value if isinstance(out, Ok) else out
    if tx.is_active:
        try:
            tx.commit()
        except TransactionError as e:
            return Err(e)
    return Ok(value)


def _rollback_quietly(tx: Tx, cause: BaseException) -> None:
    """Roll back after a body failure; the body's error is what the caller sees."""
    if not tx.is_active:
        return
    try:
        tx.rollback()
    except Exception as e:
        logger.error("transaction_rollback_failed", error=str(e), cause=str(cause))


__all__ = [
    "Tx",
    "TxState",
    "run_transaction",
]
