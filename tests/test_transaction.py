"""Tests for ``dataquery.transaction``: Tx state machine and run_transaction."""

from __future__ import annotations

import pytest
from structlog.testing import capture_logs

from dataquery import DataStore, Err, Ok
from dataquery.errors import QueryError, StatementNotFoundError, TransactionError
from dataquery.transaction import Tx, TxState, run_transaction
from tests._support.fakes import FakeAdapter
from tests._support.records import users_dataset


def count_users(store: DataStore) -> int:
    return store.select("select count(*) from users").dest(list[int]).fetch()[0]


class TestTransactionBody:
    def test_commit_on_plain_return(self, users_store):
        def body(tx):
            users_store.must_exec("insert into users (email) values (?)", "a@x.io", tx=tx)
            users_store.must_exec("insert into users (email) values (?)", "b@x.io", tx=tx)
            return "done"

        assert users_store.transaction(body) == Ok("done")
        assert count_users(users_store) == 2

    def test_commit_on_ok(self, users_store):
        result = users_store.transaction(
            lambda tx: users_store.execr("insert into users (email) values (?)", "a", tx=tx)
        )
        assert result.unwrap().rows_affected == 1
        assert count_users(users_store) == 1

    def test_raise_after_first_insert_rolls_back(self, users_store):
        def body(tx):
            users_store.must_exec("insert into users (email) values (?)", "a@x.io", tx=tx)
            users_store.must_exec("insert into users (email) values (?)", "b@x.io", tx=tx)
            raise RuntimeError("forced")

        result = users_store.transaction(body)
        assert result.is_err()
        assert isinstance(result.error, RuntimeError)
        assert count_users(users_store) == 0

    def test_returned_err_rolls_back(self, users_store):
        def body(tx):
            users_store.must_exec("insert into users (email) values (?)", "a@x.io", tx=tx)
            return Err(ValueError("changed my mind"))

        result = users_store.transaction(body)
        assert isinstance(result.error, ValueError)
        assert count_users(users_store) == 0

    def test_must_exec_failure_rolls_back(self, users_store):
        def body(tx):
            users_store.must_exec("insert into users (email) values (?)", "a@x.io", tx=tx)
            users_store.must_exec("insert into missing_table values (1)", tx=tx)

        result = users_store.transaction(body)
        assert isinstance(result.error, QueryError)
        assert count_users(users_store) == 0

    def test_statement_lookup_failure_rolls_back(self, users_store):
        ds = users_dataset()

        def body(tx):
            users_store.must_exec("insert into users (email) values (?)", "a@x.io", tx=tx)
            return users_store.select().dataset(ds).stmt("nope").tx(tx).dest(list[int]).fetch()

        result = users_store.transaction(body)
        assert isinstance(result.error, StatementNotFoundError)
        assert count_users(users_store) == 0

    def test_base_exception_rolls_back_and_propagates(self):
        adapter = FakeAdapter()
        store = DataStore(adapter)

        def body(tx):
            raise KeyboardInterrupt

        with pytest.raises(KeyboardInterrupt):
            store.transaction(body)
        assert adapter.connection.rollbacks == 1
        assert adapter.outstanding == 0

    def test_logs_outcomes(self, users_store):
        with capture_logs() as logs:
            users_store.transaction(lambda tx: None)
            users_store.transaction(lambda tx: Err(ValueError("x")))
        events = [e["event"] for e in logs]
        assert "transaction_committed" in events
        assert "transaction_rolled_back" in events


class TestTxStateMachine:
    def test_states(self):
        adapter = FakeAdapter()
        tx = Tx(adapter)
        assert tx.state is TxState.IDLE
        tx.begin()
        assert tx.state is TxState.ACTIVE
        assert adapter.outstanding == 1
        tx.commit()
        assert tx.state is TxState.COMMITTED
        assert adapter.outstanding == 0
        assert adapter.connection.commits == 1

    def test_rollback(self):
        adapter = FakeAdapter()
        tx = Tx(adapter).begin()
        tx.rollback()
        assert tx.state is TxState.ROLLED_BACK
        assert adapter.connection.rollbacks == 1
        assert adapter.outstanding == 0

    def test_finished_tx_cannot_be_used(self, users_store):
        tx = users_store.begin()
        tx.commit()
        with pytest.raises(TransactionError, match="not active"):
            users_store.must_exec("delete from users", tx=tx)
        with pytest.raises(TransactionError):
            tx.commit()
        with pytest.raises(TransactionError, match="Cannot begin"):
            tx.begin()

    def test_failed_commit_becomes_transaction_error(self):
        adapter = FakeAdapter()

        def broken_commit():
            raise RuntimeError("disk I/O error")

        adapter.connection.commit = broken_commit
        store = DataStore(adapter)
        result = store.transaction(lambda tx: "value")
        assert isinstance(result.error, TransactionError)
        assert adapter.connection.rollbacks == 1
        assert adapter.outstanding == 0

    def test_failed_begin(self):
        adapter = FakeAdapter()

        def broken_begin(conn):
            raise RuntimeError("cannot begin")

        adapter.begin = broken_begin
        result = run_transaction(Tx(adapter), lambda tx: None)
        assert isinstance(result.error, TransactionError)
        assert adapter.outstanding == 0

    def test_body_may_finish_tx_itself(self):
        adapter = FakeAdapter()

        def body(tx):
            tx.commit()
            return 1

        assert run_transaction(Tx(adapter), body) == Ok(1)
        assert adapter.connection.commits == 1


class TestTxContextManager:
    def test_commits(self, users_store):
        with users_store.tx() as tx:
            users_store.must_exec("insert into users (email) values (?)", "a@x.io", tx=tx)
        assert tx.state is TxState.COMMITTED
        assert count_users(users_store) == 1

    def test_rolls_back_and_reraises(self, users_store):
        with pytest.raises(RuntimeError):
            with users_store.tx() as tx:
                users_store.must_exec("insert into users (email) values (?)", "a@x.io", tx=tx)
                raise RuntimeError("nope")
        assert tx.state is TxState.ROLLED_BACK
        assert count_users(users_store) == 0

    def test_explicit_begin(self, users_store):
        tx = users_store.begin()
        users_store.must_exec("insert into users (email) values (?)", "a@x.io", tx=tx)
        tx.rollback()
        assert count_users(users_store) == 0


class TestAmbientInsideTransaction:
    def test_ambient_exec_cannot_commit_transaction_work(self, users_store):
        ambient = []

        def body(tx):
            users_store.must_exec("insert into users (email) values (?)", "a@x.io", tx=tx)
            ambient.append(users_store.exec("select 1"))
            return Err(ValueError("undo"))

        result = users_store.transaction(body)
        assert isinstance(result.error, ValueError)
        assert isinstance(ambient[0].error, TransactionError)
        assert count_users(users_store) == 0

    def test_ambient_select_inside_tx_block(self, users_store):
        with users_store.tx() as tx:
            users_store.must_exec("insert into users (email) values (?)", "a@x.io", tx=tx)
            with pytest.raises(TransactionError, match="pass tx="):
                users_store.select("select count(*) from users").dest(list[int]).fetch()
        assert tx.state is TxState.COMMITTED
        assert count_users(users_store) == 1

    def test_adapter_told_when_tx_starts_and_ends(self):
        adapter = FakeAdapter()
        events = []
        adapter.attach_transaction = lambda conn: events.append("attach")
        adapter.detach_transaction = lambda conn: events.append("detach")
        Tx(adapter).begin().rollback()
        assert events == ["attach", "detach"]
        assert adapter.outstanding == 0
