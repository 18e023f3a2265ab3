"""Tests for ``dataquery.fluent_insert``: the INSERT builder."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from dataquery import DataStore, TableDataSet
from dataquery.dataset import INSERT_KEY
from dataquery.errors import QueryError
from dataquery.fluent_insert import DEFAULT_BATCH_SIZE
from dataquery.sqlgen import build_insert_sql
from tests._support.fakes import FakeAdapter
from tests._support.records import User, users_dataset


def count_users(store: DataStore) -> int:
    return store.select("select count(*) from users").dest(list[int]).fetch()[0]


class TestImplicitInsertStatement:
    def test_generated_once_then_reused(self, users_store):
        ds = users_dataset()
        with patch("dataquery.store.build_insert_sql", wraps=build_insert_sql) as gen:
            users_store.insert(ds).records(User(email="a@x.io")).execute().unwrap()
            users_store.insert(ds).records(User(email="b@x.io")).execute().unwrap()
        assert gen.call_count == 1
        assert ds.statements.get_or_fail(INSERT_KEY) == (
            "INSERT INTO users (email, status, score) VALUES (?1, ?2, ?3)"
        )
        assert count_users(users_store) == 2

    def test_cached_statement_is_used_as_is(self, users_store):
        ds = users_dataset()
        ds.put_command(INSERT_KEY, "insert into users (email) values (?)")
        with patch("dataquery.store.build_insert_sql", wraps=build_insert_sql) as gen:
            users_store.insert(ds).records([("x@x.io",)]).execute().unwrap()
        assert gen.call_count == 0
        assert count_users(users_store) == 1

    def test_schema_qualified_entity(self):
        adapter = FakeAdapter()
        store = DataStore(adapter)
        ds = TableDataSet("users", schema="main", record_type=User)
        store.insert(ds).records(User(email="a@x.io")).execute().unwrap()
        sql, params = adapter.connection.cursors[0].executed[0]
        assert sql.startswith("INSERT INTO main.users (email, status, score)")
        assert params == ("a@x.io", "active", None)

    def test_dataset_without_descriptor(self, users_store):
        result = users_store.insert(TableDataSet("users")).records({"email": "a"}).execute()
        assert result.is_err()
        assert isinstance(result.error, QueryError)

    def test_unsupported_record_type_returns_err(self, users_store):
        class Plain:
            def __init__(self, email):
                self.email = email

        ds = TableDataSet("users", record_type=Plain)
        result = users_store.insert(ds).records(Plain("a")).execute()
        assert result.is_err()
        assert isinstance(result.error, QueryError)
        assert "not a dataclass or pydantic model" in str(result.error)


class TestRecords:
    def test_single_record(self, users_store):
        res = users_store.insert(users_dataset()).records(User(email="a@x.io")).execute()
        assert res.unwrap().rows_affected == 1
        assert res.unwrap().last_insert_id == 1

    def test_many_records(self, users_store):
        users = [User(email=f"{i}@x.io") for i in range(5)]
        res = users_store.insert(users_dataset()).records(users).execute()
        assert res.unwrap().rows_affected == 5
        assert count_users(users_store) == 5

    def test_mapping_record(self, users_store):
        users_store.insert(users_dataset()).records(
            {"email": "m@x.io", "status": "new", "score": 1.5}
        ).execute().unwrap()
        user = users_store.select("select * from users").dest(User).fetch()
        assert user == User(id=1, email="m@x.io", status="new", score=1.5)

    def test_no_records(self, users_store):
        result = users_store.insert(users_dataset()).execute()
        assert result.is_err()
        assert "No records" in str(result.error)

    def test_empty_list(self, users_store):
        assert users_store.insert(users_dataset()).records([]).execute().unwrap().rows_affected == 0


class TestBatch:
    def test_default_batch_size(self):
        assert DEFAULT_BATCH_SIZE == 100

    def test_chunks(self):
        adapter = FakeAdapter()
        store = DataStore(adapter)
        users = [User(email=f"{i}@x.io") for i in range(7)]
        res = store.insert(users_dataset()).records(users).batch().batch_size(3).execute()
        assert res.unwrap().rows_affected == 7
        chunk_sizes = [len(c.executed[0][1]) for c in adapter.connection.cursors]
        assert chunk_sizes == [3, 3, 1]
        # each chunk is its own unit of work without a tx
        assert adapter.connection.commits == 3

    def test_batch_into_sqlite(self, users_store):
        users = [User(email=f"{i}@x.io") for i in range(250)]
        users_store.insert(users_dataset()).records(users).batch().execute().unwrap()
        assert count_users(users_store) == 250

    def test_invalid_batch_size(self, users_store):
        with pytest.raises(QueryError, match="batch_size"):
            users_store.insert(users_dataset()).batch_size(0)

    def test_store_default_batch_size(self):
        adapter = FakeAdapter()
        store = DataStore(adapter, batch_size=2)
        users = [User(email=f"{i}@x.io") for i in range(3)]
        store.insert(users_dataset()).records(users).batch().execute().unwrap()
        assert len(adapter.connection.cursors) == 2


class TestFailures:
    def test_error_returned(self, users_store):
        ds = users_dataset()
        users_store.insert(ds).records(User(email="dup@x.io")).execute().unwrap()
        result = users_store.insert(ds).records(User(email="dup@x.io")).execute()
        assert result.is_err()
        assert isinstance(result.error, QueryError)
        assert result.error.context.dataset == "users"

    def test_panic_on_err_raises(self, users_store):
        ds = users_dataset()
        users_store.insert(ds).records(User(email="dup@x.io")).execute().unwrap()
        with pytest.raises(QueryError):
            users_store.insert(ds).records(User(email="dup@x.io")).panic_on_err().execute()

    def test_without_tx_earlier_records_stay(self, users_store):
        users = [User(email="a@x.io"), User(email="a@x.io"), User(email="c@x.io")]
        result = users_store.insert(users_dataset()).records(users).execute()
        assert result.is_err()
        assert count_users(users_store) == 1

    def test_executes_once(self, users_store):
        builder = users_store.insert(users_dataset()).records(User(email="a@x.io"))
        builder.execute().unwrap()
        assert builder.execute().is_err()


class TestInTransaction:
    def test_panic_rolls_back_whole_body(self, users_store):
        ds = users_dataset()

        def body(tx):
            users_store.insert(ds).records(User(email="a@x.io")).tx(tx).panic_on_err().execute()
            users_store.insert(ds).records(User(email="a@x.io")).tx(tx).panic_on_err().execute()

        result = users_store.transaction(body)
        assert result.is_err()
        assert count_users(users_store) == 0

    def test_returned_err_rolls_back(self, users_store):
        ds = users_dataset()

        def body(tx):
            first = users_store.insert(ds).records(User(email="a@x.io")).tx(tx).execute()
            if first.is_err():
                return first
            return users_store.insert(ds).records(User(email="a@x.io")).tx(tx).execute()

        assert users_store.transaction(body).is_err()
        assert count_users(users_store) == 0

    def test_batch_commits_with_tx(self, users_store):
        users = [User(email=f"{i}@x.io") for i in range(10)]

        def body(tx):
            return users_store.insert(users_dataset()).records(users).batch().batch_size(4).tx(
                tx
            ).execute()

        assert users_store.transaction(body).unwrap().rows_affected == 10
        assert count_users(users_store) == 10
