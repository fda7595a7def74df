"""
Tests for db.py - engine wiring and SQLite transaction behaviour.
"""

from decimal import Decimal

import pytest
from sqlalchemy import inspect, text
from sqlalchemy.exc import IntegrityError

from billing_api import db
from billing_api.tables import Contract, Profile


class TestEngine:
    def test_init_creates_tables(self, engine):
        assert {"Profiles", "Contracts", "Jobs"} <= set(inspect(engine).get_table_names())

    def test_in_memory_database(self):
        db.configure_engine("sqlite://")
        try:
            db.init_db()
            session = db.new_session()
            session.add(Profile(first_name="A", last_name="B", balance=Decimal("1"), type="client"))
            session.commit()
            # StaticPool keeps the one in-memory database across sessions
            other = db.new_session()
            assert other.query(Profile).count() == 1
            other.close()
            session.close()
        finally:
            db.dispose_engine()

    def test_get_session_closes(self, engine):
        gen = db.get_session()
        session = next(gen)
        session.execute(text("select 1"))
        with pytest.raises(StopIteration):
            next(gen)
        assert not session.in_transaction()


class TestSqliteConnection:
    def test_foreign_keys_enforced(self, session):
        session.add(Contract(terms="x", status="new", client_id=999, contractor_id=998))
        with pytest.raises(IntegrityError):
            session.commit()
        session.rollback()


def _begins(statements):
    return [stmt for stmt, _ in statements if stmt.startswith("BEGIN")]


class TestSqliteTransactions:
    def test_reads_begin_deferred(self, data, statements):
        session = db.new_session()
        try:
            assert session.get(Profile, data.a).first_name == "Harry"
        finally:
            session.close()

        assert _begins(statements) == ["BEGIN"]

    def test_begin_write_takes_the_write_lock(self, data, statements):
        session = db.new_session()
        try:
            db.begin_write(session)
        finally:
            session.close()

        assert _begins(statements) == ["BEGIN IMMEDIATE"]

    def test_begin_write_drops_an_open_read(self, data, statements):
        session = db.new_session()
        try:
            session.get(Profile, data.a)
            db.begin_write(session)
            assert session.in_transaction()
        finally:
            session.close()

        assert _begins(statements) == ["BEGIN", "BEGIN IMMEDIATE"]
