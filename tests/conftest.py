"""
Pytest configuration and shared fixtures.

Every test gets its own SQLite file under tmp_path so that concurrent
transactions behave like they do against a real database file.
"""

from datetime import datetime
from decimal import Decimal
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import event

from billing_api import db
from billing_api.config import get_settings
from billing_api.tables import Contract, Job, Profile

JWT_SECRET = "test-secret"


@pytest.fixture(autouse=True)
def settings_env(monkeypatch):
    """Deterministic settings, rebuilt for every test."""
    monkeypatch.setenv("JWT_SECRET", JWT_SECRET)
    monkeypatch.setenv("DB_SLOW_QUERY_THRESHOLD", "0")
    monkeypatch.delenv("DEPOSIT_LIMIT_RATIO", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def engine(tmp_path):
    engine = db.configure_engine(f"sqlite:///{tmp_path / 'billing.db'}")
    db.init_db()
    yield engine
    db.dispose_engine()


@pytest.fixture
def session(engine):
    session = db.new_session()
    yield session
    session.close()


@pytest.fixture
def fetch(engine):
    """Read a fresh copy of a row in its own short transaction."""

    def _fetch(model, pk):
        s = db.new_session()
        try:
            return s.get(model, pk)
        finally:
            s.close()

    return _fetch


@pytest.fixture
def statements(engine):
    """(statement, parameters) pairs sent to the driver while the test runs."""
    seen = []

    def capture(_conn, _cursor, statement, parameters, _context, _executemany):
        seen.append((statement, parameters))

    event.listen(engine, "before_cursor_execute", capture)
    yield seen
    event.remove(engine, "before_cursor_execute", capture)


@pytest.fixture
def data(session) -> SimpleNamespace:
    """
    Two clients, two contractors and an admin.

    a (client, 150)    -- c1 in_progress --  b (contractor, 0):  j1 100 unpaid
    c (client, 10)     -- c2 in_progress --  d (contractor, 5):  j2 50 unpaid
    c                  -- c3 terminated  --  d:                  j3 40 unpaid
    a                  -- c4 new         --  d:                  no jobs
    """
    a = Profile(first_name="Harry", last_name="Potter", profession="Wizard", balance=Decimal("150"), type="client")
    b = Profile(first_name="Linus", last_name="Torvalds", profession="Programmer", balance=Decimal("0"), type="contractor")
    c = Profile(first_name="Mr", last_name="Robot", profession="Hacker", balance=Decimal("10"), type="client")
    d = Profile(first_name="John", last_name="Lenon", profession="Musician", balance=Decimal("5"), type="contractor")
    admin = Profile(first_name="Ada", last_name="Admin", profession="Auditor", balance=Decimal("0"), type="admin")
    session.add_all([a, b, c, d, admin])
    session.flush()

    c1 = Contract(terms="c1", status="in_progress", client_id=a.id, contractor_id=b.id)
    c2 = Contract(terms="c2", status="in_progress", client_id=c.id, contractor_id=d.id)
    c3 = Contract(terms="c3", status="terminated", client_id=c.id, contractor_id=d.id)
    c4 = Contract(terms="c4", status="new", client_id=a.id, contractor_id=d.id)
    session.add_all([c1, c2, c3, c4])
    session.flush()

    j1 = Job(description="j1", price=Decimal("100"), contract_id=c1.id)
    j2 = Job(description="j2", price=Decimal("50"), contract_id=c2.id, paid=False)
    j3 = Job(description="j3", price=Decimal("40"), contract_id=c3.id)
    session.add_all([j1, j2, j3])
    session.commit()

    return SimpleNamespace(
        a=a.id, b=b.id, c=c.id, d=d.id, admin=admin.id,
        c1=c1.id, c2=c2.id, c3=c3.id, c4=c4.id,
        j1=j1.id, j2=j2.id, j3=j3.id,
    )


@pytest.fixture
def paid_jobs(session, data) -> SimpleNamespace:
    """
    Paid jobs around 2020-08-15..2020-08-17, plus a third client f.

    In range: a (Wizard) 300 + 50 = 350, c (Hacker) 200, f (Pokemon master) 25.
    Out of range: c 1000 on 2020-08-14, c 150 on 2020-08-20.
    """
    f = Profile(first_name="Ash", last_name="Kethcum", profession="Pokemon master", balance=Decimal("1.3"), type="client")
    session.add(f)
    session.flush()
    c5 = Contract(terms="c5", status="in_progress", client_id=f.id, contractor_id=data.b)
    session.add(c5)
    session.flush()

    rows = [
        ("300", data.c1, datetime(2020, 8, 15, 10, 0)),
        ("50", data.c4, datetime(2020, 8, 17, 23, 0)),
        ("200", data.c2, datetime(2020, 8, 16, 12, 0)),
        ("25", c5.id, datetime(2020, 8, 16, 9, 30)),
        ("1000", data.c2, datetime(2020, 8, 14, 23, 59)),
        ("150", data.c2, datetime(2020, 8, 20, 8, 0)),
    ]
    for price, contract_id, paid_at in rows:
        session.add(
            Job(description="done", price=Decimal(price), contract_id=contract_id, paid=True, payment_date=paid_at)
        )
    session.commit()
    return SimpleNamespace(f=f.id, c5=c5.id)


@pytest.fixture
def client(engine):
    from billing_api.main import app

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def as_profile():
    """Request headers identifying the caller by profile id."""

    def _headers(profile_id: int) -> dict:
        return {"profile_id": str(profile_id)}

    return _headers
