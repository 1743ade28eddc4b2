from decimal import Decimal

import pytest

from conftest import OWNER_ID
from tracklet.extensions.db import db
from tracklet.models.stock_transaction import StockTransaction
from tracklet.services.stock import allocator, operations, store
from tracklet.services.stock.store import StockStore, unit_of_work

WRITES = {"insert_one", "find_one_and_update", "replace_one", "delete_one"}


class FakeTransaction:
    def __init__(self, session):
        self.session = session

    def __enter__(self):
        self.session.in_transaction = True
        return self

    def __exit__(self, exc_type, exc, tb):
        self.session.in_transaction = False
        self.session.outcome = "aborted" if exc_type else "committed"
        return False


class FakeSession:
    def __init__(self):
        self.in_transaction = False
        self.outcome = None
        self.ended = False

    def start_transaction(self):
        return FakeTransaction(self)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.ended = True
        return False


class FakeClient:
    def __init__(self):
        self.sessions = []

    def start_session(self):
        session = FakeSession()
        self.sessions.append(session)
        return session


class RecordingCollection:
    """Forwards to a mongomock collection, noting which session each write ran under."""

    def __init__(self, inner, calls):
        self._inner = inner
        self._calls = calls

    def __getattr__(self, name):
        attr = getattr(self._inner, name)
        if name not in WRITES:
            return lambda *args, session=None, **kwargs: attr(*args, **kwargs)

        def write(*args, session=None, **kwargs):
            in_txn = session is not None and session.in_transaction
            self._calls.append((self._inner.name, name, session, in_txn))
            return attr(*args, **kwargs)
        return write


@pytest.fixture
def session_db(app, monkeypatch):
    """Route store writes through a fake client session with transactions on."""
    calls = []
    tanks, txns = store._tanks(), store._transactions()
    client = FakeClient()

    monkeypatch.setattr(store, "_tanks", lambda: RecordingCollection(tanks, calls))
    monkeypatch.setattr(store, "_transactions", lambda: RecordingCollection(txns, calls))
    monkeypatch.setattr(db, "client", client)
    monkeypatch.setattr(db, "use_transactions", True)
    return client, calls


def test_unit_of_work_hands_out_session_store(session_db):
    client, _ = session_db

    with unit_of_work() as uow:
        assert uow.session is client.sessions[0]
        assert uow.journal is None
        assert uow.session.in_transaction

    assert client.sessions[0].outcome == "committed"
    assert client.sessions[0].ended


def test_add_stock_writes_tank_and_ledger_in_one_transaction(make_tank, request):
    tank = make_tank("Tank A", total_capacity="100", available="10")
    client, calls = request.getfixturevalue("session_db")

    operations.add_stock(tank.id, "5", rate="250")

    assert len(client.sessions) == 1
    session = client.sessions[0]
    assert session.outcome == "committed"
    assert [(coll, op) for coll, op, _, _ in calls] == [
        ("tanks", "find_one_and_update"),
        (StockTransaction.collection_name, "insert_one"),
    ]
    assert all(s is session and in_txn for _, _, s, in_txn in calls)
    assert operations.get_tank(tank.id).available == Decimal("15")


def test_failed_ledger_append_aborts_transaction(make_tank, request, monkeypatch):
    tank = make_tank("Tank A", total_capacity="100", available="10")
    client, calls = request.getfixturevalue("session_db")

    def boom(self, record):
        raise RuntimeError("ledger unavailable")

    monkeypatch.setattr(StockStore, "append_transaction", boom)

    with pytest.raises(RuntimeError):
        operations.freeze_stock(tank.id, "4")

    session = client.sessions[0]
    assert session.outcome == "aborted"
    assert not session.in_transaction
    # the tank write went to the server inside the aborted transaction
    assert [(op, s, in_txn) for _, op, s, in_txn in calls] == [("find_one_and_update", session, True)]


def test_multi_tank_deduction_shares_one_transaction(make_tank, request):
    make_tank("Tank A", available="30")
    make_tank("Tank B", available="50")
    client, calls = request.getfixturevalue("session_db")

    allocator.deduct_stock(OWNER_ID, "60", rate="260")

    assert len(client.sessions) == 1
    session = client.sessions[0]
    assert session.outcome == "committed"
    assert [op for _, op, _, _ in calls] == [
        "find_one_and_update", "insert_one", "find_one_and_update", "insert_one",
    ]
    assert all(s is session and in_txn for _, _, s, in_txn in calls)
