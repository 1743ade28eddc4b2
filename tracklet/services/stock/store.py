# services/stock/store.py
from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime
from typing import Optional

from bson import ObjectId
from pymongo import ASCENDING, DESCENDING, IndexModel, ReturnDocument

from ...constants.service_code import TANK_STATUS
from ...extensions.db import db
from ...models.stock_transaction import StockTransaction
from ...models.tank import Tank
from ...utils.ensure_index import ensure_index
from ...utils.logger import Log
from .errors import ConcurrentUpdateError


# ---------- Collections ----------
def _tanks():
    return db.get_collection(Tank.collection_name)


def _transactions():
    return db.get_collection(StockTransaction.collection_name)


def as_oid(value) -> Optional[ObjectId]:
    """ObjectId for a tank id, or None when the id is malformed."""
    if isinstance(value, ObjectId):
        return value
    if value is None or not ObjectId.is_valid(str(value)):
        return None
    return ObjectId(str(value))


# ---------- Indexes ----------
def setup_indexes():
    tanks = _tanks()
    ensure_index(tanks, IndexModel(
        [("owner_id", ASCENDING), ("status", ASCENDING)],
        name="tanks_owner_status"
    ))
    ensure_index(tanks, IndexModel(
        [("owner_id", ASCENDING), ("created_at", DESCENDING)],
        name="tanks_owner_created"
    ))

    txns = _transactions()
    ensure_index(txns, IndexModel(
        [("owner_id", ASCENDING), ("date", DESCENDING)],
        name="stock_txn_owner_date"
    ))
    ensure_index(txns, IndexModel(
        [("owner_id", ASCENDING), ("type", ASCENDING), ("date", DESCENDING)],
        name="stock_txn_owner_type_date"
    ))
    ensure_index(txns, IndexModel(
        [("tank_id", ASCENDING)],
        name="stock_txn_tank"
    ))
    ensure_index(txns, IndexModel(
        [("allocation_id", ASCENDING), ("sequence", ASCENDING)],
        name="stock_txn_allocation",
        sparse=True
    ))


# ---------- Compensation journal ----------
class _Journal:
    """Undo log for writes made without a server-side transaction."""

    def __init__(self):
        self._undo = []

    def __len__(self):
        return len(self._undo)

    def record(self, description, undo):
        self._undo.append((description, undo))

    def compensate(self, log_tag):
        failures = []
        while self._undo:
            description, undo = self._undo.pop()
            try:
                undo()
            except Exception as e:
                failures.append(description)
                Log.error(f"{log_tag} Compensation failed for {description}: {str(e)}")
        return failures


# ---------- Store ----------
class StockStore:
    """
    Persistence interface for tanks and the stock ledger.

    Obtain one from unit_of_work() when writes must commit together; a bare
    StockStore() is enough for reads.
    """

    def __init__(self, session=None, journal: Optional[_Journal] = None):
        self.session = session
        self.journal = journal

    def _kw(self):
        return {"session": self.session} if self.session is not None else {}

    # ---- tanks ----
    def get_tank(self, tank_id) -> Optional[Tank]:
        oid = as_oid(tank_id)
        if oid is None:
            return None
        return Tank.from_dict(_tanks().find_one({"_id": oid}, **self._kw()))

    def list_tanks_by_owner(self, owner_id, status=None) -> list[Tank]:
        query = {"owner_id": str(owner_id)}
        if status:
            query["status"] = status
        cursor = _tanks().find(query, **self._kw()).sort([("created_at", DESCENDING), ("_id", DESCENDING)])
        return [Tank.from_dict(doc) for doc in cursor]

    def list_active_tanks_by_owner(self, owner_id) -> list[Tank]:
        """Active tanks in insertion order, the tie-break every allocation policy relies on."""
        query = {"owner_id": str(owner_id), "status": TANK_STATUS["ACTIVE"]}
        cursor = _tanks().find(query, **self._kw()).sort("_id", ASCENDING)
        return [Tank.from_dict(doc) for doc in cursor]

    def insert_tank(self, tank: Tank) -> Tank:
        doc = tank.to_dict()
        doc.pop("_id", None)
        result = _tanks().insert_one(doc, **self._kw())
        tank._id = result.inserted_id

        if self.journal is not None:
            oid = tank._id
            self.journal.record(f"insert tank {oid}", lambda: _tanks().delete_one({"_id": oid}))
        return tank

    def save_tank(self, tank: Tank) -> Tank:
        """Write tank state back, guarded by its version counter."""
        expected_version = tank.version
        prior = None
        if self.journal is not None:
            prior = _tanks().find_one({"_id": tank._id})

        fields = tank.to_dict()
        fields.pop("_id", None)
        fields.pop("version", None)

        updated = _tanks().find_one_and_update(
            {"_id": tank._id, "version": expected_version},
            {"$set": fields, "$inc": {"version": 1}},
            return_document=ReturnDocument.AFTER,
            **self._kw()
        )
        if not updated:
            Log.warning(f"[store.py][StockStore][save_tank] Version {expected_version} of tank {tank.id} is stale")
            raise ConcurrentUpdateError(f"Tank {tank.id} was modified concurrently, retry the operation")

        tank.version = updated["version"]

        if self.journal is not None and prior is not None:
            oid, written_version = tank._id, tank.version
            self.journal.record(
                f"save tank {oid}",
                lambda: _tanks().replace_one({"_id": oid, "version": written_version}, prior)
            )
        return tank

    def delete_tank(self, tank: Tank) -> bool:
        prior = _tanks().find_one({"_id": tank._id}, **self._kw())
        if prior is None:
            return False
        result = _tanks().delete_one({"_id": tank._id}, **self._kw())

        if self.journal is not None and result.deleted_count:
            self.journal.record(f"delete tank {tank._id}", lambda: _tanks().insert_one(prior))
        return result.deleted_count > 0

    # ---- ledger ----
    def append_transaction(self, record: StockTransaction) -> StockTransaction:
        doc = record.to_dict()
        doc.pop("_id", None)
        result = _transactions().insert_one(doc, **self._kw())
        record._id = result.inserted_id

        if self.journal is not None:
            oid = record._id
            self.journal.record(f"append transaction {oid}", lambda: _transactions().delete_one({"_id": oid}))
        return record

    def list_transactions(
        self,
        owner_id=None,
        type_=None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
    ) -> list[StockTransaction]:
        """
        Ledger rows newest first. Both date bounds are inclusive.
        owner_id=None spans every owner (used by the rate history rollup).
        """
        query = {}
        if owner_id is not None:
            query["owner_id"] = str(owner_id)
        if type_:
            query["type"] = type_
        if date_from or date_to:
            cond = {}
            if date_from:
                cond["$gte"] = date_from
            if date_to:
                cond["$lte"] = date_to
            query["date"] = cond

        cursor = _transactions().find(query, **self._kw()).sort([("date", DESCENDING), ("_id", DESCENDING)])
        return [StockTransaction.from_dict(doc) for doc in cursor]


# ---------- Unit of work ----------
@contextmanager
def unit_of_work(log_tag="[store.py][unit_of_work]"):
    """
    Scope in which tank writes and ledger appends commit together.

    With MONGO_TRANSACTIONS on, a client session transaction is used and the
    server aborts it when the block raises. Otherwise every write is journaled
    and undone in reverse order before the exception propagates.
    """
    if db.use_transactions:
        with db.client.start_session() as s, s.start_transaction():
            yield StockStore(session=s)
        return

    journal = _Journal()
    try:
        yield StockStore(journal=journal)
    except Exception:
        if len(journal):
            Log.warning(f"{log_tag} Rolling back {len(journal)} uncommitted write(s)")
            journal.compensate(log_tag)
        raise
