# models/tank.py
from datetime import datetime, timezone

from bson import ObjectId

from ..constants.service_code import TANK_STATUS
from ..utils.amounts import ZERO, from_storage, to_tons


def utcnow():
    """Naive UTC timestamp, matching what pymongo hands back by default."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Tank:
    """
    An inventory container owned by one gas plant.

    Pools are tracked in tons:
        available  - stock that orders can draw from
        freeze_gas - stock set aside, not eligible for deduction

    Invariant: 0 <= available, 0 <= freeze_gas, available + freeze_gas <= total_capacity
    """

    collection_name = "tanks"

    STATUSES = tuple(TANK_STATUS.values())

    def __init__(
        self,
        owner_id,
        name,
        total_capacity,
        location="",
        available=ZERO,
        freeze_gas=ZERO,
        status=TANK_STATUS["ACTIVE"],
        last_recorded_date=None,
        _id=None,
        version=0,
        created_at=None,
        updated_at=None,
        **kwargs
    ):
        self._id = ObjectId(_id) if _id is not None and not isinstance(_id, ObjectId) else _id
        self.owner_id = str(owner_id)
        self.name = name
        self.location = location or ""
        self.total_capacity = to_tons(total_capacity)
        self.available = to_tons(available)
        self.freeze_gas = to_tons(freeze_gas)
        self.status = status
        self.version = int(version or 0)

        now = utcnow()
        self.last_recorded_date = last_recorded_date or now
        self.created_at = created_at or now
        self.updated_at = updated_at or now

    @property
    def id(self):
        return str(self._id) if self._id is not None else None

    @property
    def is_active(self):
        return self.status == TANK_STATUS["ACTIVE"]

    @property
    def headroom(self):
        """Capacity still free once both pools are counted."""
        return self.total_capacity - self.available - self.freeze_gas

    def touch(self):
        now = utcnow()
        self.last_recorded_date = now
        self.updated_at = now

    def check_invariants(self):
        return (
            self.available >= ZERO
            and self.freeze_gas >= ZERO
            and self.available + self.freeze_gas <= self.total_capacity
        )

    def to_dict(self):
        """Convert to dictionary for MongoDB insertion."""
        doc = {
            "owner_id": self.owner_id,
            "name": self.name,
            "location": self.location,
            "total_capacity": str(self.total_capacity),
            "available": str(self.available),
            "freeze_gas": str(self.freeze_gas),
            "status": self.status,
            "last_recorded_date": self.last_recorded_date,
            "version": self.version,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }
        if self._id is not None:
            doc["_id"] = self._id
        return doc

    @classmethod
    def from_dict(cls, doc):
        if doc is None:
            return None
        return cls(
            owner_id=doc.get("owner_id"),
            name=doc.get("name"),
            total_capacity=from_storage(doc.get("total_capacity")),
            location=doc.get("location", ""),
            available=from_storage(doc.get("available")),
            freeze_gas=from_storage(doc.get("freeze_gas")),
            status=doc.get("status", TANK_STATUS["ACTIVE"]),
            last_recorded_date=doc.get("last_recorded_date"),
            _id=doc.get("_id"),
            version=doc.get("version", 0),
            created_at=doc.get("created_at"),
            updated_at=doc.get("updated_at"),
        )

    def __repr__(self):
        return (
            f"Tank(id={self.id!r}, name={self.name!r}, available={self.available}, "
            f"freeze_gas={self.freeze_gas}, total_capacity={self.total_capacity})"
        )
