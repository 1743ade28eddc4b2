# models/rate_history.py
from bson import ObjectId

from ..utils.amounts import RATE_PLACES, from_storage, to_rate
from .tank import utcnow


class RateHistory:
    """Append-only record of the daily per-kg rate. The newest row is the current rate."""

    collection_name = "rate_history"

    def __init__(self, rate, set_by=None, created_at=None, _id=None, **kwargs):
        self._id = ObjectId(_id) if _id is not None and not isinstance(_id, ObjectId) else _id
        self.rate = to_rate(rate)
        self.set_by = set_by
        self.created_at = created_at or utcnow()

    @property
    def id(self):
        return str(self._id) if self._id is not None else None

    def to_dict(self):
        doc = {
            "rate": str(self.rate),
            "created_at": self.created_at,
        }
        if self.set_by:
            doc["set_by"] = str(self.set_by)
        if self._id is not None:
            doc["_id"] = self._id
        return doc

    @classmethod
    def from_dict(cls, doc):
        if doc is None:
            return None
        return cls(
            rate=from_storage(doc.get("rate"), places=RATE_PLACES),
            set_by=doc.get("set_by"),
            created_at=doc.get("created_at"),
            _id=doc.get("_id"),
        )
