# models/stock_transaction.py
from bson import ObjectId

from ..constants.service_code import STOCK_TRANSACTION_TYPES
from ..utils.amounts import RATE_PLACES, from_storage, to_rate, to_tons
from .tank import utcnow


class StockTransaction:
    """
    StockTransaction is the audit trail for every tank pool movement.
    One row is written per tank touched by an add, deduct, freeze or unfreeze.
    Rows are never updated.
    """

    collection_name = "stock_transactions"

    TYPE_ADD = STOCK_TRANSACTION_TYPES["ADD"]
    TYPE_DEDUCT = STOCK_TRANSACTION_TYPES["DEDUCT"]
    TYPE_FREEZE = STOCK_TRANSACTION_TYPES["FREEZE"]
    TYPE_UNFREEZE = STOCK_TRANSACTION_TYPES["UNFREEZE"]

    TYPES = tuple(STOCK_TRANSACTION_TYPES.values())

    def __init__(
        self,
        tank_id,
        tank_name,
        type,
        amount,
        owner_id,
        rate=None,
        order_id="",
        notes="",
        date=None,
        allocation_id=None,
        sequence=None,
        _id=None,
        created_at=None,
        **kwargs
    ):
        """
        Args:
            tank_id: Tank id (string form of the ObjectId)
            tank_name: Tank name at the time of writing
            type: One of add / deduct / freeze / unfreeze
            amount: Tons moved, always positive
            owner_id: Gas plant account owning the tank
            rate: Optional per-kg price, defaults to 0
            order_id: Optional order correlation id
            notes: Free text
            allocation_id: Shared by all rows written by one deduction run
            sequence: Position of the row inside its deduction run
        """
        if type not in self.TYPES:
            raise ValueError(f"Unknown stock transaction type: {type}")

        self._id = ObjectId(_id) if _id is not None and not isinstance(_id, ObjectId) else _id
        self.tank_id = str(tank_id)
        self.tank_name = tank_name
        self.type = type
        self.amount = to_tons(amount)
        self.rate = to_rate(rate)
        self.order_id = order_id or ""
        self.owner_id = str(owner_id)
        self.notes = notes or ""
        self.date = date or utcnow()
        self.allocation_id = allocation_id
        self.sequence = sequence
        self.created_at = created_at or self.date

    @property
    def id(self):
        return str(self._id) if self._id is not None else None

    @classmethod
    def for_tank(cls, tank, type, amount, **kwargs):
        return cls(
            tank_id=tank.id,
            tank_name=tank.name,
            type=type,
            amount=amount,
            owner_id=tank.owner_id,
            **kwargs
        )

    def to_dict(self):
        """Convert to dictionary for MongoDB insertion."""
        doc = {
            "tank_id": self.tank_id,
            "tank_name": self.tank_name,
            "type": self.type,
            "amount": str(self.amount),
            "rate": str(self.rate),
            "order_id": self.order_id,
            "owner_id": self.owner_id,
            "notes": self.notes,
            "date": self.date,
            "created_at": self.created_at,
        }

        # Optional fields
        if self.allocation_id:
            doc["allocation_id"] = self.allocation_id
        if self.sequence is not None:
            doc["sequence"] = self.sequence
        if self._id is not None:
            doc["_id"] = self._id

        return doc

    @classmethod
    def from_dict(cls, doc):
        if doc is None:
            return None
        return cls(
            tank_id=doc.get("tank_id"),
            tank_name=doc.get("tank_name"),
            type=doc.get("type"),
            amount=from_storage(doc.get("amount")),
            owner_id=doc.get("owner_id"),
            rate=from_storage(doc.get("rate"), places=RATE_PLACES),
            order_id=doc.get("order_id", ""),
            notes=doc.get("notes", ""),
            date=doc.get("date"),
            allocation_id=doc.get("allocation_id"),
            sequence=doc.get("sequence"),
            _id=doc.get("_id"),
            created_at=doc.get("created_at"),
        )

    def __repr__(self):
        return (
            f"StockTransaction(type={self.type!r}, tank={self.tank_name!r}, "
            f"amount={self.amount}, rate={self.rate})"
        )
