# schemas/tank_schemas.py
from marshmallow import Schema, fields, validate

from ..constants.service_code import TANK_STATUS

TANK_STATUSES = list(TANK_STATUS.values())


class TankCreateSchema(Schema):
    """Payload for registering a tank under a gas plant."""
    owner_id = fields.Str(
        data_key="ownerId",
        allow_none=True,
        metadata={"description": "Gas plant id; defaults to the authenticated user"}
    )
    name = fields.Str(required=True, validate=validate.Length(min=1, max=120))
    location = fields.Str(load_default="", allow_none=True)
    total_capacity = fields.Decimal(data_key="totalCapacity", required=True, metadata={"description": "Tons"})
    available = fields.Decimal(load_default=None, allow_none=True, metadata={"description": "Opening stock in tons"})
    status = fields.Str(allow_none=True, validate=validate.OneOf(TANK_STATUSES))


class TankUpdateSchema(Schema):
    name = fields.Str(validate=validate.Length(min=1, max=120))
    location = fields.Str(allow_none=True)
    total_capacity = fields.Decimal(data_key="totalCapacity")
    status = fields.Str(validate=validate.OneOf(TANK_STATUSES))


class TankListQuerySchema(Schema):
    status = fields.Str(allow_none=True, validate=validate.OneOf(TANK_STATUSES))


class GasAmountSchema(Schema):
    """Body for add / freeze / unfreeze."""
    amount = fields.Decimal(required=True, metadata={"description": "Tons, must be greater than zero"})
    rate = fields.Decimal(load_default=None, allow_none=True, metadata={"description": "Per-kg price (add only)"})


class TankSchema(Schema):
    """Tank as returned to clients."""
    id = fields.Str(dump_only=True)
    owner_id = fields.Str(data_key="ownerId")
    name = fields.Str()
    location = fields.Str()
    total_capacity = fields.Decimal(data_key="totalCapacity", as_string=True)
    available = fields.Decimal(as_string=True)
    freeze_gas = fields.Decimal(data_key="freezeGas", as_string=True)
    status = fields.Str()
    last_recorded_date = fields.DateTime(data_key="lastRecordedDate")
    created_at = fields.DateTime(data_key="createdAt")
    updated_at = fields.DateTime(data_key="updatedAt")
