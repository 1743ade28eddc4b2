# schemas/stock_schemas.py
import re

from marshmallow import Schema, fields, validate, validates_schema, ValidationError

from ..constants.service_code import ALLOCATION_POLICIES, STOCK_TRANSACTION_TYPES
from ..utils.helpers import as_utc, range_end, range_start

_BARE_DAY = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class DayOrDateTime(fields.DateTime):
    """
    Query bound that keeps track of what the caller sent: `2024-03-01` loads
    as a date (the whole day), `2024-03-01T00:00:00` as that exact instant.
    """

    def _deserialize(self, value, attr, data, **kwargs):
        if isinstance(value, str) and _BARE_DAY.match(value.strip()):
            return fields.Date().deserialize(value.strip(), attr, data)
        return super()._deserialize(value, attr, data, **kwargs)


class DeductStockSchema(Schema):
    """Deduct an order's tonnage across a gas plant's active tanks."""
    owner_id = fields.Str(data_key="ownerId", allow_none=True)
    amount = fields.Decimal(required=True, metadata={"description": "Tons to deduct"})
    rate = fields.Decimal(load_default=None, allow_none=True)
    order_id = fields.Str(data_key="orderId", load_default=None, allow_none=True)
    policy = fields.Str(
        load_default=ALLOCATION_POLICIES["GREEDY"],
        validate=validate.OneOf(list(ALLOCATION_POLICIES.values())),
        metadata={"description": "greedy (largest tank first) or sequential (by tank name)"}
    )


class DeductedTankSchema(Schema):
    tank_id = fields.Str(data_key="tankId")
    tank_name = fields.Str(data_key="tankName")
    amount = fields.Decimal(as_string=True)


class TransactionQuerySchema(Schema):
    type = fields.Str(allow_none=True, validate=validate.OneOf(list(STOCK_TRANSACTION_TYPES.values())))
    start_date = DayOrDateTime(data_key="startDate", allow_none=True)
    end_date = DayOrDateTime(data_key="endDate", allow_none=True)

    @validates_schema
    def validate_range(self, data, **kwargs):
        start, end = data.get("start_date"), data.get("end_date")
        if start and end and as_utc(range_start(start)) > as_utc(range_end(end)):
            raise ValidationError("startDate must not be after endDate", field_name="startDate")


class StockTransactionSchema(Schema):
    id = fields.Str(dump_only=True)
    tank_id = fields.Str(data_key="tankId")
    tank_name = fields.Str(data_key="tankName")
    type = fields.Str()
    amount = fields.Decimal(as_string=True)
    rate = fields.Decimal(as_string=True)
    order_id = fields.Str(data_key="orderId")
    owner_id = fields.Str(data_key="ownerId")
    notes = fields.Str()
    date = fields.DateTime()
    allocation_id = fields.Str(data_key="allocationId", allow_none=True)
    sequence = fields.Int(allow_none=True)


class StockStatsSchema(Schema):
    total_capacity = fields.Decimal(data_key="totalCapacity", as_string=True)
    total_available = fields.Decimal(data_key="totalAvailable", as_string=True)
    total_frozen = fields.Decimal(data_key="totalFrozen", as_string=True)
    tank_count = fields.Int(data_key="tankCount")
    active_tank_count = fields.Int(data_key="activeTankCount")
    today_added = fields.Decimal(data_key="todayAdded", as_string=True)
    today_deducted = fields.Decimal(data_key="todayDeducted", as_string=True)
    today_sales = fields.Decimal(data_key="todaySales", as_string=True)
