# schemas/rate_schemas.py
from marshmallow import Schema, fields, validate


class SetRateSchema(Schema):
    rate = fields.Decimal(required=True, metadata={"description": "Price per kg"})


class RateHistoryQuerySchema(Schema):
    month = fields.Int(allow_none=True, validate=validate.Range(min=1, max=12))
    year = fields.Int(allow_none=True, validate=validate.Range(min=2000, max=9999))
    search = fields.Str(allow_none=True)


class CurrentRateSchema(Schema):
    rate = fields.Decimal(as_string=True)
    effective_at = fields.DateTime(data_key="effectiveAt", allow_none=True)
    gas_plants_updated = fields.Int(data_key="gasPlantsUpdated")


class RateHistoryEntrySchema(Schema):
    date = fields.Str()
    rate_per_kg = fields.Decimal(data_key="ratePerKg", as_string=True)
    total_sales_kg = fields.Decimal(data_key="totalSalesKg", as_string=True)
