# services/rate_service.py
from collections import defaultdict
from datetime import datetime, time, timedelta

from flask import current_app, has_app_context
from pymongo import DESCENDING, IndexModel

from ..constants.service_code import KG_PER_TON
from ..extensions.db import db
from ..models.rate_history import RateHistory
from ..models.stock_transaction import StockTransaction
from ..utils.amounts import ZERO, exact_rate, to_rate, to_tons
from ..utils.ensure_index import ensure_index
from ..utils.logger import Log
from .stock.errors import InvalidAmountError
from .stock.store import StockStore

GAS_PLANT_ACTIVE = "active"


def _rate_history():
    return db.get_collection(RateHistory.collection_name)


def _gas_plants():
    return db.get_collection("gas_plants")


def _default_rate():
    value = "260.00"
    if has_app_context():
        value = current_app.config.get("DEFAULT_RATE_PER_KG", value)
    return to_rate(value)


def set_rate(rate, set_by=None):
    """
    Record today's per-kg rate and push it to every active gas plant.

    Returns:
        Dict with the stored rate, when it took effect and how many gas
        plants were updated.
    """
    log_tag = f"[rate_service.py][set_rate][{set_by}]"

    try:
        rate = exact_rate(rate)
    except (TypeError, ValueError) as e:
        raise InvalidAmountError(f"Invalid rate value: {e}")
    if rate <= ZERO:
        raise InvalidAmountError("Invalid rate value")

    entry = RateHistory(rate=rate, set_by=set_by)
    doc = entry.to_dict()
    result = _rate_history().insert_one(doc)
    entry._id = result.inserted_id

    updated = _gas_plants().update_many(
        {"status": GAS_PLANT_ACTIVE},
        {"$set": {"per_kg_price": str(rate), "updated_at": entry.created_at}},
    )

    Log.info(f"{log_tag} Rate set to {rate}, updated {updated.modified_count} gas plants")
    return {
        "rate": rate,
        "effective_at": entry.created_at,
        "gas_plants_updated": updated.modified_count,
    }


def get_current_rate():
    doc = _rate_history().find_one({}, sort=[("created_at", DESCENDING), ("_id", DESCENDING)])
    if doc is None:
        return {"rate": _default_rate(), "effective_at": None}
    entry = RateHistory.from_dict(doc)
    return {"rate": entry.rate, "effective_at": entry.created_at}


def _sales_kg_by_day(first_day, last_day):
    """Deducted kilograms per UTC day, summed from the ledger across all owners."""
    rows = StockStore().list_transactions(
        None,
        type_=StockTransaction.TYPE_DEDUCT,
        date_from=datetime.combine(first_day, time.min),
        date_to=datetime.combine(last_day + timedelta(days=1), time.min) - timedelta(microseconds=1),
    )
    totals = defaultdict(lambda: ZERO)
    for row in rows:
        totals[row.date.date()] += row.amount * KG_PER_TON
    return totals


def get_rate_history(month=None, year=None, search=None):
    """
    Rate entries newest first, each with the kilograms sold on that day.

    Args:
        month: Optional 1-12 filter
        year: Optional year filter
        search: Optional text matched against the date and the rate
    """
    log_tag = f"[rate_service.py][get_rate_history][{month}][{year}][{search}]"

    cursor = _rate_history().find({}).sort([("created_at", DESCENDING), ("_id", DESCENDING)])
    entries = [RateHistory.from_dict(doc) for doc in cursor]

    if month:
        entries = [e for e in entries if e.created_at.month == int(month)]
    if year:
        entries = [e for e in entries if e.created_at.year == int(year)]
    if search:
        needle = str(search).strip().lower()
        entries = [
            e for e in entries
            if needle in e.created_at.strftime("%Y-%m-%d").lower() or needle in str(e.rate)
        ]

    if not entries:
        Log.info(f"{log_tag} No rate history found")
        return []

    days = [e.created_at.date() for e in entries]
    sales = _sales_kg_by_day(min(days), max(days))

    history = [
        {
            "date": e.created_at.strftime("%Y-%m-%d"),
            "rate_per_kg": e.rate,
            "total_sales_kg": to_tons(sales.get(e.created_at.date(), ZERO)),
        }
        for e in entries
    ]
    Log.info(f"{log_tag} Returning {len(history)} entries")
    return history


def setup_indexes():
    ensure_index(_rate_history(), IndexModel(
        [("created_at", DESCENDING)],
        name="rate_history_created"
    ))
