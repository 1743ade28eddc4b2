# services/stock/reports.py
from datetime import datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from flask import current_app, has_app_context

from ...constants.service_code import KG_PER_TON
from ...models.stock_transaction import StockTransaction
from ...utils.amounts import ZERO, to_money, to_tons
from ...utils.logger import Log
from .store import StockStore


def _to_naive_utc(value):
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _stats_zone():
    name = "UTC"
    if has_app_context():
        name = current_app.config.get("STATS_TIMEZONE", "UTC")
    return ZoneInfo(name)


def today_window(now=None):
    """
    [local midnight, next local midnight) in the stats time zone, returned as
    naive UTC datetimes to match stored ledger dates.
    """
    zone = _stats_zone()
    now = now.astimezone(zone) if now is not None else datetime.now(zone)
    start = datetime.combine(now.date(), time.min, tzinfo=zone)
    end = datetime.combine(now.date() + timedelta(days=1), time.min, tzinfo=zone)
    return _to_naive_utc(start), _to_naive_utc(end)


def sales_value(transactions):
    """Σ(tons × 1000 × per-kg rate) over deduct rows."""
    total = sum(
        (t.amount * KG_PER_TON * t.rate for t in transactions if t.type == StockTransaction.TYPE_DEDUCT),
        ZERO,
    )
    return to_money(total)


def list_transactions(owner_id, type_=None, date_from=None, date_to=None):
    """Ledger rows for an owner, newest first; the date range is inclusive."""
    if type_ and type_ not in StockTransaction.TYPES:
        raise ValueError(f"Unknown transaction type: {type_!r}")

    log_tag = f"[reports.py][list_transactions][{owner_id}]"
    rows = StockStore().list_transactions(
        owner_id,
        type_=type_,
        date_from=_to_naive_utc(date_from),
        date_to=_to_naive_utc(date_to),
    )
    Log.info(f"{log_tag} Found {len(rows)} transactions")
    return rows


def get_stock_stats(owner_id, now=None):
    """
    Per-owner totals plus today's ledger rollups.

    today_sales is recomputed from the ledger on every call; it is never stored.
    """
    log_tag = f"[reports.py][get_stock_stats][{owner_id}]"
    store = StockStore()

    tanks = store.list_tanks_by_owner(owner_id)
    start, end = today_window(now)
    # Upper bound is exclusive; stored dates carry millisecond precision
    today = store.list_transactions(owner_id, date_from=start, date_to=end - timedelta(microseconds=1))

    stats = {
        "total_capacity": to_tons(sum((t.total_capacity for t in tanks), ZERO)),
        "total_available": to_tons(sum((t.available for t in tanks), ZERO)),
        "total_frozen": to_tons(sum((t.freeze_gas for t in tanks), ZERO)),
        "tank_count": len(tanks),
        "active_tank_count": sum(1 for t in tanks if t.is_active),
        "today_added": to_tons(sum(
            (t.amount for t in today if t.type == StockTransaction.TYPE_ADD), ZERO
        )),
        "today_deducted": to_tons(sum(
            (t.amount for t in today if t.type == StockTransaction.TYPE_DEDUCT), ZERO
        )),
        "today_sales": sales_value(today),
    }

    Log.info(f"{log_tag} Stats over {len(tanks)} tanks and {len(today)} transactions today")
    return stats
