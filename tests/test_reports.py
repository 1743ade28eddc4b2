from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from conftest import OWNER_ID
from tracklet.models.stock_transaction import StockTransaction
from tracklet.models.tank import utcnow
from tracklet.services.stock import allocator, operations, reports
from tracklet.services.stock.store import StockStore


def test_stats_for_owner_without_tanks(app):
    stats = reports.get_stock_stats("nobody")

    assert stats["tank_count"] == 0
    assert stats["active_tank_count"] == 0
    assert stats["total_capacity"] == Decimal("0")
    assert stats["today_sales"] == Decimal("0")


def test_stats_totals_and_today_rollups(make_tank):
    a = make_tank("Tank A", total_capacity="100", available="40")
    make_tank("Tank B", total_capacity="50", available="10", status="Inactive")
    make_tank("Elsewhere", total_capacity="500", available="500", owner_id="plant-002")

    operations.add_stock(a.id, "5", rate="250")
    operations.freeze_stock(a.id, "5")
    allocator.deduct_stock(OWNER_ID, "2", rate="260")

    stats = reports.get_stock_stats(OWNER_ID)

    assert stats["total_capacity"] == Decimal("150")
    assert stats["total_available"] == Decimal("48")
    assert stats["total_frozen"] == Decimal("5")
    assert stats["tank_count"] == 2
    assert stats["active_tank_count"] == 1
    assert stats["today_added"] == Decimal("55")
    assert stats["today_deducted"] == Decimal("2")
    # 2 tons * 1000 kg * 260 per kg
    assert stats["today_sales"] == Decimal("520000.00")


def test_stats_are_idempotent(make_tank):
    make_tank("Tank A", total_capacity="100", available="40")
    allocator.deduct_stock(OWNER_ID, "1.25", rate="260")

    assert reports.get_stock_stats(OWNER_ID) == reports.get_stock_stats(OWNER_ID)


def test_yesterdays_rows_are_not_counted(make_tank):
    tank = make_tank("Tank A", total_capacity="100", available="40")
    StockStore().append_transaction(
        StockTransaction.for_tank(
            tank, StockTransaction.TYPE_DEDUCT, "3", rate="260", date=utcnow() - timedelta(days=1)
        )
    )

    stats = reports.get_stock_stats(OWNER_ID)
    assert stats["today_deducted"] == Decimal("0")
    assert stats["today_sales"] == Decimal("0")


def test_today_window_follows_configured_zone(app):
    app.config["STATS_TIMEZONE"] = "Africa/Lagos"
    now = datetime(2024, 5, 10, 0, 30, tzinfo=timezone.utc)

    start, end = reports.today_window(now)

    assert start == datetime(2024, 5, 9, 23, 0)
    assert end == datetime(2024, 5, 10, 23, 0)


def test_today_window_defaults_to_utc(app):
    start, end = reports.today_window(datetime(2024, 5, 10, 13, 45, tzinfo=timezone.utc))
    assert (start, end) == (datetime(2024, 5, 10), datetime(2024, 5, 11))


def test_sales_value_ignores_other_types(make_tank):
    tank = make_tank("Tank A", total_capacity="100")
    rows = [
        StockTransaction.for_tank(tank, StockTransaction.TYPE_ADD, "10", rate="300"),
        StockTransaction.for_tank(tank, StockTransaction.TYPE_DEDUCT, "0.5", rate="260"),
        StockTransaction.for_tank(tank, StockTransaction.TYPE_DEDUCT, "0.25", rate="0"),
    ]
    assert reports.sales_value(rows) == Decimal("130000.00")


def test_list_transactions_newest_first_with_filters(make_tank):
    tank = make_tank("Tank A", total_capacity="100", available="40")
    operations.freeze_stock(tank.id, "5")
    operations.unfreeze_stock(tank.id, "5")

    rows = reports.list_transactions(OWNER_ID)
    assert [r.type for r in rows][-1] == StockTransaction.TYPE_ADD
    assert len(rows) == 3
    assert all(rows[i].date >= rows[i + 1].date for i in range(len(rows) - 1))

    freezes = reports.list_transactions(OWNER_ID, type_=StockTransaction.TYPE_FREEZE)
    assert [r.type for r in freezes] == [StockTransaction.TYPE_FREEZE]


def test_list_transactions_date_bounds_are_inclusive(make_tank):
    tank = make_tank("Tank A", total_capacity="100")
    store = StockStore()
    stamp = datetime(2024, 3, 1, 12, 0)
    for offset in (-1, 0, 1):
        store.append_transaction(
            StockTransaction.for_tank(tank, StockTransaction.TYPE_ADD, "1", date=stamp + timedelta(days=offset))
        )

    rows = reports.list_transactions(OWNER_ID, date_from=stamp, date_to=stamp)
    assert [r.date for r in rows] == [stamp]

    aware = reports.list_transactions(
        OWNER_ID,
        date_from=datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc),
        date_to=datetime(2024, 3, 2, 12, 0, tzinfo=timezone.utc),
    )
    assert len(aware) == 2


def test_list_transactions_rejects_unknown_type(app):
    with pytest.raises(ValueError):
        reports.list_transactions(OWNER_ID, type_="refund")
