from decimal import Decimal

import pytest
from bson import ObjectId

from conftest import OWNER_ID
from tracklet.models.stock_transaction import StockTransaction
from tracklet.services.stock import operations
from tracklet.services.stock.errors import (
    CapacityExceededError,
    ConcurrentUpdateError,
    InsufficientAvailableError,
    InsufficientFrozenError,
    InvalidAmountError,
    TankNotFoundError,
)
from tracklet.services.stock.store import StockStore


def _ledger(owner_id=OWNER_ID, **kwargs):
    return StockStore().list_transactions(owner_id, **kwargs)


def test_create_tank_records_opening_stock(make_tank):
    tank = make_tank("Tank A", total_capacity="100", available="40")

    assert tank.id is not None
    assert tank.available == Decimal("40")
    assert tank.freeze_gas == Decimal("0")

    rows = _ledger()
    assert len(rows) == 1
    assert rows[0].type == StockTransaction.TYPE_ADD
    assert rows[0].amount == Decimal("40")
    assert rows[0].notes == "Opening stock"


def test_create_empty_tank_writes_no_ledger_row(make_tank):
    make_tank("Tank A")
    assert _ledger() == []


def test_create_tank_rejects_opening_stock_above_capacity(app):
    with pytest.raises(CapacityExceededError):
        operations.create_tank(OWNER_ID, "Tank A", "10", available="11")
    assert operations.list_tanks(OWNER_ID) == []


def test_add_stock_increases_available_and_writes_ledger(make_tank):
    tank = make_tank("Tank A", total_capacity="100", available="20")

    updated = operations.add_stock(tank.id, "12.5", rate="275")

    assert updated.available == Decimal("32.5")
    stored = operations.get_tank(tank.id)
    assert stored.available == Decimal("32.5")
    assert stored.version == tank.version + 1

    rows = _ledger(type_=StockTransaction.TYPE_ADD)
    latest = rows[0]
    assert latest.amount == Decimal("12.5")
    assert latest.rate == Decimal("275.00")
    assert latest.tank_name == "Tank A"
    assert latest.notes == "Gas added to tank"


def test_add_stock_counts_frozen_gas_against_capacity(make_tank):
    tank = make_tank("Tank A", total_capacity="100", available="90")
    operations.freeze_stock(tank.id, "10")

    with pytest.raises(CapacityExceededError):
        operations.add_stock(tank.id, "1")

    stored = operations.get_tank(tank.id)
    assert stored.available == Decimal("80")
    assert stored.freeze_gas == Decimal("10")
    assert len(_ledger(type_=StockTransaction.TYPE_ADD)) == 1


def test_add_stock_up_to_exact_capacity(make_tank):
    tank = make_tank("Tank A", total_capacity="50", available="20")
    assert operations.add_stock(tank.id, 30).available == Decimal("50")


@pytest.mark.parametrize("amount", [0, -1, "0", "-2.5", "abc"])
@pytest.mark.parametrize("action", ["add_stock", "freeze_stock", "unfreeze_stock"])
def test_non_positive_amounts_are_rejected(make_tank, action, amount):
    tank = make_tank("Tank A", total_capacity="100", available="50")

    with pytest.raises(InvalidAmountError):
        getattr(operations, action)(tank.id, amount)

    stored = operations.get_tank(tank.id)
    assert stored.available == Decimal("50")
    assert len(_ledger()) == 1


def test_freeze_then_unfreeze_restores_pools(make_tank):
    tank = make_tank("Tank A", total_capacity="100", available="50")

    frozen = operations.freeze_stock(tank.id, "20")
    assert frozen.available == Decimal("30")
    assert frozen.freeze_gas == Decimal("20")

    thawed = operations.unfreeze_stock(tank.id, "20")
    assert thawed.available == Decimal("50")
    assert thawed.freeze_gas == Decimal("0")

    types = [row.type for row in _ledger()]
    assert types.count(StockTransaction.TYPE_FREEZE) == 1
    assert types.count(StockTransaction.TYPE_UNFREEZE) == 1


def test_pools_stay_within_capacity_across_operations(make_tank):
    tank = make_tank("Tank A", total_capacity="10", available="4")
    steps = [
        (operations.add_stock, "6"),
        (operations.freeze_stock, "7.5"),
        (operations.add_stock, "0.001"),
        (operations.unfreeze_stock, "2.25"),
        (operations.freeze_stock, "100"),
        (operations.add_stock, "5"),
    ]
    for action, amount in steps:
        try:
            action(tank.id, amount)
        except (CapacityExceededError, InsufficientAvailableError):
            pass
        assert operations.get_tank(tank.id).check_invariants()

    stored = operations.get_tank(tank.id)
    assert stored.available + stored.freeze_gas == Decimal("10")
    mutations = [r for r in _ledger() if r.notes != "Opening stock"]
    assert len(mutations) == 3


def test_freeze_more_than_available_fails(make_tank):
    tank = make_tank("Tank A", total_capacity="100", available="5")
    with pytest.raises(InsufficientAvailableError):
        operations.freeze_stock(tank.id, "5.001")
    assert operations.get_tank(tank.id).freeze_gas == Decimal("0")


def test_unfreeze_more_than_frozen_fails(make_tank):
    tank = make_tank("Tank A", total_capacity="100", available="50")
    operations.freeze_stock(tank.id, "3")
    with pytest.raises(InsufficientFrozenError):
        operations.unfreeze_stock(tank.id, "4")
    assert operations.get_tank(tank.id).freeze_gas == Decimal("3")


@pytest.mark.parametrize("tank_id", [str(ObjectId()), "not-an-object-id"])
def test_unknown_tank(app, tank_id):
    with pytest.raises(TankNotFoundError):
        operations.add_stock(tank_id, "1")
    with pytest.raises(TankNotFoundError):
        operations.get_tank(tank_id)


def test_update_tank_fields(make_tank):
    tank = make_tank("Tank A", total_capacity="100", available="10")

    updated = operations.update_tank(tank.id, name="Tank Z", location="North", total_capacity="120", status="Maintenance")

    assert updated.name == "Tank Z"
    assert updated.location == "North"
    assert updated.total_capacity == Decimal("120")
    assert updated.status == "Maintenance"
    assert updated.available == Decimal("10")


def test_update_tank_cannot_shrink_below_held_stock(make_tank):
    tank = make_tank("Tank A", total_capacity="100", available="60")
    operations.freeze_stock(tank.id, "20")

    with pytest.raises(CapacityExceededError):
        operations.update_tank(tank.id, total_capacity="59")

    assert operations.get_tank(tank.id).total_capacity == Decimal("100")


def test_delete_tank_keeps_ledger(make_tank):
    tank = make_tank("Tank A", total_capacity="100", available="60")

    operations.delete_tank(tank.id)

    with pytest.raises(TankNotFoundError):
        operations.get_tank(tank.id)
    with pytest.raises(TankNotFoundError):
        operations.delete_tank(tank.id)
    assert len(_ledger()) == 1


def test_failed_ledger_append_rolls_back_tank(make_tank, monkeypatch):
    tank = make_tank("Tank A", total_capacity="100", available="50")

    def boom(self, record):
        raise RuntimeError("ledger unavailable")

    monkeypatch.setattr(StockStore, "append_transaction", boom)

    with pytest.raises(RuntimeError):
        operations.freeze_stock(tank.id, "10")

    monkeypatch.undo()
    stored = operations.get_tank(tank.id)
    assert stored.available == Decimal("50")
    assert stored.freeze_gas == Decimal("0")
    assert len(_ledger()) == 1


def test_stale_version_is_rejected(make_tank):
    tank = make_tank("Tank A", total_capacity="100", available="50")
    store = StockStore()

    first = store.get_tank(tank.id)
    second = store.get_tank(tank.id)

    first.available -= Decimal("1")
    store.save_tank(first)

    second.available -= Decimal("2")
    with pytest.raises(ConcurrentUpdateError):
        store.save_tank(second)

    assert store.get_tank(tank.id).available == Decimal("49")


def test_list_tanks_filters_by_status(make_tank):
    make_tank("Tank A")
    make_tank("Tank B", status="Inactive")
    make_tank("Other", owner_id="plant-002")

    assert {t.name for t in operations.list_tanks(OWNER_ID)} == {"Tank A", "Tank B"}
    assert [t.name for t in operations.list_tanks(OWNER_ID, status="Inactive")] == ["Tank B"]


@pytest.mark.parametrize("amount", ["0.0004", "1.0005"])
@pytest.mark.parametrize("action", ["add_stock", "freeze_stock", "unfreeze_stock"])
def test_amounts_finer_than_a_kilogram_are_rejected(make_tank, action, amount):
    tank = make_tank("Tank A", total_capacity="100", available="50")
    operations.freeze_stock(tank.id, "5")

    with pytest.raises(InvalidAmountError, match="more than 3 decimal places"):
        getattr(operations, action)(tank.id, amount)

    stored = operations.get_tank(tank.id)
    assert stored.available == Decimal("45")
    assert stored.freeze_gas == Decimal("5")
    assert len(_ledger()) == 2


def test_single_kilogram_is_accepted(make_tank):
    tank = make_tank("Tank A", total_capacity="100", available="50")
    assert operations.add_stock(tank.id, "0.001").available == Decimal("50.001")
    assert operations.freeze_stock(tank.id, "0.001").freeze_gas == Decimal("0.001")


def test_sub_cent_rate_is_rejected(make_tank):
    tank = make_tank("Tank A", total_capacity="100", available="50")

    with pytest.raises(InvalidAmountError, match="more than 2 decimal places"):
        operations.add_stock(tank.id, "1", rate="255.555")

    assert operations.get_tank(tank.id).available == Decimal("50")
    assert len(_ledger()) == 1


def test_create_tank_rejects_over_precise_figures(app):
    with pytest.raises(InvalidAmountError):
        operations.create_tank(OWNER_ID, "Tank A", "100.0001")
    with pytest.raises(InvalidAmountError):
        operations.create_tank(OWNER_ID, "Tank A", "100", available="1.0005")
    assert operations.list_tanks(OWNER_ID) == []
