# services/stock/operations.py
from ...constants.service_code import TANK_STATUS
from ...models.stock_transaction import StockTransaction
from ...models.tank import Tank, utcnow
from ...utils.amounts import ZERO, exact_rate, exact_tons
from ...utils.locks import owner_lock
from ...utils.logger import Log
from .errors import (
    CapacityExceededError,
    InsufficientAvailableError,
    InsufficientFrozenError,
    InvalidAmountError,
    TankNotFoundError,
)
from .store import StockStore, unit_of_work


def positive_tons(amount, field="amount"):
    """Caller-supplied tons: must be a number above zero with at most 3 decimal places."""
    try:
        value = exact_tons(amount)
    except (TypeError, ValueError) as e:
        raise InvalidAmountError(f"Invalid {field}: {e}")
    if value <= ZERO:
        raise InvalidAmountError(f"{field} must be greater than zero")
    return value


def checked_rate(rate):
    """Optional per-kg price, stored as given; more than 2 decimal places is refused."""
    try:
        return exact_rate(rate)
    except (TypeError, ValueError) as e:
        raise InvalidAmountError(f"Invalid rate: {e}")


def _owner_of(tank_id):
    tank = StockStore().get_tank(tank_id)
    if tank is None:
        raise TankNotFoundError(f"Tank {tank_id} not found")
    return tank.owner_id


def _mutate_tank(tank_id, amount, apply, txn_type, log_tag, **txn_fields):
    """
    Lock the owner, reload the tank, let `apply` check and change its pools,
    then write the tank and its ledger row in one unit of work.
    """
    owner_id = _owner_of(tank_id)

    with owner_lock(owner_id), unit_of_work(log_tag) as store:
        tank = store.get_tank(tank_id)
        if tank is None:
            raise TankNotFoundError(f"Tank {tank_id} not found")

        apply(tank)
        tank.touch()

        store.save_tank(tank)
        store.append_transaction(
            StockTransaction.for_tank(tank, txn_type, amount, **txn_fields)
        )

    Log.info(
        f"{log_tag} {txn_type} {amount}t on tank {tank.id}: "
        f"available={tank.available} frozen={tank.freeze_gas}"
    )
    return tank


# ---------- Stock operations ----------
def add_stock(tank_id, amount, rate=None):
    """
    Add gas to a tank.

    Raises:
        InvalidAmountError: amount is not positive
        TankNotFoundError: no such tank
        CapacityExceededError: the tank cannot hold the extra amount
    """
    log_tag = f"[operations.py][add_stock][{tank_id}]"
    amount = positive_tons(amount)
    rate = checked_rate(rate)

    def apply(tank):
        if tank.available + tank.freeze_gas + amount > tank.total_capacity:
            Log.error(f"{log_tag} {amount}t exceeds headroom {tank.headroom}t")
            raise CapacityExceededError(
                f"Adding {amount} exceeds tank capacity ({tank.headroom} free of {tank.total_capacity})"
            )
        tank.available += amount

    return _mutate_tank(
        tank_id, amount, apply, StockTransaction.TYPE_ADD, log_tag,
        rate=rate, notes="Gas added to tank",
    )


def freeze_stock(tank_id, amount):
    """Move gas from the available pool to the frozen pool."""
    log_tag = f"[operations.py][freeze_stock][{tank_id}]"
    amount = positive_tons(amount)

    def apply(tank):
        if amount > tank.available:
            Log.error(f"{log_tag} {amount}t requested, {tank.available}t available")
            raise InsufficientAvailableError(
                f"Not enough available gas to freeze ({tank.available} available)"
            )
        tank.available -= amount
        tank.freeze_gas += amount

    return _mutate_tank(
        tank_id, amount, apply, StockTransaction.TYPE_FREEZE, log_tag,
        notes="Gas frozen in tank",
    )


def unfreeze_stock(tank_id, amount):
    """Move gas from the frozen pool back to the available pool."""
    log_tag = f"[operations.py][unfreeze_stock][{tank_id}]"
    amount = positive_tons(amount)

    def apply(tank):
        if amount > tank.freeze_gas:
            Log.error(f"{log_tag} {amount}t requested, {tank.freeze_gas}t frozen")
            raise InsufficientFrozenError(
                f"Not enough frozen gas to unfreeze ({tank.freeze_gas} frozen)"
            )
        tank.freeze_gas -= amount
        tank.available += amount

    return _mutate_tank(
        tank_id, amount, apply, StockTransaction.TYPE_UNFREEZE, log_tag,
        notes="Gas unfrozen in tank",
    )


# ---------- Tank management ----------
def create_tank(owner_id, name, total_capacity, location="", available=0, status=None):
    """
    Create a tank. A positive opening balance is written to the ledger as an
    `add` row so every unit in the available pool has an audit entry.
    """
    log_tag = f"[operations.py][create_tank][{owner_id}]"

    total_capacity = positive_tons(total_capacity, field="totalCapacity")
    try:
        available = exact_tons(available or 0)
    except (TypeError, ValueError) as e:
        raise InvalidAmountError(f"Invalid available: {e}")
    if available < ZERO:
        raise InvalidAmountError("available cannot be negative")
    if available > total_capacity:
        raise CapacityExceededError(
            f"Opening stock {available} exceeds tank capacity {total_capacity}"
        )

    tank = Tank(
        owner_id=owner_id,
        name=name,
        total_capacity=total_capacity,
        location=location,
        available=available,
        status=status or TANK_STATUS["ACTIVE"],
    )

    with owner_lock(owner_id), unit_of_work(log_tag) as store:
        store.insert_tank(tank)
        if available > ZERO:
            store.append_transaction(
                StockTransaction.for_tank(
                    tank, StockTransaction.TYPE_ADD, available, notes="Opening stock"
                )
            )

    Log.info(f"{log_tag} Tank created: {tank.id} ({tank.name})")
    return tank


def get_tank(tank_id):
    tank = StockStore().get_tank(tank_id)
    if tank is None:
        raise TankNotFoundError(f"Tank {tank_id} not found")
    return tank


def list_tanks(owner_id, status=None):
    """All tanks for an owner, newest first, optionally narrowed to one status."""
    return StockStore().list_tanks_by_owner(owner_id, status=status)


def update_tank(tank_id, name=None, location=None, total_capacity=None, status=None):
    """
    Update descriptive fields and capacity. Pools only change through the
    stock operations.
    """
    log_tag = f"[operations.py][update_tank][{tank_id}]"
    if total_capacity is not None:
        total_capacity = positive_tons(total_capacity, field="totalCapacity")

    owner_id = _owner_of(tank_id)

    with owner_lock(owner_id), unit_of_work(log_tag) as store:
        tank = store.get_tank(tank_id)
        if tank is None:
            raise TankNotFoundError(f"Tank {tank_id} not found")

        if name:
            tank.name = name
        if location is not None:
            tank.location = location
        if total_capacity is not None:
            held = tank.available + tank.freeze_gas
            if total_capacity < held:
                raise CapacityExceededError(
                    f"Capacity {total_capacity} is below the {held} currently held"
                )
            tank.total_capacity = total_capacity
        if status:
            tank.status = status

        tank.updated_at = utcnow()
        store.save_tank(tank)

    Log.info(f"{log_tag} Tank updated")
    return tank


def delete_tank(tank_id):
    """Remove a tank. Its ledger rows are kept."""
    log_tag = f"[operations.py][delete_tank][{tank_id}]"
    owner_id = _owner_of(tank_id)

    with owner_lock(owner_id), unit_of_work(log_tag) as store:
        tank = store.get_tank(tank_id)
        if tank is None or not store.delete_tank(tank):
            raise TankNotFoundError(f"Tank {tank_id} not found")

    Log.info(f"{log_tag} Tank deleted")
    return tank
