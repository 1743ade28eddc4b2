# services/stock/allocator.py
"""
Multi-tank stock deduction.

A deduction is planned against a snapshot of the owner's active tanks and only
applied when the whole amount can be covered, so a shortfall never leaves
tanks partially drawn down.

Policies:
    greedy     - largest available first
    sequential - tank name ascending (Tank A, then Tank B, then Tank C)

Both sort stably over tanks loaded in insertion order, so ties fall back to
the order the tanks were created in.
"""
from __future__ import annotations

from typing import Callable, Dict, List, Tuple

from bson import ObjectId

from ...constants.service_code import ALLOCATION_POLICIES
from ...models.stock_transaction import StockTransaction
from ...models.tank import Tank
from ...utils.amounts import ZERO, to_tons
from ...utils.locks import owner_lock
from ...utils.logger import Log
from .errors import InsufficientStockError
from .operations import checked_rate, positive_tons
from .store import unit_of_work

POLICY_GREEDY = ALLOCATION_POLICIES["GREEDY"]
POLICY_SEQUENTIAL = ALLOCATION_POLICIES["SEQUENTIAL"]


def _greedy_order(tanks: List[Tank]) -> List[Tank]:
    return sorted(tanks, key=lambda t: t.available, reverse=True)


def _sequential_order(tanks: List[Tank]) -> List[Tank]:
    return sorted(tanks, key=lambda t: t.name or "")


POLICIES: Dict[str, Callable[[List[Tank]], List[Tank]]] = {
    POLICY_GREEDY: _greedy_order,
    POLICY_SEQUENTIAL: _sequential_order,
}


def order_tanks(tanks: List[Tank], policy: str) -> List[Tank]:
    try:
        return POLICIES[policy](tanks)
    except KeyError:
        raise ValueError(f"Unknown allocation policy: {policy!r}")


def plan_deduction(tanks: List[Tank], amount, policy: str = POLICY_GREEDY):
    """
    Walk the tanks in policy order taking min(available, remaining) from each.

    Returns (plan, shortfall) where plan is a list of (tank, amount) pairs for
    tanks that give something, and shortfall is what could not be covered.
    Nothing is mutated.
    """
    remaining = to_tons(amount)
    plan: List[Tuple[Tank, object]] = []

    for tank in order_tanks(tanks, policy):
        if remaining <= ZERO:
            break
        take = min(tank.available, remaining)
        if take <= ZERO:
            continue
        plan.append((tank, take))
        remaining -= take

    return plan, max(remaining, ZERO)


def _deduct_notes(order_id, policy):
    notes = f"Stock deducted for order {order_id}" if order_id else "Stock deducted"
    if policy == POLICY_SEQUENTIAL:
        notes += " (sequential)"
    return notes


def deduct_stock(owner_id, amount, rate=None, order_id=None, policy=POLICY_GREEDY):
    """
    Deduct `amount` tons across the owner's active tanks.

    Args:
        owner_id: Gas plant account id
        amount: Tons to deduct, must be positive
        rate: Optional per-kg price stored on every ledger row (default 0)
        order_id: Optional order correlation id
        policy: "greedy" or "sequential"

    Returns:
        List of {"tank_id", "tank_name", "amount"} dicts in the order processed

    Raises:
        InvalidAmountError: amount is not positive, or rate or amount carry more
            decimal places than stored (nothing is read or written)
        InsufficientStockError: active tanks cannot cover the amount; carries
            the shortfall and leaves every tank untouched
    """
    log_tag = f"[allocator.py][deduct_stock][{owner_id}][{policy}]"

    amount = positive_tons(amount)
    if policy not in POLICIES:
        raise ValueError(f"Unknown allocation policy: {policy!r}")

    rate = checked_rate(rate)
    allocation_id = str(ObjectId())
    notes = _deduct_notes(order_id, policy)
    deducted = []

    with owner_lock(owner_id), unit_of_work(log_tag) as store:
        tanks = store.list_active_tanks_by_owner(owner_id)
        plan, shortfall = plan_deduction(tanks, amount, policy)

        if shortfall > ZERO:
            Log.warning(
                f"{log_tag} Not enough stock: requested={amount} "
                f"shortfall={shortfall} active_tanks={len(tanks)}"
            )
            raise InsufficientStockError(shortfall=shortfall, requested=amount)

        for sequence, (tank, take) in enumerate(plan):
            tank.available -= take
            tank.touch()
            store.save_tank(tank)
            store.append_transaction(
                StockTransaction.for_tank(
                    tank,
                    StockTransaction.TYPE_DEDUCT,
                    take,
                    rate=rate,
                    order_id=order_id or "",
                    notes=notes,
                    allocation_id=allocation_id,
                    sequence=sequence,
                )
            )
            deducted.append({"tank_id": tank.id, "tank_name": tank.name, "amount": take})

    Log.info(f"{log_tag} Deducted {amount}t from {len(deducted)} tank(s), allocation {allocation_id}")
    return deducted


def deduct_stock_greedy(owner_id, amount, rate=None, order_id=None):
    return deduct_stock(owner_id, amount, rate=rate, order_id=order_id, policy=POLICY_GREEDY)


def deduct_stock_sequential(owner_id, amount, rate=None, order_id=None):
    return deduct_stock(owner_id, amount, rate=rate, order_id=order_id, policy=POLICY_SEQUENTIAL)
