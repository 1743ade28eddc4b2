# tracklet/utils/amounts.py
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
import re
from typing import Any

_THOUS_SEP = re.compile(r"[,_\s']")
_VALID = re.compile(r"^[+\-]?\d+(\.\d+)?$")

# Tons are kept to the kilogram, rates and sales to the cent
TON_PLACES = 3
RATE_PLACES = 2
MONEY_PLACES = 2

ZERO = Decimal("0")


def _quantum(places: int) -> Decimal:
    return Decimal("1") if places == 0 else Decimal("0." + "0" * places)


def parse_amount(value: Any, places: int = 2, exact: bool = False) -> Decimal:
    """
    Accepts input like '1,000.5', '1_000', 1000, 12.25 or a Decimal.
    Returns a Decimal quantized to `places`; with exact=True an input that
    would need rounding raises ValueError instead.

    Floats go through str() first so 0.1 stays 0.1 instead of its binary
    expansion.
    """
    if isinstance(value, bool):
        raise TypeError("amount must be str | int | float | Decimal")
    if isinstance(value, Decimal):
        d = value
    elif isinstance(value, (int, float)):
        raw = str(value)
        try:
            d = Decimal(raw)
        except InvalidOperation:
            raise ValueError(f"Invalid amount: {value!r}")
    elif isinstance(value, str):
        raw = _THOUS_SEP.sub("", value.strip())
        if not _VALID.match(raw):
            raise ValueError(f"Invalid amount: {value!r}")
        d = Decimal(raw)
    else:
        raise TypeError("amount must be str | int | float | Decimal")

    if not d.is_finite():
        raise ValueError(f"Invalid amount: {value!r}")

    try:
        quantized = d.quantize(_quantum(places), rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise ValueError(f"Invalid amount: {value!r}")

    if exact and quantized != d:
        raise ValueError(f"{value!r} has more than {places} decimal places")
    return quantized


def exact_tons(value: Any) -> Decimal:
    """Tons from caller input; anything finer than a kilogram is refused, never rounded."""
    return parse_amount(value, places=TON_PLACES, exact=True)


def exact_rate(value: Any) -> Decimal:
    """Per-kg price from caller input; missing rates count as zero, sub-cent rates are refused."""
    if value is None or value == "":
        return parse_amount(0, places=RATE_PLACES)
    return parse_amount(value, places=RATE_PLACES, exact=True)


def to_tons(value: Any) -> Decimal:
    return parse_amount(value, places=TON_PLACES)


def to_rate(value: Any) -> Decimal:
    """Per-kg price; missing rates count as zero."""
    if value is None or value == "":
        return parse_amount(0, places=RATE_PLACES)
    return parse_amount(value, places=RATE_PLACES)


def to_money(value: Any) -> Decimal:
    return parse_amount(value, places=MONEY_PLACES)


def from_storage(value: Any, places: int = TON_PLACES) -> Decimal:
    """Documents keep amounts as strings; older rows may hold numbers."""
    if value is None:
        return parse_amount(0, places=places)
    return parse_amount(value, places=places)
