from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any

ZERO = Decimal("0")
ONE = Decimal("1")
HUNDRED = Decimal("100")

# Outside the range of an IEEE double; such input is treated as unreadable.
MAX_EXPONENT = 308
MIN_EXPONENT = -324


def to_decimal(value: Any, default: Decimal = ZERO) -> Decimal:
    """Coerce loosely typed form input into a finite Decimal.

    ``None``, blanks, unparsable text, booleans, NaN, infinities and
    magnitudes no double could hold all collapse to ``default`` so
    downstream arithmetic never sees them.
    """
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, float):
        result = Decimal(str(value))
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return default
        try:
            result = Decimal(text)
        except InvalidOperation:
            return default
    else:
        try:
            result = Decimal(str(value))
        except (InvalidOperation, ValueError):
            return default
    if not is_representable(result):
        return default
    return result


def is_representable(value: Decimal) -> bool:
    if not value.is_finite():
        return False
    if value.is_zero():
        return True
    return MIN_EXPONENT <= value.adjusted() <= MAX_EXPONENT


def non_negative(value: Any) -> Decimal:
    return max(ZERO, to_decimal(value))


def clamp(value: Any, low: Decimal, high: Decimal) -> Decimal:
    return min(high, max(low, to_decimal(value, default=low)))


def positive_or(value: Any, fallback: Decimal = ONE) -> Decimal:
    number = to_decimal(value)
    return number if number > 0 else fallback


def percent_of(amount: Decimal, rate: Decimal) -> Decimal:
    return amount * rate / HUNDRED
