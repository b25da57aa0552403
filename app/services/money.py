# app/services/money.py
# Role: Decimal helpers for 2dp money values.

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from app.errors import ValidationError

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value) -> Decimal:
    """
    Coerce int/str/float/Decimal into a Decimal rounded to cents.
    Floats go through str() so 0.1 stays 0.10.
    """
    if value is None:
        return ZERO
    if isinstance(value, float):
        value = str(value)
    try:
        amount = Decimal(value)
        # NaN and Infinity parse but cannot be compared or stored
        if not amount.is_finite():
            raise InvalidOperation
        return amount.quantize(CENT, rounding=ROUND_HALF_UP)
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"Invalid amount: {value!r}")


def positive_money(value, field: str = "amount") -> Decimal:
    """Like to_money, but rejects missing, zero and negative values."""
    if value is None:
        raise ValidationError(f"{field} is required.")
    amount = to_money(value)
    if amount <= 0:
        raise ValidationError(f"{field} must be greater than zero.")
    return amount


def percent(part: Decimal, whole: Decimal, cap: bool = True) -> float:
    """part/whole * 100, 0 when whole is 0, optionally capped at 100."""
    if whole == 0:
        return 0.0
    value = float(part / whole * 100)
    return min(value, 100.0) if cap else value
