"""Money parsing and formatting utilities (integer cents internally)"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Union


def to_cents(amount: Union[str, int, float, Decimal]) -> int:
    """
    Convert a decimal-dollar amount to integer cents, rounding to the nearest cent.

    Floats go through their shortest repr so 2400.1 becomes 240010, not 240009.

    Raises:
        ValueError: If the amount cannot be read as a number
    """
    if isinstance(amount, float):
        amount = repr(amount)
    try:
        value = Decimal(str(amount).replace(",", "").replace("$", "").strip())
    except InvalidOperation as e:
        raise ValueError(f"Not a currency amount: {amount!r}") from e
    if not value.is_finite():
        raise ValueError(f"Not a currency amount: {amount!r}")
    return int((value * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def to_dollars(cents: int) -> Decimal:
    """Integer cents to an exact two-place Decimal"""
    return (Decimal(cents) / 100).quantize(Decimal("0.01"))


def format_dollars(cents: int, grouping: bool = True) -> str:
    """
    Format cents for display.

    Example:
        240000 -> "$2,400.00"
        34285 -> "$342.85"
    """
    sign = "-" if cents < 0 else ""
    whole, part = divmod(abs(cents), 100)
    whole_text = f"{whole:,}" if grouping else str(whole)
    return f"{sign}${whole_text}.{part:02d}"


def plain_dollars(cents: int) -> str:
    """Decimal-dollar string without symbol or grouping, as used in URLs"""
    return f"{to_dollars(cents):.2f}"
