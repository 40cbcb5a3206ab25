"""Decimal helpers and rupee formatting shared by the billing services."""

from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP

CENTS = Decimal("0.01")
ZERO = Decimal("0")


def to_decimal(value: Decimal | float | int | str | None) -> Decimal:
    """Convert ``value`` to ``Decimal`` treating ``None`` as zero."""

    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def quantize_money(value: Decimal | float | int | str | None) -> Decimal:
    return to_decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def safe_ratio(numerator: Decimal, denominator: Decimal) -> Decimal:
    """Divide, returning zero instead of failing when the denominator is zero."""

    if not denominator:
        return ZERO
    return to_decimal(numerator) / to_decimal(denominator)


def _group_indian(digits: str) -> str:
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    pairs = []
    while len(head) > 2:
        pairs.insert(0, head[-2:])
        head = head[:-2]
    if head:
        pairs.insert(0, head)
    return ",".join(pairs + [tail])


def format_currency(amount: Decimal | float | int | str | None) -> str:
    """Format an amount as whole rupees with Indian digit grouping (``₹1,00,300``)."""

    rupees = to_decimal(amount).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    sign = "-" if rupees < 0 else ""
    return f"{sign}₹{_group_indian(str(abs(int(rupees))))}"


def format_compact(amount: Decimal | float | int | str | None) -> str:
    """Short form used on report cards: lakhs (L), thousands (K) or rupees."""

    value = to_decimal(amount)
    if value >= 100000:
        return f"₹{(value / 100000).quantize(Decimal('0.1'), rounding=ROUND_HALF_UP)}L"
    if value >= 1000:
        return f"₹{(value / 1000).quantize(Decimal('0.1'), rounding=ROUND_HALF_UP)}K"
    return f"₹{value.quantize(Decimal('1'), rounding=ROUND_HALF_UP)}"
