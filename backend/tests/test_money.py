from __future__ import annotations

from decimal import Decimal

import pytest

from backend.app.services.money import format_compact, format_currency, safe_ratio


@pytest.mark.parametrize(
    "amount, expected",
    [
        (Decimal("100300"), "₹1,00,300"),
        (999, "₹999"),
        (Decimal("12345678"), "₹1,23,45,678"),
        (Decimal("1500.50"), "₹1,501"),
        (Decimal("-85300"), "-₹85,300"),
        (None, "₹0"),
    ],
)
def test_format_currency_uses_indian_grouping(amount, expected):
    assert format_currency(amount) == expected


@pytest.mark.parametrize(
    "amount, expected",
    [(Decimal("120000"), "₹1.2L"), (Decimal("4500"), "₹4.5K"), (Decimal("900"), "₹900")],
)
def test_format_compact(amount, expected):
    assert format_compact(amount) == expected


def test_safe_ratio_returns_zero_for_zero_denominator():
    assert safe_ratio(Decimal("5"), Decimal("0")) == Decimal("0")
    assert safe_ratio(Decimal("5"), Decimal("2")) == Decimal("2.5")
