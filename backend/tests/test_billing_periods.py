from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

from backend.app.services.billing_periods import (
    BillingPeriod,
    BillingPeriodService,
    business_date,
    business_timezone,
    ordinal_suffix,
)


@pytest.mark.parametrize(
    "reference",
    [
        date(2025, 1, 1),
        date(2025, 2, 10),
        date(2024, 2, 29),
        date(2025, 4, 30),
        date(2025, 12, 31),
    ],
)
def test_month_halves_cover_the_month_exactly_once(reference):
    first, second = BillingPeriodService.periods_for_month(reference)

    assert first.start_date == reference.replace(day=1)
    assert second.start_date == first.end_date + timedelta(days=1)
    next_month_start = second.end_date + timedelta(days=1)
    assert next_month_start.day == 1
    assert next_month_start.month != reference.month

    days = {first.start_date + timedelta(days=offset) for offset in range(15)}
    days |= {
        second.start_date + timedelta(days=offset)
        for offset in range((second.end_date - second.start_date).days + 1)
    }
    assert len(days) == second.end_date.day
    assert all(day.month == reference.month for day in days)


def test_february_end_follows_leap_years():
    _, non_leap = BillingPeriodService.periods_for_month(date(2025, 2, 10))
    _, leap = BillingPeriodService.periods_for_month(date(2024, 2, 10))

    assert non_leap.end_date == date(2025, 2, 28)
    assert leap.end_date == date(2024, 2, 29)
    assert non_leap.label == "16th - 28th Feb 2025"
    assert leap.label == "16th - 29th Feb 2024"


def test_generation_dates_and_payment_windows():
    first, second = BillingPeriodService.periods_for_month(date(2025, 1, 20))

    assert first.label == "1st - 15th Jan 2025"
    assert first.bill_generation_date == date(2025, 1, 15)
    assert (first.payment_window_start, first.payment_window_end) == (
        date(2025, 1, 20),
        date(2025, 1, 25),
    )
    assert second.bill_generation_date == date(2025, 1, 31)
    assert (second.payment_window_start, second.payment_window_end) == (
        date(2025, 2, 1),
        date(2025, 2, 5),
    )


def test_december_second_half_is_paid_in_january():
    _, second = BillingPeriodService.periods_for_month(date(2025, 12, 3))

    assert second.end_date == date(2025, 12, 31)
    assert second.payment_window_start == date(2026, 1, 1)
    assert second.payment_window_end == date(2026, 1, 5)
    assert second.label == "16th - 31st Dec 2025"


@pytest.mark.parametrize(
    "day, suffix",
    [(1, "st"), (2, "nd"), (3, "rd"), (4, "th"), (11, "th"), (12, "th"), (13, "th"),
     (21, "st"), (22, "nd"), (23, "rd"), (30, "th"), (31, "st")],
)
def test_ordinal_suffix(day, suffix):
    assert ordinal_suffix(day) == suffix


def test_period_rejects_inverted_range():
    with pytest.raises(ValueError):
        BillingPeriod(
            start_date=date(2025, 1, 16),
            end_date=date(2025, 1, 15),
            label="broken",
            bill_generation_date=date(2025, 1, 15),
            payment_window_start=date(2025, 1, 20),
            payment_window_end=date(2025, 1, 25),
        )


def test_period_containing_uses_the_fifteenth_as_boundary():
    assert BillingPeriodService.period_containing(date(2025, 3, 15)).key == "2025-03-H1"
    assert BillingPeriodService.period_containing(date(2025, 3, 16)).key == "2025-03-H2"


def test_available_periods_are_most_recent_first():
    periods = BillingPeriodService.available_periods(3, today=date(2025, 3, 10))

    assert [period.key for period in periods] == [
        "2025-03-H2",
        "2025-03-H1",
        "2025-02-H2",
        "2025-02-H1",
        "2025-01-H2",
        "2025-01-H1",
    ]


def test_available_periods_cross_year_boundary():
    periods = BillingPeriodService.available_periods(2, today=date(2025, 1, 4))

    assert periods[-1].start_date == date(2024, 12, 1)


def test_available_periods_are_stable_for_the_same_day():
    today = date(2024, 2, 20)

    assert BillingPeriodService.available_periods(4, today=today) == (
        BillingPeriodService.available_periods(4, today=today)
    )


def test_available_periods_rejects_empty_lookback():
    with pytest.raises(ValueError):
        BillingPeriodService.available_periods(0, today=date(2025, 1, 1))


def test_parse_period_key():
    period = BillingPeriodService.parse_period_key(" 2025-02-h2 ")

    assert period.start_date == date(2025, 2, 16)
    assert period.end_date == date(2025, 2, 28)
    assert period.sequence_key == "202502"


@pytest.mark.parametrize("key", ["", "2025-13-H1", "2025-02", "2025-02-H3", "25-02-H1"])
def test_parse_period_key_rejects_malformed_keys(key):
    with pytest.raises(ValueError):
        BillingPeriodService.parse_period_key(key)


def test_business_timezone_defaults_to_ist(monkeypatch):
    monkeypatch.delenv("BUSINESS_UTC_OFFSET_MINUTES", raising=False)

    assert business_timezone().utcoffset(None) == timedelta(hours=5, minutes=30)
    assert business_date(datetime(2025, 1, 31, 20, 0, tzinfo=timezone.utc)) == date(2025, 2, 1)
    assert business_date(datetime(2025, 1, 31, 20, 0)) == date(2025, 1, 31)
    assert business_date(date(2025, 1, 31)) == date(2025, 1, 31)


def test_business_timezone_offset_from_env(monkeypatch):
    monkeypatch.setenv("BUSINESS_UTC_OFFSET_MINUTES", "0")

    assert business_date(datetime(2025, 1, 31, 20, 0, tzinfo=timezone.utc)) == date(2025, 1, 31)

    monkeypatch.setenv("BUSINESS_UTC_OFFSET_MINUTES", "ist")
    with pytest.raises(ValueError):
        business_timezone()
