from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from backend.app import models
from backend.app.services.profit_loss import (
    GroupBy,
    TimeFrame,
    expense_breakdown,
    percentage_change,
    previous_period,
    profit_loss_report,
    time_frame_dates,
    trips_in_range,
)

from factories import make_journey, make_trip

TODAY = date(2025, 1, 20)


@pytest.fixture
def mixed_trips() -> list[models.Trip]:
    running = make_trip(
        "running",
        status=models.TripStatus.RUNNING,
        start_date=date(2025, 1, 10),
        total_income="50000",
        driver_advance="5000",
        journeys=[make_journey("j-1", "running", "client-1", weight="20")],
    )
    completed = make_trip(
        "completed",
        truck_id="truck-2",
        truck_number="KA 01 CD 5678",
        total_income="100000",
        driver_advance="4000",
        diesel_amount="20000",
        diesel_quantity="250",
        toll_expense="3000",
        other_expense="2000",
        total_km="1000",
        journeys=[
            make_journey("j-2", "completed", "client-1"),
            make_journey("j-3", "completed", "client-2"),
        ],
    )
    return [running, completed]


def test_summary_counts_running_trip_income_and_advance_only(mixed_trips):
    report = profit_loss_report(mixed_trips, TimeFrame.THIS_MONTH, today=TODAY)
    summary = report.summary

    assert report.time_frame.label == "January 2025"
    assert summary.trip_count == 2
    assert summary.journey_count == 3
    assert summary.income == Decimal("150000")
    assert summary.expenses.diesel == Decimal("20000")
    assert summary.expenses.driver_advance == Decimal("9000")
    assert summary.total_expense == Decimal("34000")
    assert summary.gross_profit == Decimal("116000")
    assert summary.profit_margin == Decimal("77.33")
    assert summary.avg_mileage == Decimal("4.00")
    assert summary.total_km == Decimal("1000")


def test_running_trip_has_no_operating_expenses(mixed_trips):
    breakdown = expense_breakdown([mixed_trips[0]])

    assert breakdown.diesel == Decimal("0")
    assert breakdown.toll == Decimal("0")
    assert breakdown.other == Decimal("0")
    assert breakdown.total == Decimal("5000")


def test_group_by_truck_sorts_entries_by_truck_number(mixed_trips):
    report = profit_loss_report(mixed_trips, "this_month", "truck", today=TODAY)

    assert [entry.label for entry in report.entries] == ["KA 01 CD 5678", "TN 38 AB 1234"]
    assert [entry.id for entry in report.entries] == ["truck-2", "truck-1"]
    assert report.entries[1].gross_profit == Decimal("45000")


def test_group_by_month_uses_end_date(mixed_trips):
    spanning = make_trip(
        "spanning",
        start_date=date(2024, 12, 28),
        end_date=date(2025, 1, 3),
        total_income="10000",
    )
    trips = mixed_trips + [spanning]

    report = profit_loss_report(
        trips,
        TimeFrame.CUSTOM,
        GroupBy.MONTH,
        custom_start=date(2024, 12, 1),
        custom_end=date(2025, 1, 31),
    )

    assert [entry.id for entry in report.entries] == ["2025-01"]
    assert report.entries[0].label == "January 2025"
    assert report.entries[0].trip_count == 3


def test_empty_window_has_zero_margin():
    report = profit_loss_report([], TimeFrame.THIS_YEAR, today=TODAY)

    assert report.summary.income == Decimal("0")
    assert report.summary.profit_margin == Decimal("0")
    assert report.summary.avg_mileage == Decimal("0")
    assert [entry.id for entry in report.entries] == ["overall"]


def test_trips_in_range_prefers_end_date():
    trip = make_trip("trip-1", start_date=date(2025, 1, 30), end_date=date(2025, 2, 2))

    assert trips_in_range([trip], date(2025, 1, 1), date(2025, 1, 31)) == []
    assert trips_in_range([trip], date(2025, 2, 1), date(2025, 2, 28)) == [trip]


@pytest.mark.parametrize(
    "frame, start, end, label",
    [
        (TimeFrame.THIS_MONTH, date(2025, 1, 1), date(2025, 1, 31), "January 2025"),
        (TimeFrame.LAST_MONTH, date(2024, 12, 1), date(2024, 12, 31), "December 2024"),
        (TimeFrame.THIS_QUARTER, date(2025, 1, 1), date(2025, 3, 31), "Q1 2025"),
        (TimeFrame.THIS_YEAR, date(2025, 1, 1), date(2025, 12, 31), "FY 2025"),
    ],
)
def test_named_time_frames(frame, start, end, label):
    window = time_frame_dates(frame, TODAY)

    assert (window.start, window.end, window.label) == (start, end, label)


def test_custom_time_frame_requires_valid_dates():
    window = time_frame_dates("custom", TODAY, date(2025, 1, 5), date(2025, 1, 20))
    assert window.label == "05 Jan - 20 Jan 2025"

    with pytest.raises(ValueError):
        time_frame_dates("custom", TODAY, date(2025, 1, 5), None)
    with pytest.raises(ValueError):
        time_frame_dates("custom", TODAY, date(2025, 1, 20), date(2025, 1, 5))
    with pytest.raises(ValueError):
        time_frame_dates("fortnight", TODAY)


def test_previous_periods():
    month = previous_period(TimeFrame.THIS_MONTH, date(2025, 1, 1), date(2025, 1, 31))
    assert (month.start, month.end) == (date(2024, 12, 1), date(2024, 12, 31))

    quarter = previous_period(TimeFrame.THIS_QUARTER, date(2025, 1, 1), date(2025, 3, 31))
    assert (quarter.start, quarter.end, quarter.label) == (
        date(2024, 10, 1),
        date(2024, 12, 31),
        "Q4 2024",
    )

    year = previous_period(TimeFrame.THIS_YEAR, date(2025, 1, 1), date(2025, 12, 31))
    assert (year.start, year.end) == (date(2024, 1, 1), date(2024, 12, 31))

    custom = previous_period(TimeFrame.CUSTOM, date(2025, 1, 11), date(2025, 1, 20))
    assert (custom.start, custom.end) == (date(2025, 1, 1), date(2025, 1, 10))


@pytest.mark.parametrize(
    "current, previous, expected",
    [
        ("0", "0", "0"),
        ("500", "0", "100"),
        ("150", "100", "50.00"),
        ("50", "200", "-75.00"),
        ("1", "3", "-66.67"),
    ],
)
def test_percentage_change(current, previous, expected):
    assert percentage_change(Decimal(current), Decimal(previous)) == Decimal(expected)
