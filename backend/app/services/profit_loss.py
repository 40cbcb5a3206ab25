"""Profit and loss reporting over trips."""

from __future__ import annotations

import enum
from calendar import monthrange
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal
from typing import Callable, Iterable, Optional, Sequence

from .. import models
from .billing_periods import business_today
from .journeys import UNKNOWN_TRUCK_NUMBER
from .money import ZERO, quantize_money, safe_ratio, to_decimal

HUNDRED = Decimal("100")


class TimeFrame(str, enum.Enum):
    THIS_MONTH = "this_month"
    LAST_MONTH = "last_month"
    THIS_QUARTER = "this_quarter"
    THIS_YEAR = "this_year"
    CUSTOM = "custom"


class GroupBy(str, enum.Enum):
    TRUCK = "truck"
    MONTH = "month"
    OVERALL = "overall"


@dataclass(frozen=True)
class DateRange:
    start: date
    end: date
    label: str = ""

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end


@dataclass(frozen=True)
class ExpenseBreakdown:
    diesel: Decimal = ZERO
    toll: Decimal = ZERO
    driver_advance: Decimal = ZERO
    other: Decimal = ZERO

    @property
    def total(self) -> Decimal:
        return self.diesel + self.toll + self.driver_advance + self.other

    def as_dict(self) -> dict[str, Decimal]:
        return {
            "diesel": self.diesel,
            "toll": self.toll,
            "driver_advance": self.driver_advance,
            "other": self.other,
        }


@dataclass
class ProfitLossEntry:
    id: str
    label: str
    trip_count: int
    journey_count: int
    total_km: Decimal
    income: Decimal
    expenses: ExpenseBreakdown
    total_expense: Decimal
    gross_profit: Decimal
    profit_margin: Decimal
    avg_mileage: Decimal


@dataclass
class ProfitLossReport:
    time_frame: DateRange
    summary: ProfitLossEntry
    entries: list[ProfitLossEntry] = field(default_factory=list)


def month_bounds(year: int, month: int) -> tuple[date, date]:
    return date(year, month, 1), date(year, month, monthrange(year, month)[1])


def _shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def _month_label(day: date) -> str:
    return day.strftime("%B %Y")


def _quarter_start_month(month: int) -> int:
    return 3 * ((month - 1) // 3) + 1


def time_frame_dates(
    time_frame: TimeFrame | str,
    today: Optional[date] = None,
    custom_start: Optional[date] = None,
    custom_end: Optional[date] = None,
) -> DateRange:
    """Resolve a named time frame to an inclusive date range with a label."""

    frame = TimeFrame(time_frame)
    today = today or business_today()

    if frame == TimeFrame.THIS_MONTH:
        start, end = month_bounds(today.year, today.month)
        return DateRange(start, end, _month_label(today))
    if frame == TimeFrame.LAST_MONTH:
        start, end = month_bounds(*_shift_month(today.year, today.month, -1))
        return DateRange(start, end, _month_label(start))
    if frame == TimeFrame.THIS_QUARTER:
        first_month = _quarter_start_month(today.month)
        start = date(today.year, first_month, 1)
        _, end = month_bounds(today.year, first_month + 2)
        return DateRange(start, end, f"Q{(first_month - 1) // 3 + 1} {today.year}")
    if frame == TimeFrame.THIS_YEAR:
        return DateRange(date(today.year, 1, 1), date(today.year, 12, 31), f"FY {today.year}")

    if custom_start is None or custom_end is None:
        raise ValueError("A custom time frame needs both a start and an end date")
    if custom_start > custom_end:
        raise ValueError("Custom start date must not be after the end date")
    label = f"{custom_start:%d %b} - {custom_end:%d %b %Y}"
    return DateRange(custom_start, custom_end, label)


def previous_period(time_frame: TimeFrame | str, start: date, end: date) -> DateRange:
    """The range a report window is compared against.

    Month frames compare to the month before ``start``, quarters to the
    previous quarter and years to the previous year. Custom ranges compare to
    the window of the same length ending the day before ``start``.
    """

    frame = TimeFrame(time_frame)
    if frame in (TimeFrame.THIS_MONTH, TimeFrame.LAST_MONTH):
        year, month = _shift_month(start.year, start.month, -1)
        prev_start, prev_end = month_bounds(year, month)
        return DateRange(prev_start, prev_end, _month_label(prev_start))
    if frame == TimeFrame.THIS_QUARTER:
        year, month = _shift_month(start.year, _quarter_start_month(start.month), -3)
        prev_start = date(year, month, 1)
        _, prev_end = month_bounds(year, month + 2)
        return DateRange(prev_start, prev_end, f"Q{(month - 1) // 3 + 1} {year}")
    if frame == TimeFrame.THIS_YEAR:
        year = start.year - 1
        return DateRange(date(year, 1, 1), date(year, 12, 31), f"FY {year}")

    length = end - start
    prev_end = start - timedelta(days=1)
    prev_start = prev_end - length
    return DateRange(prev_start, prev_end, f"{prev_start:%d %b} - {prev_end:%d %b %Y}")


def trips_in_range(trips: Iterable[models.Trip], start: date, end: date) -> list[models.Trip]:
    """Trips whose effective date (end date, else start date) is in range."""

    return [trip for trip in trips if start <= trip.effective_date <= end]


def percentage_change(current: Decimal, previous: Decimal) -> Decimal:
    current, previous = to_decimal(current), to_decimal(previous)
    if previous == 0:
        return HUNDRED if current > 0 else ZERO
    return quantize_money((current - previous) / previous * HUNDRED)


def completed_trips(trips: Iterable[models.Trip]) -> list[models.Trip]:
    return [trip for trip in trips if trip.is_billable]


def _sum(trips: Iterable[models.Trip], getter: Callable[[models.Trip], object]) -> Decimal:
    return sum((to_decimal(getter(trip)) for trip in trips), ZERO)


def expense_breakdown(trips: Sequence[models.Trip]) -> ExpenseBreakdown:
    """Expense totals for ``trips``.

    Diesel, toll and other expenses only exist once a trip is completed, so
    running trips contribute their driver advance alone.
    """

    completed = completed_trips(trips)
    return ExpenseBreakdown(
        diesel=_sum(completed, lambda trip: trip.diesel_amount),
        toll=_sum(completed, lambda trip: trip.toll_expense),
        driver_advance=_sum(trips, lambda trip: trip.driver_advance),
        other=_sum(completed, lambda trip: trip.other_expense),
    )


def calculate_entry(trips: Sequence[models.Trip], entry_id: str, label: str) -> ProfitLossEntry:
    completed = completed_trips(trips)
    income = _sum(trips, lambda trip: trip.total_income)
    expenses = expense_breakdown(trips)
    total_km = _sum(completed, lambda trip: trip.total_km)
    total_diesel = _sum(completed, lambda trip: trip.diesel_quantity)
    gross_profit = income - expenses.total

    return ProfitLossEntry(
        id=entry_id,
        label=label,
        trip_count=len(trips),
        journey_count=sum(len(trip.journeys) for trip in trips),
        total_km=total_km,
        income=income,
        expenses=expenses,
        total_expense=expenses.total,
        gross_profit=gross_profit,
        profit_margin=quantize_money(safe_ratio(gross_profit, income) * HUNDRED),
        avg_mileage=quantize_money(safe_ratio(total_km, total_diesel)),
    )


def _truck_key(trip: models.Trip) -> str:
    return trip.truck_id or trip.truck_number or UNKNOWN_TRUCK_NUMBER


def group_trips_by_truck(trips: Iterable[models.Trip]) -> dict[str, list[models.Trip]]:
    grouped: dict[str, list[models.Trip]] = {}
    for trip in trips:
        grouped.setdefault(_truck_key(trip), []).append(trip)
    return grouped


def profit_loss_report(
    trips: Iterable[models.Trip],
    time_frame: TimeFrame | str = TimeFrame.THIS_MONTH,
    group_by: GroupBy | str = GroupBy.OVERALL,
    *,
    today: Optional[date] = None,
    custom_start: Optional[date] = None,
    custom_end: Optional[date] = None,
) -> ProfitLossReport:
    window = time_frame_dates(time_frame, today, custom_start, custom_end)
    selected = trips_in_range(trips, window.start, window.end)
    grouping = GroupBy(group_by)

    if grouping == GroupBy.TRUCK:
        entries = [
            calculate_entry(truck_trips, key, truck_trips[0].truck_number or UNKNOWN_TRUCK_NUMBER)
            for key, truck_trips in group_trips_by_truck(selected).items()
        ]
        entries.sort(key=lambda entry: entry.label)
    elif grouping == GroupBy.MONTH:
        by_month: dict[str, list[models.Trip]] = {}
        for trip in selected:
            by_month.setdefault(f"{trip.effective_date:%Y-%m}", []).append(trip)
        entries = [
            calculate_entry(
                by_month[key], key, _month_label(date(int(key[:4]), int(key[5:]), 1))
            )
            for key in sorted(by_month)
        ]
    else:
        entries = [calculate_entry(selected, "overall", "Total")]

    return ProfitLossReport(
        time_frame=window,
        summary=calculate_entry(selected, "summary", window.label),
        entries=entries,
    )
