"""Expense analysis for trips: categories, trends, trucks and drivers."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from .. import models
from .journeys import UNKNOWN_TRUCK_NUMBER
from .money import ZERO, quantize_money, safe_ratio, to_decimal
from .profit_loss import (
    HUNDRED,
    DateRange,
    ExpenseBreakdown,
    TimeFrame,
    completed_trips,
    expense_breakdown,
    group_trips_by_truck,
    month_bounds,
    percentage_change,
    previous_period,
    time_frame_dates,
    trips_in_range,
)

CATEGORY_LABELS = {
    "diesel": "Diesel",
    "toll": "Toll",
    "driver_advance": "Driver Advance",
    "other": "Other",
}

TREND_THRESHOLD = Decimal("5")
NOT_AVAILABLE = "N/A"


@dataclass
class CategoryExpense:
    category: str
    label: str
    amount: Decimal
    percentage: Decimal
    trip_count: int
    avg_per_trip: Decimal


@dataclass
class ExpenseSummary:
    total_expenses: Decimal
    breakdown: ExpenseBreakdown
    categories: list[CategoryExpense]
    highest_category: str
    lowest_category: str
    avg_expense_per_trip: Decimal
    avg_cost_per_km: Decimal
    total_trips: int
    total_km: Decimal


@dataclass
class MonthlyExpenseTrend:
    month: str
    month_label: str
    breakdown: ExpenseBreakdown

    @property
    def total(self) -> Decimal:
        return self.breakdown.total


@dataclass
class TruckExpense:
    truck_id: str
    truck_number: str
    breakdown: ExpenseBreakdown
    trip_count: int
    total_km: Decimal
    cost_per_km: Decimal

    @property
    def total(self) -> Decimal:
        return self.breakdown.total


@dataclass
class DriverExpense:
    driver_id: str
    driver_name: str
    trip_count: int
    total_km: Decimal
    total_diesel_quantity: Decimal
    diesel_cost: Decimal
    total_expenses: Decimal
    avg_mileage: Decimal
    cost_per_km: Decimal


@dataclass
class PeriodComparison:
    current: ExpenseSummary
    previous: ExpenseSummary
    previous_range: DateRange
    percentage_change: dict[str, Decimal]
    trend: str


@dataclass
class ExpenseReport:
    time_frame: DateRange
    summary: ExpenseSummary
    trends: list[MonthlyExpenseTrend] = field(default_factory=list)
    by_truck: list[TruckExpense] = field(default_factory=list)
    by_driver: list[DriverExpense] = field(default_factory=list)
    comparison: Optional[PeriodComparison] = None


def _total_km(trips: Iterable[models.Trip]) -> Decimal:
    return sum((to_decimal(trip.total_km) for trip in trips), ZERO)


def expense_summary(trips: Sequence[models.Trip]) -> ExpenseSummary:
    completed = completed_trips(trips)
    breakdown = expense_breakdown(trips)
    total = breakdown.total
    total_km = _total_km(completed)

    categories = []
    for category, amount in breakdown.as_dict().items():
        # Driver advances are paid on every trip, running ones included.
        trip_count = len(trips) if category == "driver_advance" else len(completed)
        categories.append(
            CategoryExpense(
                category=category,
                label=CATEGORY_LABELS[category],
                amount=amount,
                percentage=quantize_money(safe_ratio(amount, total) * HUNDRED),
                trip_count=trip_count,
                avg_per_trip=quantize_money(safe_ratio(amount, Decimal(trip_count))),
            )
        )

    ranked = sorted(categories, key=lambda item: item.amount, reverse=True)
    non_zero = [item for item in ranked if item.amount > 0]

    return ExpenseSummary(
        total_expenses=total,
        breakdown=breakdown,
        categories=categories,
        highest_category=ranked[0].label if non_zero else NOT_AVAILABLE,
        lowest_category=non_zero[-1].label if non_zero else NOT_AVAILABLE,
        avg_expense_per_trip=quantize_money(safe_ratio(total, Decimal(len(trips)))),
        avg_cost_per_km=quantize_money(safe_ratio(total, total_km)),
        total_trips=len(trips),
        total_km=total_km,
    )


def _months_between(start: date, end: date) -> list[date]:
    months = []
    year, month = start.year, start.month
    while (year, month) <= (end.year, end.month):
        months.append(date(year, month, 1))
        year, month = (year + 1, 1) if month == 12 else (year, month + 1)
    return months


def monthly_trends(trips: Sequence[models.Trip], start: date, end: date) -> list[MonthlyExpenseTrend]:
    """One entry per calendar month touched by ``start``..``end``, empty months included."""

    trends = []
    for month_start in _months_between(start, end):
        first, last = month_bounds(month_start.year, month_start.month)
        trends.append(
            MonthlyExpenseTrend(
                month=f"{month_start:%Y-%m}",
                month_label=f"{month_start:%b %Y}",
                breakdown=expense_breakdown(trips_in_range(trips, first, last)),
            )
        )
    return trends


def truck_expenses(trips: Sequence[models.Trip]) -> list[TruckExpense]:
    results = []
    for key, truck_trips in group_trips_by_truck(trips).items():
        breakdown = expense_breakdown(truck_trips)
        total_km = _total_km(completed_trips(truck_trips))
        results.append(
            TruckExpense(
                truck_id=key,
                truck_number=truck_trips[0].truck_number or UNKNOWN_TRUCK_NUMBER,
                breakdown=breakdown,
                trip_count=len(truck_trips),
                total_km=total_km,
                cost_per_km=quantize_money(safe_ratio(breakdown.total, total_km)),
            )
        )
    return sorted(results, key=lambda item: item.total, reverse=True)


def driver_expenses(trips: Sequence[models.Trip]) -> list[DriverExpense]:
    """Fuel efficiency per driver, best mileage first."""

    grouped: dict[str, list[models.Trip]] = {}
    for trip in trips:
        grouped.setdefault(trip.driver_id or trip.driver_name or NOT_AVAILABLE, []).append(trip)

    results = []
    for key, driver_trips in grouped.items():
        completed = completed_trips(driver_trips)
        breakdown = expense_breakdown(driver_trips)
        total_km = _total_km(completed)
        diesel_quantity = sum((to_decimal(trip.diesel_quantity) for trip in completed), ZERO)
        results.append(
            DriverExpense(
                driver_id=key,
                driver_name=driver_trips[0].driver_name or NOT_AVAILABLE,
                trip_count=len(driver_trips),
                total_km=total_km,
                total_diesel_quantity=diesel_quantity,
                diesel_cost=breakdown.diesel,
                total_expenses=breakdown.total,
                avg_mileage=quantize_money(safe_ratio(total_km, diesel_quantity)),
                cost_per_km=quantize_money(safe_ratio(breakdown.total, total_km)),
            )
        )
    return sorted(results, key=lambda item: item.avg_mileage, reverse=True)


def trend_direction(change: Decimal) -> str:
    if change > TREND_THRESHOLD:
        return "up"
    if change < -TREND_THRESHOLD:
        return "down"
    return "stable"


def compare_periods(
    trips: Sequence[models.Trip], time_frame: TimeFrame | str, window: DateRange
) -> PeriodComparison:
    current = expense_summary(trips_in_range(trips, window.start, window.end))
    previous_range = previous_period(time_frame, window.start, window.end)
    previous = expense_summary(trips_in_range(trips, previous_range.start, previous_range.end))

    changes = {"total": percentage_change(current.total_expenses, previous.total_expenses)}
    current_parts = current.breakdown.as_dict()
    for category, amount in previous.breakdown.as_dict().items():
        changes[category] = percentage_change(current_parts[category], amount)

    return PeriodComparison(
        current=current,
        previous=previous,
        previous_range=previous_range,
        percentage_change=changes,
        trend=trend_direction(changes["total"]),
    )


def expense_report(
    trips: Iterable[models.Trip],
    time_frame: TimeFrame | str = TimeFrame.THIS_MONTH,
    *,
    today: Optional[date] = None,
    custom_start: Optional[date] = None,
    custom_end: Optional[date] = None,
) -> ExpenseReport:
    all_trips = list(trips)
    window = time_frame_dates(time_frame, today, custom_start, custom_end)
    selected = trips_in_range(all_trips, window.start, window.end)

    return ExpenseReport(
        time_frame=window,
        summary=expense_summary(selected),
        trends=monthly_trends(all_trips, window.start, window.end),
        by_truck=truck_expenses(selected),
        by_driver=driver_expenses(selected),
        comparison=compare_periods(all_trips, time_frame, window),
    )
