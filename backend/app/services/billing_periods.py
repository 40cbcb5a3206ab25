"""Semi-monthly billing period calculations."""

from __future__ import annotations

import os
import re
from calendar import monthrange
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone

MONTH_ABBREVIATIONS = (
    "Jan",
    "Feb",
    "Mar",
    "Apr",
    "May",
    "Jun",
    "Jul",
    "Aug",
    "Sep",
    "Oct",
    "Nov",
    "Dec",
)

FIRST_HALF_LAST_DAY = 15
FIRST_HALF_PAYMENT_WINDOW = (20, 25)
SECOND_HALF_PAYMENT_WINDOW = (1, 5)

BUSINESS_UTC_OFFSET_ENV = "BUSINESS_UTC_OFFSET_MINUTES"
DEFAULT_BUSINESS_UTC_OFFSET_MINUTES = 330


def business_timezone() -> timezone:
    """Fixed-offset zone in which trips are entered and bills are dated (IST by default)."""

    raw = os.getenv(BUSINESS_UTC_OFFSET_ENV)
    if raw is None or not raw.strip():
        minutes = DEFAULT_BUSINESS_UTC_OFFSET_MINUTES
    else:
        try:
            minutes = int(raw)
        except ValueError as exc:
            raise ValueError(f"{BUSINESS_UTC_OFFSET_ENV} must be an integer") from exc
    return timezone(timedelta(minutes=minutes))


def business_now() -> datetime:
    return datetime.now(business_timezone())


def business_today() -> date:
    return business_now().date()


def business_date(value: date | datetime) -> date:
    """Calendar date of ``value`` in the business timezone.

    Aware timestamps are converted first. Naive ones (SQLite drops the offset)
    are taken as business wall-clock time, which is how they are stamped.
    """

    if not isinstance(value, datetime):
        return value
    if value.tzinfo is not None:
        value = value.astimezone(business_timezone())
    return value.date()


def ordinal_suffix(day: int) -> str:
    """Return the English ordinal suffix for a day of the month."""

    if 10 < day % 100 < 14:
        return "th"
    return {1: "st", 2: "nd", 3: "rd"}.get(day % 10, "th")


def _ordinal(day: int) -> str:
    return f"{day}{ordinal_suffix(day)}"


def _next_month(year: int, month: int) -> tuple[int, int]:
    if month == 12:
        return year + 1, 1
    return year, month + 1


def _shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


@dataclass(frozen=True)
class BillingPeriod:
    """A half-month billing window with its generation and payment dates."""

    start_date: date
    end_date: date
    label: str
    bill_generation_date: date
    payment_window_start: date
    payment_window_end: date

    def __post_init__(self) -> None:
        if self.start_date > self.end_date:
            raise ValueError(
                f"Billing period start {self.start_date} is after its end {self.end_date}"
            )
        if self.payment_window_start > self.payment_window_end:
            raise ValueError("Payment window start is after its end")

    @property
    def half(self) -> int:
        return 1 if self.start_date.day == 1 else 2

    @property
    def key(self) -> str:
        """Stable identifier such as ``2025-01-H1``."""

        return f"{self.start_date.year:04d}-{self.start_date.month:02d}-H{self.half}"

    @property
    def sequence_key(self) -> str:
        """Invoice prefix shared by both halves of the month (``YYYYMM``)."""

        return f"{self.start_date.year:04d}{self.start_date.month:02d}"

    def contains(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date


class BillingPeriodService:
    """Utility helpers to derive the semi-monthly billing calendar."""

    VALID_PERIOD_PATTERN = re.compile(r"^\d{4}-(0[1-9]|1[0-2])-H[12]$")

    @staticmethod
    def periods_for_month(reference_date: date) -> list[BillingPeriod]:
        """Return the two periods covering the month of ``reference_date``.

        The first half runs from the 1st to the 15th and is billed on the
        15th with payment expected between the 20th and 25th. The second half
        runs from the 16th to the last day of the month, is billed on that
        last day and is paid between the 1st and 5th of the next month.
        """

        year, month = reference_date.year, reference_date.month
        month_name = MONTH_ABBREVIATIONS[month - 1]
        _, last_day = monthrange(year, month)
        next_year, next_month = _next_month(year, month)

        first_half = BillingPeriod(
            start_date=date(year, month, 1),
            end_date=date(year, month, FIRST_HALF_LAST_DAY),
            label=f"1st - 15th {month_name} {year}",
            bill_generation_date=date(year, month, FIRST_HALF_LAST_DAY),
            payment_window_start=date(year, month, FIRST_HALF_PAYMENT_WINDOW[0]),
            payment_window_end=date(year, month, FIRST_HALF_PAYMENT_WINDOW[1]),
        )
        second_half = BillingPeriod(
            start_date=date(year, month, FIRST_HALF_LAST_DAY + 1),
            end_date=date(year, month, last_day),
            label=f"16th - {_ordinal(last_day)} {month_name} {year}",
            bill_generation_date=date(year, month, last_day),
            payment_window_start=date(next_year, next_month, SECOND_HALF_PAYMENT_WINDOW[0]),
            payment_window_end=date(next_year, next_month, SECOND_HALF_PAYMENT_WINDOW[1]),
        )
        return [first_half, second_half]

    @classmethod
    def period_containing(cls, day: date) -> BillingPeriod:
        first_half, second_half = cls.periods_for_month(day)
        return first_half if first_half.contains(day) else second_half

    @classmethod
    def available_periods(
        cls, lookback_months: int = 3, today: date | None = None
    ) -> list[BillingPeriod]:
        """Periods of the current month and earlier ones, most recent first.

        ``lookback_months`` counts months including the current one.
        """

        if lookback_months < 1:
            raise ValueError("lookback_months must be at least 1")

        reference = today or business_today()
        periods: list[BillingPeriod] = []
        for offset in range(lookback_months):
            year, month = _shift_month(reference.year, reference.month, -offset)
            periods.extend(cls.periods_for_month(date(year, month, 1)))
        return sorted(periods, key=lambda period: period.end_date, reverse=True)

    @classmethod
    def parse_period_key(cls, period_key: str) -> BillingPeriod:
        """Resolve a ``YYYY-MM-H1``/``YYYY-MM-H2`` key to its period."""

        if not period_key:
            raise ValueError("period_key is required")
        normalized = period_key.strip().upper()
        if not cls.VALID_PERIOD_PATTERN.match(normalized):
            raise ValueError("Invalid period key format, expected YYYY-MM-H1 or YYYY-MM-H2")

        year = int(normalized[0:4])
        month = int(normalized[5:7])
        half = int(normalized[-1])
        return cls.periods_for_month(date(year, month, 1))[half - 1]
