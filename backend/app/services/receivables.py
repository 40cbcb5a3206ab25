"""Aging of outstanding bills, per client and across the fleet."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from .. import models
from .billing_periods import business_date, business_today
from .money import ZERO, to_decimal


@dataclass(frozen=True)
class AgingBucketDefinition:
    key: str
    label: str
    min_days: int
    max_days: Optional[int]

    def contains(self, days: int) -> bool:
        return days >= self.min_days and (self.max_days is None or days <= self.max_days)


AGING_BUCKETS = (
    AgingBucketDefinition("current", "0-30 Days", 0, 30),
    AgingBucketDefinition("days_31_60", "31-60 Days", 31, 60),
    AgingBucketDefinition("days_61_90", "61-90 Days", 61, 90),
    AgingBucketDefinition("over_90", "90+ Days", 91, None),
)

SORT_KEYS = ("outstanding", "age", "name")


@dataclass
class AgingBucket:
    key: str
    label: str
    amount: Decimal = ZERO
    count: int = 0
    bills: list[models.Bill] = field(default_factory=list)


@dataclass
class ClientReceivable:
    client_id: Optional[str]
    client_name: str
    total_outstanding: Decimal = ZERO
    bill_count: int = 0
    oldest_bill_days: int = 0
    aging: dict[str, Decimal] = field(
        default_factory=lambda: {bucket.key: ZERO for bucket in AGING_BUCKETS}
    )
    bills: list[models.Bill] = field(default_factory=list)


@dataclass
class ReceivablesReport:
    reference_date: date
    buckets: list[AgingBucket]
    clients: list[ClientReceivable]
    total_outstanding: Decimal
    outstanding_count: int
    client_count: int


def bill_age(bill: models.Bill, reference_date: date) -> int:
    """Whole days between bill generation and ``reference_date``, never negative."""

    return max(0, (reference_date - business_date(bill.generated_at)).days)


def aging_bucket_key(days: int) -> str:
    for bucket in AGING_BUCKETS:
        if bucket.contains(max(days, 0)):
            return bucket.key
    return AGING_BUCKETS[-1].key


def _outstanding(bills: Iterable[models.Bill]) -> list[models.Bill]:
    return [bill for bill in bills if bill.status != models.BillStatus.PAID]


def aging_buckets(
    bills: Iterable[models.Bill], reference_date: Optional[date] = None
) -> list[AgingBucket]:
    """Distribute bills that are not paid into the four aging buckets.

    Amounts use each bill's full net payable; partial payments do not reduce
    the aged amount.
    """

    today = reference_date or business_today()
    buckets = {
        definition.key: AgingBucket(key=definition.key, label=definition.label)
        for definition in AGING_BUCKETS
    }
    for bill in _outstanding(bills):
        bucket = buckets[aging_bucket_key(bill_age(bill, today))]
        bucket.amount += to_decimal(bill.net_payable)
        bucket.count += 1
        bucket.bills.append(bill)
    return list(buckets.values())


def client_receivables(
    bills: Iterable[models.Bill],
    reference_date: Optional[date] = None,
    sort_by: str = "outstanding",
) -> list[ClientReceivable]:
    """Roll outstanding bills up per client.

    Each client's bills are listed oldest first. The list is sorted by total
    outstanding (descending), by oldest bill age (descending) or by name.
    """

    if sort_by not in SORT_KEYS:
        raise ValueError(f"sort_by must be one of: {', '.join(SORT_KEYS)}")

    today = reference_date or business_today()
    rollups: dict[str, ClientReceivable] = {}
    for bill in _outstanding(bills):
        key = bill.client_id or f"name:{bill.client_name}"
        rollup = rollups.get(key)
        if rollup is None:
            rollup = ClientReceivable(client_id=bill.client_id, client_name=bill.client_name)
            rollups[key] = rollup

        age = bill_age(bill, today)
        amount = to_decimal(bill.net_payable)
        rollup.aging[aging_bucket_key(age)] += amount
        rollup.total_outstanding += amount
        rollup.bill_count += 1
        rollup.oldest_bill_days = max(rollup.oldest_bill_days, age)
        rollup.bills.append(bill)

    for rollup in rollups.values():
        rollup.bills.sort(key=lambda bill: business_date(bill.generated_at))

    results = list(rollups.values())
    if sort_by == "age":
        results.sort(key=lambda item: item.oldest_bill_days, reverse=True)
    elif sort_by == "name":
        results.sort(key=lambda item: item.client_name.lower())
    else:
        results.sort(key=lambda item: item.total_outstanding, reverse=True)
    return results


def receivables_report(
    bills: Iterable[models.Bill],
    reference_date: Optional[date] = None,
    sort_by: str = "outstanding",
) -> ReceivablesReport:
    today = reference_date or business_today()
    bills = list(bills)
    buckets = aging_buckets(bills, today)
    clients = client_receivables(bills, today, sort_by=sort_by)
    return ReceivablesReport(
        reference_date=today,
        buckets=buckets,
        clients=clients,
        total_outstanding=sum((bucket.amount for bucket in buckets), ZERO),
        outstanding_count=sum(bucket.count for bucket in buckets),
        client_count=len(clients),
    )
