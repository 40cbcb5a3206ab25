from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from backend.app import models
from backend.app.services.receivables import (
    aging_bucket_key,
    aging_buckets,
    bill_age,
    client_receivables,
    receivables_report,
)

from factories import make_bill

REFERENCE = date(2025, 6, 30)


def _generated(days_ago: int) -> datetime:
    moment = datetime.combine(REFERENCE - timedelta(days=days_ago), datetime.min.time())
    return moment.replace(hour=18, tzinfo=timezone.utc)


def test_bill_thirty_five_days_old_is_in_second_bucket():
    bill = make_bill("bill-1", generated_at=_generated(35))

    buckets = {bucket.label: bucket for bucket in aging_buckets([bill], REFERENCE)}

    assert buckets["0-30 Days"].count == 0
    assert buckets["31-60 Days"].count == 1
    assert buckets["31-60 Days"].amount == Decimal("85300")


@pytest.mark.parametrize(
    "days, key",
    [(0, "current"), (30, "current"), (31, "days_31_60"), (60, "days_31_60"),
     (61, "days_61_90"), (90, "days_61_90"), (91, "over_90"), (400, "over_90"),
     (-5, "current")],
)
def test_bucket_boundaries(days, key):
    assert aging_bucket_key(days) == key


def test_future_generation_dates_age_as_zero():
    bill = make_bill("bill-1", generated_at=_generated(-3))

    assert bill_age(bill, REFERENCE) == 0


def test_age_counts_from_the_business_calendar_date():
    # 00:30 IST on 31 May, so exactly 30 days before the reference date
    bill = make_bill("bill-1", generated_at=datetime(2025, 5, 30, 19, 0, tzinfo=timezone.utc))

    assert bill_age(bill, REFERENCE) == 30
    assert aging_bucket_key(bill_age(bill, REFERENCE)) == "current"


def test_every_outstanding_bill_lands_in_exactly_one_bucket():
    ages = [0, 30, 31, 60, 61, 90, 91, 400, -3]
    bills = [
        make_bill(f"bill-{index}", net_payable=str(1000 + index), generated_at=_generated(age))
        for index, age in enumerate(ages)
    ]
    bills.append(
        make_bill("paid", status=models.BillStatus.PAID, generated_at=_generated(10))
    )

    buckets = aging_buckets(bills, REFERENCE)

    placed = [bill.id for bucket in buckets for bill in bucket.bills]
    assert sorted(placed) == sorted(f"bill-{index}" for index in range(len(ages)))
    assert [bucket.count for bucket in buckets] == [3, 2, 2, 2]
    outstanding_total = sum(Decimal(1000 + index) for index in range(len(ages)))
    assert sum(bucket.amount for bucket in buckets) == outstanding_total


def test_partial_payments_do_not_reduce_aged_amount():
    bill = make_bill("bill-1", generated_at=_generated(5))
    bill.payments.append(
        models.BillPayment(
            amount=Decimal("50000"),
            mode=models.PaymentMode.CASH,
            paid_on=REFERENCE,
            recorded_at=_generated(1),
        )
    )

    buckets = aging_buckets([bill], REFERENCE)

    assert buckets[0].amount == Decimal("85300")


def test_client_rollups_sorted_by_outstanding():
    bills = [
        make_bill("a-1", client_id="a", client_name="Alpha", net_payable="1000",
                  generated_at=_generated(10)),
        make_bill("a-2", client_id="a", client_name="Alpha", net_payable="2000",
                  generated_at=_generated(70)),
        make_bill("b-1", client_id="b", client_name="Beta", net_payable="5000",
                  generated_at=_generated(20)),
    ]

    rollups = client_receivables(bills, REFERENCE)

    assert [rollup.client_name for rollup in rollups] == ["Beta", "Alpha"]
    alpha = rollups[1]
    assert alpha.total_outstanding == Decimal("3000")
    assert alpha.bill_count == 2
    assert alpha.oldest_bill_days == 70
    assert alpha.aging["current"] == Decimal("1000")
    assert alpha.aging["days_61_90"] == Decimal("2000")
    assert [bill.id for bill in alpha.bills] == ["a-2", "a-1"]


def test_client_rollups_sorted_by_age_and_name():
    bills = [
        make_bill("a-1", client_id="a", client_name="alpha", generated_at=_generated(5)),
        make_bill("b-1", client_id="b", client_name="Beta", generated_at=_generated(95)),
    ]

    by_age = client_receivables(bills, REFERENCE, sort_by="age")
    by_name = client_receivables(bills, REFERENCE, sort_by="name")

    assert [rollup.client_id for rollup in by_age] == ["b", "a"]
    assert [rollup.client_id for rollup in by_name] == ["a", "b"]

    with pytest.raises(ValueError):
        client_receivables(bills, REFERENCE, sort_by="balance")


def test_report_totals_match_buckets_and_clients():
    bills = [
        make_bill("a-1", client_id="a", client_name="Alpha", net_payable="1200",
                  generated_at=_generated(3)),
        make_bill("b-1", client_id="b", client_name="Beta", net_payable="800",
                  generated_at=_generated(45)),
        make_bill("b-2", client_id="b", client_name="Beta", status=models.BillStatus.PAID,
                  generated_at=_generated(45)),
    ]

    report = receivables_report(bills, reference_date=REFERENCE)

    assert report.reference_date == REFERENCE
    assert report.total_outstanding == Decimal("2000")
    assert report.outstanding_count == 2
    assert report.client_count == 2
    assert sum(rollup.total_outstanding for rollup in report.clients) == report.total_outstanding
