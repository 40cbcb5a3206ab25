from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from backend.app import models, schemas
from backend.app.services.observability import ObservabilityService
from backend.app.services.payments import (
    BILL_LOCK_STRIPES,
    PaymentService,
    PaymentValidationError,
    payment_summary,
    record_payment,
    _bill_lock,
)

from factories import make_bill

TODAY = date(2025, 1, 25)


def test_partial_payments_settle_the_bill():
    bill = make_bill("bill-1", status=models.BillStatus.GENERATED)

    record_payment(bill, Decimal("50000"), models.PaymentMode.CASH, date(2025, 1, 20), today=TODAY)
    assert bill.total_paid == Decimal("50000.00")
    assert bill.balance == Decimal("35300.00")
    assert bill.is_paid_in_full is False

    record_payment(bill, "35300", "upi", date(2025, 1, 22), reference="UTR123", today=TODAY)
    assert bill.total_paid == Decimal("85300.00")
    assert bill.balance == Decimal("0")
    assert bill.is_paid_in_full is True
    assert bill.status == models.BillStatus.GENERATED
    assert [payment.mode for payment in bill.payments] == [
        models.PaymentMode.CASH,
        models.PaymentMode.UPI,
    ]
    assert bill.payments[1].reference == "UTR123"


def test_paid_total_and_balance_move_monotonically():
    bill = make_bill("bill-1", net_payable="1000")
    previous = payment_summary(bill.net_payable, bill.payments)

    for amount in ["100", "250.50", "0.01", "900", "75"]:
        record_payment(bill, amount, models.PaymentMode.BANK, TODAY, today=TODAY)
        current = payment_summary(bill.net_payable, bill.payments)
        assert current.total_paid >= previous.total_paid
        assert current.balance <= previous.balance
        assert current.balance >= 0
        previous = current

    assert previous.is_paid_in_full is True
    assert previous.total_paid == Decimal("1325.51")


def test_negative_net_payable_counts_as_settled():
    summary = payment_summary(Decimal("-3820"), [])

    assert summary.balance == Decimal("0")
    assert summary.is_paid_in_full is True


@pytest.mark.parametrize(
    "amount, mode, paid_on, field",
    [
        ("0", "cash", TODAY, "amount"),
        ("-10", "cash", TODAY, "amount"),
        ("100", "cheque", TODAY, "mode"),
        ("100", "cash", date(2025, 1, 26), "paid_on"),
        ("abc", "cash", TODAY, "amount"),
        ("NaN", "cash", TODAY, "amount"),
        (float("nan"), "cash", TODAY, "amount"),
        (float("inf"), "cash", TODAY, "amount"),
        (Decimal("-Infinity"), "cash", TODAY, "amount"),
    ],
)
def test_invalid_payments_leave_the_bill_untouched(amount, mode, paid_on, field):
    bill = make_bill("bill-1")

    with pytest.raises(PaymentValidationError) as excinfo:
        record_payment(bill, amount, mode, paid_on, today=TODAY)

    assert excinfo.value.field == field
    assert isinstance(excinfo.value, ValueError)
    assert bill.payments == []


def test_service_sets_paid_at_when_fully_paid(db_session):
    bill = make_bill("bill-1", status=models.BillStatus.SENT)
    db_session.add(bill)
    db_session.commit()

    PaymentService.record_payment(
        db_session,
        "bill-1",
        schemas.BillPaymentCreate(amount="80000", mode="bank", paid_on=TODAY),
        today=TODAY,
    )
    assert db_session.get(models.Bill, "bill-1").paid_at is None

    payment = PaymentService.record_payment(
        db_session,
        "bill-1",
        schemas.BillPaymentCreate(amount="5300", mode="cash", paid_on=TODAY),
        today=TODAY,
    )

    stored = db_session.get(models.Bill, "bill-1")
    assert payment.id is not None
    assert stored.paid_at is not None
    assert stored.status == models.BillStatus.SENT
    assert stored.is_paid_in_full is True
    assert [item.amount for item in PaymentService.list_payments(db_session, "bill-1")] == [
        Decimal("80000.00"),
        Decimal("5300.00"),
    ]


def test_service_records_rejected_payments(db_session):
    db_session.add(make_bill("bill-1"))
    db_session.commit()

    with pytest.raises(PaymentValidationError):
        PaymentService.record_payment(
            db_session,
            "bill-1",
            schemas.BillPaymentCreate(amount="0", mode="cash", paid_on=TODAY),
            today=TODAY,
        )

    events = ObservabilityService.recent_events(db_session, "payments.validation_failed")
    assert len(events) == 1
    assert events[0].outcome == "rejected"
    assert events[0].tags["field"] == "amount"
    assert db_session.query(models.BillPayment).count() == 0


def test_service_rejects_unknown_bills(db_session):
    with pytest.raises(LookupError):
        PaymentService.record_payment(
            db_session,
            "missing",
            schemas.BillPaymentCreate(amount="10", mode="cash", paid_on=TODAY),
            today=TODAY,
        )


def test_bill_locks_come_from_a_fixed_pool():
    assert _bill_lock("bill-1") is _bill_lock("bill-1")

    locks = {id(_bill_lock(f"bill-{index}")) for index in range(1000)}
    assert len(locks) <= BILL_LOCK_STRIPES
