"""Business logic for payment operations."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Iterable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .. import models, schemas
from .billing_periods import business_now, business_today
from .money import ZERO, quantize_money, to_decimal
from .observability import MetricOutcome, ObservabilityService, Stopwatch

LOGGER = logging.getLogger(__name__)

BILL_LOCK_STRIPES = 64
_BILL_LOCKS: tuple[threading.Lock, ...] = tuple(
    threading.Lock() for _ in range(BILL_LOCK_STRIPES)
)


class PaymentServiceError(RuntimeError):
    """Raised when payment operations cannot be completed."""


class PaymentValidationError(ValueError):
    """Invalid payment input; ``field`` names the offending attribute."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field


@dataclass(frozen=True)
class PaymentSummary:
    total_paid: Decimal
    balance: Decimal
    is_paid_in_full: bool


def payment_summary(
    net_payable: Decimal | float | int | str | None,
    payments: Iterable[models.BillPayment],
) -> PaymentSummary:
    """Derive the paid/balance view of a bill from its payments.

    The balance never goes below zero; a bill whose net payable is already
    covered (including a negative net payable) counts as paid in full.
    """

    net = to_decimal(net_payable)
    total_paid = sum((to_decimal(payment.amount) for payment in payments), ZERO)
    remaining = net - total_paid
    return PaymentSummary(
        total_paid=total_paid,
        balance=max(ZERO, remaining),
        is_paid_in_full=remaining <= 0,
    )


def _validate_mode(mode: models.PaymentMode | str) -> models.PaymentMode:
    if isinstance(mode, models.PaymentMode):
        return mode
    try:
        return models.PaymentMode(str(mode).strip().lower())
    except ValueError as exc:
        allowed = ", ".join(member.value for member in models.PaymentMode)
        raise PaymentValidationError("mode", f"Payment mode must be one of: {allowed}") from exc


def record_payment(
    bill: models.Bill,
    amount: Decimal | float | int | str,
    mode: models.PaymentMode | str,
    paid_on: date,
    reference: Optional[str] = None,
    notes: Optional[str] = None,
    *,
    today: Optional[date] = None,
    recorded_at: Optional[datetime] = None,
) -> models.BillPayment:
    """Append a payment to ``bill`` after validating it.

    Nothing on the bill is touched when validation fails. The bill status is
    never changed here; use ``BillService.mark_paid`` to close it.
    """

    try:
        normalized_amount = quantize_money(amount)
    except (InvalidOperation, ValueError) as exc:
        raise PaymentValidationError("amount", "Payment amount must be a number") from exc
    if not normalized_amount.is_finite():
        raise PaymentValidationError("amount", "Payment amount must be a finite number")
    if normalized_amount <= 0:
        raise PaymentValidationError("amount", "Payment amount must be greater than zero")
    payment_mode = _validate_mode(mode)
    if paid_on is None:
        raise PaymentValidationError("paid_on", "Payment date is required")
    if paid_on > (today or business_today()):
        raise PaymentValidationError("paid_on", "Payment date cannot be in the future")

    payment = models.BillPayment(
        amount=normalized_amount,
        mode=payment_mode,
        paid_on=paid_on,
        reference=(reference or "").strip() or None,
        notes=(notes or "").strip() or None,
        recorded_at=recorded_at or business_now(),
    )
    bill.payments.append(payment)
    return payment


def _bill_lock(bill_id: str) -> threading.Lock:
    # Bills sharing a stripe serialize against each other; the row lock still
    # guards across processes.
    return _BILL_LOCKS[hash(bill_id) % BILL_LOCK_STRIPES]


class PaymentService:
    """Operations for reading and recording bill payments."""

    @staticmethod
    def list_payments(db: Session, bill_id: str) -> list[models.BillPayment]:
        return (
            db.query(models.BillPayment)
            .filter(models.BillPayment.bill_id == bill_id)
            .order_by(models.BillPayment.recorded_at.asc())
            .all()
        )

    @staticmethod
    def _resolve_bill(db: Session, bill_id: str) -> models.Bill:
        query = db.query(models.Bill).filter(models.Bill.id == bill_id)
        bind = db.get_bind()
        if getattr(bind.dialect, "supports_for_update", True):
            query = query.with_for_update()
        bill = query.first()
        if bill is None:
            raise LookupError("Bill not found")
        return bill

    @classmethod
    def record_payment(
        cls,
        db: Session,
        bill_id: str,
        data: schemas.BillPaymentCreate,
        *,
        today: Optional[date] = None,
    ) -> models.BillPayment:
        stopwatch = Stopwatch()
        tags: dict[str, object] = {
            "bill_id": bill_id,
            "payment_mode": str(getattr(data.mode, "value", data.mode)),
        }

        with _bill_lock(bill_id):
            try:
                bill = cls._resolve_bill(db, bill_id)
                was_paid_in_full = bill.is_paid_in_full
                payment = record_payment(
                    bill,
                    data.amount,
                    data.mode,
                    data.paid_on,
                    data.reference,
                    data.notes,
                    today=today,
                )
                if not was_paid_in_full and bill.is_paid_in_full and bill.paid_at is None:
                    bill.paid_at = payment.recorded_at

                db.add(bill)
                db.commit()
                db.refresh(payment)
            except PaymentValidationError as exc:
                db.rollback()
                LOGGER.info("Rejected payment for bill %s: %s", bill_id, exc)
                ObservabilityService.record_validation_result(
                    db,
                    "payments.validation_failed",
                    outcome=MetricOutcome.REJECTED,
                    reason=str(exc),
                    tags={**tags, "field": exc.field},
                    duration_ms=stopwatch.elapsed_ms,
                )
                raise
            except SQLAlchemyError as exc:
                db.rollback()
                ObservabilityService.record_validation_result(
                    db,
                    "payments.persistence_failed",
                    outcome=MetricOutcome.ERROR,
                    reason=str(exc),
                    tags=tags,
                    duration_ms=stopwatch.elapsed_ms,
                )
                raise PaymentServiceError("Unable to record payment at this time.") from exc

        LOGGER.info(
            "Recorded %s payment of %s for bill %s", payment.mode.value, payment.amount, bill_id
        )
        return payment
