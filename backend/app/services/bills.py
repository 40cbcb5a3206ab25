"""Invoice generation for semi-monthly billing periods."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, Optional, Sequence, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from .. import models
from .billing_periods import BillingPeriod, business_now
from .journeys import (
    UNKNOWN_TRUCK_NUMBER,
    ClientJourneyGroup,
    group_by_client,
    journey_date,
    journeys_in_period,
)
from .money import ZERO, quantize_money, to_decimal
from .observability import MetricOutcome, ObservabilityService, Stopwatch

LOGGER = logging.getLogger(__name__)

GST_RATE = Decimal("0.18")
CGST_RATE = Decimal("0.09")
SGST_RATE = Decimal("0.09")
MAX_SEQUENCE = 9999

# Serializes invoice number reservation inside this process; the row lock on
# ``bill_sequences`` covers concurrent workers on databases that support it.
_SEQUENCE_LOCK = threading.Lock()


class BillingServiceError(RuntimeError):
    """Raised when bills cannot be persisted."""


class BillStatusError(RuntimeError):
    """Raised for workflow transitions a bill does not allow."""


@dataclass(frozen=True)
class GstBreakdown:
    cgst: Decimal
    sgst: Decimal
    igst: Decimal

    @property
    def total_gst(self) -> Decimal:
        return self.cgst + self.sgst + self.igst


@dataclass
class BillGenerationResult:
    """Bills produced for a period and the items that could not be billed."""

    period: BillingPeriod
    bills: list[models.Bill] = field(default_factory=list)
    skipped_journeys: list[models.Journey] = field(default_factory=list)
    skipped_client_ids: list[str] = field(default_factory=list)
    already_billed_client_ids: list[str] = field(default_factory=list)

    @property
    def skipped_count(self) -> int:
        return len(self.skipped_journeys)


def calculate_gst(subtotal: Decimal, is_inter_state: bool = False) -> GstBreakdown:
    """Split GST on ``subtotal``.

    Intra-state supplies carry CGST and SGST at 9% each, inter-state supplies
    IGST at 18%. Every component is rounded to paise on its own.
    """

    amount = to_decimal(subtotal)
    if is_inter_state:
        return GstBreakdown(cgst=ZERO, sgst=ZERO, igst=quantize_money(amount * GST_RATE))
    return GstBreakdown(
        cgst=quantize_money(amount * CGST_RATE),
        sgst=quantize_money(amount * SGST_RATE),
        igst=ZERO,
    )


def format_bill_number(period: BillingPeriod, sequence: int) -> str:
    if sequence < 1 or sequence > MAX_SEQUENCE:
        raise ValueError(f"Invoice sequence {sequence} is outside 1..{MAX_SEQUENCE}")
    return f"INV-{period.start_date.year:04d}{period.start_date.month:02d}-{sequence:04d}"


def build_line_items(
    journeys: Sequence[models.Journey], truck_number_by_trip: dict[str, str]
) -> list[models.BillLineItem]:
    return [
        models.BillLineItem(
            position=position,
            journey_id=journey.id,
            trip_id=journey.trip_id,
            truck_number=truck_number_by_trip.get(journey.trip_id, UNKNOWN_TRUCK_NUMBER),
            from_location=journey.from_location,
            to_location=journey.to_location,
            weight=to_decimal(journey.weight),
            rate_per_ton=to_decimal(journey.rate_per_ton),
            freight_amount=quantize_money(journey.freight_amount),
            client_advance=quantize_money(journey.client_advance),
            journey_date=journey_date(journey),
        )
        for position, journey in enumerate(journeys, start=1)
    ]


def build_bill(
    client: models.Client,
    group: ClientJourneyGroup,
    period: BillingPeriod,
    sequence: int,
    *,
    is_inter_state: bool = False,
    generated_at: Optional[datetime] = None,
) -> models.Bill:
    """Build an unsaved bill for one client's journeys.

    ``net_payable`` is kept negative when advances exceed the charges so the
    overpayment stays visible as a credit.
    """

    line_items = build_line_items(group.journeys, group.truck_number_by_trip)
    subtotal = sum((item.freight_amount for item in line_items), ZERO)
    total_advance = sum((item.client_advance for item in line_items), ZERO)
    gst = calculate_gst(subtotal, is_inter_state)
    grand_total = subtotal + gst.total_gst

    return models.Bill(
        bill_number=format_bill_number(period, sequence),
        client_id=client.id,
        client_name=client.name,
        client_gst=client.gst_number,
        client_address=client.address,
        client_contact=client.contact_number,
        period_start=period.start_date,
        period_end=period.end_date,
        period_label=period.label,
        is_inter_state=is_inter_state,
        line_items=line_items,
        subtotal=subtotal,
        cgst=gst.cgst,
        sgst=gst.sgst,
        igst=gst.igst,
        total_gst=gst.total_gst,
        total_advance=total_advance,
        grand_total=grand_total,
        net_payable=grand_total - total_advance,
        status=models.BillStatus.GENERATED,
        generated_at=generated_at or business_now(),
        payments=[],
    )


def generate_bills_for_period(
    trips: Sequence[models.Trip],
    clients: Iterable[models.Client],
    period: BillingPeriod,
    *,
    inter_state_client_ids: Iterable[str] = (),
    first_sequence: int = 1,
    generated_at: Optional[datetime] = None,
    exclude_client_ids: Iterable[str] = (),
) -> BillGenerationResult:
    """Produce one bill per client with billable journeys in ``period``.

    Invoice sequences are handed out in the order clients are first seen
    among the period's journeys, starting at ``first_sequence``. Journeys
    whose client cannot be resolved are skipped and reported.
    """

    clients_by_id = {client.id: client for client in clients}
    inter_state = set(inter_state_client_ids)
    excluded = set(exclude_client_ids)
    stamp = generated_at or business_now()

    grouping = group_by_client(journeys_in_period(trips, period), trips)
    result = BillGenerationResult(period=period, skipped_journeys=list(grouping.skipped_journeys))

    sequence = first_sequence
    for client_id, group in grouping.groups.items():
        if not group.journeys:
            continue
        if client_id in excluded:
            result.already_billed_client_ids.append(client_id)
            continue
        client = clients_by_id.get(client_id)
        if client is None:
            LOGGER.warning(
                "Skipping %s journeys for missing client %s in period %s",
                len(group.journeys),
                client_id,
                period.key,
            )
            result.skipped_client_ids.append(client_id)
            result.skipped_journeys.extend(group.journeys)
            continue

        result.bills.append(
            build_bill(
                client,
                group,
                period,
                sequence,
                is_inter_state=client_id in inter_state,
                generated_at=stamp,
            )
        )
        sequence += 1

    return result


class BillService:
    """Persistence and workflow operations for bills."""

    @staticmethod
    def _load_candidate_trips(db: Session, period: BillingPeriod) -> list[models.Trip]:
        return (
            db.query(models.Trip)
            .options(selectinload(models.Trip.journeys))
            .filter(models.Trip.status.in_(list(models.BILLABLE_TRIP_STATUSES)))
            .filter(models.Trip.start_date <= period.end_date)
            .order_by(models.Trip.start_date, models.Trip.created_at)
            .all()
        )

    @staticmethod
    def _billed_client_ids(db: Session, period: BillingPeriod) -> set[str]:
        rows = (
            db.query(models.Bill.client_id)
            .filter(models.Bill.period_start == period.start_date)
            .all()
        )
        return {client_id for (client_id,) in rows if client_id}

    @staticmethod
    def _lock_sequence(db: Session, sequence_key: str) -> Optional[models.BillSequence]:
        return (
            db.query(models.BillSequence)
            .filter(models.BillSequence.sequence_key == sequence_key)
            .with_for_update()
            .first()
        )

    @classmethod
    def generate_for_period(
        cls,
        db: Session,
        period: BillingPeriod,
        *,
        inter_state_client_ids: Iterable[str] = (),
        dry_run: bool = False,
        generated_at: Optional[datetime] = None,
    ) -> BillGenerationResult:
        """Generate and store the bills of ``period``.

        Clients that already hold a bill for the period are left untouched.
        With ``dry_run`` the bills are computed with the invoice numbers they
        would receive but nothing is stored.
        """

        stopwatch = Stopwatch()
        tags: dict[str, object] = {"period": period.key, "dry_run": dry_run}

        with _SEQUENCE_LOCK:
            try:
                trips = cls._load_candidate_trips(db, period)
                clients = db.query(models.Client).all()
                already_billed = cls._billed_client_ids(db, period)
                sequence_row = cls._lock_sequence(db, period.sequence_key)
                last_value = sequence_row.last_value if sequence_row else 0

                result = generate_bills_for_period(
                    trips,
                    clients,
                    period,
                    inter_state_client_ids=inter_state_client_ids,
                    first_sequence=last_value + 1,
                    generated_at=generated_at,
                    exclude_client_ids=already_billed,
                )

                if dry_run or not result.bills:
                    db.rollback()
                    cls._record_run(db, result, tags, stopwatch)
                    return result

                if sequence_row is None:
                    sequence_row = models.BillSequence(sequence_key=period.sequence_key)
                    db.add(sequence_row)
                sequence_row.last_value = last_value + len(result.bills)

                db.add_all(result.bills)
                db.commit()
                for bill in result.bills:
                    db.refresh(bill)
            except SQLAlchemyError as exc:
                db.rollback()
                ObservabilityService.record_validation_result(
                    db,
                    "billing.generation_failed",
                    outcome=MetricOutcome.ERROR,
                    reason=str(exc),
                    tags=tags,
                    duration_ms=stopwatch.elapsed_ms,
                )
                raise BillingServiceError("Unable to generate bills at this time.") from exc

        LOGGER.info(
            "Generated %s bills for %s (%s journeys skipped)",
            len(result.bills),
            period.key,
            result.skipped_count,
        )
        cls._record_run(db, result, tags, stopwatch)
        return result

    @staticmethod
    def _record_run(
        db: Session, result: BillGenerationResult, tags: dict[str, object], stopwatch: Stopwatch
    ) -> None:
        ObservabilityService.record_event(
            db,
            "billing.generation",
            MetricOutcome.SUCCESS,
            duration_ms=stopwatch.elapsed_ms,
            tags=tags,
            metadata={
                "bills": len(result.bills),
                "skipped_journeys": result.skipped_count,
                "skipped_clients": result.skipped_client_ids,
                "already_billed": len(result.already_billed_client_ids),
            },
        )

    @staticmethod
    def list_bills(
        db: Session,
        *,
        status: Optional[models.BillStatus] = None,
        client_id: Optional[str] = None,
        period_start: Optional[date] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> Tuple[list[models.Bill], int]:
        query = db.query(models.Bill).options(
            selectinload(models.Bill.line_items),
            selectinload(models.Bill.payments),
        )
        if status:
            query = query.filter(models.Bill.status == status)
        if client_id:
            query = query.filter(models.Bill.client_id == client_id)
        if period_start:
            query = query.filter(models.Bill.period_start == period_start)

        total = query.count()
        items = (
            query.order_by(models.Bill.generated_at.desc(), models.Bill.bill_number.desc())
            .offset(max(skip, 0))
            .limit(max(limit, 1))
            .all()
        )
        return items, total

    @staticmethod
    def outstanding_bills(db: Session) -> list[models.Bill]:
        return (
            db.query(models.Bill)
            .options(selectinload(models.Bill.payments))
            .filter(models.Bill.status != models.BillStatus.PAID)
            .all()
        )

    @staticmethod
    def get_bill(db: Session, bill_id: str, *, for_update: bool = False) -> Optional[models.Bill]:
        query = (
            db.query(models.Bill)
            .options(selectinload(models.Bill.line_items))
            .options(selectinload(models.Bill.payments))
            .filter(models.Bill.id == bill_id)
        )
        if for_update:
            query = query.with_for_update()
        return query.first()

    @staticmethod
    def _commit(db: Session, bill: models.Bill) -> models.Bill:
        try:
            db.add(bill)
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            raise BillingServiceError("Unable to update the bill at this time.") from exc
        db.refresh(bill)
        return bill

    @classmethod
    def mark_sent(
        cls, db: Session, bill: models.Bill, *, sent_at: Optional[datetime] = None
    ) -> models.Bill:
        if bill.status != models.BillStatus.GENERATED:
            raise BillStatusError(
                f"Bill {bill.bill_number} is {bill.status.value}; only generated bills can be sent"
            )
        bill.status = models.BillStatus.SENT
        bill.sent_at = sent_at or business_now()
        return cls._commit(db, bill)

    @classmethod
    def mark_paid(
        cls, db: Session, bill: models.Bill, *, paid_at: Optional[datetime] = None
    ) -> models.Bill:
        """Close a bill whose payments cover its net payable."""

        if bill.status == models.BillStatus.PAID:
            raise BillStatusError(f"Bill {bill.bill_number} is already paid")
        if not bill.is_paid_in_full:
            raise BillStatusError(
                f"Bill {bill.bill_number} still has a balance of {bill.balance}"
            )
        bill.status = models.BillStatus.PAID
        bill.paid_at = bill.paid_at or paid_at or business_now()
        return cls._commit(db, bill)
