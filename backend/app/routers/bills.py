"""Router exposing bill generation, workflow and payments."""

from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from .. import models, schemas
from ..database import get_db
from ..services import (
    BillingPeriodService,
    BillingServiceError,
    BillService,
    BillStatusError,
    PaymentService,
    PaymentServiceError,
    PaymentValidationError,
)
from ..services.bills import BillGenerationResult

LOGGER = logging.getLogger(__name__)

router = APIRouter()


def _get_bill_or_404(db: Session, bill_id: str) -> models.Bill:
    bill = BillService.get_bill(db, bill_id)
    if bill is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Bill not found")
    return bill


def _generation_response(
    result: BillGenerationResult, dry_run: bool
) -> schemas.BillGenerateResponse:
    return schemas.BillGenerateResponse(
        period_key=result.period.key,
        period_label=result.period.label,
        dry_run=dry_run,
        bills=[schemas.BillRead.model_validate(bill) for bill in result.bills],
        skipped_count=result.skipped_count,
        skipped_journeys=[
            schemas.SkippedJourney.model_validate(journey) for journey in result.skipped_journeys
        ],
        skipped_client_ids=result.skipped_client_ids,
        already_billed_client_ids=result.already_billed_client_ids,
    )


@router.post("/generate", response_model=schemas.BillGenerateResponse)
def generate_bills(
    request: schemas.BillGenerateRequest,
    db: Session = Depends(get_db),
) -> schemas.BillGenerateResponse:
    """Generate the bills of the period containing ``period_start``."""
    period = BillingPeriodService.period_containing(request.period_start)
    try:
        result = BillService.generate_for_period(
            db,
            period,
            inter_state_client_ids=request.inter_state_client_ids,
            dry_run=request.dry_run,
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except BillingServiceError as exc:
        LOGGER.exception("Bill generation failed for %s", period.key)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)
        ) from exc
    return _generation_response(result, request.dry_run)


@router.get("/", response_model=schemas.BillListResponse)
def list_bills(
    status_filter: Optional[models.BillStatus] = Query(None, alias="status"),
    client_id: Optional[str] = Query(None),
    period_start: Optional[date] = Query(
        None, description="Any date inside the billing period to filter by"
    ),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
) -> schemas.BillListResponse:
    normalized_period_start = (
        BillingPeriodService.period_containing(period_start).start_date if period_start else None
    )
    items, total = BillService.list_bills(
        db,
        status=status_filter,
        client_id=client_id,
        period_start=normalized_period_start,
        skip=skip,
        limit=limit,
    )
    return schemas.BillListResponse(items=items, total=total, limit=limit, skip=skip)


@router.get("/{bill_id}", response_model=schemas.BillRead)
def get_bill(bill_id: str, db: Session = Depends(get_db)) -> schemas.BillRead:
    return _get_bill_or_404(db, bill_id)


@router.post("/{bill_id}/send", response_model=schemas.BillRead)
def send_bill(bill_id: str, db: Session = Depends(get_db)) -> schemas.BillRead:
    """Mark a generated bill as sent to the client."""
    bill = _get_bill_or_404(db, bill_id)
    try:
        return BillService.mark_sent(db, bill)
    except BillStatusError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except BillingServiceError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)
        ) from exc


@router.post("/{bill_id}/mark-paid", response_model=schemas.BillRead)
def mark_bill_paid(bill_id: str, db: Session = Depends(get_db)) -> schemas.BillRead:
    """Close a bill once its payments cover the net payable."""
    bill = _get_bill_or_404(db, bill_id)
    try:
        return BillService.mark_paid(db, bill)
    except BillStatusError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except BillingServiceError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)
        ) from exc


@router.get("/{bill_id}/payments", response_model=list[schemas.BillPaymentRead])
def list_bill_payments(
    bill_id: str, db: Session = Depends(get_db)
) -> list[schemas.BillPaymentRead]:
    _get_bill_or_404(db, bill_id)
    return PaymentService.list_payments(db, bill_id)


@router.post(
    "/{bill_id}/payments",
    response_model=schemas.BillPaymentRecordResponse,
    status_code=status.HTTP_201_CREATED,
)
def record_bill_payment(
    bill_id: str,
    payment_in: schemas.BillPaymentCreate,
    db: Session = Depends(get_db),
) -> schemas.BillPaymentRecordResponse:
    """Record a full or partial payment against a bill."""
    try:
        payment = PaymentService.record_payment(db, bill_id, payment_in)
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except PaymentValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"field": exc.field, "message": str(exc)},
        ) from exc
    except PaymentServiceError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)
        ) from exc

    bill = _get_bill_or_404(db, bill_id)
    return schemas.BillPaymentRecordResponse(
        payment=schemas.BillPaymentRead.model_validate(payment),
        summary=schemas.PaymentSummaryRead(
            net_payable=bill.net_payable,
            total_paid=bill.total_paid,
            balance=bill.balance,
            is_paid_in_full=bill.is_paid_in_full,
        ),
    )
