"""Router exposing the semi-monthly billing calendar."""

from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, status

from .. import schemas
from ..database import _read_int_env
from ..services import BillingPeriodService

LOOKBACK_MONTHS_ENV = "BILLING_LOOKBACK_MONTHS"
DEFAULT_LOOKBACK_MONTHS = 3

router = APIRouter()


def _default_lookback() -> int:
    return _read_int_env(LOOKBACK_MONTHS_ENV, DEFAULT_LOOKBACK_MONTHS) or DEFAULT_LOOKBACK_MONTHS


@router.get("/periods", response_model=schemas.BillingPeriodListResponse)
def list_periods(
    lookback_months: Optional[int] = Query(
        None, ge=1, le=24, description="Months to list, the current one included"
    ),
    reference_date: Optional[date] = Query(
        None, description="Date treated as today; defaults to the current date"
    ),
) -> schemas.BillingPeriodListResponse:
    """Return recent billing periods, most recent first."""
    try:
        periods = BillingPeriodService.available_periods(
            lookback_months or _default_lookback(), today=reference_date
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return schemas.BillingPeriodListResponse(
        items=[schemas.BillingPeriodRead.model_validate(period) for period in periods],
        total=len(periods),
    )


@router.get("/periods/{period_key}", response_model=schemas.BillingPeriodRead)
def get_period(period_key: str) -> schemas.BillingPeriodRead:
    """Resolve a ``YYYY-MM-H1`` or ``YYYY-MM-H2`` key."""
    try:
        period = BillingPeriodService.parse_period_key(period_key)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return schemas.BillingPeriodRead.model_validate(period)
