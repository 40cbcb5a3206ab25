"""Router exposing receivables, profit/loss and expense reports."""

from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from .. import schemas
from ..database import get_db
from ..services import (
    BillService,
    GroupBy,
    TimeFrame,
    TripService,
    expense_report,
    profit_loss_report,
    receivables_report,
)

router = APIRouter()


@router.get("/receivables", response_model=schemas.ReceivablesReportRead)
def get_receivables(
    reference_date: Optional[date] = Query(None, description="Date used to age the bills"),
    sort_by: str = Query("outstanding", pattern="^(outstanding|age|name)$"),
    db: Session = Depends(get_db),
) -> schemas.ReceivablesReportRead:
    """Outstanding bills by aging bucket and by client."""
    report = receivables_report(
        BillService.outstanding_bills(db), reference_date=reference_date, sort_by=sort_by
    )
    return schemas.ReceivablesReportRead.model_validate(report)


@router.get("/profit-loss", response_model=schemas.ProfitLossReportRead)
def get_profit_loss(
    time_frame: TimeFrame = Query(TimeFrame.THIS_MONTH),
    group_by: GroupBy = Query(GroupBy.OVERALL),
    start_date: Optional[date] = Query(None, description="Start of a custom time frame"),
    end_date: Optional[date] = Query(None, description="End of a custom time frame"),
    reference_date: Optional[date] = Query(None, description="Date treated as today"),
    db: Session = Depends(get_db),
) -> schemas.ProfitLossReportRead:
    try:
        report = profit_loss_report(
            TripService.all_trips(db),
            time_frame,
            group_by,
            today=reference_date,
            custom_start=start_date,
            custom_end=end_date,
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return schemas.ProfitLossReportRead.model_validate(report)


@router.get("/expenses", response_model=schemas.ExpenseReportRead)
def get_expenses(
    time_frame: TimeFrame = Query(TimeFrame.THIS_MONTH),
    start_date: Optional[date] = Query(None, description="Start of a custom time frame"),
    end_date: Optional[date] = Query(None, description="End of a custom time frame"),
    reference_date: Optional[date] = Query(None, description="Date treated as today"),
    db: Session = Depends(get_db),
) -> schemas.ExpenseReportRead:
    try:
        report = expense_report(
            TripService.all_trips(db),
            time_frame,
            today=reference_date,
            custom_start=start_date,
            custom_end=end_date,
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return schemas.ExpenseReportRead.model_validate(report)
