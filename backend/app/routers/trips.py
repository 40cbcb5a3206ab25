"""Router for trips and the journeys recorded on them."""

from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from .. import models, schemas
from ..database import get_db
from ..services import TripService, TripServiceError, TripStatusError

router = APIRouter()


def _get_trip_or_404(db: Session, trip_id: str) -> models.Trip:
    trip = TripService.get_trip(db, trip_id)
    if trip is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Trip not found")
    return trip


def _service_error(exc: Exception) -> HTTPException:
    if isinstance(exc, TripStatusError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    if isinstance(exc, TripServiceError):
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)
        )
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


@router.get("/", response_model=schemas.TripListResponse)
def list_trips(
    status_filter: Optional[models.TripStatus] = Query(
        None, alias="status", description="Filter by trip status"
    ),
    truck_id: Optional[str] = Query(None),
    start_date: Optional[date] = Query(None, description="Trips starting on or after"),
    end_date: Optional[date] = Query(None, description="Trips starting on or before"),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
) -> schemas.TripListResponse:
    items, total = TripService.list_trips(
        db,
        status=status_filter,
        truck_id=truck_id,
        start_date=start_date,
        end_date=end_date,
        skip=skip,
        limit=limit,
    )
    return schemas.TripListResponse(items=items, total=total, limit=limit, skip=skip)


@router.post("/", response_model=schemas.TripRead, status_code=status.HTTP_201_CREATED)
def start_trip(trip_in: schemas.TripCreate, db: Session = Depends(get_db)) -> schemas.TripRead:
    """Start a new running trip."""
    try:
        return TripService.start_trip(db, trip_in)
    except (ValueError, TripServiceError) as exc:
        raise _service_error(exc) from exc


@router.get("/{trip_id}", response_model=schemas.TripRead)
def get_trip(trip_id: str, db: Session = Depends(get_db)) -> schemas.TripRead:
    return _get_trip_or_404(db, trip_id)


@router.post(
    "/{trip_id}/journeys",
    response_model=schemas.JourneyRead,
    status_code=status.HTTP_201_CREATED,
)
def add_journey(
    trip_id: str,
    journey_in: schemas.JourneyCreate,
    db: Session = Depends(get_db),
) -> schemas.JourneyRead:
    """Record a haul on a running trip."""
    trip = _get_trip_or_404(db, trip_id)
    try:
        return TripService.add_journey(db, trip, journey_in)
    except (ValueError, TripStatusError, TripServiceError) as exc:
        raise _service_error(exc) from exc


@router.post("/{trip_id}/end", response_model=schemas.TripRead)
def end_trip(
    trip_id: str,
    trip_end: schemas.TripEnd,
    db: Session = Depends(get_db),
) -> schemas.TripRead:
    """Close a running trip with its expense figures."""
    trip = _get_trip_or_404(db, trip_id)
    try:
        return TripService.end_trip(db, trip, trip_end)
    except (ValueError, TripStatusError, TripServiceError) as exc:
        raise _service_error(exc) from exc


@router.post("/{trip_id}/lock", response_model=schemas.TripRead)
def lock_trip(trip_id: str, db: Session = Depends(get_db)) -> schemas.TripRead:
    trip = _get_trip_or_404(db, trip_id)
    try:
        return TripService.lock_trip(db, trip)
    except (TripStatusError, TripServiceError) as exc:
        raise _service_error(exc) from exc
