"""Trip lifecycle: start, record journeys, end and lock."""

from __future__ import annotations

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from .. import models, schemas
from .billing_periods import business_now
from .money import ZERO, quantize_money, safe_ratio, to_decimal

LOGGER = logging.getLogger(__name__)


class TripServiceError(RuntimeError):
    """Raised when trip changes cannot be persisted."""


class TripStatusError(RuntimeError):
    """Raised when an operation is not allowed in the trip's current status."""


def compute_freight(weight: Decimal | float | str, rate_per_ton: Decimal | float | str) -> Decimal:
    """Freight for a haul, rounded half-up to paise."""

    return quantize_money(to_decimal(weight) * to_decimal(rate_per_ton))


def trip_totals(trip: models.Trip) -> tuple[Decimal, Decimal, Decimal]:
    """Return ``(total_expense, profit, mileage)`` from a trip's recorded values."""

    total_expense = (
        to_decimal(trip.diesel_amount)
        + to_decimal(trip.toll_expense)
        + to_decimal(trip.other_expense)
        + to_decimal(trip.driver_advance)
    )
    profit = to_decimal(trip.total_income) - total_expense
    mileage = quantize_money(safe_ratio(to_decimal(trip.total_km), to_decimal(trip.diesel_quantity)))
    return total_expense, profit, mileage


class TripService:
    """Operations for reading and updating trips."""

    @staticmethod
    def list_trips(
        db: Session,
        *,
        status: Optional[models.TripStatus] = None,
        truck_id: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> Tuple[Iterable[models.Trip], int]:
        query = db.query(models.Trip).options(selectinload(models.Trip.journeys))

        if status:
            query = query.filter(models.Trip.status == status)
        if truck_id:
            query = query.filter(models.Trip.truck_id == truck_id)
        if start_date:
            query = query.filter(models.Trip.start_date >= start_date)
        if end_date:
            query = query.filter(models.Trip.start_date <= end_date)

        total = query.count()
        items = (
            query.order_by(models.Trip.start_date.desc(), models.Trip.created_at.desc())
            .offset(max(skip, 0))
            .limit(max(limit, 1))
            .all()
        )
        return items, total

    @staticmethod
    def all_trips(db: Session) -> list[models.Trip]:
        return db.query(models.Trip).options(selectinload(models.Trip.journeys)).all()

    @staticmethod
    def get_trip(db: Session, trip_id: str) -> Optional[models.Trip]:
        return (
            db.query(models.Trip)
            .options(selectinload(models.Trip.journeys))
            .filter(models.Trip.id == trip_id)
            .first()
        )

    @staticmethod
    def _commit(db: Session, trip: models.Trip) -> models.Trip:
        try:
            db.add(trip)
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            raise TripServiceError("Unable to save the trip at this time.") from exc
        db.refresh(trip)
        return trip

    @classmethod
    def start_trip(cls, db: Session, data: schemas.TripCreate) -> models.Trip:
        trip = models.Trip(
            **data.model_dump(),
            status=models.TripStatus.RUNNING,
            total_income=ZERO,
            total_expense=ZERO,
            profit=ZERO,
        )
        trip = cls._commit(db, trip)
        LOGGER.info("Started trip %s for truck %s", trip.id, trip.truck_number)
        return trip

    @classmethod
    def add_journey(
        cls,
        db: Session,
        trip: models.Trip,
        data: schemas.JourneyCreate,
        *,
        created_at: Optional[datetime] = None,
    ) -> models.Journey:
        if trip.status != models.TripStatus.RUNNING:
            raise TripStatusError("Journeys can only be added to running trips")

        client = db.get(models.Client, data.client_id)
        if client is None:
            raise ValueError(f"Client {data.client_id} does not exist")

        journey = models.Journey(
            client_id=client.id,
            client_name=client.name,
            from_location=data.from_location.strip(),
            to_location=data.to_location.strip(),
            weight=data.weight,
            rate_per_ton=data.rate_per_ton,
            freight_amount=compute_freight(data.weight, data.rate_per_ton),
            client_advance=quantize_money(data.client_advance),
            created_at=created_at or data.created_at or business_now(),
        )
        trip.journeys.append(journey)
        trip.total_income = quantize_money(
            sum((to_decimal(item.freight_amount) for item in trip.journeys), ZERO)
        )
        cls._commit(db, trip)
        db.refresh(journey)
        return journey

    @classmethod
    def end_trip(cls, db: Session, trip: models.Trip, data: schemas.TripEnd) -> models.Trip:
        if trip.status != models.TripStatus.RUNNING:
            raise TripStatusError("Only running trips can be ended")
        if data.end_date < trip.start_date:
            raise ValueError("Trip end date cannot be before its start date")

        trip.end_date = data.end_date
        trip.total_km = data.total_km
        trip.diesel_quantity = data.diesel_quantity
        trip.diesel_amount = quantize_money(data.diesel_amount)
        trip.toll_expense = quantize_money(data.toll_expense)
        trip.other_expense = quantize_money(data.other_expense)
        trip.total_expense, trip.profit, trip.mileage = trip_totals(trip)
        trip.status = models.TripStatus.COMPLETED

        trip = cls._commit(db, trip)
        LOGGER.info("Completed trip %s with profit %s", trip.id, trip.profit)
        return trip

    @classmethod
    def lock_trip(cls, db: Session, trip: models.Trip) -> models.Trip:
        if trip.status != models.TripStatus.COMPLETED:
            raise TripStatusError("Only completed trips can be locked")
        trip.status = models.TripStatus.LOCKED
        return cls._commit(db, trip)
