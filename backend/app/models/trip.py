"""SQLAlchemy models for truck trips and the journeys hauled during them."""

from __future__ import annotations

import enum
import uuid

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Numeric,
    String,
    func,
)
from sqlalchemy.orm import relationship

from ..database import Base


class TripStatus(str, enum.Enum):
    """Lifecycle states of a trip."""

    RUNNING = "running"
    COMPLETED = "completed"
    LOCKED = "locked"


BILLABLE_TRIP_STATUSES = frozenset({TripStatus.COMPLETED, TripStatus.LOCKED})


class Trip(Base):
    """A truck and driver assignment over a date range."""

    __tablename__ = "trips"
    __table_args__ = (
        CheckConstraint("driver_advance >= 0", name="ck_trips_driver_advance_non_negative"),
        CheckConstraint(
            "end_date IS NULL OR end_date >= start_date", name="ck_trips_valid_range"
        ),
    )

    id = Column("trip_id", String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    truck_id = Column(String(36), nullable=True)
    truck_number = Column(String(20), nullable=True)
    driver_id = Column(String(36), nullable=True)
    driver_name = Column(String(120), nullable=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)
    status = Column(
        Enum(
            TripStatus,
            name="trip_status_enum",
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
        ),
        nullable=False,
        default=TripStatus.RUNNING,
    )
    driver_advance = Column(Numeric(14, 2), nullable=False, default=0)
    total_km = Column(Numeric(10, 1), nullable=True)
    diesel_quantity = Column(Numeric(10, 2), nullable=True)
    diesel_amount = Column(Numeric(14, 2), nullable=True)
    toll_expense = Column(Numeric(14, 2), nullable=True)
    other_expense = Column(Numeric(14, 2), nullable=True)
    total_income = Column(Numeric(14, 2), nullable=False, default=0)
    total_expense = Column(Numeric(14, 2), nullable=False, default=0)
    profit = Column(Numeric(14, 2), nullable=False, default=0)
    mileage = Column(Numeric(8, 2), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    journeys = relationship(
        "Journey",
        back_populates="trip",
        cascade="all, delete-orphan",
        order_by="Journey.created_at",
    )

    @property
    def is_billable(self) -> bool:
        """Only completed or locked trips count for billing and expenses."""

        return self.status in BILLABLE_TRIP_STATUSES

    @property
    def effective_date(self):
        """Date used for report windows: the end date once the trip has one."""

        return self.end_date or self.start_date


class Journey(Base):
    """A single client haul within a trip."""

    __tablename__ = "journeys"
    __table_args__ = (
        CheckConstraint("weight > 0", name="ck_journeys_weight_positive"),
        CheckConstraint("rate_per_ton > 0", name="ck_journeys_rate_positive"),
        CheckConstraint("client_advance >= 0", name="ck_journeys_advance_non_negative"),
    )

    id = Column("journey_id", String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    trip_id = Column(
        String(36),
        ForeignKey("trips.trip_id", ondelete="CASCADE"),
        nullable=False,
    )
    client_id = Column(
        String(36),
        ForeignKey("clients.client_id", ondelete="SET NULL"),
        nullable=True,
    )
    client_name = Column(String(200), nullable=True)
    from_location = Column(String(120), nullable=False)
    to_location = Column(String(120), nullable=False)
    weight = Column(Numeric(10, 3), nullable=False)
    rate_per_ton = Column(Numeric(12, 2), nullable=False)
    freight_amount = Column(Numeric(14, 2), nullable=False)
    client_advance = Column(Numeric(14, 2), nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False)

    trip = relationship("Trip", back_populates="journeys")
    client = relationship("Client")


Index("trips_status_idx", Trip.status)
Index("trips_truck_idx", Trip.truck_id)
Index("journeys_trip_idx", Journey.trip_id)
Index("journeys_client_created_idx", Journey.client_id, Journey.created_at)
