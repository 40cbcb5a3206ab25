"""Pydantic schemas for trips and their journeys."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..models.trip import TripStatus
from .common import PaginatedResponse


class TripCreate(BaseModel):
    """Payload to start a trip."""

    truck_id: Optional[str] = None
    truck_number: str = Field(..., min_length=1, max_length=20)
    driver_id: Optional[str] = None
    driver_name: Optional[str] = Field(default=None, max_length=120)
    start_date: date
    driver_advance: Decimal = Field(default=Decimal("0"), ge=0)


class JourneyCreate(BaseModel):
    """Payload to record a haul on a running trip."""

    client_id: str
    from_location: str = Field(..., min_length=1, max_length=120)
    to_location: str = Field(..., min_length=1, max_length=120)
    weight: Decimal = Field(..., gt=0, description="Weight in tons")
    rate_per_ton: Decimal = Field(..., gt=0)
    client_advance: Decimal = Field(default=Decimal("0"), ge=0)
    created_at: Optional[datetime] = Field(
        default=None, description="When the haul happened; defaults to now"
    )


class JourneyRead(BaseModel):
    id: str
    trip_id: str
    client_id: Optional[str] = None
    client_name: Optional[str] = None
    from_location: str
    to_location: str
    weight: Decimal
    rate_per_ton: Decimal
    freight_amount: Decimal
    client_advance: Decimal
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TripEnd(BaseModel):
    """Closing figures captured when a trip ends."""

    end_date: date
    total_km: Decimal = Field(..., ge=0)
    diesel_quantity: Decimal = Field(..., ge=0)
    diesel_amount: Decimal = Field(..., ge=0)
    toll_expense: Decimal = Field(default=Decimal("0"), ge=0)
    other_expense: Decimal = Field(default=Decimal("0"), ge=0)

    @model_validator(mode="after")
    def _diesel_amount_needs_quantity(self):
        if self.diesel_amount > 0 and self.diesel_quantity == 0:
            raise ValueError("diesel_quantity is required when diesel_amount is set")
        return self


class TripRead(BaseModel):
    id: str
    truck_id: Optional[str] = None
    truck_number: Optional[str] = None
    driver_id: Optional[str] = None
    driver_name: Optional[str] = None
    start_date: date
    end_date: Optional[date] = None
    status: TripStatus
    driver_advance: Decimal
    total_km: Optional[Decimal] = None
    diesel_quantity: Optional[Decimal] = None
    diesel_amount: Optional[Decimal] = None
    toll_expense: Optional[Decimal] = None
    other_expense: Optional[Decimal] = None
    total_income: Decimal
    total_expense: Decimal
    profit: Decimal
    mileage: Optional[Decimal] = None
    journeys: list[JourneyRead] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class TripListResponse(PaginatedResponse[TripRead]):
    """Paginated trip listing."""

    pass
