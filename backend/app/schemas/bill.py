"""Pydantic schemas for bills and bill generation."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ..models.bill import BillStatus
from .common import PaginatedResponse
from .payment import BillPaymentRead


class BillLineItemRead(BaseModel):
    position: int
    journey_id: str
    trip_id: str
    truck_number: str
    from_location: str
    to_location: str
    weight: Decimal
    rate_per_ton: Decimal
    freight_amount: Decimal
    client_advance: Decimal
    journey_date: date

    model_config = ConfigDict(from_attributes=True)


class BillRead(BaseModel):
    """Bill with its line items and the derived payment view."""

    id: Optional[str] = None
    bill_number: str
    client_id: Optional[str] = None
    client_name: str
    client_gst: Optional[str] = None
    client_address: Optional[str] = None
    client_contact: Optional[str] = None
    period_start: date
    period_end: date
    period_label: str
    is_inter_state: bool
    subtotal: Decimal
    cgst: Decimal
    sgst: Decimal
    igst: Decimal
    total_gst: Decimal
    total_advance: Decimal
    grand_total: Decimal
    net_payable: Decimal
    status: BillStatus
    generated_at: datetime
    sent_at: Optional[datetime] = None
    paid_at: Optional[datetime] = None
    total_paid: Decimal
    balance: Decimal
    is_paid_in_full: bool
    line_items: list[BillLineItemRead] = Field(default_factory=list)
    payments: list[BillPaymentRead] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class BillListResponse(PaginatedResponse[BillRead]):
    """Paginated bill listing."""

    pass


class BillGenerateRequest(BaseModel):
    """Request to generate the bills of one billing period."""

    period_start: date = Field(
        ..., description="Any date inside the period; the containing period is billed"
    )
    inter_state_client_ids: list[str] = Field(default_factory=list)
    dry_run: bool = False


class SkippedJourney(BaseModel):
    id: Optional[str] = None
    trip_id: Optional[str] = None
    client_id: Optional[str] = None
    client_name: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class BillGenerateResponse(BaseModel):
    period_key: str
    period_label: str
    dry_run: bool
    bills: list[BillRead]
    skipped_count: int
    skipped_journeys: list[SkippedJourney] = Field(default_factory=list)
    skipped_client_ids: list[str] = Field(default_factory=list)
    already_billed_client_ids: list[str] = Field(default_factory=list)
