"""Pydantic schemas for bill payments."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ..models.payment import PaymentMode


class BillPaymentCreate(BaseModel):
    """Payload to record a payment against a bill."""

    amount: Decimal = Field(..., description="Amount received")
    mode: PaymentMode = Field(..., description="Settlement mode")
    paid_on: date = Field(..., description="Date the money was received")
    reference: Optional[str] = Field(default=None, max_length=120)
    notes: Optional[str] = None


class BillPaymentRead(BaseModel):
    id: str
    bill_id: str
    amount: Decimal
    mode: PaymentMode
    paid_on: date
    reference: Optional[str] = None
    notes: Optional[str] = None
    recorded_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PaymentSummaryRead(BaseModel):
    """Derived view of how much of a bill has been settled."""

    net_payable: Decimal
    total_paid: Decimal
    balance: Decimal
    is_paid_in_full: bool


class BillPaymentRecordResponse(BaseModel):
    payment: BillPaymentRead
    summary: PaymentSummaryRead
