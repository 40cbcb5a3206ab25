"""Pydantic schemas for semi-monthly billing periods."""

from __future__ import annotations

from datetime import date

from pydantic import BaseModel, ConfigDict


class BillingPeriodRead(BaseModel):
    key: str
    label: str
    start_date: date
    end_date: date
    bill_generation_date: date
    payment_window_start: date
    payment_window_end: date

    model_config = ConfigDict(from_attributes=True)


class BillingPeriodListResponse(BaseModel):
    items: list[BillingPeriodRead]
    total: int
