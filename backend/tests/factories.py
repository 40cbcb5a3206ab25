"""Builders for transient model instances used across the test suite."""

from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional

from backend.app import models


def make_client(client_id: str = "client-1", name: str = "Sri Balaji Transports", **kwargs) -> models.Client:
    return models.Client(
        id=client_id,
        name=name,
        gst_number=kwargs.pop("gst_number", "33AABCS1234F1Z5"),
        address=kwargs.pop("address", "12 Mill Road, Coimbatore"),
        contact_number=kwargs.pop("contact_number", "9876543210"),
        **kwargs,
    )


def make_journey(
    journey_id: str,
    trip_id: str,
    client_id: Optional[str],
    *,
    weight: str = "22",
    rate_per_ton: str = "2500",
    client_advance: str = "0",
    created_at: datetime = datetime(2025, 1, 5, 10, 0),
    from_location: str = "Chennai",
    to_location: str = "Coimbatore",
) -> models.Journey:
    weight_value = Decimal(weight)
    rate_value = Decimal(rate_per_ton)
    return models.Journey(
        id=journey_id,
        trip_id=trip_id,
        client_id=client_id,
        client_name=None,
        from_location=from_location,
        to_location=to_location,
        weight=weight_value,
        rate_per_ton=rate_value,
        freight_amount=(weight_value * rate_value).quantize(Decimal("0.01")),
        client_advance=Decimal(client_advance),
        created_at=created_at,
    )


def make_trip(
    trip_id: str,
    *,
    status: models.TripStatus = models.TripStatus.COMPLETED,
    truck_number: Optional[str] = "TN 38 AB 1234",
    truck_id: Optional[str] = "truck-1",
    driver_id: Optional[str] = "driver-1",
    driver_name: Optional[str] = "Murugan",
    start_date: date = date(2025, 1, 2),
    end_date: Optional[date] = date(2025, 1, 8),
    journeys: Optional[list[models.Journey]] = None,
    total_income: str = "0",
    driver_advance: str = "0",
    diesel_amount: Optional[str] = None,
    diesel_quantity: Optional[str] = None,
    toll_expense: Optional[str] = None,
    other_expense: Optional[str] = None,
    total_km: Optional[str] = None,
) -> models.Trip:
    def _decimal(value: Optional[str]) -> Optional[Decimal]:
        return Decimal(value) if value is not None else None

    return models.Trip(
        id=trip_id,
        truck_id=truck_id,
        truck_number=truck_number,
        driver_id=driver_id,
        driver_name=driver_name,
        start_date=start_date,
        end_date=end_date if status != models.TripStatus.RUNNING else None,
        status=status,
        journeys=journeys or [],
        total_income=Decimal(total_income),
        driver_advance=Decimal(driver_advance),
        diesel_amount=_decimal(diesel_amount),
        diesel_quantity=_decimal(diesel_quantity),
        toll_expense=_decimal(toll_expense),
        other_expense=_decimal(other_expense),
        total_km=_decimal(total_km),
        total_expense=Decimal("0"),
        profit=Decimal("0"),
    )


def make_bill(
    bill_id: str,
    *,
    client_id: Optional[str] = "client-1",
    client_name: str = "Sri Balaji Transports",
    net_payable: str = "85300",
    status: models.BillStatus = models.BillStatus.SENT,
    generated_at: datetime = datetime(2025, 1, 15, 18, 0, tzinfo=timezone.utc),
    bill_number: Optional[str] = None,
    period_start: date = date(2025, 1, 1),
    period_end: date = date(2025, 1, 15),
) -> models.Bill:
    net = Decimal(net_payable)
    return models.Bill(
        id=bill_id,
        bill_number=bill_number or f"INV-{bill_id}",
        client_id=client_id,
        client_name=client_name,
        period_start=period_start,
        period_end=period_end,
        period_label="1st - 15th Jan 2025",
        is_inter_state=False,
        subtotal=net,
        cgst=Decimal("0"),
        sgst=Decimal("0"),
        igst=Decimal("0"),
        total_gst=Decimal("0"),
        total_advance=Decimal("0"),
        grand_total=net,
        net_payable=net,
        status=status,
        generated_at=generated_at,
        line_items=[],
        payments=[],
    )


