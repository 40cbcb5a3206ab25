"""Expose SQLAlchemy models for convenient imports."""

from .bill import Bill, BillLineItem, BillSequence, BillStatus
from .client import Client
from .operational_metric import OperationalMetricEvent
from .payment import PAYMENT_MODE_LABELS, BillPayment, PaymentMode
from .trip import BILLABLE_TRIP_STATUSES, Journey, Trip, TripStatus

__all__ = [
    "Bill",
    "BillLineItem",
    "BillSequence",
    "BillStatus",
    "Client",
    "OperationalMetricEvent",
    "BillPayment",
    "PaymentMode",
    "PAYMENT_MODE_LABELS",
    "Trip",
    "Journey",
    "TripStatus",
    "BILLABLE_TRIP_STATUSES",
]
