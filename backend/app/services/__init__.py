"""Service layer encapsulating business logic for API routers."""

from .billing_periods import BillingPeriod, BillingPeriodService
from .bills import (
    BillGenerationResult,
    BillingServiceError,
    BillService,
    BillStatusError,
    calculate_gst,
    generate_bills_for_period,
)
from .clients import ClientService
from .expenses import expense_report
from .observability import MetricOutcome, ObservabilityService
from .payments import (
    PaymentService,
    PaymentServiceError,
    PaymentValidationError,
    payment_summary,
    record_payment,
)
from .profit_loss import GroupBy, TimeFrame, profit_loss_report
from .receivables import receivables_report
from .trips import TripService, TripServiceError, TripStatusError, compute_freight

__all__ = [
    "BillingPeriod",
    "BillingPeriodService",
    "BillGenerationResult",
    "BillingServiceError",
    "BillService",
    "BillStatusError",
    "calculate_gst",
    "generate_bills_for_period",
    "ClientService",
    "expense_report",
    "MetricOutcome",
    "ObservabilityService",
    "PaymentService",
    "PaymentServiceError",
    "PaymentValidationError",
    "payment_summary",
    "record_payment",
    "GroupBy",
    "TimeFrame",
    "profit_loss_report",
    "receivables_report",
    "TripService",
    "TripServiceError",
    "TripStatusError",
    "compute_freight",
]
