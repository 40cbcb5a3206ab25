"""Expose Pydantic schemas for convenient imports."""

from .common import PaginatedResponse
from .client import ClientBase, ClientCreate, ClientListResponse, ClientRead
from .trip import (
    JourneyCreate,
    JourneyRead,
    TripCreate,
    TripEnd,
    TripListResponse,
    TripRead,
)
from .payment import (
    BillPaymentCreate,
    BillPaymentRead,
    BillPaymentRecordResponse,
    PaymentSummaryRead,
)
from .bill import (
    BillGenerateRequest,
    BillGenerateResponse,
    BillLineItemRead,
    BillListResponse,
    BillRead,
    SkippedJourney,
)
from .period import BillingPeriodListResponse, BillingPeriodRead
from .report import (
    AgingBucketRead,
    ClientReceivableRead,
    ExpenseReportRead,
    ProfitLossReportRead,
    ReceivablesReportRead,
)

__all__ = [
    "PaginatedResponse",
    "ClientBase",
    "ClientCreate",
    "ClientListResponse",
    "ClientRead",
    "JourneyCreate",
    "JourneyRead",
    "TripCreate",
    "TripEnd",
    "TripListResponse",
    "TripRead",
    "BillPaymentCreate",
    "BillPaymentRead",
    "BillPaymentRecordResponse",
    "PaymentSummaryRead",
    "BillGenerateRequest",
    "BillGenerateResponse",
    "BillLineItemRead",
    "BillListResponse",
    "BillRead",
    "SkippedJourney",
    "BillingPeriodListResponse",
    "BillingPeriodRead",
    "AgingBucketRead",
    "ClientReceivableRead",
    "ExpenseReportRead",
    "ProfitLossReportRead",
    "ReceivablesReportRead",
]
