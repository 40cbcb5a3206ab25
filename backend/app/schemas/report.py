"""Pydantic schemas for receivables, profit/loss and expense reports."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ..models.bill import BillStatus


class ReportModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class OutstandingBill(ReportModel):
    id: str
    bill_number: str
    client_name: str
    period_label: str
    net_payable: Decimal
    balance: Decimal
    status: BillStatus
    generated_at: datetime


class AgingBucketRead(ReportModel):
    key: str
    label: str
    amount: Decimal
    count: int
    bills: list[OutstandingBill] = Field(default_factory=list)


class ClientReceivableRead(ReportModel):
    client_id: Optional[str] = None
    client_name: str
    total_outstanding: Decimal
    bill_count: int
    oldest_bill_days: int
    aging: dict[str, Decimal]
    bills: list[OutstandingBill] = Field(default_factory=list)


class ReceivablesReportRead(ReportModel):
    reference_date: date
    buckets: list[AgingBucketRead]
    clients: list[ClientReceivableRead]
    total_outstanding: Decimal
    outstanding_count: int
    client_count: int


class DateRangeRead(ReportModel):
    start: date
    end: date
    label: str


class ExpenseBreakdownRead(ReportModel):
    diesel: Decimal
    toll: Decimal
    driver_advance: Decimal
    other: Decimal
    total: Decimal


class ProfitLossEntryRead(ReportModel):
    id: str
    label: str
    trip_count: int
    journey_count: int
    total_km: Decimal
    income: Decimal
    expenses: ExpenseBreakdownRead
    total_expense: Decimal
    gross_profit: Decimal
    profit_margin: Decimal
    avg_mileage: Decimal


class ProfitLossReportRead(ReportModel):
    time_frame: DateRangeRead
    summary: ProfitLossEntryRead
    entries: list[ProfitLossEntryRead]


class CategoryExpenseRead(ReportModel):
    category: str
    label: str
    amount: Decimal
    percentage: Decimal
    trip_count: int
    avg_per_trip: Decimal


class ExpenseSummaryRead(ReportModel):
    total_expenses: Decimal
    breakdown: ExpenseBreakdownRead
    categories: list[CategoryExpenseRead]
    highest_category: str
    lowest_category: str
    avg_expense_per_trip: Decimal
    avg_cost_per_km: Decimal
    total_trips: int
    total_km: Decimal


class MonthlyExpenseTrendRead(ReportModel):
    month: str
    month_label: str
    breakdown: ExpenseBreakdownRead
    total: Decimal


class TruckExpenseRead(ReportModel):
    truck_id: str
    truck_number: str
    breakdown: ExpenseBreakdownRead
    trip_count: int
    total_km: Decimal
    cost_per_km: Decimal
    total: Decimal


class DriverExpenseRead(ReportModel):
    driver_id: str
    driver_name: str
    trip_count: int
    total_km: Decimal
    total_diesel_quantity: Decimal
    diesel_cost: Decimal
    total_expenses: Decimal
    avg_mileage: Decimal
    cost_per_km: Decimal


class PeriodComparisonRead(ReportModel):
    current: ExpenseSummaryRead
    previous: ExpenseSummaryRead
    previous_range: DateRangeRead
    percentage_change: dict[str, Decimal]
    trend: str


class ExpenseReportRead(ReportModel):
    time_frame: DateRangeRead
    summary: ExpenseSummaryRead
    trends: list[MonthlyExpenseTrendRead]
    by_truck: list[TruckExpenseRead]
    by_driver: list[DriverExpenseRead]
    comparison: Optional[PeriodComparisonRead] = None
