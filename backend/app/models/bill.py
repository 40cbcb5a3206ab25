"""SQLAlchemy models for client invoices."""

from __future__ import annotations

import enum
import uuid
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from ..database import Base


class BillStatus(str, enum.Enum):
    """Workflow flag of a bill. Payment coverage is derived separately."""

    GENERATED = "generated"
    SENT = "sent"
    PAID = "paid"


class Bill(Base):
    """One invoice per client per billing period."""

    __tablename__ = "bills"
    __table_args__ = (
        UniqueConstraint("bill_number", name="uq_bills_bill_number"),
        UniqueConstraint("client_id", "period_start", name="uq_bills_client_period"),
        CheckConstraint("period_end >= period_start", name="ck_bills_valid_period"),
        CheckConstraint(
            "(igst = 0) OR (cgst = 0 AND sgst = 0)", name="ck_bills_gst_exclusive"
        ),
    )

    id = Column("bill_id", String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    bill_number = Column(String(20), nullable=False)
    client_id = Column(
        String(36),
        ForeignKey("clients.client_id", ondelete="SET NULL"),
        nullable=True,
    )
    client_name = Column(String(200), nullable=False)
    client_gst = Column(String(15), nullable=True)
    client_address = Column(Text, nullable=True)
    client_contact = Column(String(20), nullable=True)
    period_start = Column(Date, nullable=False)
    period_end = Column(Date, nullable=False)
    period_label = Column(String(60), nullable=False)
    is_inter_state = Column(Boolean, nullable=False, default=False)
    subtotal = Column(Numeric(14, 2), nullable=False)
    cgst = Column(Numeric(14, 2), nullable=False, default=0)
    sgst = Column(Numeric(14, 2), nullable=False, default=0)
    igst = Column(Numeric(14, 2), nullable=False, default=0)
    total_gst = Column(Numeric(14, 2), nullable=False)
    total_advance = Column(Numeric(14, 2), nullable=False, default=0)
    grand_total = Column(Numeric(14, 2), nullable=False)
    net_payable = Column(Numeric(14, 2), nullable=False)
    status = Column(
        Enum(
            BillStatus,
            name="bill_status_enum",
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
        ),
        nullable=False,
        default=BillStatus.GENERATED,
    )
    generated_at = Column(DateTime(timezone=True), nullable=False)
    sent_at = Column(DateTime(timezone=True), nullable=True)
    paid_at = Column(DateTime(timezone=True), nullable=True)

    line_items = relationship(
        "BillLineItem",
        back_populates="bill",
        cascade="all, delete-orphan",
        order_by="BillLineItem.position",
    )
    payments = relationship(
        "BillPayment",
        back_populates="bill",
        cascade="all, delete-orphan",
        order_by="BillPayment.recorded_at",
    )
    client = relationship("Client")

    def _summary(self):
        from ..services.payments import payment_summary

        return payment_summary(self.net_payable, self.payments or [])

    @property
    def total_paid(self) -> Decimal:
        return self._summary().total_paid

    @property
    def balance(self) -> Decimal:
        return self._summary().balance

    @property
    def is_paid_in_full(self) -> bool:
        return self._summary().is_paid_in_full


class BillLineItem(Base):
    """Snapshot of one journey as it was invoiced."""

    __tablename__ = "bill_line_items"

    id = Column("line_item_id", Integer, primary_key=True, autoincrement=True)
    bill_id = Column(
        String(36),
        ForeignKey("bills.bill_id", ondelete="CASCADE"),
        nullable=False,
    )
    position = Column(Integer, nullable=False)
    journey_id = Column(String(36), nullable=False)
    trip_id = Column(String(36), nullable=False)
    truck_number = Column(String(20), nullable=False)
    from_location = Column(String(120), nullable=False)
    to_location = Column(String(120), nullable=False)
    weight = Column(Numeric(10, 3), nullable=False)
    rate_per_ton = Column(Numeric(12, 2), nullable=False)
    freight_amount = Column(Numeric(14, 2), nullable=False)
    client_advance = Column(Numeric(14, 2), nullable=False, default=0)
    journey_date = Column(Date, nullable=False)

    bill = relationship("Bill", back_populates="line_items")


class BillSequence(Base):
    """Last invoice sequence handed out for a YYYYMM invoice prefix."""

    __tablename__ = "bill_sequences"

    sequence_key = Column(String(6), primary_key=True)
    last_value = Column(Integer, nullable=False, default=0)


Index("bills_status_idx", Bill.status)
Index("bills_client_generated_idx", Bill.client_id, Bill.generated_at)
Index("bill_line_items_bill_idx", BillLineItem.bill_id, BillLineItem.position)
