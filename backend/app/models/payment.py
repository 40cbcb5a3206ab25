"""SQLAlchemy model definitions for bill payments."""

from __future__ import annotations

import enum
import uuid

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from ..database import Base


class PaymentMode(str, enum.Enum):
    """Supported settlement modes."""

    CASH = "cash"
    BANK = "bank"
    UPI = "upi"


PAYMENT_MODE_LABELS = {
    PaymentMode.CASH: "Cash",
    PaymentMode.BANK: "Bank Transfer",
    PaymentMode.UPI: "UPI",
}


PAYMENT_MODE_ENUM = Enum(
    PaymentMode,
    name="payment_mode_enum",
    values_callable=lambda enum_cls: [member.value for member in enum_cls],
    validate_strings=True,
)


class BillPayment(Base):
    """One settlement event against a bill. Rows are never edited or deleted."""

    __tablename__ = "bill_payments"
    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_bill_payments_amount_positive"),
    )

    id = Column("payment_id", String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    bill_id = Column(
        String(36),
        ForeignKey("bills.bill_id", ondelete="CASCADE"),
        nullable=False,
    )
    amount = Column(Numeric(14, 2), nullable=False)
    mode = Column(PAYMENT_MODE_ENUM, nullable=False)
    paid_on = Column(Date, nullable=False)
    reference = Column(String(120), nullable=True)
    notes = Column(Text, nullable=True)
    recorded_at = Column(DateTime(timezone=True), nullable=False)

    bill = relationship("Bill", back_populates="payments")


Index("bill_payments_bill_idx", BillPayment.bill_id, BillPayment.recorded_at)
