"""SQLAlchemy model definitions for billed clients."""

from __future__ import annotations

import uuid

from sqlalchemy import Column, DateTime, Index, String, Text, func

from ..database import Base


class Client(Base):
    """A customer whose journeys are invoiced every billing period."""

    __tablename__ = "clients"

    id = Column("client_id", String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(200), nullable=False)
    gst_number = Column(String(15), nullable=True)
    address = Column(Text, nullable=True)
    contact_number = Column(String(20), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


Index("clients_name_idx", Client.name)
