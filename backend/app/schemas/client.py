"""Pydantic schemas for the client resources."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .common import PaginatedResponse


class ClientBase(BaseModel):
    """Attributes shared by create and read operations."""

    name: str = Field(..., min_length=1, max_length=200)
    gst_number: Optional[str] = Field(default=None, max_length=15)
    address: Optional[str] = None
    contact_number: Optional[str] = Field(default=None, max_length=20)


class ClientCreate(ClientBase):
    """Schema used when creating a client."""

    pass


class ClientRead(ClientBase):
    """Schema returned by the API."""

    id: str
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ClientListResponse(PaginatedResponse[ClientRead]):
    """Paginated client listing."""

    pass
