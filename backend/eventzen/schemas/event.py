"""
Pydantic schemas for event-related request/response validation.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import Field

from eventzen.schemas.common import APIModel, Money


class EventCreate(APIModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=2000)
    date: datetime
    end_date: Optional[datetime] = None
    venue_id: int
    capacity: int = Field(..., gt=0, le=100000)
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    category: str = Field(..., min_length=1, max_length=100)
    image: Optional[str] = Field(None, max_length=1000)
    live_status: bool = True


class EventUpdate(APIModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=2000)
    date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    venue_id: Optional[int] = None
    capacity: Optional[int] = Field(None, gt=0, le=100000)
    price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    category: Optional[str] = Field(None, min_length=1, max_length=100)
    image: Optional[str] = Field(None, max_length=1000)
    live_status: Optional[bool] = None


class EventResponse(APIModel):
    id: int
    name: str
    description: Optional[str]
    date: datetime
    end_date: Optional[datetime]
    venue_id: int
    capacity: int
    available_tickets: int
    price: Money
    category: str
    image: Optional[str]
    created_by: int
    live_status: bool
    created_at: datetime
