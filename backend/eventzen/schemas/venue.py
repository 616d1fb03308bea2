"""
Pydantic schemas for venue-related request/response validation.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import Field

from eventzen.schemas.common import APIModel, Money


class VenueCreate(APIModel):
    name: str = Field(..., min_length=1, max_length=255)
    address: str = Field(..., min_length=1, max_length=500)
    capacity: int = Field(..., gt=0)
    amenities: list[str] = Field(default_factory=list)
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    image: Optional[str] = Field(None, max_length=1000)
    description: Optional[str] = Field(None, max_length=2000)


class VenueUpdate(APIModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    address: Optional[str] = Field(None, min_length=1, max_length=500)
    capacity: Optional[int] = Field(None, gt=0)
    amenities: Optional[list[str]] = None
    price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    image: Optional[str] = Field(None, max_length=1000)
    description: Optional[str] = Field(None, max_length=2000)


class VenueResponse(APIModel):
    id: int
    name: str
    address: str
    capacity: int
    amenities: list[str]
    price: Money
    image: Optional[str]
    description: Optional[str]
    created_at: datetime
