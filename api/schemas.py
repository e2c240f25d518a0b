"""API Schemas - Request and Response DTOs"""
from pydantic import BaseModel, Field
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID
from typing import Dict, List, Optional

from domain.value_objects import NightlyRate


# ============================================================================
# PROPERTY SCHEMAS
# ============================================================================

class RateConfigRequest(BaseModel):
    """Rate configuration request DTO"""
    base_rate: Decimal = Field(gt=0)
    cleaning_fee: Decimal = Field(ge=0, default=Decimal("0"))
    security_deposit: Decimal = Field(ge=0, default=Decimal("0"))
    weekend_premium_percent: Decimal = Field(ge=0, le=100, default=Decimal("0"))
    service_fee_rate: Decimal = Field(ge=0, le=1, default=Decimal("0.05"))
    max_service_fee: Decimal = Field(gt=0, default=Decimal("5000"))
    currency: Optional[str] = None


class CreatePropertyRequest(BaseModel):
    """Create property request DTO"""
    name: str
    max_guests: int = Field(ge=1)
    timezone: Optional[str] = None
    rates: RateConfigRequest


class BlockDatesRequest(BaseModel):
    """Block or unblock calendar dates request DTO"""
    dates: List[date] = Field(min_length=1)


class PriceOverrideRequest(BaseModel):
    """Nightly price override request DTO"""
    night: date
    price: Decimal = Field(gt=0)


class RateConfigResponse(BaseModel):
    base_rate: Decimal
    cleaning_fee: Decimal
    security_deposit: Decimal
    weekend_premium_percent: Decimal
    service_fee_rate: Decimal
    max_service_fee: Decimal
    currency: str


class PropertyResponse(BaseModel):
    """Property response DTO"""
    property_id: UUID
    host_username: str
    name: str
    status: str
    max_guests: int
    timezone: str
    rates: RateConfigResponse
    blocked_dates: List[date]
    price_overrides: Dict[date, Decimal]
    created_at: datetime
    modified_at: datetime
    version: int


# ============================================================================
# BOOKING SCHEMAS
# ============================================================================

class StayRequest(BaseModel):
    """Quote request DTO"""
    check_in: datetime
    check_out: datetime
    guests: int = Field(ge=1, default=1)


class CreateBookingRequest(StayRequest):
    """Create booking request DTO"""
    property_id: UUID


class ReasonRequest(BaseModel):
    """Reject/cancel booking request DTO"""
    reason: Optional[str] = None


class PricingResponse(BaseModel):
    """Pricing breakdown response DTO"""
    nights: int
    subtotal: Decimal
    service_fee: Decimal
    cleaning_fee: Decimal
    total: Decimal
    security_deposit: Decimal
    currency: str
    nightly_rates: List[NightlyRate] = []


class ConflictResponse(BaseModel):
    reservation_id: Optional[UUID] = None
    check_in: datetime
    check_out: datetime
    status: str


class QuoteResponse(BaseModel):
    """Quote response DTO"""
    accepted: bool
    pricing: Optional[PricingResponse] = None
    reasons: List[str] = []
    conflicts: List[ConflictResponse] = []
    blocked_dates: List[date] = []


class BookingResponse(BaseModel):
    """Booking response DTO"""
    booking_id: UUID
    booking_number: str
    property_id: UUID
    guest_username: str
    check_in: datetime
    check_out: datetime
    guests: int
    pricing: PricingResponse
    status: str
    status_reason: Optional[str] = None
    created_at: datetime
    modified_at: datetime
    version: int


# ============================================================================
# AUTH SCHEMAS
# ============================================================================

class Token(BaseModel):
    """Token response DTO"""
    access_token: str
    token_type: str


class TokenData(BaseModel):
    """Token payload DTO"""
    username: Optional[str] = None


class UserResponse(BaseModel):
    """User response DTO"""
    user_id: UUID
    username: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    role: str
    disabled: bool
