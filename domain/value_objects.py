"""Domain Value Objects"""
from pydantic import BaseModel, Field, validator
from datetime import date, datetime, timezone
from decimal import Decimal
from uuid import UUID
from typing import List, Literal, Optional, Union

from domain.enums import ReservationStatus, ACTIVE_STATUSES


def ensure_aware(moment: datetime) -> datetime:
    """Treat naive datetimes as UTC"""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


class DateRange(BaseModel):
    """Value Object for a half-open occupancy interval [check_in, check_out)"""
    check_in: datetime
    check_out: datetime

    @validator('check_in', 'check_out')
    def make_aware(cls, v):
        return ensure_aware(v)

    @validator('check_out')
    def check_out_after_check_in(cls, v, values):
        if 'check_in' in values and v <= values['check_in']:
            raise ValueError('Check-out must be after check-in')
        return v

    class Config:
        frozen = True


class RateConfig(BaseModel):
    """Value Object for per-property pricing parameters"""
    base_rate: Decimal = Field(gt=0)
    cleaning_fee: Decimal = Field(ge=0, default=Decimal("0"))
    security_deposit: Decimal = Field(ge=0, default=Decimal("0"))
    weekend_premium_percent: Decimal = Field(ge=0, default=Decimal("0"))
    service_fee_rate: Decimal = Field(ge=0, le=1, default=Decimal("0.05"))
    max_service_fee: Decimal = Field(gt=0, default=Decimal("5000"))
    currency: str = "NGN"

    class Config:
        frozen = True


class BookingPolicy(BaseModel):
    """Value Object for stay rules that depend on the current time"""
    min_advance_hours: int = Field(ge=0, default=24)
    max_advance_days: int = Field(ge=0, default=365)
    min_stay_nights: int = Field(ge=0, default=1)
    max_stay_nights: int = Field(ge=0, default=90)

    @validator('max_stay_nights')
    def max_stay_not_below_min(cls, v, values):
        if 'min_stay_nights' in values and v < values['min_stay_nights']:
            raise ValueError('Maximum stay cannot be shorter than minimum stay')
        return v

    class Config:
        frozen = True


class ExistingReservation(BaseModel):
    """Read-only snapshot of a persisted booking"""
    date_range: DateRange
    status: ReservationStatus
    reservation_id: Optional[UUID] = None

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    class Config:
        frozen = True


class NightlyRate(BaseModel):
    night: date
    rate: Decimal
    is_weekend: bool = False
    is_override: bool = False

    class Config:
        frozen = True


class PricingBreakdown(BaseModel):
    """Price of a stay. The security deposit is refundable and never part of total."""
    nights: int
    subtotal: Decimal
    service_fee: Decimal
    cleaning_fee: Decimal
    total: Decimal
    security_deposit: Decimal = Decimal("0")
    currency: str = "NGN"
    nightly_rates: List[NightlyRate] = []

    class Config:
        frozen = True


class DateValidationResult(BaseModel):
    is_valid: bool
    errors: List[str] = []
    nights: int = 0

    class Config:
        frozen = True


class AvailabilityResult(BaseModel):
    available: bool
    conflicts: List[ExistingReservation] = []
    blocked_dates: List[date] = []

    class Config:
        frozen = True


class BookingAccepted(BaseModel):
    kind: Literal["accepted"] = "accepted"
    pricing: PricingBreakdown

    @property
    def accepted(self) -> bool:
        return True

    class Config:
        frozen = True


class BookingRejected(BaseModel):
    kind: Literal["rejected"] = "rejected"
    reasons: List[str]
    conflicts: List[ExistingReservation] = []
    blocked_dates: List[date] = []

    @property
    def accepted(self) -> bool:
        return False

    class Config:
        frozen = True


BookingValidationResult = Union[BookingAccepted, BookingRejected]
