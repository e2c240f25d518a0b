"""Domain Entities - Aggregates"""
from pydantic import BaseModel, Field
from uuid import UUID, uuid4
from datetime import datetime, date, timezone
from typing import Optional, List, Dict, Iterable
from decimal import Decimal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from domain.enums import ReservationStatus, PropertyStatus, ACTIVE_STATUSES
from domain.value_objects import DateRange, RateConfig, PricingBreakdown, ExistingReservation


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Property(BaseModel):
    """Property Aggregate Root Entity"""

    # Identity
    property_id: UUID = Field(default_factory=uuid4)
    host_username: str
    name: str

    # Configuration
    status: PropertyStatus = PropertyStatus.ACTIVE
    max_guests: int = Field(ge=1)
    timezone: str = "Africa/Lagos"
    rate_config: RateConfig

    # Calendar overrides set by the host
    blocked_dates: List[date] = []
    price_overrides: Dict[date, Decimal] = {}

    # Metadata
    created_at: datetime = Field(default_factory=_utcnow)
    modified_at: datetime = Field(default_factory=_utcnow)
    version: int = 1

    class Config:
        from_attributes = True

    # ==================== FACTORY METHOD ====================
    @staticmethod
    def create(
        host_username: str,
        name: str,
        max_guests: int,
        rate_config: RateConfig,
        timezone: str = "Africa/Lagos"
    ) -> "Property":
        """Create new property with validation"""
        if not name.strip():
            raise ValueError("Property name is required")
        Property._validate_timezone(timezone)

        return Property(
            host_username=host_username,
            name=name.strip(),
            max_guests=max_guests,
            rate_config=rate_config,
            timezone=timezone
        )

    # ==================== MODIFICATION METHODS ====================
    def update_rates(self, rate_config: RateConfig) -> None:
        self.rate_config = rate_config
        self._touch()

    def block_dates(self, dates: Iterable[date]) -> None:
        """Close nights on the calendar"""
        merged = set(self.blocked_dates) | set(dates)
        self.blocked_dates = sorted(merged)
        self._touch()

    def unblock_dates(self, dates: Iterable[date]) -> None:
        released = set(dates)
        self.blocked_dates = [d for d in self.blocked_dates if d not in released]
        self._touch()

    def set_price_override(self, night: date, price: Decimal) -> None:
        """Replace the nightly rate for one date"""
        if price <= 0:
            raise ValueError("Override price must be greater than 0")
        self.price_overrides = {**self.price_overrides, night: Decimal(price)}
        self._touch()

    def clear_price_override(self, night: date) -> None:
        self.price_overrides = {d: p for d, p in self.price_overrides.items() if d != night}
        self._touch()

    def deactivate(self) -> None:
        self.status = PropertyStatus.INACTIVE
        self._touch()

    def activate(self) -> None:
        self.status = PropertyStatus.ACTIVE
        self._touch()

    # ==================== QUERY METHODS ====================
    def is_bookable(self) -> bool:
        return self.status == PropertyStatus.ACTIVE

    def can_accommodate(self, guests: int) -> bool:
        return 1 <= guests <= self.max_guests

    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    # ==================== PRIVATE METHODS ====================
    @staticmethod
    def _validate_timezone(name: str) -> None:
        try:
            ZoneInfo(name)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown timezone: {name}")

    def _touch(self) -> None:
        self.modified_at = _utcnow()
        self.version += 1


class Booking(BaseModel):
    """Booking Aggregate Root Entity"""

    # Identity
    booking_id: UUID = Field(default_factory=uuid4)
    booking_number: Optional[str] = None

    # References to other aggregates
    property_id: UUID
    guest_username: str

    # Value Objects
    date_range: DateRange
    guests: int = Field(ge=1)
    pricing: PricingBreakdown

    # Status
    status: ReservationStatus = ReservationStatus.PENDING
    status_reason: Optional[str] = None

    # Metadata
    created_at: datetime = Field(default_factory=_utcnow)
    modified_at: datetime = Field(default_factory=_utcnow)
    version: int = 1

    class Config:
        from_attributes = True

    # ==================== FACTORY METHOD ====================
    @staticmethod
    def create(
        property_id: UUID,
        guest_username: str,
        date_range: DateRange,
        guests: int,
        pricing: PricingBreakdown,
        booking_number: Optional[str] = None
    ) -> "Booking":
        """Create a new booking awaiting host approval.

        The number is normally left unset and assigned by the repository on insert.
        """
        return Booking(
            booking_number=booking_number,
            property_id=property_id,
            guest_username=guest_username,
            date_range=date_range,
            guests=guests,
            pricing=pricing,
            status=ReservationStatus.PENDING
        )

    @staticmethod
    def format_booking_number(year: int, sequence: int) -> str:
        return f"BK{year}-{sequence:06d}"

    # ==================== STATE TRANSITION METHODS ====================
    def approve(self) -> None:
        """Host approves a pending booking"""
        if self.status != ReservationStatus.PENDING:
            raise ValueError(
                f"Cannot approve booking with status {self.status.value}"
            )
        self._transition(ReservationStatus.APPROVED)

    def reject(self, reason: str) -> None:
        """Host declines a pending booking"""
        if self.status != ReservationStatus.PENDING:
            raise ValueError(
                f"Cannot reject booking with status {self.status.value}"
            )
        self._transition(ReservationStatus.REJECTED, reason)

    def cancel(self, reason: str) -> None:
        """Cancel a pending or approved booking"""
        if not self.is_active:
            raise ValueError(
                f"Cannot cancel booking with status {self.status.value}"
            )
        self._transition(ReservationStatus.CANCELLED, reason)

    # ==================== QUERY METHODS ====================
    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    def to_reservation(self) -> ExistingReservation:
        """Snapshot used by the availability check"""
        return ExistingReservation(
            date_range=self.date_range,
            status=self.status,
            reservation_id=self.booking_id
        )

    def _transition(self, status: ReservationStatus, reason: Optional[str] = None) -> None:
        self.status = status
        self.status_reason = reason
        self.modified_at = _utcnow()
        self.version += 1
