"""Application Services - Business use cases"""
import logging
from uuid import UUID
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Callable, List, Optional

from domain.repositories import PropertyRepository, BookingRepository
from domain.entities import Property, Booking
from domain.evaluator import BookingEvaluator
from domain.exceptions import BookingRejectedError
from domain.value_objects import BookingValidationResult, DateRange, RateConfig

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class PropertyService:
    """Service for Property business use cases"""

    def __init__(self, repository: PropertyRepository):
        self.repository = repository

    async def create_property(
        self,
        host_username: str,
        name: str,
        max_guests: int,
        rate_config: RateConfig,
        timezone: str = "Africa/Lagos"
    ) -> Property:
        """Register a property with its rate configuration"""
        property_ = Property.create(
            host_username=host_username,
            name=name,
            max_guests=max_guests,
            rate_config=rate_config,
            timezone=timezone
        )
        saved = await self.repository.save(property_)
        logger.info("Property %s registered by %s", saved.property_id, host_username)
        return saved

    async def get_property(self, property_id: UUID) -> Optional[Property]:
        """Get property by ID"""
        return await self.repository.find_by_id(property_id)

    async def list_properties(self) -> List[Property]:
        """Get all properties"""
        return await self.repository.find_all()

    async def update_rates(self, property_id: UUID, rate_config: RateConfig) -> Optional[Property]:
        property_ = await self.repository.find_by_id(property_id)
        if not property_:
            return None

        property_.update_rates(rate_config)
        return await self.repository.update(property_)

    async def block_dates(self, property_id: UUID, dates: List[date]) -> Optional[Property]:
        """Close nights on a property's calendar"""
        property_ = await self.repository.find_by_id(property_id)
        if not property_:
            return None

        property_.block_dates(dates)
        return await self.repository.update(property_)

    async def unblock_dates(self, property_id: UUID, dates: List[date]) -> Optional[Property]:
        property_ = await self.repository.find_by_id(property_id)
        if not property_:
            return None

        property_.unblock_dates(dates)
        return await self.repository.update(property_)

    async def set_price_override(
        self,
        property_id: UUID,
        night: date,
        price: Decimal
    ) -> Optional[Property]:
        """Set a custom nightly rate for one date"""
        property_ = await self.repository.find_by_id(property_id)
        if not property_:
            return None

        try:
            property_.set_price_override(night, price)
            return await self.repository.update(property_)
        except ValueError as e:
            raise ValueError(f"Cannot set price override: {str(e)}")

    async def deactivate_property(self, property_id: UUID) -> Optional[Property]:
        property_ = await self.repository.find_by_id(property_id)
        if not property_:
            return None

        property_.deactivate()
        return await self.repository.update(property_)


class BookingService:
    """Service for Booking business use cases

    The evaluator's availability answer is a pre-flight check for fast
    feedback. The repository's atomic insert is what actually prevents
    double bookings when two requests race.
    """

    def __init__(
        self,
        repository: BookingRepository,
        property_repo: PropertyRepository,
        evaluator: BookingEvaluator,
        clock: Callable[[], datetime] = utc_now
    ):
        self.repository = repository
        self.property_repo = property_repo
        self.evaluator = evaluator
        self.clock = clock

    @staticmethod
    def _check_bookable(property_: Property, guests: int) -> None:
        if not property_.is_bookable():
            raise ValueError("Property is not available for booking")
        if not property_.can_accommodate(guests):
            raise ValueError(f"Property can accommodate maximum {property_.max_guests} guests")

    async def _evaluate(
        self,
        property_: Property,
        check_in: datetime,
        check_out: datetime,
        now: datetime
    ) -> BookingValidationResult:
        active = await self.repository.find_active_by_property(property_.property_id)
        return self.evaluator.evaluate(
            check_in=check_in,
            check_out=check_out,
            now=now,
            reservations=[b.to_reservation() for b in active],
            rate_config=property_.rate_config,
            blocked_dates=property_.blocked_dates,
            price_overrides=property_.price_overrides,
            tz=property_.tzinfo()
        )

    async def quote(
        self,
        property_id: UUID,
        check_in: datetime,
        check_out: datetime,
        guests: int = 1
    ) -> Optional[BookingValidationResult]:
        """Evaluate a stay without booking it"""
        property_ = await self.property_repo.find_by_id(property_id)
        if not property_:
            return None

        self._check_bookable(property_, guests)
        return await self._evaluate(property_, check_in, check_out, self.clock())

    async def create_booking(
        self,
        property_id: UUID,
        guest_username: str,
        check_in: datetime,
        check_out: datetime,
        guests: int = 1
    ) -> Optional[Booking]:
        """Evaluate a stay and persist it as a PENDING booking"""
        property_ = await self.property_repo.find_by_id(property_id)
        if not property_:
            return None

        self._check_bookable(property_, guests)
        now = self.clock()
        result = await self._evaluate(property_, check_in, check_out, now)
        if not result.accepted:
            logger.info(
                "Booking request by %s for property %s rejected: %s",
                guest_username, property_id, result.reasons
            )
            raise BookingRejectedError(result.reasons, result.conflicts, result.blocked_dates)

        booking = Booking.create(
            property_id=property_id,
            guest_username=guest_username,
            date_range=DateRange(check_in=check_in, check_out=check_out),
            guests=guests,
            pricing=result.pricing
        )
        saved = await self.repository.add_if_available(booking, now.year)
        logger.info(
            "Booking %s created for property %s, total %s %s",
            saved.booking_number, property_id, saved.pricing.total, saved.pricing.currency
        )
        return saved

    async def get_booking(self, booking_id: UUID) -> Optional[Booking]:
        """Get booking by ID"""
        return await self.repository.find_by_id(booking_id)

    async def list_bookings_for_property(self, property_id: UUID) -> List[Booking]:
        """Get all bookings for a property"""
        return await self.repository.find_by_property(property_id)

    async def list_bookings_for_guest(self, guest_username: str) -> List[Booking]:
        """Get all bookings made by a guest"""
        return await self.repository.find_by_guest(guest_username)

    async def approve_booking(self, booking_id: UUID) -> Optional[Booking]:
        """Approve a pending booking"""
        booking = await self.repository.find_by_id(booking_id)
        if not booking:
            return None

        try:
            booking.approve()
            return await self.repository.update(booking)
        except ValueError as e:
            raise ValueError(f"Cannot approve booking: {str(e)}")

    async def reject_booking(
        self,
        booking_id: UUID,
        reason: str = "Declined by host"
    ) -> Optional[Booking]:
        """Reject a pending booking"""
        booking = await self.repository.find_by_id(booking_id)
        if not booking:
            return None

        try:
            booking.reject(reason)
            return await self.repository.update(booking)
        except ValueError as e:
            raise ValueError(f"Cannot reject booking: {str(e)}")

    async def cancel_booking(
        self,
        booking_id: UUID,
        reason: str = "Guest requested cancellation"
    ) -> Optional[Booking]:
        """Cancel a booking, freeing its dates"""
        booking = await self.repository.find_by_id(booking_id)
        if not booking:
            return None

        try:
            booking.cancel(reason)
            return await self.repository.update(booking)
        except ValueError as e:
            raise ValueError(f"Cannot cancel booking: {str(e)}")
