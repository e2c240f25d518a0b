"""In-Memory Repository Implementations"""
import asyncio
import logging
from collections import defaultdict
from typing import Optional, List, Dict
from uuid import UUID

from domain.repositories import PropertyRepository, BookingRepository
from domain.entities import Property, Booking
from domain.availability import find_conflicts
from domain.exceptions import BookingConflictError

logger = logging.getLogger(__name__)


class InMemoryPropertyRepository(PropertyRepository):
    """In-memory implementation of PropertyRepository"""

    def __init__(self):
        self._storage: Dict[UUID, Property] = {}

    async def save(self, property_: Property) -> Property:
        """Save property to memory"""
        self._storage[property_.property_id] = property_
        return property_

    async def find_by_id(self, property_id: UUID) -> Optional[Property]:
        """Find property by ID"""
        return self._storage.get(property_id)

    async def find_all(self) -> List[Property]:
        """Find all properties"""
        return list(self._storage.values())

    async def update(self, property_: Property) -> Property:
        """Update property"""
        if property_.property_id in self._storage:
            self._storage[property_.property_id] = property_
            return property_
        raise ValueError("Property not found")


class InMemoryBookingRepository(BookingRepository):
    """In-memory implementation of BookingRepository

    A single lock serializes the overlap check with the insert, standing in
    for the exclusion constraint a database would enforce.
    """

    def __init__(self):
        self._storage: Dict[UUID, Booking] = {}
        self._sequences: Dict[int, int] = defaultdict(int)
        self._lock = asyncio.Lock()

    async def add_if_available(self, booking: Booking, year: Optional[int] = None) -> Booking:
        """Atomically check for overlap, number and insert"""
        async with self._lock:
            active = [
                b.to_reservation() for b in self._storage.values()
                if b.property_id == booking.property_id and b.is_active
            ]
            if find_conflicts(booking.date_range, active):
                logger.warning(
                    "Refused overlapping booking %s for property %s",
                    booking.booking_id, booking.property_id
                )
                raise BookingConflictError(str(booking.property_id))
            if booking.booking_number is None:
                booking.booking_number = self._next_number(year or booking.created_at.year)
            self._storage[booking.booking_id] = booking
            return booking

    async def find_by_id(self, booking_id: UUID) -> Optional[Booking]:
        """Find booking by ID"""
        return self._storage.get(booking_id)

    async def find_by_property(self, property_id: UUID) -> List[Booking]:
        """Find bookings for a property"""
        return [b for b in self._storage.values() if b.property_id == property_id]

    async def find_active_by_property(self, property_id: UUID) -> List[Booking]:
        """Find active bookings for a property"""
        return [
            b for b in self._storage.values()
            if b.property_id == property_id and b.is_active
        ]

    async def find_by_guest(self, guest_username: str) -> List[Booking]:
        """Find bookings made by a guest"""
        return [b for b in self._storage.values() if b.guest_username == guest_username]

    async def update(self, booking: Booking) -> Booking:
        """Update booking"""
        if booking.booking_id in self._storage:
            self._storage[booking.booking_id] = booking
            return booking
        raise ValueError("Booking not found")

    def _next_number(self, year: int) -> str:
        # caller holds self._lock
        self._sequences[year] += 1
        return Booking.format_booking_number(year, self._sequences[year])
