"""Domain Repository Interfaces"""
from abc import ABC, abstractmethod
from typing import Optional, List
from uuid import UUID

from domain.entities import Property, Booking


class PropertyRepository(ABC):
    """Repository interface for Property Aggregate"""

    @abstractmethod
    async def save(self, property_: Property) -> Property:
        """Save property"""
        pass

    @abstractmethod
    async def find_by_id(self, property_id: UUID) -> Optional[Property]:
        """Find property by ID"""
        pass

    @abstractmethod
    async def find_all(self) -> List[Property]:
        """Find all properties"""
        pass

    @abstractmethod
    async def update(self, property_: Property) -> Property:
        """Update property"""
        pass


class BookingRepository(ABC):
    """Repository interface for Booking Aggregate

    Implementations own the non-overlap invariant: ``add_if_available`` must
    check and insert as one atomic step (a lock, an exclusion constraint or a
    serializable transaction) and raise ``BookingConflictError`` on overlap.
    """

    @abstractmethod
    async def add_if_available(self, booking: Booking, year: Optional[int] = None) -> Booking:
        """Insert booking unless an active booking for the property overlaps it.

        A booking without a number gets the next one in ``year``'s sequence
        (default: the year it was created) as part of the same atomic step,
        so refused inserts never consume a number.
        """
        pass

    @abstractmethod
    async def find_by_id(self, booking_id: UUID) -> Optional[Booking]:
        """Find booking by ID"""
        pass

    @abstractmethod
    async def find_by_property(self, property_id: UUID) -> List[Booking]:
        """Find bookings for a property"""
        pass

    @abstractmethod
    async def find_active_by_property(self, property_id: UUID) -> List[Booking]:
        """Find PENDING and APPROVED bookings for a property"""
        pass

    @abstractmethod
    async def find_by_guest(self, guest_username: str) -> List[Booking]:
        """Find bookings made by a guest"""
        pass

    @abstractmethod
    async def update(self, booking: Booking) -> Booking:
        """Update booking"""
        pass
