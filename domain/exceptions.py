"""Domain Exceptions"""
from datetime import date
from typing import List, Optional


class InvalidInputError(ValueError):
    """Caller broke a calculator contract (bad nights, bad rate config)"""


class BookingRejectedError(Exception):
    """Stay request failed date rules or availability"""

    def __init__(
        self,
        reasons: List[str],
        conflicts: Optional[list] = None,
        blocked_dates: Optional[List[date]] = None
    ):
        self.reasons = list(reasons)
        self.conflicts = list(conflicts or [])
        self.blocked_dates = list(blocked_dates or [])
        super().__init__("; ".join(self.reasons))


class BookingConflictError(Exception):
    """Persistence refused an overlapping active booking"""

    def __init__(self, property_id: str, message: str = "A booking already exists for these dates"):
        self.property_id = property_id
        self.message = message
        super().__init__(message)
