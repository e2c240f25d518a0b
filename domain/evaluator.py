"""Booking Evaluator - single entry point for deciding on a stay request"""
import logging
from datetime import date, datetime, timezone, tzinfo
from decimal import Decimal
from typing import Callable, Iterable, Mapping, Optional

from domain.availability import check_availability
from domain.date_rules import first_night, validate_booking_dates
from domain.pricing import calculate_pricing
from domain.value_objects import (
    BookingAccepted, BookingPolicy, BookingRejected, BookingValidationResult,
    DateRange, ExistingReservation, RateConfig
)

logger = logging.getLogger(__name__)

NOT_AVAILABLE_REASON = "Property not available for selected dates"


class BookingEvaluator:
    """Runs date rules, then availability, then pricing.

    Checks are ordered cheapest first. A date-rule failure short-circuits,
    so the reservation snapshot is never read and nothing is priced.
    """

    def __init__(
        self,
        policy: BookingPolicy,
        availability_checker: Callable = check_availability,
        pricing_calculator: Callable = calculate_pricing
    ):
        self.policy = policy
        self.availability_checker = availability_checker
        self.pricing_calculator = pricing_calculator

    def evaluate(
        self,
        check_in: datetime,
        check_out: datetime,
        now: datetime,
        reservations: Iterable[ExistingReservation],
        rate_config: RateConfig,
        blocked_dates: Iterable[date] = (),
        price_overrides: Optional[Mapping[date, Decimal]] = None,
        tz: tzinfo = timezone.utc
    ) -> BookingValidationResult:
        validation = validate_booking_dates(check_in, check_out, self.policy, now)
        if not validation.is_valid:
            logger.debug("Stay %s -> %s rejected by date rules: %s", check_in, check_out, validation.errors)
            return BookingRejected(reasons=validation.errors)

        date_range = DateRange(check_in=check_in, check_out=check_out)
        availability = self.availability_checker(date_range, reservations, blocked_dates, tz)
        if not availability.available:
            logger.debug(
                "Stay %s -> %s unavailable: %d conflicts, blocked nights %s",
                check_in, check_out, len(availability.conflicts), availability.blocked_dates
            )
            return BookingRejected(
                reasons=[NOT_AVAILABLE_REASON],
                conflicts=availability.conflicts,
                blocked_dates=availability.blocked_dates
            )

        pricing = self.pricing_calculator(
            validation.nights,
            rate_config,
            first_night(date_range.check_in, tz),
            price_overrides
        )
        return BookingAccepted(pricing=pricing)
