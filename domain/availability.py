"""Availability check against a snapshot of existing reservations

Stays are half-open intervals [check_in, check_out). A guest checking out on
the same day another guest checks in does not conflict: that is the turnover
day convention, and it is why the comparisons below are strict.

The result is advisory. Between reading the reservations and persisting a new
booking another request may slip in, so the booking repository re-checks the
overlap atomically on insert.
"""
from datetime import date, timezone, tzinfo
from typing import Iterable, List

from domain.date_rules import count_nights, first_night, night_dates
from domain.value_objects import AvailabilityResult, DateRange, ExistingReservation


def ranges_overlap(a: DateRange, b: DateRange) -> bool:
    return a.check_in < b.check_out and a.check_out > b.check_in


def find_conflicts(
    candidate: DateRange,
    reservations: Iterable[ExistingReservation]
) -> List[ExistingReservation]:
    """All active reservations overlapping candidate, in input order"""
    return [
        reservation for reservation in reservations
        if reservation.is_active and ranges_overlap(candidate, reservation.date_range)
    ]


def check_availability(
    candidate: DateRange,
    reservations: Iterable[ExistingReservation],
    blocked_dates: Iterable[date] = (),
    tz: tzinfo = timezone.utc
) -> AvailabilityResult:
    """Check candidate against active reservations and host-blocked nights"""
    conflicts = find_conflicts(candidate, reservations)

    blocked = set(blocked_dates)
    blocked_nights = []
    if blocked:
        nights = count_nights(candidate.check_in, candidate.check_out)
        blocked_nights = [
            night for night in night_dates(first_night(candidate.check_in, tz), nights)
            if night in blocked
        ]

    return AvailabilityResult(
        available=not conflicts and not blocked_nights,
        conflicts=conflicts,
        blocked_dates=blocked_nights
    )
