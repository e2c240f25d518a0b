"""Date-range rules for stay requests

Checks a requested stay against the booking policy before any reservation
data is looked at. Every violated rule is reported, in a fixed order, so
rejection messages stay deterministic.
"""
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import List

from domain.value_objects import BookingPolicy, DateValidationResult, ensure_aware

ONE_DAY = timedelta(days=1)


def count_nights(check_in: datetime, check_out: datetime) -> int:
    """Ceiling of the stay length in whole days; 0 for a non-positive stay"""
    duration = ensure_aware(check_out) - ensure_aware(check_in)
    if duration <= timedelta(0):
        return 0
    return -(-duration // ONE_DAY)


def validate_booking_dates(
    check_in: datetime,
    check_out: datetime,
    policy: BookingPolicy,
    now: datetime
) -> DateValidationResult:
    """Validate a requested stay against the policy at instant `now`"""
    check_in = ensure_aware(check_in)
    check_out = ensure_aware(check_out)
    now = ensure_aware(now)

    earliest_check_in = now + timedelta(hours=policy.min_advance_hours)
    latest_check_in = now + timedelta(days=policy.max_advance_days)
    nights = count_nights(check_in, check_out)

    errors: List[str] = []

    if check_in < earliest_check_in:
        errors.append(f"Check-in must be at least {policy.min_advance_hours} hours in advance")

    if check_in > latest_check_in:
        errors.append(f"Check-in cannot be more than {policy.max_advance_days} days in advance")

    if check_out <= check_in:
        errors.append("Check-out date must be after check-in date")

    if nights < policy.min_stay_nights:
        errors.append(f"Minimum stay is {policy.min_stay_nights} night(s)")

    if nights > policy.max_stay_nights:
        errors.append(f"Maximum stay is {policy.max_stay_nights} nights")

    return DateValidationResult(
        is_valid=not errors,
        errors=errors,
        nights=nights
    )


def first_night(check_in: datetime, tz: tzinfo = timezone.utc) -> date:
    """Local calendar date of the first night"""
    return ensure_aware(check_in).astimezone(tz).date()


def night_dates(start: date, nights: int) -> List[date]:
    return [start + timedelta(days=offset) for offset in range(nights)]
