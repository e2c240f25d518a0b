"""Stay pricing"""
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Mapping, Optional

from domain.date_rules import night_dates
from domain.exceptions import InvalidInputError
from domain.value_objects import NightlyRate, PricingBreakdown, RateConfig

CURRENCY_UNIT = Decimal("1")


def round_currency(amount: Decimal) -> Decimal:
    """Round half up to whole currency units"""
    return amount.quantize(CURRENCY_UNIT, rounding=ROUND_HALF_UP)


def is_weekend(night: date) -> bool:
    return night.weekday() >= 5


def _check_rate_config(rate_config: RateConfig) -> None:
    # RateConfig validates on construction; model_construct() skips that
    if rate_config.base_rate <= 0:
        raise InvalidInputError("Base rate must be greater than 0")
    if rate_config.cleaning_fee < 0:
        raise InvalidInputError("Cleaning fee cannot be negative")
    if rate_config.security_deposit < 0:
        raise InvalidInputError("Security deposit cannot be negative")
    if rate_config.weekend_premium_percent < 0:
        raise InvalidInputError("Weekend premium cannot be negative")
    if not 0 <= rate_config.service_fee_rate <= 1:
        raise InvalidInputError("Service fee rate must be between 0 and 1")
    if rate_config.max_service_fee <= 0:
        raise InvalidInputError("Maximum service fee must be greater than 0")


def nightly_rates(
    start: date,
    nights: int,
    rate_config: RateConfig,
    price_overrides: Optional[Mapping[date, Decimal]] = None
) -> List[NightlyRate]:
    """Per-night rates; weekend premium applies per Saturday/Sunday night, overrides win"""
    overrides = price_overrides or {}
    weekend_rate = round_currency(
        rate_config.base_rate * (1 + rate_config.weekend_premium_percent / 100)
    )

    rates = []
    for night in night_dates(start, nights):
        weekend = is_weekend(night)
        if night in overrides:
            override = Decimal(overrides[night])
            if override <= 0:
                raise InvalidInputError(f"Price override for {night.isoformat()} must be greater than 0")
            rates.append(NightlyRate(night=night, rate=override, is_weekend=weekend, is_override=True))
        else:
            rate = weekend_rate if weekend else rate_config.base_rate
            rates.append(NightlyRate(night=night, rate=rate, is_weekend=weekend))
    return rates


def calculate_pricing(
    nights: int,
    rate_config: RateConfig,
    first_night: Optional[date] = None,
    price_overrides: Optional[Mapping[date, Decimal]] = None
) -> PricingBreakdown:
    """Price a validated, available stay.

    Without ``first_night`` the calendar is unknown, so the stay is priced
    flat at ``nights * base_rate``. Weekend rates and the service fee are
    rounded half up to whole currency units; nothing else is rounded.
    """
    if isinstance(nights, bool) or not isinstance(nights, int) or nights <= 0:
        raise InvalidInputError("Nights must be a positive integer")
    _check_rate_config(rate_config)

    if first_night is None:
        if price_overrides:
            raise InvalidInputError("Price overrides need the first night's date")
        rates: List[NightlyRate] = []
        subtotal = nights * rate_config.base_rate
    else:
        rates = nightly_rates(first_night, nights, rate_config, price_overrides)
        subtotal = sum((r.rate for r in rates), Decimal("0"))

    service_fee = min(
        round_currency(subtotal * rate_config.service_fee_rate),
        rate_config.max_service_fee
    )
    total = subtotal + rate_config.cleaning_fee + service_fee

    return PricingBreakdown(
        nights=nights,
        subtotal=subtotal,
        service_fee=service_fee,
        cleaning_fee=rate_config.cleaning_fee,
        total=total,
        security_deposit=rate_config.security_deposit,
        currency=rate_config.currency,
        nightly_rates=rates
    )
