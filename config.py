"""Application settings, read from the environment or a .env file"""
from functools import lru_cache

from pydantic_settings import BaseSettings

from domain.value_objects import BookingPolicy


class Settings(BaseSettings):
    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "env_prefix": "STAYBOOK_"}

    secret_key: str = "change-me-in-production"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 30

    min_advance_hours: int = 24
    max_advance_days: int = 365
    min_stay_nights: int = 1
    max_stay_nights: int = 90

    default_currency: str = "NGN"
    default_timezone: str = "Africa/Lagos"
    log_level: str = "INFO"

    def booking_policy(self) -> BookingPolicy:
        return BookingPolicy(
            min_advance_hours=self.min_advance_hours,
            max_advance_days=self.max_advance_days,
            min_stay_nights=self.min_stay_nights,
            max_stay_nights=self.max_stay_nights
        )


@lru_cache
def get_settings() -> Settings:
    return Settings()
