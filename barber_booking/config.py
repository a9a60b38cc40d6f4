# barber_booking/config.py

import logging
from functools import lru_cache
from typing import List, Literal, Optional

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from barber_booking.logging_context import RequestIdFilter

WEEKDAY_NAMES = ["Mondays", "Tuesdays", "Wednesdays", "Thursdays", "Fridays", "Saturdays", "Sundays"]


class Settings(BaseSettings):
    """Shop rules, Google/SMTP credentials and runtime knobs.

    Every field can be overridden by the upper-cased environment variable
    of the same name (or a `.env` file next to the process).
    """

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", frozen=True)

    app_name: str = "Barbershop Booking API"
    log_level: str = "INFO"

    # Shop rules
    shop_name: str = "Distinguished Gentleman Barbers"
    shop_phone: Optional[str] = None
    timezone: str = "America/Los_Angeles"
    open_hour: int = 10
    close_hour: int = 19
    closed_weekdays: List[int] = [2, 6]  # 0=Mon ... 6=Sun
    horizon_days: int = 90
    lead_time_minutes: int = 120
    fallback_barbers: List[str] = ["Michael"]

    # Google Sheets / Calendar
    spreadsheet_id: str = ""
    slots_range: str = "Available_Times!A:Z"
    bookings_range: str = "Form Responses!A:H"
    calendar_id: str = ""
    google_credentials: Optional[str] = None
    google_client_email: Optional[str] = None
    google_private_key: Optional[str] = None
    store_timeout_seconds: float = 10.0

    # Email (SMTP)
    smtp_host: Optional[str] = "smtp.gmail.com"
    smtp_port: int = 587
    smtp_username: Optional[str] = None
    smtp_password: Optional[str] = None
    smtp_from_email: Optional[str] = None
    smtp_use_tls: bool = True
    smtp_timeout_seconds: float = 10.0
    shop_email: Optional[str] = None

    # Reservation locking
    lock_backend: Literal["memory", "lease", "none"] = "memory"
    lock_wait_seconds: float = 10.0
    lease_database_url: str = "sqlite:///./booking_leases.db"
    lease_ttl_seconds: int = 60

    cors_origins: List[str] = [
        "https://dgbarbers.com",
        "https://www.dgbarbers.com",
        "https://booking1231.netlify.app",
        "http://localhost:8080",
    ]

    @field_validator("open_hour", "close_hour")
    @classmethod
    def _check_hour(cls, value: int, info):
        if not 0 <= value <= 23:
            raise ValueError(f"{info.field_name.upper()} must be between 0 and 23, got {value}")
        return value

    @field_validator("closed_weekdays")
    @classmethod
    def _check_weekdays(cls, value: List[int]):
        for day in value:
            if not 0 <= day <= 6:
                raise ValueError(f"CLOSED_WEEKDAYS must contain integers between 0 and 6, got {day}")
        return sorted(set(value))

    @field_validator("horizon_days", "lease_ttl_seconds")
    @classmethod
    def _check_positive_int(cls, value: int, info):
        if value < 1:
            raise ValueError(f"{info.field_name.upper()} must be >= 1, got {value}")
        return value

    @field_validator("lead_time_minutes")
    @classmethod
    def _check_lead_time(cls, value: int):
        if value < 0:
            raise ValueError(f"LEAD_TIME_MINUTES must be >= 0, got {value}")
        return value

    @field_validator("store_timeout_seconds", "smtp_timeout_seconds", "lock_wait_seconds")
    @classmethod
    def _check_timeout(cls, value: float, info):
        if value <= 0:
            raise ValueError(f"{info.field_name.upper()} must be > 0, got {value}")
        return value

    @model_validator(mode="after")
    def _check_business_hours(self):
        if self.open_hour >= self.close_hour:
            raise ValueError(
                f"OPEN_HOUR must be before CLOSE_HOUR, got {self.open_hour} and {self.close_hour}"
            )
        return self

    @property
    def shop_mailbox(self) -> Optional[str]:
        return self.shop_email or self.smtp_from_email or self.smtp_username

    @property
    def closed_day_message(self) -> str:
        names = [WEEKDAY_NAMES[d] for d in self.closed_weekdays]
        if not names:
            return "We're closed that day."
        if len(names) == 1:
            days = names[0]
        else:
            days = ", ".join(names[:-1]) + " and " + names[-1]
        message = f"We're closed on {days}."
        if self.shop_phone:
            message += f" Please call {self.shop_phone} for special arrangements."
        return message


@lru_cache
def get_settings() -> Settings:
    return Settings()


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s [%(request_id)s]: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    for handler in logging.getLogger().handlers:
        if not any(isinstance(f, RequestIdFilter) for f in handler.filters):
            handler.addFilter(RequestIdFilter())
