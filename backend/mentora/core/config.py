# backend/mentora/core/config.py
"""
Runtime configuration for the Mentora booking engine.

Every business-rule constant the scheduling and cancellation services rely on
lives here so that a deployment can tune them through the environment (or a
``.env`` file) without touching code. Services accept an explicit ``Settings``
instance, which keeps tests independent from the process environment.
"""

from decimal import Decimal
import logging
from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
import pytz

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    # Booking time-slot rules
    min_lead_time_minutes: int = Field(
        default=15,
        ge=0,
        description="Minimum minutes between now and the start of a new booking",
    )
    business_day_start_hour: int = Field(default=9, ge=0, le=23)
    business_day_end_hour: int = Field(default=21, ge=1, le=24)
    business_timezone: str = Field(
        default="UTC",
        description="IANA zone used for business-hour and calendar-day rules",
    )
    min_booking_duration_minutes: int = Field(default=15, ge=1)
    max_booking_duration_hours: int = Field(default=8, ge=1)

    # Mentor capacity
    max_daily_bookings: int = Field(default=8, ge=1)
    max_daily_hours: float = Field(default=8.0, gt=0)

    # Slot suggestions
    suggestion_step_minutes: int = Field(default=30, ge=5)
    max_suggestions: int = Field(default=20, ge=1)

    # Recurrence expansion
    recurrence_iteration_cap: int = Field(
        default=1000,
        ge=1,
        description="Hard stop for recurrence stepping on misconfigured rules",
    )

    # Cancellation and modification policy
    cancellation_cutoff_minutes: int = Field(default=30, ge=0)
    cancellation_request_cutoff_hours: int = Field(
        default=2,
        ge=0,
        description="Cutoff applied when a party files a cancellation request",
    )
    modification_cutoff_hours: int = Field(default=2, ge=0)
    unpaid_cancellation_window_hours: int = Field(default=24, ge=0)
    frequent_cancellation_threshold: int = Field(default=3, ge=1)
    cancellation_lookback_days: int = Field(default=90, ge=1)
    processing_fee_floor: Decimal = Field(default=Decimal("5.00"), ge=0)
    processing_fee_percent: Decimal = Field(default=Decimal("3"), ge=0, le=100)
    modification_fee_percent: Decimal = Field(default=Decimal("5"), ge=0, le=100)
    max_notes_length: int = Field(default=500, ge=0)
    min_cancellation_reason_length: int = Field(default=10, ge=0)

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Root log level applied by configure_logging()",
    )
    structured_logs: bool = Field(
        default=False,
        description="Emit JSON log lines instead of the plain text format",
    )

    model_config = SettingsConfigDict(
        env_prefix="MENTORA_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("business_timezone", mode="before")
    @classmethod
    def _normalize_timezone(cls, value: object) -> str:
        name = str(value or "UTC").strip()
        try:
            return pytz.timezone(name).zone
        except pytz.UnknownTimeZoneError as exc:
            raise ValueError(f"Unknown business timezone: {name}") from exc

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @model_validator(mode="after")
    def _check_business_window(self) -> "Settings":
        if self.business_day_end_hour <= self.business_day_start_hour:
            raise ValueError("business_day_end_hour must be after business_day_start_hour")
        return self


settings = Settings()
