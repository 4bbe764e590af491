# backend/tests/unit/core/test_config.py
"""Unit tests for Settings defaults, env overrides and validators."""

from decimal import Decimal

from pydantic import ValidationError
import pytest

from mentora.core.config import Settings


class TestSettingsDefaults:
    def test_business_rule_defaults(self, settings):
        assert settings.min_lead_time_minutes == 15
        assert settings.business_day_start_hour == 9
        assert settings.business_day_end_hour == 21
        assert settings.max_daily_bookings == 8
        assert settings.max_daily_hours == 8.0
        assert settings.recurrence_iteration_cap == 1000
        assert settings.cancellation_cutoff_minutes == 30
        assert settings.processing_fee_floor == Decimal("5.00")
        assert settings.processing_fee_percent == Decimal("3")
        assert settings.business_timezone == "UTC"

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("MENTORA_MAX_DAILY_BOOKINGS", "4")
        monkeypatch.setenv("MENTORA_LOG_LEVEL", "debug")

        settings = Settings(_env_file=None)

        assert settings.max_daily_bookings == 4
        assert settings.log_level == "DEBUG"


class TestSettingsValidation:
    def test_timezone_is_normalized(self):
        assert Settings(_env_file=None, business_timezone=" Europe/Berlin ").business_timezone == (
            "Europe/Berlin"
        )

    def test_unknown_timezone_rejected(self):
        with pytest.raises(ValidationError, match="Unknown business timezone"):
            Settings(_env_file=None, business_timezone="Mars/Olympus")

    def test_business_window_must_be_positive(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, business_day_start_hour=18, business_day_end_hour=9)
