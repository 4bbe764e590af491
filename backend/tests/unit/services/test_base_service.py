# backend/tests/unit/services/test_base_service.py
"""
Unit tests for BaseService.

Covers settings/clock injection, the measure_operation decorator and the
class-level timing statistics.
"""

from datetime import datetime, timezone
from unittest.mock import patch

import pytest

from mentora.core.clock import SystemClock
from mentora.core.config import settings as default_settings
from mentora.services.base import BaseService


class SampleService(BaseService):
    @BaseService.measure_operation("succeed")
    def succeed(self, value):
        return value * 2

    @BaseService.measure_operation("explode")
    def explode(self):
        raise ValueError("boom")


class TestBaseServiceInitialization:
    def test_defaults(self):
        service = BaseService()

        assert service.settings is default_settings
        assert isinstance(service.clock, SystemClock)

    def test_injected_settings_and_clock(self, settings, clock):
        service = BaseService(settings, clock)

        assert service.settings is settings
        assert service.clock is clock

    def test_logger_uses_class_name(self):
        assert SampleService().logger.name == "SampleService"


class TestNow:
    def test_reads_clock(self, settings, clock, now):
        assert BaseService(settings, clock).now() == now

    def test_override_wins(self, settings, clock):
        pinned = datetime(2030, 1, 1, 12, 0)
        assert BaseService(settings, clock).now(pinned) == pinned.replace(tzinfo=timezone.utc)


class TestMeasureOperation:
    def test_success_recorded(self, settings, clock):
        service = SampleService(settings, clock)

        assert service.succeed(21) == 42

        metrics = service.get_metrics()["succeed"]
        assert metrics["count"] == 1
        assert metrics["success_rate"] == 1.0
        assert metrics["failure_count"] == 0

    def test_failure_recorded_and_reraised(self, settings, clock):
        service = SampleService(settings, clock)

        with pytest.raises(ValueError, match="boom"):
            service.explode()

        metrics = service.get_metrics()["explode"]
        assert metrics["failure_count"] == 1
        assert metrics["success_rate"] == 0.0

    def test_decorator_marks_wrapper(self):
        assert SampleService.succeed._is_measured is True
        assert SampleService.succeed._operation_name == "succeed"
        assert SampleService.succeed.__name__ == "succeed"

    def test_prometheus_receives_error_type(self, settings, clock):
        service = SampleService(settings, clock)

        with patch("mentora.services.base.prometheus_metrics") as mock_metrics:
            with pytest.raises(ValueError):
                service.explode()

        mock_metrics.record_service_operation.assert_called_once()
        kwargs = mock_metrics.record_service_operation.call_args.kwargs
        assert kwargs["service"] == "SampleService"
        assert kwargs["status"] == "error"
        assert kwargs["error_type"] == "ValueError"

    def test_slow_operation_logs_warning(self, settings, clock):
        service = SampleService(settings, clock)

        with patch("mentora.services.base.time") as mock_time:
            mock_time.perf_counter.side_effect = [0.0, 2.5]
            with patch.object(service.logger, "warning") as mock_warning:
                service.succeed(1)

        mock_warning.assert_called_once()
        assert "Slow operation detected: succeed" in mock_warning.call_args.args[0]


def test_reset_metrics(settings, clock):
    service = SampleService(settings, clock)
    service.succeed(1)

    service.reset_metrics()

    assert service.get_metrics() == {}
