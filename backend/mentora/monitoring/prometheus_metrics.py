"""
Prometheus metrics for the Mentora booking engine.

Service timings come from ``@BaseService.measure_operation``; the domain
counters below record decisions (rejected rules, settlement outcomes,
suggestion fallbacks) so policy changes show up on dashboards.
"""

from typing import Optional

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

# Custom registry so embedding applications keep control of the default one
REGISTRY = CollectorRegistry()

service_operation_duration_seconds = Histogram(
    "mentora_service_operation_duration_seconds",
    "Service operation duration in seconds",
    ["service", "operation"],
    registry=REGISTRY,
    buckets=(0.0005, 0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0),
)

service_operations_total = Counter(
    "mentora_service_operations_total",
    "Total number of service operations",
    ["service", "operation", "status"],
    registry=REGISTRY,
)

errors_total = Counter(
    "mentora_errors_total",
    "Total number of errors",
    ["service", "operation", "error_type"],
    registry=REGISTRY,
)

booking_validation_rejections_total = Counter(
    "mentora_booking_validation_rejections_total",
    "Booking validation errors by rule",
    ["rule"],  # lead_time | conflict | business_hours | same_day | duration | ...
    registry=REGISTRY,
)

cancellation_evaluations_total = Counter(
    "mentora_cancellation_evaluations_total",
    "Cancellation evaluations by outcome",
    ["outcome"],  # allowed | special_circumstances | not_found | forbidden | not_eligible
    registry=REGISTRY,
)

slot_suggestion_fallbacks_total = Counter(
    "mentora_slot_suggestion_fallbacks_total",
    "Suggestion requests answered with the next-business-day fallback",
    registry=REGISTRY,
)

recurrence_iteration_cap_hits_total = Counter(
    "mentora_recurrence_iteration_cap_hits_total",
    "Recurrence expansions stopped by the iteration cap",
    ["pattern"],
    registry=REGISTRY,
)


class PrometheusMetrics:
    """Thin facade so callers never touch metric objects directly."""

    @staticmethod
    def record_service_operation(
        service: str,
        operation: str,
        duration: float,
        status: str = "success",
        error_type: Optional[str] = None,
    ) -> None:
        """
        Record service operation metrics from @measure_operation decorator.

        Args:
            service: Service name (e.g., 'ConflictChecker')
            operation: Operation name (e.g., 'detect_conflicts')
            duration: Operation duration in seconds
            status: Operation status ('success' or 'error')
            error_type: Type of error if status is 'error'
        """
        service_operation_duration_seconds.labels(service=service, operation=operation).observe(
            duration
        )
        service_operations_total.labels(service=service, operation=operation, status=status).inc()
        if status == "error" and error_type:
            errors_total.labels(service=service, operation=operation, error_type=error_type).inc()

    @staticmethod
    def record_validation_rejection(rule: str) -> None:
        booking_validation_rejections_total.labels(rule=rule).inc()

    @staticmethod
    def record_cancellation_evaluation(outcome: str) -> None:
        cancellation_evaluations_total.labels(outcome=outcome).inc()

    @staticmethod
    def record_suggestion_fallback() -> None:
        slot_suggestion_fallbacks_total.inc()

    @staticmethod
    def record_recurrence_cap_hit(pattern: str) -> None:
        recurrence_iteration_cap_hits_total.labels(pattern=pattern).inc()

    @staticmethod
    def get_metrics() -> bytes:
        """Exposition-format payload for a scrape endpoint."""
        return generate_latest(REGISTRY)

    @staticmethod
    def get_content_type() -> str:
        return CONTENT_TYPE_LATEST


prometheus_metrics = PrometheusMetrics()
