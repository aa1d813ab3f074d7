from prometheus_client import Counter, Histogram


class BookingMetrics:
    """Prometheus collectors for the reservation saga, lifecycle flows and sweeps."""

    def __init__(self) -> None:
        # ========== Reservation Saga ==========
        self.booking_requests = Counter(
            'booking_requests_total',
            'Booking creation attempts by outcome',
            ['result'],  # confirmed/replayed/payment_failed/rejected/error
        )

        self.booking_duration = Histogram(
            'booking_create_duration_seconds',
            'End-to-end reservation saga duration',
            buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 20.0],
        )

        self.order_number_collisions = Counter(
            'booking_order_number_collisions_total',
            'Order numbers rejected by the uniqueness constraint',
        )

        # ========== Payment Gateway ==========
        self.payment_operations = Counter(
            'payment_gateway_operations_total',
            'Payment gateway calls by operation and outcome',
            ['operation', 'result'],  # operation: capture/refund
        )

        # ========== Lifecycle ==========
        self.booking_transitions = Counter(
            'booking_transitions_total',
            'Booking state transitions applied',
            ['to_status'],
        )

        # ========== Scheduler ==========
        self.scheduler_runs = Counter(
            'scheduler_job_runs_total',
            'Scheduler ticks by job and outcome',
            ['job', 'result'],  # result: completed/skipped_locked/skipped_not_ready/failed
        )

        self.scheduler_items = Counter(
            'scheduler_job_items_total',
            'Items handled by scheduler sweeps',
            ['job', 'result'],  # result: processed/failed
        )

    # ========== Helper Methods ==========

    def record_booking_request(self, *, result: str, duration: float) -> None:
        self.booking_requests.labels(result=result).inc()
        self.booking_duration.observe(duration)

    def record_payment_operation(self, *, operation: str, success: bool) -> None:
        self.payment_operations.labels(
            operation=operation, result='success' if success else 'failure'
        ).inc()

    def record_transition(self, *, to_status: str) -> None:
        self.booking_transitions.labels(to_status=to_status).inc()

    def record_scheduler_run(self, *, job: str, result: str, processed: int = 0, failed: int = 0):
        self.scheduler_runs.labels(job=job, result=result).inc()
        if processed:
            self.scheduler_items.labels(job=job, result='processed').inc(processed)
        if failed:
            self.scheduler_items.labels(job=job, result='failed').inc(failed)


# Global metrics instance
metrics = BookingMetrics()
