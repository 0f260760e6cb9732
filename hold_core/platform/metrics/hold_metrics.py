from prometheus_client import Counter


class HoldMetrics:
    """
    Reservation Hold Core Metrics Collector

    Tracks batch execution, availability checks (fail-open events in particular)
    and idempotency cache behaviour.
    """

    def __init__(self):
        # ========== Batch Executor Metrics ==========
        self.batch_items = Counter(
            'batch_items_total',
            'Work items attempted by the bounded executor',
            ['result'],  # succeeded/failed
        )

        # ========== Availability Guard Metrics ==========
        self.availability_checks = Counter(
            'availability_checks_total',
            'Availability checks by outcome',
            ['result'],  # available/conflict/fail_open/read_error
        )

        self.availability_fail_open = Counter(
            'availability_fail_open_total',
            'Availability checks that failed open because the reservation read failed',
            ['site_id'],
        )

        # ========== Idempotency Cache Metrics ==========
        self.idempotency_lookups = Counter(
            'idempotency_lookups_total',
            'Idempotency cache lookups',
            ['result'],  # hit/miss/expired
        )

        self.idempotency_evictions = Counter(
            'idempotency_evictions_total',
            'Idempotency cache evictions',
            ['reason'],  # ttl/capacity
        )

        # ========== Hold Workflow Metrics ==========
        self.hold_outcomes = Counter(
            'hold_outcomes_total',
            'Hold creation outcomes',
            ['status'],
        )

    # ========== Helper Methods ==========

    def record_batch_item(self, *, succeeded: bool):
        self.batch_items.labels(result='succeeded' if succeeded else 'failed').inc()

    def record_availability_check(self, *, result: str):
        self.availability_checks.labels(result=result).inc()

    def record_fail_open(self, *, site_id: str):
        self.availability_fail_open.labels(site_id=site_id).inc()
        self.availability_checks.labels(result='fail_open').inc()

    def record_idempotency_lookup(self, *, result: str):
        self.idempotency_lookups.labels(result=result).inc()

    def record_idempotency_eviction(self, *, reason: str, count: int = 1):
        if count:
            self.idempotency_evictions.labels(reason=reason).inc(count)

    def record_hold_outcome(self, *, status: str):
        self.hold_outcomes.labels(status=status).inc()


# Global metrics instance
hold_metrics = HoldMetrics()
