from prometheus_client import Counter, Histogram


class GatewayMetrics:
    """
    Guest Gateway Metrics Collector

    Tracks the request pipeline: license decisions, audit persistence and
    detached background work.
    """

    def __init__(self):
        # ========== HTTP Pipeline Metrics ==========
        self.http_request_duration = Histogram(
            'gateway_http_request_duration_seconds',
            'Request duration observed by the audit recorder',
            ['method', 'status'],
            buckets=[0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
        )

        # ========== License Gate Metrics ==========
        self.license_decisions = Counter(
            'gateway_license_decisions_total',
            'License gate outcomes',
            ['outcome'],  # LicenseDecision values
        )

        # ========== Background Work Metrics ==========
        self.audit_write_failures = Counter(
            'gateway_audit_write_failures_total',
            'Audit rows that could not be persisted',
        )

        self.background_task_failures = Counter(
            'gateway_background_task_failures_total',
            'Detached background tasks that raised',
            ['label'],
        )

    def record_request(self, *, method: str, status: int, duration_seconds: float):
        self.http_request_duration.labels(method=method, status=str(status)).observe(
            duration_seconds
        )

    def record_license_decision(self, *, outcome: str):
        self.license_decisions.labels(outcome=outcome).inc()

    def record_audit_write_failure(self):
        self.audit_write_failures.inc()

    def record_background_task_failure(self, *, label: str):
        self.background_task_failures.labels(label=label).inc()


# Global metrics instance
metrics = GatewayMetrics()
