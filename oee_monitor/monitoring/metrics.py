"""
OEE Monitor - Application Metrics

Prometheus metrics for report assembly. Collected in a dedicated registry that
the ``/metrics`` endpoint renders.
"""

import time
from contextlib import contextmanager

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, generate_latest


class OEEMetrics:
    """Metrics collector for OEE report building."""

    def __init__(self):
        """Initialize metrics in their own registry."""
        self.registry = CollectorRegistry()

        self.reports_total = Counter(
            'oee_monitor_reports_total',
            'Total number of OEE reports built',
            ['kind'],
            registry=self.registry
        )

        self.report_errors_total = Counter(
            'oee_monitor_report_errors_total',
            'Total number of OEE reports that failed',
            ['kind'],
            registry=self.registry
        )

        self.report_duration = Histogram(
            'oee_monitor_report_duration_seconds',
            'OEE report build duration in seconds',
            ['kind'],
            buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1.0],
            registry=self.registry
        )

        self.machine_oee = Gauge(
            'oee_monitor_machine_oee_percent',
            'Latest OEE percentage per machine',
            ['machine_id', 'component'],
            registry=self.registry
        )

    @contextmanager
    def track_report(self, kind: str):
        """Time a report build and count its outcome."""
        started = time.perf_counter()
        try:
            yield
        except Exception:
            self.report_errors_total.labels(kind=kind).inc()
            raise
        else:
            self.reports_total.labels(kind=kind).inc()
        finally:
            self.report_duration.labels(kind=kind).observe(time.perf_counter() - started)

    def record_machine_result(self, machine_id: str, result) -> None:
        """Publish the four percentages of a machine report."""
        for component in ("availability", "performance", "quality", "oee"):
            self.machine_oee.labels(machine_id=machine_id, component=component).set(
                getattr(result, component)
            )

    def render(self) -> bytes:
        return generate_latest(self.registry)


metrics = OEEMetrics()
